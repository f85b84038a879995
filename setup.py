from setuptools import setup, find_packages

setup(
    name="trip-places",
    version="0.1.0",
    description="Place normalization & boarding-point resolution for the trip-booking backend",
    package_dir={"": "backend"},
    packages=find_packages(where="backend"),
    install_requires=[
        "httpx>=0.23,<0.28",
        "fastapi>=0.95",
        "uvicorn>=0.22",
        "python-dotenv>=1.0",
        "pydantic>=1.10",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
            "pytest-asyncio>=0.21",
            "pytest-httpx>=0.23,<0.33",
        ],
        "lint": [
            "black>=23.0",
            "flake8>=6.0",
        ],
    },
)
