"""
config.py
~~~~~~~~~
Environment-driven settings for the trip API client.

A ``.env`` file next to the working directory is honoured (python-dotenv);
real environment variables always win.

Variables
---------
TRIP_API_BASE_URL:   Base URL ending in ``action=`` (the action name is
                     appended verbatim).
TRIP_API_TIMEOUT:    Per-request timeout in seconds (default: 30).
TRIP_API_TOKEN:      Optional bearer token sent as ``Authorization``.
PLACES_MAX_RESULTS:  Cap on normalized search results (default: 200).
ALLOWED_ORIGINS:     Comma-separated CORS origins for the HTTP facade.
"""

from __future__ import annotations

import os

from dotenv import load_dotenv

load_dotenv()

TRIP_API_BASE_URL: str = os.getenv(
    "TRIP_API_BASE_URL", "http://localhost:8000/api.php?action="
)
TRIP_API_TIMEOUT: float = float(os.getenv("TRIP_API_TIMEOUT", "30"))
TRIP_API_TOKEN: str = os.getenv("TRIP_API_TOKEN", "")
PLACES_MAX_RESULTS: int = int(os.getenv("PLACES_MAX_RESULTS", "200"))
ALLOWED_ORIGINS: list[str] = [
    origin.strip()
    for origin in os.getenv(
        "ALLOWED_ORIGINS", "http://localhost:8081,http://127.0.0.1:8081"
    ).split(",")
    if origin.strip()
]


def auth_header(token: str | None = None) -> dict[str, str]:
    """Return the ``Authorization`` header for *token* (or the configured one).

    A token already carrying the ``Bearer`` scheme is sent unchanged.
    """
    token = TRIP_API_TOKEN if token is None else token
    if not token:
        return {}
    value = token if token.startswith("Bearer ") else f"Bearer {token}"
    return {"Authorization": value}
