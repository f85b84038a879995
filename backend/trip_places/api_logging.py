"""
api_logging.py
~~~~~~~~~~~~~~
Tiny wrapper that prints **one concise log line** per outbound request to
the trip API and (optionally) raises for server-side errors.

Usage example
-------------
>>> from .api_logging import logged_request_async
>>> async with httpx.AsyncClient() as cli:
...     resp = await logged_request_async(
...         cli, "get", "https://trip.test/api.php?action=searchPlaces",
...         params={"q": "pune"}, raise_for_status=False,
...     )
"""

from __future__ import annotations

import logging
import time
from typing import Any

LOG = logging.getLogger("extapi")


def _describe(url: str, kwargs: dict[str, Any]) -> str:
    """Render *url* plus any ``params=`` so the log line shows the real query."""
    params = kwargs.get("params")
    if not params:
        return url
    query = "&".join(f"{k}={v}" for k, v in dict(params).items())
    return f"{url}&{query}" if "?" in url else f"{url}?{query}"


async def logged_request_async(
    client: Any,
    method: str,
    url: str,
    *args: Any,
    raise_for_status: bool = True,
    **kwargs: Any,
):
    """
    Issue one HTTP request on an ``httpx.AsyncClient`` **and** emit a log line.

    Parameters
    ----------
    client:
        ``httpx.AsyncClient`` instance (anything with awaitable verb methods).
    method:
        HTTP verb – e.g. ``"get"``, ``"post"`` … **lower-case**.
    url:
        Absolute URL.
    raise_for_status:
        *True* ⇒ propagate 5xx via :pymeth:`httpx.Response.raise_for_status`.
        *False* ⇒ never raise; the caller decides.

    Returns
    -------
    httpx.Response
        Raw response so the caller can inspect status / JSON / headers.

    Notes
    -----
    * **4xx** responses are logged at *INFO*; the trip API answers unknown
      actions and empty searches that way.
    * Network errors are logged at *WARNING* and re-raised.
    """
    verb = method.upper()
    target = _describe(url, kwargs)
    t0 = time.perf_counter()
    try:
        response = await getattr(client, method)(url, *args, **kwargs)
    except Exception as exc:
        latency_ms = (time.perf_counter() - t0) * 1000.0
        LOG.warning("FAIL %s %s %.0f ms %s", verb, target, latency_ms, exc)
        raise

    latency_ms = (time.perf_counter() - t0) * 1000.0
    code = response.status_code

    if code >= 500:
        LOG.warning("%s %s → %s (%.0f ms)", verb, target, code, latency_ms)
    else:
        LOG.info("%s %s → %s (%.0f ms)", verb, target, code, latency_ms)

    if raise_for_status and code >= 500:
        response.raise_for_status()

    return response


__all__ = ["logged_request_async"]
