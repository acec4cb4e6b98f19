from typing import Optional

import httpx

from linkick.core.config import settings


def http_client(transport: Optional[httpx.AsyncBaseTransport] = None) -> httpx.AsyncClient:
    """Build the AsyncClient used for Kick API calls.

    Callers use it as an async context manager. Tests pass an
    httpx.MockTransport to answer requests locally.
    """
    return httpx.AsyncClient(
        follow_redirects=True,
        timeout=settings.HTTP_TIMEOUT,
        headers={
            "User-Agent": settings.HTTP_USER_AGENT,
            "Accept": "application/json",
        },
        transport=transport,
    )
