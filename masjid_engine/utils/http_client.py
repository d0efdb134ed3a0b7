"""
HTTP fetch utilities

Single-shot GET helpers shared by the live-stream and video sources. There is
no retry loop here: periodic callers retry on their own fixed cadence.
"""
import logging
from typing import Any

import httpx


logger = logging.getLogger(__name__)

USER_AGENT = "masjid-engine/0.1"


async def http_get(
    url: str,
    *,
    params: dict[str, Any] | None = None,
    timeout: float = 8.0,
    client: httpx.AsyncClient | None = None,
    headers: dict[str, str] | None = None,
) -> httpx.Response:
    """
    GET a URL and fail on non-2xx responses

    Args:
        url: URL to fetch
        params: Optional query parameters
        timeout: HTTP timeout in seconds (ignored when client is given)
        client: Shared AsyncClient; a short-lived one is created when omitted
        headers: Extra request headers

    Returns:
        The successful response, body already read

    Raises:
        httpx.HTTPError: On transport errors or non-2xx responses
    """
    request_headers = {"User-Agent": USER_AGENT, **(headers or {})}
    logger.debug(f"GET {url} params={params}")

    if client is not None:
        response = await client.get(url, params=params, headers=request_headers)
        response.raise_for_status()
        return response

    async with httpx.AsyncClient(timeout=timeout, follow_redirects=True) as own_client:
        response = await own_client.get(url, params=params, headers=request_headers)
        response.raise_for_status()
        return response


async def fetch_bytes(url: str, **kwargs: Any) -> bytes:
    """GET a URL and return the raw body."""
    response = await http_get(url, **kwargs)
    return response.content


async def fetch_json(url: str, **kwargs: Any) -> Any:
    """
    GET a URL and decode its JSON body

    Raises:
        httpx.HTTPError: On transport errors or non-2xx responses
        ValueError: If the body is not valid JSON
    """
    headers = {"Accept": "application/json", "Cache-Control": "no-cache", **kwargs.pop("headers", {})}
    response = await http_get(url, headers=headers, **kwargs)
    return response.json()
