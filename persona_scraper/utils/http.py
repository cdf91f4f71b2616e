"""Async GET helpers; every call opens and closes its own client."""

from __future__ import annotations

import logging
from typing import Any

import httpx

logger = logging.getLogger(__name__)

BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/120.0.0.0 Safari/537.36"
)


def _query(params: dict[str, Any] | None) -> dict[str, Any]:
    """Drop ``None`` values so an absent cursor can be passed straight through."""
    return {k: v for k, v in (params or {}).items() if v is not None}


async def _get(
    url: str,
    *,
    accept: str,
    headers: dict[str, str] | None,
    params: dict[str, Any] | None,
    timeout: float,
    user_agent: str,
) -> httpx.Response:
    request_headers = {
        "User-Agent": user_agent,
        "Accept": accept,
        "Accept-Language": "en-US,en;q=0.9",
        **(headers or {}),
    }
    async with httpx.AsyncClient(timeout=timeout, follow_redirects=True) as client:
        resp = await client.get(url, headers=request_headers, params=_query(params))
    logger.debug("GET %s -> %d", url, resp.status_code)
    resp.raise_for_status()
    return resp


async def fetch_json(
    url: str,
    *,
    headers: dict[str, str] | None = None,
    params: dict[str, Any] | None = None,
    timeout: float = 30.0,
    user_agent: str = BROWSER_USER_AGENT,
) -> dict[str, Any]:
    resp = await _get(
        url,
        accept="application/json",
        headers=headers,
        params=params,
        timeout=timeout,
        user_agent=user_agent,
    )
    return resp.json()


async def fetch_text(
    url: str,
    *,
    headers: dict[str, str] | None = None,
    params: dict[str, Any] | None = None,
    timeout: float = 30.0,
    user_agent: str = BROWSER_USER_AGENT,
) -> str:
    """Fetch an HTML or XML document as text."""
    resp = await _get(
        url,
        accept="text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
        headers=headers,
        params=params,
        timeout=timeout,
        user_agent=user_agent,
    )
    return resp.text
