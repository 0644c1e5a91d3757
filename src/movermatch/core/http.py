"""
HTTP helpers.

This module centralizes the minimal HTTP client logic used by the RPC collaborator.

Design goals:
- Small surface area (POST JSON).
- Deterministic defaults (timeout + User-Agent).
- Raise on non-2xx so the matcher can surface the failure as `MatcherUnavailable`.
"""

from __future__ import annotations

from typing import Any

import httpx


DEFAULT_USER_AGENT = "movermatch/0.1.0 (+https://local)"


async def post_json(
    url: str,
    *,
    payload: Any,
    headers: dict[str, str] | None = None,
    timeout_seconds: float = 10,
    transport: httpx.AsyncBaseTransport | None = None,
) -> Any:
    """POST `payload` as a JSON body and return the decoded JSON response.

    Raises:
        httpx.HTTPError: On transport errors or non-2xx status codes.
        ValueError: If the response body is not valid JSON.
    """
    request_headers = {"User-Agent": DEFAULT_USER_AGENT, "Accept": "application/json"}
    if headers:
        request_headers.update(headers)

    async with httpx.AsyncClient(timeout=timeout_seconds, transport=transport) as client:
        resp = await client.post(url, json=payload, headers=request_headers)
        resp.raise_for_status()
        return resp.json()
