from __future__ import annotations

from typing import Any, Optional

import httpx

from docpilot.errors import UpstreamError
from docpilot.services.metrics import now, elapsed_ms, record_http


def send(
    client: httpx.Client,
    provider: str,
    endpoint: str,
    method: str,
    url: str,
    *,
    allow_error: bool = False,
    **kwargs: Any,
) -> httpx.Response:
    """Issue one request, record it, and raise UpstreamError on >= 400 unless allow_error."""
    t0 = now()
    try:
        resp = client.request(method, url, **kwargs)
    except httpx.HTTPError:
        record_http(provider, endpoint, 0, elapsed_ms(t0))
        raise
    record_http(provider, endpoint, resp.status_code, elapsed_ms(t0))
    if resp.status_code >= 400 and not allow_error:
        raise UpstreamError(provider, resp.status_code, resp.text, endpoint=endpoint)
    return resp


def json_or_empty(resp: httpx.Response) -> Any:
    try:
        return resp.json() or {}
    except ValueError:
        return {}


def bearer(token: str, extra: Optional[dict] = None) -> dict:
    headers = {"Authorization": f"Bearer {token}", "Content-Type": "application/json"}
    if extra:
        headers.update(extra)
    return headers
