from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from docpilot.config import Settings
from docpilot.errors import ConfigurationError, UpstreamError
from docpilot.services.providers.google_auth import TokenProvider
from docpilot.services.providers.http import send, json_or_empty, bearer

logger = logging.getLogger(__name__)

GA4_BASE = "https://analyticsdata.googleapis.com/v1beta"


def _is_float_metric(name: str) -> bool:
    return "Rate" in name or "Duration" in name or "Per" in name


def _to_number(raw: Any, as_float: bool) -> float:
    try:
        return float(raw) if as_float else int(float(raw))
    except (TypeError, ValueError):
        return 0.0 if as_float else 0


def parse_report(response: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Flatten a runReport response into one dict per row keyed by header name."""
    rows = response.get("rows") or []
    if not rows:
        return []
    dim_headers = response.get("dimensionHeaders") or []
    metric_headers = response.get("metricHeaders") or []
    out: List[Dict[str, Any]] = []
    for row in rows:
        item: Dict[str, Any] = {}
        dims = row.get("dimensionValues") or []
        for i, h in enumerate(dim_headers):
            if i < len(dims):
                item[h["name"]] = dims[i].get("value")
        mets = row.get("metricValues") or []
        for i, h in enumerate(metric_headers):
            if i < len(mets):
                name = h["name"]
                item[name] = _to_number(mets[i].get("value"), _is_float_metric(name))
        out.append(item)
    return out


class AnalyticsClient:
    def __init__(self, settings: Settings, tokens: TokenProvider, client: Optional[httpx.Client] = None):
        self.settings = settings
        self.tokens = tokens
        self.client = client or httpx.Client(timeout=settings.http_timeout)

    def _url(self) -> str:
        if not self.settings.ga4_property_id:
            raise ConfigurationError("GA4_PROPERTY_ID is not set")
        return f"{GA4_BASE}/properties/{self.settings.ga4_property_id}:runReport"

    def run_report_raw(self, payload: Dict[str, Any]) -> httpx.Response:
        return send(
            self.client,
            "ga4",
            ":runReport",
            "POST",
            self._url(),
            headers=bearer(self.tokens.token()),
            json=payload,
            allow_error=True,
        )

    def run_report(self, payload: Dict[str, Any], *, optional: bool = False) -> List[Dict[str, Any]]:
        """Run a report; when optional, a non-200 answer yields [] instead of raising."""
        resp = self.run_report_raw(payload)
        if resp.status_code != 200:
            if optional:
                logger.info("ga4: optional report unavailable (HTTP %s): %s", resp.status_code,
                            [d.get("name") for d in payload.get("dimensions", [])])
                return []
            raise UpstreamError("ga4", resp.status_code, resp.text, endpoint=":runReport")
        return parse_report(json_or_empty(resp))
