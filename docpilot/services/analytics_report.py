from __future__ import annotations

import logging
from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Tuple

from docpilot.config import Settings
from docpilot.models.types import ReportData, ReportPeriod
from docpilot.services.providers.ga4 import AnalyticsClient

logger = logging.getLogger(__name__)

CHANNEL_DIM = "sessionDefaultChannelGrouping"

TRAFFIC_METRICS = [
    "sessions",
    "newUsers",
    "totalUsers",
    "averageSessionDuration",
    "userEngagementDuration",
    "eventsPerSession",
    "bounceRate",
]

# Metrics compared period over period in the channel table
CHANGE_METRICS = [
    "sessions",
    "newUsers",
    "totalUsers",
    "averageSessionDuration",
    "eventsPerSession",
    "bounceRate",
]


def compute_periods(days: int, today: Optional[date] = None) -> Tuple[ReportPeriod, ReportPeriod]:
    """Current period ends yesterday; the previous one is the same length right before it."""
    if days < 1:
        raise ValueError("days must be >= 1")
    today = today or datetime.now(timezone.utc).date()
    cur_end = today - timedelta(days=1)
    cur_start = cur_end - timedelta(days=days - 1)
    prev_end = cur_start - timedelta(days=1)
    prev_start = prev_end - timedelta(days=days - 1)
    return (
        ReportPeriod(start=cur_start.isoformat(), end=cur_end.isoformat()),
        ReportPeriod(start=prev_start.isoformat(), end=prev_end.isoformat()),
    )


def _string_filter(field: str, value: str, match_type: str = "EXACT") -> Dict[str, Any]:
    return {"filter": {"fieldName": field, "stringFilter": {"matchType": match_type, "value": value}}}


def geo_expressions(settings: Settings) -> List[Dict[str, Any]]:
    exprs: List[Dict[str, Any]] = []
    for country in settings.exclude_countries:
        exprs.append({"notExpression": _string_filter("country", country, "EXACT")})
    for city in settings.exclude_cities:
        exprs.append({"notExpression": _string_filter("city", city, "CONTAINS")})
    return exprs


def build_filter(settings: Settings, extra: Optional[Dict[str, Any]] = None) -> Optional[Dict[str, Any]]:
    """Geographic exclusions AND-ed with an optional extra expression; None when empty."""
    exprs = geo_expressions(settings)
    if extra:
        exprs.append(extra)
    if not exprs:
        return None
    return {"andGroup": {"expressions": exprs}}


def describe_filters(settings: Settings) -> str:
    parts = []
    if settings.exclude_countries:
        parts.append(f"Excluding countries: {', '.join(settings.exclude_countries)}")
    if settings.exclude_cities:
        parts.append(f"Excluding cities: {', '.join(settings.exclude_cities)}")
    return " and ".join(parts)


def report_payload(
    period: ReportPeriod,
    dimensions: List[str],
    metrics: List[str],
    dimension_filter: Optional[Dict[str, Any]] = None,
    limit: Optional[int] = None,
    order_by_sessions: bool = True,
) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "dateRanges": [{"startDate": period.start, "endDate": period.end}],
        "dimensions": [{"name": d} for d in dimensions],
        "metrics": [{"name": m} for m in metrics],
    }
    if dimension_filter:
        payload["dimensionFilter"] = dimension_filter
    if order_by_sessions:
        payload["orderBys"] = [{"metric": {"metricName": "sessions"}, "desc": True}]
    if limit:
        payload["limit"] = limit
    return payload


def percent_change(curr: float, prev: float) -> float:
    if prev == 0:
        return 100.0 if curr > 0 else 0.0
    return (curr - prev) / prev * 100.0


def enrich_metrics(rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    out = []
    for row in rows:
        sessions = row.get("sessions") or 0
        item = dict(row)
        item["returningUsers"] = (row.get("totalUsers") or 0) - (row.get("newUsers") or 0)
        item["avgEngagementPerSession"] = (row.get("userEngagementDuration") or 0) / sessions if sessions > 0 else 0.0
        out.append(item)
    return out


def _engagement_per_session(row: Dict[str, Any]) -> float:
    return (row.get("userEngagementDuration") or 0) / (row.get("sessions") or 1)


def calculate_period_changes(current: List[Dict[str, Any]], previous: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Current channel rows, enriched, each with a `changes` dict of percent deltas."""
    prev_by_channel = {r.get(CHANNEL_DIM): r for r in previous}
    out = []
    for row in enrich_metrics(current):
        prev = prev_by_channel.get(row.get(CHANNEL_DIM)) or {}
        changes = {m: percent_change(row.get(m) or 0, prev.get(m) or 0) for m in CHANGE_METRICS}
        changes["avgEngagementPerSession"] = percent_change(_engagement_per_session(row), _engagement_per_session(prev))
        row["changes"] = changes
        out.append(row)
    return out


def total_sessions(rows: List[Dict[str, Any]]) -> int:
    return int(sum(r.get("sessions") or 0 for r in rows))


class ReportFetcher:
    def __init__(self, settings: Settings, analytics: AnalyticsClient):
        self.settings = settings
        self.analytics = analytics

    def fetch(self, days: int, today: Optional[date] = None) -> ReportData:
        current, previous = compute_periods(days, today)
        logger.info("report: current %s..%s, previous %s..%s", current.start, current.end, previous.start, previous.end)
        s = self.settings
        run = self.analytics.run_report
        geo = build_filter(s)

        def channel(value: str) -> Optional[Dict[str, Any]]:
            return build_filter(s, _string_filter(CHANNEL_DIM, value))

        return ReportData(
            current_channels=run(report_payload(current, [CHANNEL_DIM], TRAFFIC_METRICS, geo)),
            previous_channels=run(report_payload(previous, [CHANNEL_DIM], TRAFFIC_METRICS, geo)),
            organic_search_pages=run(report_payload(
                current, ["landingPage"], TRAFFIC_METRICS, channel("Organic Search"), limit=15)),
            organic_social=run(report_payload(
                current, ["landingPage", "sessionCampaignName", "sessionSource"], TRAFFIC_METRICS,
                channel("Organic Social"), limit=5)),
            unassigned_sources=run(report_payload(
                current, ["firstUserSource"], TRAFFIC_METRICS, channel("Unassigned"), limit=10)),
            top_regions=run(report_payload(current, ["country"], ["sessions"], geo, limit=5)),
            gender=run(report_payload(current, ["userGender"], ["sessions"], geo), optional=True),
            age=run(report_payload(current, ["userAgeBracket"], ["sessions"], geo), optional=True),
            devices=run(report_payload(current, ["deviceCategory"], TRAFFIC_METRICS, geo)),
            contact_page=run(report_payload(
                current, ["pagePath"], ["sessions", "screenPageViews", "totalUsers"],
                build_filter(s, _string_filter("pagePath", s.contact_page_path)), order_by_sessions=False)),
            current_period=current,
            previous_period=previous,
            days=days,
            filters=describe_filters(s),
        )
