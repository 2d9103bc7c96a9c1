from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from docpilot.config import Settings
from docpilot.models.types import ReportData
from docpilot.services.analytics_report import (
    CHANNEL_DIM,
    calculate_period_changes,
    enrich_metrics,
    total_sessions,
)
from docpilot.services.charts import generate_bar_chart, generate_pie_chart
from docpilot.services.templating import render_template


def report_subject(settings: Settings, days: int) -> str:
    return f"{days}-Day Analytics Report - {settings.company_name}"


def error_subject(settings: Settings) -> str:
    return f"GA4 Report Error - {settings.company_name}"


def render_report_html(settings: Settings, data: ReportData, insights: Optional[str] = None) -> str:
    channels = calculate_period_changes(data.current_channels, data.previous_channels)
    contact = data.contact_page[0] if data.contact_page else {}
    return render_template(
        "report_email.html",
        company=settings.company_name,
        website_url=settings.website_url,
        contact_page_path=settings.contact_page_path,
        data=data,
        insights=insights if settings.include_ai_insights else None,
        channels=channels,
        channel_dim=CHANNEL_DIM,
        total_sessions=total_sessions(channels),
        top_channel=channels[0].get(CHANNEL_DIM) if channels else "N/A",
        organic_search=enrich_metrics(data.organic_search_pages),
        organic_social=enrich_metrics(data.organic_social),
        unassigned=enrich_metrics(data.unassigned_sources),
        devices=enrich_metrics(data.devices),
        contact=contact,
        regions_chart=generate_pie_chart(data.top_regions, "regions"),
        gender_chart=generate_pie_chart(data.gender, "gender"),
        age_chart=generate_bar_chart(data.age, "age groups"),
    )


def render_report_text(settings: Settings, data: ReportData, insights: Optional[str] = None) -> str:
    """Plain-text alternative for mail clients that skip the HTML part."""
    lines = [
        f"{data.days}-Day Analytics Report - {settings.company_name}",
        f"Current: {data.current_period.start} to {data.current_period.end}",
        f"vs Previous: {data.previous_period.start} to {data.previous_period.end}",
    ]
    if data.filters:
        lines.append(data.filters)
    lines.append("")
    if insights and settings.include_ai_insights:
        lines += [insights, ""]
    lines.append(f"Total sessions: {total_sessions(data.current_channels):,}")
    for row in data.current_channels:
        lines.append(f"- {row.get(CHANNEL_DIM)}: {row.get('sessions', 0):,}")
    return "\n".join(lines)


def render_error_text(settings: Settings, error: BaseException, when: Optional[datetime] = None) -> str:
    when = when or datetime.now(timezone.utc)
    return render_template(
        "error_email.txt",
        error=f"{type(error).__name__}: {error}",
        time=when.isoformat(),
        property_id=settings.ga4_property_id or "(not set)",
    )
