from __future__ import annotations

import logging

from docpilot.config import Settings
from docpilot.models.types import ReportData
from docpilot.services.analytics_report import CHANNEL_DIM, total_sessions
from docpilot.services.providers.gemini import GeminiClient

logger = logging.getLogger(__name__)


def build_insights_prompt(data: ReportData) -> str:
    total = total_sessions(data.current_channels)
    pages = "\n".join(
        f"{p.get('landingPage')}: {p.get('sessions', 0):,} sessions" for p in data.organic_search_pages[:5]
    )
    channels = "\n".join(
        f"{c.get(CHANNEL_DIM)}: {c.get('sessions', 0):,} sessions "
        f"({(c.get('sessions', 0) / total * 100) if total else 0:.1f}%)"
        for c in data.current_channels
    )
    return (
        f"Provide a positive summary for this {data.days}-day analytics data:\n\n"
        f"TOTAL TRAFFIC: {total:,} sessions\n\n"
        f"TOP 5 PAGES:\n{pages}\n\n"
        f"CHANNEL-WISE SUMMARY:\n{channels}\n\n"
        "Write a concise positive overview highlighting the performance metrics. "
        "Do not include suggestions or recommendations. "
        "Focus only on summarizing the data in a positive manner."
    )


def fallback_insights(settings: Settings, data: ReportData) -> str:
    total = total_sessions(data.current_channels)
    top = data.current_channels[0].get(CHANNEL_DIM) if data.current_channels else "N/A"
    return "\n".join([
        f"{settings.company_name} achieved {total:,} total sessions over the {data.days}-day period.",
        f"Top performing channel: {top} with strong engagement metrics.",
        f"Organic search continues to drive quality traffic with "
        f"{len(data.organic_search_pages)} active landing pages.",
    ])


def generate_insights(settings: Settings, gemini: GeminiClient, data: ReportData) -> str:
    """Short model-written summary; falls back to a templated one on any failure."""
    if not gemini.enabled:
        return fallback_insights(settings, data)
    try:
        text = gemini.generate(
            [{"role": "user", "parts": [{"text": build_insights_prompt(data)}]}],
            temperature=0.3,
            max_output_tokens=200,
        )
    except Exception as e:
        logger.warning("insights: generation failed, using fallback: %s", e)
        return fallback_insights(settings, data)
    return text.strip() or fallback_insights(settings, data)
