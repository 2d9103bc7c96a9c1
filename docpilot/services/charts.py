from __future__ import annotations

import math
from html import escape
from typing import Any, Dict, List, Optional

PALETTE = ["#1a73e8", "#34a853", "#fbbc05", "#ea4335", "#9aa0a6"]
RADIUS = 40
CENTER = 50


def _empty(title: str) -> str:
    return f'<div style="text-align: center; padding: 40px; color: #666;">No {escape(title)} data available</div>'


def _label(item: Dict[str, Any]) -> str:
    # first key is the report dimension
    for key in item:
        return str(item[key] or "Unknown")
    return "Unknown"


def _point(angle_deg: float) -> str:
    rad = math.radians(angle_deg - 90)
    return f"{CENTER + RADIUS * math.cos(rad):.3f} {CENTER + RADIUS * math.sin(rad):.3f}"


def generate_pie_chart(data: List[Dict[str, Any]], title: str, total: Optional[float] = None) -> str:
    """Inline SVG pie with a legend; sized for HTML email."""
    if not data:
        return _empty(title)
    total = total or sum(item.get("sessions") or 0 for item in data)
    if total <= 0:
        return _empty(title)

    paths = []
    legend = []
    cumulative = 0.0
    for i, item in enumerate(data):
        value = item.get("sessions") or 0
        percent = value / total * 100
        color = PALETTE[i % len(PALETTE)]
        start = cumulative * 3.6
        cumulative += percent
        end = cumulative * 3.6
        if percent >= 99.999:
            paths.append(f'<circle cx="{CENTER}" cy="{CENTER}" r="{RADIUS}" fill="{color}" stroke="white" stroke-width="1"/>')
        elif percent > 0:
            large = 1 if percent > 50 else 0
            d = f"M {CENTER} {CENTER} L {_point(start)} A {RADIUS} {RADIUS} 0 {large} 1 {_point(end)} Z"
            paths.append(f'<path d="{d}" fill="{color}" stroke="white" stroke-width="1"/>')
        legend.append(
            '<div style="display: flex; align-items: center; margin: 5px 0;">'
            f'<div style="width: 12px; height: 12px; background: {color}; margin-right: 8px; border-radius: 2px;"></div>'
            f'<span style="font-size: 12px;">{escape(_label(item))}: {value:,} ({percent:.1f}%)</span>'
            "</div>"
        )

    return (
        '<div style="display: flex; align-items: center; justify-content: center; gap: 30px;">'
        f'<svg width="120" height="120" viewBox="0 0 100 100">{"".join(paths)}</svg>'
        f'<div style="font-size: 14px;">{"".join(legend)}</div>'
        "</div>"
    )


def generate_bar_chart(data: List[Dict[str, Any]], title: str) -> str:
    if not data:
        return _empty(title)
    max_value = max(item.get("sessions") or 0 for item in data)
    if max_value <= 0:
        return _empty(title)

    bars = []
    for item in data:
        value = item.get("sessions") or 0
        width = value / max_value * 100
        bars.append(
            '<div style="display: flex; align-items: center; margin-bottom: 10px;">'
            f'<div style="width: 80px; font-size: 12px; text-align: right; padding-right: 10px;">{escape(_label(item))}:</div>'
            '<div style="flex: 1; background: #f0f0f0; height: 24px; border-radius: 4px;">'
            f'<div style="background: #1a73e8; height: 100%; width: {width:.1f}%; border-radius: 4px; '
            'text-align: right; padding-right: 5px;">'
            f'<span style="color: white; font-size: 11px; font-weight: bold;">{value:,}</span>'
            "</div></div></div>"
        )
    return f'<div style="max-width: 400px;">{"".join(bars)}</div>'
