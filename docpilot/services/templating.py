from __future__ import annotations

from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, TemplateNotFound, select_autoescape
from markupsafe import Markup, escape

TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"


def format_duration(seconds: float) -> str:
    seconds = seconds or 0
    return f"{int(seconds // 60)}m {int(seconds % 60)}s"


def format_change(change: float) -> Markup:
    change = change or 0
    if change > 0:
        arrow, color = "↗️", "#137333"
    elif change < 0:
        arrow, color = "↘️", "#ea4335"
    else:
        arrow, color = "→", "#5f6368"
    return Markup(f'<span style="color: {color}; font-weight: 600;">{arrow} {abs(change):.1f}%</span>')


def thousands(value: Any) -> str:
    try:
        return f"{int(value or 0):,}"
    except (TypeError, ValueError):
        return str(value)


def nl2br(text: str) -> Markup:
    return Markup("<br>").join(escape(line) for line in (text or "").splitlines())


env = Environment(
    loader=FileSystemLoader(str(TEMPLATE_DIR)),
    autoescape=select_autoescape(["html"]),
    trim_blocks=True,
    lstrip_blocks=True,
)
env.filters.update(
    duration=format_duration,
    change=format_change,
    thousands=thousands,
    nl2br=nl2br,
)


def render_template(name: str, **kwargs: Any) -> str:
    try:
        return env.get_template(name).render(**kwargs)
    except TemplateNotFound:
        raise FileNotFoundError(f"template '{name}' not found in {TEMPLATE_DIR}")
