from __future__ import annotations

import os
from functools import lru_cache
from typing import List

from dotenv import load_dotenv
from pydantic import BaseModel, Field

# Load .env as early as possible; real environment variables win
load_dotenv()


def _env(key: str, default: str = "") -> str:
    v = os.getenv(key)
    if v is None or not str(v).strip():
        return default
    return str(v).strip()


def _env_int(key: str, default: int) -> int:
    try:
        return int(_env(key, str(default)))
    except ValueError:
        return default


def _env_float(key: str, default: float) -> float:
    try:
        return float(_env(key, str(default)))
    except ValueError:
        return default


def _env_bool(key: str, default: bool) -> bool:
    raw = _env(key, "")
    if not raw:
        return default
    return raw.lower() in ("1", "true", "yes", "on")


def _env_list(key: str) -> List[str]:
    return [p.strip() for p in _env(key, "").split(",") if p.strip()]


class Settings(BaseModel):
    # LLM / embeddings
    gemini_api_key: str = ""
    gemini_model: str = "gemini-2.0-flash"
    gemini_embed_model: str = "text-embedding-004"
    gemini_base_url: str = "https://generativelanguage.googleapis.com/v1beta"

    # Vector database
    pinecone_api_key: str = ""
    pinecone_host: str = ""
    pinecone_namespace: str = "writing-rules"

    # Google Workspace
    rules_folder_id: str = ""
    google_access_token: str = ""
    google_refresh_token: str = ""
    google_client_id: str = ""
    google_client_secret: str = ""

    # Assistant behaviour
    top_k: int = 5
    rule_chunk_chars: int = 1000
    analysis_window_chars: int = 6000
    analysis_overlap_chars: int = 300
    analysis_pause_seconds: float = 1.0
    highlight_color: str = "#fff475"
    enable_comments: bool = True
    http_timeout: float = 30.0

    # Analytics report
    ga4_property_id: str = ""
    email_recipients: List[str] = Field(default_factory=list)
    company_name: str = "Your Company Name"
    website_url: str = ""
    report_days: int = 30
    include_ai_insights: bool = True
    contact_page_path: str = "/contact-us"
    exclude_countries: List[str] = Field(default_factory=list)
    exclude_cities: List[str] = Field(default_factory=list)
    schedule_every_days: int = 7
    schedule_hour: int = 9
    schedule_timezone: str = "UTC"

    # Mail
    smtp_host: str = "localhost"
    smtp_port: int = 587
    smtp_username: str = ""
    smtp_password: str = ""
    smtp_use_tls: bool = True
    email_from: str = "reports@localhost"

    allow_origins: List[str] = Field(default_factory=lambda: ["*"])

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            gemini_api_key=_env("GEMINI_API_KEY"),
            gemini_model=_env("GEMINI_MODEL", "gemini-2.0-flash"),
            gemini_embed_model=_env("GEMINI_EMBED_MODEL", "text-embedding-004"),
            gemini_base_url=_env("GEMINI_BASE_URL", "https://generativelanguage.googleapis.com/v1beta"),
            pinecone_api_key=_env("PINECONE_API_KEY"),
            pinecone_host=_env("PINECONE_HOST"),
            pinecone_namespace=_env("PINECONE_NAMESPACE", "writing-rules"),
            rules_folder_id=_env("RULES_FOLDER_ID"),
            google_access_token=_env("GOOGLE_ACCESS_TOKEN"),
            google_refresh_token=_env("GOOGLE_REFRESH_TOKEN"),
            google_client_id=_env("GOOGLE_CLIENT_ID"),
            google_client_secret=_env("GOOGLE_CLIENT_SECRET"),
            top_k=_env_int("RAG_TOP_K", 5),
            rule_chunk_chars=_env_int("RULE_CHUNK_CHARS", 1000),
            analysis_window_chars=_env_int("ANALYSIS_WINDOW_CHARS", 6000),
            analysis_overlap_chars=_env_int("ANALYSIS_OVERLAP_CHARS", 300),
            analysis_pause_seconds=_env_float("ANALYSIS_PAUSE_SECONDS", 1.0),
            highlight_color=_env("HIGHLIGHT_COLOR", "#fff475"),
            enable_comments=_env_bool("ENABLE_COMMENTS", True),
            http_timeout=_env_float("HTTP_TIMEOUT", 30.0),
            ga4_property_id=_env("GA4_PROPERTY_ID"),
            email_recipients=_env_list("EMAIL_RECIPIENTS"),
            company_name=_env("COMPANY_NAME", "Your Company Name"),
            website_url=_env("WEBSITE_URL"),
            report_days=_env_int("REPORT_DAYS", 30),
            include_ai_insights=_env_bool("INCLUDE_AI_INSIGHTS", True),
            contact_page_path=_env("CONTACT_PAGE_PATH", "/contact-us"),
            exclude_countries=_env_list("EXCLUDE_COUNTRIES"),
            exclude_cities=_env_list("EXCLUDE_CITIES"),
            schedule_every_days=_env_int("SCHEDULE_EVERY_DAYS", 7),
            schedule_hour=_env_int("SCHEDULE_HOUR", 9),
            schedule_timezone=_env("SCHEDULE_TIMEZONE", "UTC"),
            smtp_host=_env("SMTP_HOST", "localhost"),
            smtp_port=_env_int("SMTP_PORT", 587),
            smtp_username=_env("SMTP_USERNAME"),
            smtp_password=_env("SMTP_PASSWORD"),
            smtp_use_tls=_env_bool("SMTP_USE_TLS", True),
            email_from=_env("EMAIL_FROM", "reports@localhost"),
            allow_origins=_env_list("ALLOW_ORIGINS") or ["*"],
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Process-wide settings, read once."""
    return Settings.from_env()
