from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional

import httpx

from docpilot.config import Settings, get_settings
from docpilot.models.types import ReportRunResponse
from docpilot.services.analytics_report import ReportFetcher
from docpilot.services.insights import generate_insights
from docpilot.services.metrics import begin_run, end_run
from docpilot.services.providers.ga4 import AnalyticsClient
from docpilot.services.providers.gemini import GeminiClient
from docpilot.services.providers.google_auth import OAUTH_SCOPES, TokenProvider
from docpilot.services.providers.http import json_or_empty
from docpilot.services.providers.mailer import Mailer
from docpilot.services.report_email import (
    error_subject,
    render_error_text,
    render_report_html,
    render_report_text,
    report_subject,
)

logger = logging.getLogger(__name__)

CONNECTION_TEST_PAYLOAD = {
    "dateRanges": [{"startDate": "7daysAgo", "endDate": "yesterday"}],
    "metrics": [{"name": "sessions"}],
    "limit": 1,
}


class ReportService:
    """Fetches the GA4 report, renders it and mails it to the configured recipients."""

    def __init__(
        self,
        settings: Settings,
        *,
        analytics: AnalyticsClient,
        gemini: GeminiClient,
        mailer: Mailer,
    ):
        self.settings = settings
        self.analytics = analytics
        self.gemini = gemini
        self.mailer = mailer
        self.fetcher = ReportFetcher(settings, analytics)

    @classmethod
    def from_settings(cls, settings: Settings) -> "ReportService":
        http = httpx.Client(timeout=settings.http_timeout)
        tokens = TokenProvider(settings, http)
        return cls(
            settings,
            analytics=AnalyticsClient(settings, tokens, http),
            gemini=GeminiClient(settings),
            mailer=Mailer(settings),
        )

    def run_report(self, days: Optional[int] = None) -> ReportRunResponse:
        days = days or self.settings.report_days
        recipients = list(self.settings.email_recipients)
        logger.info("report: starting %d-day report with period comparison", days)
        begin_run()
        try:
            data = self.fetcher.fetch(days)
            insights = None
            if self.settings.include_ai_insights and self.gemini.enabled:
                insights = generate_insights(self.settings, self.gemini, data)
            self.mailer.send(
                recipients,
                report_subject(self.settings, days),
                text_body=render_report_text(self.settings, data, insights),
                html_body=render_report_html(self.settings, data, insights),
                sender_name=f"{self.settings.company_name} Analytics Report",
            )
        except Exception as e:
            logger.exception("report: %d-day report failed", days)
            self.send_error_notification(e)
            return ReportRunResponse(success=False, message=f"Report failed: {e}", days=days, recipients=recipients)
        finally:
            logger.info("report: calls=%s", end_run())
        logger.info("report: %d-day report sent to %s", days, ", ".join(recipients))
        return ReportRunResponse(success=True, message=f"{days}-day report sent.", days=days, recipients=recipients)

    def send_error_notification(self, error: BaseException) -> bool:
        if not self.settings.email_recipients:
            logger.warning("report: no recipients for the error notification")
            return False
        try:
            self.mailer.send(
                self.settings.email_recipients,
                error_subject(self.settings),
                text_body=render_error_text(self.settings, error),
            )
        except Exception as e:
            logger.error("report: error notification could not be sent: %s", e)
            return False
        return True

    def run_weekly_report(self) -> ReportRunResponse:
        return self.run_report(7)

    def run_monthly_report(self) -> ReportRunResponse:
        return self.run_report(30)

    def run_90_day_report(self) -> ReportRunResponse:
        return self.run_report(90)

    def run_scheduled_report(self) -> ReportRunResponse:
        return self.run_report(self.settings.report_days)

    def test_connection(self) -> Dict[str, Any]:
        """Run a one-row request and report whether GA4 answers, with a hint on common failures."""
        logger.info("report: testing GA4 API authentication")
        try:
            resp = self.analytics.run_report_raw(CONNECTION_TEST_PAYLOAD)
        except Exception as e:
            logger.error("report: GA4 API test failed: %s", e)
            return {"ok": False, "status_code": None, "error": str(e)}

        if resp.status_code == 200:
            rows = json_or_empty(resp).get("rows") or [{}]
            sessions = ((rows[0].get("metricValues") or [{}])[0]).get("value", "No data")
            logger.info("report: GA4 API access successful, %s sessions in the last 7 days", sessions)
            return {"ok": True, "status_code": 200, "sessions": sessions}

        hint = None
        if resp.status_code == 403:
            hint = "Grant the OAuth scopes listed by `python -m docpilot.worker oauth` and refresh the token"
        elif resp.status_code == 400:
            hint = f"Verify GA4 Property ID: {self.settings.ga4_property_id}"
        logger.warning("report: GA4 API error %s: %s", resp.status_code, resp.text[:500])
        if hint:
            logger.warning("report: %s", hint)
        return {"ok": False, "status_code": resp.status_code, "error": resp.text[:500], "hint": hint}

    def run_system_check(self) -> Dict[str, Any]:
        s = self.settings
        config = {
            "property_id": s.ga4_property_id,
            "recipients": s.email_recipients,
            "default_period_days": s.report_days,
            "ai_insights": s.include_ai_insights,
            "company": s.company_name,
            "website": s.website_url,
        }
        logger.info("report: system check, configuration=%s", config)
        return {"configuration": config, "connection": self.test_connection()}


def oauth_setup_text() -> str:
    return "\n".join([
        "OAUTH SETUP FOR GA4 REPORTING",
        "=============================",
        "1. Create an OAuth client (Desktop app) in the Google Cloud console.",
        "2. Enable the Google Analytics Data, Docs and Drive APIs for the project.",
        "3. Authorize these scopes and keep the refresh token:",
        json.dumps({"oauthScopes": OAUTH_SCOPES}, indent=2),
        "4. Set GOOGLE_CLIENT_ID, GOOGLE_CLIENT_SECRET and GOOGLE_REFRESH_TOKEN",
        "   (or GOOGLE_ACCESS_TOKEN for a short-lived token) in the environment.",
    ])


def print_oauth_setup() -> str:
    text = oauth_setup_text()
    for line in text.splitlines():
        logger.info(line)
    return text


def _service() -> ReportService:
    return ReportService.from_settings(get_settings())


def run_report(days: Optional[int] = None) -> ReportRunResponse:
    return _service().run_report(days)


def run_weekly_report() -> ReportRunResponse:
    return _service().run_weekly_report()


def run_monthly_report() -> ReportRunResponse:
    return _service().run_monthly_report()


def run_90_day_report() -> ReportRunResponse:
    return _service().run_90_day_report()


def run_scheduled_report() -> ReportRunResponse:
    return _service().run_scheduled_report()


def test_connection() -> Dict[str, Any]:
    return _service().test_connection()


def run_system_check() -> Dict[str, Any]:
    return _service().run_system_check()
