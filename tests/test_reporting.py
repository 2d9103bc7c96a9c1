from datetime import date

import httpx

from docpilot.config import Settings
from docpilot.models.types import ReportData
from docpilot.services.analytics_report import CHANNEL_DIM, compute_periods
from docpilot.services.insights import build_insights_prompt, fallback_insights, generate_insights
from docpilot.services.providers.ga4 import AnalyticsClient
from docpilot.services.providers.google_auth import TokenProvider
from docpilot.services.report_email import render_error_text, render_report_html
from docpilot.services.reporting import ReportService, oauth_setup_text


def _settings(**kw):
    base = dict(company_name="Acme", email_recipients=["a@example.com", "b@example.com"], ga4_property_id="123")
    base.update(kw)
    return Settings(**base)


def _channel(name, sessions):
    return {
        CHANNEL_DIM: name, "sessions": sessions, "newUsers": sessions // 2, "totalUsers": sessions - 5,
        "averageSessionDuration": 95.0, "userEngagementDuration": sessions * 40.0,
        "eventsPerSession": 4.25, "bounceRate": 0.42,
    }


def _data(days=7):
    current, previous = compute_periods(days, today=date(2024, 6, 10))
    return ReportData(
        current_channels=[_channel("Organic Search", 800), _channel("Direct", 200)],
        previous_channels=[_channel("Organic Search", 400)],
        organic_search_pages=[{"landingPage": "/pricing", "sessions": 300, "newUsers": 100,
                               "averageSessionDuration": 61.0, "bounceRate": 0.3}],
        top_regions=[{"country": "United States", "sessions": 600}, {"country": "India", "sessions": 200}],
        age=[{"userAgeBracket": "25-34", "sessions": 90}],
        devices=[{"deviceCategory": "desktop", "sessions": 700}],
        contact_page=[{"pagePath": "/contact-us", "sessions": 12, "screenPageViews": 20, "totalUsers": 9}],
        current_period=current,
        previous_period=previous,
        days=days,
        filters="Excluding cities: Ashburn",
    )


class FakeFetcher:
    def __init__(self, data=None, error=None):
        self.data, self.error = data, error

    def fetch(self, days, today=None):
        if self.error:
            raise self.error
        return self.data


class FakeGemini:
    def __init__(self, enabled=True, reply="Traffic grew strongly.", error=None):
        self.enabled, self.reply, self.error = enabled, reply, error
        self.kwargs = None

    def generate(self, contents, **kwargs):
        self.kwargs = kwargs
        if self.error:
            raise self.error
        return self.reply


class FakeMailer:
    def __init__(self):
        self.sent = []

    def send(self, recipients, subject, text_body="", html_body=None, sender_name=None):
        self.sent.append({"to": recipients, "subject": subject, "text": text_body, "html": html_body,
                          "sender": sender_name})
        return len(recipients)


def _service(settings, fetcher, gemini=None, analytics=None):
    mailer = FakeMailer()
    svc = ReportService(settings, analytics=analytics, gemini=gemini or FakeGemini(), mailer=mailer)
    svc.fetcher = fetcher
    return svc, mailer


def test_run_report_sends_html_email():
    svc, mailer = _service(_settings(), FakeFetcher(_data()))
    resp = svc.run_report(7)
    assert resp.success is True
    assert resp.recipients == ["a@example.com", "b@example.com"]
    (mail,) = mailer.sent
    assert mail["subject"] == "7-Day Analytics Report - Acme"
    assert mail["sender"] == "Acme Analytics Report"
    assert "Traffic grew strongly." in mail["html"]
    assert "Organic Search" in mail["html"]
    assert "1,000" in mail["text"]


def test_run_report_failure_sends_error_notification():
    svc, mailer = _service(_settings(), FakeFetcher(error=RuntimeError("quota exceeded")))
    resp = svc.run_report(30)
    assert resp.success is False
    assert "quota exceeded" in resp.message
    (mail,) = mailer.sent
    assert mail["subject"] == "GA4 Report Error - Acme"
    assert "quota exceeded" in mail["text"]
    assert mail["html"] is None


def test_convenience_periods():
    seen = []

    class Recording(FakeFetcher):
        def fetch(self, days, today=None):
            seen.append(days)
            return _data(days)

    svc, _ = _service(_settings(report_days=14), Recording())
    svc.run_weekly_report()
    svc.run_monthly_report()
    svc.run_90_day_report()
    svc.run_scheduled_report()
    svc.run_report()
    assert seen == [7, 30, 90, 14, 14]


def test_render_report_html_sections():
    html = render_report_html(_settings(), _data(), "Line one\nLine <two>")
    assert "7-Day Analytics Report" in html
    assert "Current: 2024-06-03 to 2024-06-09" in html
    assert "vs Previous: 2024-05-27 to 2024-06-02" in html
    assert "Excluding cities: Ashburn" in html
    assert "Line one<br>Line &lt;two&gt;" in html
    assert "1m 35s" in html
    assert "↗️ 100.0%" in html  # organic search doubled
    assert "/pricing" in html
    assert "United States: 600 (75.0%)" in html
    assert "No gender data available" in html
    assert "Total Sessions" in html and "1,000" in html


def test_render_report_html_without_insights():
    html = render_report_html(_settings(include_ai_insights=False), _data(), "hidden insight")
    assert "hidden insight" not in html
    assert "AI-Powered Insights" not in html


def test_error_text_mentions_property():
    text = render_error_text(_settings(), ValueError("bad"))
    assert "ValueError: bad" in text
    assert "Invalid Property ID: 123" in text


def test_insights_generation_and_fallback():
    data = _data()
    gemini = FakeGemini()
    assert generate_insights(_settings(), gemini, data) == "Traffic grew strongly."
    assert gemini.kwargs == {"temperature": 0.3, "max_output_tokens": 200}

    fallback = fallback_insights(_settings(), data)
    assert "Acme achieved 1,000 total sessions over the 7-day period." in fallback
    assert "Top performing channel: Organic Search" in fallback
    assert generate_insights(_settings(), FakeGemini(enabled=False), data) == fallback
    assert generate_insights(_settings(), FakeGemini(error=RuntimeError("down")), data) == fallback

    prompt = build_insights_prompt(data)
    assert "TOTAL TRAFFIC: 1,000 sessions" in prompt
    assert "Organic Search: 800 sessions (80.0%)" in prompt
    assert "/pricing: 300 sessions" in prompt


def _analytics(status, body):
    settings = _settings(google_access_token="tok")
    http = httpx.Client(transport=httpx.MockTransport(lambda request: httpx.Response(status, json=body)))
    return AnalyticsClient(settings, TokenProvider(settings, http), http)


def test_connection_check_hints():
    ok = _analytics(200, {"rows": [{"metricValues": [{"value": "321"}]}]})
    svc, _ = _service(_settings(), FakeFetcher(), analytics=ok)
    assert svc.test_connection() == {"ok": True, "status_code": 200, "sessions": "321"}

    denied = _analytics(403, {"error": {"message": "insufficient scopes"}})
    svc, _ = _service(_settings(), FakeFetcher(), analytics=denied)
    result = svc.test_connection()
    assert result["ok"] is False
    assert result["status_code"] == 403
    assert "OAuth" in result["hint"]

    bad = _analytics(400, {"error": {"message": "bad property"}})
    svc, _ = _service(_settings(), FakeFetcher(), analytics=bad)
    check = svc.run_system_check()
    assert check["configuration"]["property_id"] == "123"
    assert check["connection"]["hint"] == "Verify GA4 Property ID: 123"


def test_oauth_setup_lists_scopes():
    text = oauth_setup_text()
    assert "https://www.googleapis.com/auth/analytics.readonly" in text
    assert "GOOGLE_REFRESH_TOKEN" in text
