import httpx
import pytest

from docpilot.config import Settings
from docpilot.errors import ConfigurationError, UpstreamError
from docpilot.services.providers.ga4 import AnalyticsClient, parse_report
from docpilot.services.providers.google_auth import TokenProvider

RESPONSE = {
    "dimensionHeaders": [{"name": "sessionDefaultChannelGrouping"}],
    "metricHeaders": [
        {"name": "sessions"},
        {"name": "bounceRate"},
        {"name": "averageSessionDuration"},
        {"name": "eventsPerSession"},
        {"name": "newUsers"},
    ],
    "rows": [
        {
            "dimensionValues": [{"value": "Direct"}],
            "metricValues": [{"value": "120"}, {"value": "0.4512"}, {"value": "63.5"}, {"value": "2.5"}, {"value": "n/a"}],
        }
    ],
}


def test_parse_report_types():
    rows = parse_report(RESPONSE)
    assert rows == [{
        "sessionDefaultChannelGrouping": "Direct",
        "sessions": 120,
        "bounceRate": pytest.approx(0.4512),
        "averageSessionDuration": pytest.approx(63.5),
        "eventsPerSession": pytest.approx(2.5),
        "newUsers": 0,
    }]
    assert isinstance(rows[0]["sessions"], int)
    assert isinstance(rows[0]["eventsPerSession"], float)


def test_parse_report_no_rows():
    assert parse_report({}) == []
    assert parse_report({"rows": []}) == []


def _client(handler, **overrides):
    settings = Settings(ga4_property_id="123456", google_access_token="tok", **overrides)
    http = httpx.Client(transport=httpx.MockTransport(handler))
    return AnalyticsClient(settings, TokenProvider(settings, http), http)


def test_run_report_sends_bearer_and_parses():
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["auth"] = request.headers.get("Authorization")
        return httpx.Response(200, json=RESPONSE)

    rows = _client(handler).run_report({"metrics": [{"name": "sessions"}]})
    assert seen["url"] == "https://analyticsdata.googleapis.com/v1beta/properties/123456:runReport"
    assert seen["auth"] == "Bearer tok"
    assert rows[0]["sessions"] == 120


def test_optional_report_returns_empty_on_error():
    client = _client(lambda request: httpx.Response(400, json={"error": {"message": "demographics unavailable"}}))
    assert client.run_report({"dimensions": [{"name": "userGender"}]}, optional=True) == []
    with pytest.raises(UpstreamError) as exc:
        client.run_report({"dimensions": [{"name": "country"}]})
    assert exc.value.status_code == 400


def test_missing_property_id():
    settings = Settings(google_access_token="tok")
    client = AnalyticsClient(settings, TokenProvider(settings))
    with pytest.raises(ConfigurationError):
        client.run_report({})
