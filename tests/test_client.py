import asyncio
import json

import httpx
import pytest

from marketing_pulse.dashboard.client import BackendClient, SourceUnavailable
from marketing_pulse.schemas import AdsPayload, GA4Payload


def run(coro):
    return asyncio.run(coro)


async def invoke(handler, endpoint, date_range, schema):
    async with BackendClient(base_url="http://backend", transport=httpx.MockTransport(handler)) as client:
        return await client.invoke(endpoint, date_range, schema)


def test_posts_date_range_and_validates(january):
    seen = {}

    def handler(request):
        seen["path"] = request.url.path
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"data": {"overview": {"totalUsers": 42, "sessions": 50}}})

    payload = run(invoke(handler, "ga4", january, GA4Payload))

    assert seen == {
        "path": "/api/sources/ga4",
        "body": {"startDate": "2024-01-01", "endDate": "2024-01-31"},
    }
    assert isinstance(payload, GA4Payload)
    assert payload.overview.total_users == 42
    assert payload.traffic_by_source == []


def test_ad_spend_alias(january):
    def handler(request):
        return httpx.Response(200, json={"data": {"overview": {"adSpend": 12.5, "clicks": 5}}})

    payload = run(invoke(handler, "meta-ads", january, AdsPayload))
    assert payload.overview.spend == 12.5
    assert payload.overview.cpc == 2.5


@pytest.mark.parametrize("response, reason", [
    (httpx.Response(503, json={"detail": "ga4: Missing credentials: GA4_PROPERTY_ID"}), "HTTP 503: ga4: Missing credentials"),
    (httpx.Response(500, text="boom"), "HTTP 500: boom"),
    (httpx.Response(200, text="not json"), "response is not JSON"),
    (httpx.Response(200, json={"error": "nope"}), "response has no data field"),
    (httpx.Response(200, json={"data": {"overview": {"totalUsers": "many"}}}), "invalid payload"),
])
def test_failures_raise_source_unavailable(january, response, reason):
    with pytest.raises(SourceUnavailable) as excinfo:
        run(invoke(lambda request: response, "ga4", january, GA4Payload))

    assert excinfo.value.endpoint == "ga4"
    assert excinfo.value.reason.startswith(reason)


def test_transport_error(january):
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(SourceUnavailable, match="request failed"):
        run(invoke(handler, "ga4", january, GA4Payload))


def test_base_url_from_environment(monkeypatch):
    monkeypatch.setenv("MARKETING_API_URL", "http://api.example.com/")
    client = BackendClient()
    assert client.base_url == "http://api.example.com"
    run(client.aclose())


class TestInsights:

    def test_returns_body(self):
        def handler(request):
            assert request.url.path == "/api/insights/overview"
            return httpx.Response(200, json={"insights": "Spend more wisely.", "model": "m"})

        async def go():
            async with BackendClient(base_url="http://backend", transport=httpx.MockTransport(handler)) as client:
                return await client.insights("overview", {"country": "all"})

        assert run(go())["insights"] == "Spend more wisely."

    def test_error_detail(self):
        def handler(request):
            return httpx.Response(503, json={"detail": "ANTHROPIC_API_KEY not configured"})

        async def go():
            async with BackendClient(base_url="http://backend", transport=httpx.MockTransport(handler)) as client:
                return await client.insights("overview", {})

        with pytest.raises(SourceUnavailable) as excinfo:
            run(go())
        assert excinfo.value.reason == "ANTHROPIC_API_KEY not configured"

    @pytest.mark.parametrize("response, reason", [
        (httpx.Response(200, text="<html>gateway</html>"), "response is not JSON"),
        (httpx.Response(200, json=["not", "an", "object"]), "response is not an object"),
    ])
    def test_unusable_body(self, response, reason):
        async def go():
            transport = httpx.MockTransport(lambda request: response)
            async with BackendClient(base_url="http://backend", transport=transport) as client:
                return await client.insights("overview", {})

        with pytest.raises(SourceUnavailable) as excinfo:
            run(go())
        assert excinfo.value.reason == reason
