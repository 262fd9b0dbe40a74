"""Tests for the async Strava client.

httpx.MockTransport stands in for the network; no real requests are made.
"""
import httpx
import pytest

from fitboard.strava.client import StravaClient
from fitboard.strava.errors import (
    RateLimitedError,
    SyncError,
    UnauthorizedError,
    UpstreamError,
)

BASE = "https://strava.test/api/v3"

FAKE_ACTIVITIES = [
    {"id": 1, "name": "Morning Run", "type": "Run"},
    {"id": 2, "name": "Lunch Ride", "type": "Ride"},
]


def make_client(handler, token: str = "tok") -> StravaClient:
    return StravaClient(
        access_token=token,
        base_url=BASE,
        timeout=5.0,
        transport=httpx.MockTransport(handler),
    )


class TestListActivities:
    async def test_returns_page(self):
        client = make_client(lambda request: httpx.Response(200, json=FAKE_ACTIVITIES))
        assert await client.list_activities(page=1, per_page=30) == FAKE_ACTIVITIES
        await client.aclose()

    async def test_sends_pagination_params_and_bearer(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["params"] = dict(request.url.params)
            seen["auth"] = request.headers["Authorization"]
            return httpx.Response(200, json=[])

        async with make_client(handler) as client:
            await client.list_activities(page=3, per_page=50)

        assert seen["path"] == "/api/v3/athlete/activities"
        assert seen["params"] == {"page": "3", "per_page": "50"}
        assert seen["auth"] == "Bearer tok"

    async def test_empty_page(self):
        async with make_client(lambda request: httpx.Response(200, json=[])) as client:
            assert await client.list_activities(page=9) == []


class TestGetActivity:
    async def test_requests_detail_endpoint(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            return httpx.Response(200, json={"id": 42})

        async with make_client(handler) as client:
            result = await client.get_activity(42)

        assert result == {"id": 42}
        assert seen["path"] == "/api/v3/activities/42"


class TestErrorMapping:
    async def test_429_raises_rate_limited_with_headers(self):
        def handler(request):
            return httpx.Response(
                429,
                headers={
                    "X-RateLimit-Limit": "100,1000",
                    "X-RateLimit-Usage": "101,340",
                    "Retry-After": "900",
                },
                json={"message": "Rate Limit Exceeded"},
            )

        async with make_client(handler) as client:
            with pytest.raises(RateLimitedError) as exc_info:
                await client.list_activities()

        err = exc_info.value
        assert err.limit == "100,1000"
        assert err.usage == "101,340"
        assert err.retry_after == 900

    async def test_429_without_retry_after(self):
        async with make_client(lambda r: httpx.Response(429, text="slow down")) as client:
            with pytest.raises(RateLimitedError) as exc_info:
                await client.list_activities()
        assert exc_info.value.retry_after is None

    @pytest.mark.parametrize("status", [401, 403])
    async def test_auth_failures_raise_unauthorized(self, status):
        async with make_client(lambda r: httpx.Response(status, json={"message": "Authorization Error"})) as client:
            with pytest.raises(UnauthorizedError, match="Authorization Error"):
                await client.list_activities()

    async def test_missing_token_raises_unauthorized_without_request(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200, json=[])

        async with make_client(handler, token="") as client:
            with pytest.raises(UnauthorizedError):
                await client.list_activities()
        assert calls == []

    @pytest.mark.parametrize("status", [404, 500, 503])
    async def test_other_http_errors_raise_upstream(self, status):
        async with make_client(lambda r: httpx.Response(status, json={"message": "boom"})) as client:
            with pytest.raises(UpstreamError) as exc_info:
                await client.list_activities()
        assert exc_info.value.status_code == status
        assert "boom" in str(exc_info.value)

    async def test_timeout_raises_upstream(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        async with make_client(handler) as client:
            with pytest.raises(UpstreamError, match="timed out"):
                await client.list_activities()

    async def test_connect_error_raises_upstream(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        async with make_client(handler) as client:
            with pytest.raises(UpstreamError):
                await client.list_activities()

    async def test_all_typed_errors_are_sync_errors(self):
        for status in (429, 401, 500):
            async with make_client(lambda r, s=status: httpx.Response(s)) as client:
                with pytest.raises(SyncError):
                    await client.list_activities()

    def test_rate_limited_is_distinguishable_from_unauthorized(self):
        assert not issubclass(RateLimitedError, UnauthorizedError)
        assert not issubclass(UnauthorizedError, RateLimitedError)
