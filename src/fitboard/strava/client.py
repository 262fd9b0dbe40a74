"""
Async Strava API client built on httpx.

Only the two read endpoints the sync needs are wrapped. Every failure is
translated into a typed SyncError so callers never inspect raw HTTP
responses:

  429                 → RateLimitedError (limit / usage / retry-after headers)
  401, 403, no token  → UnauthorizedError
  other 4xx/5xx       → UpstreamError
  timeout, transport  → UpstreamError

The client never retries or sleeps; backoff is the caller's decision.
"""
import logging
from typing import Any, Dict, List, Optional

import httpx

from fitboard.config import get_settings
from fitboard.strava.errors import RateLimitedError, UnauthorizedError, UpstreamError

logger = logging.getLogger(__name__)


class StravaClient:
    """
    Thin async wrapper over the Strava v3 REST API.

    Usage:
        async with StravaClient(access_token) as client:
            page = await client.list_activities(page=1, per_page=30)
    """

    def __init__(
        self,
        access_token: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            access_token: OAuth bearer token. Defaults to STRAVA_ACCESS_TOKEN.
            base_url: API root. Defaults to settings.strava_api_base.
            timeout: Per-request timeout in seconds.
            transport: Optional httpx transport (tests pass httpx.MockTransport).
        """
        settings = get_settings()
        self._access_token = access_token if access_token is not None else settings.strava_access_token
        self._base_url = base_url or settings.strava_api_base
        self._timeout = timeout if timeout is not None else settings.sync_request_timeout_seconds
        self._transport = transport
        self._http: Optional[httpx.AsyncClient] = None

    async def __aenter__(self) -> "StravaClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._http is not None:
            await self._http.aclose()
            self._http = None

    def set_access_token(self, token: str) -> None:
        self._access_token = token

    def _client(self) -> httpx.AsyncClient:
        if self._http is None:
            self._http = httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._timeout,
                transport=self._transport,
            )
        return self._http

    async def _get(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> Any:
        if not self._access_token:
            raise UnauthorizedError("Strava access token not set")

        try:
            response = await self._client().get(
                endpoint,
                params=params,
                headers={"Authorization": f"Bearer {self._access_token}"},
            )
        except httpx.TimeoutException as exc:
            raise UpstreamError(f"Strava request timed out: {endpoint}") from exc
        except httpx.HTTPError as exc:
            raise UpstreamError(f"Strava request failed: {exc}") from exc

        if response.status_code == 429:
            error = RateLimitedError(
                limit=response.headers.get("X-RateLimit-Limit"),
                usage=response.headers.get("X-RateLimit-Usage"),
                retry_after=_parse_retry_after(response.headers.get("Retry-After")),
                message=_error_message(response, "Rate Limit Exceeded"),
            )
            logger.warning(
                "Strava rate limit hit on %s (usage=%s limit=%s)",
                endpoint, error.usage, error.limit,
            )
            raise error

        if response.status_code in (401, 403):
            raise UnauthorizedError(_error_message(response, "Authorization Error"))

        if response.status_code >= 400:
            raise UpstreamError(
                _error_message(response, f"HTTP error! status: {response.status_code}"),
                status_code=response.status_code,
            )

        return response.json()

    async def list_activities(self, page: int = 1, per_page: int = 30) -> List[Dict[str, Any]]:
        """Fetch one page of the athlete's activities, newest first.

        Args:
            page: 1-based page number.
            per_page: Page size (Strava caps this at 200).

        Returns:
            List of SummaryActivity dicts; empty once past the last page.
        """
        return await self._get(
            "/athlete/activities", params={"page": page, "per_page": per_page}
        )

    async def get_activity(self, activity_id: int) -> Dict[str, Any]:
        """Fetch a DetailedActivity (includes splits_metric)."""
        return await self._get(
            f"/activities/{activity_id}", params={"include_all_efforts": "true"}
        )


def _parse_retry_after(value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


def _error_message(response: httpx.Response, fallback: str) -> str:
    """Pull Strava's {"message": ...} out of an error body, if there is one."""
    try:
        body = response.json()
    except ValueError:
        return fallback
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return fallback
