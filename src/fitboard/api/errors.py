"""Translate sync failures into HTTP errors the dashboard can act on."""
from fastapi import HTTPException

from fitboard.strava.errors import RateLimitedError, SyncError, UnauthorizedError


def http_exception_for(exc: SyncError) -> HTTPException:
    """
    Map a SyncError onto an HTTPException.

    429 → "show cached + warn", 401 → "prompt re-login", 502 → retryable.
    """
    if isinstance(exc, RateLimitedError):
        headers = {"Retry-After": str(exc.retry_after)} if exc.retry_after is not None else None
        return HTTPException(
            status_code=429,
            detail={
                "error": "Rate Limit Exceeded",
                "message": "You have exceeded the Strava API rate limit. Please try again later.",
                "rate_limit_limit": exc.limit,
                "rate_limit_usage": exc.usage,
                "retry_after": exc.retry_after,
                "is_rate_limit": True,
            },
            headers=headers,
        )
    if isinstance(exc, UnauthorizedError):
        return HTTPException(
            status_code=401,
            detail={"error": "Unauthorized", "message": str(exc), "reauthenticate": True},
        )
    return HTTPException(
        status_code=502,
        detail={"error": "Upstream Error", "message": str(exc) or "Failed to sync"},
    )
