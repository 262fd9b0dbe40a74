"""
Typed failures raised by the Strava client and the sync orchestrator.

Each kind carries only the fields it needs, so callers branch on the
exception type rather than probing attributes:

  RateLimitedError   quota exceeded; serve cached data or retry after
  UpstreamError      network / timeout / 5xx; retryable
  UnauthorizedError  token expired or revoked; needs re-authentication

MalformedActivityError is not a SyncError: it marks one bad record, which
is skipped without aborting the batch.
"""
from typing import Optional


class SyncError(RuntimeError):
    """Base class for failures that abort a sync invocation."""


class RateLimitedError(SyncError):
    """Raised when Strava answers 429 Too Many Requests."""

    def __init__(
        self,
        limit: Optional[str] = None,
        usage: Optional[str] = None,
        retry_after: Optional[int] = None,
        message: str = "Rate Limit Exceeded",
    ):
        super().__init__(message)
        # Strava sends "<15-minute>,<daily>" pairs, e.g. limit "100,1000", usage "101,340"
        self.limit = limit
        self.usage = usage
        self.retry_after = retry_after


class UpstreamError(SyncError):
    """Raised for transport errors, timeouts and non-auth HTTP failures."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class UnauthorizedError(SyncError):
    """Raised when the access token is missing, expired or lacks scope."""


class MalformedActivityError(ValueError):
    """Raised by the normalizer for an activity record that fails invariants."""
