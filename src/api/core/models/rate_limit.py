"""Rate limiting types and models."""

from pydantic import BaseModel


class RateLimitResult(BaseModel):
    """Outcome of one hit against a rate limit window.

    ``retry_after`` is the number of seconds until a rejected caller may try
    again, and 0 when the hit was allowed.
    """

    is_allowed: bool
    current_count: int
    retry_after: int
    key: str
    limit: int
    window_seconds: int
