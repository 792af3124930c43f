"""Outbound request rate limiting."""

from market_digest.ratelimit.rate_limiter import BucketStatus, RateLimiter


__all__ = ["BucketStatus", "RateLimiter"]
