"""Rate limiting for calls to the verification service.

Uses pyrate-limiter with in-memory buckets.
"""

from idcheck.core.rate_limit.limiter import RateLimiter

__all__ = ["RateLimiter"]
