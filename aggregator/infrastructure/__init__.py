"""
Infrastructure Layer
Token Bucket Rate Limiter
"""

from .rate_limiter import TokenBucketRateLimiter

__all__ = [
    "TokenBucketRateLimiter",
]
