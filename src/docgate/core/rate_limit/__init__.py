"""Rate limiting for registry submissions.

In-process token bucket; no cross-process or persistent state.
"""

from docgate.core.rate_limit.limiter import TokenBucket
from docgate.core.rate_limit.noop import NoOpLimiter, create_limiter

__all__ = ["NoOpLimiter", "TokenBucket", "create_limiter"]
