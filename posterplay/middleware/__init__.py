from .rate_limit import RateLimitHeadersMiddleware, rate_limited
from .request_id import RequestIDMiddleware

__all__ = ["RateLimitHeadersMiddleware", "RequestIDMiddleware", "rate_limited"]
