import logging

from fastapi import Request, status
from fastapi.responses import JSONResponse
from limits import parse
from limits.storage import MemoryStorage
from limits.strategies import FixedWindowRateLimiter
from starlette.middleware.base import BaseHTTPMiddleware

from core.config import settings

logger = logging.getLogger(__name__)

storage = MemoryStorage()
limiter = FixedWindowRateLimiter(storage)
api_limit = parse(settings.rate_limit)


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Fixed-window limit per client address on every path under ``prefix``."""

    def __init__(self, app, prefix: str = "/api/"):
        super().__init__(app)
        self.prefix = prefix

    async def dispatch(self, request: Request, call_next):
        if request.url.path.startswith(self.prefix):
            address = request.client.host if request.client else "unknown"
            if not limiter.hit(api_limit, "api", address):
                logger.warning("Rate limit exceeded for %s on %s", address, request.url.path)
                return JSONResponse(
                    status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                    content={
                        "success": False,
                        "message": "Too many requests from this IP, please try again later.",
                    },
                )
        return await call_next(request)
