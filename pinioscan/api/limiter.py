"""Per-IP rate limiter shared by the scan endpoints (off unless RATE_LIMIT_ENABLED)."""

from fastapi import Request
from fastapi.responses import JSONResponse
from loguru import logger
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from config.settings import settings

limiter = Limiter(key_func=get_remote_address, enabled=settings.rate_limit_enabled)


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    logger.warning(f"[API] Rate limit hit on {request.url.path} from {get_remote_address(request)}")
    return JSONResponse({"error": "Rate limit exceeded. Try again later."}, status_code=429)
