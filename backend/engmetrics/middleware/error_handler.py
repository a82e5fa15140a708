import structlog
from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from engmetrics.exceptions import StoreUnavailableError

logger = structlog.get_logger()


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """Turn infrastructure failures into 503 and anything else unhandled into 500.

    Per-item errors never get here: batch routes report them inline.
    """

    async def dispatch(self, request: Request, call_next):
        try:
            response = await call_next(request)
            return response
        except StoreUnavailableError as exc:
            logger.warning("store_unavailable", path=request.url.path, error=exc.message)
            return JSONResponse(
                status_code=503,
                content={"detail": exc.message},
            )
        except Exception as exc:
            logger.error("unhandled_error", path=request.url.path, error=str(exc), exc_type=type(exc).__name__)
            return JSONResponse(
                status_code=500,
                content={"detail": "Internal server error"},
            )
