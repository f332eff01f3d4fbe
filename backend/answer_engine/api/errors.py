import logging

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse

from answer_engine.core.errors import GenerationError, RateLimitExceeded
from answer_engine.core.middleware import elapsed_ms

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "Internal server error"


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "Invalid request", "details": jsonable_encoder(exc.errors())},
    )


async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    retry_after = max(1, round(exc.retry_after))
    return JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content={"error": "Rate limit exceeded", "details": {"retry_after": retry_after}},
        headers={"Retry-After": str(retry_after)},
    )


async def internal_error_handler(request: Request, exc: Exception) -> PlainTextResponse:
    """Generic 500; the cause is logged, never returned."""
    duration = elapsed_ms(request)
    logger.error(f"Request to {request.url.path} failed after {duration} ms: {exc!r}", exc_info=exc)
    return PlainTextResponse(
        INTERNAL_ERROR_MESSAGE,
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        headers={"X-Error-Duration": str(duration)},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RequestValidationError, validation_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RateLimitExceeded, rate_limit_handler)  # type: ignore[arg-type]
    app.add_exception_handler(GenerationError, internal_error_handler)
    app.add_exception_handler(Exception, internal_error_handler)
