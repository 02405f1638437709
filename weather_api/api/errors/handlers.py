from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from opentelemetry import trace
from pydantic import ValidationError
from starlette.exceptions import HTTPException

from weather_api.core.logging import get_logger
from weather_api.schemas.common import ErrorResponse


def _current_trace_id() -> str | None:
    ctx = trace.get_current_span().get_span_context()
    return trace.format_trace_id(ctx.trace_id) if ctx.is_valid else None


def _error_response(status_code: int, code: str, message: str, details=None) -> JSONResponse:  # noqa: ANN001
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(
            code=code,
            message=message,
            details=details,
            trace_id=_current_trace_id(),
        ).model_dump(mode="json"),
    )


def register_exception_handlers(app: FastAPI) -> None:
    logger = get_logger(__name__)

    @app.exception_handler(HTTPException)
    async def http_exception_handler(_: Request, exc: HTTPException) -> JSONResponse:
        return _error_response(exc.status_code, "http_error", str(exc.detail), None)

    @app.exception_handler(ValidationError)
    async def validation_exception_handler(_: Request, exc: ValidationError) -> JSONResponse:
        return _error_response(422, "validation_error", "Validation failed", jsonable_encoder(exc.errors()))

    @app.exception_handler(RequestValidationError)
    async def request_validation_exception_handler(_: Request, exc: RequestValidationError) -> JSONResponse:
        return _error_response(422, "request_validation_error", "Request validation failed", jsonable_encoder(exc.errors()))

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(_: Request, exc: Exception) -> JSONResponse:
        logger.error(
            "request.unhandled_error",
            extra={"event": "request_unhandled_error", "error": f"{type(exc).__name__}: {exc}"},
            exc_info=exc,
        )
        return _error_response(500, "internal_error", "Internal server error", {"error": str(exc)})
