import logging
from collections.abc import Iterable
from typing import Any, Generic, Optional, TypeVar

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ValidationError
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

T = TypeVar("T")
M = TypeVar("M", bound=BaseModel)

_LOCATION_PREFIXES = {"body", "query", "path", "header"}


class ApiResponse(BaseModel, Generic[T]):
    success: bool = True
    data: Optional[T] = None
    message: Optional[str] = None
    meta: Optional[dict[str, Any]] = None


class PayloadValidationError(Exception):
    def __init__(self, errors: dict[str, list[str]]):
        self.errors = errors
        super().__init__("Validation error")


def collect_field_errors(errors: Iterable[dict]) -> dict[str, list[str]]:
    """Group pydantic errors by field name so a client can fix all of them at once."""
    fields: dict[str, list[str]] = {}
    for error in errors:
        context = error.get("ctx") or {}
        location = [str(part) for part in error.get("loc", ()) if part not in _LOCATION_PREFIXES]
        field = context.get("field") or (".".join(location) if location else "body")
        fields.setdefault(field, []).append(error.get("msg", "Invalid value"))
    return fields


def validate_payload(model: type[M], raw: Any) -> M:
    """Parse untrusted input into ``model`` or raise with every field error."""
    try:
        return model.model_validate(raw)
    except ValidationError as exc:
        raise PayloadValidationError(collect_field_errors(exc.errors())) from exc


def error_body(message: str, **extra: Any) -> dict[str, Any]:
    return {"success": False, "message": message, **extra}


def _validation_response(errors: dict[str, list[str]]) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body("Validation error", errors=errors),
    )


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    # Called synchronously by SlowAPIMiddleware, so this must not be a coroutine.
    logger.warning(f"Rate limit exceeded for {request.client.host if request.client else 'unknown'}")
    return JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content=error_body("Too many requests, please try again later."),
    )


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(_request: Request, exc: RequestValidationError):
        return _validation_response(collect_field_errors(exc.errors()))

    @app.exception_handler(PayloadValidationError)
    async def payload_validation_handler(_request: Request, exc: PayloadValidationError):
        return _validation_response(exc.errors)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(_request: Request, exc: StarletteHTTPException):
        message = exc.detail if isinstance(exc.detail, str) else "Request failed"
        if exc.status_code == status.HTTP_404_NOT_FOUND and message == "Not Found":
            message = "Route not found"
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(message),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        settings = request.app.state.settings
        message = "Internal server error" if settings.is_production else str(exc) or exc.__class__.__name__
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=error_body(message),
        )

    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
