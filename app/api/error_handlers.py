"""Exception handlers that render every failure as an error envelope"""

from typing import Any

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from app.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    BusinessLogicError,
    DuplicateRecordError,
    FallbackModeError,
    LayoutException,
    NothingToUndoError,
    PermissionDeniedError,
    RecordNotFoundError,
    StoreUnavailableError,
    TransientFailureError,
    ValidationError,
    ZeroRowsAffectedError,
)
from app.core.logging import get_logger
from app.api.response_utils import build_meta
from app.schemas.response import ResponseError, ResponseEnvelope

logger = get_logger(__name__)


EXCEPTION_RESPONSE_MAP: dict[type[Exception], tuple[int, str]] = {
    RecordNotFoundError: (status.HTTP_404_NOT_FOUND, "RecordNotFoundError"),
    ValidationError: (status.HTTP_400_BAD_REQUEST, "ValidationError"),
    DuplicateRecordError: (status.HTTP_409_CONFLICT, "DuplicateRecordError"),
    ZeroRowsAffectedError: (status.HTTP_409_CONFLICT, "ZeroRowsAffectedError"),
    NothingToUndoError: (status.HTTP_409_CONFLICT, "NothingToUndoError"),
    FallbackModeError: (status.HTTP_503_SERVICE_UNAVAILABLE, "FallbackModeError"),
    StoreUnavailableError: (status.HTTP_503_SERVICE_UNAVAILABLE, "StoreUnavailableError"),
    TransientFailureError: (status.HTTP_502_BAD_GATEWAY, "TransientFailureError"),
    BusinessLogicError: (status.HTTP_400_BAD_REQUEST, "BusinessLogicError"),
    AuthenticationError: (status.HTTP_401_UNAUTHORIZED, "AuthenticationError"),
    PermissionDeniedError: (status.HTTP_403_FORBIDDEN, "PermissionDeniedError"),
    AuthorizationError: (status.HTTP_403_FORBIDDEN, "AuthorizationError"),
}
DEFAULT_ERROR_CODE = "INTERNAL.UNEXPECTED"

# Shown to operators when the layout is served from defaults
_HINTS: dict[type[Exception], str] = {
    FallbackModeError: "Call POST .../department-layout/retry once the store is reachable.",
    StoreUnavailableError: "Run the Alembic migrations for department_section_assignments.",
}


def register_exception_handlers(app: FastAPI) -> None:
    """Register handlers that wrap exceptions in the common envelope."""

    app.add_exception_handler(LayoutException, _layout_exception_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_error_handler)
    app.add_exception_handler(HTTPException, _http_exception_handler)
    app.add_exception_handler(Exception, _unhandled_exception_handler)


def _resolve_status(exc: Exception) -> tuple[int, str]:
    # Most specific registered class wins (PermissionDeniedError before AuthorizationError)
    for klass in type(exc).__mro__:
        if klass in EXCEPTION_RESPONSE_MAP:
            return EXCEPTION_RESPONSE_MAP[klass]
    return status.HTTP_500_INTERNAL_SERVER_ERROR, DEFAULT_ERROR_CODE


def _resolve_hint(exc: Exception) -> str | None:
    for klass in type(exc).__mro__:
        if klass in _HINTS:
            return _HINTS[klass]
    return None


def _error_response(
    request: Request,
    status_code: int,
    error: ResponseError,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    envelope = ResponseEnvelope[None](
        success=False,
        error=error,
        meta=build_meta(request),
    )
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(envelope, by_alias=True),
        headers=headers,
    )


def _compress_detail(detail: Any) -> tuple[str, Any | None]:
    if isinstance(detail, dict):
        message = detail.get("message", str(detail))
        return message, detail.get("details") or detail

    return str(detail), None


def _format_validation_message(errors: list[dict[str, Any]]) -> str:
    if not errors:
        return "Validation error"

    parts: list[str] = []
    for error in errors:
        loc = error.get("loc", [])
        msg = error.get("msg", "Validation error")
        loc_path = ".".join(str(item) for item in loc) if loc else None
        parts.append(f"{loc_path}: {msg}" if loc_path else msg)

    return "; ".join(parts)


async def _layout_exception_handler(request: Request, exc: LayoutException) -> JSONResponse:
    status_code, error_code = _resolve_status(exc)

    logger.warning(
        "layout_request_failed",
        path=request.url.path,
        status_code=status_code,
        error_code=error_code,
        error=exc.message,
    )
    return _error_response(
        request,
        status_code,
        ResponseError(
            code=error_code,
            message=str(exc),
            details=getattr(exc, "details", None),
            hint=_resolve_hint(exc),
        ),
    )


async def _request_validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = exc.errors() or []
    return _error_response(
        request,
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        ResponseError(
            code="ValidationError",
            message=_format_validation_message(errors),
            details={"errors": errors},
        ),
    )


async def _http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    message, details = _compress_detail(exc.detail)
    code = getattr(exc, "code", None) or f"HTTP.{exc.status_code}"
    return _error_response(
        request,
        exc.status_code,
        ResponseError(code=code, message=message, details=details),
        headers=getattr(exc, "headers", None),
    )


async def _unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled_exception", path=request.url.path, error=str(exc))
    return _error_response(
        request,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        ResponseError(code=DEFAULT_ERROR_CODE, message="Unexpected server error."),
    )
