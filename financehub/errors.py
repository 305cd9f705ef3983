# financehub/errors.py
# Role: Error type raised by route code, the JSON response envelope,
#       and the FastAPI exception handlers that render every failure the same way.

"""
Every response body follows one envelope:

    {"success": true,  "message": "...", "data": ...}
    {"success": false, "message": "...", "error": "CODE"}
"""

from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

from financehub.logger import get_logger

logger = get_logger(__name__)


class ApiError(Exception):
    """Expected failure with an HTTP status and a machine-readable code."""

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_400_BAD_REQUEST,
        code: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code or _default_code(status_code)


def _default_code(status_code: int) -> str:
    return {
        400: "BAD_REQUEST",
        401: "UNAUTHORIZED",
        403: "FORBIDDEN",
        404: "NOT_FOUND",
        409: "CONFLICT",
    }.get(status_code, "INTERNAL_ERROR")


class NotFoundError(ApiError):
    def __init__(self, message: str) -> None:
        super().__init__(message, status.HTTP_404_NOT_FOUND)


# -------------------------------------------------------------------
# Envelope helpers
# -------------------------------------------------------------------

def success(message: str, data: Any = None, **extra: Any) -> dict[str, Any]:
    """Build a success envelope. Extra keys (e.g. pagination) sit next to data."""
    payload: dict[str, Any] = {"success": True, "message": message}
    if data is not None:
        payload["data"] = data
    payload.update(extra)
    return payload


def error_envelope(message: str, code: str, data: Any = None) -> dict[str, Any]:
    payload: dict[str, Any] = {"success": False, "message": message, "error": code}
    if data is not None:
        payload["data"] = data
    return payload


def _validation_details(exc: RequestValidationError) -> list[dict[str, str]]:
    details = []
    for err in exc.errors():
        # Drop the "body"/"query" prefix so field names match the payload keys
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        details.append({"field": ".".join(loc), "message": err.get("msg", "Invalid value")})
    return details


# -------------------------------------------------------------------
# Handlers
# -------------------------------------------------------------------

def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(ApiError)
    async def _handle_api_error(_: Request, exc: ApiError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("API error (%s): %s", exc.code, exc.message)
        return JSONResponse(
            status_code=exc.status_code,
            content=error_envelope(exc.message, exc.code),
        )

    @app.exception_handler(RequestValidationError)
    async def _handle_validation_error(_: Request, exc: RequestValidationError) -> JSONResponse:
        details = _validation_details(exc)
        logger.info("Validation failed: %s", details)
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=error_envelope("Validation failed", "VALIDATION_ERROR", details),
        )

    @app.exception_handler(StarletteHTTPException)
    async def _handle_http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        if exc.status_code == status.HTTP_404_NOT_FOUND and exc.detail == "Not Found":
            return JSONResponse(
                status_code=exc.status_code,
                content=error_envelope(f"Route {request.url.path} not found", "ROUTE_NOT_FOUND"),
            )
        return JSONResponse(
            status_code=exc.status_code,
            content=error_envelope(str(exc.detail), _default_code(exc.status_code)),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(IntegrityError)
    async def _handle_integrity_error(_: Request, exc: IntegrityError) -> JSONResponse:
        text = str(exc.orig).lower()
        if "unique" in text or "duplicate" in text:
            logger.warning("Duplicate entry: %s", exc.orig)
            return JSONResponse(
                status_code=status.HTTP_409_CONFLICT,
                content=error_envelope("Duplicate entry", "DUPLICATE_ENTRY"),
            )
        logger.warning("Integrity error: %s", exc.orig)
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=error_envelope("Foreign key constraint failed", "FOREIGN_KEY_ERROR"),
        )

    @app.exception_handler(Exception)
    async def _handle_unexpected(_: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error", exc_info=exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=error_envelope("Internal server error", "INTERNAL_ERROR"),
        )
