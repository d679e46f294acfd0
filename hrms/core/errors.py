"""
Error envelope.

Every failure leaves the API as
``{"success": false, "error": <message>, "errors": [...]}`` so clients can
show ``error`` directly and inspect ``errors`` for codes or field names.
"""
import logging
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from hrms.core.exceptions import AppException

logger = logging.getLogger(__name__)

SERVER_ERROR_MESSAGE = "An unexpected server error occurred."


def error_response(status_code: int, message: str, errors: Optional[List[Dict[str, Any]]] = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "error": message,
            "errors": errors if errors is not None else [{"msg": message}],
        },
    )


def _field_errors(exc: RequestValidationError) -> List[Dict[str, str]]:
    errors = []
    for error in exc.errors():
        # ("body", "end_date") -> "end_date"; model-level validators report ("body",)
        loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        errors.append({"field": ".".join(loc) or "request", "msg": error["msg"]})
    return errors


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = _field_errors(exc) or [{"field": "request", "msg": "Invalid request"}]
    logger.warning("Validation failed", extra={"path": request.url.path, "errors": errors})
    first = errors[0]
    return error_response(
        status.HTTP_422_UNPROCESSABLE_ENTITY, f"{first['field']}: {first['msg']}", errors
    )


async def app_exception_handler(request: Request, exc: AppException):
    logger.warning(exc.message, extra={"code": exc.error_code, "path": request.url.path})
    error = {"msg": exc.message, "code": exc.error_code}
    if exc.details:
        error["details"] = exc.details
    return error_response(exc.status_code, exc.message, [error])


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    return error_response(exc.status_code, message)


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled server error", extra={"path": request.url.path})
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, SERVER_ERROR_MESSAGE)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(AppException, app_exception_handler)
    # fastapi.HTTPException subclasses Starlette's, so one registration covers both
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
