"""
Translation of every failure into the ``{success: false, message, errors?}`` envelope.

Routers raise ``HTTPException`` (detail may be a plain message or a dict with
``message`` and ``error``); validation and store errors bubble up untouched and
are mapped here.
"""
import logging
import re

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from pydantic.alias_generators import to_camel
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

_DUPLICATE_PATTERNS = (
    re.compile(r"UNIQUE constraint failed: \w+\.(\w+)"),  # sqlite
    re.compile(r"Key \((\w+)\)=\("),  # postgres
)


def error_body(message: str, errors: list[str] | None = None, error: str | None = None) -> dict:
    body = {"success": False, "message": message}
    if errors:
        body["errors"] = errors
    if error:
        body["error"] = error
    return body


def format_validation_errors(errors) -> list[str]:
    messages = []
    for err in errors:
        field = next((str(part) for part in reversed(err.get("loc", ())) if isinstance(part, str)), "")
        if err.get("type") == "missing":
            messages.append(f"{to_camel(field)} is required" if field else "Field required")
            continue
        msg = err.get("msg", "Invalid value")
        if msg.startswith("Value error, "):
            msg = msg[len("Value error, "):]
        messages.append(msg)
    return messages


def duplicate_field(exc: IntegrityError) -> str | None:
    text = str(exc.orig)
    for pattern in _DUPLICATE_PATTERNS:
        match = pattern.search(text)
        if match:
            return match.group(1)
    return None


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    detail = exc.detail
    if isinstance(detail, dict):
        body = error_body(detail.get("message", "Request failed"), detail.get("errors"), detail.get("error"))
    elif exc.status_code == status.HTTP_404_NOT_FOUND and detail == "Not Found":
        body = error_body("Route not found")
    else:
        body = error_body(str(detail))
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, body.get("error") or body["message"])
    return JSONResponse(status_code=exc.status_code, content=body, headers=getattr(exc, "headers", None))


async def request_validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body("Validation error", format_validation_errors(exc.errors())),
    )


async def validation_handler(request: Request, exc: ValidationError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body("Validation error", format_validation_errors(exc.errors())),
    )


async def integrity_handler(request: Request, exc: IntegrityError):
    field = duplicate_field(exc)
    if field is None:
        logger.exception("Integrity error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=error_body("Internal server error", error=str(exc.orig)),
        )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body(f"{field} already exists"),
    )


async def generic_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body(str(exc) or "Internal server error"),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(ValidationError, validation_handler)
    app.add_exception_handler(IntegrityError, integrity_handler)
    app.add_exception_handler(Exception, generic_handler)
