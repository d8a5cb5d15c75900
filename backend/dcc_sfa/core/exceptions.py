"""
Application-wide error rendering

Every error response carries success=false and a message.
"""
import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


def validation_message(errors: list) -> str:
    """First validation error as a short sentence ("name is required")"""
    if not errors:
        return "Invalid request"
    first = errors[0]
    loc = [str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path")]
    field_name = loc[-1] if loc else "body"
    if first.get("type") == "missing":
        return f"{field_name} is required"
    return f"{field_name}: {first.get('msg', 'invalid value')}"


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if isinstance(exc.detail, dict):
        content = {"success": False, **exc.detail}
    else:
        content = {"success": False, "message": exc.detail}
    return JSONResponse(status_code=exc.status_code, content=content, headers=getattr(exc, "headers", None))


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = jsonable_encoder(exc.errors())
    return JSONResponse(
        status_code=400,
        content={"success": False, "message": validation_message(errors), "errors": errors},
    )


async def integrity_error_handler(request: Request, exc: IntegrityError):
    text = str(exc.orig).lower() if exc.orig is not None else str(exc).lower()
    logger.warning(f"Integrity error on {request.method} {request.url.path}: {text}")
    if "foreign key" in text:
        return JSONResponse(
            status_code=400,
            content={
                "success": False,
                "message": "Operation violates a reference to another record. "
                           "The record is referenced by, or refers to, a missing record.",
            },
        )
    if "unique" in text or "duplicate" in text:
        return JSONResponse(status_code=409, content={"success": False, "message": "Record already exists"})
    return JSONResponse(status_code=400, content={"success": False, "message": "Data integrity error"})


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(status_code=500, content={"success": False, "message": str(exc)})


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(IntegrityError, integrity_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
