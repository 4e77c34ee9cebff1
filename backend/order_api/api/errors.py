import logging
from collections import defaultdict

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from order_api.db.repository import OrderConflictError

logger = logging.getLogger(__name__)


def _problem(status_code: int, title: str, **extra) -> JSONResponse:
    return JSONResponse(
        {"title": title, "status": status_code, **extra},
        status_code=status_code,
    )


def _field_name(loc) -> str:
    # ("body", "customerName") -> "customerName"; ("path", "order_id") -> "order_id"
    parts = [str(p) for p in loc if p not in ("body", "path", "query")]
    return ".".join(parts) or "body"


async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = defaultdict(list)
    for error in exc.errors():
        errors[_field_name(error.get("loc", ()))].append(error.get("msg", "Invalid value"))

    return _problem(
        status.HTTP_400_BAD_REQUEST,
        "One or more validation errors occurred.",
        errors=dict(errors),
    )


async def conflict_handler(request: Request, exc: OrderConflictError):
    logger.warning("Update conflict on order %s", exc.order_id)
    return _problem(
        status.HTTP_409_CONFLICT,
        "The order was modified by another request.",
    )


async def store_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error(
        "Database error on %s %s: %s", request.method, request.url.path, exc
    )
    return _problem(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "The order store is unavailable.",
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(OrderConflictError, conflict_handler)
    app.add_exception_handler(SQLAlchemyError, store_error_handler)
