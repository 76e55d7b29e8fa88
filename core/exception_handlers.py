import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from core.errors import BookingError, StoreFailure

logger = logging.getLogger(__name__)


async def booking_error_handler(request: Request, exc: BookingError) -> JSONResponse:
    """Map core errors to a stable ``{"error": kind, "message": ...}`` body."""
    if isinstance(exc, StoreFailure):
        logger.error("Store failure on %s %s: %s", request.method, request.url.path, exc.message)
    else:
        logger.info("%s on %s %s: %s", exc.kind, request.method, request.url.path, exc.message)

    return JSONResponse(status_code=exc.status_code, content={"error": exc.kind, "message": exc.message})


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(BookingError, booking_error_handler)
