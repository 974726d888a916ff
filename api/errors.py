"""Maps engine errors onto HTTP responses"""
import logging
from typing import Dict

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from domain.enums import ErrorKind
from domain.errors import BookingEngineError

logger = logging.getLogger(__name__)

STATUS_BY_KIND: Dict[ErrorKind, int] = {
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.INVALID_TRANSITION: 409,
    ErrorKind.PERMISSION_DENIED: 403,
    ErrorKind.NO_AVAILABILITY: 409,
    ErrorKind.PRICING_UNAVAILABLE: 422,
    ErrorKind.SOFT_HOLD_EXPIRED: 410,
    ErrorKind.VALIDATION_ERROR: 400,
    ErrorKind.CONFLICT_RETRYABLE: 409,
}


def status_for(error: BookingEngineError) -> int:
    return STATUS_BY_KIND[error.kind]


async def booking_error_handler(request: Request, exc: BookingEngineError) -> JSONResponse:
    status_code = status_for(exc)
    logger.info("%s %s -> %s %s", request.method, request.url.path, status_code, exc.kind.value)
    return JSONResponse(status_code=status_code, content={"detail": exc.to_dict()})


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(BookingEngineError, booking_error_handler)
