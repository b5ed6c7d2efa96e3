"""
Translate domain errors into JSON responses.
"""
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from domain.errors import TourError, USER_MESSAGES, ErrorType, log_error
from settings import settings

logger = logging.getLogger(__name__)


async def tour_error_handler(request: Request, exc: TourError) -> JSONResponse:
    if exc.http_status >= 500 or exc.error_type in (ErrorType.UNKNOWN, ErrorType.CONFIGURATION):
        log_error(exc, context=request.url.path, debug=settings.DEBUG)
    else:
        logger.info("%s %s -> %s: %s", request.method, request.url.path, exc.error_type.value, exc.message)
    return JSONResponse(status_code=exc.http_status, content=exc.to_dict(include_debug=settings.DEBUG))


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    info = log_error(exc, context=request.url.path, debug=settings.DEBUG)
    content = {
        "type": ErrorType.UNKNOWN.value,
        "message": USER_MESSAGES[ErrorType.UNKNOWN],
        "can_retry": False,
    }
    if settings.DEBUG:
        content["detail"] = info.message
    return JSONResponse(status_code=500, content=content)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(TourError, tour_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
