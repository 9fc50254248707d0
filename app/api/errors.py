import logging

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from app.models.error import ErrorResponse
from app.core.exceptions import APIError, ValidationError

logger = logging.getLogger(__name__)

async def api_error_handler(request: Request, exc: Exception):
    assert isinstance(exc, APIError)

    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(error=exc.message).model_dump()
    )

async def request_validation_handler(request: Request, exc: Exception):
    assert isinstance(exc, RequestValidationError)
    logger.info("Rejected %s %s: %s", request.method, request.url.path, exc.errors())
    return await api_error_handler(request, ValidationError())

async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)

    return JSONResponse(
        status_code=500,
        content=ErrorResponse(error=APIError.message).model_dump()
    )
