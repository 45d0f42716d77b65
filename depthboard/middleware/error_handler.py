"""
Error Handler Middleware
Turns exceptions escaping a route into JSON error bodies.
"""

import logging
from fastapi import FastAPI, Request
from starlette.exceptions import HTTPException
from fastapi.responses import JSONResponse

from depthboard.errors import (
    DepthboardError, create_http_exception, create_structured_error_response,
    sanitize_error_message
)

logger = logging.getLogger(__name__)


async def depthboard_exception_handler(request: Request, exc: DepthboardError) -> JSONResponse:
    """
    Domain failures keep a flat {"error": message} body.

    Status comes from ERROR_TO_HTTP_STATUS; the code, details and
    underlying cause only go to the log.
    """
    status_code = create_http_exception(exc).status_code
    logger.error(
        f"{request.method} {request.url.path} -> {status_code} {exc.error_code}: "
        f"{exc.message} {exc.details} (cause: {exc.__cause__!r})"
    )
    return JSONResponse(status_code=status_code, content={"error": sanitize_error_message(exc.message)})


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Unknown routes and disallowed methods."""
    logger.warning(f"{request.method} {request.url.path} -> {exc.status_code} {exc.detail}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": "HTTP_ERROR", "message": sanitize_error_message(str(exc.detail))},
        headers=getattr(exc, "headers", None),
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    structured_error = create_structured_error_response(exc)
    logger.error(f"Unexpected error on {request.method} {request.url.path}: {structured_error}", exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={"error": "INTERNAL_ERROR", "message": "An unexpected error occurred"},
    )


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DepthboardError, depthboard_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)
