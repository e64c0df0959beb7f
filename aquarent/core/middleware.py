"""
Application middleware for request/response processing
Handles CORS, request ids, access logging and error rendering
"""

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
import time
import uuid
import logging
from typing import Callable, Optional

from .config import settings
from .exceptions import AquaRentException

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

def _request_id(request: Request) -> Optional[str]:
    return getattr(request.state, "request_id", None)

def _error_response(status_code: int, code: str, message: str, request: Request, headers=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "error": {
                "code": code,
                "message": message,
                "request_id": _request_id(request)
            }
        },
        headers=headers
    )

class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Tag each request with an id and log it

    An id supplied by the caller in X-Request-ID is kept so that a
    notification can be traced from the calling service.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        request.state.request_id = request_id
        start_time = time.time()

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                f"[{request_id}] {request.method} {request.url.path} failed "
                f"after {time.time() - start_time:.3f}s: {str(e)}"
            )
            raise

        logger.info(
            f"[{request_id}] {request.method} {request.url.path} "
            f"-> {response.status_code} in {time.time() - start_time:.3f}s"
        )
        response.headers[REQUEST_ID_HEADER] = request_id
        return response

class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """Global handler for errors that escape the routers"""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)
        except Exception as e:
            logger.exception(f"Unhandled exception: {str(e)}")

            # Don't expose internal errors in production
            detail = str(e) if settings.DEBUG else "An unexpected error occurred"
            return _error_response(500, "INTERNAL_ERROR", detail, request)

async def aquarent_exception_handler(request: Request, exc: AquaRentException) -> JSONResponse:
    """Render application exceptions with their error code"""
    if exc.status_code >= 500:
        logger.error(f"[{_request_id(request)}] {exc.error_code}: {exc.detail}")
    return _error_response(exc.status_code, exc.error_code, exc.detail, request, headers=exc.headers)

def setup_middleware(app: FastAPI):
    """Configure all middleware for the application"""

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(AquaRentException, aquarent_exception_handler)

    # Added last runs first
    app.add_middleware(ErrorHandlerMiddleware)
    app.add_middleware(RequestContextMiddleware)
