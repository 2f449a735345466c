"""
FastAPI application entry point for the listings service.
"""

from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from listings.config import get_settings
from listings.dependencies import close_connection, get_connection
from listings.errors import FieldError, StorageUnavailable, ValidationError
from listings.routes import router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    connection = get_connection()
    if connection is None:
        logger.warning(
            "No MongoDB configured. Application will run in memory-only mode."
        )
    else:
        connection.connect()
    yield
    close_connection()


def _validation_response(exc: ValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={
            "message": str(exc),
            "errors": [error.as_dict() for error in exc.errors],
        },
    )


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        return _validation_response(exc)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(
        request: Request, exc: RequestValidationError
    ):
        errors = [
            FieldError(".".join(str(p) for p in err["loc"]), err["msg"])
            for err in exc.errors()
        ]
        return _validation_response(ValidationError(errors))

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_error(request: Request, exc: StarletteHTTPException):
        return JSONResponse(status_code=exc.status_code, content={"message": exc.detail})

    @app.exception_handler(StorageUnavailable)
    async def handle_storage_unavailable(request: Request, exc: StorageUnavailable):
        logger.error("Storage unavailable: %s", exc)
        return JSONResponse(status_code=500, content={"message": str(exc)})

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=500, content={"message": "Internal Server Error"}
        )


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(title="Property Listings API", version="0.1.0", lifespan=lifespan)
    app.include_router(router, prefix=settings.api_prefix)
    register_exception_handlers(app)

    @app.middleware("http")
    async def log_api_requests(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        if request.url.path.startswith(settings.api_prefix):
            duration_ms = (time.perf_counter() - start) * 1000
            logger.info(
                "%s %s %s in %.0fms",
                request.method,
                request.url.path,
                response.status_code,
                duration_ms,
            )
        return response

    return app


app = create_app()
