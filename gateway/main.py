"""FastAPI application for the around check-in service"""

import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from around.app import AroundApp
from around.utils.exceptions import (
    BlobStoreFailed,
    DuplicateAccount,
    InvalidCredentials,
    InvalidToken,
    PartialWriteFailure,
    QueryError,
    StoreUnavailable,
    ValidationError,
)
from around.utils.logger import get_logger
from .api import CORS_HEADERS, router

logger = get_logger(__name__)


def _text(message: str, status_code: int, headers: Optional[dict] = None) -> PlainTextResponse:
    return PlainTextResponse(message, status_code=status_code, headers={**CORS_HEADERS, **(headers or {})})


def register_exception_handlers(app: FastAPI) -> None:
    """Translate the error taxonomy into HTTP responses at the request boundary"""

    @app.exception_handler(RequestValidationError)
    async def malformed_request(request: Request, exc: RequestValidationError):
        # Auth endpoints answer in plain text like their domain errors
        if request.url.path == "/signup":
            logger.info("Signup rejected", error="malformed body")
            return _text("Invalid signup request", status.HTTP_500_INTERNAL_SERVER_ERROR)
        if request.url.path == "/login":
            logger.info("Login failed", reason="malformed_body")
            return _text("Invalid password or username", status.HTTP_403_FORBIDDEN)
        return await request_validation_exception_handler(request, exc)

    @app.exception_handler(ValidationError)
    async def validation_error(request: Request, exc: ValidationError):
        logger.info("Signup rejected", error=str(exc))
        return _text(str(exc), status.HTTP_500_INTERNAL_SERVER_ERROR)

    @app.exception_handler(DuplicateAccount)
    async def duplicate_account(request: Request, exc: DuplicateAccount):
        return _text("Failed to add a new user", status.HTTP_500_INTERNAL_SERVER_ERROR)

    @app.exception_handler(InvalidCredentials)
    async def invalid_credentials(request: Request, exc: InvalidCredentials):
        return _text("Invalid password or username", status.HTTP_403_FORBIDDEN)

    @app.exception_handler(InvalidToken)
    async def invalid_token(request: Request, exc: InvalidToken):
        logger.info("Rejected bearer token", path=request.url.path, error=str(exc))
        return _text(
            "Invalid or expired token",
            status.HTTP_401_UNAUTHORIZED,
            headers={"WWW-Authenticate": "Bearer"},
        )

    @app.exception_handler(StoreUnavailable)
    async def store_unavailable(request: Request, exc: StoreUnavailable):
        logger.error("Store unavailable", path=request.url.path, store=exc.store, error=str(exc))
        return _text(f"{exc.store} store is unavailable", status.HTTP_500_INTERNAL_SERVER_ERROR)

    @app.exception_handler(BlobStoreFailed)
    async def blob_store_failed(request: Request, exc: BlobStoreFailed):
        return JSONResponse(
            {"error": "Media upload failed", "id": exc.post_id},
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            headers=CORS_HEADERS,
        )

    @app.exception_handler(PartialWriteFailure)
    async def partial_write_failure(request: Request, exc: PartialWriteFailure):
        return JSONResponse(
            {
                "error": "Post was not recorded",
                "id": exc.post.id,
                "written": sorted(exc.written),
                "missing": sorted(exc.missing),
            },
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            headers=CORS_HEADERS,
        )

    @app.exception_handler(QueryError)
    async def query_error(request: Request, exc: QueryError):
        return JSONResponse(
            {"error": str(exc)},
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            headers=CORS_HEADERS,
        )


def create_app(around: Optional[AroundApp] = None) -> FastAPI:
    """
    Build the FastAPI app.

    Without an explicit AroundApp, settings are loaded from AROUND_CONFIG
    (default config/settings.yaml) at startup and the stores are bootstrapped;
    any failure there aborts startup.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if getattr(app.state, "around", None) is None:
            app.state.around = AroundApp.from_settings_file().initialize()
        yield

    app = FastAPI(
        title="around",
        description="Location-aware check-in service",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.around = around

    # CORS middleware - configurable for production
    cors_origins = os.getenv("CORS_ORIGINS", "*").split(",")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_methods=["*"],
        allow_headers=["Content-Type", "Authorization"],
    )

    register_exception_handlers(app)
    app.include_router(router)
    return app


app = create_app()
