"""FastAPI application initialization."""

from contextlib import asynccontextmanager
from typing import Callable, Optional
from uuid import uuid4

from dotenv import load_dotenv

# Load environment variables before anything else
load_dotenv()

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from streamhub.api.admin import router as admin_router
from streamhub.api.auth import router as auth_router
from streamhub.api.middleware import CorrelationIdMiddleware
from streamhub.api.routes import router
from streamhub.api.users import router as users_router
from streamhub.config import Settings, get_settings
from streamhub.errors import StreamHubError
from streamhub.services.auth_service import AuthService
from streamhub.services.logging_service import configure_logging, get_logger
from streamhub.services.memory_user_store import InMemoryUserStore
from streamhub.services.password_service import PasswordHasher
from streamhub.services.token_service import TokenIssuer
from streamhub.services.user_service import UserService
from streamhub.services.user_store import CredentialStore, PostgresUserStore


def _correlation_id(request: Request) -> str:
    return getattr(request.state, "correlation_id", None) or str(uuid4())


def register_exception_handlers(app: FastAPI, settings: Settings) -> None:
    """Render typed errors, validation errors and unexpected failures as JSON."""

    @app.exception_handler(StreamHubError)
    async def streamhub_exception_handler(
        request: Request, exc: StreamHubError
    ) -> JSONResponse:
        correlation_id = _correlation_id(request)
        headers = {"X-Correlation-Id": correlation_id}
        if exc.status_code == 401:
            headers["WWW-Authenticate"] = "Bearer"

        return JSONResponse(
            status_code=exc.status_code,
            content={
                "code": exc.code,
                "detail": exc.message,
                "correlation_id": correlation_id,
            },
            headers=headers,
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Handle Pydantic validation errors as 400 Bad Request."""
        correlation_id = _correlation_id(request)
        logger = structlog.get_logger()

        errors = exc.errors()
        if errors:
            first_error = errors[0]
            field = ".".join(str(loc) for loc in first_error.get("loc", ["unknown"]))
            message = first_error.get("msg", "Validation failed")
            detail = f"Field '{field}': {message}"
        else:
            detail = "Request validation failed"

        logger.warning("validation_error", detail=detail)

        return JSONResponse(
            status_code=400,
            content={
                "code": "VALIDATION_ERROR",
                "detail": detail,
                "correlation_id": correlation_id,
            },
            headers={"X-Correlation-Id": correlation_id},
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Sanitized 500; internals are only shown outside production."""
        correlation_id = _correlation_id(request)
        structlog.get_logger().error(
            "unhandled_exception",
            error_type=type(exc).__name__,
            error=str(exc),
            path=request.url.path,
        )

        detail = "An internal error occurred"
        if not settings.is_production:
            detail = f"{detail}: {exc}"

        return JSONResponse(
            status_code=500,
            content={
                "code": "INTERNAL_ERROR",
                "detail": detail,
                "correlation_id": correlation_id,
            },
            headers={"X-Correlation-Id": correlation_id},
        )


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[CredentialStore] = None,
    clock: Optional[Callable[[], float]] = None,
) -> FastAPI:
    """Build the application with explicitly injected collaborators.

    Args:
        settings: Configuration; defaults to environment settings
        store: Credential store; defaults to the configured backend
        clock: Time source for token issuance/verification (tests)
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan handler for startup/shutdown events."""
        configure_logging(settings.log_level)
        logger = get_logger("main")

        for name in settings.insecure_defaults():
            logger.warning(
                "insecure_default_in_use",
                setting=name,
                note="Set a real value before deploying to production",
            )

        pool = None
        user_store = store
        if user_store is None:
            if settings.storage_backend == "memory":
                user_store = InMemoryUserStore()
                logger.warning("memory_storage_in_use", note="Users are lost on restart")
            else:
                from streamhub.database import create_pool, run_migrations

                pool = await create_pool(settings)
                await run_migrations(pool)
                user_store = PostgresUserStore(pool)
                logger.info("database_initialized")

        hasher = PasswordHasher(settings)
        token_issuer = TokenIssuer(settings, clock=clock)

        app.state.settings = settings
        app.state.db_pool = pool
        app.state.user_store = user_store
        app.state.token_issuer = token_issuer
        app.state.auth_service = AuthService(user_store, hasher, token_issuer, settings)
        app.state.user_service = UserService(user_store, hasher)

        logger.info(
            "application_started",
            environment=settings.environment,
            storage_backend=type(user_store).__name__,
            log_level=settings.log_level,
        )

        yield

        if pool is not None:
            from streamhub.database import close_pool

            await close_pool(pool)

        logger.info("application_shutdown")

    app = FastAPI(
        title="StreamHub API",
        description="Authentication and user accounts for the StreamHub video platform",
        version="1.0.0",
        lifespan=lifespan,
    )

    register_exception_handlers(app, settings)

    # CORS middleware for the web client
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
        allow_headers=["Content-Type", "Authorization"],
    )

    # Correlation ID middleware for request tracking and observability
    app.add_middleware(CorrelationIdMiddleware)

    app.include_router(auth_router)
    app.include_router(users_router)
    app.include_router(admin_router)
    app.include_router(router)

    return app


app = create_app()
