"""
ExtraBeam Backend - FastAPI Application Factory
===============================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() registers middleware, exception handlers and routers;
       the lifespan prepares logging and storage and disposes the database
       engine on shutdown.
Who:   uvicorn (`uvicorn extrabeam.main:app`) and the test suite.

Application Architecture:
    ┌──────────────────────────────────────────────────────────────┐
    │                        FastAPI App                           │
    │                                                              │
    │  Middleware: RequestID → RateLimit → Logging → GZip → CORS   │
    │                                                              │
    │  Routers:                                                    │
    │    /health  /api/health  /api/auth  /api/login               │
    │    /api/profiles  /api/entreprises[/{ref}/slots|cv|...]      │
    │    /api/missions  /api/mission-templates  /api/factures      │
    │    /api/payments  /api/clients  /api/notifications           │
    │    /api/mail  /api/uploads  /api/files                       │
    │                                                              │
    │  Exception Handlers:                                         │
    │    Validation→400  Auth→401  Permission→403  NotFound→404    │
    │    Conflict→409  Payment→502  Mail→503                       │
    │    Storage/DB/unexpected→500                                 │
    └──────────────────────────────────────────────────────────────┘
"""

import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from extrabeam import __version__
from extrabeam.config import settings
from extrabeam.database import dispose_engine
from extrabeam.exceptions import (
    AuthenticationError,
    CircuitBreakerOpenError,
    ConflictError,
    DatabaseError,
    EmailDeliveryError,
    ExtraBeamError,
    FileStorageError,
    NotFoundError,
    PaymentServiceError,
    PermissionDeniedError,
    ValidationError,
)
from extrabeam.middleware.logging import RequestLoggingMiddleware
from extrabeam.middleware.rate_limit import RateLimitMiddleware
from extrabeam.middleware.request_id import RequestIDMiddleware, request_id_var
from extrabeam.routes import (
    auth,
    clients,
    cv,
    entreprises,
    factures,
    health,
    missions,
    notifications,
    payments,
    profiles,
    slots,
    templates,
    unavailabilities,
    uploads,
)

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure the root logger once, before anything else logs.

    Format: 2024-05-01T10:00:00 [INFO] extrabeam.services.mission_service: ...
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[
            logging.StreamHandler(sys.stdout),  # Docker captures stdout
        ],
        force=True,
    )

    # Third-party loggers are chatty at INFO
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("stripe").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging()
    logger.info("=" * 60)
    logger.info("ExtraBeam Backend %s starting up...", __version__)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        logger.error("Configuration error: %s", str(e))
        logger.error("Fix the configuration and restart the server.")
        # keep serving: /health still reports the state

    storage = Path(settings.storage_root)
    storage.mkdir(parents=True, exist_ok=True)
    logger.info("Storage directory: %s", storage.resolve())

    if not settings.stripe_secret_key:
        logger.warning("STRIPE_SECRET_KEY not set: payment endpoints will answer 502")
    if not settings.brevo_api_key:
        logger.warning("BREVO_API_KEY not set: e-mail notifications are disabled")

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("ExtraBeam Backend shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _error_response(
    status_code: int,
    error: str,
    message: str,
    details=None,
    headers=None,
) -> JSONResponse:
    content = {
        "error": error,
        "message": message,
        "request_id": request_id_var.get(""),
    }
    if details:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content, headers=headers)


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map the application's exceptions to HTTP responses.

    Every error body has the same shape:
        {"error": code, "message": text, "details": {...}?, "request_id": id}

    4xx bodies carry the exception context as `details`; 5xx bodies never
    expose internals, the context is logged server-side.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("[%s] Validation error: %s", request_id_var.get(""), exc.message)
        return _error_response(400, "validation_error", exc.message, exc.context)

    @app.exception_handler(AuthenticationError)
    async def handle_authentication_error(request: Request, exc: AuthenticationError):
        return _error_response(
            401,
            "unauthorized",
            exc.message,
            exc.context,
            headers={"WWW-Authenticate": "Bearer"},
        )

    @app.exception_handler(PermissionDeniedError)
    async def handle_permission_denied(request: Request, exc: PermissionDeniedError):
        logger.info("[%s] Permission denied on %s: %s", request_id_var.get(""), request.url.path, exc.message)
        return _error_response(403, "forbidden", exc.message, exc.context)

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return _error_response(404, "not_found", exc.message)

    @app.exception_handler(ConflictError)
    async def handle_conflict(request: Request, exc: ConflictError):
        return _error_response(409, "conflict", exc.message, exc.context)

    @app.exception_handler(PaymentServiceError)
    async def handle_payment_error(request: Request, exc: PaymentServiceError):
        logger.error("[%s] Payment error: %s | Context: %s", request_id_var.get(""), exc.message, exc.context)
        return _error_response(502, "payment_service_error", exc.message)

    @app.exception_handler(EmailDeliveryError)
    async def handle_email_error(request: Request, exc: EmailDeliveryError):
        logger.error("[%s] E-mail delivery error: %s | Context: %s", request_id_var.get(""), exc.message, exc.context)
        headers = {}
        if exc.retry_after:
            headers["Retry-After"] = str(exc.retry_after)
        return _error_response(503, "email_delivery_error", exc.message, headers=headers)

    @app.exception_handler(CircuitBreakerOpenError)
    async def handle_circuit_breaker(request: Request, exc: CircuitBreakerOpenError):
        logger.warning("[%s] Circuit breaker open: %s", request_id_var.get(""), exc.message)
        return _error_response(
            503,
            "service_unavailable",
            exc.message,
            {"recovery_time": exc.recovery_time},
            headers={"Retry-After": str(exc.recovery_time)},
        )

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        logger.error("[%s] Database error: %s | Context: %s", request_id_var.get(""), exc.message, exc.context)
        return _error_response(500, "server_error", "An internal error occurred. Please try again later.")

    @app.exception_handler(FileStorageError)
    async def handle_file_storage_error(request: Request, exc: FileStorageError):
        logger.error("[%s] File storage error: %s | Context: %s", request_id_var.get(""), exc.message, exc.context)
        return _error_response(500, "server_error", exc.message)

    @app.exception_handler(ExtraBeamError)
    async def handle_application_error(request: Request, exc: ExtraBeamError):
        logger.error("[%s] Unhandled application error: %s | Context: %s", request_id_var.get(""), exc.message, exc.context)
        return _error_response(500, "server_error", "An internal error occurred. Please try again later.")

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error("[%s] Unexpected error: %s", request_id_var.get(""), str(exc), exc_info=True)
        return _error_response(
            500,
            "internal_server_error",
            "An unexpected error occurred. Please try again or contact support.",
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    app = FastAPI(
        title="ExtraBeam API",
        description=(
            "Multi-tenant back office for freelancers: public company pages, "
            "calendar, missions, CV, invoices with Stripe checkout and e-mail notifications."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── Middleware ────────────────────────────────────────────────────────
    # Executed in reverse order of addition:
    # RequestID → RateLimit → Logging → GZip → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[
            "X-Request-ID",
            "X-Total-Count",
            "Retry-After",
        ],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RateLimitMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    # ── Routers ───────────────────────────────────────────────────────────
    app.include_router(health.router)
    app.include_router(auth.router)
    app.include_router(auth.admin_router)
    app.include_router(profiles.router)
    app.include_router(entreprises.router)
    app.include_router(slots.router)
    app.include_router(unavailabilities.router)
    app.include_router(cv.router)
    app.include_router(missions.router)
    app.include_router(templates.router)
    app.include_router(factures.router)
    app.include_router(payments.router)
    app.include_router(clients.router)
    app.include_router(notifications.router)
    app.include_router(uploads.router)

    return app


app = create_app()
