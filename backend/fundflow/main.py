"""
FundFlow Backend — FastAPI Application Factory
================================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   Called by uvicorn to start the server (uvicorn fundflow.main:app).
When:  Once at server startup; the returned app handles all subsequent requests.

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                       FastAPI App                        │
    │                                                          │
    │  Middleware:  Request ID → Logging → GZip → CORS         │
    │                                                          │
    │  Routes:                                                 │
    │    /api/auth/*          /api/approve-lists*              │
    │    /api/status-approves /api/config*                     │
    │    /api/transactions*   /api/net-amount  /api/history    │
    │    /api/upload/*        /api/ocr         /api/cron/*     │
    │    /health                                               │
    │                                                          │
    │  Exception Handlers:                                     │
    │    FundFlowError → its status_code / error_code          │
    │    RequestValidationError → 400                          │
    │    HTTPException → its status                            │
    │    Exception → 500 (logged with traceback)               │
    └──────────────────────────────────────────────────────────┘

Every error body has the same shape:
    {"success": false, "message": ..., "error": ..., "details": ..., "request_id": ...}
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from fundflow import __version__
from fundflow.config import settings
from fundflow.database import dispose_engine
from fundflow.exceptions import FundFlowError, IntegrationError
from fundflow.middleware.logging import RequestLoggingMiddleware
from fundflow.middleware.request_id import RequestIDMiddleware, request_id_var
from fundflow.routes import approvals, auth, configs, cron, health, ocr, transactions, uploads

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure the root logger once, before anything else logs.

    Format: 2025-01-15T12:00:00 [INFO] fundflow.services.ledger_service: ...
    Output goes to stdout so container runtimes collect it.
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Third-party loggers that are chatty at INFO
    for name in ("uvicorn.access", "sqlalchemy.engine", "httpcore", "httpx", "cloudinary"):
        logging.getLogger(name).setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging()
    logger.info("=" * 60)
    logger.info("FundFlow Backend %s starting up...", __version__)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        # Keep serving: health checks and unaffected endpoints still work
        logger.error("Configuration error: %s", str(e))

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("API docs: http://%s:%d/docs", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("FundFlow Backend shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", None) or request_id_var.get("")


def error_response(
    request: Request,
    status_code: int,
    error: str,
    message: str,
    details: Optional[Dict[str, Any]] = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "message": message,
            "error": error,
            "details": details or None,
            "request_id": _request_id(request),
        },
    )


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exceptions to the JSON error envelope.

    Client errors (4xx) return the exception context as `details`. Server
    errors never expose internals: integration failures report only which
    service failed, and anything else gets a generic message. Full context
    goes to the server log.
    """

    @app.exception_handler(FundFlowError)
    async def handle_fundflow_error(request: Request, exc: FundFlowError):
        rid = _request_id(request)
        if exc.status_code < 500:
            logger.warning("[%s] %s: %s", rid, exc.error_code, exc.message)
            return error_response(request, exc.status_code, exc.error_code, exc.message, exc.context)

        logger.error("[%s] %s: %s | Context: %s", rid, exc.error_code, exc.message, exc.context)
        if isinstance(exc, IntegrationError):
            return error_response(
                request,
                exc.status_code,
                exc.error_code,
                exc.message,
                {"service": exc.service},
            )
        return error_response(
            request,
            exc.status_code,
            exc.error_code,
            "An internal error occurred. Please try again later.",
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        errors = jsonable_encoder(exc.errors(), exclude={"ctx", "url", "input"})
        first = errors[0] if errors else {}
        field = ".".join(str(part) for part in first.get("loc", ())[1:]) or None
        message = first.get("msg", "Validation failed")
        if field:
            message = f"{field}: {message}"
        logger.warning("[%s] Request validation failed: %s", _request_id(request), message)
        return error_response(request, 400, "validation_error", message, {"errors": errors})

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        return error_response(request, exc.status_code, "http_error", str(exc.detail))

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error("[%s] Unexpected error: %s", _request_id(request), str(exc), exc_info=True)
        return error_response(
            request,
            500,
            "internal_server_error",
            "An unexpected error occurred. Please try again or contact support.",
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    app = FastAPI(
        title="FundFlow API",
        description=(
            "Approval inbox and expense tracking for a shared team fund: "
            "transactions with line items and receipts, a running net amount "
            "with full history, receipt OCR and chat reminders."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # Last added runs first: RequestID → Logging → GZip → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.include_router(auth.router)
    app.include_router(approvals.router)
    app.include_router(cron.router)
    app.include_router(configs.router)
    app.include_router(transactions.router)
    app.include_router(uploads.router)
    app.include_router(ocr.router)
    app.include_router(health.router)

    return app


app = create_app()
