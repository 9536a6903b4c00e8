"""SinalVerde FastAPI application."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from collections.abc import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from sinalverde import __version__
from sinalverde.adapters.whatsapp import CredentialStore, SessionClientFactory, pyaileys_client_factory
from sinalverde.api.deps import AppContext
from sinalverde.api.middleware import ApiKeyMiddleware, RequestLoggingMiddleware
from sinalverde.api.routes import health, messages, session
from sinalverde.config import Settings, configure_logging, settings as default_settings
from sinalverde.messaging import BatchValidationError, MessagingGateway
from sinalverde.session import ConnectionSupervisor

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    ctx: AppContext = app.state.context
    cfg = ctx.settings
    configure_logging(cfg.log_level_value)

    logger.info("SinalVerde API listening on port %s", cfg.PORT)
    logger.info("API key: %s...", cfg.API_KEY[:10])

    if cfg.AUTO_CONNECT and ctx.supervisor.credentials.exists():
        logger.info("Stored session found, reconnecting automatically")
        ctx.supervisor.connect_in_background()
    else:
        logger.info("No stored session, call POST /connect to get a QR code")

    yield
    await ctx.supervisor.shutdown()


def create_app(
    settings: Settings | None = None,
    *,
    supervisor: ConnectionSupervisor | None = None,
    client_factory: SessionClientFactory | None = None,
) -> FastAPI:
    """Build the application around one supervisor and gateway."""
    cfg = settings or default_settings
    if supervisor is None:
        supervisor = ConnectionSupervisor(
            CredentialStore(cfg.AUTH_DIR),
            client_factory or pyaileys_client_factory(cfg.BROWSER_NAME),
        )

    app = FastAPI(
        title="SinalVerde WhatsApp API",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.context = AppContext(
        settings=cfg,
        supervisor=supervisor,
        gateway=MessagingGateway(supervisor),
    )

    app.add_middleware(ApiKeyMiddleware, api_key=cfg.API_KEY)
    app.add_middleware(RequestLoggingMiddleware)

    app.include_router(health.router)
    app.include_router(session.router)
    app.include_router(messages.router)

    # --- Exception handlers ---

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"error": "Invalid request body"})

    @app.exception_handler(BatchValidationError)
    async def batch_validation_handler(request: Request, exc: BatchValidationError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"error": str(exc)})

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"error": "Internal server error"})

    return app


app = create_app()
