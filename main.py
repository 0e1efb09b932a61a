"""
Application entry point.

    uvicorn main:create_app --factory

Without arguments create_app() builds every client from Vault secrets;
tests pass prebuilt services and a session manager instead.
"""

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI

from api.ai import create_ai_router
from api.base import success_response
from api.business_profile import create_business_profile_router
from api.errors import register_error_handlers
from api.invoices import create_invoices_router
from api.middleware import RequestIDMiddleware
from auth.api import create_auth_router
from auth.config import AuthConfig
from auth.security_middleware import AuthMiddleware
from auth.session import SessionManager
from clients.llm_client import LLMClient
from clients.media_client import MediaClient
from clients.postgres_client import PostgresClient
from clients.valkey_client import ValkeyClient
from clients.vault_client import get_database_url, get_valkey_url
from core.audit import AuditLogger
from core.config import InvoiceConfig
from core.extraction import InvoiceExtractor
from core.services.business_profile_service import BusinessProfileService
from core.services.invoice_service import InvoiceService

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    PostgresClient.close_all_pools()


def build_services(config: InvoiceConfig) -> dict:
    """Wire clients and services from Vault configuration."""
    postgres = PostgresClient(get_database_url())
    audit = AuditLogger(postgres)

    return {
        "invoice": InvoiceService(postgres, audit, config),
        "business_profile": BusinessProfileService(postgres, audit, config),
        "extractor": InvoiceExtractor(LLMClient(), config),
        "media": MediaClient(max_bytes=config.max_upload_bytes),
    }


def create_app(
    services: dict | None = None,
    session_manager: SessionManager | None = None,
    config: InvoiceConfig | None = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        services: Prebuilt services dict (keys: invoice, business_profile,
            extractor, media). Built from Vault when None.
        session_manager: Session validator. Valkey-backed when None.
        config: Business defaults
    """
    logging.basicConfig(
        level=os.environ.get("LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = config or InvoiceConfig()
    services = services or build_services(config)
    session_manager = session_manager or SessionManager(ValkeyClient(get_valkey_url()), AuthConfig())

    app = FastAPI(title="Invoicing API", lifespan=lifespan)
    # Added last = runs first, so the request id exists before auth errors are rendered
    app.add_middleware(AuthMiddleware, session_manager=session_manager)
    app.add_middleware(RequestIDMiddleware)
    register_error_handlers(app)

    app.include_router(create_invoices_router(services), prefix="/api")
    app.include_router(create_business_profile_router(services), prefix="/api")
    app.include_router(create_ai_router(services, config), prefix="/api")
    app.include_router(create_auth_router(session_manager), prefix="/api/auth")

    @app.get("/health")
    async def health():
        return success_response({"status": "ok"}).model_dump(mode="json")

    logger.info("Application created")
    return app

