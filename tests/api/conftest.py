"""API test fixtures: authenticated TestClient over mocked services."""

from datetime import timedelta
from unittest.mock import Mock

import pytest
from starlette.testclient import TestClient

from auth.session import SessionManager
from auth.types import Session
from clients.media_client import MediaClient
from core.extraction import InvoiceExtractor
from core.models import BusinessProfile, Invoice
from core.services.business_profile_service import BusinessProfileService
from core.services.invoice_service import InvoiceService
from main import create_app
from utils.timezone import now_utc


# =============================================================================
# SERVICE FIXTURES
# =============================================================================


@pytest.fixture
def invoice_service():
    return Mock(spec=InvoiceService)


@pytest.fixture
def business_profile_service():
    return Mock(spec=BusinessProfileService)


@pytest.fixture
def extractor():
    return Mock(spec=InvoiceExtractor)


@pytest.fixture
def media():
    return Mock(spec=MediaClient)


@pytest.fixture
def services(invoice_service, business_profile_service, extractor, media):
    return {
        "invoice": invoice_service,
        "business_profile": business_profile_service,
        "extractor": extractor,
        "media": media,
    }


@pytest.fixture
def invoice(invoice_row):
    return Invoice.model_validate(invoice_row)


@pytest.fixture
def profile(profile_row):
    return BusinessProfile.model_validate(profile_row)


# =============================================================================
# AUTH FIXTURES
# =============================================================================


@pytest.fixture
def mock_session_manager(test_owner_id):
    now = now_utc()
    mock = Mock(spec=SessionManager)
    mock.validate_session.return_value = Session(
        token="test-token",
        owner_id=test_owner_id,
        created_at=now,
        expires_at=now + timedelta(hours=24),
        last_activity_at=now,
    )
    return mock


# =============================================================================
# APP & CLIENT FIXTURES
# =============================================================================


@pytest.fixture
def app(mock_session_manager, services):
    """Full application: middleware stack, error handlers and all routers."""
    return create_app(services=services, session_manager=mock_session_manager)


@pytest.fixture
def client(app):
    """Authenticated test client."""
    c = TestClient(app, raise_server_exceptions=False)
    c.cookies.set("session_token", "test-token")
    return c


@pytest.fixture
def unauthed_client(app):
    """Unauthenticated test client (no session cookie)."""
    return TestClient(app, raise_server_exceptions=False)
