"""Shared test fixtures for the invoicing test suite."""

from datetime import date, datetime, timezone
from pathlib import Path
from unittest.mock import Mock
from uuid import UUID

import pytest
from dotenv import load_dotenv

# Load .env file BEFORE any other imports that might use env vars
load_dotenv(Path(__file__).parent.parent / ".env", override=True)

# Reset vault client singleton to pick up env vars
import clients.vault_client as vault_module
vault_module._vault_client_instance = None
vault_module._secret_cache.clear()

from clients.postgres_client import PostgresClient
from core.audit import AuditLogger
from core.config import InvoiceConfig
from utils.user_context import owner_context, clear_current_owner_id


# =============================================================================
# TEST OWNER CONSTANTS
# =============================================================================

# Primary test owner - use for single-owner tests
TEST_OWNER_ID = "user_test_a"

# Secondary test owner - use for isolation tests
TEST_OWNER_B_ID = "user_test_b"

FIXED_NOW = datetime(2026, 10, 19, 9, 30, tzinfo=timezone.utc)


# =============================================================================
# OWNER CONTEXT FIXTURES
# =============================================================================


@pytest.fixture(autouse=True)
def reset_owner_context():
    """Ensure clean owner context before and after each test."""
    clear_current_owner_id()
    yield
    clear_current_owner_id()


@pytest.fixture
def test_owner_id() -> str:
    """The primary test owner's ID."""
    return TEST_OWNER_ID


@pytest.fixture
def test_owner_b_id() -> str:
    """The secondary test owner's ID (for isolation tests)."""
    return TEST_OWNER_B_ID


@pytest.fixture
def as_test_owner(test_owner_id):
    """Run the test as the primary test owner."""
    with owner_context(test_owner_id):
        yield test_owner_id


# =============================================================================
# STORAGE FIXTURES
# =============================================================================


@pytest.fixture
def db():
    """PostgresClient stub. Set return values per test."""
    return Mock(spec=PostgresClient)


@pytest.fixture
def audit():
    """AuditLogger stub."""
    return Mock(spec=AuditLogger)


@pytest.fixture
def invoice_config() -> InvoiceConfig:
    return InvoiceConfig()


# =============================================================================
# ROW BUILDERS
# =============================================================================


def _invoice_row(**overrides) -> dict:
    """A stored invoice row as RealDictCursor returns it."""
    row = {
        "id": UUID("11111111-1111-1111-1111-111111111111"),
        "owner_id": TEST_OWNER_ID,
        "invoice_number": "INV-20261019-000123",
        "issue_date": date(2026, 10, 19),
        "due_date": date(2026, 11, 2),
        "from_business_name": "Acme Studio",
        "from_email": "billing@acme.test",
        "from_address": "1 Main St",
        "from_phone": "",
        "from_gst": "",
        "client": {"name": "Globex", "email": "ap@globex.test", "phone": "", "address": ""},
        "items": [{"description": "Design", "quantity": 2, "unit_price": 500}],
        "currency": "INR",
        "status": "draft",
        "tax_percent": 18.0,
        "subtotal": 1000.0,
        "tax": 180.0,
        "total": 1180.0,
        "notes": "",
        "logo_url": None,
        "stamp_url": None,
        "signature_url": None,
        "signature_name": "",
        "signature_title": "",
        "created_at": FIXED_NOW,
        "updated_at": FIXED_NOW,
    }
    row.update(overrides)
    return row


def _profile_row(**overrides) -> dict:
    """A stored business profile row."""
    row = {
        "id": UUID("22222222-2222-2222-2222-222222222222"),
        "owner_id": TEST_OWNER_ID,
        "business_name": "Acme Studio",
        "email": "billing@acme.test",
        "address": "1 Main St",
        "phone": "+91 99999 00000",
        "gst": "29ABCDE1234F1Z5",
        "logo_url": "https://cdn.test/invoiceapp/logos/abc_logo.png",
        "stamp_url": None,
        "signature_url": None,
        "signature_owner_name": "Jane Doe",
        "signature_owner_title": "Director",
        "default_tax_percent": 18.0,
        "created_at": FIXED_NOW,
        "updated_at": FIXED_NOW,
    }
    row.update(overrides)
    return row


@pytest.fixture
def make_invoice_row():
    """Builder for stored invoice rows; pass column overrides."""
    return _invoice_row


@pytest.fixture
def make_profile_row():
    """Builder for stored profile rows; pass column overrides."""
    return _profile_row


@pytest.fixture
def invoice_row():
    return _invoice_row()


@pytest.fixture
def profile_row():
    return _profile_row()
