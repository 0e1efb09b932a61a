"""Invoice domain models.

Totals (subtotal, tax, total) are derived from items and tax_percent and are
never accepted from callers. Amounts are plain floats, not pre-rounded.
"""

from datetime import date, datetime
from enum import Enum
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field, computed_field, field_validator

from core.models.line_item import LineItem
from utils.numbers import to_number
from utils.timezone import parse_date


class InvoiceStatus(str, Enum):
    """Invoice payment status. Closed set."""

    DRAFT = "draft"
    SENT = "sent"
    PAID = "paid"
    UNPAID = "unpaid"
    OVERDUE = "overdue"

    @classmethod
    def normalize(cls, value: Any) -> "InvoiceStatus":
        """
        Map any input onto the enumeration.

        Case-insensitive exact match on the value; anything else
        (missing, empty, "Partially paid", ...) becomes DRAFT.
        """
        if isinstance(value, cls):
            return value
        if value is None:
            return cls.DRAFT
        text = str(value).strip().lower()
        for status in cls:
            if status.value == text:
                return status
        return cls.DRAFT


def _optional_percent(value: Any) -> float | None:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return to_number(value)


def _text(value: Any) -> str:
    return "" if value is None else str(value)


class ClientInfo(BaseModel):
    """Billed party details, stored inline on the invoice."""

    name: str = Field("", max_length=255)
    email: str = Field("", max_length=255)
    phone: str = Field("", max_length=50)
    address: str = Field("", max_length=500)

    @field_validator("name", "email", "phone", "address", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> str:
        return _text(v).strip()


class InvoiceDraft(BaseModel):
    """Data submitted to create an invoice. Validation rules live in core.validation."""

    invoice_number: str | None = Field(None, max_length=64)
    issue_date: date | None = None
    due_date: date | None = None

    from_business_name: str = Field("", max_length=255)
    from_email: str = Field("", max_length=255)
    from_address: str = Field("", max_length=500)
    from_phone: str = Field("", max_length=50)
    from_gst: str = Field("", max_length=50)

    client: ClientInfo = Field(default_factory=ClientInfo)
    # None marks an entry that is not item-shaped; kept so validator positions match the request
    items: list[LineItem | None] = Field(default_factory=list)

    currency: str | None = Field(None, max_length=8)
    status: InvoiceStatus = InvoiceStatus.DRAFT
    tax_percent: float | None = None

    notes: str = Field("", max_length=5000)
    logo_url: str | None = None
    stamp_url: str | None = None
    signature_url: str | None = None
    signature_name: str = Field("", max_length=255)
    signature_title: str = Field("", max_length=255)

    @field_validator("items", mode="before")
    @classmethod
    def adapt_items(cls, v: Any) -> list[LineItem | None]:
        return LineItem.from_raw_list(v, keep_invalid=True)

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, v: Any) -> InvoiceStatus:
        return InvoiceStatus.normalize(v)

    @field_validator("tax_percent", mode="before")
    @classmethod
    def coerce_tax(cls, v: Any) -> float | None:
        return _optional_percent(v)

    @field_validator("issue_date", "due_date", mode="before")
    @classmethod
    def lenient_date(cls, v: Any) -> date | None:
        return parse_date(v)

    @field_validator(
        "from_business_name", "from_email", "from_address", "from_phone",
        "from_gst", "notes", "signature_name", "signature_title",
        mode="before",
    )
    @classmethod
    def none_to_empty(cls, v: Any) -> str:
        return _text(v)

    @field_validator("client", mode="before")
    @classmethod
    def client_or_empty(cls, v: Any) -> Any:
        return {} if v is None else v


class InvoiceUpdate(BaseModel):
    """Fields that can be changed on an invoice. All optional; number and owner are immutable."""

    issue_date: date | None = None
    due_date: date | None = None

    from_business_name: str | None = Field(None, max_length=255)
    from_email: str | None = Field(None, max_length=255)
    from_address: str | None = Field(None, max_length=500)
    from_phone: str | None = Field(None, max_length=50)
    from_gst: str | None = Field(None, max_length=50)

    client: ClientInfo | None = None
    items: list[LineItem | None] | None = None

    currency: str | None = Field(None, max_length=8)
    status: InvoiceStatus | None = None
    tax_percent: float | None = None

    notes: str | None = Field(None, max_length=5000)
    logo_url: str | None = None
    stamp_url: str | None = None
    signature_url: str | None = None
    signature_name: str | None = Field(None, max_length=255)
    signature_title: str | None = Field(None, max_length=255)

    @field_validator("items", mode="before")
    @classmethod
    def adapt_items(cls, v: Any) -> list[LineItem | None] | None:
        if v is None:
            return None
        return LineItem.from_raw_list(v, keep_invalid=True)

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, v: Any) -> InvoiceStatus | None:
        if v is None:
            return None
        return InvoiceStatus.normalize(v)

    @field_validator("tax_percent", mode="before")
    @classmethod
    def coerce_tax(cls, v: Any) -> float | None:
        return _optional_percent(v)

    @field_validator("issue_date", "due_date", mode="before")
    @classmethod
    def lenient_date(cls, v: Any) -> date | None:
        return parse_date(v)


class Invoice(BaseModel):
    """Full invoice entity as stored."""

    id: UUID
    owner_id: str
    invoice_number: str
    issue_date: date | None
    due_date: date | None

    from_business_name: str
    from_email: str
    from_address: str
    from_phone: str
    from_gst: str

    client: ClientInfo
    items: list[LineItem]

    currency: str
    status: InvoiceStatus
    tax_percent: float
    subtotal: float
    tax: float
    total: float

    notes: str
    logo_url: str | None
    stamp_url: str | None
    signature_url: str | None
    signature_name: str
    signature_title: str

    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, v: Any) -> InvoiceStatus:
        return InvoiceStatus.normalize(v)

    @field_validator("items", mode="before")
    @classmethod
    def adapt_items(cls, v: Any) -> list[LineItem]:
        return LineItem.from_raw_list(v)


class InvoiceSummary(BaseModel):
    """Dashboard KPIs for one currency."""

    currency: str
    invoice_count: int = 0
    paid_count: int = 0
    paid_total: float = 0.0
    unpaid_count: int = 0
    unpaid_total: float = 0.0
    draft_count: int = 0

    @computed_field
    @property
    def paid_percentage(self) -> float:
        """Share of paid amount in paid + unpaid, 0-100."""
        denominator = self.paid_total + self.unpaid_total
        if denominator <= 0:
            return 0.0
        return self.paid_total / denominator * 100
