"""Core domain models."""

from core.models.line_item import LineItem
from core.models.image import ImageKind
from core.models.invoice import (
    Invoice,
    InvoiceDraft,
    InvoiceUpdate,
    InvoiceStatus,
    InvoiceSummary,
    ClientInfo,
)
from core.models.business_profile import (
    BusinessProfile,
    BusinessProfileCreate,
    BusinessProfileUpdate,
)

__all__ = [
    # LineItem
    "LineItem",
    # Images
    "ImageKind",
    # Invoice
    "Invoice", "InvoiceDraft", "InvoiceUpdate", "InvoiceStatus", "InvoiceSummary", "ClientInfo",
    # BusinessProfile
    "BusinessProfile", "BusinessProfileCreate", "BusinessProfileUpdate",
]
