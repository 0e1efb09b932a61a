"""
Invoice field validation.

Advisory only: returns every problem found as a human-readable message and
never raises or mutates. Callers decide whether a non-empty list blocks
persistence (strict create/update) or not (draft saves).
"""

import re
from typing import Any

from pydantic import ValidationError

from core.models.line_item import LineItem

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def is_valid_email(value: str) -> bool:
    """Loose local@domain.tld shape check."""
    return bool(EMAIL_PATTERN.match(value))


def _blank(value: Any) -> bool:
    return value is None or not str(value).strip()


def validate_invoice(invoice: Any, items: list[Any] | None = None) -> list[str]:
    """
    Validate an invoice before it is persisted.

    Args:
        invoice: InvoiceDraft or Invoice (anything with the same attributes)
        items: Items to check; defaults to invoice.items

    Returns:
        List of error messages, empty when valid. Item messages carry the
        1-based item position.
    """
    errors = []

    if _blank(getattr(invoice, "invoice_number", None)):
        errors.append("Invoice number is required")

    if getattr(invoice, "issue_date", None) is None:
        errors.append("Invoice date is required")

    if _blank(getattr(invoice, "from_business_name", None)):
        errors.append("Business name is required")

    from_email = getattr(invoice, "from_email", None)
    if _blank(from_email):
        errors.append("Business email is required")
    elif not is_valid_email(str(from_email).strip()):
        errors.append("Valid business email is required")

    client = getattr(invoice, "client", None)
    if _blank(getattr(client, "name", None)):
        errors.append("Client name is required")

    client_email = getattr(client, "email", None)
    if not _blank(client_email) and not is_valid_email(str(client_email).strip()):
        errors.append("Valid client email is required")

    if items is None:
        items = getattr(invoice, "items", None) or []

    if not items:
        errors.append("At least one item is required")
    else:
        for position, entry in enumerate(items, start=1):
            errors.extend(_validate_item(position, entry))

    tax_percent = getattr(invoice, "tax_percent", None)
    if tax_percent is not None and not 0 <= tax_percent <= 100:
        errors.append("Tax % must be between 0 and 100")

    return errors


def _validate_item(position: int, entry: Any) -> list[str]:
    try:
        item = LineItem.from_raw(entry)
    except ValidationError:
        item = None
    if item is None:
        return [f"Item {position}: Invalid item"]

    errors = []
    if _blank(item.description):
        errors.append(f"Item {position}: Description is required")
    if item.quantity <= 0:
        errors.append(f"Item {position}: Quantity must be > 0")
    if item.unit_price < 0:
        errors.append(f"Item {position}: Unit price must be >= 0")
    return errors
