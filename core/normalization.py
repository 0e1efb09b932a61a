"""
Normalize AI-extracted invoice JSON into the canonical InvoiceDraft shape.

The model is asked for a fixed structure but answers vary: quantity vs qty,
unit_price vs unitPrice, payment_status vs status, client vs client_details.
All of that is resolved here, once, before validation and totals run.

Defaults on this path: missing quantity -> 1, missing unit price -> 0,
unrecognized status -> draft, missing issue date -> today, missing due
date -> issue date. A missing tax rate stays None here; apply_business_profile
fills it from the owner's profile, then from the configured default.
"""

from collections.abc import Mapping
from typing import Any

from core.config import InvoiceConfig
from core.models import BusinessProfile, ClientInfo, InvoiceDraft, InvoiceStatus, LineItem
from utils.numbers import to_number
from utils.timezone import parse_date, today_utc

AI_DEFAULT_QUANTITY = 1.0

_CLIENT_KEYS = ("client", "client_details", "clientDetails")
_STATUS_KEYS = ("payment_status", "paymentStatus", "status")
_TAX_KEYS = ("tax_rate", "taxRate", "tax_percent", "taxPercent")
_ISSUE_DATE_KEYS = ("invoice_date", "invoiceDate", "issue_date", "date")
_DUE_DATE_KEYS = ("due_date", "dueDate")


def _first(raw: Mapping, keys: tuple[str, ...]) -> Any:
    for key in keys:
        value = raw.get(key)
        if value is not None and value != "":
            return value
    return None


def _clip(value: Any, limit: int) -> str:
    if value is None:
        return ""
    return str(value).strip()[:limit]


def normalize_extracted_item(raw: Any) -> LineItem | None:
    """Adapt one extracted item. Non-mapping entries return None."""
    if not isinstance(raw, Mapping):
        return None
    cleaned = dict(raw)
    cleaned["description"] = _clip(raw.get("description"), 500)
    return LineItem.from_raw(cleaned, default_quantity=AI_DEFAULT_QUANTITY)


def _normalize_client(raw: Mapping) -> ClientInfo:
    client = None
    for key in _CLIENT_KEYS:
        if isinstance(raw.get(key), Mapping):
            client = raw[key]
            break
    if client is None:
        return ClientInfo()

    return ClientInfo(
        name=_clip(client.get("name"), 255),
        email=_clip(client.get("email"), 255),
        phone=_clip(client.get("phone"), 50),
        address=_clip(client.get("address"), 500),
    )


def normalize_extracted_invoice(raw: Any, config: InvoiceConfig) -> InvoiceDraft:
    """
    Map an extraction result onto an InvoiceDraft.

    Args:
        raw: Parsed JSON from the model. Anything that is not a mapping is
            treated as an empty result.
        config: Supplies the default currency

    Returns:
        InvoiceDraft with no invoice number (allocated on save)
    """
    if not isinstance(raw, Mapping):
        raw = {}

    issue_date = parse_date(_first(raw, _ISSUE_DATE_KEYS)) or today_utc()
    due_date = parse_date(_first(raw, _DUE_DATE_KEYS)) or issue_date

    tax_raw = _first(raw, _TAX_KEYS)
    tax_percent = None if tax_raw is None else to_number(tax_raw)

    currency = _first(raw, ("currency",))
    currency = _clip(currency, 8).upper() if currency is not None else config.default_currency

    raw_items = raw.get("items")
    items = []
    if isinstance(raw_items, (list, tuple)):
        for entry in raw_items:
            item = normalize_extracted_item(entry)
            if item is not None:
                items.append(item)

    return InvoiceDraft(
        issue_date=issue_date,
        due_date=due_date,
        client=_normalize_client(raw),
        items=items,
        currency=currency or config.default_currency,
        status=InvoiceStatus.normalize(_first(raw, _STATUS_KEYS)),
        tax_percent=tax_percent,
        notes=_clip(raw.get("notes"), 5000),
    )


_PROFILE_FIELDS = {
    "from_business_name": "business_name",
    "from_email": "email",
    "from_address": "address",
    "from_phone": "phone",
    "from_gst": "gst",
    "logo_url": "logo_url",
    "stamp_url": "stamp_url",
    "signature_url": "signature_url",
    "signature_name": "signature_owner_name",
    "signature_title": "signature_owner_title",
}


def apply_business_profile(
    draft: InvoiceDraft,
    profile: BusinessProfile | None,
    default_tax_percent: float | None = None,
) -> InvoiceDraft:
    """
    Fill the issuer fields and tax rate of a draft from the owner's business profile.

    Only empty draft fields are filled. Returns a new draft.

    Args:
        draft: Normalized extraction result
        profile: Owner's profile, None if they have not saved one
        default_tax_percent: Tax rate used when neither the draft nor the
            profile has one
    """
    updates = {}
    if profile is not None:
        for draft_field, profile_field in _PROFILE_FIELDS.items():
            if not getattr(draft, draft_field):
                value = getattr(profile, profile_field)
                if value:
                    updates[draft_field] = value

    if draft.tax_percent is None:
        if profile is not None:
            updates["tax_percent"] = profile.default_tax_percent
        elif default_tax_percent is not None:
            updates["tax_percent"] = default_tax_percent

    return draft.model_copy(update=updates)
