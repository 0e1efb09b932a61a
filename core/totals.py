"""
Invoice total computation.

subtotal = sum(quantity * unit_price), tax = subtotal * tax_percent / 100,
total = subtotal + tax. No rounding: values are plain float sums so
recomputing from the same inputs always yields the same numbers.
"""

from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import BaseModel

from core.models.line_item import LineItem, raw_quantity, raw_unit_price
from utils.numbers import to_number


class InvoiceTotals(BaseModel):
    """Derived invoice amounts."""

    subtotal: float
    tax: float
    total: float

    model_config = {"frozen": True}


def _item_amount(entry: Any) -> float | None:
    if isinstance(entry, LineItem):
        return entry.amount
    if isinstance(entry, Mapping):
        return raw_quantity(entry) * raw_unit_price(entry)
    return None


def compute_totals(items: Iterable[Any] | None, tax_percent: Any = 0) -> InvoiceTotals:
    """
    Compute subtotal, tax and total for a list of items.

    Pure and total: never raises. Entries that are not LineItems or
    mappings (None, strings, numbers) are skipped; unparseable quantities
    and prices count as 0. Negative values are multiplied as given;
    rejecting them is the validator's job.

    Args:
        items: LineItems and/or raw item mappings
        tax_percent: Tax rate in percent (18 = 18%); invalid -> 0

    Returns:
        InvoiceTotals
    """
    subtotal = 0.0
    if items is not None and not isinstance(items, (str, bytes, Mapping)):
        for entry in items:
            amount = _item_amount(entry)
            if amount is not None:
                subtotal += amount

    tax = subtotal * to_number(tax_percent) / 100
    return InvoiceTotals(subtotal=subtotal, tax=tax, total=subtotal + tax)
