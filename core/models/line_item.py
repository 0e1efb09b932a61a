"""Line item domain models.

Amounts are plain floats; rounding is a display concern.
"""

import json
import logging
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from utils.numbers import to_number

logger = logging.getLogger(__name__)

# Producers disagree on key names: manual entry sends qty/unitPrice,
# the AI extraction prompt asks for quantity/unit_price.
_QUANTITY_KEYS = ("quantity", "qty")
_UNIT_PRICE_KEYS = ("unit_price", "unitPrice")


def _first_present(raw: Mapping, keys: tuple[str, ...]) -> Any:
    for key in keys:
        if raw.get(key) is not None:
            return raw[key]
    return None


def raw_quantity(raw: Mapping, default: float = 0.0) -> float:
    """Quantity from a raw item mapping; missing or unparseable -> default."""
    value = _first_present(raw, _QUANTITY_KEYS)
    if value is None:
        return default
    return to_number(value, default)


def raw_unit_price(raw: Mapping) -> float:
    """Unit price from a raw item mapping; missing or unparseable -> 0."""
    return to_number(_first_present(raw, _UNIT_PRICE_KEYS))


class LineItem(BaseModel):
    """One billable row on an invoice."""

    description: str = Field("", max_length=500)
    quantity: float = 0.0
    unit_price: float = 0.0

    @property
    def amount(self) -> float:
        """quantity x unit_price."""
        return self.quantity * self.unit_price

    @classmethod
    def from_raw(cls, raw: Any, default_quantity: float = 0.0) -> "LineItem | None":
        """
        Adapt a loosely-typed item into a LineItem.

        Args:
            raw: LineItem, mapping with any of the known key spellings, or junk
            default_quantity: Quantity used when the raw value is missing or
                unparseable (0 for manual entry, 1 for AI extraction)

        Returns:
            LineItem, or None if raw is not item-shaped
        """
        if isinstance(raw, LineItem):
            return raw
        if not isinstance(raw, Mapping):
            return None

        description = raw.get("description")

        return cls(
            description="" if description is None else str(description).strip(),
            quantity=raw_quantity(raw, default_quantity),
            unit_price=raw_unit_price(raw),
        )

    @classmethod
    def from_raw_list(
        cls, raw: Any, default_quantity: float = 0.0, keep_invalid: bool = False
    ) -> list["LineItem | None"]:
        """
        Adapt a raw items payload into a list of LineItems.

        Accepts a list or a JSON-encoded list (multipart form fields arrive
        as strings). Entries that are not item-shaped are dropped, or kept
        as None with keep_invalid so positions match the submitted list.
        """
        if raw is None:
            return []
        if isinstance(raw, str):
            try:
                raw = json.loads(raw)
            except json.JSONDecodeError:
                logger.warning("Discarding unparseable items payload")
                return []
        if not isinstance(raw, (list, tuple)):
            return []

        items = []
        for entry in raw:
            if keep_invalid:
                try:
                    items.append(cls.from_raw(entry, default_quantity=default_quantity))
                except ValidationError:
                    items.append(None)
                continue
            item = cls.from_raw(entry, default_quantity=default_quantity)
            if item is not None:
                items.append(item)
        return items
