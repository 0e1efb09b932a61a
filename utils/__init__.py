"""Utility modules for cross-cutting concerns."""

from utils.timezone import now_utc, today_utc, to_utc, parse_iso, parse_date
from utils.numbers import to_number
from utils.user_context import (
    get_current_owner_id,
    set_current_owner_id,
    clear_current_owner_id,
    owner_context,
)
