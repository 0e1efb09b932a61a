"""
Invoice number allocation.

Numbers look like INV-20261019-048213: UTC date plus a 6-digit random
suffix. Each candidate is checked against already-issued numbers and
retried on collision, up to a fixed number of attempts.

The check and the later insert are not atomic, so two concurrent
allocations can still pick the same number. The UNIQUE constraint on
invoices.invoice_number is the authoritative guard; this loop only makes
that race rare.
"""

import logging
import secrets
from datetime import datetime
from typing import Callable
from uuid import uuid4

from utils.timezone import now_utc

logger = logging.getLogger(__name__)

INVOICE_NUMBER_PREFIX = "INV-"
_SUFFIX_DIGITS = 6


class AllocationExhaustedError(Exception):
    """Every candidate collided and fallback is disabled."""

    def __init__(self, attempts: int):
        self.attempts = attempts
        super().__init__(f"Could not allocate a unique invoice number after {attempts} attempts")


class InvoiceNumberAllocator:
    """
    Produce collision-checked invoice numbers.

    Usage:
        allocator = InvoiceNumberAllocator(exists=invoice_service.exists_by_invoice_number)
        number = allocator.allocate()
    """

    def __init__(
        self,
        exists: Callable[[str], bool],
        max_attempts: int = 10,
        allow_fallback: bool = True,
        clock: Callable[[], datetime] = now_utc,
    ):
        """
        Args:
            exists: Returns True if a candidate is already issued. Errors it
                raises propagate to the caller unchanged.
            max_attempts: Candidates checked before giving up on the loop
            allow_fallback: On exhaustion, return a candidate with an extra
                random token (unchecked) instead of raising
            clock: UTC time source for the date segment
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

        self._exists = exists
        self._max_attempts = max_attempts
        self._allow_fallback = allow_fallback
        self._clock = clock

    def generate_candidate(self) -> str:
        """Build one candidate number (no uniqueness check)."""
        date_part = self._clock().strftime("%Y%m%d")
        suffix = secrets.randbelow(10 ** _SUFFIX_DIGITS)
        return f"{INVOICE_NUMBER_PREFIX}{date_part}-{suffix:0{_SUFFIX_DIGITS}d}"

    def allocate(self) -> str:
        """
        Return an invoice number not reported as existing.

        Raises:
            AllocationExhaustedError: All attempts collided and fallback is off
        """
        candidate = None
        for attempt in range(1, self._max_attempts + 1):
            candidate = self.generate_candidate()
            if not self._exists(candidate):
                return candidate
            logger.info(f"Invoice number collision on attempt {attempt}: {candidate}")

        if not self._allow_fallback:
            raise AllocationExhaustedError(self._max_attempts)

        fallback = f"{candidate}-{uuid4().hex[:8].upper()}"
        logger.warning(
            f"Invoice number allocation exhausted {self._max_attempts} attempts, "
            f"using unchecked fallback {fallback}"
        )
        return fallback
