"""
Invoice service: numbering, validation, totals and owner-scoped storage.

Create flow: resolve a unique invoice number, validate (strict path only),
derive totals from items and tax percent, insert. Updates recompute totals
from the merged record, so stored totals always match their inputs.
"""

import logging
from typing import Any
from uuid import UUID, uuid4

import psycopg2.errors
from psycopg2.extras import Json

from clients.postgres_client import PostgresClient
from core.audit import AuditAction, AuditEntity, AuditLogger, compute_changes
from core.config import InvoiceConfig
from core.exceptions import InvoiceNumberConflictError, InvoiceValidationError
from core.invoice_numbers import InvoiceNumberAllocator
from core.models import (
    ImageKind,
    Invoice,
    InvoiceDraft,
    InvoiceStatus,
    InvoiceSummary,
    InvoiceUpdate,
    LineItem,
)
from core.totals import compute_totals
from core.validation import validate_invoice
from utils.user_context import get_current_owner_id
from utils.timezone import now_utc, today_utc

logger = logging.getLogger(__name__)

_UPDATABLE_COLUMNS = {
    "issue_date", "due_date",
    "from_business_name", "from_email", "from_address", "from_phone", "from_gst",
    "client", "items", "currency", "status", "tax_percent", "notes",
    "logo_url", "stamp_url", "signature_url", "signature_name", "signature_title",
}

# Explicit null clears these; for every other column null means "leave as is"
_NULLABLE_COLUMNS = {"issue_date", "due_date", "logo_url", "stamp_url", "signature_url"}

_UNPAID_STATUSES = {InvoiceStatus.UNPAID, InvoiceStatus.OVERDUE}


def _db_value(field: str, value: Any) -> Any:
    """Adapt a model value for psycopg2."""
    if field == "client":
        return Json(value.model_dump(mode="json"))
    if field == "items":
        return Json([item.model_dump(mode="json") for item in value])
    if field == "status":
        return value.value
    return value


def _present(items: list[LineItem | None]) -> list[LineItem]:
    """Drop the placeholders input models keep for entries that were not items."""
    return [item for item in items if item is not None]


class InvoiceService:
    """Service for invoice operations."""

    def __init__(self, postgres: PostgresClient, audit: AuditLogger, config: InvoiceConfig):
        self.postgres = postgres
        self.audit = audit
        self.config = config
        self.allocator = InvoiceNumberAllocator(
            exists=self.exists_by_invoice_number,
            max_attempts=config.number_max_attempts,
            allow_fallback=config.number_allow_fallback,
        )

    def exists_by_invoice_number(self, invoice_number: str) -> bool:
        """
        Whether an invoice number is already issued, across all owners.

        Invoice numbers double as an external lookup key, so uniqueness
        is global rather than per owner.
        """
        return bool(self.postgres.execute_scalar(
            "SELECT EXISTS(SELECT 1 FROM invoices WHERE invoice_number = %s)",
            (invoice_number,)
        ))

    def create(self, draft: InvoiceDraft, strict: bool = True) -> Invoice:
        """
        Create an invoice for the current owner.

        Args:
            draft: Submitted invoice data; totals are derived, never read
            strict: Reject invalid drafts. False saves whatever was given
                (autosave, AI drafts).

        Returns:
            Created invoice

        Raises:
            InvoiceNumberConflictError: Supplied number is already issued
            InvoiceValidationError: strict and the validator reported errors
            AllocationExhaustedError: Numbering gave up (fallback disabled)
        """
        owner_id = get_current_owner_id()

        invoice_number = (draft.invoice_number or "").strip()
        if invoice_number:
            if self.exists_by_invoice_number(invoice_number):
                raise InvoiceNumberConflictError(invoice_number)
        else:
            invoice_number = self.allocator.allocate()

        draft = draft.model_copy(update={"invoice_number": invoice_number})

        if strict:
            errors = validate_invoice(draft)
            if errors:
                raise InvoiceValidationError(errors)

        items = _present(draft.items)
        tax_percent = draft.tax_percent if draft.tax_percent is not None else 0.0
        totals = compute_totals(items, tax_percent)
        now = now_utc()

        values = {
            "id": uuid4(),
            "owner_id": owner_id,
            "invoice_number": invoice_number,
            "issue_date": draft.issue_date or today_utc(),
            "due_date": draft.due_date,
            "from_business_name": draft.from_business_name,
            "from_email": draft.from_email,
            "from_address": draft.from_address,
            "from_phone": draft.from_phone,
            "from_gst": draft.from_gst,
            "client": _db_value("client", draft.client),
            "items": _db_value("items", items),
            "currency": (draft.currency or self.config.default_currency).upper(),
            "status": draft.status.value,
            "tax_percent": tax_percent,
            "subtotal": totals.subtotal,
            "tax": totals.tax,
            "total": totals.total,
            "notes": draft.notes,
            "logo_url": draft.logo_url,
            "stamp_url": draft.stamp_url,
            "signature_url": draft.signature_url,
            "signature_name": draft.signature_name,
            "signature_title": draft.signature_title,
            "created_at": now,
            "updated_at": now,
        }

        columns = ", ".join(values)
        placeholders = ", ".join(["%s"] * len(values))

        try:
            row = self.postgres.execute_returning(
                f"INSERT INTO invoices ({columns}) VALUES ({placeholders}) RETURNING *",
                tuple(values.values())
            )[0]
        except psycopg2.errors.UniqueViolation as e:
            # Lost the check-then-insert race; the UNIQUE constraint caught it
            raise InvoiceNumberConflictError(invoice_number) from e

        invoice = Invoice.model_validate(row)

        self.audit.log_change(
            entity_type=AuditEntity.INVOICE,
            entity_id=invoice.id,
            action=AuditAction.CREATE,
            changes={"created": invoice.model_dump(mode="json")}
        )

        logger.info(f"Created invoice {invoice.invoice_number} ({'strict' if strict else 'draft'})")
        return invoice

    def get_by_id(self, invoice_id: UUID) -> Invoice | None:
        """
        Get one of the current owner's invoices by ID.

        Returns:
            Invoice if found and owned, None otherwise.
        """
        row = self.postgres.execute_single(
            "SELECT * FROM invoices WHERE id = %s AND owner_id = %s",
            (invoice_id, get_current_owner_id())
        )

        if row is None:
            return None

        return Invoice.model_validate(row)

    def get_by_number(self, invoice_number: str) -> Invoice | None:
        """Get one of the current owner's invoices by invoice number."""
        row = self.postgres.execute_single(
            "SELECT * FROM invoices WHERE invoice_number = %s AND owner_id = %s",
            (invoice_number, get_current_owner_id())
        )

        if row is None:
            return None

        return Invoice.model_validate(row)

    def get(self, identifier: str) -> Invoice | None:
        """Look up by UUID if identifier parses as one, else by invoice number."""
        try:
            invoice_id = UUID(identifier)
        except ValueError:
            return self.get_by_number(identifier)
        return self.get_by_id(invoice_id)

    def list_for_owner(
        self,
        status: InvoiceStatus | None = None,
        invoice_number: str | None = None,
        limit: int = 50,
        offset: int = 0
    ) -> list[Invoice]:
        """
        List the current owner's invoices, newest first.

        Args:
            status: Only this status
            invoice_number: Only this exact number
            limit: Maximum results
            offset: Rows to skip
        """
        conditions = ["owner_id = %s"]
        params: list[Any] = [get_current_owner_id()]

        if status is not None:
            conditions.append("status = %s")
            params.append(status.value)
        if invoice_number:
            conditions.append("invoice_number = %s")
            params.append(invoice_number)

        params.extend([limit, offset])

        rows = self.postgres.execute(
            f"""
            SELECT * FROM invoices
            WHERE {' AND '.join(conditions)}
            ORDER BY created_at DESC
            LIMIT %s OFFSET %s
            """,
            tuple(params)
        )

        return [Invoice.model_validate(row) for row in rows]

    def update(self, invoice_id: UUID, data: InvoiceUpdate, strict: bool = True) -> Invoice:
        """
        Update invoice fields; totals are recomputed from the result.

        Args:
            invoice_id: Invoice UUID
            data: Fields to change. Unset fields are left alone.
            strict: Reject the update if the merged invoice is invalid

        Returns:
            Updated invoice

        Raises:
            ValueError: If invoice not found
            InvoiceValidationError: strict and the merged invoice is invalid
        """
        current = self.get_by_id(invoice_id)
        if current is None:
            raise ValueError(f"Invoice {invoice_id} not found")

        changes = {}
        for field in data.model_fields_set:
            if field not in _UPDATABLE_COLUMNS:
                logger.warning(f"Attempted to update unknown field '{field}' on invoice {invoice_id}")
                continue
            value = getattr(data, field)
            if value is None and field not in _NULLABLE_COLUMNS:
                continue
            changes[field] = value

        if "currency" in changes:
            changes["currency"] = changes["currency"].upper()

        merged = current.model_copy(update=changes)

        if strict:
            errors = validate_invoice(merged)
            if errors:
                raise InvoiceValidationError(errors)

        merged = merged.model_copy(update={"items": _present(merged.items)})
        totals = compute_totals(merged.items, merged.tax_percent)
        merged = merged.model_copy(update=totals.model_dump())

        set_parts = []
        params = []
        for field in sorted(_UPDATABLE_COLUMNS | {"subtotal", "tax", "total"}):
            set_parts.append(f"{field} = %s")
            params.append(_db_value(field, getattr(merged, field)))

        set_parts.append("updated_at = %s")
        params.append(now_utc())
        params.extend([invoice_id, current.owner_id])

        row = self.postgres.execute_returning(
            f"""
            UPDATE invoices
            SET {', '.join(set_parts)}
            WHERE id = %s AND owner_id = %s
            RETURNING *
            """,
            tuple(params)
        )[0]

        updated = Invoice.model_validate(row)

        diff = compute_changes(
            current.model_dump(mode="json"),
            updated.model_dump(mode="json")
        )
        if diff:
            self.audit.log_change(
                entity_type=AuditEntity.INVOICE,
                entity_id=invoice_id,
                action=AuditAction.UPDATE,
                changes=diff
            )

        return updated

    def set_status(self, invoice_id: UUID, status: InvoiceStatus) -> Invoice:
        """Change status only. Totals and other fields are untouched."""
        return self.update(invoice_id, InvoiceUpdate(status=status), strict=False)

    def send(self, invoice_id: UUID) -> Invoice:
        """
        Mark an invoice as sent.

        Raises:
            ValueError: If invoice not found
            InvoiceValidationError: If the invoice is not complete enough to send
        """
        current = self.get_by_id(invoice_id)
        if current is None:
            raise ValueError(f"Invoice {invoice_id} not found")

        errors = validate_invoice(current)
        if errors:
            raise InvoiceValidationError(errors)

        return self.set_status(invoice_id, InvoiceStatus.SENT)

    def set_image(self, invoice_id: UUID, kind: ImageKind, url: str | None) -> Invoice:
        """Store (or clear) an uploaded image URL on the invoice."""
        return self.update(invoice_id, InvoiceUpdate(**{kind.column: url}), strict=False)

    def delete(self, invoice_id: UUID) -> bool:
        """
        Hard delete one of the current owner's invoices.

        Returns:
            True if deleted, False if not found
        """
        row = self.postgres.execute_single(
            "DELETE FROM invoices WHERE id = %s AND owner_id = %s RETURNING *",
            (invoice_id, get_current_owner_id())
        )
        if row is None:
            return False

        deleted = Invoice.model_validate(row)
        self.audit.log_change(
            entity_type=AuditEntity.INVOICE,
            entity_id=invoice_id,
            action=AuditAction.DELETE,
            changes={"deleted": deleted.model_dump(mode="json")}
        )

        return True

    def history(self, invoice_id: UUID) -> list[dict[str, Any]]:
        """
        Audit entries for one of the owner's invoices, newest first.

        Raises:
            ValueError: If invoice not found
        """
        if self.get_by_id(invoice_id) is None:
            raise ValueError(f"Invoice {invoice_id} not found")
        return self.audit.get_entity_history(AuditEntity.INVOICE, invoice_id)

    def summary(self) -> list[InvoiceSummary]:
        """
        Dashboard KPIs for the current owner, one entry per currency.

        Unpaid covers both unpaid and overdue invoices.
        """
        rows = self.postgres.execute(
            """
            SELECT currency, status, COUNT(*) AS count, COALESCE(SUM(total), 0) AS amount
            FROM invoices
            WHERE owner_id = %s
            GROUP BY currency, status
            """,
            (get_current_owner_id(),)
        )

        by_currency: dict[str, InvoiceSummary] = {}
        for row in rows:
            currency = row["currency"]
            summary = by_currency.setdefault(currency, InvoiceSummary(currency=currency))
            status = InvoiceStatus.normalize(row["status"])
            count = int(row["count"])
            amount = float(row["amount"])

            summary.invoice_count += count
            if status == InvoiceStatus.PAID:
                summary.paid_count += count
                summary.paid_total += amount
            elif status in _UNPAID_STATUSES:
                summary.unpaid_count += count
                summary.unpaid_total += amount
            elif status == InvoiceStatus.DRAFT:
                summary.draft_count += count

        return [by_currency[c] for c in sorted(by_currency)]
