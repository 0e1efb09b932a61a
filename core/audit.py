"""
Audit trail for invoice and business profile changes.

Append-only: each mutation records the acting owner and field-level
old/new values. Rows are never updated or deleted.
"""

from enum import Enum
from typing import Any
from uuid import UUID, uuid4

from psycopg2.extras import Json

from clients.postgres_client import PostgresClient
from utils.timezone import now_utc
from utils.user_context import get_current_owner_id


class AuditAction(Enum):
    """Type of change made to an entity."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class AuditEntity(str, Enum):
    """Audited entity kinds, stored in audit_log.entity_type."""

    INVOICE = "invoice"
    BUSINESS_PROFILE = "business_profile"


def compute_changes(
    old: dict[str, Any],
    new: dict[str, Any],
    exclude_fields: set[str] | None = None
) -> dict[str, dict[str, Any]]:
    """
    Field-level diff between two serialized entity states.

    Args:
        old: State before the write
        new: State after the write
        exclude_fields: Keys to ignore (defaults to {"updated_at"})

    Returns:
        {field: {"old": ..., "new": ...}} for each differing key; a key
        missing on one side counts as None. Empty when nothing changed.
    """
    exclude = exclude_fields or {"updated_at"}

    return {
        key: {"old": old.get(key), "new": new.get(key)}
        for key in sorted(set(old) | set(new))
        if key not in exclude and old.get(key) != new.get(key)
    }


class AuditLogger:
    """
    Writes and reads audit_log rows.

    Pass model_dump(mode="json") output so UUIDs, dates and enums land
    in JSONB as strings. Change payloads by action:

        CREATE  {"created": {...full entity...}}
        UPDATE  {field: {"old": ..., "new": ...}, ...}
        DELETE  {"deleted": {...full entity...}}
    """

    def __init__(self, postgres: PostgresClient):
        self.postgres = postgres

    def log_change(
        self,
        entity_type: AuditEntity | str,
        entity_id: UUID,
        action: AuditAction,
        changes: dict[str, Any],
        owner_id: str | None = None
    ) -> None:
        """
        Append one entry.

        Raises:
            RuntimeError: No owner_id given and no owner in context
            ValueError: Unknown entity_type
        """
        owner_id = owner_id or get_current_owner_id()

        self.postgres.execute(
            """
            INSERT INTO audit_log (id, owner_id, entity_type, entity_id, action, changes, created_at)
            VALUES (%s, %s, %s, %s, %s, %s, %s)
            """,
            (
                uuid4(),
                owner_id,
                AuditEntity(entity_type).value,
                entity_id,
                action.value,
                Json(changes),
                now_utc(),
            )
        )

    def get_entity_history(
        self,
        entity_type: AuditEntity | str,
        entity_id: UUID,
        owner_id: str | None = None
    ) -> list[dict[str, Any]]:
        """Entries for one of the owner's entities, newest first."""
        owner_id = owner_id or get_current_owner_id()

        return self.postgres.execute(
            """
            SELECT id, owner_id, entity_type, entity_id, action, changes, created_at
            FROM audit_log
            WHERE entity_type = %s AND entity_id = %s AND owner_id = %s
            ORDER BY created_at DESC
            """,
            (AuditEntity(entity_type).value, entity_id, owner_id)
        )
