"""
Business profile service.

Each owner has at most one profile. It supplies the issuer fields and
branding images that prefill new invoices.
"""

import logging
from typing import Any
from uuid import UUID, uuid4

import psycopg2.errors

from clients.postgres_client import PostgresClient
from core.audit import AuditAction, AuditEntity, AuditLogger, compute_changes
from core.config import InvoiceConfig
from core.exceptions import BusinessProfileExistsError
from core.models import (
    BusinessProfile,
    BusinessProfileCreate,
    BusinessProfileUpdate,
    ImageKind,
)
from utils.user_context import get_current_owner_id
from utils.timezone import now_utc

logger = logging.getLogger(__name__)


class BusinessProfileService:
    """Service for business profile operations."""

    def __init__(self, postgres: PostgresClient, audit: AuditLogger, config: InvoiceConfig):
        self.postgres = postgres
        self.audit = audit
        self.config = config

    def get_for_owner(self) -> BusinessProfile | None:
        """Get the current owner's profile, if one has been saved."""
        row = self.postgres.execute_single(
            "SELECT * FROM business_profiles WHERE owner_id = %s",
            (get_current_owner_id(),)
        )

        if row is None:
            return None

        return BusinessProfile.model_validate(row)

    def get_by_id(self, profile_id: UUID) -> BusinessProfile:
        """
        Get a profile owned by the current owner.

        Raises:
            ValueError: If no profile has this ID
            PermissionError: If the profile belongs to another owner
        """
        row = self.postgres.execute_single(
            "SELECT * FROM business_profiles WHERE id = %s AND owner_id = %s",
            (profile_id, get_current_owner_id())
        )

        if row is not None:
            return BusinessProfile.model_validate(row)

        exists = self.postgres.execute_scalar(
            "SELECT EXISTS(SELECT 1 FROM business_profiles WHERE id = %s)",
            (profile_id,)
        )
        if exists:
            raise PermissionError("Not allowed to access this business profile")
        raise ValueError(f"Business profile {profile_id} not found")

    def create(self, data: BusinessProfileCreate) -> BusinessProfile:
        """
        Create the current owner's profile.

        Missing business name and tax percent take the configured defaults.

        Raises:
            BusinessProfileExistsError: If the owner already has a profile
        """
        owner_id = get_current_owner_id()

        if self.get_for_owner() is not None:
            raise BusinessProfileExistsError()

        now = now_utc()
        values = {
            "id": uuid4(),
            "owner_id": owner_id,
            "business_name": data.business_name or self.config.default_business_name,
            "email": data.email or "",
            "address": data.address or "",
            "phone": data.phone or "",
            "gst": data.gst or "",
            "logo_url": data.logo_url,
            "stamp_url": data.stamp_url,
            "signature_url": data.signature_url,
            "signature_owner_name": data.signature_owner_name or "",
            "signature_owner_title": data.signature_owner_title or "",
            "default_tax_percent": (
                data.default_tax_percent
                if data.default_tax_percent is not None
                else self.config.default_tax_percent
            ),
            "created_at": now,
            "updated_at": now,
        }

        columns = ", ".join(values)
        placeholders = ", ".join(["%s"] * len(values))

        try:
            row = self.postgres.execute_returning(
                f"INSERT INTO business_profiles ({columns}) VALUES ({placeholders}) RETURNING *",
                tuple(values.values())
            )[0]
        except psycopg2.errors.UniqueViolation as e:
            # Concurrent first save won; owner_id is UNIQUE
            raise BusinessProfileExistsError() from e

        profile = BusinessProfile.model_validate(row)

        self.audit.log_change(
            entity_type=AuditEntity.BUSINESS_PROFILE,
            entity_id=profile.id,
            action=AuditAction.CREATE,
            changes={"created": profile.model_dump(mode="json")}
        )

        logger.info(f"Created business profile {profile.id}")
        return profile

    def update(self, profile_id: UUID, data: BusinessProfileUpdate) -> BusinessProfile:
        """
        Update fields present in data.

        Explicit nulls clear image URLs; text fields treat null as empty.

        Raises:
            ValueError: If profile not found
            PermissionError: If the profile belongs to another owner
        """
        current = self.get_by_id(profile_id)

        updates: dict[str, Any] = {}
        for field, value in data.model_dump(exclude_unset=True).items():
            if field in ("logo_url", "stamp_url", "signature_url"):
                updates[field] = value
            elif field == "default_tax_percent":
                if value is not None:
                    updates[field] = value
            elif field == "business_name":
                updates[field] = value or self.config.default_business_name
            else:
                updates[field] = value or ""

        if not updates:
            return current

        set_parts = [f"{field} = %s" for field in updates]
        params = list(updates.values())

        set_parts.append("updated_at = %s")
        params.append(now_utc())
        params.extend([profile_id, current.owner_id])

        row = self.postgres.execute_returning(
            f"""
            UPDATE business_profiles
            SET {', '.join(set_parts)}
            WHERE id = %s AND owner_id = %s
            RETURNING *
            """,
            tuple(params)
        )[0]

        updated = BusinessProfile.model_validate(row)

        changes = compute_changes(
            current.model_dump(mode="json"),
            updated.model_dump(mode="json")
        )
        if changes:
            self.audit.log_change(
                entity_type=AuditEntity.BUSINESS_PROFILE,
                entity_id=profile_id,
                action=AuditAction.UPDATE,
                changes=changes
            )

        return updated

    def save(self, data: BusinessProfileUpdate) -> BusinessProfile:
        """Create the owner's profile on first save, update it afterwards."""
        current = self.get_for_owner()
        if current is None:
            try:
                return self.create(BusinessProfileCreate(**data.model_dump(exclude_unset=True)))
            except BusinessProfileExistsError:
                logger.info("Business profile created concurrently; applying save as update")
                current = self.get_for_owner()
                if current is None:
                    raise
        return self.update(current.id, data)

    def set_image(self, profile_id: UUID, kind: ImageKind, url: str | None) -> BusinessProfile:
        """Store (or clear) a branding image URL."""
        return self.update(profile_id, BusinessProfileUpdate(**{kind.column: url}))
