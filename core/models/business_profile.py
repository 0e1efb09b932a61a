"""Business profile domain models.

One profile per owner holds the issuer branding used to prefill invoices.
"""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, field_validator


def _blank_email_to_none(v: Any) -> Any:
    """Forms submit an empty string for a cleared email."""
    if isinstance(v, str) and not v.strip():
        return None
    return v


class BusinessProfileCreate(BaseModel):
    """Data for the first save of a profile."""

    business_name: str | None = Field(None, max_length=255)
    email: EmailStr | None = None
    address: str | None = Field(None, max_length=500)
    phone: str | None = Field(None, max_length=50)
    gst: str | None = Field(None, max_length=50)
    logo_url: str | None = None
    stamp_url: str | None = None
    signature_url: str | None = None
    signature_owner_name: str | None = Field(None, max_length=255)
    signature_owner_title: str | None = Field(None, max_length=255)
    default_tax_percent: float | None = Field(None, ge=0, le=100)

    @field_validator("email", mode="before")
    @classmethod
    def blank_email_to_none(cls, v: Any) -> Any:
        return _blank_email_to_none(v)


class BusinessProfileUpdate(BaseModel):
    """
    Partial update. Only fields present in the request are written.

    Use model_dump(exclude_unset=True): an explicit null clears an image,
    an omitted field is left alone.
    """

    business_name: str | None = Field(None, max_length=255)
    email: EmailStr | None = None
    address: str | None = Field(None, max_length=500)
    phone: str | None = Field(None, max_length=50)
    gst: str | None = Field(None, max_length=50)
    logo_url: str | None = None
    stamp_url: str | None = None
    signature_url: str | None = None
    signature_owner_name: str | None = Field(None, max_length=255)
    signature_owner_title: str | None = Field(None, max_length=255)
    default_tax_percent: float | None = Field(None, ge=0, le=100)

    @field_validator("email", mode="before")
    @classmethod
    def blank_email_to_none(cls, v: Any) -> Any:
        return _blank_email_to_none(v)


class BusinessProfile(BaseModel):
    """Full business profile entity as stored."""

    id: UUID
    owner_id: str
    business_name: str
    email: str
    address: str
    phone: str
    gst: str
    logo_url: str | None
    stamp_url: str | None
    signature_url: str | None
    signature_owner_name: str
    signature_owner_title: str
    default_tax_percent: float
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
