"""Invoicing configuration."""

from pydantic import BaseModel, Field


class InvoiceConfig(BaseModel):
    """
    Business defaults for invoices and profiles.

    Passed explicitly into services and the extractor; nothing reads
    these from module globals.
    """

    default_currency: str = Field(
        default="INR",
        description="Currency for invoices that do not specify one",
        min_length=3,
        max_length=8,
    )
    default_tax_percent: float = Field(
        default=18.0,
        description="Tax percent prefilled on new profiles and AI drafts",
        ge=0,
        le=100,
    )
    default_business_name: str = Field(
        default="ABC Solutions",
        description="Business name used when a profile is created without one",
    )

    # Invoice number allocation
    number_max_attempts: int = Field(
        default=10,
        description="Collision-checked candidates tried before falling back",
        ge=1,
        le=100,
    )
    number_allow_fallback: bool = Field(
        default=True,
        description="Append a random token after exhausting attempts instead of failing",
    )

    # AI extraction
    ai_models: list[str] = Field(
        default_factory=lambda: ["claude-haiku-4-5", "claude-sonnet-4-5"],
        description="Models tried in order for invoice extraction",
        min_length=1,
    )
    ai_max_tokens: int = Field(default=2048, ge=256)

    # Media
    max_upload_bytes: int = Field(default=5 * 1024 * 1024, ge=1)
