"""Pydantic models for auth domain."""

from datetime import datetime

from pydantic import BaseModel, Field


class Session(BaseModel):
    """An active session for one invoice owner."""

    token: str = Field(..., description="Session token (opaque string)")
    owner_id: str = Field(..., min_length=1, description="Opaque owner identifier from the identity provider")
    created_at: datetime
    expires_at: datetime
    last_activity_at: datetime
