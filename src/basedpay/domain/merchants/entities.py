"""Merchant registry entities."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field, field_serializer


class MerchantRegistration(BaseModel):
    """A QR payload claimed by a wallet address. Never updated once stored."""

    qr_payload: str
    owner: str
    token_id: int = -1
    proxy_type: Optional[str] = None
    proxy_value: Optional[str] = None
    registered_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    @field_serializer("registered_at")
    def serialize_registered_at(self, value: datetime) -> str:
        return value.isoformat()
