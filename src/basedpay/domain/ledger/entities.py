from __future__ import annotations

from datetime import datetime, timezone
from typing import Any
from uuid import UUID, uuid4

from pydantic import BaseModel, Field, field_serializer

# Scripts compare amounts as Lua numbers (doubles), exact up to 2**53 - 1
MAX_AMOUNT = 2**53 - 1


class LedgerEntry(BaseModel):
    """A completed transfer between two ledger addresses."""

    id: UUID = Field(default_factory=uuid4)
    kind: str
    sender: str
    recipient: str
    amount: int
    memo: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @field_serializer("id")
    def serialize_id(self, value: UUID) -> str:
        return str(value)

    @field_serializer("created_at")
    def serialize_created_at(self, value: datetime) -> str:
        return value.isoformat()
