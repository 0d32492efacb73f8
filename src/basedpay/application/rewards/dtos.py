"""Data Transfer Objects for the mystery box rewards."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_serializer

from ...domain.ledger.entities import MAX_AMOUNT


class UserStatsDTO(BaseModel):
    """The four per-user counters."""

    address: str
    unclaimed: int
    opened: int
    earned: int
    biggest: int


class GrantResponseDTO(BaseModel):
    address: str
    unclaimed: int


class GrantBatchResponseDTO(BaseModel):
    granted: list[GrantResponseDTO]
    skipped: int


class ClaimResponseDTO(BaseModel):
    """Outcome of opening one box."""

    address: str
    prize_amount: int
    tier_index: int
    stats: UserStatsDTO


class FundsResponseDTO(BaseModel):
    """Custody balance after a deposit or withdrawal."""

    amount: int
    contract_balance: int


class ContractBalanceDTO(BaseModel):
    custody_address: str
    contract_balance: int


class PrizeTierDTO(BaseModel):
    amount: int
    cumulative_weight: int


class PrizeTableDTO(BaseModel):
    tiers: list[PrizeTierDTO]


class GlobalStatsDTO(BaseModel):
    total_boxes_opened: int
    total_rewards_distributed: int
    contract_balance: int


class RewardEventDTO(BaseModel):
    id: UUID
    kind: str
    address: Optional[str] = None
    amount: Optional[int] = None
    data: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime

    @field_serializer("id")
    def serialize_id(self, value: UUID) -> str:
        return str(value)

    @field_serializer("created_at")
    def serialize_created_at(self, value: datetime) -> str:
        return value.isoformat()


# Signed payload bodies, one per mutating action
class GrantPayload(BaseModel):
    user: str


class GrantBatchPayload(BaseModel):
    users: list[str]


class AmountPayload(BaseModel):
    amount: int = Field(..., gt=0, le=MAX_AMOUNT)


class UpdatePrizeTiersPayload(BaseModel):
    amounts: list[Annotated[int, Field(le=MAX_AMOUNT)]]
    cumulative_weights: list[int]


class ClaimPayload(BaseModel):
    pass
