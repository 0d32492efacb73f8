"""Reward domain entities: user reward accounts, prize tables and events."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field, field_serializer


class UserRewardAccount(BaseModel):
    """Per-address mystery box counters. Every counter starts at zero."""

    address: str
    unclaimed_boxes: int = 0
    boxes_opened: int = 0
    total_claimed: int = 0
    biggest_win: int = 0


class PrizeTier(BaseModel):
    """One prize amount (USDC units) and its cumulative weight out of 100."""

    amount: int
    cumulative_weight: int


class PrizeTable(BaseModel):
    """Ordered prize tiers; cumulative weights are non-decreasing and end at 100."""

    tiers: list[PrizeTier]

    @property
    def amounts(self) -> list[int]:
        return [tier.amount for tier in self.tiers]

    @property
    def cumulative_weights(self) -> list[int]:
        return [tier.cumulative_weight for tier in self.tiers]

    @property
    def max_prize(self) -> int:
        return max(self.amounts, default=0)


class GlobalRewardStats(BaseModel):
    total_boxes_opened: int = 0
    total_rewards_distributed: int = 0


class RewardEvent(BaseModel):
    """Notification recorded for every state change of the engine."""

    id: UUID = Field(default_factory=uuid4)
    kind: str
    address: Optional[str] = None
    amount: Optional[int] = None
    data: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @field_serializer("id")
    def serialize_id(self, value: UUID) -> str:
        return str(value)

    @field_serializer("created_at")
    def serialize_created_at(self, value: datetime) -> str:
        return value.isoformat()


class ClaimStatus(str, Enum):
    """Outcome of an atomic claim attempt at the storage level."""

    SUCCESS = "success"
    NO_BOXES = "no_boxes"
    INSUFFICIENT_CUSTODY = "insufficient_custody"
