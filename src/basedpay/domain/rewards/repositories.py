"""Reward domain repositories."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional, Sequence

from ..ledger.entities import LedgerEntry
from .entities import (
    ClaimStatus,
    GlobalRewardStats,
    PrizeTable,
    RewardEvent,
    UserRewardAccount,
)


class RewardAccountRepository(ABC):
    """Per-user counters plus the atomic grant and claim transitions."""

    @abstractmethod
    async def get(self, address: str) -> UserRewardAccount:
        """Return the account, with zeroed counters for unknown addresses."""
        pass

    @abstractmethod
    async def grant(self, address: str, event: RewardEvent) -> int:
        """Add one unclaimed box and record the event. Returns the new unclaimed count."""
        pass

    @abstractmethod
    async def grant_many(self, events: Sequence[RewardEvent]) -> list[int]:
        """Add one box to each event's address and record every event, all or nothing.

        Returns the unclaimed count after each grant, in order.
        """
        pass

    @abstractmethod
    async def claim(
        self,
        address: str,
        prize_amount: int,
        custody_address: str,
        event: RewardEvent,
    ) -> ClaimStatus:
        """Open one box and pay ``prize_amount`` from custody, all or nothing."""
        pass

    @abstractmethod
    async def get_global_stats(self) -> GlobalRewardStats:
        pass


class PrizeTableRepository(ABC):
    @abstractmethod
    async def get(self) -> Optional[PrizeTable]:
        pass

    @abstractmethod
    async def replace(self, table: PrizeTable, event: RewardEvent) -> PrizeTable:
        """Swap in the new table and record the event in one step."""
        pass


class RewardEventRepository(ABC):
    @abstractmethod
    async def record_transfer(self, entry: LedgerEntry, event: RewardEvent) -> bool:
        """Apply the ledger transfer and record the event in one step.

        Returns False, without changing anything, when the sender balance is
        below the entry amount.
        """
        pass

    @abstractmethod
    async def list_recent(self, skip: int = 0, limit: int = 100) -> list[RewardEvent]:
        pass
