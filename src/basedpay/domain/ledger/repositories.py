"""Token ledger: integer USDC balances keyed by address."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from .entities import LedgerEntry


class TokenLedger(ABC):
    @abstractmethod
    async def balance_of(self, address: str) -> int:
        pass

    @abstractmethod
    async def credit(self, address: str, amount: int) -> int:
        """Mint funds to an address. Returns the new balance."""
        pass

    @abstractmethod
    async def seed(self, address: str, amount: int) -> Optional[int]:
        """Mint a starting balance once per address.

        Returns the new balance, or None if the address was already seeded.
        """
        pass

    @abstractmethod
    async def transfer(self, entry: LedgerEntry) -> Optional[LedgerEntry]:
        """Apply and record the transfer described by ``entry`` atomically.

        Returns None, without changing anything, when the sender balance is
        below the entry amount.
        """
        pass

    @abstractmethod
    async def list_received(
        self, address: str, kind: str, skip: int = 0, limit: int = 100
    ) -> list[LedgerEntry]:
        pass

    @abstractmethod
    async def list_sent(
        self, address: str, kind: str, skip: int = 0, limit: int = 100
    ) -> list[LedgerEntry]:
        pass
