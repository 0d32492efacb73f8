from __future__ import annotations

from abc import ABC, abstractmethod


class NonceRepository(ABC):
    """Remembers signed-request nonces so each one is accepted once."""

    @abstractmethod
    async def consume(self, address: str, nonce: str) -> bool:
        """Mark the nonce used. Returns False if it was already used."""
        pass
