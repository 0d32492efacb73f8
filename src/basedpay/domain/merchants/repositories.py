from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from .entities import MerchantRegistration


class MerchantRegistryRepository(ABC):
    """Claim-once mapping of QR payload to owner address."""

    @abstractmethod
    async def register(
        self, registration: MerchantRegistration
    ) -> Optional[MerchantRegistration]:
        """Store the registration and assign its token id.

        Returns None if the payload is already registered.
        """
        pass

    @abstractmethod
    async def get(self, qr_payload: str) -> Optional[MerchantRegistration]:
        pass

    @abstractmethod
    async def get_by_token_id(self, token_id: int) -> Optional[MerchantRegistration]:
        pass

    @abstractmethod
    async def count(self) -> int:
        pass

    @abstractmethod
    async def list_for_owner(
        self, owner: str, skip: int = 0, limit: int = 100
    ) -> list[MerchantRegistration]:
        pass
