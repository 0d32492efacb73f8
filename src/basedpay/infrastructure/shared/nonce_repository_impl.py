from __future__ import annotations

from ...domain.shared.nonce_repository import NonceRepository
from ..storage import KeyValueStore


class NonceRepositoryImpl(NonceRepository):
    def __init__(self, store: KeyValueStore):
        self.store = store

    async def consume(self, address: str, nonce: str) -> bool:
        return await self.store.set_if_absent(f"auth:nonce:{address}:{nonce}", "1")
