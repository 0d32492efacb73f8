"""Merchant registry repository implementation."""

from __future__ import annotations

import hashlib
from typing import Optional

from ...domain.merchants.entities import MerchantRegistration
from ...domain.merchants.repositories import MerchantRegistryRepository
from ..storage import KeyValueStore

COUNTER_KEY = "merchants:total"
TOKEN_INDEX_KEY = "merchants:tokens"


def payload_digest(qr_payload: str) -> str:
    return hashlib.sha256(qr_payload.encode("utf-8")).hexdigest()


class MerchantRegistryRepositoryImpl(MerchantRegistryRepository):
    """Merchant registry backed by KeyValueStore.

    Payloads can be long and contain any character, so registrations are
    keyed by the SHA-256 of the payload.

    Key layout:
      - merchant:qr:{digest} -> hash of MerchantRegistration fields
      - merchants:total -> number of registrations (next token id)
      - merchants:owner:{address} -> sorted set of digests by registration time
      - merchants:tokens -> hash of token id to digest
    """

    def __init__(self, store: KeyValueStore):
        self.store = store

    @staticmethod
    def _merchant_key(digest: str) -> str:
        return f"merchant:qr:{digest}"

    @staticmethod
    def _owner_index_key(owner: str) -> str:
        return f"merchants:owner:{owner}"

    async def register(
        self, registration: MerchantRegistration
    ) -> Optional[MerchantRegistration]:
        digest = payload_digest(registration.qr_payload)
        fields = registration.model_dump(mode="json", exclude={"token_id"})
        field_args: list[str] = []
        for name, value in fields.items():
            if value is not None:
                field_args.extend([name, str(value)])

        result = await self.store.run_script(
            "register_merchant",
            [
                self._merchant_key(digest),
                COUNTER_KEY,
                self._owner_index_key(registration.owner),
                TOKEN_INDEX_KEY,
            ],
            [str(registration.registered_at.timestamp()), digest, *field_args],
        )
        if int(result[0]) != 1:
            return None
        return registration.model_copy(update={"token_id": int(result[1])})

    async def _get_by_digest(self, digest: str) -> Optional[MerchantRegistration]:
        data = await self.store.hgetall(self._merchant_key(digest))
        if not data:
            return None
        return MerchantRegistration.model_validate(data)

    async def get(self, qr_payload: str) -> Optional[MerchantRegistration]:
        return await self._get_by_digest(payload_digest(qr_payload))

    async def get_by_token_id(self, token_id: int) -> Optional[MerchantRegistration]:
        digest = await self.store.hget(TOKEN_INDEX_KEY, str(token_id))
        if digest is None:
            return None
        return await self._get_by_digest(digest)

    async def count(self) -> int:
        raw = await self.store.get(COUNTER_KEY)
        return int(raw) if raw else 0

    async def list_for_owner(
        self, owner: str, skip: int = 0, limit: int = 100
    ) -> list[MerchantRegistration]:
        digests = await self.store.zrevrange(
            self._owner_index_key(owner), skip, skip + limit - 1
        )
        registrations: list[MerchantRegistration] = []
        for digest in digests:
            registration = await self._get_by_digest(digest)
            if registration:
                registrations.append(registration)
        return registrations
