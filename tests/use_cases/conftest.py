"""Pytest fixtures for use case tests."""

from __future__ import annotations

from typing import AsyncGenerator

import pytest

from basedpay.application.merchants.use_cases.registry import MerchantRegistryService
from basedpay.application.rewards.use_cases.mystery_box import MysteryBoxService
from tests.fixtures import (
    InMemoryKeyValueStore,
    InMemoryMerchantRegistryRepository,
    InMemoryPrizeTableRepository,
    InMemoryRewardAccountRepository,
    InMemoryRewardEventRepository,
    InMemoryTokenLedger,
    create_in_memory_store,
)
from tests.fixtures.accounts import CUSTODY, OPERATOR


class FixedEntropySource:
    """Returns queued draws in order and records what it was asked for."""

    def __init__(self, *draws: int):
        self._draws = list(draws) or [0]
        self.calls: list[tuple[str, int]] = []

    def queue(self, *draws: int) -> None:
        self._draws = list(draws)

    def draw(self, address: str, nonce: int) -> int:
        self.calls.append((address, nonce))
        if len(self._draws) > 1:
            return self._draws.pop(0)
        return self._draws[0]


@pytest.fixture
async def store() -> AsyncGenerator[InMemoryKeyValueStore, None]:
    """Create a shared in-memory store with all scripts registered."""
    store = await create_in_memory_store()
    yield store
    store.clear()


@pytest.fixture
def ledger(store: InMemoryKeyValueStore) -> InMemoryTokenLedger:
    return InMemoryTokenLedger(store)


@pytest.fixture
def entropy() -> FixedEntropySource:
    return FixedEntropySource(0)


@pytest.fixture
def mystery_box_service(
    store: InMemoryKeyValueStore,
    ledger: InMemoryTokenLedger,
    entropy: FixedEntropySource,
) -> MysteryBoxService:
    return MysteryBoxService(
        account_repo=InMemoryRewardAccountRepository(store),
        prize_table_repo=InMemoryPrizeTableRepository(store),
        event_repo=InMemoryRewardEventRepository(store),
        ledger=ledger,
        entropy=entropy,
        operator_address=OPERATOR,
        custody_address=CUSTODY,
    )


@pytest.fixture
def merchant_registry_service(
    store: InMemoryKeyValueStore, ledger: InMemoryTokenLedger
) -> MerchantRegistryService:
    return MerchantRegistryService(InMemoryMerchantRegistryRepository(store), ledger)
