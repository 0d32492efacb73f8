"""Test fixtures for in-memory implementations."""

from .in_memory_storage import InMemoryKeyValueStore
from .in_memory_repositories import (
    InMemoryMerchantRegistryRepository,
    InMemoryNonceRepository,
    InMemoryPrizeTableRepository,
    InMemoryRewardAccountRepository,
    InMemoryRewardEventRepository,
    InMemoryTokenLedger,
    create_in_memory_store,
)

__all__ = [
    "InMemoryKeyValueStore",
    "InMemoryMerchantRegistryRepository",
    "InMemoryNonceRepository",
    "InMemoryPrizeTableRepository",
    "InMemoryRewardAccountRepository",
    "InMemoryRewardEventRepository",
    "InMemoryTokenLedger",
    "create_in_memory_store",
]
