"""Dependencies for the BasedPay API."""

from __future__ import annotations

from functools import lru_cache

from ..application.merchants.use_cases.registry import MerchantRegistryService
from ..application.rewards.draw import SecretEntropySource
from ..application.rewards.use_cases.mystery_box import MysteryBoxService
from ..application.shared.signed_requests import RequestAuthenticator
from ..envs.app_env import Settings, get_settings
from ..infrastructure.database import DatabaseClient, get_database_client
from ..infrastructure.ledger.token_ledger_impl import TokenLedgerImpl
from ..infrastructure.merchants.registry_repository_impl import (
    MerchantRegistryRepositoryImpl,
)
from ..infrastructure.rewards.repositories import (
    PrizeTableRepositoryImpl,
    RewardAccountRepositoryImpl,
    RewardEventRepositoryImpl,
)
from ..infrastructure.shared.nonce_repository_impl import NonceRepositoryImpl
from ..infrastructure.storage import RedisKeyValueStore


@lru_cache()
def get_settings_dependency() -> Settings:
    return get_settings()


@lru_cache()
def get_database_client_dependency() -> DatabaseClient:
    settings = get_settings_dependency()
    return get_database_client(settings)


@lru_cache()
def get_store_dependency() -> RedisKeyValueStore:
    db_client = get_database_client_dependency()
    return RedisKeyValueStore(db_client)


@lru_cache()
def get_entropy_source() -> SecretEntropySource:
    return SecretEntropySource(get_settings_dependency().draw_secret)


def get_token_ledger() -> TokenLedgerImpl:
    return TokenLedgerImpl(get_store_dependency())


def get_request_authenticator() -> RequestAuthenticator:
    return RequestAuthenticator(NonceRepositoryImpl(get_store_dependency()))


def get_mystery_box_service() -> MysteryBoxService:
    store = get_store_dependency()
    settings = get_settings_dependency()
    return MysteryBoxService(
        account_repo=RewardAccountRepositoryImpl(store),
        prize_table_repo=PrizeTableRepositoryImpl(store),
        event_repo=RewardEventRepositoryImpl(store),
        ledger=get_token_ledger(),
        entropy=get_entropy_source(),
        operator_address=settings.operator_address,
        custody_address=settings.custody_address,
    )


def get_merchant_registry_service() -> MerchantRegistryService:
    store = get_store_dependency()
    return MerchantRegistryService(
        MerchantRegistryRepositoryImpl(store), get_token_ledger()
    )
