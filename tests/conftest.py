"""Shared pytest fixtures."""

from __future__ import annotations

import os
import warnings
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from cryptography.hazmat.primitives.asymmetric import ec
from redis.exceptions import RedisError

from basedpay.crypto.certificates import (
    address_from_public_key_der_b64,
    public_key_to_der_b64,
)
from basedpay.infrastructure.database import DatabaseClient
from basedpay.infrastructure.scripts import ALL_SCRIPTS
from basedpay.infrastructure.storage import RedisKeyValueStore


@pytest.fixture
def operator_private_key() -> ec.EllipticCurvePrivateKey:
    """Generate the operator key for testing."""
    return ec.generate_private_key(ec.SECP256R1())


@pytest.fixture
def operator_address(operator_private_key: ec.EllipticCurvePrivateKey) -> str:
    return address_from_public_key_der_b64(
        public_key_to_der_b64(operator_private_key.public_key())
    )


@pytest.fixture
def user_private_key() -> ec.EllipticCurvePrivateKey:
    """Generate a regular user key for testing."""
    return ec.generate_private_key(ec.SECP256R1())


@pytest.fixture
def user_address(user_private_key: ec.EllipticCurvePrivateKey) -> str:
    return address_from_public_key_der_b64(
        public_key_to_der_b64(user_private_key.public_key())
    )


class TestDatabaseSettings:
    """Test settings for Redis connection."""

    def __init__(self, database_url: str) -> None:
        self.database_url = database_url


@pytest_asyncio.fixture
async def redis_db_client() -> AsyncGenerator[DatabaseClient, None]:
    """Create a Redis database client for testing.

    Uses database 15 by default, or TEST_REDIS_URL if set.
    """
    test_redis_url = os.getenv("TEST_REDIS_URL", "redis://localhost:6379/15")
    client = DatabaseClient(TestDatabaseSettings(database_url=test_redis_url))
    client.initialize_database()

    try:
        async with client.get_connection() as conn:
            await conn.ping()
    except RedisError as e:
        warnings.warn(f"Redis not available at {test_redis_url}: {e}", UserWarning)
        await client.close()
        pytest.skip(f"Redis not available: {e}")

    async with client.get_connection() as conn:
        await conn.flushdb()

    yield client

    async with client.get_connection() as conn:
        await conn.flushdb()
    await client.close()


@pytest_asyncio.fixture
async def redis_store(redis_db_client: DatabaseClient) -> RedisKeyValueStore:
    """Create a Redis-backed key-value store with all scripts registered."""
    store = RedisKeyValueStore(redis_db_client)
    for name, script in ALL_SCRIPTS.items():
        await store.register_script(name, script)
    return store
