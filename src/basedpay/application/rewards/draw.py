"""Prize table validation and weighted prize draws (pure functions)."""

from __future__ import annotations

import hashlib
import os
from typing import Protocol, Sequence

from ...domain.errors import InvalidPrizeTableError
from ...domain.ledger.entities import MAX_AMOUNT
from ...domain.rewards.entities import PrizeTable, PrizeTier

WEIGHT_TOTAL = 100

# USDC has 6 decimals: 10_000 == $0.01
DEFAULT_PRIZE_AMOUNTS = (10_000, 20_000, 50_000, 500_000, 1_000_000)
DEFAULT_CUMULATIVE_WEIGHTS = (40, 70, 90, 98, 100)


class EntropySource(Protocol):
    def draw(self, address: str, nonce: int) -> int:
        """Return an integer in ``[0, 100)``."""
        ...


class SecretEntropySource:
    """Draws from a server secret mixed with fresh OS randomness.

    The claiming user cannot predict the draw: it depends on a secret and on
    bytes generated at claim time. The address and per-user nonce keep two
    claims from sharing hash input even if the randomness source repeats.
    """

    def __init__(self, secret: str):
        self._secret = secret.encode("utf-8")

    def draw(self, address: str, nonce: int) -> int:
        hasher = hashlib.sha256()
        hasher.update(self._secret)
        hasher.update(os.urandom(32))
        hasher.update(address.encode("utf-8"))
        hasher.update(nonce.to_bytes(8, "big"))
        return int.from_bytes(hasher.digest(), "big") % WEIGHT_TOTAL


def build_prize_table(
    amounts: Sequence[int], cumulative_weights: Sequence[int]
) -> PrizeTable:
    """Validate parallel arrays and build a PrizeTable."""
    if len(amounts) != len(cumulative_weights):
        raise InvalidPrizeTableError("Length mismatch")
    if not amounts:
        raise InvalidPrizeTableError("Prize table must not be empty")
    if cumulative_weights[-1] != WEIGHT_TOTAL:
        raise InvalidPrizeTableError("Weights must sum to 100")
    previous = 0
    for weight in cumulative_weights:
        if weight < previous:
            raise InvalidPrizeTableError("Cumulative weights must be non-decreasing")
        previous = weight
    if any(amount < 0 for amount in amounts):
        raise InvalidPrizeTableError("Prize amounts must not be negative")
    if any(amount > MAX_AMOUNT for amount in amounts):
        raise InvalidPrizeTableError("Prize amount too large")

    return PrizeTable(
        tiers=[
            PrizeTier(amount=amount, cumulative_weight=weight)
            for amount, weight in zip(amounts, cumulative_weights)
        ]
    )


def default_prize_table() -> PrizeTable:
    return build_prize_table(DEFAULT_PRIZE_AMOUNTS, DEFAULT_CUMULATIVE_WEIGHTS)


def pick_tier(table: PrizeTable, draw: int) -> int:
    """Index of the first tier whose cumulative weight is above ``draw``."""
    if not 0 <= draw < WEIGHT_TOTAL:
        raise ValueError(f"Draw out of range: {draw}")
    for index, tier in enumerate(table.tiers):
        if draw < tier.cumulative_weight:
            return index
    # Unreachable for validated tables: the last weight is 100
    raise InvalidPrizeTableError("Prize table does not cover the draw")
