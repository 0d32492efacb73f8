"""Token ledger implementation over a storage abstraction."""

from __future__ import annotations

from typing import Any, Optional

from ...domain.ledger.entities import LedgerEntry
from ...domain.ledger.repositories import TokenLedger
from ..storage import KeyValueStore


def balance_key(address: str) -> str:
    return f"ledger:balance:{address}"


def entry_key(entry_id: str) -> str:
    return f"ledger:entry:{entry_id}"


def index_key(direction: str, kind: str, address: str) -> str:
    return f"ledger:{direction}:{kind}:{address}"


def seeded_marker_key(address: str) -> str:
    return f"ledger:seeded:{address}"


def transfer_script_params(entry: LedgerEntry) -> tuple[list[str], list[Any]]:
    """Keys and arguments of the ``transfer`` script for ``entry``.

    Callers recording a reward event in the same step append its keys and
    arguments to these lists.
    """
    entry_id = str(entry.id)
    keys = [
        balance_key(entry.sender),
        balance_key(entry.recipient),
        entry_key(entry_id),
        index_key("sent", entry.kind, entry.sender),
        index_key("received", entry.kind, entry.recipient),
    ]
    args: list[Any] = [
        str(entry.amount),
        entry.model_dump_json(),
        str(entry.created_at.timestamp()),
        entry_id,
    ]
    return keys, args


class TokenLedgerImpl(TokenLedger):
    """Token ledger backed by KeyValueStore.

    Key layout:
      - ledger:balance:{address} -> integer balance
      - ledger:entry:{id} -> LedgerEntry JSON
      - ledger:sent:{kind}:{address} / ledger:received:{kind}:{address}
        -> sorted sets of entry ids by creation time
      - ledger:seeded:{address} -> marker set once the starting balance is minted
    """

    def __init__(self, store: KeyValueStore):
        self.store = store

    async def balance_of(self, address: str) -> int:
        raw = await self.store.get(balance_key(address))
        return int(raw) if raw else 0

    async def credit(self, address: str, amount: int) -> int:
        if amount <= 0:
            raise ValueError("Amount must be positive")
        result = await self.store.run_script(
            "credit", [balance_key(address)], [str(amount)]
        )
        return int(result[1])

    async def seed(self, address: str, amount: int) -> Optional[int]:
        if amount <= 0:
            raise ValueError("Amount must be positive")
        result = await self.store.run_script(
            "seed_balance",
            [seeded_marker_key(address), balance_key(address)],
            [str(amount)],
        )
        if int(result[0]) != 1:
            return None
        return int(result[1])

    async def transfer(self, entry: LedgerEntry) -> Optional[LedgerEntry]:
        keys, args = transfer_script_params(entry)
        result = await self.store.run_script("transfer", keys, args)
        if int(result[0]) != 1:
            return None
        return entry

    async def _list(self, index: str, skip: int, limit: int) -> list[LedgerEntry]:
        ids = await self.store.zrevrange(index, skip, skip + limit - 1)
        raw_entries = await self.store.mget([entry_key(i) for i in ids])
        return [LedgerEntry.model_validate_json(raw) for raw in raw_entries if raw]

    async def list_received(
        self, address: str, kind: str, skip: int = 0, limit: int = 100
    ) -> list[LedgerEntry]:
        return await self._list(index_key("received", kind, address), skip, limit)

    async def list_sent(
        self, address: str, kind: str, skip: int = 0, limit: int = 100
    ) -> list[LedgerEntry]:
        return await self._list(index_key("sent", kind, address), skip, limit)
