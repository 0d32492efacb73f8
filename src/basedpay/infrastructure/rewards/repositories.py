"""Reward repositories implemented over a storage abstraction."""

from __future__ import annotations

from typing import Optional, Sequence

from ...domain.ledger.entities import LedgerEntry
from ...domain.rewards.entities import (
    ClaimStatus,
    GlobalRewardStats,
    PrizeTable,
    RewardEvent,
    UserRewardAccount,
)
from ...domain.rewards.repositories import (
    PrizeTableRepository,
    RewardAccountRepository,
    RewardEventRepository,
)
from ..ledger.token_ledger_impl import balance_key, transfer_script_params
from ..storage import KeyValueStore

EVENTS_INDEX_KEY = "rewards:events"
STATS_KEY = "rewards:stats"
PRIZE_TABLE_KEY = "rewards:prize_table"

_CLAIM_STATUS_BY_CODE = {
    1: ClaimStatus.SUCCESS,
    2: ClaimStatus.NO_BOXES,
    3: ClaimStatus.INSUFFICIENT_CUSTODY,
}


def event_key(event_id: str) -> str:
    return f"reward_event:{event_id}"


class RewardAccountRepositoryImpl(RewardAccountRepository):
    """Reward accounts stored as Redis hashes of integer counters.

    Key layout:
      - reward_account:{address} -> hash of UserRewardAccount counters
      - rewards:stats -> hash of GlobalRewardStats counters
    """

    def __init__(self, store: KeyValueStore):
        self.store = store

    @staticmethod
    def _account_key(address: str) -> str:
        return f"reward_account:{address}"

    async def get(self, address: str) -> UserRewardAccount:
        counters = await self.store.hgetall(self._account_key(address))
        return UserRewardAccount(
            address=address, **{name: int(value) for name, value in counters.items()}
        )

    async def grant(self, address: str, event: RewardEvent) -> int:
        event_id = str(event.id)
        result = await self.store.run_script(
            "grant_box",
            [self._account_key(address), event_key(event_id), EVENTS_INDEX_KEY],
            [event.model_dump_json(), str(event.created_at.timestamp()), event_id],
        )
        return int(result[1])

    async def grant_many(self, events: Sequence[RewardEvent]) -> list[int]:
        if not events:
            return []
        keys = [EVENTS_INDEX_KEY]
        args: list[str] = []
        for event in events:
            event_id = str(event.id)
            keys.extend([self._account_key(event.address), event_key(event_id)])
            args.extend(
                [event.model_dump_json(), str(event.created_at.timestamp()), event_id]
            )
        result = await self.store.run_script("grant_box_batch", keys, args)
        return [int(count) for count in result[1].split(",")]

    async def claim(
        self,
        address: str,
        prize_amount: int,
        custody_address: str,
        event: RewardEvent,
    ) -> ClaimStatus:
        event_id = str(event.id)
        result = await self.store.run_script(
            "claim_box",
            [
                self._account_key(address),
                balance_key(custody_address),
                balance_key(address),
                STATS_KEY,
                event_key(event_id),
                EVENTS_INDEX_KEY,
            ],
            [
                str(prize_amount),
                event.model_dump_json(),
                str(event.created_at.timestamp()),
                event_id,
            ],
        )
        return _CLAIM_STATUS_BY_CODE[int(result[0])]

    async def get_global_stats(self) -> GlobalRewardStats:
        counters = await self.store.hgetall(STATS_KEY)
        return GlobalRewardStats(
            **{name: int(value) for name, value in counters.items()}
        )


class PrizeTableRepositoryImpl(PrizeTableRepository):
    """Prize table stored as a single JSON document.

    The document and its update event are written by one script.
    """

    def __init__(self, store: KeyValueStore):
        self.store = store

    async def get(self) -> Optional[PrizeTable]:
        data = await self.store.get(PRIZE_TABLE_KEY)
        if not data:
            return None
        return PrizeTable.model_validate_json(data)

    async def replace(self, table: PrizeTable, event: RewardEvent) -> PrizeTable:
        event_id = str(event.id)
        await self.store.run_script(
            "replace_prize_table",
            [PRIZE_TABLE_KEY, event_key(event_id), EVENTS_INDEX_KEY],
            [
                table.model_dump_json(),
                event.model_dump_json(),
                str(event.created_at.timestamp()),
                event_id,
            ],
        )
        return table


class RewardEventRepositoryImpl(RewardEventRepository):
    """Reward events as JSON values indexed by creation time.

    Key layout:
      - reward_event:{id} -> RewardEvent JSON
      - rewards:events -> sorted set of event ids by creation time
    """

    def __init__(self, store: KeyValueStore):
        self.store = store

    async def record_transfer(self, entry: LedgerEntry, event: RewardEvent) -> bool:
        keys, args = transfer_script_params(entry)
        event_id = str(event.id)
        keys.extend([event_key(event_id), EVENTS_INDEX_KEY])
        args.extend(
            [event.model_dump_json(), str(event.created_at.timestamp()), event_id]
        )
        result = await self.store.run_script("transfer", keys, args)
        return int(result[0]) == 1

    async def list_recent(self, skip: int = 0, limit: int = 100) -> list[RewardEvent]:
        ids = await self.store.zrevrange(EVENTS_INDEX_KEY, skip, skip + limit - 1)
        raw_events = await self.store.mget([event_key(i) for i in ids])
        return [RewardEvent.model_validate_json(raw) for raw in raw_events if raw]
