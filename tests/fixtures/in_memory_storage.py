"""In-memory implementation of KeyValueStore for testing."""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Mapping, Optional

from basedpay.infrastructure.storage import KeyValueStore


class InMemoryKeyValueStore(KeyValueStore):
    """In-memory implementation of KeyValueStore for fast testing.

    Lua scripts are not interpreted. Each registered script name is mapped to
    a Python function with the same keys, arguments and return codes.
    """

    def __init__(self) -> None:
        self._data: dict[str, str] = {}
        self._hashes: dict[str, dict[str, str]] = {}
        self._sorted_sets: dict[str, list[tuple[str, float]]] = {}
        self._script_sources: dict[str, str] = {}
        self._handlers: dict[str, Callable[[List[str], List[Any]], list[Any]]] = {
            "grant_box": self._execute_grant_box,
            "grant_box_batch": self._execute_grant_box_batch,
            "claim_box": self._execute_claim_box,
            "replace_prize_table": self._execute_replace_prize_table,
            "transfer": self._execute_transfer,
            "credit": self._execute_credit,
            "seed_balance": self._execute_seed_balance,
            "register_merchant": self._execute_register_merchant,
        }

    def clear(self) -> None:
        """Clear all data (useful for test teardown)."""
        self._data.clear()
        self._hashes.clear()
        self._sorted_sets.clear()

    async def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    async def mget(self, keys: List[str]) -> List[Optional[str]]:
        return [self._data.get(key) for key in keys]

    async def set(self, key: str, value: str) -> None:
        self._data[key] = value

    async def set_if_absent(self, key: str, value: str) -> bool:
        if key in self._data:
            return False
        self._data[key] = value
        return True

    async def hget(self, key: str, field: str) -> Optional[str]:
        return self._hashes.get(key, {}).get(field)

    async def hgetall(self, key: str) -> Dict[str, str]:
        return dict(self._hashes.get(key, {}))

    async def zadd(self, key: str, mapping: Mapping[str, float]) -> int:
        added = 0
        for member, score in mapping.items():
            if self._zadd(key, float(score), member):
                added += 1
        return added

    async def zrevrange(self, key: str, start: int, end: int) -> list[str]:
        members = [m for m, _ in self._sorted_sets.get(key, [])]
        # Redis ranges are inclusive on both ends
        slice_end = None if end == -1 else end + 1
        return members[start:slice_end]

    async def register_script(self, name: str, script: str) -> str:
        self._script_sources[name] = script
        return f"sha1_{name}"

    async def run_script(self, name: str, keys: List[str], args: List[Any]) -> Any:
        if name not in self._script_sources:
            raise ValueError(f"Script '{name}' not registered")
        handler = self._handlers.get(name)
        if handler is None:
            raise NotImplementedError(f"Script '{name}' has no in-memory version")
        return handler(keys, args)

    # ------------------------------------------------------------------
    # Primitive helpers mirroring the Redis commands used by the scripts
    # ------------------------------------------------------------------

    def _zadd(self, key: str, score: float, member: str) -> bool:
        entries = self._sorted_sets.setdefault(key, [])
        existed = any(m == member for m, _ in entries)
        entries[:] = [(m, s) for m, s in entries if m != member]
        entries.append((member, score))
        entries.sort(key=lambda x: x[1], reverse=True)
        return not existed

    def _incrby(self, key: str, amount: int) -> int:
        value = int(self._data.get(key, "0")) + amount
        self._data[key] = str(value)
        return value

    def _hincrby(self, key: str, field: str, amount: int) -> int:
        fields = self._hashes.setdefault(key, {})
        value = int(fields.get(field, "0")) + amount
        fields[field] = str(value)
        return value

    # ------------------------------------------------------------------
    # Script equivalents
    # ------------------------------------------------------------------

    def _execute_grant_box(self, keys: List[str], args: List[Any]) -> list[Any]:
        account_key, event_key, events_index = keys
        event_json, score, event_id = args
        unclaimed = self._hincrby(account_key, "unclaimed_boxes", 1)
        self._data[event_key] = event_json
        self._zadd(events_index, float(score), event_id)
        return [1, str(unclaimed)]

    def _execute_grant_box_batch(self, keys: List[str], args: List[Any]) -> list[Any]:
        events_index, *pairs = keys
        counts: list[str] = []
        for i in range(0, len(pairs), 2):
            account_key, event_key = pairs[i], pairs[i + 1]
            event_json, score, event_id = args[i // 2 * 3 : i // 2 * 3 + 3]
            counts.append(str(self._hincrby(account_key, "unclaimed_boxes", 1)))
            self._data[event_key] = event_json
            self._zadd(events_index, float(score), event_id)
        return [1, ",".join(counts)]

    def _execute_claim_box(self, keys: List[str], args: List[Any]) -> list[Any]:
        (
            account_key,
            custody_key,
            user_balance_key,
            stats_key,
            event_key,
            events_index,
        ) = keys
        prize = int(args[0])

        account = self._hashes.get(account_key, {})
        if int(account.get("unclaimed_boxes", "0")) <= 0:
            return [2, ""]

        custody = int(self._data.get(custody_key, "0"))
        if custody < prize:
            return [3, str(custody)]

        self._hincrby(account_key, "unclaimed_boxes", -1)
        self._hincrby(account_key, "boxes_opened", 1)
        self._hincrby(account_key, "total_claimed", prize)
        account = self._hashes[account_key]
        if prize > int(account.get("biggest_win", "0")):
            account["biggest_win"] = str(prize)

        self._incrby(custody_key, -prize)
        self._incrby(user_balance_key, prize)

        self._hincrby(stats_key, "total_boxes_opened", 1)
        self._hincrby(stats_key, "total_rewards_distributed", prize)

        self._data[event_key] = args[1]
        self._zadd(events_index, float(args[2]), args[3])
        return [1, str(prize)]

    def _execute_replace_prize_table(
        self, keys: List[str], args: List[Any]
    ) -> list[Any]:
        table_key, event_key, events_index = keys
        table_json, event_json, score, event_id = args
        self._data[table_key] = table_json
        self._data[event_key] = event_json
        self._zadd(events_index, float(score), event_id)
        return [1, ""]

    def _execute_transfer(self, keys: List[str], args: List[Any]) -> list[Any]:
        sender_key, recipient_key, entry_key, sent_index, received_index = keys[:5]
        amount = int(args[0])

        balance = int(self._data.get(sender_key, "0"))
        if balance < amount:
            return [3, str(balance)]

        self._incrby(sender_key, -amount)
        self._incrby(recipient_key, amount)
        self._data[entry_key] = args[1]
        self._zadd(sent_index, float(args[2]), args[3])
        self._zadd(received_index, float(args[2]), args[3])

        if len(keys) > 5:
            event_key, events_index = keys[5:7]
            self._data[event_key] = args[4]
            self._zadd(events_index, float(args[5]), args[6])
        return [1, str(balance - amount)]

    def _execute_credit(self, keys: List[str], args: List[Any]) -> list[Any]:
        return [1, str(self._incrby(keys[0], int(args[0])))]

    def _execute_seed_balance(self, keys: List[str], args: List[Any]) -> list[Any]:
        marker_key, balance_key = keys
        if marker_key in self._data:
            return [0, ""]
        self._data[marker_key] = "1"
        return [1, str(self._incrby(balance_key, int(args[0])))]

    def _execute_register_merchant(
        self, keys: List[str], args: List[Any]
    ) -> list[Any]:
        merchant_key, counter_key, owner_index, token_index = keys
        score, member, *field_args = args

        if merchant_key in self._hashes:
            return [0, ""]

        token_id = self._incrby(counter_key, 1) - 1
        fields = {"token_id": str(token_id)}
        for name, value in zip(field_args[::2], field_args[1::2]):
            fields[name] = value
        self._hashes[merchant_key] = fields
        self._zadd(owner_index, float(score), member)
        self._hashes.setdefault(token_index, {})[str(token_id)] = member
        return [1, str(token_id)]
