"""Mystery box reward engine."""

from __future__ import annotations

import logging
from typing import Sequence

from ....domain.errors import (
    InsufficientBalanceError,
    InsufficientCustodyError,
    NoUnclaimedBoxesError,
    UnauthorizedCallerError,
)
from ....domain.ledger.entities import MAX_AMOUNT, LedgerEntry
from ....domain.ledger.repositories import TokenLedger
from ....domain.rewards.entities import (
    ClaimStatus,
    PrizeTable,
    RewardEvent,
    UserRewardAccount,
)
from ....domain.rewards.repositories import (
    PrizeTableRepository,
    RewardAccountRepository,
    RewardEventRepository,
)
from ....domain.shared import is_zero_address, normalize_address
from ..draw import EntropySource, build_prize_table, default_prize_table, pick_tier
from ..dtos import (
    ClaimResponseDTO,
    FundsResponseDTO,
    GlobalStatsDTO,
    GrantBatchResponseDTO,
    GrantResponseDTO,
    PrizeTableDTO,
    PrizeTierDTO,
    RewardEventDTO,
    UserStatsDTO,
)

logger = logging.getLogger(__name__)

EVENT_BOX_GRANTED = "box_granted"
EVENT_BOX_OPENED = "box_opened"
EVENT_FUNDS_DEPOSITED = "funds_deposited"
EVENT_FUNDS_WITHDRAWN = "funds_withdrawn"
EVENT_PRIZE_TIERS_UPDATED = "prize_tiers_updated"


def _check_amount(amount: int) -> None:
    if amount <= 0:
        raise ValueError("Amount must be positive")
    if amount > MAX_AMOUNT:
        raise ValueError("Amount too large")


def _stats_dto(account: UserRewardAccount) -> UserStatsDTO:
    return UserStatsDTO(
        address=account.address,
        unclaimed=account.unclaimed_boxes,
        opened=account.boxes_opened,
        earned=account.total_claimed,
        biggest=account.biggest_win,
    )


class MysteryBoxService:
    """Grants boxes, draws prizes on claim and manages the custody balance.

    Every operation takes the already-authenticated caller address. Operator
    operations reject any caller other than ``operator_address``. Each
    state change is delegated to a single atomic repository call, so a
    rejected operation never leaves partial state behind.
    """

    def __init__(
        self,
        account_repo: RewardAccountRepository,
        prize_table_repo: PrizeTableRepository,
        event_repo: RewardEventRepository,
        ledger: TokenLedger,
        entropy: EntropySource,
        operator_address: str,
        custody_address: str,
    ):
        self.account_repo = account_repo
        self.prize_table_repo = prize_table_repo
        self.event_repo = event_repo
        self.ledger = ledger
        self.entropy = entropy
        self.operator_address = normalize_address(operator_address)
        self.custody_address = normalize_address(custody_address)

    def _require_operator(self, caller: str) -> None:
        if normalize_address(caller) != self.operator_address:
            raise UnauthorizedCallerError(caller)

    async def _prize_table(self) -> PrizeTable:
        table = await self.prize_table_repo.get()
        return table if table is not None else default_prize_table()

    async def grant(self, caller: str, user: str) -> GrantResponseDTO:
        self._require_operator(caller)
        address = normalize_address(user)
        unclaimed = await self.account_repo.grant(
            address, RewardEvent(kind=EVENT_BOX_GRANTED, address=address)
        )
        return GrantResponseDTO(address=address, unclaimed=unclaimed)

    async def grant_batch(
        self, caller: str, users: Sequence[str]
    ) -> GrantBatchResponseDTO:
        self._require_operator(caller)
        # Validate every entry before granting anything
        addresses = [normalize_address(user) for user in users]
        recipients = [a for a in addresses if not is_zero_address(a)]
        counts = await self.account_repo.grant_many(
            [RewardEvent(kind=EVENT_BOX_GRANTED, address=a) for a in recipients]
        )
        granted = [
            GrantResponseDTO(address=address, unclaimed=unclaimed)
            for address, unclaimed in zip(recipients, counts)
        ]
        return GrantBatchResponseDTO(
            granted=granted, skipped=len(addresses) - len(recipients)
        )

    async def claim(self, caller: str) -> ClaimResponseDTO:
        address = normalize_address(caller)
        account = await self.account_repo.get(address)
        if account.unclaimed_boxes <= 0:
            raise NoUnclaimedBoxesError()

        table = await self._prize_table()
        draw = self.entropy.draw(address, account.boxes_opened)
        tier_index = pick_tier(table, draw)
        prize = table.tiers[tier_index].amount

        event = RewardEvent(
            kind=EVENT_BOX_OPENED,
            address=address,
            amount=prize,
            data={"tier_index": tier_index},
        )
        status = await self.account_repo.claim(
            address, prize, self.custody_address, event
        )
        if status is ClaimStatus.NO_BOXES:
            # Another claim consumed the last box after our read
            raise NoUnclaimedBoxesError()
        if status is ClaimStatus.INSUFFICIENT_CUSTODY:
            logger.warning(
                "Claim by %s rejected: custody cannot cover prize %d", address, prize
            )
            raise InsufficientCustodyError()

        logger.info("Box opened by %s: tier %d, prize %d", address, tier_index, prize)
        updated = await self.account_repo.get(address)
        return ClaimResponseDTO(
            address=address,
            prize_amount=prize,
            tier_index=tier_index,
            stats=_stats_dto(updated),
        )

    async def get_user_stats(self, user: str) -> UserStatsDTO:
        account = await self.account_repo.get(normalize_address(user))
        return _stats_dto(account)

    async def deposit_funds(self, caller: str, amount: int) -> FundsResponseDTO:
        _check_amount(amount)
        sender = normalize_address(caller)
        moved = await self.event_repo.record_transfer(
            LedgerEntry(
                kind=EVENT_FUNDS_DEPOSITED,
                sender=sender,
                recipient=self.custody_address,
                amount=amount,
            ),
            RewardEvent(kind=EVENT_FUNDS_DEPOSITED, address=sender, amount=amount),
        )
        if not moved:
            raise InsufficientBalanceError()
        return FundsResponseDTO(
            amount=amount, contract_balance=await self.get_contract_balance()
        )

    async def withdraw_funds(self, caller: str, amount: int) -> FundsResponseDTO:
        self._require_operator(caller)
        _check_amount(amount)
        moved = await self.event_repo.record_transfer(
            LedgerEntry(
                kind=EVENT_FUNDS_WITHDRAWN,
                sender=self.custody_address,
                recipient=self.operator_address,
                amount=amount,
            ),
            RewardEvent(
                kind=EVENT_FUNDS_WITHDRAWN, address=self.operator_address, amount=amount
            ),
        )
        if not moved:
            raise InsufficientBalanceError()
        return FundsResponseDTO(
            amount=amount, contract_balance=await self.get_contract_balance()
        )

    async def update_prize_tiers(
        self, caller: str, amounts: Sequence[int], cumulative_weights: Sequence[int]
    ) -> PrizeTableDTO:
        self._require_operator(caller)
        table = build_prize_table(amounts, cumulative_weights)
        await self.prize_table_repo.replace(
            table,
            RewardEvent(
                kind=EVENT_PRIZE_TIERS_UPDATED,
                address=self.operator_address,
                data={
                    "amounts": table.amounts,
                    "cumulative_weights": table.cumulative_weights,
                },
            ),
        )
        return self._table_dto(table)

    @staticmethod
    def _table_dto(table: PrizeTable) -> PrizeTableDTO:
        return PrizeTableDTO(
            tiers=[
                PrizeTierDTO(amount=tier.amount, cumulative_weight=tier.cumulative_weight)
                for tier in table.tiers
            ]
        )

    async def get_prize_tiers(self) -> PrizeTableDTO:
        return self._table_dto(await self._prize_table())

    async def get_contract_balance(self) -> int:
        return await self.ledger.balance_of(self.custody_address)

    async def get_global_stats(self) -> GlobalStatsDTO:
        stats = await self.account_repo.get_global_stats()
        return GlobalStatsDTO(
            total_boxes_opened=stats.total_boxes_opened,
            total_rewards_distributed=stats.total_rewards_distributed,
            contract_balance=await self.get_contract_balance(),
        )

    async def list_events(self, skip: int = 0, limit: int = 100) -> list[RewardEventDTO]:
        events = await self.event_repo.list_recent(skip=skip, limit=limit)
        return [RewardEventDTO(**event.model_dump()) for event in events]
