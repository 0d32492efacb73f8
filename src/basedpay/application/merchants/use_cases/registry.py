"""Merchant registration, QR resolution and merchant payments."""

from __future__ import annotations

import logging
from typing import Optional

from ....codec.paynow import (
    decode_paynow_qr,
    format_uen,
    is_valid_uen,
    parse_usdc_amount,
)
from ....domain.errors import (
    EmptyMerchantKeyError,
    InsufficientBalanceError,
    MerchantAlreadyRegisteredError,
    MerchantNotRegisteredError,
)
from ....domain.ledger.entities import MAX_AMOUNT, LedgerEntry
from ....domain.ledger.repositories import TokenLedger
from ....domain.merchants.entities import MerchantRegistration
from ....domain.merchants.repositories import MerchantRegistryRepository
from ....domain.shared import normalize_address
from ..dtos import (
    BalanceResponseDTO,
    DecodedQRResponseDTO,
    MerchantLookupResponseDTO,
    MerchantResponseDTO,
    PaymentResolutionDTO,
    PaymentResponseDTO,
)

logger = logging.getLogger(__name__)

PROXY_TYPE_UEN = "2"
LEDGER_KIND_PAYMENT = "payment"


def merchant_key(qr_payload: Optional[str]) -> str:
    """Normalize a QR payload into the registry key.

    The whole trimmed payload is the key; case is preserved because the
    payload is opaque (it embeds a checksum).
    """
    return (qr_payload or "").strip()


def _payment_dto(entry: LedgerEntry) -> PaymentResponseDTO:
    return PaymentResponseDTO(
        id=entry.id,
        payer=entry.sender,
        merchant_address=entry.recipient,
        amount=entry.amount,
        qr_payload=entry.memo.get("qr_payload"),
        reference=entry.memo.get("reference"),
        created_at=entry.created_at,
    )


class MerchantRegistryService:
    """Claim-once registry of QR payloads plus the scan-to-pay flow."""

    def __init__(self, registry_repo: MerchantRegistryRepository, ledger: TokenLedger):
        self.registry_repo = registry_repo
        self.ledger = ledger

    @staticmethod
    def decode(qr_payload: str) -> DecodedQRResponseDTO:
        decoded = decode_paynow_qr(qr_payload)
        return DecodedQRResponseDTO(
            **decoded.model_dump(),
            is_uen=decoded.proxy_type == PROXY_TYPE_UEN
            and is_valid_uen(decoded.proxy_value),
        )

    async def register(self, caller: str, qr_payload: str) -> MerchantResponseDTO:
        key = merchant_key(qr_payload)
        if not key:
            raise EmptyMerchantKeyError()
        owner = normalize_address(caller)
        decoded = decode_paynow_qr(key)
        proxy_value = decoded.proxy_value
        if proxy_value and decoded.proxy_type == PROXY_TYPE_UEN:
            proxy_value = format_uen(proxy_value)

        registration = await self.registry_repo.register(
            MerchantRegistration(
                qr_payload=key,
                owner=owner,
                proxy_type=decoded.proxy_type,
                proxy_value=proxy_value,
            )
        )
        if registration is None:
            raise MerchantAlreadyRegisteredError()
        logger.info("Merchant %s registered QR #%d", owner, registration.token_id)
        return MerchantResponseDTO(**registration.model_dump())

    async def is_registered(self, qr_payload: str) -> bool:
        key = merchant_key(qr_payload)
        if not key:
            return False
        return await self.registry_repo.get(key) is not None

    async def owner_of(self, qr_payload: str) -> Optional[str]:
        key = merchant_key(qr_payload)
        if not key:
            return None
        registration = await self.registry_repo.get(key)
        return registration.owner if registration else None

    async def lookup(self, qr_payload: str) -> MerchantLookupResponseDTO:
        owner = await self.owner_of(qr_payload)
        return MerchantLookupResponseDTO(
            qr_payload=merchant_key(qr_payload),
            is_registered=owner is not None,
            owner=owner,
        )

    async def get_by_token_id(self, token_id: int) -> MerchantResponseDTO:
        registration = await self.registry_repo.get_by_token_id(token_id)
        if registration is None:
            raise MerchantNotRegisteredError()
        return MerchantResponseDTO(**registration.model_dump())

    async def total_merchants(self) -> int:
        return await self.registry_repo.count()

    async def list_for_owner(
        self, owner: str, skip: int = 0, limit: int = 100
    ) -> list[MerchantResponseDTO]:
        registrations = await self.registry_repo.list_for_owner(
            normalize_address(owner), skip=skip, limit=limit
        )
        return [MerchantResponseDTO(**r.model_dump()) for r in registrations]

    async def resolve_payment(self, qr_payload: str) -> PaymentResolutionDTO:
        key = merchant_key(qr_payload)
        if not key:
            raise EmptyMerchantKeyError()
        registration = await self.registry_repo.get(key)
        if registration is None:
            raise MerchantNotRegisteredError()
        decoded = decode_paynow_qr(key)
        return PaymentResolutionDTO(
            merchant_address=registration.owner,
            qr_payload=key,
            proxy_type=decoded.proxy_type,
            proxy_value=decoded.proxy_value,
            amount=decoded.amount,
            amount_units=parse_usdc_amount(decoded.amount),
            reference=decoded.reference,
        )

    async def pay(
        self, caller: str, qr_payload: str, amount: Optional[int] = None
    ) -> PaymentResponseDTO:
        """Pay the merchant behind a QR.

        An explicit ``amount`` wins over the amount embedded in the QR.
        """
        payer = normalize_address(caller)
        resolution = await self.resolve_payment(qr_payload)
        units = amount if amount is not None else resolution.amount_units
        if units is None or units <= 0:
            raise ValueError("Payment amount must be positive")
        if units > MAX_AMOUNT:
            raise ValueError("Payment amount too large")

        memo = {"qr_payload": resolution.qr_payload}
        if resolution.reference:
            memo["reference"] = resolution.reference
        entry = await self.ledger.transfer(
            LedgerEntry(
                kind=LEDGER_KIND_PAYMENT,
                sender=payer,
                recipient=resolution.merchant_address,
                amount=units,
                memo=memo,
            )
        )
        if entry is None:
            raise InsufficientBalanceError()
        return _payment_dto(entry)

    async def list_payments_received(
        self, merchant: str, skip: int = 0, limit: int = 100
    ) -> list[PaymentResponseDTO]:
        entries = await self.ledger.list_received(
            normalize_address(merchant), LEDGER_KIND_PAYMENT, skip=skip, limit=limit
        )
        return [_payment_dto(entry) for entry in entries]

    async def list_payments_sent(
        self, payer: str, skip: int = 0, limit: int = 100
    ) -> list[PaymentResponseDTO]:
        entries = await self.ledger.list_sent(
            normalize_address(payer), LEDGER_KIND_PAYMENT, skip=skip, limit=limit
        )
        return [_payment_dto(entry) for entry in entries]

    async def balance_of(self, address: str) -> BalanceResponseDTO:
        normalized = normalize_address(address)
        return BalanceResponseDTO(
            address=normalized, balance=await self.ledger.balance_of(normalized)
        )
