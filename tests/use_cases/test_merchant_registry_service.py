"""Use case tests for MerchantRegistryService using in-memory implementations."""

from __future__ import annotations

import pytest

from basedpay.application.merchants.use_cases.registry import MerchantRegistryService
from basedpay.domain.errors import (
    EmptyMerchantKeyError,
    InsufficientBalanceError,
    MerchantAlreadyRegisteredError,
    MerchantNotRegisteredError,
)
from tests.fixtures import InMemoryTokenLedger
from tests.fixtures.accounts import ALICE, BOB

UEN_QR = (
    "000201010212"
    "26320009SG.PAYNOW010120210201234567a"
    "5406100.00"
    "62120808INV-0001"
    "6304ABCD"
)
OPEN_AMOUNT_QR = "000201010211" "26330009SG.PAYNOW010100211+6591234567" "6304EF01"


@pytest.mark.asyncio
async def test_register_assigns_sequential_token_ids(
    merchant_registry_service: MerchantRegistryService,
) -> None:
    first = await merchant_registry_service.register(ALICE, UEN_QR)
    second = await merchant_registry_service.register(BOB, OPEN_AMOUNT_QR)

    assert first.token_id == 0
    assert first.owner == ALICE
    assert first.proxy_type == "2"
    assert first.proxy_value == "201234567A"
    assert second.token_id == 1
    assert second.proxy_value == "+6591234567"
    assert await merchant_registry_service.total_merchants() == 2


@pytest.mark.asyncio
@pytest.mark.parametrize("payload", ["", "   \n"])
async def test_register_rejects_empty_payload(
    merchant_registry_service: MerchantRegistryService, payload: str
) -> None:
    with pytest.raises(EmptyMerchantKeyError, match="Empty QR payload"):
        await merchant_registry_service.register(ALICE, payload)

    assert await merchant_registry_service.total_merchants() == 0


@pytest.mark.asyncio
async def test_register_is_claim_once(
    merchant_registry_service: MerchantRegistryService,
) -> None:
    await merchant_registry_service.register(ALICE, UEN_QR)

    with pytest.raises(MerchantAlreadyRegisteredError):
        await merchant_registry_service.register(BOB, f"  {UEN_QR} ")

    assert await merchant_registry_service.owner_of(UEN_QR) == ALICE
    assert await merchant_registry_service.total_merchants() == 1


@pytest.mark.asyncio
async def test_payload_case_is_significant(
    merchant_registry_service: MerchantRegistryService,
) -> None:
    await merchant_registry_service.register(ALICE, UEN_QR)

    assert not await merchant_registry_service.is_registered(UEN_QR.lower())


@pytest.mark.asyncio
async def test_register_accepts_non_paynow_payload(
    merchant_registry_service: MerchantRegistryService,
) -> None:
    result = await merchant_registry_service.register(ALICE, "https://pay.example/x")

    assert result.proxy_type is None
    assert result.proxy_value is None
    assert await merchant_registry_service.is_registered("https://pay.example/x")


@pytest.mark.asyncio
async def test_lookup_unregistered_and_empty(
    merchant_registry_service: MerchantRegistryService,
) -> None:
    missing = await merchant_registry_service.lookup(UEN_QR)
    assert missing.is_registered is False
    assert missing.owner is None

    empty = await merchant_registry_service.lookup("  ")
    assert empty.qr_payload == ""
    assert empty.is_registered is False
    assert await merchant_registry_service.owner_of("") is None


@pytest.mark.asyncio
async def test_list_for_owner(
    merchant_registry_service: MerchantRegistryService,
) -> None:
    await merchant_registry_service.register(ALICE, UEN_QR)
    await merchant_registry_service.register(ALICE, OPEN_AMOUNT_QR)
    await merchant_registry_service.register(BOB, "other-payload")

    owned = await merchant_registry_service.list_for_owner(ALICE)

    assert {m.qr_payload for m in owned} == {UEN_QR, OPEN_AMOUNT_QR}
    assert await merchant_registry_service.list_for_owner(BOB, limit=10) != []


@pytest.mark.asyncio
async def test_resolve_payment_unregistered(
    merchant_registry_service: MerchantRegistryService,
) -> None:
    with pytest.raises(MerchantNotRegisteredError):
        await merchant_registry_service.resolve_payment(UEN_QR)


@pytest.mark.asyncio
async def test_resolve_payment_returns_merchant_and_amount(
    merchant_registry_service: MerchantRegistryService,
) -> None:
    await merchant_registry_service.register(ALICE, UEN_QR)

    resolution = await merchant_registry_service.resolve_payment(UEN_QR)

    assert resolution.merchant_address == ALICE
    assert resolution.amount == "100.00"
    assert resolution.amount_units == 100_000_000
    assert resolution.reference == "INV-0001"


@pytest.mark.asyncio
async def test_pay_uses_amount_from_qr(
    merchant_registry_service: MerchantRegistryService,
    ledger: InMemoryTokenLedger,
) -> None:
    await merchant_registry_service.register(ALICE, UEN_QR)
    await ledger.credit(BOB, 150_000_000)

    payment = await merchant_registry_service.pay(BOB, UEN_QR)

    assert payment.payer == BOB
    assert payment.merchant_address == ALICE
    assert payment.amount == 100_000_000
    assert payment.reference == "INV-0001"
    assert await ledger.balance_of(BOB) == 50_000_000
    assert (await merchant_registry_service.balance_of(ALICE)).balance == 100_000_000

    received = await merchant_registry_service.list_payments_received(ALICE)
    sent = await merchant_registry_service.list_payments_sent(BOB)
    assert [p.id for p in received] == [payment.id]
    assert [p.id for p in sent] == [payment.id]
    assert received[0].qr_payload == UEN_QR


@pytest.mark.asyncio
async def test_pay_explicit_amount_overrides_qr(
    merchant_registry_service: MerchantRegistryService,
    ledger: InMemoryTokenLedger,
) -> None:
    await merchant_registry_service.register(ALICE, UEN_QR)
    await ledger.credit(BOB, 1_000)

    payment = await merchant_registry_service.pay(BOB, UEN_QR, amount=250)

    assert payment.amount == 250
    assert await ledger.balance_of(ALICE) == 250


@pytest.mark.asyncio
async def test_pay_requires_an_amount(
    merchant_registry_service: MerchantRegistryService,
    ledger: InMemoryTokenLedger,
) -> None:
    await merchant_registry_service.register(ALICE, OPEN_AMOUNT_QR)
    await ledger.credit(BOB, 1_000)

    with pytest.raises(ValueError, match="must be positive"):
        await merchant_registry_service.pay(BOB, OPEN_AMOUNT_QR)


@pytest.mark.asyncio
async def test_pay_rejects_insufficient_balance(
    merchant_registry_service: MerchantRegistryService,
    ledger: InMemoryTokenLedger,
) -> None:
    await merchant_registry_service.register(ALICE, OPEN_AMOUNT_QR)
    await ledger.credit(BOB, 10)

    with pytest.raises(InsufficientBalanceError):
        await merchant_registry_service.pay(BOB, OPEN_AMOUNT_QR, amount=11)

    assert await ledger.balance_of(BOB) == 10
    assert await merchant_registry_service.list_payments_received(ALICE) == []


@pytest.mark.asyncio
async def test_pay_unregistered_merchant(
    merchant_registry_service: MerchantRegistryService,
    ledger: InMemoryTokenLedger,
) -> None:
    await ledger.credit(BOB, 1_000)

    with pytest.raises(MerchantNotRegisteredError):
        await merchant_registry_service.pay(BOB, UEN_QR, amount=1)


def test_decode_flags_uen() -> None:
    decoded = MerchantRegistryService.decode(UEN_QR)

    assert decoded.is_uen is True
    assert decoded.proxy_value == "201234567a"
    assert MerchantRegistryService.decode("garbage").is_uen is False


@pytest.mark.asyncio
async def test_get_by_token_id_maps_both_ways(
    merchant_registry_service: MerchantRegistryService,
) -> None:
    first = await merchant_registry_service.register(ALICE, UEN_QR)
    second = await merchant_registry_service.register(BOB, OPEN_AMOUNT_QR)

    by_first = await merchant_registry_service.get_by_token_id(first.token_id)
    by_second = await merchant_registry_service.get_by_token_id(second.token_id)

    assert by_first.qr_payload == UEN_QR
    assert by_first.owner == ALICE
    assert by_second.qr_payload == OPEN_AMOUNT_QR
    assert by_second.token_id == 1


@pytest.mark.asyncio
async def test_get_by_token_id_unknown(
    merchant_registry_service: MerchantRegistryService,
) -> None:
    await merchant_registry_service.register(ALICE, UEN_QR)

    with pytest.raises(MerchantNotRegisteredError):
        await merchant_registry_service.get_by_token_id(1)


@pytest.mark.asyncio
async def test_duplicate_registration_keeps_token_mapping(
    merchant_registry_service: MerchantRegistryService,
) -> None:
    await merchant_registry_service.register(ALICE, UEN_QR)
    with pytest.raises(MerchantAlreadyRegisteredError):
        await merchant_registry_service.register(BOB, UEN_QR)

    assert (await merchant_registry_service.get_by_token_id(0)).owner == ALICE
    with pytest.raises(MerchantNotRegisteredError):
        await merchant_registry_service.get_by_token_id(1)


@pytest.mark.asyncio
async def test_pay_rejects_amount_beyond_exact_range(
    merchant_registry_service: MerchantRegistryService,
    ledger: InMemoryTokenLedger,
) -> None:
    # 9_999_999_999 dollars is 9.99e15 units, above 2**53
    huge_qr = (
        "000201010212"
        "26320009SG.PAYNOW010120210201234567a"
        "54109999999999"
        "6304ABCD"
    )
    await merchant_registry_service.register(ALICE, huge_qr)
    await ledger.credit(BOB, 1_000)

    with pytest.raises(ValueError, match="too large"):
        await merchant_registry_service.pay(BOB, huge_qr)

    assert await ledger.balance_of(BOB) == 1_000
