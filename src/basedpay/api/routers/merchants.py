"""Merchant registry, merchant payment and balance routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Path, Query, status
from prometheus_client import Counter

from ...application.merchants.dtos import (
    BalanceResponseDTO,
    DecodeQRRequestDTO,
    MerchantCountDTO,
    MerchantLookupResponseDTO,
    MerchantResponseDTO,
    PayMerchantPayload,
    PaymentResponseDTO,
    RegisterMerchantPayload,
)
from ...application.merchants.use_cases.registry import MerchantRegistryService
from ...application.shared.signed_requests import (
    RequestAuthenticator,
    SignedRequestDTO,
)
from ..dependencies import get_merchant_registry_service, get_request_authenticator
from ..errors import to_http_exception

router = APIRouter(tags=["merchants"])


merchant_payments_total = Counter(
    "merchant_payments_total",
    "Total merchant payment requests processed",
    ["status"],
)


@router.post(
    "/merchants",
    response_model=MerchantResponseDTO,
    status_code=status.HTTP_201_CREATED,
)
async def register_merchant(
    request: SignedRequestDTO,
    authenticator: RequestAuthenticator = Depends(get_request_authenticator),
    service: MerchantRegistryService = Depends(get_merchant_registry_service),
) -> MerchantResponseDTO:
    try:
        caller, payload = await authenticator.authenticate(
            request, "register_merchant", RegisterMerchantPayload
        )
        return await service.register(caller, payload.qr_payload)
    except ValueError as e:
        raise to_http_exception(e)


@router.post("/merchants/lookup", response_model=MerchantLookupResponseDTO)
async def lookup_merchant(
    payload: DecodeQRRequestDTO,
    service: MerchantRegistryService = Depends(get_merchant_registry_service),
) -> MerchantLookupResponseDTO:
    return await service.lookup(payload.qr_payload)


@router.get("/merchants/count", response_model=MerchantCountDTO)
async def count_merchants(
    service: MerchantRegistryService = Depends(get_merchant_registry_service),
) -> MerchantCountDTO:
    return MerchantCountDTO(total_merchants=await service.total_merchants())


@router.get("/merchants/tokens/{token_id}", response_model=MerchantResponseDTO)
async def get_merchant_by_token(
    token_id: int = Path(..., ge=0),
    service: MerchantRegistryService = Depends(get_merchant_registry_service),
) -> MerchantResponseDTO:
    try:
        return await service.get_by_token_id(token_id)
    except ValueError as e:
        raise to_http_exception(e)


@router.get(
    "/merchants/owners/{address}",
    response_model=list[MerchantResponseDTO],
)
async def list_merchants_for_owner(
    address: str,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    service: MerchantRegistryService = Depends(get_merchant_registry_service),
) -> list[MerchantResponseDTO]:
    try:
        return await service.list_for_owner(address, skip=skip, limit=limit)
    except ValueError as e:
        raise to_http_exception(e)


@router.post(
    "/payments",
    response_model=PaymentResponseDTO,
    status_code=status.HTTP_201_CREATED,
)
async def pay_merchant(
    request: SignedRequestDTO,
    authenticator: RequestAuthenticator = Depends(get_request_authenticator),
    service: MerchantRegistryService = Depends(get_merchant_registry_service),
) -> PaymentResponseDTO:
    try:
        caller, payload = await authenticator.authenticate(
            request, "pay_merchant", PayMerchantPayload
        )
        result = await service.pay(caller, payload.qr_payload, payload.amount)
    except ValueError as e:
        merchant_payments_total.labels(status="client_error").inc()
        raise to_http_exception(e)
    merchant_payments_total.labels(status="success").inc()
    return result


@router.get(
    "/payments/received/{address}",
    response_model=list[PaymentResponseDTO],
)
async def list_payments_received(
    address: str,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    service: MerchantRegistryService = Depends(get_merchant_registry_service),
) -> list[PaymentResponseDTO]:
    try:
        return await service.list_payments_received(address, skip=skip, limit=limit)
    except ValueError as e:
        raise to_http_exception(e)


@router.get(
    "/payments/sent/{address}",
    response_model=list[PaymentResponseDTO],
)
async def list_payments_sent(
    address: str,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    service: MerchantRegistryService = Depends(get_merchant_registry_service),
) -> list[PaymentResponseDTO]:
    try:
        return await service.list_payments_sent(address, skip=skip, limit=limit)
    except ValueError as e:
        raise to_http_exception(e)


@router.get("/accounts/{address}/balance", response_model=BalanceResponseDTO)
async def get_balance(
    address: str,
    service: MerchantRegistryService = Depends(get_merchant_registry_service),
) -> BalanceResponseDTO:
    try:
        return await service.balance_of(address)
    except ValueError as e:
        raise to_http_exception(e)
