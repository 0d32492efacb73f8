"""PayNow QR decoding and payment resolution routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from ...application.merchants.dtos import (
    DecodedQRResponseDTO,
    DecodeQRRequestDTO,
    PaymentResolutionDTO,
)
from ...application.merchants.use_cases.registry import MerchantRegistryService
from ..dependencies import get_merchant_registry_service
from ..errors import to_http_exception

router = APIRouter(prefix="/paynow", tags=["paynow"])


@router.post("/decode", response_model=DecodedQRResponseDTO)
async def decode_qr(payload: DecodeQRRequestDTO) -> DecodedQRResponseDTO:
    """Decode a scanned or pasted QR payload. Never fails on malformed input."""
    return MerchantRegistryService.decode(payload.qr_payload)


@router.post("/resolve", response_model=PaymentResolutionDTO)
async def resolve_payment(
    payload: DecodeQRRequestDTO,
    service: MerchantRegistryService = Depends(get_merchant_registry_service),
) -> PaymentResolutionDTO:
    try:
        return await service.resolve_payment(payload.qr_payload)
    except ValueError as e:
        raise to_http_exception(e)
