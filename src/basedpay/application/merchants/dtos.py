"""Data Transfer Objects for PayNow decoding, merchant registration and payments."""

from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_serializer

from ...domain.ledger.entities import MAX_AMOUNT


class DecodeQRRequestDTO(BaseModel):
    qr_payload: str


class DecodedQRResponseDTO(BaseModel):
    raw: str
    proxy_type: Optional[str] = None
    proxy_value: Optional[str] = None
    amount: Optional[str] = None
    reference: Optional[str] = None
    is_uen: bool = False


class MerchantResponseDTO(BaseModel):
    qr_payload: str
    owner: str
    token_id: int
    proxy_type: Optional[str] = None
    proxy_value: Optional[str] = None
    registered_at: datetime

    @field_serializer("registered_at")
    def serialize_registered_at(self, value: datetime) -> str:
        return value.isoformat()


class MerchantLookupResponseDTO(BaseModel):
    qr_payload: str
    is_registered: bool
    owner: Optional[str] = None


class MerchantCountDTO(BaseModel):
    total_merchants: int


class PaymentResolutionDTO(BaseModel):
    """Where a scanned QR pays to, and what it asks for."""

    merchant_address: str
    qr_payload: str
    proxy_type: Optional[str] = None
    proxy_value: Optional[str] = None
    amount: Optional[str] = None
    amount_units: Optional[int] = None
    reference: Optional[str] = None


class PaymentResponseDTO(BaseModel):
    id: UUID
    payer: str
    merchant_address: str
    amount: int
    qr_payload: Optional[str] = None
    reference: Optional[str] = None
    created_at: datetime

    @field_serializer("id")
    def serialize_id(self, value: UUID) -> str:
        return str(value)

    @field_serializer("created_at")
    def serialize_created_at(self, value: datetime) -> str:
        return value.isoformat()


class BalanceResponseDTO(BaseModel):
    address: str
    balance: int


# Signed payload bodies
class RegisterMerchantPayload(BaseModel):
    qr_payload: str


class PayMerchantPayload(BaseModel):
    qr_payload: str
    amount: Optional[int] = Field(default=None, gt=0, le=MAX_AMOUNT)
