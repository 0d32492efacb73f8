"""Caller identity for mutating requests.

A caller proves who it is by signing a canonical JSON payload with its
ECDSA P-256 key. The payload names the action and carries a one-time nonce;
its remaining keys are the action's arguments. The caller address is derived
from the public key.
"""

from __future__ import annotations

from typing import Any, Optional, TypeVar
from uuid import uuid4

from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm
from cryptography.hazmat.primitives.asymmetric import ec
from pydantic import BaseModel

from ...crypto.certificates import (
    DERB64,
    Envelope,
    PayloadB64,
    SignatureB64,
    address_from_public_key_der_b64,
    deserialize_envelope_payload,
    generate_envelope,
    load_public_key_from_der_b64,
    public_key_to_der_b64,
    verify_envelope,
)
from ...domain.errors import ReplayedRequestError
from ...domain.shared import NonceRepository

PayloadT = TypeVar("PayloadT", bound=BaseModel)


class SignedRequestDTO(BaseModel):
    """Envelope sent by a caller for any state-changing operation."""

    public_key_der_b64: str
    payload_b64: str
    signature_b64: str


class RequestAuthenticator:
    """Verifies signed requests and consumes their nonces."""

    def __init__(self, nonce_repo: NonceRepository):
        self.nonce_repo = nonce_repo

    async def authenticate(
        self,
        request: SignedRequestDTO,
        action: str,
        payload_model: type[PayloadT],
    ) -> tuple[str, PayloadT]:
        """Return ``(caller_address, payload)`` or raise ValueError."""
        try:
            public_key = load_public_key_from_der_b64(DERB64(request.public_key_der_b64))
        except (ValueError, UnsupportedAlgorithm):
            raise ValueError("Invalid public key")
        if not isinstance(public_key, ec.EllipticCurvePublicKey):
            raise ValueError("Invalid public key")

        envelope = Envelope(
            payload_b64=PayloadB64(request.payload_b64),
            signature_b64=SignatureB64(request.signature_b64),
        )
        try:
            verify_envelope(public_key, envelope)
        except InvalidSignature:
            raise ValueError("Invalid request signature")

        data = deserialize_envelope_payload(envelope)
        if data.get("action") != action:
            raise ValueError(f"Signed payload is not a '{action}' request")
        nonce = data.get("nonce")
        if not isinstance(nonce, str) or not nonce:
            raise ValueError("Signed payload is missing a nonce")
        payload = payload_model.model_validate(data)

        address = address_from_public_key_der_b64(request.public_key_der_b64)
        if not await self.nonce_repo.consume(address, nonce):
            raise ReplayedRequestError()
        return address, payload


def build_signed_request(
    private_key: ec.EllipticCurvePrivateKey,
    action: str,
    nonce: Optional[str] = None,
    **fields: Any,
) -> SignedRequestDTO:
    """Client-side helper: sign an action payload into a SignedRequestDTO."""
    payload = {"action": action, "nonce": nonce or uuid4().hex, **fields}
    envelope = generate_envelope(private_key, payload)
    return SignedRequestDTO(
        public_key_der_b64=public_key_to_der_b64(private_key.public_key()),
        payload_b64=envelope.payload_b64,
        signature_b64=envelope.signature_b64,
    )
