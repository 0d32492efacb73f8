from __future__ import annotations

import base64
import hashlib
import json
from typing import NewType

from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from pydantic import BaseModel

# Stronger semantic aliases
PayloadB64 = NewType("PayloadB64", str)
SignatureB64 = NewType("SignatureB64", str)
DERB64 = NewType("DERB64", str)


class Envelope(BaseModel):
    """Typed container for a base64-encoded canonical JSON payload and its signature."""

    payload_b64: PayloadB64
    signature_b64: SignatureB64


def json_to_bytes(data: dict) -> bytes:
    """Serialize dict to canonical JSON bytes for signing/verification."""
    return json.dumps(data, separators=(",", ":"), sort_keys=True).encode("utf-8")


def sign_bytes(private_key: ec.EllipticCurvePrivateKey, payload_bytes: bytes) -> str:
    """Sign bytes with ECDSA SHA256 and return base64-encoded DER signature."""
    signature_der = private_key.sign(payload_bytes, ec.ECDSA(hashes.SHA256()))
    return base64.b64encode(signature_der).decode("utf-8")


def verify_signature_bytes(
    public_key: ec.EllipticCurvePublicKey, payload_bytes: bytes, signature_b64: str
) -> bool:
    """Verify base64-encoded DER signature over payload bytes. Raises InvalidSignature on failure."""
    signature_bytes = base64.b64decode(signature_b64, validate=True)
    public_key.verify(signature_bytes, payload_bytes, ec.ECDSA(hashes.SHA256()))
    return True


def load_public_key_from_der_b64(der_b64: DERB64) -> ec.EllipticCurvePublicKey:
    """Load a cryptography public key object from base64-encoded DER (SubjectPublicKeyInfo)."""
    der = base64.b64decode(der_b64, validate=True)
    return serialization.load_der_public_key(der)


def public_key_to_der_b64(public_key: ec.EllipticCurvePublicKey) -> str:
    der = public_key.public_bytes(
        encoding=serialization.Encoding.DER,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    return base64.b64encode(der).decode("utf-8")


def address_from_public_key_der_b64(der_b64: str) -> str:
    """Derive the wallet-style address of a public key.

    The address is ``0x`` followed by the last 20 bytes of
    ``sha256(DER public key)`` as lower-case hex.
    """
    der = base64.b64decode(der_b64, validate=True)
    return "0x" + hashlib.sha256(der).digest()[-20:].hex()


def generate_envelope(
    private_key: ec.EllipticCurvePrivateKey, payload: dict
) -> Envelope:
    """Sign a payload dict and wrap it in an envelope."""
    payload_bytes = json_to_bytes(payload)
    signature_b64 = sign_bytes(private_key, payload_bytes)
    return Envelope(
        payload_b64=PayloadB64(base64.b64encode(payload_bytes).decode("utf-8")),
        signature_b64=SignatureB64(signature_b64),
    )


def verify_envelope(public_key: ec.EllipticCurvePublicKey, envelope: Envelope) -> bool:
    """Verify a signature over the decoded payload bytes contained in the envelope."""
    payload_bytes = base64.b64decode(envelope.payload_b64, validate=True)
    return verify_signature_bytes(public_key, payload_bytes, envelope.signature_b64)


def deserialize_envelope_payload(envelope: Envelope) -> dict:
    """Decode the JSON object carried by an envelope."""
    payload_bytes = base64.b64decode(envelope.payload_b64, validate=True)
    data = json.loads(payload_bytes.decode("utf-8"))
    if not isinstance(data, dict):
        raise ValueError("Envelope payload must be a JSON object")
    return data
