from __future__ import annotations

import hashlib
import os

from pydantic import BaseModel, field_validator

from ..crypto.certificates import (
    DERB64,
    address_from_public_key_der_b64,
    load_public_key_from_der_b64,
)
from ..domain.shared import normalize_address

DEFAULT_CUSTODY_ADDRESS = "0x" + hashlib.sha256(b"basedpay:mystery-box").hexdigest()[-40:]


class Settings(BaseModel):
    """Typed application settings built from environment variables."""

    database_url: str = "redis://localhost:6379/0"

    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_debug: bool = False
    api_cors_origins: list[str] = ["*"]

    app_name: str = "BasedPay"
    app_version: str = "1.0.0"
    log_level: str = "INFO"

    # Public key whose address may grant boxes, withdraw and edit prize tiers
    operator_public_key_der_b64: str
    draw_secret: str
    custody_address: str = DEFAULT_CUSTODY_ADDRESS
    operator_initial_balance: int = 0

    @field_validator("operator_public_key_der_b64")
    @classmethod
    def validate_operator_public_key(cls, v: str) -> str:
        """Validate that the operator key is a base64 DER public key."""
        if not v:
            raise ValueError("Operator public key cannot be empty")
        try:
            load_public_key_from_der_b64(DERB64(v))
        except Exception as e:
            raise ValueError(f"Invalid operator public key: {e}") from e
        return v

    @field_validator("draw_secret")
    @classmethod
    def validate_draw_secret(cls, v: str) -> str:
        if len(v) < 16:
            raise ValueError("Draw secret must be at least 16 characters")
        return v

    @field_validator("custody_address")
    @classmethod
    def validate_custody_address(cls, v: str) -> str:
        return normalize_address(v)

    @field_validator("operator_initial_balance")
    @classmethod
    def validate_operator_initial_balance(cls, v: int) -> int:
        if v < 0:
            raise ValueError("Operator initial balance cannot be negative")
        return v

    @property
    def operator_address(self) -> str:
        return address_from_public_key_der_b64(self.operator_public_key_der_b64)


def get_settings() -> Settings:
    """Return typed settings instance sourced from env vars."""
    return Settings(
        database_url=os.environ.get("BASEDPAY_DATABASE_URL", "redis://localhost:6379/0"),
        api_host=os.environ.get("BASEDPAY_API_HOST", "0.0.0.0"),
        api_port=int(os.environ.get("BASEDPAY_API_PORT", "8000")),
        api_debug=os.environ.get("BASEDPAY_API_DEBUG", "false").lower() == "true",
        api_cors_origins=os.environ.get("BASEDPAY_API_CORS_ORIGINS", "*").split(","),
        app_name=os.environ.get("BASEDPAY_APP_NAME", "BasedPay"),
        app_version=os.environ.get("BASEDPAY_APP_VERSION", "1.0.0"),
        log_level=os.environ.get("BASEDPAY_LOG_LEVEL", "INFO"),
        operator_public_key_der_b64=os.environ.get(
            "BASEDPAY_OPERATOR_PUBLIC_KEY_DER_B64", ""
        ),
        draw_secret=os.environ.get("BASEDPAY_DRAW_SECRET", ""),
        custody_address=os.environ.get(
            "BASEDPAY_CUSTODY_ADDRESS", DEFAULT_CUSTODY_ADDRESS
        ),
        operator_initial_balance=int(
            os.environ.get("BASEDPAY_OPERATOR_INITIAL_BALANCE", "0")
        ),
    )
