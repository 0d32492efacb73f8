"""PayNow QR payload decoding.

PayNow QR codes follow the EMVCo merchant-presented QR standard, a flat
sequence of Tag-Length-Value fields where both tag and length are two ASCII
digits::

    00 02 01             payload format indicator
    26 LL                merchant account information
        00 09 SG.PAYNOW  globally unique identifier
        01 01 2          proxy type (0 = mobile, 2 = UEN)
        02 LL <value>    proxy value
    54 LL <amount>       transaction amount
    62 LL                additional data
        08 LL <ref>      bill / payment reference
    63 04 <crc>          checksum (not verified)

Decoding is lenient: declared lengths are trusted, a value cut short by the
end of the payload is kept as-is, and anything that cannot be parsed simply
leaves the corresponding field unset.
"""

from __future__ import annotations

import logging
import re
from decimal import Decimal, InvalidOperation, ROUND_DOWN
from typing import Iterator, Optional

from pydantic import BaseModel, ConfigDict

logger = logging.getLogger(__name__)

PAYNOW_GUID = "SG.PAYNOW"
MERCHANT_ACCOUNT_TAGS = frozenset(f"{tag:02d}" for tag in range(26, 52))
TAG_AMOUNT = "54"
TAG_ADDITIONAL_DATA = "62"
SUBTAG_GUID = "00"
SUBTAG_PROXY_TYPE = "01"
SUBTAG_PROXY_VALUE = "02"
SUBTAG_REFERENCE = "08"

USDC_DECIMALS = 6

_HEADER_RE = re.compile(r"(\d{2})(\d{2})", re.ASCII)


class PayNowQRData(BaseModel):
    """Fields extracted from a scanned or pasted QR payload."""

    model_config = ConfigDict(frozen=True)

    raw: str
    proxy_type: Optional[str] = None
    proxy_value: Optional[str] = None
    amount: Optional[str] = None
    reference: Optional[str] = None


def iter_tlv(data: str) -> Iterator[tuple[str, str]]:
    """Yield ``(tag, value)`` pairs until the data stops looking like TLV."""
    pos = 0
    while pos < len(data):
        header = _HEADER_RE.match(data, pos)
        if header is None:
            return
        tag, length = header.group(1), int(header.group(2))
        start = header.end()
        yield tag, data[start : start + length]
        pos = start + length


def _first(fields: list[tuple[str, str]], tag: str) -> Optional[str]:
    for field_tag, value in fields:
        if field_tag == tag:
            return value or None
    return None


def _merchant_account_block(fields: list[tuple[str, str]]) -> Optional[str]:
    candidates = [value for tag, value in fields if tag in MERCHANT_ACCOUNT_TAGS]
    for value in candidates:
        if _first(list(iter_tlv(value)), SUBTAG_GUID) == PAYNOW_GUID:
            return value
    return candidates[0] if candidates else None


def decode_paynow_qr(payload: str) -> PayNowQRData:
    """Decode a QR payload. Never raises; unparseable parts are left unset."""
    raw = (payload or "").strip()
    if not raw:
        return PayNowQRData(raw="")

    try:
        fields = list(iter_tlv(raw))

        proxy_type = proxy_value = None
        block = _merchant_account_block(fields)
        if block is not None:
            nested = list(iter_tlv(block))
            proxy_type = _first(nested, SUBTAG_PROXY_TYPE)
            proxy_value = _first(nested, SUBTAG_PROXY_VALUE)

        reference = None
        additional = _first(fields, TAG_ADDITIONAL_DATA)
        if additional is not None:
            reference = _first(list(iter_tlv(additional)), SUBTAG_REFERENCE)

        return PayNowQRData(
            raw=raw,
            proxy_type=proxy_type,
            proxy_value=proxy_value,
            amount=_first(fields, TAG_AMOUNT),
            reference=reference,
        )
    except ValueError:
        logger.debug("Failed to decode QR payload %r", raw, exc_info=True)
        return PayNowQRData(raw=raw)


def is_valid_uen(uen: Optional[str]) -> bool:
    """Loose Singapore UEN check: 9-10 characters ending with a letter."""
    if not uen or not isinstance(uen, str):
        return False
    clean = format_uen(uen)
    if len(clean) < 9 or len(clean) > 10:
        return False
    return clean[-1].isascii() and clean[-1].isalpha()


def format_uen(uen: str) -> str:
    return uen.strip().upper()


def parse_usdc_amount(amount: Optional[str]) -> Optional[int]:
    """Convert a decimal amount string to integer USDC units (6 decimals).

    Fractions below one unit are truncated. Returns None for anything that is
    not a positive finite number.
    """
    if amount is None:
        return None
    try:
        value = Decimal(amount.strip())
    except InvalidOperation:
        return None
    if not value.is_finite() or value <= 0:
        return None
    units = int(value.scaleb(USDC_DECIMALS).to_integral_value(rounding=ROUND_DOWN))
    return units if units > 0 else None
