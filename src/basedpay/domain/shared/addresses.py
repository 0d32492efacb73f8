from __future__ import annotations

import re

ZERO_ADDRESS = "0x" + "0" * 40

_ADDRESS_RE = re.compile(r"^0x[0-9a-f]{40}$")


def normalize_address(value: str) -> str:
    """Return the canonical lower-case form of an address or raise ValueError."""
    candidate = (value or "").strip().lower()
    if not _ADDRESS_RE.match(candidate):
        raise ValueError(f"Invalid address: {value!r}")
    return candidate


def is_zero_address(value: str) -> bool:
    return (value or "").strip().lower() == ZERO_ADDRESS
