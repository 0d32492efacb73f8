"""Domain-specific exceptions.

Precondition failures subclass ``ValueError`` and authorization failures
subclass ``PermissionError`` so the API layer can map them to 400 and 403.
"""

from __future__ import annotations


class UnauthorizedCallerError(PermissionError):
    """Raised when a non-operator calls an operator-only operation."""

    def __init__(self, caller: str):
        super().__init__(f"Unauthorized account: {caller}")
        self.caller = caller


class NoUnclaimedBoxesError(ValueError):
    """Raised when a claim is attempted without any unclaimed box."""

    def __init__(self) -> None:
        super().__init__("No unclaimed boxes")


class InsufficientCustodyError(ValueError):
    """Raised when custody cannot cover the drawn prize."""

    def __init__(self) -> None:
        super().__init__("Insufficient contract balance")


class InsufficientBalanceError(ValueError):
    """Raised when a ledger transfer exceeds the source balance."""

    def __init__(self) -> None:
        super().__init__("Insufficient balance")


class InvalidPrizeTableError(ValueError):
    """Raised when a prize table is rejected."""


class EmptyMerchantKeyError(ValueError):
    def __init__(self) -> None:
        super().__init__("Empty QR payload")


class MerchantAlreadyRegisteredError(ValueError):
    def __init__(self) -> None:
        super().__init__("QR payload already registered")


class MerchantNotRegisteredError(ValueError):
    def __init__(self) -> None:
        super().__init__("QR payload not registered to any merchant")


class ReplayedRequestError(ValueError):
    """Raised when a signed request nonce has already been used."""

    def __init__(self) -> None:
        super().__init__("Request nonce already used")
