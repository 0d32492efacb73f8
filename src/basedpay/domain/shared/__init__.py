"""Shared domain utilities.

This package is domain-accessible and should not depend on application code.
"""

from .addresses import ZERO_ADDRESS, is_zero_address, normalize_address
from .nonce_repository import NonceRepository

__all__ = ["ZERO_ADDRESS", "NonceRepository", "is_zero_address", "normalize_address"]
