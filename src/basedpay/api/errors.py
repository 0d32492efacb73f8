from __future__ import annotations

from fastapi import HTTPException, status

from ..domain.errors import MerchantAlreadyRegisteredError, MerchantNotRegisteredError


def to_http_exception(exc: Exception) -> HTTPException:
    """Map a domain/application failure to the HTTP error returned to the caller."""
    if isinstance(exc, PermissionError):
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc))
    if isinstance(exc, MerchantNotRegisteredError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    if isinstance(exc, MerchantAlreadyRegisteredError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
