# storefront/api/errors.py
from fastapi import HTTPException

from storefront.domain.errors import StorefrontError, TransientStoreError, UnauthenticatedError


def to_http(e: StorefrontError) -> HTTPException:
    # order matters: AuthorizationError is both transient and a PermissionError
    if isinstance(e, UnauthenticatedError):
        return HTTPException(status_code=401, detail=str(e))
    if isinstance(e, PermissionError):
        return HTTPException(status_code=403, detail=str(e))
    if isinstance(e, TransientStoreError):
        return HTTPException(status_code=503, detail=str(e))
    if isinstance(e, LookupError):
        return HTTPException(status_code=404, detail=str(e))
    return HTTPException(status_code=400, detail=str(e))
