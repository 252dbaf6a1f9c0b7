"""
Error taxonomy shared by the repository, the adjustment protocol and the routers.

- ValidationError: caller input rejected before any gateway call
- NotFound: referenced category or item no longer exists
- GatewayError: the database rejected or failed a call (never retried)
- UploadError: image storage failed; the dependent record write must not run
"""

from typing import Iterable, Optional

from fastapi import HTTPException, status


class InventoryError(Exception):
    """Base class for every error the inventory core raises."""


class ValidationError(InventoryError):
    def __init__(self, messages: Iterable[str]):
        self.messages = [m for m in messages if m]
        super().__init__("; ".join(self.messages) or "invalid input")


class NotFound(InventoryError):
    def __init__(self, kind: str, ident):
        self.kind = kind
        self.ident = ident
        super().__init__(f"{kind} with id {ident} not found")


class GatewayError(InventoryError):
    def __init__(self, action: str, cause: Optional[BaseException] = None):
        self.action = action
        self.cause = cause
        detail = f"{action} failed"
        if cause is not None:
            detail = f"{detail}: {cause}"
        super().__init__(detail)


class UploadError(InventoryError):
    def __init__(self, message: str, cause: Optional[BaseException] = None):
        self.cause = cause
        super().__init__(message)


_STATUS_BY_ERROR = (
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (NotFound, status.HTTP_404_NOT_FOUND),
    (UploadError, status.HTTP_502_BAD_GATEWAY),
    (GatewayError, status.HTTP_502_BAD_GATEWAY),
)


def http_error(exc: InventoryError) -> HTTPException:
    """Map an inventory error onto the HTTPException the routers raise."""
    for cls, code in _STATUS_BY_ERROR:
        if isinstance(exc, cls):
            if isinstance(exc, ValidationError):
                return HTTPException(status_code=code, detail=exc.messages)
            return HTTPException(status_code=code, detail=str(exc))
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))
