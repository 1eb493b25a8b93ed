"""
core/errors.py -- Error taxonomy shared by every layer.

Each error carries the HTTP status and the machine-readable code it maps to,
so api/main.py can render any of them through a single exception handler.
Stores and auth helpers raise these; they never raise HTTPException.

Layer rule: core/ is the kernel. No imports from api/, auth/, or content/.
"""

from typing import Optional


class PortalError(Exception):
    """Base class for errors that map onto the public error envelope."""

    status_code: int = 500
    code: str = "internal_error"

    def __init__(self, message: str, *, code: Optional[str] = None, detail: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        self.detail = detail


class ValidationError(PortalError):
    """Malformed input, rejected before any store mutation."""

    status_code = 400
    code = "validation_error"


class DuplicateKeyError(PortalError):
    """Username or email collision at the storage layer."""

    status_code = 400
    code = "duplicate_key"


class Unauthenticated(PortalError):
    """Missing, invalid, or expired credentials."""

    status_code = 401
    code = "unauthenticated"


class Forbidden(PortalError):
    """Valid identity, insufficient role."""

    status_code = 403
    code = "forbidden"


class NotFound(PortalError):
    status_code = 404
    code = "not_found"


class InternalError(PortalError):
    status_code = 500
    code = "internal_error"
