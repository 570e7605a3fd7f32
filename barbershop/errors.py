"""
Domain error taxonomy

Services raise these; main.py renders them as {"detail", "code", "context"}
so clients can tell a taken slot from a closed shop or a missed
cancellation window.
"""

from typing import Optional


class BarbershopError(Exception):
    """Base class for every error a core operation reports to its caller"""

    status_code = 500
    default_code = "error"

    def __init__(self, message: str, code: Optional[str] = None, context: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.context = context or {}

    def to_dict(self) -> dict:
        body = {"detail": self.message, "code": self.code}
        if self.context:
            body["context"] = self.context
        return body


class ValidationError(BarbershopError):
    """Bad or missing input, past dates, bookings outside shop hours"""

    status_code = 400
    default_code = "validation_error"


class AuthenticationError(BarbershopError):
    status_code = 401
    default_code = "not_authenticated"


class AuthorizationError(BarbershopError):
    """Role or ownership mismatch"""

    status_code = 403
    default_code = "forbidden"


class NotFoundError(BarbershopError):
    status_code = 404
    default_code = "not_found"


class ConflictError(BarbershopError):
    """Double booking, session already open, insufficient stock, order not open"""

    status_code = 409
    default_code = "conflict"


class StorageError(BarbershopError):
    """Backing store unavailable; never retried by the core"""

    status_code = 500
    default_code = "storage_error"
