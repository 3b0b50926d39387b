# privacydesk/exceptions/errors.py
"""
Domain error kinds raised by the deadline engine and persistence layer.

These carry no transport information; privacydesk.exceptions.handlers maps
them onto HTTP status codes.
"""
from typing import Iterable, Optional


class PrivacyDeskError(Exception):
    """Base error for the case lifecycle and deadline engine"""
    kind = "error"

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class InvalidArgumentError(PrivacyDeskError):
    """Malformed duration, negative counters or missing configuration"""
    kind = "invalid_argument"


class InvalidTransitionError(PrivacyDeskError):
    """Illegal status change, including entering a pause while already paused"""
    kind = "invalid_transition"

    def __init__(self, from_status, to_status, allowed: Optional[Iterable] = None, detail: Optional[str] = None):
        self.from_status = _value(from_status)
        self.to_status = _value(to_status)
        self.allowed = [_value(s) for s in (allowed or [])]
        super().__init__(
            detail or f"Invalid status transition from {self.from_status} to {self.to_status}"
        )


class ConcurrentModificationError(PrivacyDeskError):
    """Another writer changed the case since it was read"""
    kind = "concurrent_modification"

    def __init__(self, detail: str = "Case was modified concurrently, reload and retry"):
        super().__init__(detail)


class NotFoundError(PrivacyDeskError):
    """Case or deadline absent for the given identity"""
    kind = "not_found"


def _value(status) -> str:
    return getattr(status, "value", status)
