"""Typed failures raised by the booking core.

Each carries the HTTP status the API layer answers with; the core itself never
imports FastAPI.
"""


class DomainError(Exception):
    status_code = 500

    def __init__(self, message: str, **details):
        super().__init__(message)
        self.message = message
        self.details = details

    @property
    def code(self) -> str:
        return self.__class__.__name__


class ValidationError(DomainError):
    """Malformed or missing booking/refund/promotion input."""
    status_code = 400


class NotAvailable(DomainError):
    """Item unavailable, or the requested dates clash with an active booking."""
    status_code = 409


class InvalidTransition(DomainError):
    status_code = 409

    def __init__(self, current: str, event: str, message: str | None = None):
        super().__init__(message or f"Cannot {event} a booking that is {current}", current=current, event=event)
        self.current = current
        self.event = event


class InsufficientAmount(DomainError):
    status_code = 400


class BookingNotPayable(DomainError):
    status_code = 409


class NotFound(DomainError):
    status_code = 404


class DuplicateRequest(DomainError):
    status_code = 409


class NotRefundable(DomainError):
    status_code = 400


class ConflictError(DomainError):
    """Promotion overlaps an existing promotion for the same scope."""
    status_code = 409
