"""
Error taxonomy for the booking engine.

Raised in services and rendered by the handler registered in main.py as
{"code": ..., "message": ...} with the matching HTTP status.
"""


class BookingError(Exception):
    """Base exception for all booking engine errors."""

    status_code = 400

    def __init__(self, code: str, message: str, status_code: int | None = None):
        super().__init__(message)
        self.code = code
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class BookingValidationError(BookingError):
    """Malformed or out-of-range input. Never retried."""

    status_code = 400


class SlotTakenError(BookingError):
    """Another blocking booking already holds the consultant/date/time."""

    status_code = 409

    def __init__(self, message: str = "This time slot is already booked."):
        super().__init__("slot_taken", message)


class TokenError(BookingError):
    """Missing, malformed, mismatched or expired booking token."""

    status_code = 403


class RateLimitError(BookingError):
    status_code = 429

    def __init__(self, retry_after: int):
        super().__init__("rate_limit_exceeded", "Too many requests. Please try again later.")
        self.retry_after = max(1, retry_after)


class DependencyFailure(BookingError):
    """A store or external collaborator could not be reached."""

    status_code = 500


class NotFoundError(BookingError):
    status_code = 404

    def __init__(self, message: str = "Not found"):
        super().__init__("not_found", message)


class AdminAuthError(BookingError):
    status_code = 403

    def __init__(self):
        super().__init__("forbidden", "Admin token required.")
