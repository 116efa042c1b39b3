class BookingError(RuntimeError):
    """Base class for booking flow failures that are not field validation problems."""

    code = "BOOKING_ERROR"


class PreconditionFailure(BookingError):
    """Raised when an operation runs before its required inputs exist (e.g. pricing without a vehicle)."""

    code = "PRECONDITION_FAILED"


class TransportFailure(BookingError):
    """Raised when the booking or notification service fails (network, HTTP or `success=false`)."""

    def __init__(self, message: str, code: str = "TRANSPORT_ERROR", status_code: int | None = None) -> None:
        super().__init__(message)
        self.code = code
        self.status_code = status_code


class NotificationFailure(BookingError):
    """Raised when a single notification channel cannot be dispatched."""

    code = "NOTIFICATION_FAILED"

    def __init__(self, message: str, channel: str | None = None) -> None:
        super().__init__(message)
        self.channel = channel


class InvalidStepError(ValueError):
    """Raised when navigation targets a step outside the wizard."""
    pass
