import logging

from fastapi import FastAPI

from detailing_booking.api.v1.booking_sessions import router as booking_sessions_router
from detailing_booking.api.v1.bookings import router as bookings_router
from detailing_booking.core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
# Booking context attached through `extra=`; rendered after the message when present.
LOG_CONTEXT_KEYS = ("session_id", "step", "event", "confirmation_number", "channel", "error", "reason")


class ContextFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = " ".join(
            f"{key}={getattr(record, key)}"
            for key in LOG_CONTEXT_KEYS
            if getattr(record, key, None) not in (None, "")
        )
        return f"{line} | {context}" if context else line


def configure_logging(level_name: str) -> None:
    """Route every logger through one stderr handler carrying booking context."""
    handler = logging.StreamHandler()
    handler.setFormatter(ContextFormatter(LOG_FORMAT))

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level_name.upper(), logging.INFO))
    root_logger.handlers.clear()
    root_logger.addHandler(handler)


configure_logging(settings.LOG_LEVEL)

app = FastAPI(title="Detailing Booking", version="1.0.0")

app.include_router(booking_sessions_router, prefix="/api/v1/booking-sessions", tags=["booking-sessions"])
app.include_router(bookings_router, prefix="/api/v1/bookings", tags=["bookings"])


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}
