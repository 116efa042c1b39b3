from __future__ import annotations

import logging
from typing import Callable

from detailing_booking.domain.entities.events import BookingEvent

BookingEventListener = Callable[[BookingEvent], None]


class BookingEventBus:
    """Synchronous listener registry for booking session events."""

    def __init__(self) -> None:
        self._listeners: list[BookingEventListener] = []
        self._last_event: BookingEvent | None = None
        self._logger = logging.getLogger(__name__)

    @property
    def last_event(self) -> BookingEvent | None:
        return self._last_event

    def subscribe(self, listener: BookingEventListener) -> Callable[[], None]:
        """Register a listener. Returns a callable that unsubscribes it."""
        self._listeners.append(listener)
        return lambda: self.unsubscribe(listener)

    def unsubscribe(self, listener: BookingEventListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def publish(self, event: BookingEvent) -> None:
        self._last_event = event
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                self._logger.exception("Booking event listener failed", extra={"event": event.type.value})


def logging_listener(session_id: str) -> BookingEventListener:
    """Listener that writes every booking event to the log."""
    logger = logging.getLogger("detailing_booking.events")

    def _log(event: BookingEvent) -> None:
        extra = {"session_id": session_id, "event": event.type.value, "step": event.step}
        if event.error is not None:
            extra["error"] = getattr(event.error, "message", event.error)
        logger.info("Booking event", extra=extra)

    return _log
