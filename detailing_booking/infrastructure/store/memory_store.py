from __future__ import annotations

from detailing_booking.application.ports.session_store import SessionStorePort
from detailing_booking.application.use_cases.booking_session import BookingSession


class MemorySessionStore(SessionStorePort):
    def __init__(self, max_sessions: int = 1000) -> None:
        self._sessions: dict[str, BookingSession] = {}
        self._max_sessions = max_sessions

    def add(self, session: BookingSession) -> None:
        self._sessions[session.session_id] = session
        # Oldest sessions go first; dicts keep insertion order.
        while len(self._sessions) > self._max_sessions:
            oldest = next(iter(self._sessions))
            del self._sessions[oldest]

    def get(self, session_id: str) -> BookingSession | None:
        return self._sessions.get(session_id)

    def delete(self, session_id: str) -> bool:
        return self._sessions.pop(session_id, None) is not None

    def __len__(self) -> int:
        return len(self._sessions)
