from abc import ABC, abstractmethod

from detailing_booking.application.use_cases.booking_session import BookingSession


class SessionStorePort(ABC):
    @abstractmethod
    def add(self, session: BookingSession) -> None:
        raise NotImplementedError

    @abstractmethod
    def get(self, session_id: str) -> BookingSession | None:
        raise NotImplementedError

    @abstractmethod
    def delete(self, session_id: str) -> bool:
        raise NotImplementedError
