from functools import lru_cache
import logging
from zoneinfo import ZoneInfo

from detailing_booking.core.config import settings
from detailing_booking.application.ports.booking_api import BookingApiPort
from detailing_booking.application.ports.notifications import NotificationPort
from detailing_booking.application.ports.session_store import SessionStorePort
from detailing_booking.application.use_cases.booking_session import BookingSession
from detailing_booking.application.use_cases.cancel_booking import CancelBookingUseCase
from detailing_booking.application.use_cases.confirm_booking import BusinessContact, ConfirmationWorkflow
from detailing_booking.application.use_cases.submit_booking import SubmitBookingUseCase
from detailing_booking.application.use_cases.validation import BookingValidator
from detailing_booking.application.utils.event_bus import logging_listener
from detailing_booking.infrastructure.booking_api.http_booking_api import HttpBookingApi
from detailing_booking.infrastructure.booking_api.mock_booking_api import MockBookingApi
from detailing_booking.infrastructure.notifications.http_notifications import HttpNotificationGateway
from detailing_booking.infrastructure.notifications.mock_notifications import MockNotificationGateway
from detailing_booking.infrastructure.store.memory_store import MemorySessionStore

MOCK_ENVIRONMENTS = {"dev", "local", "test"}


def _mocks_allowed() -> bool:
    return settings.ENV.lower() in MOCK_ENVIRONMENTS


@lru_cache
def get_timezone() -> ZoneInfo:
    return ZoneInfo(settings.BUSINESS_TIMEZONE)


@lru_cache
def get_booking_api() -> BookingApiPort:
    logger = logging.getLogger(__name__)
    if not settings.BOOKING_API_BASE_URL:
        if _mocks_allowed():
            logger.info("Using MockBookingApi (BOOKING_API_BASE_URL missing, ENV=%s)", settings.ENV)
            return MockBookingApi(timezone=get_timezone())
        raise ValueError("BOOKING_API_BASE_URL is required outside dev/local/test.")

    logger.info("Using HttpBookingApi")
    return HttpBookingApi()


@lru_cache
def get_notifications() -> NotificationPort:
    logger = logging.getLogger(__name__)
    if not settings.NOTIFICATIONS_BASE_URL:
        if _mocks_allowed():
            logger.info("Using MockNotificationGateway (NOTIFICATIONS_BASE_URL missing, ENV=%s)", settings.ENV)
            return MockNotificationGateway()
        raise ValueError("NOTIFICATIONS_BASE_URL is required outside dev/local/test.")

    logger.info("Using HttpNotificationGateway")
    return HttpNotificationGateway()


@lru_cache
def get_session_store() -> SessionStorePort:
    return MemorySessionStore()


def get_validator() -> BookingValidator:
    return BookingValidator()


def get_confirmation_workflow() -> ConfirmationWorkflow | None:
    if not settings.SEND_CONFIRMATIONS:
        return None
    return ConfirmationWorkflow(
        notifications=get_notifications(),
        api=get_booking_api(),
        business=BusinessContact(
            primary_phone=settings.BUSINESS_PHONE,
            business_hours=settings.BUSINESS_HOURS,
            emergency_contact=settings.EMERGENCY_CONTACT or settings.BUSINESS_PHONE,
        ),
        cancellation_policy=settings.CANCELLATION_POLICY,
        feedback_base_url=settings.FEEDBACK_BASE_URL,
        timezone=get_timezone(),
    )


def get_submit_use_case() -> SubmitBookingUseCase:
    return SubmitBookingUseCase(
        api=get_booking_api(),
        confirmation=get_confirmation_workflow(),
        reset_after_submission=settings.RESET_AFTER_SUBMISSION,
    )


def get_cancel_use_case() -> CancelBookingUseCase:
    return CancelBookingUseCase(api=get_booking_api(), confirmation=get_confirmation_workflow())


def new_booking_session() -> BookingSession:
    session = BookingSession(api=get_booking_api(), validator=get_validator())
    session.subscribe(logging_listener(session.session_id))
    return session
