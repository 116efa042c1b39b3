from __future__ import annotations

import logging
from dataclasses import dataclass

from detailing_booking.application.ports.booking_api import BookingApiPort
from detailing_booking.application.use_cases.confirm_booking import ConfirmationWorkflow


@dataclass(frozen=True)
class CancellationResult:
    cancelled: bool
    notification_sent: bool = False


class CancelBookingUseCase:
    """Cancel a booking upstream, then tell the customer. TransportFailure from the cancel call propagates."""

    def __init__(self, api: BookingApiPort, confirmation: ConfirmationWorkflow | None = None) -> None:
        self._api = api
        self._confirmation = confirmation
        self._logger = logging.getLogger(__name__)

    async def execute(
        self,
        booking_id: str,
        reason: str | None = None,
        refund_amount: float | None = None,
    ) -> CancellationResult:
        cancelled = await self._api.cancel_booking(booking_id, reason)
        if not cancelled:
            self._logger.warning("Booking service refused cancellation", extra={"reason": reason or "-"})
            return CancellationResult(cancelled=False)

        notified = False
        if self._confirmation is not None:
            notified = await self._confirmation.send_cancellation_notification(booking_id, reason, refund_amount)

        self._logger.info("Booking cancelled", extra={"reason": reason or "-", "channel": "email" if notified else None})
        return CancellationResult(cancelled=True, notification_sent=notified)
