from fastapi import APIRouter, Depends, HTTPException

from detailing_booking.api.v1.schemas import CancelRequestSchema, CancelResponseSchema
from detailing_booking.application.exceptions import TransportFailure
from detailing_booking.application.ports.booking_api import BookingApiPort
from detailing_booking.application.use_cases.cancel_booking import CancelBookingUseCase
from detailing_booking.domain.entities.booking import Booking, BookingStatus
from detailing_booking.wiring.dependencies import get_booking_api, get_cancel_use_case

router = APIRouter()


def _upstream_error(e: TransportFailure) -> HTTPException:
    # Not-found and state conflicts pass through; anything else is a gateway failure.
    status_code = e.status_code if e.status_code in (404, 409) else 502
    return HTTPException(status_code=status_code, detail={"message": str(e), "code": e.code})


@router.get("", response_model=list[Booking], response_model_exclude_none=True)
async def list_customer_bookings(
    customer_id: str,
    status: BookingStatus | None = None,
    api: BookingApiPort = Depends(get_booking_api),
):
    try:
        return await api.list_customer_bookings(customer_id, status)
    except TransportFailure as e:
        raise _upstream_error(e)


@router.post("/{booking_id}/cancel", response_model=CancelResponseSchema)
async def cancel_booking(
    booking_id: str,
    req: CancelRequestSchema | None = None,
    uc: CancelBookingUseCase = Depends(get_cancel_use_case),
):
    req = req or CancelRequestSchema()
    try:
        result = await uc.execute(booking_id, req.reason, req.refund_amount)
    except TransportFailure as e:
        raise _upstream_error(e)

    return CancelResponseSchema(
        booking_id=booking_id,
        cancelled=result.cancelled,
        notification_sent=result.notification_sent,
    )
