from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, Response
from pydantic import ValidationError

from detailing_booking.api.v1.schemas import (
    AvailabilityRequestSchema,
    AvailabilityResponseSchema,
    ErrorDetailSchema,
    NavigationAction,
    NavigationRequestSchema,
    NotificationStatusSchema,
    SessionViewSchema,
    SubmitRequestSchema,
    SubmitResponseSchema,
    TimeSlotRequestSchema,
    ValidationErrorSchema,
)
from detailing_booking.application.exceptions import PreconditionFailure, TransportFailure
from detailing_booking.application.ports.session_store import SessionStorePort
from detailing_booking.application.use_cases.booking_session import BookingSession
from detailing_booking.application.use_cases.submit_booking import (
    FAILURE_PRECONDITION,
    FAILURE_VALIDATION,
    SubmitBookingUseCase,
)
from detailing_booking.domain.entities.form_data import BookingStep, FormData, step_key
from detailing_booking.domain.entities.validation import BookingValidationError
from detailing_booking.domain.entities.vehicle import Vehicle
from detailing_booking.wiring.dependencies import get_session_store, get_submit_use_case, new_booking_session

router = APIRouter()


def _error_detail(message: str, errors: list[BookingValidationError] | None = None) -> dict[str, Any]:
    return ErrorDetailSchema(
        message=message,
        errors=[ValidationErrorSchema.from_error(e) for e in errors or []],
    ).model_dump()


def _load_session(session_id: str, store: SessionStorePort) -> BookingSession:
    session = store.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail=f"Booking session not found: {session_id}")
    return session


def parse_step_patch(step: int, body: dict[str, Any]) -> dict[str, Any]:
    """Validate a partial step body (snake_case or camelCase keys) into typed field changes."""
    key = step_key(step)
    if key is None:
        raise ValueError(f"Invalid step: {step}")

    record_type = FormData.model_fields[key].annotation
    fields = record_type.model_fields
    known = set(fields) | {info.alias for info in fields.values() if info.alias}
    unknown = sorted(set(body) - known)
    if unknown:
        raise ValueError(f"Unknown fields for step {step}: {', '.join(unknown)}")

    record = record_type.model_validate(body)
    return {name: getattr(record, name) for name in record.model_fields_set}


@router.post("", response_model=SessionViewSchema, status_code=201)
async def create_session(
    session: BookingSession = Depends(new_booking_session),
    store: SessionStorePort = Depends(get_session_store),
):
    try:
        await session.load_catalog()
    except TransportFailure as e:
        raise HTTPException(status_code=502, detail=str(e))

    store.add(session)
    return SessionViewSchema.from_session(session)


@router.get("/{session_id}", response_model=SessionViewSchema)
def get_session(session_id: str, store: SessionStorePort = Depends(get_session_store)):
    return SessionViewSchema.from_session(_load_session(session_id, store))


@router.patch("/{session_id}/steps/{step}", response_model=SessionViewSchema)
async def update_step(
    session_id: str,
    step: int,
    body: dict[str, Any] = Body(...),
    store: SessionStorePort = Depends(get_session_store),
):
    session = _load_session(session_id, store)
    try:
        changes = parse_step_patch(step, body)
        session.update_step_data(step, changes)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=e.errors(include_url=False, include_context=False))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    service = changes.get("selected_service")
    if step == BookingStep.SERVICE_SELECTION and service is not None:
        try:
            await session.load_service_levels(service.id)
        except TransportFailure as e:
            raise HTTPException(status_code=502, detail=str(e))

    return SessionViewSchema.from_session(session)


@router.post("/{session_id}/navigation", response_model=SessionViewSchema)
def navigate(
    session_id: str,
    req: NavigationRequestSchema,
    store: SessionStorePort = Depends(get_session_store),
):
    session = _load_session(session_id, store)
    try:
        if req.action == NavigationAction.next:
            result = session.next_step()
        elif req.action == NavigationAction.previous:
            result = session.previous_step()
        else:
            if req.step is None:
                raise ValueError("step is required for goto")
            result = session.go_to_step(req.step)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    if not result.allowed:
        raise HTTPException(status_code=409, detail=_error_detail(result.message or "Navigation blocked", result.errors))
    return SessionViewSchema.from_session(session)


@router.post("/{session_id}/availability", response_model=AvailabilityResponseSchema)
async def select_date(
    session_id: str,
    req: AvailabilityRequestSchema,
    store: SessionStorePort = Depends(get_session_store),
):
    session = _load_session(session_id, store)
    try:
        day = await session.select_date(req.date)
    except PreconditionFailure as e:
        raise HTTPException(status_code=409, detail=_error_detail(str(e)))
    except TransportFailure as e:
        raise HTTPException(status_code=502, detail=str(e))

    return AvailabilityResponseSchema(date=req.date, day=day)


@router.post("/{session_id}/vehicles", response_model=Vehicle, response_model_exclude_none=True, status_code=201)
async def add_vehicle(
    session_id: str,
    vehicle: Vehicle,
    store: SessionStorePort = Depends(get_session_store),
):
    session = _load_session(session_id, store)
    try:
        return await session.add_new_vehicle(vehicle)
    except TransportFailure as e:
        raise HTTPException(status_code=502, detail=str(e))


@router.post("/{session_id}/time-slot", response_model=SessionViewSchema)
def select_time_slot(
    session_id: str,
    req: TimeSlotRequestSchema,
    store: SessionStorePort = Depends(get_session_store),
):
    session = _load_session(session_id, store)
    days = session.form_data.step3.available_days
    slot = next((s for day in days for s in day.slots if s.id == req.slot_id), None)
    if slot is None:
        raise HTTPException(status_code=404, detail=f"Time slot not found: {req.slot_id}")

    if not session.select_time_slot(slot):
        errors = [e for e in session.validation_errors if e.field == "selected_time_slot"]
        raise HTTPException(status_code=409, detail=_error_detail("Selected time slot is not available", errors[-1:]))
    return SessionViewSchema.from_session(session)


@router.post("/{session_id}/submit", response_model=SubmitResponseSchema, status_code=201)
async def submit(
    session_id: str,
    req: SubmitRequestSchema | None = None,
    store: SessionStorePort = Depends(get_session_store),
    uc: SubmitBookingUseCase = Depends(get_submit_use_case),
):
    session = _load_session(session_id, store)
    reminders = req.reminders.to_settings() if req and req.reminders else None
    result = await uc.execute(session, reminder_settings=reminders)

    if not result.success:
        detail = _error_detail(result.error_message or "Failed to submit booking", result.errors)
        if result.failure == FAILURE_VALIDATION:
            raise HTTPException(status_code=422, detail=detail)
        if result.failure == FAILURE_PRECONDITION:
            raise HTTPException(status_code=409, detail=detail)
        raise HTTPException(status_code=502, detail=detail)

    response = result.response
    confirmation = result.confirmation
    return SubmitResponseSchema(
        confirmation_number=response.confirmation_number,
        booking=response.booking,
        estimated_arrival=response.estimated_arrival,
        payment_required=response.payment_required,
        next_steps=response.next_steps,
        notifications=(
            NotificationStatusSchema.from_status(confirmation.status, confirmation.success)
            if confirmation else None
        ),
    )


@router.post("/{session_id}/reset", response_model=SessionViewSchema)
def reset_session(session_id: str, store: SessionStorePort = Depends(get_session_store)):
    session = _load_session(session_id, store)
    session.reset()
    return SessionViewSchema.from_session(session)


@router.delete("/{session_id}", status_code=204)
def delete_session(session_id: str, store: SessionStorePort = Depends(get_session_store)):
    if not store.delete(session_id):
        raise HTTPException(status_code=404, detail=f"Booking session not found: {session_id}")
    return Response(status_code=204)
