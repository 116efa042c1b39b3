"""
Tests for the post-submission confirmation fan-out.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta

import pytest

from conftest import NOW
from detailing_booking.application.exceptions import TransportFailure
from detailing_booking.application.use_cases.cancel_booking import CancelBookingUseCase
from detailing_booking.application.use_cases.confirm_booking import (
    BusinessContact,
    ConfirmationWorkflow,
    ReminderSettings,
    TechnicianInfo,
)
from detailing_booking.application.use_cases.pricing import calculate_pricing
from detailing_booking.application.use_cases.submit_booking import build_booking
from detailing_booking.domain.entities.location import ContactMethod
from detailing_booking.domain.entities.notification import NotificationChannel
from detailing_booking.infrastructure.notifications.mock_notifications import DEFAULT_TEMPLATES, MockNotificationGateway

BUSINESS = BusinessContact(
    primary_phone="(555) 123-4567",
    business_hours="Mon-Sat 8:00 AM - 6:00 PM",
    emergency_contact="(555) 987-6543",
)
POLICY = "Free cancellation up to 24 hours before your appointment."


def _workflow(api, notifications):
    return ConfirmationWorkflow(
        notifications=notifications,
        api=api,
        business=BUSINESS,
        cancellation_policy=POLICY,
        feedback_base_url="https://detailing.example.com/",
    )


def _create_booking(api, form_data, preferred_contact=ContactMethod.EMAIL):
    contact = form_data.step4.contact_info.model_copy(update={"preferred_contact": preferred_contact})
    form_data = form_data.merge_step(4, {"contact_info": contact})
    booking = build_booking(form_data, calculate_pricing(form_data), NOW)
    return asyncio.run(api.create_booking(booking))


def test_email_preference_skips_sms(api, form_data):
    notifications = MockNotificationGateway()
    response = _create_booking(api, form_data)

    result = asyncio.run(_workflow(api, notifications).process(response))

    assert result.success
    assert result.status.email_sent
    assert result.status.sms_skipped
    assert not result.status.sms_sent
    assert result.status.calendar_invite_sent
    assert not result.status.reminder_scheduled
    assert result.status.errors == []
    assert [r.channel for r in notifications.sent] == [NotificationChannel.EMAIL]
    assert notifications.sent[0].template_id == "booking_confirmation"


def test_phone_preference_sends_sms(api, form_data):
    notifications = MockNotificationGateway()
    response = _create_booking(api, form_data, ContactMethod.PHONE)

    result = asyncio.run(_workflow(api, notifications).process(response))

    assert result.success
    assert result.status.sms_sent
    assert not result.status.sms_skipped
    sms = notifications.sent_on(NotificationChannel.SMS)
    assert len(sms) == 1
    assert sms[0].template_id == "booking_confirmation_sms"
    assert sms[0].recipient.phone == "555-123-4567"


def test_confirmation_data_and_variables(api, form_data):
    notifications = MockNotificationGateway()
    response = _create_booking(api, form_data)
    workflow = _workflow(api, notifications)

    result = asyncio.run(workflow.process(response))
    data = result.data

    assert data.confirmation_number == response.confirmation_number
    assert data.service_details.duration == "1 hour"
    assert data.service_details.what_to_expect[0] == "Complete exterior wash and dry"
    assert data.service_details.preparation[0] == "Ensure vehicle is accessible in driveway or street"
    assert data.cancellation_policy == POLICY

    variables = notifications.sent[0].variables
    assert variables["customerName"] == "Jane"
    assert variables["scheduledDate"] == "Tuesday, October 20, 2026"
    assert variables["scheduledTime"] == "4:00 PM"
    assert variables["totalAmount"] == "$180.36"
    assert variables["vehicleInfo"] == "2022 Toyota Camry"
    assert variables["location"] == "Mobile Service - We'll come to you!"
    assert variables["serviceLevel"] == "Premium"


def test_calendar_invite(api, form_data):
    notifications = MockNotificationGateway()
    response = _create_booking(api, form_data)

    asyncio.run(_workflow(api, notifications).process(response))

    invite = notifications.invites[0]
    assert invite.title == "Exterior Wash & Wax - Premium"
    assert invite.start_time == datetime(2026, 10, 20, 16, 0)
    assert invite.location == "123 Main St, Springfield, IL 62701"
    assert invite.attendees == ["jane@example.com"]
    assert f"Confirmation #: {response.confirmation_number}" in invite.description


def test_reminders_per_day_and_channel(api, form_data):
    notifications = MockNotificationGateway()
    response = _create_booking(api, form_data, ContactMethod.PHONE)
    settings = ReminderSettings(email=True, sms=True, days_before=[1, 3], custom_message="See you soon")

    result = asyncio.run(_workflow(api, notifications).process(response, settings))

    assert result.status.reminder_scheduled
    reminders = notifications.reminders[response.booking.id]
    assert [(r.channel, r.scheduled_for) for r in reminders] == [
        (NotificationChannel.EMAIL, datetime(2026, 10, 19, 16, 0)),
        (NotificationChannel.SMS, datetime(2026, 10, 19, 16, 0)),
        (NotificationChannel.EMAIL, datetime(2026, 10, 17, 16, 0)),
        (NotificationChannel.SMS, datetime(2026, 10, 17, 16, 0)),
    ]
    assert reminders[0].variables["daysUntilService"] == "1"
    assert reminders[0].variables["customMessage"] == "See you soon"


def test_sms_reminders_respect_email_preference(api, form_data):
    notifications = MockNotificationGateway()
    response = _create_booking(api, form_data)

    asyncio.run(_workflow(api, notifications).process(response, ReminderSettings(sms=True)))

    reminders = notifications.reminders[response.booking.id]
    assert [r.channel for r in reminders] == [NotificationChannel.EMAIL]


def test_failed_channel_does_not_stop_the_others(api, form_data):
    notifications = MockNotificationGateway(failing_channels={"calendar"})
    response = _create_booking(api, form_data)

    result = asyncio.run(_workflow(api, notifications).process(response, ReminderSettings()))

    assert not result.success
    assert result.status.email_sent
    assert not result.status.calendar_invite_sent
    assert result.status.reminder_scheduled
    assert result.status.errors == ["Failed to send calendar invite", "Some notifications failed to send"]


def test_missing_template_is_a_channel_failure(api, form_data):
    templates = [t for t in DEFAULT_TEMPLATES if t.id != "booking_confirmation"]
    notifications = MockNotificationGateway(templates=templates)
    response = _create_booking(api, form_data)

    result = asyncio.run(_workflow(api, notifications).process(response))

    assert not result.success
    assert not result.status.email_sent
    assert result.status.calendar_invite_sent
    assert result.status.errors[0].startswith("Failed to send confirmation email: ")
    assert "booking_confirmation" in result.status.errors[0]


def test_templates_are_fetched_once(api, form_data):
    notifications = MockNotificationGateway()
    response = _create_booking(api, form_data, ContactMethod.PHONE)
    workflow = _workflow(api, notifications)

    asyncio.run(workflow.process(response, ReminderSettings()))
    asyncio.run(workflow.process(response))

    assert notifications.template_requests == 1


def test_arrival_notice_uses_sms_for_phone_customers(api, form_data):
    notifications = MockNotificationGateway()
    response = _create_booking(api, form_data, ContactMethod.PHONE)
    arrival = datetime(2026, 10, 20, 15, 45)

    sent = asyncio.run(
        _workflow(api, notifications).send_arrival_notification(
            response.booking.id, arrival, TechnicianInfo(name="Sam", phone="555-000-1111")
        )
    )

    assert sent
    request = notifications.sent[-1]
    assert request.channel == NotificationChannel.SMS
    assert request.template_id == "arrival_notice"
    assert request.variables["estimatedArrival"] == "3:45 PM"
    assert request.variables["technicianName"] == "Sam"


def test_completion_notice_links_to_feedback(api, form_data):
    notifications = MockNotificationGateway()
    response = _create_booking(api, form_data)

    assert asyncio.run(_workflow(api, notifications).send_completion_notification(response.booking.id))

    variables = notifications.sent[-1].variables
    assert variables["feedbackUrl"] == f"https://detailing.example.com/feedback/{response.booking.id}"


@pytest.mark.parametrize("refund, expected", [(50.0, "$50.00"), (None, "N/A")])
def test_cancellation_notice(api, form_data, refund, expected):
    notifications = MockNotificationGateway()
    response = _create_booking(api, form_data)

    sent = asyncio.run(
        _workflow(api, notifications).send_cancellation_notification(response.booking.id, "Weather", refund)
    )

    assert sent
    variables = notifications.sent[-1].variables
    assert variables["reason"] == "Weather"
    assert variables["refundAmount"] == expected
    assert variables["scheduledDate"] == "Tuesday, October 20, 2026"


def test_follow_up_for_unknown_booking_returns_false(api):
    notifications = MockNotificationGateway()
    assert not asyncio.run(_workflow(api, notifications).send_completion_notification("missing"))
    assert notifications.sent == []


def test_reminder_timing_is_relative_to_slot_start(api, form_data):
    notifications = MockNotificationGateway()
    response = _create_booking(api, form_data)
    workflow = _workflow(api, notifications)
    data = workflow.build_confirmation_data(response)

    reminders = asyncio.run(workflow.reminder_requests(data, ReminderSettings(days_before=[2])))

    assert reminders[0].scheduled_for == response.booking.time_slot.start_time - timedelta(days=2)


def test_cancel_booking_then_notify(api, form_data):
    notifications = MockNotificationGateway()
    response = _create_booking(api, form_data)
    uc = CancelBookingUseCase(api=api, confirmation=_workflow(api, notifications))

    result = asyncio.run(uc.execute(response.booking.id, "Customer request"))

    assert result.cancelled
    assert result.notification_sent
    assert asyncio.run(api.get_booking(response.booking.id)).status.value == "cancelled"
    assert notifications.sent[-1].variables["reason"] == "Customer request"
    assert notifications.sent[-1].variables["refundAmount"] == "N/A"


def test_cancelled_booking_cannot_be_cancelled_again(api, form_data):
    response = _create_booking(api, form_data)
    uc = CancelBookingUseCase(api=api)
    asyncio.run(uc.execute(response.booking.id))

    with pytest.raises(TransportFailure) as exc_info:
        asyncio.run(uc.execute(response.booking.id))

    assert exc_info.value.code == "INVALID_STATUS"
    assert exc_info.value.status_code == 409


def test_cancel_without_workflow_sends_nothing(api, form_data):
    response = _create_booking(api, form_data)

    result = asyncio.run(CancelBookingUseCase(api=api).execute(response.booking.id))

    assert result.cancelled
    assert not result.notification_sent
