"""Tests for booking endpoints."""

from datetime import datetime
from uuid import uuid4

import pytest
from httpx import AsyncClient

from app.services.slot_catalog import DAILY_SLOTS

BASE = "/api/v1/bookings"


async def create_booking(client: AsyncClient, headers: dict, payload: dict, **overrides) -> dict:
    response = await client.post(BASE, json={**payload, **overrides}, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]


@pytest.mark.asyncio
async def test_create_booking(
    client: AsyncClient,
    auth_headers: dict,
    booking_payload: dict,
    email_service,
) -> None:
    """Test creating a confirmed booking with a snapshot of the treatment."""
    response = await client.post(BASE, json=booking_payload, headers=auth_headers)

    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    booking = body["data"]
    assert booking["status"] == "confirmed"
    assert booking["booking_reference"].startswith("ZEN20260310")
    assert len(booking["booking_reference"]) == 15
    assert booking["email"] == "priya@example.com"
    assert booking["treatment_name"] == "HydraFacial"
    assert booking["total_amount"] == 4500.0
    assert booking["reschedule_count"] == 0
    assert "checkout_otp" not in booking

    assert email_service.subjects() == [f"Booking Confirmed - {booking['booking_reference']}"]


@pytest.mark.asyncio
async def test_created_booking_blocks_slot(
    client: AsyncClient,
    auth_headers: dict,
    booking_payload: dict,
) -> None:
    """Test a new booking shows up as booked in day availability."""
    await create_booking(client, auth_headers, booking_payload)

    response = await client.get(
        f"{BASE}/availability/2026-03-11", params={"location": "Jubilee Hills"}
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert "11:00" in data["booked_slots"]
    assert "11:00" not in data["available_slots"]
    assert data["available_count"] == 9

    # Other locations are unaffected
    response = await client.get(f"{BASE}/availability/2026-03-11", params={"location": "Kokapet"})
    assert "11:00" in response.json()["data"]["available_slots"]


@pytest.mark.asyncio
async def test_double_booking_rejected(
    client: AsyncClient,
    auth_headers: dict,
    other_headers: dict,
    booking_payload: dict,
) -> None:
    """Test a taken slot cannot be booked again."""
    await create_booking(client, auth_headers, booking_payload)

    response = await client.post(BASE, json=booking_payload, headers=other_headers)
    assert response.status_code == 409
    assert response.json()["message"] == "This time slot is already booked"


@pytest.mark.asyncio
async def test_create_booking_guards(
    client: AsyncClient,
    auth_headers: dict,
    booking_payload: dict,
) -> None:
    """Test past times, off-catalog times and unknown treatments are rejected."""
    response = await client.post(
        BASE,
        json={**booking_payload, "appointment_date": "2026-03-09"},
        headers=auth_headers,
    )
    assert response.status_code == 400
    assert response.json()["message"] == "Appointment date and time must be in the future"

    response = await client.post(
        BASE,
        json={**booking_payload, "appointment_time": "11:30"},
        headers=auth_headers,
    )
    assert response.status_code == 400

    response = await client.post(
        BASE,
        json={**booking_payload, "treatment_id": str(uuid4())},
        headers=auth_headers,
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_create_booking_validation_error(
    client: AsyncClient,
    auth_headers: dict,
    booking_payload: dict,
) -> None:
    """Test malformed input returns 400 with field errors."""
    payload = {
        **booking_payload,
        "location": "Banjara Hills",
        "appointment_time": "25:00",
    }
    response = await client.post(BASE, json=payload, headers=auth_headers)

    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["message"] == "Validation failed"
    fields = {error["field"] for error in body["errors"]}
    assert {"location", "appointment_time"} <= fields


@pytest.mark.asyncio
async def test_create_booking_requires_auth(client: AsyncClient, booking_payload: dict) -> None:
    """Test booking without a token is refused."""
    response = await client.post(BASE, json=booking_payload)
    assert response.status_code in (401, 403)


@pytest.mark.asyncio
async def test_past_date_availability_rejected(client: AsyncClient) -> None:
    """Test availability cannot be queried for past dates."""
    response = await client.get(
        f"{BASE}/availability/2026-03-09", params={"location": "Kokapet"}
    )
    assert response.status_code == 400
    assert response.json()["message"] == "Cannot check availability for past dates"


@pytest.mark.asyncio
async def test_fully_booked_month(
    client: AsyncClient,
    auth_headers: dict,
    booking_payload: dict,
) -> None:
    """Test a day with every slot taken is reported as fully booked."""
    for slot in DAILY_SLOTS:
        await create_booking(
            client,
            auth_headers,
            booking_payload,
            location="Kokapet",
            appointment_date="2026-03-20",
            appointment_time=slot,
        )

    response = await client.get(
        f"{BASE}/availability/calendar/2026/3", params={"location": "Kokapet"}
    )
    assert response.status_code == 200
    availability = response.json()["data"]["availability"]
    assert availability["2026-03-20"]["fully_booked"] is True
    assert availability["2026-03-20"]["is_available"] is False
    assert availability["2026-03-21"]["available_slots"] == len(DAILY_SLOTS)
    assert availability["2026-03-01"]["is_past"] is True

    response = await client.get(
        f"{BASE}/availability/calendar/2031/3", params={"location": "Kokapet"}
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_get_booking_access(
    client: AsyncClient,
    auth_headers: dict,
    other_headers: dict,
    staff_headers: dict,
    booking_payload: dict,
) -> None:
    """Test owners and staff can read a booking, other customers cannot."""
    booking = await create_booking(client, auth_headers, booking_payload)

    response = await client.get(f"{BASE}/{booking['id']}", headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["data"]["minutes_until_checkout"] == 0

    response = await client.get(f"{BASE}/{booking['id']}", headers=other_headers)
    assert response.status_code == 403

    response = await client.get(f"{BASE}/{booking['id']}", headers=staff_headers)
    assert response.status_code == 200

    response = await client.get(f"{BASE}/{uuid4()}", headers=auth_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_my_bookings(
    client: AsyncClient,
    auth_headers: dict,
    other_headers: dict,
    booking_payload: dict,
) -> None:
    """Test listing only returns the caller's bookings."""
    await create_booking(client, auth_headers, booking_payload)
    await create_booking(client, auth_headers, booking_payload, appointment_time="12:00")
    await create_booking(client, other_headers, booking_payload, appointment_time="13:00")

    response = await client.get(f"{BASE}/my-bookings", headers=auth_headers)
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["pagination"]["total"] == 2
    assert len(data["bookings"]) == 2

    response = await client.get(
        f"{BASE}/my-bookings", params={"upcoming": "true", "limit": 1}, headers=auth_headers
    )
    data = response.json()["data"]
    assert data["pagination"]["pages"] == 2
    assert data["bookings"][0]["appointment_time"] == "11:00"


@pytest.mark.asyncio
async def test_visit_round_trip(
    client: AsyncClient,
    clock,
    auth_headers: dict,
    staff_headers: dict,
    booking_payload: dict,
    email_service,
) -> None:
    """Test check-in, early checkout refusal, OTP checkout and replay."""
    booking = await create_booking(
        client, auth_headers, booking_payload, appointment_date="2026-03-10"
    )
    url = f"{BASE}/{booking['id']}"

    # 16 minutes early
    clock.set(datetime(2026, 3, 10, 10, 44))
    response = await client.post(f"{url}/checkin", headers=auth_headers)
    assert response.status_code == 400

    clock.set(datetime(2026, 3, 10, 10, 50))
    response = await client.post(f"{url}/checkin", headers=auth_headers)
    assert response.status_code == 200
    otp = response.json()["data"]["checkout_otp"]
    assert len(otp) == 6
    assert "Check-in Successful - Your Checkout OTP" in email_service.subjects()
    assert otp in email_service.sent[-1]["html"]

    clock.set(datetime(2026, 3, 10, 11, 0))
    response = await client.post(f"{url}/user-checkout", headers=auth_headers)
    assert response.status_code == 400
    body = response.json()
    assert body["message"] == "Please wait 10 more minute(s) before checking out"
    assert body["data"]["minutes_remaining"] == 10

    response = await client.get(url, headers=auth_headers)
    detail = response.json()["data"]
    assert detail["status"] == "in-progress"
    assert detail["can_check_out"] is False
    assert detail["minutes_until_checkout"] == 10

    response = await client.post(
        f"{url}/checkout", json={"otp": "000000", "admin_id": "desk-1"}, headers=staff_headers
    )
    assert response.status_code == 400
    assert response.json()["message"].startswith("Invalid OTP")

    response = await client.post(
        f"{url}/checkout", json={"otp": otp, "admin_id": "desk-1"}, headers=staff_headers
    )
    assert response.status_code == 200
    assert response.json()["data"]["status"] == "completed"
    assert response.json()["data"]["completed_by"] == "desk-1"

    response = await client.post(
        f"{url}/checkout", json={"otp": otp, "admin_id": "desk-1"}, headers=staff_headers
    )
    assert response.status_code == 400
    assert response.json()["message"] == "Patient has already been checked out"


@pytest.mark.asyncio
async def test_staff_checkout_requires_staff(
    client: AsyncClient,
    auth_headers: dict,
    booking_payload: dict,
) -> None:
    """Test customers cannot use the staff checkout."""
    booking = await create_booking(client, auth_headers, booking_payload)
    response = await client.post(
        f"{BASE}/{booking['id']}/checkout",
        json={"otp": "123456", "admin_id": "me"},
        headers=auth_headers,
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_self_checkout_persists_eligibility(
    client: AsyncClient,
    clock,
    auth_headers: dict,
    booking_payload: dict,
) -> None:
    """Test reading the booking persists can_check_out once eligible."""
    booking = await create_booking(
        client, auth_headers, booking_payload, appointment_date="2026-03-10"
    )
    url = f"{BASE}/{booking['id']}"

    clock.set(datetime(2026, 3, 10, 11, 0))
    await client.post(f"{url}/checkin", headers=auth_headers)

    clock.set(datetime(2026, 3, 10, 11, 20))
    response = await client.get(url, headers=auth_headers)
    assert response.json()["data"]["can_check_out"] is True

    response = await client.post(f"{url}/user-checkout", headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["data"]["checked_out"] is True

    response = await client.get(url, headers=auth_headers)
    detail = response.json()["data"]
    assert detail["status"] == "completed"
    assert detail["checked_in"] is True


@pytest.mark.asyncio
async def test_reschedule_once(
    client: AsyncClient,
    auth_headers: dict,
    booking_payload: dict,
    email_service,
) -> None:
    """Test a booking can be rescheduled once and then no more."""
    booking = await create_booking(client, auth_headers, booking_payload)
    url = f"{BASE}/{booking['id']}/reschedule"

    response = await client.patch(
        url, json={"appointment_date": "2026-03-12", "appointment_time": "15:00"},
        headers=auth_headers,
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["status"] == "confirmed"
    assert data["reschedule_count"] == 1
    assert data["rescheduled_from_date"] == "2026-03-11"
    assert data["rescheduled_from_time"] == "11:00"
    assert f"Appointment Rescheduled - {booking['booking_reference']}" in email_service.subjects()

    response = await client.patch(
        url, json={"appointment_date": "2026-03-13", "appointment_time": "15:00"},
        headers=auth_headers,
    )
    assert response.status_code == 400
    assert response.json()["message"] == "Appointment can only be rescheduled once"

    response = await client.get(f"{BASE}/{booking['id']}", headers=auth_headers)
    assert response.json()["data"]["appointment_date"] == "2026-03-12"

    # The original slot is free again
    response = await client.get(
        f"{BASE}/availability/2026-03-11", params={"location": "Jubilee Hills"}
    )
    assert "11:00" in response.json()["data"]["available_slots"]


@pytest.mark.asyncio
async def test_reschedule_into_taken_slot(
    client: AsyncClient,
    auth_headers: dict,
    other_headers: dict,
    booking_payload: dict,
) -> None:
    """Test rescheduling onto another booking's slot is refused."""
    await create_booking(client, other_headers, booking_payload, appointment_time="15:00")
    booking = await create_booking(client, auth_headers, booking_payload)

    response = await client.patch(
        f"{BASE}/{booking['id']}/reschedule",
        json={"appointment_date": "2026-03-11", "appointment_time": "15:00"},
        headers=auth_headers,
    )
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_cancel_and_delete(
    client: AsyncClient,
    auth_headers: dict,
    other_headers: dict,
    booking_payload: dict,
    email_service,
) -> None:
    """Test cancelling frees the slot and allows deletion."""
    booking = await create_booking(client, auth_headers, booking_payload)
    url = f"{BASE}/{booking['id']}"

    response = await client.delete(url, headers=auth_headers)
    assert response.status_code == 400

    response = await client.patch(
        f"{url}/status",
        json={"status": "cancelled", "cancellation_reason": "Travelling that week"},
        headers=other_headers,
    )
    assert response.status_code == 403

    response = await client.patch(
        f"{url}/status",
        json={"status": "completed", "cancellation_reason": "Travelling that week"},
        headers=auth_headers,
    )
    assert response.status_code == 400

    response = await client.patch(
        f"{url}/status",
        json={"status": "cancelled", "cancellation_reason": "Travelling that week"},
        headers=auth_headers,
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["status"] == "cancelled"
    assert data["cancellation_reason"] == "Travelling that week"
    assert f"Appointment Cancelled - {booking['booking_reference']}" in email_service.subjects()

    response = await client.get(
        f"{BASE}/availability/2026-03-11", params={"location": "Jubilee Hills"}
    )
    assert "11:00" in response.json()["data"]["available_slots"]

    response = await client.delete(url, headers=auth_headers)
    assert response.status_code == 200
    response = await client.get(url, headers=auth_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_mark_no_shows_is_idempotent(
    client: AsyncClient,
    clock,
    auth_headers: dict,
    staff_headers: dict,
    booking_payload: dict,
) -> None:
    """Test the sweep marks unattended bookings once and skips checked-in ones."""
    missed = await create_booking(
        client, auth_headers, booking_payload, appointment_date="2026-03-10"
    )
    attended = await create_booking(
        client, auth_headers, booking_payload, appointment_date="2026-03-10",
        appointment_time="12:00",
    )
    later = await create_booking(
        client, auth_headers, booking_payload, appointment_date="2026-03-10",
        appointment_time="16:00",
    )

    clock.set(datetime(2026, 3, 10, 12, 0))
    await client.post(f"{BASE}/{attended['id']}/checkin", headers=auth_headers)

    clock.set(datetime(2026, 3, 10, 12, 45))
    response = await client.post(f"{BASE}/mark-no-shows", headers=auth_headers)
    assert response.status_code == 403

    response = await client.post(f"{BASE}/mark-no-shows", headers=staff_headers)
    assert response.status_code == 200
    assert response.json()["data"] == {"modified_count": 1, "failed_count": 0}

    response = await client.post(f"{BASE}/mark-no-shows", headers=staff_headers)
    assert response.json()["data"]["modified_count"] == 0

    statuses = {}
    for booking in (missed, attended, later):
        response = await client.get(f"{BASE}/{booking['id']}", headers=auth_headers)
        statuses[booking["id"]] = response.json()["data"]["status"]

    assert statuses == {
        missed["id"]: "no-show",
        attended["id"]: "in-progress",
        later["id"]: "confirmed",
    }


@pytest.mark.asyncio
async def test_feedback_updates_treatment_rating(
    client: AsyncClient,
    clock,
    auth_headers: dict,
    admin_headers: dict,
    booking_payload: dict,
    treatment: dict,
) -> None:
    """Test rating a completed booking refreshes the treatment average."""
    booking = await create_booking(client, auth_headers, booking_payload)
    url = f"{BASE}/{booking['id']}"

    response = await client.patch(
        f"{url}/feedback",
        json={"rating": 5, "feedback": "Lovely staff and great results"},
        headers=auth_headers,
    )
    assert response.status_code == 400
    assert response.json()["message"] == "Can only rate completed bookings"

    response = await client.patch(
        f"/api/v1/bookings/admin/{booking['id']}/status",
        json={"status": "completed"},
        headers=admin_headers,
    )
    assert response.status_code == 200

    response = await client.patch(
        f"{url}/feedback",
        json={"rating": 4, "feedback": "Lovely staff and great results"},
        headers=auth_headers,
    )
    assert response.status_code == 200
    assert response.json()["data"]["rating"] == 4

    response = await client.get(f"/api/v1/treatments/{treatment['id']}")
    data = response.json()["data"]
    assert data["rating"] == 4.0
    assert data["rating_count"] == 1

    response = await client.put(
        f"{url}/rate", json={"rating": 2, "comment": "Changed my mind"}, headers=auth_headers
    )
    assert response.status_code == 200
    assert response.json()["data"]["rating_comment"] == "Changed my mind"


@pytest.mark.asyncio
async def test_appointment_slip(
    client: AsyncClient,
    auth_headers: dict,
    booking_payload: dict,
) -> None:
    """Test the slip carries booking and clinic details."""
    booking = await create_booking(client, auth_headers, booking_payload)

    response = await client.get(f"{BASE}/{booking['id']}/slip", headers=auth_headers)
    assert response.status_code == 200
    slip = response.json()["data"]
    assert slip["booking_reference"] == booking["booking_reference"]
    assert slip["patient_name"] == "Priya Sharma"
    assert slip["special_requests"] == "Sensitive skin"
    assert slip["clinic_info"]["address"] == "Jubilee Hills, Hyderabad"


@pytest.mark.asyncio
async def test_email_failure_does_not_block_booking_flow(
    client: AsyncClient,
    clock,
    auth_headers: dict,
    booking_payload: dict,
    email_service,
    monkeypatch,
) -> None:
    """Test create, check-in and cancel succeed and persist when email sending fails."""

    def resend_down(to: str, subject: str, html: str) -> None:
        raise RuntimeError("resend down")

    monkeypatch.setattr(email_service, "_send", resend_down)

    booking = await create_booking(
        client, auth_headers, booking_payload, appointment_date="2026-03-10"
    )
    assert booking["status"] == "confirmed"

    clock.set(datetime(2026, 3, 10, 10, 50))
    response = await client.post(f"{BASE}/{booking['id']}/checkin", headers=auth_headers)
    assert response.status_code == 200
    response = await client.get(f"{BASE}/{booking['id']}", headers=auth_headers)
    assert response.json()["data"]["status"] == "in-progress"

    other = await create_booking(client, auth_headers, booking_payload)
    response = await client.patch(
        f"{BASE}/{other['id']}/status",
        json={"status": "cancelled", "cancellation_reason": "Travelling that week"},
        headers=auth_headers,
    )
    assert response.status_code == 200
    response = await client.get(f"{BASE}/{other['id']}", headers=auth_headers)
    assert response.json()["data"]["status"] == "cancelled"

    assert email_service.sent == []
