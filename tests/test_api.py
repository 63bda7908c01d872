from datetime import timedelta

from agenda.models import Appointment

from .conftest import MONDAY, add_appointment

NEXT_MONDAY = MONDAY + timedelta(days=7)


def availability(client, schedule, day=NEXT_MONDAY, **params):
    query = {
        "provider_id": schedule.public_id,
        "service_id": schedule.service_id,
        "date": day.isoformat(),
    }
    query.update(params)
    return client.get("/availability", params=query)


def booking_payload(schedule, start="14:00", **overrides):
    payload = {
        "providerId": schedule.public_id,
        "serviceId": schedule.service_id,
        "date": NEXT_MONDAY.isoformat(),
        "startTime": start,
        "clientName": "Ana Souza",
        "clientEmail": "Ana@Example.com",
        "clientPhone": "(11) 98765-4321",
    }
    payload.update(overrides)
    return payload


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy"}


def test_availability_lists_slots(client, schedule):
    response = availability(client, schedule, granularity=30)
    assert response.status_code == 200
    data = response.json()
    assert data["durationMinutes"] == 30
    assert data["granularity"] == 30
    assert len(data["slots"]) == 18
    assert data["slots"][0] == {"start": "09:00", "end": "09:30"}
    assert data["slots"][-1] == {"start": "17:30", "end": "18:00"}


def test_availability_for_longer_service(client, schedule):
    response = availability(client, schedule, service_id=schedule.long_service_id, granularity=15)
    slots = response.json()["slots"]
    assert slots[0] == {"start": "09:00", "end": "09:45"}
    assert slots[-1] == {"start": "17:15", "end": "18:00"}


def test_closed_day_is_empty_not_an_error(client, schedule):
    response = availability(client, schedule, day=NEXT_MONDAY - timedelta(days=1))
    assert response.status_code == 200
    assert response.json()["slots"] == []


def test_availability_unknown_provider_or_service(client, schedule):
    response = availability(client, schedule, provider_id="missing")
    assert response.status_code == 404
    assert response.json()["code"] == "not_found"

    response = availability(client, schedule, service_id=9999)
    assert response.status_code == 404


def test_availability_rejects_bad_granularity(client, schedule):
    assert availability(client, schedule, granularity=0).status_code == 422


def test_booking_flow(client, schedule, notifications):
    response = client.post("/appointments", json=booking_payload(schedule))
    assert response.status_code == 201
    data = response.json()
    assert data["startTime"] == "14:00"
    assert data["endTime"] == "14:30"
    assert data["status"] == "scheduled"
    assert notifications == [(data["id"], "appointment_created")]

    starts = [s["start"] for s in availability(client, schedule, granularity=30).json()["slots"]]
    assert "14:00" not in starts
    assert len(starts) == 17


def test_booking_taken_slot_conflicts(client, session_factory, schedule, notifications):
    add_appointment(session_factory, schedule.provider_id, schedule.service_id, NEXT_MONDAY, "14:00", "14:30")

    response = client.post("/appointments", json=booking_payload(schedule))
    assert response.status_code == 409
    assert response.json()["code"] == "slot_unavailable"
    assert notifications == []


def test_booking_validation(client, schedule):
    response = client.post("/appointments", json=booking_payload(schedule, clientName="A"))
    assert response.status_code == 422

    response = client.post("/appointments", json=booking_payload(schedule, clientEmail="not-an-email"))
    assert response.status_code == 422

    response = client.post("/appointments", json=booking_payload(schedule, startTime="25:00"))
    assert response.status_code == 422
    assert response.json()["code"] == "validation_error"

    response = client.post("/appointments", json=booking_payload(schedule, startTime="14:00:30"))
    assert response.status_code == 422
    assert client.post("/appointments", json=booking_payload(schedule, startTime="14:00:00")).status_code == 201


def test_booking_unknown_provider(client, schedule):
    response = client.post("/appointments", json=booking_payload(schedule, providerId="missing"))
    assert response.status_code == 404


def test_booking_normalizes_contact_data(client, session_factory, schedule):
    response = client.post("/appointments", json=booking_payload(schedule))
    with session_factory() as s:
        appointment = s.get(Appointment, response.json()["id"])
        assert appointment.client_email == "ana@example.com"
        assert appointment.client_phone == "11987654321"


# ---------------------------------------------------------------------------
# Staff endpoints
# ---------------------------------------------------------------------------


def test_staff_reads_appointments(client, schedule):
    created = client.post("/appointments", json=booking_payload(schedule)).json()
    client.post("/appointments", json=booking_payload(schedule, startTime="09:00"))

    response = client.get(f"/appointments/{created['id']}")
    assert response.status_code == 200
    data = response.json()
    assert data["clientName"] == "Ana Souza"
    assert data["paymentStatus"] == "pending"
    assert data["paymentAmount"] == 50.0
    assert data["source"] == "client"

    listed = client.get("/appointments", params={"date": NEXT_MONDAY.isoformat()}).json()
    assert [a["startTime"] for a in listed] == ["09:00", "14:00"]

    assert client.get("/appointments/9999").status_code == 404


def test_staff_booking(client, schedule, notifications):
    response = client.post(
        "/appointments/staff",
        json={
            "serviceId": schedule.service_id,
            "date": NEXT_MONDAY.isoformat(),
            "startTime": "11:00",
            "clientName": "Walk In",
        },
    )
    assert response.status_code == 201
    assert response.json()["source"] == "staff"
    assert notifications[0][1] == "appointment_created"

    response = client.post(
        "/appointments/staff",
        json={
            "serviceId": schedule.service_id,
            "date": NEXT_MONDAY.isoformat(),
            "startTime": "11:15",
            "clientName": "Second Walk In",
        },
    )
    assert response.status_code == 409


def test_cancel_releases_slot_and_notifies(client, schedule, notifications):
    appointment_id = client.post("/appointments", json=booking_payload(schedule)).json()["id"]

    response = client.post(f"/appointments/{appointment_id}/cancel", json={"reason": "Sick"})
    assert response.status_code == 200
    assert response.json()["status"] == "cancelled"
    assert response.json()["cancellationReason"] == "Sick"
    assert (appointment_id, "appointment_cancelled") in notifications

    starts = [s["start"] for s in availability(client, schedule, granularity=30).json()["slots"]]
    assert "14:00" in starts

    again = client.post(f"/appointments/{appointment_id}/cancel")
    assert again.status_code == 409
    assert again.json()["code"] == "invalid_transition"


def test_status_transitions_over_http(client, schedule):
    appointment_id = client.post("/appointments", json=booking_payload(schedule)).json()["id"]

    bad = client.post(f"/appointments/{appointment_id}/status", json={"status": "completed"})
    assert bad.status_code == 409

    ok = client.post(f"/appointments/{appointment_id}/status", json={"status": "confirmed"})
    assert ok.json()["status"] == "confirmed"
    ok = client.post(f"/appointments/{appointment_id}/status", json={"status": "completed"})
    assert ok.json()["status"] == "completed"

    unknown = client.post(f"/appointments/{appointment_id}/status", json={"status": "archived"})
    assert unknown.status_code == 422


def test_mark_paid_over_http(client, schedule):
    appointment_id = client.post("/appointments", json=booking_payload(schedule)).json()["id"]
    response = client.post(f"/appointments/{appointment_id}/payment")
    assert response.status_code == 200
    assert response.json()["paymentStatus"] == "paid"
