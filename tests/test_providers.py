from datetime import date, timedelta

from agenda.models import Provider

from .conftest import MONDAY, add_appointment

NEXT_MONDAY = MONDAY + timedelta(days=7)


def slot_starts(client, schedule, day=NEXT_MONDAY, granularity=30):
    response = client.get(
        "/availability",
        params={
            "provider_id": schedule.public_id,
            "service_id": schedule.service_id,
            "date": day.isoformat(),
            "granularity": granularity,
        },
    )
    return [s["start"] for s in response.json()["slots"]]


def test_public_profile_lists_active_services(client, schedule):
    client.patch(f"/providers/me/services/{schedule.long_service_id}", json={"isActive": False})

    response = client.get(f"/providers/public/{schedule.public_id}")
    assert response.status_code == 200
    data = response.json()
    assert data["businessName"] == "Studio Bella"
    assert [s["name"] for s in data["services"]] == ["Haircut"]

    assert client.get("/providers/public/unknown").status_code == 404


def test_create_provider_profile(client, session_factory):
    response = client.post(
        "/providers/me",
        json={"businessName": "Clinica Sol", "timezone": "America/Sao_Paulo"},
    )
    assert response.status_code == 201
    data = response.json()
    assert data["businessName"] == "Clinica Sol"
    assert data["email"] == "new.owner@studio.test"
    assert data["timezone"] == "America/Sao_Paulo"

    with session_factory() as s:
        provider = s.query(Provider).filter(Provider.firebase_uid == "new-staff-uid").one()
        assert provider.public_id == data["public_id"]

    again = client.post("/providers/me", json={"businessName": "Clinica Sol"})
    assert again.status_code == 409


def test_create_provider_rejects_unknown_timezone(client):
    response = client.post("/providers/me", json={"businessName": "X", "timezone": "Mars/Olympus"})
    assert response.status_code == 422


def test_update_profile(client):
    response = client.patch("/providers/me", json={"phone": "+55 11 98765-4321", "timezone": "Europe/Lisbon"})
    assert response.status_code == 200
    assert response.json()["phone"] == "+5511987654321"
    assert response.json()["timezone"] == "Europe/Lisbon"
    assert client.get("/providers/me").json()["businessName"] == "Studio Bella"


# ---------------------------------------------------------------------------
# Business hours
# ---------------------------------------------------------------------------


def test_replace_business_hours(client, schedule):
    response = client.put(
        "/providers/me/business-hours",
        json={
            "days": [
                {"dayOfWeek": 1, "startTime": "10:00", "endTime": "14:00", "breakStart": "12:00", "breakEnd": "12:30"},
                {"dayOfWeek": 6, "startTime": "09:00", "endTime": "12:00"},
            ]
        },
    )
    assert response.status_code == 200
    assert [d["dayOfWeek"] for d in response.json()] == [1, 6]

    assert slot_starts(client, schedule) == ["10:00", "10:30", "11:00", "11:30", "12:30", "13:00", "13:30"]
    # Tuesday was dropped from the schedule
    assert slot_starts(client, schedule, NEXT_MONDAY + timedelta(days=1)) == []
    assert len(slot_starts(client, schedule, NEXT_MONDAY + timedelta(days=5))) == 6


def test_business_hours_validation(client):
    def put(days):
        return client.put("/providers/me/business-hours", json={"days": days})

    assert put([{"dayOfWeek": 1, "startTime": "18:00", "endTime": "09:00"}]).status_code == 422
    assert put([{"dayOfWeek": 7, "startTime": "09:00", "endTime": "17:00"}]).status_code == 422
    assert put([{"dayOfWeek": 1, "startTime": "9am", "endTime": "17:00"}]).status_code == 422
    assert put(
        [
            {"dayOfWeek": 1, "startTime": "09:00", "endTime": "17:00"},
            {"dayOfWeek": 1, "startTime": "10:00", "endTime": "12:00"},
        ]
    ).status_code == 422
    assert put(
        [{"dayOfWeek": 1, "startTime": "09:00", "endTime": "17:00", "breakStart": "16:30", "breakEnd": "17:30"}]
    ).status_code == 422
    assert put(
        [{"dayOfWeek": 1, "startTime": "09:00", "endTime": "17:00", "breakStart": "12:00"}]
    ).status_code == 422

    # Nothing was written
    assert len(client.get("/providers/me/business-hours").json()) == 5


# ---------------------------------------------------------------------------
# Time off
# ---------------------------------------------------------------------------


def test_time_off_lifecycle(client, schedule):
    response = client.post(
        "/providers/me/time-off",
        json={"startDate": NEXT_MONDAY.isoformat(), "endDate": NEXT_MONDAY.isoformat(), "reason": "Holiday"},
    )
    assert response.status_code == 201
    entry = response.json()
    assert slot_starts(client, schedule) == []

    assert [t["id"] for t in client.get("/providers/me/time-off").json()] == [entry["id"]]

    assert client.delete(f"/providers/me/time-off/{entry['id']}").status_code == 204
    assert len(slot_starts(client, schedule)) == 18
    assert client.delete(f"/providers/me/time-off/{entry['id']}").status_code == 404


def test_partial_day_time_off(client, schedule):
    response = client.post(
        "/providers/me/time-off",
        json={
            "startDate": NEXT_MONDAY.isoformat(),
            "endDate": NEXT_MONDAY.isoformat(),
            "startTime": "13:00",
            "endTime": "15:00",
        },
    )
    assert response.status_code == 201
    starts = slot_starts(client, schedule)
    assert "12:30" in starts
    assert not {"13:00", "13:30", "14:00", "14:30"} & set(starts)
    assert "15:00" in starts


def test_recurring_time_off(client, schedule):
    # Stored years ago, repeats on the same calendar day
    client.post(
        "/providers/me/time-off",
        json={
            "startDate": date(2019, NEXT_MONDAY.month, NEXT_MONDAY.day).isoformat(),
            "endDate": date(2019, NEXT_MONDAY.month, NEXT_MONDAY.day).isoformat(),
            "isRecurring": True,
        },
    )
    assert slot_starts(client, schedule) == []


def test_time_off_validation(client):
    response = client.post(
        "/providers/me/time-off",
        json={"startDate": NEXT_MONDAY.isoformat(), "endDate": MONDAY.isoformat()},
    )
    assert response.status_code == 422

    response = client.post(
        "/providers/me/time-off",
        json={"startDate": MONDAY.isoformat(), "endDate": MONDAY.isoformat(), "startTime": "10:00"},
    )
    assert response.status_code == 422


# ---------------------------------------------------------------------------
# Services
# ---------------------------------------------------------------------------


def test_create_and_list_services(client):
    response = client.post(
        "/providers/me/services",
        json={"name": "Beard Trim", "durationMinutes": 20, "price": 25, "color": "#10b981"},
    )
    assert response.status_code == 201
    assert response.json()["color"] == "#10B981"

    names = [s["name"] for s in client.get("/providers/me/services").json()]
    assert names == ["Beard Trim", "Haircut", "Massage"]


def test_service_validation(client):
    assert client.post("/providers/me/services", json={"name": "Zero", "durationMinutes": 0}).status_code == 422
    assert client.post(
        "/providers/me/services", json={"name": "Bad color", "durationMinutes": 30, "color": "blue"}
    ).status_code == 422


def test_service_terms_freeze_once_booked(client, session_factory, schedule):
    # Unused service: everything can change
    response = client.patch(
        f"/providers/me/services/{schedule.long_service_id}", json={"durationMinutes": 60, "price": 95}
    )
    assert response.status_code == 200
    assert response.json()["durationMinutes"] == 60

    add_appointment(session_factory, schedule.provider_id, schedule.service_id, NEXT_MONDAY, "10:00", "10:30")

    response = client.patch(f"/providers/me/services/{schedule.service_id}", json={"durationMinutes": 45})
    assert response.status_code == 422
    response = client.patch(f"/providers/me/services/{schedule.service_id}", json={"price": 55})
    assert response.status_code == 422

    response = client.patch(
        f"/providers/me/services/{schedule.service_id}", json={"name": "Classic Haircut", "durationMinutes": 30}
    )
    assert response.status_code == 200
    assert response.json()["name"] == "Classic Haircut"

    assert client.patch("/providers/me/services/9999", json={"name": "Nope"}).status_code == 404
