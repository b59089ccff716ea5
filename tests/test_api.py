import pytest
from fastapi.testclient import TestClient

import database, main


@pytest.fixture
def client(session_factory):
    def override_get_db():
        db = session_factory()
        try:
            yield db
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    main.app.dependency_overrides[database.get_db] = override_get_db
    yield TestClient(main.app)
    main.app.dependency_overrides.clear()


@pytest.fixture
def clinic(client):
    user = client.post("/users/", json={
        "username": "drhouse", "email": "house@example.com", "password": "vicodin",
        "first_name": "Greg", "last_name": "House", "role": "doctor",
    })
    assert user.status_code == 201, user.text
    doctor = client.post("/doctors/", json={"user_id": user.json()["user_id"], "license_number": "NJ-1"})
    assert doctor.status_code == 201, doctor.text
    patient = client.post("/patients/", json={"first_name": "Rebecca", "last_name": "Adler", "national_id": "RA-1"})
    assert patient.status_code == 201, patient.text
    return {"doctor_id": doctor.json()["doctor_id"], "patient_id": patient.json()["patient_id"]}


def _book(client, clinic, start, end):
    return client.post("/appointments/", json={
        "doctor_id": clinic["doctor_id"], "patient_id": clinic["patient_id"],
        "start_time": start, "end_time": end, "reason": "Headache",
    })


def test_booking_and_overlap_conflict(client, clinic):
    first = _book(client, clinic, "2025-03-03T09:00:00", "2025-03-03T09:30:00")
    assert first.status_code == 201
    assert first.json()["status"] == "scheduled"

    clash = _book(client, clinic, "2025-03-03T09:15:00", "2025-03-03T09:45:00")
    assert clash.status_code == 409
    body = clash.json()
    assert body["kind"] == "overlap"
    assert body["retryable"] is False
    assert body["conflicts"] == [{
        "appointment_id": first.json()["appointment_id"],
        "start_time": "2025-03-03T09:00:00",
        "end_time": "2025-03-03T09:30:00",
    }]


def test_error_kinds(client, clinic):
    invalid = _book(client, clinic, "2025-03-03T10:00:00", "2025-03-03T10:00:00")
    assert invalid.status_code == 422
    assert invalid.json()["kind"] == "validation"

    missing = client.get("/appointments/404")
    assert missing.status_code == 404
    assert missing.json()["kind"] == "not_found"

    duplicate = client.post("/patients/", json={"first_name": "R", "last_name": "A", "national_id": "RA-1"})
    assert duplicate.status_code == 409
    assert duplicate.json()["kind"] == "conflict"


def test_cancel_frees_slot_and_calendar(client, clinic):
    first = _book(client, clinic, "2025-03-03T09:00:00", "2025-03-03T09:30:00").json()
    _book(client, clinic, "2025-03-03T08:00:00", "2025-03-03T08:30:00")

    cancelled = client.patch(f"/appointments/{first['appointment_id']}/cancel")
    assert cancelled.status_code == 200
    assert cancelled.json()["status"] == "cancelled"

    rebooked = _book(client, clinic, "2025-03-03T09:00:00", "2025-03-03T09:30:00")
    assert rebooked.status_code == 201

    calendar = client.get(f"/doctors/{clinic['doctor_id']}/appointments", params={
        "from_ts": "2025-03-03T00:00:00", "to_ts": "2025-03-04T00:00:00",
    })
    assert calendar.status_code == 200
    assert [a["start_time"] for a in calendar.json()] == ["2025-03-03T08:00:00", "2025-03-03T09:00:00"]


def test_status_patch_and_doctor_delete(client, clinic):
    appt = _book(client, clinic, "2025-03-03T09:00:00", "2025-03-03T09:30:00").json()

    bad = client.patch(f"/appointments/{appt['appointment_id']}", json={"status": "completed"})
    assert bad.status_code == 422
    ok = client.patch(f"/appointments/{appt['appointment_id']}", json={"status": "checked_in"})
    assert ok.json()["status"] == "checked_in"

    refused = client.delete(f"/doctors/{clinic['doctor_id']}")
    assert refused.status_code == 409

    logs = client.get("/audit-logs/", params={"object_type": "appointment"})
    assert [entry["action"] for entry in logs.json()] == ["appointment.updated", "appointment.created"]


def test_prescribed_medicine_delete_is_a_conflict(client, clinic):
    appt = _book(client, clinic, "2025-03-03T09:00:00", "2025-03-03T09:30:00").json()
    medicine = client.post("/prescriptions/medicines", json={"name": "Amoxicillin", "unique_code": "AMX-500"}).json()
    created = client.post("/prescriptions/", json={
        "appointment_id": appt["appointment_id"],
        "items": [{"medicine_id": medicine["medicine_id"], "dosage": "1 tablet", "duration_days": 5}],
    })
    assert created.status_code == 201, created.text

    refused = client.delete(f"/prescriptions/medicines/{medicine['medicine_id']}")
    assert refused.status_code == 409
    assert refused.json()["kind"] == "conflict"

    assert client.delete(f"/prescriptions/{created.json()['prescription_id']}").status_code == 200
    assert client.delete(f"/prescriptions/medicines/{medicine['medicine_id']}").status_code == 200
    assert client.get(f"/prescriptions/medicines/{medicine['medicine_id']}").status_code == 404
