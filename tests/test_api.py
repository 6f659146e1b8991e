from __future__ import annotations

import base64

import cv2
import numpy as np
import pytest

from conftest import MEMBER_ID, FakeDecoder, FakeMatcherFactory, descriptor, match

from src.face_attendance.face_attendance.container import build_container
from src.face_attendance.face_attendance.main import create_app


@pytest.fixture
def client(kiosk, monkeypatch):
    monkeypatch.setenv("APP_ENV", "testing")
    app = create_app(kiosk.container)
    with app.test_client() as c:
        yield c


def _member_payload(**overrides):
    body = {
        "id": MEMBER_ID,
        "fullName": "Nguyen Van A",
        "role": "Student",
        "descriptor": descriptor(0.1),
        "photo": "data:image/png;base64,AAAA",
    }
    body.update(overrides)
    return body


def _event_payload(**overrides):
    body = {
        "eventName": "Morning class",
        "eventDate": "2024-05-06",
        "timeInStart": "08:00",
        "timeInEnd": "08:30",
        "timeOutStart": "16:00",
        "timeOutEnd": "17:00",
    }
    body.update(overrides)
    return body


def _png_data_url() -> str:
    ok, buf = cv2.imencode(".png", np.zeros((8, 8, 3), dtype=np.uint8))
    assert ok
    return "data:image/png;base64," + base64.b64encode(buf.tobytes()).decode("ascii")


def test_users_crud(client):
    r = client.post("/api/users", json=_member_payload())
    assert r.status_code == 201
    assert r.get_json() == {"success": True, "data": {"id": MEMBER_ID}, "message": "User added successfully"}

    r = client.post("/api/users", json=_member_payload())
    assert r.status_code == 409
    assert r.get_json()["success"] is False

    r = client.get("/api/users", query_string={"id": MEMBER_ID})
    data = r.get_json()["data"]
    assert data["fullName"] == "Nguyen Van A"
    assert len(data["descriptor"]) == 128

    r = client.put("/api/users", json={"id": MEMBER_ID, "role": "Teacher"})
    assert r.status_code == 200
    assert client.get("/api/users").get_json()["data"][0]["role"] == "Teacher"

    assert client.delete("/api/users", query_string={"id": MEMBER_ID}).status_code == 200
    assert client.get("/api/users", query_string={"id": MEMBER_ID}).status_code == 404


def test_users_validation_errors(client):
    r = client.post("/api/users", json=_member_payload(id="12-34"))
    assert r.status_code == 400
    assert "1234-5678" in r.get_json()["error"]

    r = client.post("/api/users", json=_member_payload(descriptor={"0": 1.0}))
    assert r.status_code == 400

    assert client.delete("/api/users").status_code == 400


def test_events_crud(client):
    r = client.post("/api/events", json=_event_payload())
    assert r.status_code == 201
    event_id = r.get_json()["data"]["eventId"]

    r = client.get("/api/events", query_string={"id": event_id})
    assert r.get_json()["data"]["timeInEnd"] == "08:30:00"

    r = client.put("/api/events", json={"eventId": event_id, "isActive": False})
    assert r.status_code == 200
    assert client.get("/api/events", query_string={"active": "1"}).get_json()["data"] == []

    r = client.post("/api/events", json=_event_payload(timeInEnd="07:00"))
    assert r.status_code == 400

    r = client.post("/api/events", json={"eventName": "x"})
    assert r.status_code == 400
    assert "eventDate" in r.get_json()["error"]

    assert client.delete("/api/events", query_string={"id": event_id}).status_code == 200
    assert client.delete("/api/events", query_string={"id": event_id}).status_code == 404


def test_attendance_post_computes_lateness_and_rejects_duplicates(client):
    client.post("/api/users", json=_member_payload())
    event_id = client.post("/api/events", json=_event_payload()).get_json()["data"]["eventId"]

    body = {"userId": MEMBER_ID, "fullName": "Nguyen Van A", "eventId": event_id, "time": "2024-05-06 08:31:00"}
    r = client.post("/api/attendance", json=body)
    assert r.status_code == 201
    data = r.get_json()["data"]
    assert data["isLate"] is True
    assert data["attendanceType"] == "time_in"

    r = client.post("/api/attendance", json=body)
    assert r.status_code == 409
    assert r.get_json()["error"] == "Attendance already marked for this event and type"

    r = client.post("/api/attendance", json={**body, "attendanceType": "lunch"})
    assert r.status_code == 400

    r = client.post("/api/attendance", json={**body, "userId": "0000-0000"})
    assert r.status_code == 404

    r = client.post("/api/attendance", json={"userId": MEMBER_ID})
    assert r.status_code == 400
    assert r.get_json()["error"] == "Missing required fields: fullName"

    r = client.post("/api/attendance", json={"fullName": " "})
    assert r.status_code == 400
    assert r.get_json()["error"] == "Missing required fields: userId, fullName"

    r = client.get("/api/attendance", query_string={"eventId": event_id, "date": "2024-05-06"})
    logs = r.get_json()["data"]
    assert len(logs) == 1
    assert logs[0]["eventName"] == "Morning class"
    assert logs[0]["role"] == "Student"


def test_reports_endpoints(client):
    client.post("/api/users", json=_member_payload())
    r = client.get("/api/reports/dashboard")
    data = r.get_json()["data"]
    assert data["totalMembers"] == 1
    assert data["absent"] == data["totalMembers"] - data["present"]

    r = client.get("/api/reports/attendance", query_string={"sort": "nope"})
    assert r.status_code == 400


def test_capture_over_http_with_browser_frames(monkeypatch):
    monkeypatch.setenv("APP_ENV", "testing")
    decoder = FakeDecoder(results=[MEMBER_ID])
    # browser sessions use the real pushed-frame camera
    container = build_container(
        backend="memory",
        decoder_factory=lambda: decoder,
        matcher_factory=FakeMatcherFactory(results=[match(distance=0.5)]),
    )
    client = create_app(container).test_client()
    client.post("/api/users", json=_member_payload())
    image = _png_data_url()

    r = client.post("/api/capture/start", json={"context": "tab", "source": "browser"})
    assert r.get_json()["data"]["state"] == "SCANNING_CODE"

    r = client.post("/api/capture/frame", json={"context": "tab", "image": image})
    data = r.get_json()["data"]
    assert data["state"] == "IDENTITY_RESOLVED"
    assert data["userId"] == MEMBER_ID

    r = client.post("/api/capture/confirm", json={"context": "tab"})
    assert r.get_json()["data"]["state"] == "VERIFYING_FACE"

    r = client.post("/api/capture/frame", json={"context": "tab", "image": image})
    data = r.get_json()["data"]
    assert data["state"] == "COMPLETED"
    assert data["record"]["userId"] == MEMBER_ID

    r = client.get("/api/capture/status", query_string={"context": "tab"})
    assert r.get_json()["data"]["state"] == "COMPLETED"

    r = client.post("/api/capture/cancel", json={"context": "tab"})
    assert r.get_json()["data"]["state"] == "IDLE"


def test_capture_errors_map_to_status_codes(kiosk, client):
    assert client.post("/api/capture/confirm", json={"context": "nobody"}).status_code == 404
    assert client.post("/api/capture/frame", json={"context": "x", "image": "%%%"}).status_code == 400

    kiosk.cameras.fail = True
    r = client.post("/api/capture/start", json={"source": "0"})
    assert r.status_code == 503
    assert r.get_json()["success"] is False


def test_create_app_uses_memory_backend_in_testing(monkeypatch):
    monkeypatch.setenv("APP_ENV", "testing")
    app = create_app()
    assert app.extensions["face_attendance"].backend == "memory"

    client = app.test_client()
    r = client.get("/api/users")
    assert r.status_code == 200
    assert r.get_json() == {"success": True, "data": []}
