import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from src.lifeline.main import app


RESPONDER = {"X-User-Id": "user-a", "X-User-Role": "responder"}


def _report(client, accident_type):
    response = client.post(
        "/api/v1/accidents/",
        json={"type": accident_type, "description": "Reported", "location": "Downtown"},
        headers=RESPONDER,
    )
    assert response.status_code == 201
    return response.json()


def test_live_accident_list_pushes_snapshots():
    with TestClient(app) as client:
        _report(client, "Car Accident")

        with client.websocket_connect("/api/v1/ws/accidents?user_id=user-a&role=responder") as websocket:
            initial = websocket.receive_json()
            assert initial["type"] == "snapshot"
            assert initial["resource"] == "accidents"
            assert [item["type"] for item in initial["items"]] == ["Car Accident"]

            websocket.send_json({"type": "filter", "search": "fire"})
            filtered = websocket.receive_json()
            assert filtered["items"] == []
            assert filtered["filtered"] is True
            assert filtered["total"] == 1

            _report(client, "House Fire")
            pushed = websocket.receive_json()
            assert [item["type"] for item in pushed["items"]] == ["House Fire"]
            assert pushed["total"] == 2


def test_live_rejects_unknown_resources():
    with TestClient(app) as client:
        with pytest.raises(WebSocketDisconnect):
            with client.websocket_connect("/api/v1/ws/patients"):
                pass


def test_live_respects_navigation():
    with TestClient(app) as client:
        with pytest.raises(WebSocketDisconnect):
            with client.websocket_connect("/api/v1/ws/ambulances?user_id=user-a&role=responder"):
                pass

        with client.websocket_connect("/api/v1/ws/ambulances?user_id=d-1&role=dispatcher") as websocket:
            assert websocket.receive_json()["items"] == []


def test_malformed_frames_are_ignored():
    with TestClient(app) as client:
        _report(client, "Car Accident")

        with client.websocket_connect("/api/v1/ws/accidents?user_id=user-a&role=responder") as websocket:
            assert websocket.receive_json()["total"] == 1

            websocket.send_text("not json")
            websocket.send_text("[1, 2, 3]")
            websocket.send_json({"type": "filter", "search": "car"})

            filtered = websocket.receive_json()
            assert filtered["type"] == "snapshot"
            assert [item["type"] for item in filtered["items"]] == ["Car Accident"]


def test_live_dashboard_tracks_active_emergencies():
    with TestClient(app) as client:
        with client.websocket_connect("/api/v1/ws/dashboard?user_id=admin-1&role=admin") as websocket:
            initial = websocket.receive_json()
            assert initial["resource"] == "dashboard"
            assert initial["show_user_count"] is True
            assert initial["stats"]["active_emergencies"] == 0

            _report(client, "House Fire")
            pushed = websocket.receive_json()
            assert pushed["stats"]["active_emergencies"] == 1
            assert pushed["stats"]["active_accidents"][0]["type"] == "House Fire"
