"""Tests for the HTTP layer (device_diagnostics.app.main)."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from device_diagnostics.app.dependencies import get_diagnostic_service
from device_diagnostics.app.main import app
from device_diagnostics.data.sample_problems import DEVICE_ID as SAMPLE_DEVICE
from device_diagnostics.data.sample_problems import PROBLEM_ID as SAMPLE_PROBLEM


@pytest.fixture
def client(sample_service):
    app.dependency_overrides[get_diagnostic_service] = lambda: sample_service
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def _create(client, session_id="sess-1"):
    return client.post(
        "/sessions",
        json={"deviceId": SAMPLE_DEVICE, "problemId": SAMPLE_PROBLEM, "sessionId": session_id},
    )


def _act(client, action, value=None, session_id="sess-1"):
    return client.post(f"/sessions/{session_id}/actions", json={"action": action, "value": value})


# ---------------------------------------------------------------------------
# Sessions
# ---------------------------------------------------------------------------

class TestCreateSession:
    def test_created_with_camel_case_body(self, client):
        response = _create(client)
        assert response.status_code == 201
        body = response.json()
        assert body["sessionId"] == "sess-1"
        assert body["status"] == "ACTIVE"
        assert body["currentStepId"] == "step_01_power"
        assert body["currentStep"]["stepNumber"] == 1
        assert body["totalSteps"] == 6
        assert body["completedSteps"] == 0
        assert body["lastAction"] is None

    def test_unknown_problem_is_404(self, client):
        response = client.post("/sessions", json={"deviceId": SAMPLE_DEVICE, "problemId": "nope"})
        assert response.status_code == 404
        assert response.json()["detail"] == "Problem not found"

    def test_duplicate_is_409(self, client):
        _create(client)
        response = _create(client)
        assert response.status_code == 409
        assert response.json()["errorType"] == "SessionAlreadyExists"

    def test_missing_fields_is_422(self, client):
        assert client.post("/sessions", json={"deviceId": SAMPLE_DEVICE}).status_code == 422


class TestGetSession:
    def test_resume(self, client):
        _create(client)
        response = client.get("/sessions/sess-1")
        assert response.status_code == 200
        assert response.json()["currentStep"]["title"] == "Check the power"

    def test_unknown_is_404(self, client):
        assert client.get("/sessions/nope").status_code == 404


# ---------------------------------------------------------------------------
# Actions
# ---------------------------------------------------------------------------

class TestSubmitAction:
    def test_pass_reports_last_action(self, client):
        _create(client)
        body = _act(client, "power").json()
        assert body["currentStepId"] == "step_02_source"
        assert body["completedSteps"] == 1
        assert body["lastAction"] == {
            "transition": "ADVANCE",
            "passed": True,
            "reason": body["lastAction"]["reason"],
            "control": None,
            "message": None,
        }

    def test_failure_reports_reason_and_control(self, client):
        _create(client)
        _act(client, "power")
        body = _act(client, "select", "VGA").json()
        assert body["currentStepId"] == "step_02_source"
        assert body["errorSteps"] == ["step_02_source"]
        assert body["lastAction"]["passed"] is False
        assert body["lastAction"]["control"] == "retry"
        assert body["lastAction"]["reason"] == "Pick one of HDMI 1 to HDMI 4."

    def test_completion(self, client):
        _create(client)
        for action, value in [("power", None), ("select", "HDMI 1"), ("yes", None), ("ok", None)]:
            body = _act(client, action, value).json()
        assert body["status"] == "COMPLETED"
        assert body["success"] is True
        assert body["currentStep"] is None
        assert body["endTime"] is not None
        assert body["lastAction"]["transition"] == "COMPLETE"

    def test_unknown_session_is_404(self, client):
        response = _act(client, "ok", session_id="nope")
        assert response.status_code == 404
        assert response.json()["errorType"] == "SessionNotFound"

    def test_finished_session_is_409(self, client):
        _create(client)
        for action, value in [("power", None), ("select", "HDMI 1"), ("yes", None), ("ok", None)]:
            _act(client, action, value)
        response = _act(client, "ok")
        assert response.status_code == 409
        assert response.json()["errorType"] == "SessionTerminated"


# ---------------------------------------------------------------------------
# Feedback
# ---------------------------------------------------------------------------

class TestFeedback:
    def test_active_session_is_409(self, client):
        _create(client)
        response = client.post("/sessions/sess-1/feedback", json={"rating": 4})
        assert response.status_code == 409
        assert response.json()["errorType"] == "SessionStillActive"

    def test_rating_out_of_range_is_422(self, client):
        _create(client)
        response = client.post("/sessions/sess-1/feedback", json={"rating": 9})
        assert response.status_code == 422

    def test_feedback_on_finished_session(self, client, sample_service):
        _create(client)
        for action, value in [("power", None), ("select", "HDMI 1"), ("yes", None), ("ok", None)]:
            _act(client, action, value)
        response = client.post(
            "/sessions/sess-1/feedback",
            json={"rating": 5, "helpfulSteps": ["step_03_cable"]},
        )
        assert response.status_code == 200
        stored = sample_service.get_session("sess-1").session
        assert stored.feedback.rating == 5
        assert stored.feedback.helpful_steps == ["step_03_cable"]
