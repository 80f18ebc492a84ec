"""
E2E Smoke Tests for the Patient Relay.

These tests call a running server over HTTP. Provider-backed sends are
skipped unless test recipients are configured, since they deliver real
messages.

Usage:
    pytest tests/e2e/smoke_test_e2e.py -v

Prerequisites:
    - Relay running at http://localhost:5000 (RELAY_URL)
    - Patient store reachable by the relay
    - Optional: E2E_PATIENT_ID, E2E_EMAIL, E2E_PHONE for the send tests
"""

import os

import httpx
import pytest

# Configuration from environment
RELAY_URL = os.getenv("RELAY_URL", "http://localhost:5000").rstrip("/")
PATIENT_ID = os.getenv("E2E_PATIENT_ID", "")
TEST_EMAIL = os.getenv("E2E_EMAIL", "")
TEST_PHONE = os.getenv("E2E_PHONE", "")
TIMEOUT = float(os.getenv("E2E_TIMEOUT", "30"))


@pytest.fixture
def client():
    """HTTP client pointed at the running relay."""
    with httpx.Client(base_url=RELAY_URL, timeout=TIMEOUT) as c:
        yield c


class TestHealthCheck:
    """Verify the service is up and responding."""

    def test_health_endpoint(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.text == "Server is healthy!"

    def test_ready_endpoint(self, client):
        response = client.get("/health/ready")

        assert response.status_code == 200
        assert response.json()["checks"]["database"] == "ok"


class TestPatientLookup:
    """Lookups against the live store."""

    def test_unknown_patient_is_404(self, client):
        response = client.get("/api/patient/__smoke-test-missing__")

        assert response.status_code == 404
        assert response.json() == {"error": "Patient not found"}

    @pytest.mark.skipif(not PATIENT_ID, reason="E2E_PATIENT_ID not configured")
    def test_known_patient(self, client):
        response = client.get(f"/api/patient/{PATIENT_ID}")

        assert response.status_code == 200
        assert isinstance(response.json(), dict)


class TestNotifications:
    """Real sends through the configured providers."""

    def test_sms_without_recipients_is_rejected(self, client):
        response = client.post("/api/send-sms", json={"recipientPhones": [], "message": "x"})

        assert response.status_code == 400

    @pytest.mark.skipif(not TEST_EMAIL, reason="E2E_EMAIL not configured")
    def test_send_email_with_attachment(self, client):
        response = client.post(
            "/api/send-email",
            data={
                "recipientEmails": TEST_EMAIL,
                "subject": "Relay smoke test",
                "body": "Attachment included.",
            },
            files={"file": ("smoke.txt", b"smoke test attachment", "text/plain")},
        )

        assert response.status_code == 200
        assert response.json()["message"] == "Email sent successfully"

    @pytest.mark.skipif(not TEST_PHONE, reason="E2E_PHONE not configured")
    def test_send_sms(self, client):
        response = client.post(
            "/api/send-sms",
            json={"recipientPhones": [TEST_PHONE], "message": "Relay smoke test"},
        )

        assert response.status_code == 200
        assert len(response.json()["results"]) == 1
