"""Shared fixtures for the relay test suite."""

import os
import tempfile

# Settings are read at import time; point staging at a throwaway directory
# before anything imports app.config.
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="relay-uploads-"))
os.environ.setdefault("APP_ENV", "development")

from unittest.mock import AsyncMock

import pytest

from app.core.dispatch.models import EmailSendInfo, SmsOutcome
from app.core.dispatch.service import NotificationService
from app.infra.staging import FileStager


@pytest.fixture
def upload_dir(tmp_path):
    """Empty staging directory."""
    path = tmp_path / "uploads"
    path.mkdir()
    return path


@pytest.fixture
def stager(upload_dir):
    """Stager writing into the temporary upload directory."""
    return FileStager(upload_dir)


@pytest.fixture
def email_transport():
    """Mock email provider that accepts every message."""
    mock = AsyncMock()

    async def send(message):
        recipients = [a.strip() for a in message["To"].split(",")]
        return EmailSendInfo(
            message_id=message["Message-ID"],
            accepted=recipients,
            response="250 2.0.0 OK",
            envelope={"from": message["From"], "to": recipients},
        )

    mock.send = AsyncMock(side_effect=send)
    return mock


@pytest.fixture
def sms_transport():
    """Mock SMS provider that queues every message."""
    mock = AsyncMock()

    async def send(to, body, from_):
        return SmsOutcome(
            to=to,
            sid=f"SM{to[-4:]}",
            status="queued",
            from_=from_,
            body=body,
        )

    mock.send = AsyncMock(side_effect=send)
    return mock


@pytest.fixture
def notification_service(email_transport, sms_transport, stager):
    """Notification service wired to mock providers."""
    return NotificationService(
        email_transport=email_transport,
        sms_transport=sms_transport,
        stager=stager,
        sender_email="clinic@example.com",
        sender_phone="+15550009999",
    )
