"""
Dispatch Module

Email and SMS notification dispatch.

Usage:
    from app.core.dispatch import NotificationService

    info = await service.send_email("a@x.com,b@x.com", "Subject", "Body")
    outcomes = await service.send_sms(["+15550001111"], "Your results are ready")
"""

from app.core.dispatch.models import (
    EmailRequest,
    EmailSendInfo,
    EmailTransport,
    SmsOutcome,
    SmsRequest,
    SmsTransport,
    parse_recipients,
)
from app.core.dispatch.service import (
    NotificationService,
    build_email_request,
    build_sms_request,
    compose_email,
)

__all__ = [
    "EmailRequest",
    "EmailSendInfo",
    "EmailTransport",
    "NotificationService",
    "SmsOutcome",
    "SmsRequest",
    "SmsTransport",
    "build_email_request",
    "build_sms_request",
    "compose_email",
    "parse_recipients",
]
