"""
Notification dispatch data types.

Request shapes built from HTTP input, the provider results handed back
to the caller, and the interfaces the provider transports implement.
"""

from dataclasses import dataclass, field
from email.message import EmailMessage
from typing import Any, Optional, Protocol

from app.infra.staging import StagedFile


def parse_recipients(raw: Optional[str]) -> list[str]:
    """Split a comma-separated address string.

    Whitespace around entries is trimmed and empty entries are dropped,
    so "a@x.com, ,b@x.com," yields two addresses.
    """
    if not raw:
        return []
    return [part.strip() for part in raw.split(",") if part.strip()]


@dataclass
class EmailRequest:
    """Email to send to one or more recipients."""

    recipients: list[str]
    subject: str
    body: str
    attachment: Optional[StagedFile] = None


@dataclass
class SmsRequest:
    """One SMS body fanned out to several phone numbers."""

    recipients: list[str]
    message: str


@dataclass
class EmailSendInfo:
    """Provider response metadata for a sent email."""

    message_id: str
    accepted: list[str]
    rejected: list[str] = field(default_factory=list)
    response: str = ""
    envelope: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "messageId": self.message_id,
            "accepted": self.accepted,
            "rejected": self.rejected,
            "response": self.response,
            "envelope": self.envelope,
        }


@dataclass
class SmsOutcome:
    """Result of one SMS send, as reported by the provider."""

    to: str
    sid: str
    status: str
    from_: Optional[str] = None
    body: Optional[str] = None
    date_created: Optional[str] = None
    error_code: Optional[int] = None
    error_message: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "SmsOutcome":
        """Create from a Twilio message resource."""
        return cls(
            to=data.get("to", ""),
            sid=data.get("sid", ""),
            status=data.get("status", ""),
            from_=data.get("from"),
            body=data.get("body"),
            date_created=data.get("date_created"),
            error_code=data.get("error_code"),
            error_message=data.get("error_message"),
        )

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "to": self.to,
            "sid": self.sid,
            "status": self.status,
            "from": self.from_,
            "body": self.body,
            "dateCreated": self.date_created,
            "errorCode": self.error_code,
            "errorMessage": self.error_message,
        }


class EmailTransport(Protocol):
    """Sends a composed email message."""

    async def send(self, message: EmailMessage) -> EmailSendInfo: ...


class SmsTransport(Protocol):
    """Sends one SMS to one recipient."""

    async def send(self, to: str, body: str, from_: str) -> SmsOutcome: ...
