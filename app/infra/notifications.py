"""
Notification Providers

Transport adapters for the two outbound channels:
- Email over SMTP (aiosmtplib)
- SMS through the Twilio REST API (httpx)

Both are created once at startup and shared by all requests. Each send
either returns the provider's result or raises TransportError.
"""

import logging
from email.message import EmailMessage
from typing import Optional

import aiosmtplib
import httpx

from app.config import Settings
from app.core.dispatch.models import EmailSendInfo, SmsOutcome
from app.core.errors import TransportError

logger = logging.getLogger(__name__)

TWILIO_API_VERSION = "2010-04-01"


class SmtpEmailTransport:
    """SMTP email transport (Gmail by default)."""

    def __init__(
        self,
        hostname: str,
        port: int,
        username: Optional[str] = None,
        password: Optional[str] = None,
        use_tls: bool = False,
        start_tls: bool = True,
        timeout: float = 60.0,
    ):
        """Initialize transport.

        Args:
            hostname: SMTP server host
            port: SMTP server port
            username: Login user (skipped when empty)
            password: Login password
            use_tls: Connect with implicit TLS
            start_tls: Upgrade with STARTTLS after connecting
            timeout: Per-operation timeout in seconds
        """
        self.hostname = hostname
        self.port = port
        self.username = username or None
        self.password = password or None
        self.use_tls = use_tls
        self.start_tls = start_tls
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> "SmtpEmailTransport":
        """Build from application settings."""
        return cls(
            hostname=settings.smtp_host,
            port=settings.smtp_port,
            username=settings.gmail_user,
            password=settings.gmail_pass,
            use_tls=settings.smtp_use_tls,
            start_tls=False if settings.smtp_use_tls else settings.smtp_start_tls,
            timeout=settings.smtp_timeout,
        )

    async def send(self, message: EmailMessage) -> EmailSendInfo:
        """Send a message and report which recipients were accepted.

        Raises:
            TransportError: Connection, authentication or delivery failure
        """
        recipients = [
            address.strip()
            for header in ("To", "Cc", "Bcc")
            for value in (message.get_all(header) or [])
            for address in str(value).split(",")
            if address.strip()
        ]

        try:
            errors, response = await aiosmtplib.send(
                message,
                hostname=self.hostname,
                port=self.port,
                username=self.username,
                password=self.password,
                use_tls=self.use_tls,
                start_tls=self.start_tls,
                timeout=self.timeout,
            )
        except (aiosmtplib.SMTPException, OSError) as e:
            raise TransportError("Failed to send email", details=str(e)) from e

        rejected = list(errors.keys())
        return EmailSendInfo(
            message_id=message.get("Message-ID", ""),
            accepted=[r for r in recipients if r not in errors],
            rejected=rejected,
            response=response,
            envelope={"from": message.get("From", ""), "to": recipients},
        )


class TwilioSmsTransport:
    """
    HTTP client for the Twilio Messages API.

    Twilio exposes:
    - POST /2010-04-01/Accounts/{sid}/Messages.json - Create message
    """

    def __init__(
        self,
        account_sid: str,
        auth_token: str,
        base_url: str = "https://api.twilio.com",
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """Initialize client.

        Args:
            account_sid: Twilio account SID
            auth_token: Twilio auth token
            base_url: API base URL
            timeout: Request timeout in seconds
            client: Preconfigured HTTP client (tests inject a mock transport)
        """
        self.account_sid = account_sid
        self.auth_token = auth_token
        self.base_url = base_url
        self.timeout = timeout
        self._client = client

    @classmethod
    def from_settings(cls, settings: Settings) -> "TwilioSmsTransport":
        """Build from application settings."""
        return cls(
            account_sid=settings.twilio_account_sid,
            auth_token=settings.twilio_auth_token,
            base_url=settings.twilio_api_base,
            timeout=settings.twilio_timeout,
        )

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                auth=(self.account_sid, self.auth_token),
                timeout=self.timeout,
            )
        return self._client

    async def close(self) -> None:
        """Close HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    @property
    def messages_path(self) -> str:
        return f"/{TWILIO_API_VERSION}/Accounts/{self.account_sid}/Messages.json"

    async def send(self, to: str, body: str, from_: str) -> SmsOutcome:
        """Create one outbound message.

        Args:
            to: Recipient phone number (E.164 format)
            body: SMS text content
            from_: Sender phone number

        Returns:
            SmsOutcome built from the created message resource

        Raises:
            TransportError: Twilio rejected the message or was unreachable
        """
        client = await self._get_client()

        try:
            response = await client.post(
                self.messages_path,
                data={"To": to, "From": from_, "Body": body},
            )
        except httpx.HTTPError as e:
            raise TransportError("Failed to send SMS", details=str(e)) from e

        if response.is_success:
            try:
                return SmsOutcome.from_dict(response.json())
            except ValueError as e:
                raise TransportError(
                    "Failed to send SMS",
                    details=f"Twilio returned an unreadable response (HTTP {response.status_code})",
                ) from e

        try:
            data = response.json()
        except ValueError:
            data = {}
        detail = data.get("message") or f"Twilio returned HTTP {response.status_code}"
        raise TransportError("Failed to send SMS", details=detail)
