"""
Notification Dispatch.

Orchestrates the two outbound flows:

Email:
1. Validate recipients, subject and body
2. Stage the uploaded attachment (if any)
3. Compose and send through the email transport
4. Delete the staged attachment after a successful send

SMS:
1. Validate recipients and message
2. Send to every recipient concurrently
3. Report all outcomes in input order, or a single failure if any send failed
"""

import asyncio
import logging
import mimetypes
from email.message import EmailMessage
from email.utils import make_msgid
from typing import Optional, Sequence

from app.core.dispatch.models import (
    EmailRequest,
    EmailSendInfo,
    EmailTransport,
    SmsOutcome,
    SmsRequest,
    SmsTransport,
    parse_recipients,
)
from app.core.errors import CallerError, RelayError, StagingError
from app.infra.staging import FileStager, StagedFile, Upload

logger = logging.getLogger(__name__)


def _missing(fields: dict) -> list[str]:
    return [name for name, value in fields.items() if not value]


def build_email_request(
    recipient_emails: Optional[str],
    subject: Optional[str],
    body: Optional[str],
) -> EmailRequest:
    """Validate raw email fields.

    Raises:
        CallerError: A required field is missing, a header field contains
            a line break, or no address survives splitting
    """
    missing = _missing(
        {"recipientEmails": recipient_emails, "subject": subject, "body": body}
    )
    if missing:
        raise CallerError(f"Missing required fields: {', '.join(missing)}")

    for name, value in (("recipientEmails", recipient_emails), ("subject", subject)):
        if "\r" in value or "\n" in value:
            raise CallerError(f"{name} must not contain line breaks")

    recipients = parse_recipients(recipient_emails)
    if not recipients:
        raise CallerError("recipientEmails must contain at least one address")

    return EmailRequest(recipients=recipients, subject=subject, body=body)


def build_sms_request(
    recipient_phones: Optional[Sequence[str]],
    message: Optional[str],
) -> SmsRequest:
    """Validate raw SMS fields.

    Raises:
        CallerError: No recipients, a blank recipient, or no message
    """
    if not recipient_phones:
        raise CallerError("recipientPhones must contain at least one phone number")
    if any(not (phone or "").strip() for phone in recipient_phones):
        raise CallerError("recipientPhones must not contain empty entries")
    if not message:
        raise CallerError("Missing required fields: message")

    return SmsRequest(
        recipients=[phone.strip() for phone in recipient_phones],
        message=message,
    )


def _attachment_type(attachment: StagedFile) -> tuple[str, str]:
    """Pick the MIME type for an attachment part.

    The declared type is used when it is a plain leaf type. Container
    types (multipart, message) and malformed values fall back to a guess
    from the file name.
    """
    candidates = (
        attachment.content_type,
        mimetypes.guess_type(attachment.original_name)[0],
    )
    for candidate in candidates:
        media_type = (candidate or "").split(";", 1)[0].strip().lower()
        maintype, _, subtype = media_type.partition("/")
        if maintype and subtype and maintype not in ("multipart", "message"):
            return maintype, subtype
    return "application", "octet-stream"


async def compose_email(request: EmailRequest, sender: str) -> EmailMessage:
    """Build the MIME message for an email request.

    The staged attachment is read from disk and attached under its
    original file name.
    """
    message = EmailMessage()
    message["From"] = sender
    message["To"] = ", ".join(request.recipients)
    message["Subject"] = request.subject
    message["Message-ID"] = make_msgid()
    message.set_content(request.body)

    attachment = request.attachment
    if attachment is not None:
        try:
            data = await asyncio.to_thread(attachment.stored_path.read_bytes)
        except OSError as e:
            raise StagingError("Failed to read staged attachment") from e

        maintype, subtype = _attachment_type(attachment)
        message.add_attachment(
            data,
            maintype=maintype,
            subtype=subtype,
            filename=attachment.original_name,
        )

    return message


class NotificationService:
    """Sends email and SMS notifications through the configured providers."""

    def __init__(
        self,
        email_transport: EmailTransport,
        sms_transport: SmsTransport,
        stager: FileStager,
        sender_email: str,
        sender_phone: str,
        cleanup_attachment_on_failure: bool = False,
    ):
        """Initialize service.

        Args:
            email_transport: Shared email provider client
            sms_transport: Shared SMS provider client
            stager: Staging area for uploaded attachments
            sender_email: From address for outgoing mail
            sender_phone: Sender number for outgoing SMS
            cleanup_attachment_on_failure: Also delete the staged
                attachment when the email send fails
        """
        self.email_transport = email_transport
        self.sms_transport = sms_transport
        self.stager = stager
        self.sender_email = sender_email
        self.sender_phone = sender_phone
        self.cleanup_attachment_on_failure = cleanup_attachment_on_failure

    async def send_email(
        self,
        recipient_emails: Optional[str],
        subject: Optional[str],
        body: Optional[str],
        upload: Optional[Upload] = None,
    ) -> EmailSendInfo:
        """Send an email, optionally with one attachment.

        Fields are validated before the upload touches the disk, so a
        rejected request leaves nothing behind.

        Args:
            recipient_emails: Comma-separated recipient addresses
            subject: Subject line
            body: Plain-text body
            upload: Optional uploaded file to attach

        Returns:
            EmailSendInfo from the provider

        Raises:
            CallerError: Missing fields or no recipients
            StagingError: The upload could not be stored
            TransportError: The provider failed the send
        """
        request = build_email_request(recipient_emails, subject, body)

        if upload is not None:
            request.attachment = await self.stager.stage(upload)

        try:
            message = await compose_email(request, self.sender_email)
            info = await self.email_transport.send(message)
        except Exception as e:
            detail = (e.details or e.message) if isinstance(e, RelayError) else e
            logger.error(f"Error sending email: {detail}")
            if request.attachment is not None and self.cleanup_attachment_on_failure:
                await self.stager.unstage(request.attachment)
            raise

        logger.info(f"Email sent successfully: {info.response}")

        if request.attachment is not None:
            await self.stager.unstage(request.attachment)

        return info

    async def send_sms(
        self,
        recipient_phones: Optional[Sequence[str]],
        message: Optional[str],
    ) -> list[SmsOutcome]:
        """Send the same SMS to every recipient concurrently.

        All-or-nothing: if any send fails the whole operation fails with
        the first failure (in recipient order). Messages the provider
        already accepted are not recalled.

        Returns:
            One SmsOutcome per recipient, in request order

        Raises:
            CallerError: No recipients or no message
            TransportError: At least one send failed
        """
        request = build_sms_request(recipient_phones, message)

        results = await asyncio.gather(
            *(
                self.sms_transport.send(phone, request.message, self.sender_phone)
                for phone in request.recipients
            ),
            return_exceptions=True,
        )

        first_failure: Optional[BaseException] = None
        for phone, result in zip(request.recipients, results):
            if isinstance(result, BaseException):
                logger.warning(f"SMS to {phone} failed: {result}")
                if first_failure is None:
                    first_failure = result

        if first_failure is not None:
            raise first_failure

        logger.info(f"SMS sent successfully to {len(results)} recipient(s)")
        return list(results)
