"""
Notification API Endpoints.

- POST /api/send-email: multipart form, optional file attachment
- POST /api/send-sms: JSON body, fanned out to every phone number
"""

import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from pydantic import BaseModel, ConfigDict, Field

from app.api.dependencies import get_notification_service
from app.core.dispatch.service import NotificationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Notifications"])


class SmsSendRequest(BaseModel):
    """SMS send request."""

    model_config = ConfigDict(populate_by_name=True)

    recipient_phones: Optional[list[str]] = Field(
        default=None,
        alias="recipientPhones",
        description="Phone numbers to send the message to (E.164 format)",
        examples=[["+15550001111", "+15550002222"]],
    )
    message: Optional[str] = Field(
        default=None,
        description="SMS text content",
        examples=["Your lab results are ready."],
    )


class EmailSendResponse(BaseModel):
    """Email send response."""

    message: str
    info: dict[str, Any]


class SmsSendResponse(BaseModel):
    """SMS send response."""

    message: str
    results: list[dict[str, Any]]


class ErrorResponse(BaseModel):
    """Error response."""

    error: str
    details: Optional[Any] = None


@router.post(
    "/send-email",
    response_model=EmailSendResponse,
    status_code=status.HTTP_200_OK,
    summary="Send an email",
    description="Send an email to comma-separated recipients, optionally attaching one file.",
    responses={
        400: {"model": ErrorResponse, "description": "Missing required fields"},
        500: {"model": ErrorResponse, "description": "Failed to send email"},
    },
)
async def send_email(
    recipient_emails: Optional[str] = Form(default=None, alias="recipientEmails"),
    subject: Optional[str] = Form(default=None),
    body: Optional[str] = Form(default=None),
    file: Optional[UploadFile] = File(default=None),
    service: NotificationService = Depends(get_notification_service),
) -> EmailSendResponse:
    """
    Send an email.

    A file sent in the ``file`` field is staged on disk, attached under
    its original name, and deleted once the provider accepts the message.
    """
    upload = file if file is not None and file.filename else None

    info = await service.send_email(
        recipient_emails=recipient_emails,
        subject=subject,
        body=body,
        upload=upload,
    )

    return EmailSendResponse(message="Email sent successfully", info=info.to_dict())


@router.post(
    "/send-sms",
    response_model=SmsSendResponse,
    status_code=status.HTTP_200_OK,
    summary="Send an SMS",
    description="Send the same SMS to every phone number. Fails as a whole if any send fails.",
    responses={
        400: {"model": ErrorResponse, "description": "Missing required fields"},
        500: {"model": ErrorResponse, "description": "Failed to send SMS"},
    },
)
async def send_sms(
    request: SmsSendRequest,
    service: NotificationService = Depends(get_notification_service),
) -> SmsSendResponse:
    """Send an SMS to each recipient concurrently."""
    outcomes = await service.send_sms(
        recipient_phones=request.recipient_phones,
        message=request.message,
    )

    return SmsSendResponse(
        message="SMS sent successfully",
        results=[outcome.to_dict() for outcome in outcomes],
    )
