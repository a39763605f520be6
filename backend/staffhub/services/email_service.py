"""
Email Service
=============

Transactional email goes through an outbox table: services enqueue rows in
the same transaction as the business change, and the send-emails job hands
them to the email API.
"""

from typing import Optional

import httpx
from sqlalchemy.orm import Session

from staffhub.core.config import settings
from staffhub.core.logging import get_logger
from staffhub.models.notification import EmailOutbox
from staffhub.services.http_client import post_json

logger = get_logger(__name__)


def enqueue_email(
    db: Session,
    to_email: str,
    subject: str,
    body: str,
    template: Optional[str] = None,
) -> EmailOutbox:
    """Add an outbox row; the caller commits."""
    email = EmailOutbox(
        to_email=to_email,
        subject=subject,
        body=body,
        template=template,
        max_attempts=settings.EMAIL_MAX_ATTEMPTS,
    )
    db.add(email)
    logger.debug("Email queued", extra={"to": to_email, "template": template})
    return email


def welcome_email(db: Session, email: str, full_name: str) -> EmailOutbox:
    return enqueue_email(
        db,
        to_email=email,
        subject=f"Welcome to {settings.APP_NAME}",
        body=(
            f"Hello {full_name},\n\n"
            "Your staff account has been created. Sign in with this email address "
            "and the password provided by your administrator."
        ),
        template="welcome",
    )


def request_decision_email(db: Session, email: str, request_no: int, status: str) -> EmailOutbox:
    readable = status.replace("_", " ")
    return enqueue_email(
        db,
        to_email=email,
        subject=f"Request #{request_no} {readable}",
        body=f"Your request #{request_no} has been {readable}.",
        template="request_decision",
    )


class EmailClient:
    """
    Thin client for an HTTP email API (Resend-compatible JSON body).

    Usage:
        client = EmailClient()
        if client.configured:
            message_id = await client.send(to, subject, body)
    """

    def __init__(
        self,
        api_url: Optional[str] = None,
        api_key: Optional[str] = None,
        sender: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_url = api_url or settings.EMAIL_API_URL
        self.api_key = settings.EMAIL_API_KEY if api_key is None else api_key
        self.sender = sender or settings.EMAIL_FROM
        self.transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    async def send(self, to_email: str, subject: str, body: str) -> Optional[str]:
        """
        Send one email. Each call is a single attempt; the outbox tracks retries.

        Returns:
            Provider message id, if the API returned one

        Raises:
            ExternalServiceError: on timeout or non-2xx response
        """
        data = await post_json(
            "email",
            self.api_url,
            {"from": self.sender, "to": [to_email], "subject": subject, "text": body},
            headers={"Authorization": f"Bearer {self.api_key}"},
            max_retries=1,
            transport=self.transport,
        )
        return data.get("id")
