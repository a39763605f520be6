"""
Email Outbox Dispatch Job
=========================

Sends pending outbox rows through the email API. Each run makes one attempt
per row; rows that reach max_attempts are marked failed.
"""

from typing import Optional

from sqlalchemy.orm import Session

from staffhub.core.enums import EmailStatus
from staffhub.core.exceptions import ExternalServiceError
from staffhub.core.logging import audit_logger, get_logger
from staffhub.db.base import utcnow
from staffhub.models.notification import EmailOutbox
from staffhub.services.email_service import EmailClient

logger = get_logger(__name__)

DISPATCH_LIMIT = 100


async def run_email_dispatch(
    db: Session,
    client: Optional[EmailClient] = None,
    limit: int = DISPATCH_LIMIT,
) -> dict:
    client = client or EmailClient()
    if not client.configured:
        logger.warning("Email API key not configured, outbox left pending")
        return {"success": True, "sent": 0, "failed": 0, "skipped": True}

    pending = (
        db.query(EmailOutbox)
        .filter(EmailOutbox.status == EmailStatus.PENDING)
        .order_by(EmailOutbox.created_at.asc())
        .limit(limit)
        .all()
    )

    sent = failed = 0
    for email in pending:
        email.attempts += 1
        try:
            email.provider_message_id = await client.send(email.to_email, email.subject, email.body)
            email.status = EmailStatus.SENT
            email.sent_at = utcnow()
            email.error_message = None
            sent += 1
        except ExternalServiceError as e:
            email.error_message = e.message
            if email.attempts >= email.max_attempts:
                email.status = EmailStatus.FAILED
                failed += 1
            logger.warning(
                "Email send failed",
                extra={"email_id": str(email.id), "attempts": email.attempts, "error": e.message}
            )
        db.commit()

    result = {"success": True, "sent": sent, "failed": failed, "pending": len(pending) - sent - failed}
    audit_logger.log_job_run("email_dispatch", result)
    return result
