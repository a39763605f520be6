"""
Bulk Notification Batches
=========================

Large fan-outs (training assignments across a property, for example) are
queued as NotificationQueueItem rows and turned into notifications in
chunks, so one request never creates thousands of rows at once.
"""

from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from staffhub.core.config import settings
from staffhub.core.enums import BatchStatus, NotificationType, QueueItemStatus
from staffhub.core.exceptions import NotFoundError, ValidationError
from staffhub.core.logging import audit_logger, get_logger
from staffhub.db.base import utcnow
from staffhub.models.notification import NotificationBatch, NotificationQueueItem
from staffhub.schemas.jobs import NotificationBatchRequest
from staffhub.services.notification_service import create_notification

logger = get_logger(__name__)

DEFAULT_TITLE = "New Training Assigned"
DEFAULT_MESSAGE = "You have been assigned a new training module"


def _get_batch(db: Session, batch_id: Optional[UUID]) -> NotificationBatch:
    if batch_id is None:
        raise ValidationError("batch_id is required")
    batch = db.get(NotificationBatch, batch_id)
    if batch is None:
        raise NotFoundError("Notification batch", str(batch_id))
    return batch


def _pending_count(db: Session, batch_id: UUID) -> int:
    return db.query(func.count(NotificationQueueItem.id)).filter(
        NotificationQueueItem.batch_id == batch_id,
        NotificationQueueItem.status == QueueItemStatus.PENDING,
    ).scalar() or 0


def create_batch(
    db: Session,
    user_ids: List[UUID],
    notification_type: NotificationType,
    data: Dict[str, Any],
    job_type: str = "bulk_notification",
    metadata: Optional[Dict[str, Any]] = None,
    created_by: Optional[UUID] = None,
) -> NotificationBatch:
    """Queue one item per distinct user; the caller commits."""
    if not user_ids:
        raise ValidationError("user_ids is required")

    recipients = list(dict.fromkeys(user_ids))
    batch = NotificationBatch(
        job_type=job_type,
        total_count=len(recipients),
        meta=dict(metadata or {}),
        created_by=created_by,
    )
    db.add(batch)
    db.flush()

    db.add_all(
        NotificationQueueItem(
            batch_id=batch.id,
            user_id=user_id,
            notification_type=notification_type,
            notification_data=dict(data),
        )
        for user_id in recipients
    )
    db.flush()
    logger.info("Notification batch created", extra={"batch_id": str(batch.id), "total": len(recipients)})
    return batch


def process_batch(db: Session, batch: NotificationBatch, batch_size: int) -> int:
    """
    Turn up to batch_size pending items into notifications.

    Returns:
        Number of notifications created
    """
    now = utcnow()
    if batch.status == BatchStatus.PENDING:
        batch.status = BatchStatus.PROCESSING
        batch.started_at = now

    items = (
        db.query(NotificationQueueItem)
        .filter(
            NotificationQueueItem.batch_id == batch.id,
            NotificationQueueItem.status == QueueItemStatus.PENDING,
        )
        .order_by(NotificationQueueItem.created_at.asc())
        .limit(batch_size)
        .all()
    )

    sent = 0
    for item in items:
        item.status = QueueItemStatus.PROCESSING
        item.attempts += 1
        data = item.notification_data or {}
        try:
            create_notification(
                db,
                item.user_id,
                item.notification_type,
                data.get("title") or DEFAULT_TITLE,
                data.get("message") or DEFAULT_MESSAGE,
                link=data.get("link"),
                metadata={"batch_id": str(batch.id)},
            )
            item.status = QueueItemStatus.SENT
            item.processed_at = now
            batch.processed_count += 1
            sent += 1
        except Exception as e:
            logger.warning(
                "Queued notification failed",
                extra={"item_id": str(item.id), "attempts": item.attempts, "error": str(e)}
            )
            item.error_message = str(e)
            if item.attempts >= item.max_attempts:
                item.status = QueueItemStatus.FAILED
                batch.failed_count += 1
            else:
                item.status = QueueItemStatus.PENDING

    db.flush()
    if _pending_count(db, batch.id) == 0:
        batch.status = BatchStatus.COMPLETED
        batch.completed_at = utcnow()
    return sent


def batch_status(db: Session, batch: NotificationBatch) -> dict:
    status = batch.to_dict()
    status["pending_count"] = _pending_count(db, batch.id)
    return status


def run_notification_batches(db: Session, payload: NotificationBatchRequest) -> dict:
    """
    Dispatch a batch action.

    Raises:
        ValidationError: missing user_ids or batch_id
        NotFoundError: unknown batch
    """
    batch_size = payload.batch_size or settings.NOTIFICATION_BATCH_SIZE

    if payload.action == "create_batch":
        batch = create_batch(
            db,
            payload.user_ids,
            payload.notification_type,
            {"title": payload.title, "message": payload.message, "link": payload.link},
            job_type=payload.job_type,
            metadata=payload.metadata,
        )
        processed = process_batch(db, batch, batch_size)
        db.commit()
        result = {"success": True, "batch_id": str(batch.id), "total": batch.total_count, "processed": processed}

    elif payload.action == "process_batch":
        batch = _get_batch(db, payload.batch_id)
        processed = process_batch(db, batch, batch_size)
        db.commit()
        result = {"success": True, "batch_id": str(batch.id), "processed": processed, "status": batch.status.value}

    else:
        batch = _get_batch(db, payload.batch_id)
        return {"success": True, "batch": batch_status(db, batch)}

    audit_logger.log_job_run(f"notification_batches.{payload.action}", result)
    return result
