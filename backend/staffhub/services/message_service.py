"""
Message Service
===============

Direct messages between staff and property broadcasts.

A broadcast is stored once per recipient so read/archive state stays per
user; the broadcast rows share the sender, subject and body.
"""

from typing import List, Optional
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from staffhub.core.enums import MessageStatus, MessageType, NotificationType
from staffhub.core.exceptions import AuthorizationError, NotFoundError, UserNotFoundError, ValidationError
from staffhub.core.logging import get_logger
from staffhub.core.tenant.tenant_query import validate_tenant_access
from staffhub.db.base import utcnow
from staffhub.models.communication import Message
from staffhub.models.role_enum import Role, is_regional
from staffhub.models.user import Profile
from staffhub.schemas.communication import MessageCreate, MessageReply
from staffhub.services.notification_service import create_notification

logger = get_logger(__name__)

BROADCAST_ROLES = (Role.PROPERTY_MANAGER, Role.REGIONAL_HR, Role.REGIONAL_ADMIN)


def _notify_recipient(db: Session, sender: Profile, message: Message) -> None:
    create_notification(
        db,
        message.recipient_id,
        NotificationType.MESSAGE,
        f"New message from {sender.full_name or 'a colleague'}",
        message.subject or message.body[:100],
        link=f"/messages/{message.id}",
        entity_type="message",
        entity_id=message.id,
    )


def _send_direct(db: Session, sender: Profile, recipient_id: UUID, subject, body, parent_id=None) -> Message:
    if recipient_id == sender.id:
        raise ValidationError("You cannot send a message to yourself")
    recipient = db.get(Profile, recipient_id)
    if recipient is None or not recipient.is_active:
        raise UserNotFoundError(str(recipient_id))
    validate_tenant_access(sender, recipient.property_id, resource="messages")

    message = Message(
        sender_id=sender.id,
        recipient_id=recipient.id,
        property_id=sender.property_id,
        subject=subject,
        body=body,
        message_type=MessageType.DIRECT,
        parent_message_id=parent_id,
    )
    db.add(message)
    db.flush()
    _notify_recipient(db, sender, message)
    return message


def _send_broadcast(db: Session, sender: Profile, subject, body) -> List[Message]:
    if sender.role not in BROADCAST_ROLES:
        raise AuthorizationError("Only property managers and above can broadcast")

    query = db.query(Profile).filter(Profile.is_active.is_(True), Profile.id != sender.id)
    if not is_regional(sender.role):
        query = query.filter(Profile.property_id == sender.property_id)

    messages = []
    for recipient in query.all():
        message = Message(
            sender_id=sender.id,
            recipient_id=recipient.id,
            property_id=sender.property_id,
            subject=subject,
            body=body,
            message_type=MessageType.BROADCAST,
        )
        db.add(message)
        messages.append(message)
    db.flush()
    for message in messages:
        _notify_recipient(db, sender, message)
    return messages


def send_message(db: Session, sender: Profile, data: MessageCreate) -> List[Message]:
    """
    Send a direct message or a broadcast.

    Returns:
        The stored message rows (one for a direct message)
    """
    if data.message_type == MessageType.BROADCAST:
        messages = _send_broadcast(db, sender, data.subject, data.body)
    else:
        messages = [_send_direct(db, sender, data.recipient_id, data.subject, data.body)]
    db.commit()

    logger.info(
        "Message sent",
        extra={
            "sender_id": str(sender.id),
            "message_type": data.message_type.value,
            "recipients": len(messages),
        }
    )
    return messages


def _get_message(db: Session, user: Profile, message_id: UUID) -> Message:
    message = db.get(Message, message_id)
    if message is None:
        raise NotFoundError("Message", str(message_id))
    if user.id not in (message.sender_id, message.recipient_id):
        raise AuthorizationError("You do not have access to this message")
    return message


def reply_to_message(db: Session, user: Profile, message_id: UUID, data: MessageReply) -> Message:
    original = _get_message(db, user, message_id)
    other = original.sender_id if original.recipient_id == user.id else original.recipient_id
    if other is None:
        raise ValidationError("This message has no one to reply to")

    subject = original.subject or ""
    if subject and not subject.lower().startswith("re:"):
        subject = f"Re: {subject}"

    reply = _send_direct(db, user, other, subject or None, data.body, parent_id=original.id)
    db.commit()
    return reply


def list_inbox(db: Session, user: Profile, include_archived: bool = False) -> List[Message]:
    query = db.query(Message).filter(Message.recipient_id == user.id)
    if not include_archived:
        query = query.filter(Message.status != MessageStatus.ARCHIVED)
    return query.order_by(Message.created_at.desc()).all()


def list_sent(db: Session, user: Profile) -> List[Message]:
    return (
        db.query(Message)
        .filter(Message.sender_id == user.id)
        .order_by(Message.created_at.desc())
        .all()
    )


def mark_message_read(db: Session, user: Profile, message_id: UUID) -> Message:
    message = _get_message(db, user, message_id)
    if message.recipient_id != user.id:
        raise AuthorizationError("Only the recipient can mark a message as read")
    if message.status == MessageStatus.SENT:
        message.status = MessageStatus.READ
        message.read_at = utcnow()
        db.commit()
    return message


def archive_message(db: Session, user: Profile, message_id: UUID) -> Message:
    message = _get_message(db, user, message_id)
    if message.recipient_id != user.id:
        raise AuthorizationError("Only the recipient can archive a message")
    if message.read_at is None:
        message.read_at = utcnow()
    message.status = MessageStatus.ARCHIVED
    db.commit()
    return message


def unread_message_count(db: Session, user: Profile) -> int:
    return (
        db.query(func.count(Message.id))
        .filter(Message.recipient_id == user.id, Message.status == MessageStatus.SENT)
        .scalar()
    ) or 0


def get_thread(db: Session, user: Profile, message_id: UUID) -> List[Message]:
    """The message followed by its direct replies, oldest first."""
    message = _get_message(db, user, message_id)
    replies = (
        db.query(Message)
        .filter(Message.parent_message_id == message.id)
        .filter((Message.sender_id == user.id) | (Message.recipient_id == user.id))
        .order_by(Message.created_at.asc())
        .all()
    )
    return [message] + replies
