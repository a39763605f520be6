"""
Message Routes
==============

Direct messages between staff and broadcasts from property managers and
regional roles.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from staffhub.core.dependencies.auth import get_current_user
from staffhub.db.session import get_db
from staffhub.models.user import Profile
from staffhub.schemas import ErrorResponse, MessageCreate, MessageReply
from staffhub.services import message_service

router = APIRouter(
    prefix="/messages",
    tags=["Messages"],
    responses={401: {"model": ErrorResponse, "description": "Not authenticated"}},
)


@router.get("/inbox", summary="Inbox")
def inbox(
    include_archived: bool = Query(False),
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    messages = message_service.list_inbox(db, current_user, include_archived)
    return {"messages": [m.to_dict() for m in messages], "total": len(messages)}


@router.get("/sent", summary="Sent Messages")
def sent(
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    messages = message_service.list_sent(db, current_user)
    return {"messages": [m.to_dict() for m in messages], "total": len(messages)}


@router.get("/unread-count", summary="Unread Message Count")
def unread_count(
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    return {"count": message_service.unread_message_count(db, current_user)}


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    summary="Send Message",
    description="""
    Send a direct message, or a broadcast (PROPERTY_MANAGER and above).

    A broadcast is stored once per recipient: the sender's property, or
    every active profile for regional roles.
    """,
    responses={403: {"model": ErrorResponse, "description": "Broadcast not allowed"}},
)
def send_message(
    data: MessageCreate,
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    messages = message_service.send_message(db, current_user, data)
    return {"messages": [m.to_dict() for m in messages], "sent": len(messages)}


@router.get("/{message_id}/thread", summary="Message Thread")
def thread(
    message_id: UUID,
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    return {"messages": [m.to_dict() for m in message_service.get_thread(db, current_user, message_id)]}


@router.post("/{message_id}/reply", status_code=status.HTTP_201_CREATED, summary="Reply")
def reply(
    message_id: UUID,
    data: MessageReply,
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    return message_service.reply_to_message(db, current_user, message_id, data).to_dict()


@router.post("/{message_id}/read", summary="Mark Message Read")
def mark_read(
    message_id: UUID,
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    return message_service.mark_message_read(db, current_user, message_id).to_dict()


@router.post("/{message_id}/archive", summary="Archive Message")
def archive(
    message_id: UUID,
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    return message_service.archive_message(db, current_user, message_id).to_dict()
