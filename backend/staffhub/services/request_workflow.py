"""
Request Workflow Service
========================

Generic approval chain shared by leave, promotion and transfer requests.

A request owns ordered steps. Exactly one step is pending while the request
is open; approving it activates the next waiting step or, when none is left,
approves the whole request. Every change appends a RequestEvent, notifies
the people involved, and on a terminal status synchronizes the linked
entity.

All functions add to the session and commit once per user action.
"""

from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, List, Optional, Sequence
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from staffhub.core.enums import (
    CANCELLABLE_REQUEST_STATUSES,
    CommentVisibility,
    HRChangeStatus,
    LeaveStatus,
    NotificationType,
    PENDING_REQUEST_STATUSES,
    RequestAction,
    RequestEntityType,
    RequestEventType,
    RequestStatus,
    StepStatus,
)
from staffhub.core.exceptions import AuthorizationError, NotFoundError, WorkflowError
from staffhub.core.logging import audit_logger, get_logger
from staffhub.core.tenant.tenant_query import tenant_query
from staffhub.db.base import utcnow
from staffhub.models.hr import LeaveRequest, Promotion, Transfer
from staffhub.models.organization import Property
from staffhub.models.request import Request, RequestComment, RequestEvent, RequestStep
from staffhub.models.role_enum import Role, is_regional
from staffhub.models.user import Profile
from staffhub.services import email_service
from staffhub.services.hr_changes import apply_if_due
from staffhub.services.notification_service import create_notification, notify_users

logger = get_logger(__name__)

SUPERVISOR_STEP = "supervisor"
HR_STEP = "hr"

STATUS_NOTIFICATION_TYPES = {
    RequestStatus.APPROVED: NotificationType.REQUEST_APPROVED,
    RequestStatus.REJECTED: NotificationType.REQUEST_REJECTED,
    RequestStatus.RETURNED_FOR_CORRECTION: NotificationType.REQUEST_RETURNED,
    RequestStatus.CLOSED: NotificationType.REQUEST_CLOSED,
}

STEP_ACTIONS = (
    RequestAction.APPROVE,
    RequestAction.REJECT,
    RequestAction.RETURN,
    RequestAction.FORWARD,
)


@dataclass
class StepSpec:
    """Approver slot used when creating a request."""

    assignee_id: Optional[UUID]
    assignee_role: str


def _readable(status: RequestStatus) -> str:
    return status.value.replace("_", " ")


def _link(request: Request) -> str:
    return f"/requests/{request.id}"


# ==========================
# Access Rules
# ==========================

def is_hr_for(user: Profile, request: Request) -> bool:
    """HR/admin reach: regional roles everywhere, property HR in its own property."""
    if is_regional(user.role):
        return True
    return user.role == Role.PROPERTY_HR and user.property_id is not None and user.property_id == request.property_id


def can_view_request(user: Profile, request: Request) -> bool:
    if request.requester_id == user.id:
        return True
    if is_hr_for(user, request):
        return True
    if request.current_assignee_id is not None and request.current_assignee_id == user.id:
        return True
    return request.supervisor_id is not None and request.supervisor_id == user.id


def _can_act(user: Profile, request: Request) -> bool:
    if request.current_assignee_id is not None and request.current_assignee_id == user.id:
        return True
    return is_hr_for(user, request)


def find_hr_assignee(db: Session, property_id: Optional[UUID]) -> Optional[UUID]:
    """First active property HR of the property, else the first regional HR."""
    if property_id is not None:
        hr_user = (
            db.query(Profile)
            .filter(
                Profile.property_id == property_id,
                Profile.role == Role.PROPERTY_HR,
                Profile.is_active.is_(True),
            )
            .order_by(Profile.created_at)
            .first()
        )
        if hr_user is not None:
            return hr_user.id

    return first_regional_hr(db)


def first_regional_hr(db: Session) -> Optional[UUID]:
    regional = (
        db.query(Profile)
        .filter(Profile.role == Role.REGIONAL_HR, Profile.is_active.is_(True))
        .order_by(Profile.created_at)
        .first()
    )
    return regional.id if regional else None


# ==========================
# Creation & Submission
# ==========================

def next_request_no(db: Session) -> int:
    current = db.query(func.max(Request.request_no)).scalar()
    return (current or 0) + 1


def _add_event(
    db: Session,
    request: Request,
    actor_id: Optional[UUID],
    event_type: RequestEventType,
    payload: Optional[Dict[str, Any]] = None,
) -> RequestEvent:
    event = RequestEvent(
        request_id=request.id,
        actor_id=actor_id,
        event_type=event_type,
        payload=dict(payload or {}),
    )
    db.add(event)
    return event


def create_request(
    db: Session,
    requester: Profile,
    entity_type: RequestEntityType,
    entity_id: Optional[UUID],
    steps: Sequence[StepSpec],
    property_id: Optional[UUID] = None,
    supervisor_id: Optional[UUID] = None,
    metadata: Optional[Dict[str, Any]] = None,
    submit: bool = True,
) -> Request:
    """
    Insert a request with its ordered steps.

    Steps start as waiting; submit=True activates the first one right away.
    The caller commits.
    """
    if not steps:
        raise WorkflowError("A request needs at least one approval step")

    request = Request(
        request_no=next_request_no(db),
        entity_type=entity_type,
        entity_id=entity_id,
        requester_id=requester.id,
        supervisor_id=supervisor_id,
        property_id=property_id,
        status=RequestStatus.DRAFT,
        meta=dict(metadata or {}),
    )
    for order, step in enumerate(steps, start=1):
        request.steps.append(
            RequestStep(
                step_order=order,
                assignee_id=step.assignee_id,
                assignee_role=step.assignee_role,
                status=StepStatus.WAITING,
                created_by=requester.id,
            )
        )
    db.add(request)
    db.flush()

    _add_event(db, request, requester.id, RequestEventType.CREATED, {"entity_type": entity_type.value})
    logger.info(
        "Request created",
        extra={"request_no": request.request_no, "entity_type": entity_type.value}
    )

    if submit:
        submit_request(db, request, requester)

    return request


def submit_request(db: Session, request: Request, actor: Profile) -> Request:
    """
    Move a draft or returned request into review.

    Every step is reset to waiting and the first one becomes pending. The
    request waits on the supervisor when that first step is a supervisor
    step, otherwise it goes straight to HR review.
    """
    if request.status not in (RequestStatus.DRAFT, RequestStatus.RETURNED_FOR_CORRECTION):
        raise WorkflowError(
            "Only draft or returned requests can be submitted",
            details={"status": request.status.value},
        )

    entity = _linked_entity(db, request)
    if entity is not None and entity.status in (LeaveStatus.CANCELLED, HRChangeStatus.CANCELLED):
        raise WorkflowError(
            "The linked record has been cancelled",
            details={"entity_type": request.entity_type.value, "entity_id": str(request.entity_id)},
        )

    ordered = sorted(request.steps, key=lambda step: step.step_order)
    for step in ordered:
        step.status = StepStatus.WAITING
        step.acted_at = None

    first = ordered[0]
    first.status = StepStatus.PENDING

    old_status = request.status
    request.status = (
        RequestStatus.PENDING_SUPERVISOR_APPROVAL
        if first.assignee_role == SUPERVISOR_STEP
        else RequestStatus.PENDING_HR_REVIEW
    )
    request.current_assignee_id = first.assignee_id
    request.submitted_at = utcnow()
    request.closed_at = None

    _add_event(db, request, actor.id, RequestEventType.SUBMITTED, {"assignee_id": _str(first.assignee_id)})

    requester = db.get(Profile, request.requester_id)
    requester_name = requester.full_name if requester and requester.full_name else "Unknown"
    if first.assignee_id is not None:
        create_notification(
            db,
            first.assignee_id,
            NotificationType.REQUEST_SUBMITTED,
            "New Request Submitted",
            f"Request #{request.request_no} from {requester_name} requires your approval",
            link=_link(request),
            entity_type="request",
            entity_id=request.id,
            metadata={"request_id": str(request.id), "entity_type": request.entity_type.value},
        )

    if old_status == RequestStatus.RETURNED_FOR_CORRECTION:
        _sync_entity(db, request)

    return request


def _str(value) -> Optional[str]:
    return str(value) if value else None


# ==========================
# Actions
# ==========================

def get_request(db: Session, request_id: UUID) -> Request:
    request = db.get(Request, request_id)
    if request is None:
        raise NotFoundError("Request", str(request_id))
    return request


def get_visible_request(db: Session, user: Profile, request_id: UUID) -> Request:
    request = get_request(db, request_id)
    if not can_view_request(user, request):
        raise AuthorizationError("You do not have access to this request")
    return request


def _set_status(db: Session, request: Request, new_status: RequestStatus) -> None:
    """Change status and notify the requester."""
    if request.status == new_status:
        return
    request.status = new_status

    notification_type = STATUS_NOTIFICATION_TYPES.get(new_status, NotificationType.REQUEST_APPROVED)
    create_notification(
        db,
        request.requester_id,
        notification_type,
        f"Request #{request.request_no} {_readable(new_status)}",
        f"Your request has been {_readable(new_status)}",
        link=_link(request),
        entity_type="request",
        entity_id=request.id,
        metadata={"request_id": str(request.id), "entity_type": request.entity_type.value},
    )

    if new_status in (RequestStatus.APPROVED, RequestStatus.REJECTED):
        requester = db.get(Profile, request.requester_id)
        if requester is not None:
            email_service.request_decision_email(db, requester.email, request.request_no, new_status.value)


def apply_action(
    db: Session,
    actor: Profile,
    request_id: UUID,
    action: RequestAction,
    comment: Optional[str] = None,
    forward_to: Optional[UUID] = None,
    visibility: CommentVisibility = CommentVisibility.ALL,
) -> Request:
    """
    Apply an approver action to the request's current step.

    Raises:
        NotFoundError: Unknown request or forward target
        AuthorizationError: Actor may not view or act on the request
        WorkflowError: No pending step, or missing forward target
    """
    request = get_visible_request(db, actor, request_id)
    old_status = request.status
    now = utcnow()

    if action == RequestAction.ADD_COMMENT:
        add_comment(db, actor, request, comment or "", visibility)
        db.commit()
        return request

    if not _can_act(actor, request):
        raise AuthorizationError("Only the current assignee or HR can act on this request")

    step = request.current_step
    if action in STEP_ACTIONS and step is None:
        raise WorkflowError(
            "Request has no pending step",
            details={"status": request.status.value},
        )

    if action == RequestAction.APPROVE:
        step.status = StepStatus.APPROVED
        step.acted_at = now
        step.comment = comment

        following = [
            s for s in request.steps
            if s.step_order > step.step_order and s.status == StepStatus.WAITING
        ]
        if following:
            next_step = min(following, key=lambda s: s.step_order)
            next_step.status = StepStatus.PENDING
            request.current_assignee_id = next_step.assignee_id
            _set_status(db, request, RequestStatus.PENDING_HR_REVIEW)
            if next_step.assignee_id is not None:
                create_notification(
                    db,
                    next_step.assignee_id,
                    NotificationType.APPROVAL_REQUIRED,
                    "New Request Submitted",
                    f"Request #{request.request_no} requires your approval",
                    link=_link(request),
                    entity_type="request",
                    entity_id=request.id,
                )
        else:
            request.current_assignee_id = None
            request.closed_at = now
            _set_status(db, request, RequestStatus.APPROVED)

        _add_event(db, request, actor.id, RequestEventType.APPROVED, {"step": step.step_order, "comment": comment})

    elif action == RequestAction.REJECT:
        step.status = StepStatus.REJECTED
        step.acted_at = now
        step.comment = comment
        request.current_assignee_id = None
        request.closed_at = now
        _set_status(db, request, RequestStatus.REJECTED)
        _add_event(db, request, actor.id, RequestEventType.REJECTED, {"step": step.step_order, "comment": comment})

    elif action == RequestAction.RETURN:
        step.status = StepStatus.RETURNED
        step.acted_at = now
        step.comment = comment
        request.current_assignee_id = request.requester_id
        _set_status(db, request, RequestStatus.RETURNED_FOR_CORRECTION)
        _add_event(db, request, actor.id, RequestEventType.RETURNED_FOR_CORRECTION, {"comment": comment})

    elif action == RequestAction.FORWARD:
        if forward_to is None:
            raise WorkflowError("forward_to is required when forwarding a request")
        target = db.get(Profile, forward_to)
        if target is None or not target.is_active:
            raise NotFoundError("User", str(forward_to))
        step.assignee_id = target.id
        step.comment = comment
        request.current_assignee_id = target.id
        create_notification(
            db,
            target.id,
            NotificationType.APPROVAL_REQUIRED,
            "Request Forwarded",
            f"Request #{request.request_no} was forwarded to you for approval",
            link=_link(request),
            entity_type="request",
            entity_id=request.id,
        )
        _add_event(db, request, actor.id, RequestEventType.FORWARDED, {"forward_to": str(target.id), "comment": comment})

    elif action == RequestAction.CLOSE:
        request.current_assignee_id = None
        request.closed_at = now
        _set_status(db, request, RequestStatus.CLOSED)
        _add_event(db, request, actor.id, RequestEventType.CLOSED, {"comment": comment})

    if request.status != old_status:
        _sync_entity(db, request)

    db.commit()

    audit_logger.log_request_action(
        actor_id=str(actor.id),
        request_id=str(request.id),
        action=action.value,
        old_status=old_status.value,
        new_status=request.status.value,
    )
    return request


def add_comment(
    db: Session,
    author: Profile,
    request: Request,
    text: str,
    visibility: CommentVisibility = CommentVisibility.ALL,
) -> RequestComment:
    """
    Add a comment and notify the current assignee and the requester.

    The commenter is never notified, and nobody is notified twice.
    """
    if not text.strip():
        raise WorkflowError("Comment cannot be empty")

    comment = RequestComment(
        request_id=request.id,
        author_id=author.id,
        comment=text.strip(),
        visibility=visibility,
    )
    db.add(comment)
    db.flush()

    _add_event(
        db,
        request,
        author.id,
        RequestEventType.COMMENT_ADDED,
        {"comment_id": str(comment.id), "visibility": visibility.value},
    )

    recipients = [request.current_assignee_id]
    # Internal comments stay among approvers
    if visibility == CommentVisibility.ALL:
        recipients.append(request.requester_id)
    notify_users(
        db,
        [user_id for user_id in recipients if user_id != author.id],
        NotificationType.COMMENT_ADDED,
        "New Comment Added",
        f"A new comment was added to request #{request.request_no}",
        link=_link(request),
        entity_type="request",
        entity_id=request.id,
        metadata={"request_id": str(request.id), "comment_id": str(comment.id)},
    )
    return comment


def resubmit_request(db: Session, actor: Profile, request_id: UUID) -> Request:
    """Requester resubmits a request returned for correction."""
    request = get_request(db, request_id)
    if request.requester_id != actor.id:
        raise AuthorizationError("Only the requester can resubmit this request")
    submit_request(db, request, actor)
    db.commit()
    return request


# ==========================
# Entity Synchronization
# ==========================

LEAVE_STATUS_BY_REQUEST = {
    RequestStatus.APPROVED: LeaveStatus.APPROVED,
    RequestStatus.REJECTED: LeaveStatus.REJECTED,
    RequestStatus.RETURNED_FOR_CORRECTION: LeaveStatus.PENDING,
    RequestStatus.PENDING_SUPERVISOR_APPROVAL: LeaveStatus.PENDING,
    RequestStatus.PENDING_HR_REVIEW: LeaveStatus.PENDING,
    RequestStatus.CANCELLED: LeaveStatus.CANCELLED,
}

HR_CHANGE_STATUS_BY_REQUEST = {
    RequestStatus.APPROVED: HRChangeStatus.APPROVED,
    RequestStatus.REJECTED: HRChangeStatus.REJECTED,
    RequestStatus.CLOSED: HRChangeStatus.REJECTED,
    RequestStatus.CANCELLED: HRChangeStatus.CANCELLED,
}


def _linked_entity(db: Session, request: Request):
    if request.entity_id is None:
        return None
    model = {
        RequestEntityType.LEAVE_REQUEST: LeaveRequest,
        RequestEntityType.PROMOTION: Promotion,
        RequestEntityType.TRANSFER: Transfer,
    }[request.entity_type]
    return db.get(model, request.entity_id)


def _sync_entity(db: Session, request: Request) -> None:
    """Mirror the request status onto the linked leave/promotion/transfer."""
    entity = _linked_entity(db, request)
    if entity is None:
        return

    if request.entity_type == RequestEntityType.LEAVE_REQUEST:
        new_status = LEAVE_STATUS_BY_REQUEST.get(request.status)
        if new_status is not None:
            entity.status = new_status
        return

    new_status = HR_CHANGE_STATUS_BY_REQUEST.get(request.status)
    if new_status is None or entity.status == HRChangeStatus.COMPLETED:
        return
    entity.status = new_status

    if new_status == HRChangeStatus.APPROVED:
        # Changes effective today or earlier apply immediately
        apply_if_due(db, entity)


# ==========================
# Cancel & Edit
# ==========================

def _may_manage(user: Profile, request: Request) -> bool:
    return request.requester_id == user.id or user.role in (Role.REGIONAL_ADMIN, Role.REGIONAL_HR)


def cancel_request(db: Session, actor: Profile, request_id: UUID, reason: Optional[str] = None) -> Request:
    """
    Cancel a pending or returned request and its linked entity.

    Raises:
        WorkflowError: Request is neither pending nor returned for correction
        AuthorizationError: Actor is neither the requester nor regional HR/admin
    """
    request = get_request(db, request_id)

    if request.status not in CANCELLABLE_REQUEST_STATUSES:
        raise WorkflowError("Cannot cancel a request that is not pending.")
    if not _may_manage(actor, request):
        raise AuthorizationError("Not authorized to cancel this request.")

    old_status = request.status
    request.status = RequestStatus.CANCELLED
    request.current_assignee_id = None
    request.closed_at = utcnow()
    for step in request.steps:
        if step.status in (StepStatus.PENDING, StepStatus.WAITING):
            step.status = StepStatus.SKIPPED

    entity = _linked_entity(db, request)
    if entity is not None:
        if request.entity_type == RequestEntityType.LEAVE_REQUEST:
            entity.status = LeaveStatus.CANCELLED
        else:
            entity.status = HRChangeStatus.CANCELLED
            entity.notes = f"{entity.notes or ''} [Cancelled: {reason or ''}]"

    _add_event(db, request, actor.id, RequestEventType.CANCELLED, {"reason": reason})
    db.commit()

    audit_logger.log_request_action(
        actor_id=str(actor.id),
        request_id=str(request.id),
        action="cancel",
        old_status=old_status.value,
        new_status=request.status.value,
    )
    return request


def update_request_details(db: Session, actor: Profile, request_id: UUID, updates: Dict[str, Any]) -> Request:
    """
    Merge updates into the request metadata and the linked entity.

    Promotions take effective_date and new_role; transfers take
    effective_date and to_property_id.
    """
    request = get_request(db, request_id)

    if not _may_manage(actor, request):
        raise AuthorizationError("Not authorized to edit this request.")
    if request.status not in PENDING_REQUEST_STATUSES:
        raise WorkflowError("Only pending requests can be edited.")

    entity = _linked_entity(db, request)
    merged = dict(request.meta or {})
    merged.update(updates)

    try:
        if request.entity_type == RequestEntityType.PROMOTION and entity is not None:
            if "effective_date" in updates:
                entity.effective_date = _parse_date(updates["effective_date"])
            if "new_role" in updates:
                entity.new_role = Role(updates["new_role"])

        elif request.entity_type == RequestEntityType.TRANSFER and entity is not None:
            if "effective_date" in updates:
                entity.effective_date = _parse_date(updates["effective_date"])
            if "to_property_id" in updates:
                target = db.get(Property, UUID(str(updates["to_property_id"])))
                if target is None:
                    raise NotFoundError("Property", str(updates["to_property_id"]))
                entity.to_property_id = target.id
                merged["target_property"] = target.name
    except ValueError as e:
        raise WorkflowError("Invalid request update", details={"error": str(e)}) from e

    request.meta = merged
    _add_event(db, request, actor.id, RequestEventType.UPDATED, {"fields": sorted(updates.keys())})
    db.commit()

    audit_logger.log_entity_changed(
        actor_id=str(actor.id),
        entity_type="request",
        entity_id=str(request.id),
        action="update",
        changes=updates,
    )
    return request


def _parse_date(value):
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value))


# ==========================
# Listing & Detail
# ==========================

def list_my_requests(db: Session, user: Profile) -> List[Request]:
    return (
        db.query(Request)
        .filter(Request.requester_id == user.id)
        .order_by(Request.created_at.desc())
        .all()
    )


def list_my_approvals(db: Session, user: Profile) -> List[Request]:
    return (
        db.query(Request)
        .filter(
            Request.current_assignee_id == user.id,
            Request.status.in_(PENDING_REQUEST_STATUSES),
        )
        .order_by(Request.submitted_at.asc())
        .all()
    )


def list_all_requests(
    db: Session,
    user: Profile,
    status: Optional[RequestStatus] = None,
    entity_type: Optional[RequestEntityType] = None,
) -> List[Request]:
    query = tenant_query(db, Request, user)
    if status is not None:
        query = query.filter(Request.status == status)
    if entity_type is not None:
        query = query.filter(Request.entity_type == entity_type)
    return query.order_by(Request.created_at.desc()).all()


def request_detail(user: Profile, request: Request) -> dict:
    """Request with steps, events and the comments this user may see."""
    comments = request.comments
    if request.requester_id == user.id and not is_hr_for(user, request):
        comments = [c for c in comments if c.visibility != CommentVisibility.INTERNAL]

    data = request.to_dict()
    data["current_step"] = request.current_step.to_dict() if request.current_step else None
    data["steps"] = [step.to_dict() for step in request.steps]
    data["comments"] = [comment.to_dict() for comment in comments]
    data["events"] = [event.to_dict() for event in request.events]
    return data
