"""
Leave Service
=============

Leave applications. Each leave request is paired with a workflow request
routed supervisor (when the requester has one) then HR.
"""

from typing import List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from staffhub.core.enums import CANCELLABLE_REQUEST_STATUSES, LeaveStatus, RequestEntityType
from staffhub.core.exceptions import AuthorizationError, NotFoundError
from staffhub.core.logging import audit_logger, get_logger
from staffhub.core.status_transitions import validate_transition
from staffhub.models.hr import LeaveRequest
from staffhub.models.request import Request
from staffhub.models.role_enum import Role, is_regional
from staffhub.models.user import Profile
from staffhub.schemas.hr import LeaveRequestCreate
from staffhub.services import request_workflow
from staffhub.services.request_workflow import HR_STEP, SUPERVISOR_STEP, StepSpec

logger = get_logger(__name__)

PROPERTY_LEAVE_ROLES = (Role.PROPERTY_HR, Role.PROPERTY_MANAGER)


def create_leave_request(db: Session, user: Profile, data: LeaveRequestCreate) -> LeaveRequest:
    leave = LeaveRequest(
        requester_id=user.id,
        property_id=user.property_id,
        department_id=user.department_id,
        leave_type=data.leave_type,
        start_date=data.start_date,
        end_date=data.end_date,
        reason=data.reason,
        status=LeaveStatus.PENDING,
    )
    db.add(leave)
    db.flush()

    steps = []
    if user.reporting_to is not None:
        steps.append(StepSpec(assignee_id=user.reporting_to, assignee_role=SUPERVISOR_STEP))
    steps.append(StepSpec(assignee_id=request_workflow.find_hr_assignee(db, user.property_id), assignee_role=HR_STEP))

    request = request_workflow.create_request(
        db,
        requester=user,
        entity_type=RequestEntityType.LEAVE_REQUEST,
        entity_id=leave.id,
        steps=steps,
        property_id=user.property_id,
        supervisor_id=user.reporting_to,
        metadata={
            "leave_type": data.leave_type.value,
            "start_date": data.start_date.isoformat(),
            "end_date": data.end_date.isoformat(),
            "reason": data.reason,
        },
    )
    leave.workflow_request_id = request.id
    db.commit()

    logger.info(
        "Leave request created",
        extra={"leave_id": str(leave.id), "request_no": request.request_no}
    )
    return leave


def list_my_leave(db: Session, user: Profile) -> List[LeaveRequest]:
    return (
        db.query(LeaveRequest)
        .filter(LeaveRequest.requester_id == user.id)
        .order_by(LeaveRequest.start_date.desc())
        .all()
    )


def _team_query(db: Session, user: Profile):
    query = db.query(LeaveRequest)
    if is_regional(user.role):
        return query
    if user.role in PROPERTY_LEAVE_ROLES:
        return query.filter(LeaveRequest.property_id == user.property_id)
    if user.role == Role.DEPARTMENT_HEAD and user.department_id is not None:
        return query.filter(LeaveRequest.department_id == user.department_id)
    return query.filter(LeaveRequest.requester_id == user.id)


def list_team_leave(db: Session, user: Profile, status: Optional[LeaveStatus] = None) -> List[LeaveRequest]:
    """
    Leave visible to the user's role:
    staff their own, department heads their department, property roles
    their property, regional roles everything.
    """
    query = _team_query(db, user)
    if status is not None:
        query = query.filter(LeaveRequest.status == status)
    return query.order_by(LeaveRequest.start_date.desc()).all()


def get_leave_request(db: Session, user: Profile, leave_id: UUID) -> LeaveRequest:
    leave = _team_query(db, user).filter(LeaveRequest.id == leave_id).first()
    if leave is None:
        exists = db.query(LeaveRequest.id).filter(LeaveRequest.id == leave_id).first()
        if exists is None:
            raise NotFoundError("Leave request", str(leave_id))
        raise AuthorizationError("You do not have access to this leave request")
    return leave


def cancel_leave_request(db: Session, user: Profile, leave_id: UUID, reason: Optional[str] = None) -> LeaveRequest:
    """
    Cancel a pending or approved leave request.

    A workflow request still in review or returned for correction is
    cancelled together with it.
    """
    leave = db.get(LeaveRequest, leave_id)
    if leave is None:
        raise NotFoundError("Leave request", str(leave_id))
    if leave.requester_id != user.id and user.role not in (Role.REGIONAL_ADMIN, Role.REGIONAL_HR):
        raise AuthorizationError("Not authorized to cancel this leave request.")

    validate_transition("leave_request", leave.status, LeaveStatus.CANCELLED)

    request = db.get(Request, leave.workflow_request_id) if leave.workflow_request_id else None
    if request is not None and request.status in CANCELLABLE_REQUEST_STATUSES:
        request_workflow.cancel_request(db, user, request.id, reason)
    else:
        leave.status = LeaveStatus.CANCELLED
        db.commit()

    audit_logger.log_entity_changed(
        actor_id=str(user.id),
        entity_type="leave_request",
        entity_id=str(leave.id),
        action="cancel",
    )
    return leave
