"""
HR Service
==========

Promotion and transfer requests. Both create the HR entity plus a workflow
request that starts directly in HR review with a single pending step.
"""

from datetime import date
from typing import List, Optional

from sqlalchemy.orm import Session

from staffhub.core.enums import HRChangeStatus, RequestEntityType
from staffhub.core.exceptions import NotFoundError, UserNotFoundError, ValidationError
from staffhub.core.logging import audit_logger, get_logger
from staffhub.core.tenant.tenant_query import validate_tenant_access
from staffhub.models.hr import Promotion, Transfer
from staffhub.models.organization import Department, Property
from staffhub.models.request import Request
from staffhub.models.role_enum import is_regional
from staffhub.models.user import Profile
from staffhub.schemas.hr import PromotionCreate, TransferCreate
from staffhub.services import request_workflow
from staffhub.services.hr_changes import process_due_changes
from staffhub.services.request_workflow import HR_STEP, StepSpec

logger = get_logger(__name__)


def _get_employee(db: Session, actor: Profile, employee_id) -> Profile:
    employee = db.get(Profile, employee_id)
    if employee is None:
        raise UserNotFoundError(str(employee_id))
    validate_tenant_access(actor, employee.property_id, resource="profiles")
    return employee


def _check_department(db: Session, department_id, property_id) -> None:
    if department_id is None:
        return
    department = db.get(Department, department_id)
    if department is None:
        raise NotFoundError("Department", str(department_id))
    if department.property_id != property_id:
        raise ValidationError(
            "Department does not belong to the target property",
            details={"department_id": str(department_id)},
        )


def create_promotion(db: Session, actor: Profile, data: PromotionCreate) -> Request:
    """
    Record a promotion and route it to regional HR for approval.

    Returns:
        The workflow request
    """
    employee = _get_employee(db, actor, data.employee_id)
    _check_department(db, data.new_department_id, employee.property_id)

    promotion = Promotion(
        employee_id=employee.id,
        promoted_by=actor.id,
        old_role=employee.role,
        new_role=data.new_role,
        old_job_title=employee.job_title,
        new_job_title=data.new_job_title,
        old_department_id=employee.department_id,
        new_department_id=data.new_department_id,
        effective_date=data.effective_date,
        notes=data.notes,
    )
    db.add(promotion)
    db.flush()

    assignee = request_workflow.first_regional_hr(db)
    request = request_workflow.create_request(
        db,
        requester=actor,
        entity_type=RequestEntityType.PROMOTION,
        entity_id=promotion.id,
        steps=[StepSpec(assignee_id=assignee, assignee_role="regional_hr")],
        property_id=employee.property_id,
        metadata={
            "employee_name": employee.full_name,
            "new_role": data.new_role.value,
            "effective_date": data.effective_date.isoformat(),
        },
    )
    db.commit()

    audit_logger.log_entity_changed(
        actor_id=str(actor.id),
        entity_type="promotion",
        entity_id=str(promotion.id),
        action="create",
        changes={"new_role": data.new_role.value},
    )
    return request


def create_transfer(db: Session, actor: Profile, data: TransferCreate) -> Request:
    """
    Record a transfer and route it to the target property's HR, falling back
    to regional HR.

    Returns:
        The workflow request
    """
    employee = _get_employee(db, actor, data.employee_id)
    target = db.get(Property, data.to_property_id)
    if target is None or not target.is_active:
        raise NotFoundError("Property", str(data.to_property_id))
    if target.id == employee.property_id and data.to_department_id == employee.department_id:
        raise ValidationError("Employee is already placed there")
    _check_department(db, data.to_department_id, target.id)

    transfer = Transfer(
        employee_id=employee.id,
        requested_by=actor.id,
        from_property_id=employee.property_id,
        to_property_id=target.id,
        from_department_id=employee.department_id,
        to_department_id=data.to_department_id,
        effective_date=data.effective_date,
        notes=data.notes,
    )
    db.add(transfer)
    db.flush()

    assignee = request_workflow.find_hr_assignee(db, target.id)
    request = request_workflow.create_request(
        db,
        requester=actor,
        entity_type=RequestEntityType.TRANSFER,
        entity_id=transfer.id,
        steps=[StepSpec(assignee_id=assignee, assignee_role=HR_STEP)],
        property_id=employee.property_id,
        metadata={
            "employee_name": employee.full_name,
            "target_property": target.name,
            "effective_date": data.effective_date.isoformat(),
        },
    )
    db.commit()

    audit_logger.log_entity_changed(
        actor_id=str(actor.id),
        entity_type="transfer",
        entity_id=str(transfer.id),
        action="create",
        changes={"to_property_id": str(target.id)},
    )
    return request


def list_promotions(db: Session, actor: Profile, status: Optional[HRChangeStatus] = None) -> List[Promotion]:
    query = db.query(Promotion)
    if not is_regional(actor.role):
        query = query.join(Profile, Profile.id == Promotion.employee_id).filter(
            Profile.property_id == actor.property_id
        )
    if status is not None:
        query = query.filter(Promotion.status == status)
    return query.order_by(Promotion.created_at.desc()).all()


def list_transfers(db: Session, actor: Profile, status: Optional[HRChangeStatus] = None) -> List[Transfer]:
    query = db.query(Transfer)
    if not is_regional(actor.role):
        query = query.filter(
            (Transfer.from_property_id == actor.property_id) | (Transfer.to_property_id == actor.property_id)
        )
    if status is not None:
        query = query.filter(Transfer.status == status)
    return query.order_by(Transfer.created_at.desc()).all()


def process_due(db: Session, today: Optional[date] = None) -> dict:
    result = process_due_changes(db, today)
    db.commit()
    return result
