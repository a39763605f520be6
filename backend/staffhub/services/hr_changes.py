"""
HR Change Application
=====================

Applies approved promotions and transfers to the employee profile once
their effective date has arrived. Effective dates are compared against the
current UTC date.
"""

from datetime import date
from typing import Optional, Union

from sqlalchemy.orm import Session

from staffhub.core.enums import HRChangeStatus
from staffhub.core.logging import audit_logger, get_logger
from staffhub.db.base import utcnow
from staffhub.models.hr import Promotion, Transfer
from staffhub.models.user import Profile

logger = get_logger(__name__)


def apply_promotion(db: Session, promotion: Promotion) -> None:
    employee = db.get(Profile, promotion.employee_id)
    if employee is not None:
        if promotion.new_job_title:
            employee.job_title = promotion.new_job_title
        employee.role = promotion.new_role
        if promotion.new_department_id is not None:
            employee.department_id = promotion.new_department_id

    promotion.status = HRChangeStatus.COMPLETED
    audit_logger.log_hr_change_applied("promotion", str(promotion.id), str(promotion.employee_id))


def apply_transfer(db: Session, transfer: Transfer) -> None:
    employee = db.get(Profile, transfer.employee_id)
    if employee is not None:
        employee.property_id = transfer.to_property_id
        # Without a target department the employee lands unassigned
        employee.department_id = transfer.to_department_id

    transfer.status = HRChangeStatus.COMPLETED
    audit_logger.log_hr_change_applied("transfer", str(transfer.id), str(transfer.employee_id))


def apply_if_due(db: Session, change: Union[Promotion, Transfer], today: Optional[date] = None) -> bool:
    """
    Apply one approved change when its effective date has arrived.

    Returns:
        True when the change was applied
    """
    today = today or utcnow().date()
    if change.status != HRChangeStatus.APPROVED or change.effective_date > today:
        return False
    if isinstance(change, Promotion):
        apply_promotion(db, change)
    else:
        apply_transfer(db, change)
    return True


def process_due_changes(db: Session, today: Optional[date] = None) -> dict:
    """
    Apply every approved promotion and transfer effective on or before today.

    Adds changes to the session; the caller commits.

    Returns:
        Counts of applied promotions and transfers
    """
    today = today or utcnow().date()

    promotions = (
        db.query(Promotion)
        .filter(Promotion.status == HRChangeStatus.APPROVED, Promotion.effective_date <= today)
        .all()
    )
    for promotion in promotions:
        apply_promotion(db, promotion)

    transfers = (
        db.query(Transfer)
        .filter(Transfer.status == HRChangeStatus.APPROVED, Transfer.effective_date <= today)
        .all()
    )
    for transfer in transfers:
        apply_transfer(db, transfer)

    if promotions or transfers:
        logger.info(
            "Due HR changes applied",
            extra={"promotions": len(promotions), "transfers": len(transfers)}
        )

    return {"promotions_applied": len(promotions), "transfers_applied": len(transfers)}
