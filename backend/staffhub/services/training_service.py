"""
Training Service
================

Learning modules, assignments to users / departments / properties,
progress tracking and certificate issuance.
"""

import secrets
import string
from datetime import timedelta
from typing import List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from staffhub.core.enums import AssignmentTarget, NotificationType, TrainingStatus
from staffhub.core.exceptions import NotFoundError, ValidationError
from staffhub.core.logging import audit_logger, get_logger
from staffhub.core.tenant.tenant_query import TenantQuery, tenant_query, validate_tenant_access
from staffhub.db.base import as_utc, utcnow
from staffhub.models.organization import Department, Property
from staffhub.models.role_enum import is_regional
from staffhub.models.training import (
    TrainingAssignment,
    TrainingCertificate,
    TrainingModule,
    TrainingProgress,
)
from staffhub.models.user import Profile
from staffhub.schemas.training import TrainingAssignRequest, TrainingModuleCreate, TrainingModuleUpdate
from staffhub.services.notification_service import notify_users

logger = get_logger(__name__)

CERTIFICATE_ALPHABET = string.ascii_uppercase + string.digits


def generate_certificate_no() -> str:
    """CERT-<yyyymmdd>-<6 random chars>."""
    suffix = "".join(secrets.choice(CERTIFICATE_ALPHABET) for _ in range(6))
    return f"CERT-{utcnow():%Y%m%d}-{suffix}"


# ==========================
# Modules
# ==========================

def list_modules(db: Session, user: Profile, include_inactive: bool = False) -> List[TrainingModule]:
    query = tenant_query(db, TrainingModule, user, include_global=True)
    if not include_inactive:
        query = query.filter(TrainingModule.is_active.is_(True))
    return query.order_by(TrainingModule.title.asc()).all()


def get_module(db: Session, user: Profile, module_id: UUID) -> TrainingModule:
    module = TenantQuery(db, TrainingModule, user, include_global=True).get_by_id(module_id)
    if module is None:
        raise NotFoundError("Training module", str(module_id))
    return module


def create_module(db: Session, user: Profile, data: TrainingModuleCreate) -> TrainingModule:
    property_id = data.property_id
    if property_id is None and not is_regional(user.role):
        property_id = user.property_id
    if property_id is not None:
        validate_tenant_access(user, property_id, resource="training_modules")

    module = TrainingModule(**data.model_dump(exclude={"property_id"}), property_id=property_id, created_by=user.id)
    db.add(module)
    db.commit()

    logger.info("Training module created", extra={"module_id": str(module.id), "title": module.title})
    return module


def update_module(db: Session, user: Profile, module_id: UUID, data: TrainingModuleUpdate) -> TrainingModule:
    module = get_module(db, user, module_id)
    if module.property_id is None and not is_regional(user.role):
        raise ValidationError("Only regional roles can change modules shared across properties")

    changes = data.model_dump(exclude_unset=True)
    for field, value in changes.items():
        setattr(module, field, value)
    db.commit()

    audit_logger.log_entity_changed(
        actor_id=str(user.id),
        entity_type="training_module",
        entity_id=str(module.id),
        action="update",
        changes={k: str(v) for k, v in changes.items()},
    )
    return module


# ==========================
# Assignments
# ==========================

def _resolve_targets(db: Session, user: Profile, module: TrainingModule, data: TrainingAssignRequest) -> List[Profile]:
    query = db.query(Profile).filter(Profile.is_active.is_(True))

    if data.target_type == AssignmentTarget.USER:
        target = db.get(Profile, data.target_id)
        if target is None or not target.is_active:
            raise NotFoundError("User", str(data.target_id))
        validate_tenant_access(user, target.property_id, resource="training_assignments")
        return [target]

    if data.target_type == AssignmentTarget.DEPARTMENT:
        department = db.get(Department, data.target_id)
        if department is None:
            raise NotFoundError("Department", str(data.target_id))
        validate_tenant_access(user, department.property_id, resource="training_assignments")
        return query.filter(Profile.department_id == department.id).all()

    if data.target_type == AssignmentTarget.PROPERTY:
        hotel = db.get(Property, data.target_id)
        if hotel is None:
            raise NotFoundError("Property", str(data.target_id))
        validate_tenant_access(user, hotel.id, resource="training_assignments")
        return query.filter(Profile.property_id == hotel.id).all()

    # ALL: every active user in the caller's scope
    if not is_regional(user.role):
        query = query.filter(Profile.property_id == user.property_id)
    if module.property_id is not None:
        query = query.filter(Profile.property_id == module.property_id)
    return query.all()


def assign_module(db: Session, user: Profile, module_id: UUID, data: TrainingAssignRequest) -> List[TrainingAssignment]:
    """
    Assign a module to the resolved target users.

    Users that already hold an open assignment for the module are skipped.

    Returns:
        The newly created assignments
    """
    module = get_module(db, user, module_id)
    if not module.is_active:
        raise ValidationError("Cannot assign an inactive module")

    targets = _resolve_targets(db, user, module, data)
    open_holders = {
        row.assigned_to_user_id
        for row in db.query(TrainingAssignment.assigned_to_user_id).filter(
            TrainingAssignment.module_id == module.id,
            TrainingAssignment.completed_at.is_(None),
            TrainingAssignment.is_deleted.is_(False),
        ).all()
    }

    created = []
    for target in targets:
        if target.id in open_holders:
            continue
        assignment = TrainingAssignment(
            module_id=module.id,
            assigned_to_user_id=target.id,
            assigned_by_user_id=user.id,
            deadline=data.deadline,
        )
        db.add(assignment)
        created.append(assignment)
    db.flush()

    message = f"You have been assigned: {module.title}"
    if data.deadline is not None:
        message = f"{message} (due {data.deadline:%Y-%m-%d})"
    notify_users(
        db,
        [a.assigned_to_user_id for a in created],
        NotificationType.TRAINING_ASSIGNED,
        "New Training Assigned",
        message,
        link=f"/training/modules/{module.id}",
        entity_type="training_module",
        entity_id=module.id,
    )
    db.commit()

    logger.info(
        "Training assigned",
        extra={
            "module_id": str(module.id),
            "target_type": data.target_type.value,
            "assigned": len(created),
            "skipped": len(targets) - len(created),
        }
    )
    return created


def list_my_assignments(db: Session, user: Profile, include_completed: bool = True) -> List[TrainingAssignment]:
    query = db.query(TrainingAssignment).filter(
        TrainingAssignment.assigned_to_user_id == user.id,
        TrainingAssignment.is_deleted.is_(False),
    )
    if not include_completed:
        query = query.filter(TrainingAssignment.completed_at.is_(None))
    return query.order_by(TrainingAssignment.created_at.desc()).all()


def _open_assignment(db: Session, user: Profile, module_id: UUID) -> Optional[TrainingAssignment]:
    return (
        db.query(TrainingAssignment)
        .filter(
            TrainingAssignment.module_id == module_id,
            TrainingAssignment.assigned_to_user_id == user.id,
            TrainingAssignment.completed_at.is_(None),
            TrainingAssignment.is_deleted.is_(False),
        )
        .order_by(TrainingAssignment.created_at.desc())
        .first()
    )


def _get_progress(db: Session, user: Profile, module_id: UUID) -> Optional[TrainingProgress]:
    return (
        db.query(TrainingProgress)
        .filter(TrainingProgress.user_id == user.id, TrainingProgress.module_id == module_id)
        .first()
    )


# ==========================
# Progress
# ==========================

def _certificate_lapsed(db: Session, progress: TrainingProgress, now) -> bool:
    latest = (
        db.query(TrainingCertificate)
        .filter(TrainingCertificate.progress_id == progress.id)
        .order_by(TrainingCertificate.issued_at.desc())
        .first()
    )
    return latest is not None and latest.expires_at is not None and as_utc(latest.expires_at) <= now


def _reopen_if_due(db: Session, progress: TrainingProgress, assignment: Optional[TrainingAssignment]) -> None:
    """
    Completed progress reopens for a retake when the certificate has lapsed
    or the module was assigned again after completion.
    """
    if progress.status != TrainingStatus.COMPLETED:
        return
    if assignment is not None or _certificate_lapsed(db, progress, utcnow()):
        progress.status = TrainingStatus.EXPIRED


def start_module(db: Session, user: Profile, module_id: UUID) -> TrainingProgress:
    module = get_module(db, user, module_id)
    progress = _get_progress(db, user, module.id)
    assignment = _open_assignment(db, user, module.id)

    if progress is None:
        progress = TrainingProgress(user_id=user.id, module_id=module.id)
        db.add(progress)
    else:
        _reopen_if_due(db, progress, assignment)

    if progress.status in (TrainingStatus.NOT_STARTED, TrainingStatus.EXPIRED):
        progress.status = TrainingStatus.IN_PROGRESS
        progress.started_at = utcnow()
        progress.completed_at = None
        progress.quiz_score = None
        progress.progress_percent = 0
    if assignment is not None:
        progress.assignment_id = assignment.id

    db.commit()
    return progress


def complete_module(db: Session, user: Profile, module_id: UUID, quiz_score: int) -> dict:
    """
    Record a quiz score.

    A passing score completes the progress record, closes the open
    assignment and issues a certificate (with an expiry when the module has
    a validity period). A failing score keeps the module in progress.

    Returns:
        {passed, progress, certificate}
    """
    module = get_module(db, user, module_id)
    progress = _get_progress(db, user, module.id)
    if progress is None or progress.status == TrainingStatus.NOT_STARTED:
        raise ValidationError("Start the module before completing it")
    if progress.status == TrainingStatus.COMPLETED:
        raise ValidationError("Module already completed")

    progress.quiz_score = quiz_score
    passed = quiz_score >= module.passing_score
    certificate = None

    if passed:
        now = utcnow()
        progress.status = TrainingStatus.COMPLETED
        progress.progress_percent = 100
        progress.completed_at = now

        assignment = _open_assignment(db, user, module.id)
        if assignment is not None:
            assignment.completed_at = now
            progress.assignment_id = assignment.id

        expires_at = None
        if module.certificate_validity_days:
            expires_at = now + timedelta(days=module.certificate_validity_days)
        certificate = TrainingCertificate(
            progress_id=progress.id,
            user_id=user.id,
            module_id=module.id,
            certificate_no=generate_certificate_no(),
            issued_at=now,
            expires_at=expires_at,
        )
        db.add(certificate)

    db.commit()

    logger.info(
        "Training attempt recorded",
        extra={"module_id": str(module.id), "user_id": str(user.id), "score": quiz_score, "passed": passed}
    )
    return {
        "passed": passed,
        "progress": progress.to_dict(),
        "certificate": certificate.to_dict() if certificate else None,
    }


def list_my_certificates(db: Session, user: Profile) -> List[TrainingCertificate]:
    return (
        db.query(TrainingCertificate)
        .filter(TrainingCertificate.user_id == user.id)
        .order_by(TrainingCertificate.issued_at.desc())
        .all()
    )
