"""
Training Routes
===============

Training modules, assignments, progress and certificates.

Modules are created and assigned by DEPARTMENT_HEAD and above. Any staff
member can start and complete a module visible to them.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from staffhub.core.dependencies.auth import get_current_user
from staffhub.core.dependencies.rbac import require_role_or_higher
from staffhub.db.session import get_db
from staffhub.models.role_enum import Role
from staffhub.models.user import Profile
from staffhub.schemas import (
    ErrorResponse,
    TrainingAssignRequest,
    TrainingCompleteRequest,
    TrainingModuleCreate,
    TrainingModuleUpdate,
)
from staffhub.services import training_service

require_trainer = require_role_or_higher(Role.DEPARTMENT_HEAD)

router = APIRouter(
    prefix="/training",
    tags=["Training"],
    responses={
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Insufficient permissions"},
    },
)


# =====================================================
# MODULES
# =====================================================

@router.get("/modules", summary="List Training Modules")
def list_modules(
    include_inactive: bool = Query(False),
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    modules = training_service.list_modules(db, current_user, include_inactive)
    return {"modules": [m.to_dict() for m in modules], "total": len(modules)}


@router.post("/modules", status_code=status.HTTP_201_CREATED, summary="Create Training Module")
def create_module(
    data: TrainingModuleCreate,
    current_user: Profile = Depends(require_trainer),
    db: Session = Depends(get_db),
) -> dict:
    return training_service.create_module(db, current_user, data).to_dict()


@router.get(
    "/modules/{module_id}",
    summary="Get Training Module",
    responses={404: {"model": ErrorResponse, "description": "Module not found"}},
)
def get_module(
    module_id: UUID,
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    return training_service.get_module(db, current_user, module_id).to_dict()


@router.patch("/modules/{module_id}", summary="Update Training Module")
def update_module(
    module_id: UUID,
    data: TrainingModuleUpdate,
    current_user: Profile = Depends(require_trainer),
    db: Session = Depends(get_db),
) -> dict:
    return training_service.update_module(db, current_user, module_id, data).to_dict()


@router.post(
    "/modules/{module_id}/assign",
    status_code=status.HTTP_201_CREATED,
    summary="Assign Training",
    description="""
    Assign a module to a user, department, property or everyone in scope.

    Users with an open assignment for the module are skipped. Each new
    assignee receives a TRAINING_ASSIGNED notification.
    """,
)
def assign_module(
    module_id: UUID,
    data: TrainingAssignRequest,
    current_user: Profile = Depends(require_trainer),
    db: Session = Depends(get_db),
) -> dict:
    assignments = training_service.assign_module(db, current_user, module_id, data)
    return {"assignments": [a.to_dict() for a in assignments], "assigned": len(assignments)}


# =====================================================
# PROGRESS
# =====================================================

@router.get("/assignments/mine", summary="My Assignments")
def my_assignments(
    include_completed: bool = Query(True),
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    assignments = training_service.list_my_assignments(db, current_user, include_completed)
    return {"assignments": [a.to_dict() for a in assignments], "total": len(assignments)}


@router.post("/modules/{module_id}/start", summary="Start Module")
def start_module(
    module_id: UUID,
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    return training_service.start_module(db, current_user, module_id).to_dict()


@router.post(
    "/modules/{module_id}/complete",
    summary="Complete Module",
    description="Submit a quiz score. A passing score completes the module and issues a certificate.",
    responses={422: {"model": ErrorResponse, "description": "Module not started or already completed"}},
)
def complete_module(
    module_id: UUID,
    body: TrainingCompleteRequest,
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    return training_service.complete_module(db, current_user, module_id, body.quiz_score)


@router.get("/certificates/mine", summary="My Certificates")
def my_certificates(
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    certificates = training_service.list_my_certificates(db, current_user)
    return {"certificates": [c.to_dict() for c in certificates], "total": len(certificates)}
