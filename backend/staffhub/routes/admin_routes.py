"""
Admin Routes Module
===================

Administrative endpoints for properties, departments and staff accounts.

Features:
- Property management (create/deactivate: regional roles only)
- Department management
- Staff account management, unlock and reporting lines
- Admin statistics

Security:
- Writes require PROPERTY_MANAGER or higher
- Reads are scoped to the caller's property unless the role is regional
- All account changes are audit logged
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Request, Query, status
from sqlalchemy.orm import Session

from staffhub.db.session import get_db
from staffhub.models.user import Profile
from staffhub.models.role_enum import Role
from staffhub.core.dependencies.auth import get_current_user
from staffhub.core.dependencies.rbac import require_permission, require_role_or_higher
from staffhub.core.logging import get_logger
from staffhub.services import admin_service
from staffhub.schemas import (
    DepartmentCreate,
    DepartmentUpdate,
    ErrorResponse,
    PropertyCreate,
    PropertyUpdate,
    ReportingLineUpdate,
    UserCreate,
    UserListResponse,
    UserResponse,
    UserUpdate,
)

# Initialize logger
logger = get_logger(__name__)

require_admin = require_role_or_higher(Role.PROPERTY_MANAGER)


# =====================================
# Router Setup
# =====================================

router = APIRouter(
    prefix="/admin",
    tags=["Admin"],
    responses={
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Insufficient permissions"},
        500: {"model": ErrorResponse, "description": "Internal server error"},
    },
)


# =====================================
# Dashboard Endpoint
# =====================================

@router.get(
    "/dashboard",
    summary="Admin Dashboard",
    description="Property, department and account counts for the caller's scope.",
)
def admin_dashboard(
    request: Request,
    current_user: Profile = Depends(require_admin),
    db: Session = Depends(get_db),
) -> dict:
    """
    Get admin dashboard statistics.

    Args:
        request: FastAPI request
        current_user: Current authenticated profile (PROPERTY_MANAGER or higher)
        db: Database session

    Returns:
        Dashboard statistics
    """
    statistics = admin_service.admin_dashboard(db, current_user)

    logger.info(
        "Admin dashboard accessed",
        extra={
            "user_id": str(current_user.id),
            "ip_address": request.client.host if request.client else "unknown",
        }
    )

    return {"statistics": statistics}


# =====================================
# Property Endpoints
# =====================================

@router.get(
    "/properties",
    summary="List Properties",
    description="Regional roles see every property; everyone else sees their own.",
)
def list_properties(
    include_inactive: bool = Query(False),
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    properties = admin_service.list_properties(db, current_user, include_inactive)
    return {"properties": [p.to_dict() for p in properties], "total": len(properties)}


@router.post(
    "/properties",
    status_code=status.HTTP_201_CREATED,
    summary="Create Property",
    responses={409: {"model": ErrorResponse, "description": "Property name already in use"}},
)
def create_property(
    data: PropertyCreate,
    current_user: Profile = Depends(require_admin),
    db: Session = Depends(get_db),
) -> dict:
    return admin_service.create_property(db, current_user, data).to_dict()


@router.get(
    "/properties/{property_id}",
    summary="Get Property",
    responses={404: {"model": ErrorResponse, "description": "Property not found"}},
)
def get_property(
    property_id: UUID,
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    return admin_service.get_property(db, current_user, property_id).to_dict()


@router.patch(
    "/properties/{property_id}",
    summary="Update Property",
)
def update_property(
    property_id: UUID,
    data: PropertyUpdate,
    current_user: Profile = Depends(require_admin),
    db: Session = Depends(get_db),
) -> dict:
    return admin_service.update_property(db, current_user, property_id, data).to_dict()


@router.delete(
    "/properties/{property_id}",
    summary="Deactivate Property",
    description="Properties are never deleted; this marks the property inactive.",
)
def deactivate_property(
    property_id: UUID,
    current_user: Profile = Depends(require_admin),
    db: Session = Depends(get_db),
) -> dict:
    return admin_service.deactivate_property(db, current_user, property_id).to_dict()


# =====================================
# Department Endpoints
# =====================================

@router.get(
    "/departments",
    summary="List Departments",
)
def list_departments(
    property_id: Optional[UUID] = Query(None),
    include_inactive: bool = Query(False),
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    departments = admin_service.list_departments(db, current_user, property_id, include_inactive)
    return {"departments": [d.to_dict() for d in departments], "total": len(departments)}


@router.post(
    "/departments",
    status_code=status.HTTP_201_CREATED,
    summary="Create Department",
)
def create_department(
    data: DepartmentCreate,
    current_user: Profile = Depends(require_admin),
    db: Session = Depends(get_db),
) -> dict:
    return admin_service.create_department(db, current_user, data).to_dict()


@router.patch(
    "/departments/{department_id}",
    summary="Update Department",
)
def update_department(
    department_id: UUID,
    data: DepartmentUpdate,
    current_user: Profile = Depends(require_admin),
    db: Session = Depends(get_db),
) -> dict:
    return admin_service.update_department(db, current_user, department_id, data).to_dict()


@router.delete(
    "/departments/{department_id}",
    summary="Deactivate Department",
)
def deactivate_department(
    department_id: UUID,
    current_user: Profile = Depends(require_admin),
    db: Session = Depends(get_db),
) -> dict:
    return admin_service.deactivate_department(db, current_user, department_id).to_dict()


# =====================================
# User Management Endpoints
# =====================================

@router.get(
    "/users",
    response_model=UserListResponse,
    summary="List Staff",
    description="Paginated staff list, filtered by role, status, department or a name/email search.",
)
def list_users(
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(20, ge=1, le=100, description="Items per page"),
    role: Optional[Role] = Query(None, description="Filter by role"),
    is_active: Optional[bool] = Query(None, description="Filter by active status"),
    department_id: Optional[UUID] = Query(None),
    search: Optional[str] = Query(None, min_length=1, max_length=100),
    current_user: Profile = Depends(require_permission("staff", "read")),
    db: Session = Depends(get_db),
) -> dict:
    """
    List staff accounts visible to the caller.

    Returns:
        Paginated list of profiles
    """
    result = admin_service.list_users(
        db,
        current_user,
        page=page,
        page_size=page_size,
        role=role,
        is_active=is_active,
        department_id=department_id,
        search=search,
    )
    result["users"] = [UserResponse.model_validate(u) for u in result["users"]]
    return result


@router.post(
    "/users",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create Staff Account",
    description="Create an account and queue the welcome email. Roles above the caller's own cannot be granted.",
    responses={409: {"model": ErrorResponse, "description": "Email already registered"}},
)
def create_user(
    data: UserCreate,
    current_user: Profile = Depends(require_admin),
    db: Session = Depends(get_db),
) -> Profile:
    return admin_service.create_user(db, current_user, data)


@router.get(
    "/users/{user_id}",
    response_model=UserResponse,
    summary="Get Staff Account",
    responses={404: {"model": ErrorResponse, "description": "User not found"}},
)
def get_user(
    user_id: UUID,
    current_user: Profile = Depends(require_permission("staff", "read")),
    db: Session = Depends(get_db),
) -> Profile:
    return admin_service.get_user(db, current_user, user_id)


@router.patch(
    "/users/{user_id}",
    response_model=UserResponse,
    summary="Update Staff Account",
    description="""
    Update profile fields, role, placement or active status.

    Changing the role or deactivating the account invalidates the
    profile's existing tokens.
    """,
)
def update_user(
    user_id: UUID,
    data: UserUpdate,
    current_user: Profile = Depends(require_admin),
    db: Session = Depends(get_db),
) -> Profile:
    return admin_service.update_user(db, current_user, user_id, data)


@router.post(
    "/users/{user_id}/unlock",
    summary="Unlock Account",
    description="Clear the lockout and failed login counter.",
)
def unlock_user(
    user_id: UUID,
    current_user: Profile = Depends(require_admin),
    db: Session = Depends(get_db),
) -> dict:
    return admin_service.unlock_user(db, current_user, user_id)


@router.put(
    "/users/{user_id}/reporting-line",
    response_model=UserResponse,
    summary="Set Reporting Line",
    description="Set or clear the manager. Self-reports and cycles are rejected.",
    responses={422: {"model": ErrorResponse, "description": "Invalid reporting line"}},
)
def set_reporting_line(
    user_id: UUID,
    data: ReportingLineUpdate,
    current_user: Profile = Depends(require_admin),
    db: Session = Depends(get_db),
) -> Profile:
    return admin_service.set_reporting_line(db, current_user, user_id, data.reporting_to)
