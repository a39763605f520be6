"""
Role-Based Access Control (RBAC) Dependencies Module
=====================================================

FastAPI dependencies for role-based authorization.

Features:
- Strict role enforcement
- Hierarchical role checking
- Resource/action permission checks
- Audit logging for unauthorized access

Usage:
    @router.post("/hr/promotions")
    def promote(user: Profile = Depends(require_role_or_higher(Role.PROPERTY_HR))):
        ...
"""

from typing import Callable

from fastapi import Depends, HTTPException, status, Request

from staffhub.models.user import Profile
from staffhub.models.role_enum import Role
from staffhub.core.dependencies.auth import get_current_user
from staffhub.core.logging import get_logger, security_logger
from staffhub.core.permissions import has_permission

# Initialize logger
logger = get_logger(__name__)


# =====================================
# Role Hierarchy
# =====================================

# Higher index = more permissions
ROLE_HIERARCHY: list[Role] = [
    Role.STAFF,
    Role.DEPARTMENT_HEAD,
    Role.PROPERTY_HR,
    Role.PROPERTY_MANAGER,
    Role.REGIONAL_HR,
    Role.REGIONAL_ADMIN,
]


def get_role_level(role: Role) -> int:
    """
    Get the hierarchy level for a role (-1 for unknown roles).
    """
    try:
        return ROLE_HIERARCHY.index(role)
    except ValueError:
        return -1


def has_role_or_higher(user_role: Role, required_role: Role) -> bool:
    """
    Check if user has the required role or higher.
    """
    return get_role_level(user_role) >= get_role_level(required_role)


def _deny(request: Request, current_user: Profile, log_message: str, **fields) -> HTTPException:
    security_logger.log_unauthorized_access(
        user_id=str(current_user.id),
        resource=request.url.path,
        action=request.method,
    )
    logger.warning(
        log_message,
        extra={
            "user_role": current_user.role.value,
            "path": request.url.path,
            **fields,
        }
    )
    return HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail="Insufficient permissions for this action",
    )


# =====================================
# Role Requirement Dependencies
# =====================================

def require_role(*allowed_roles: Role) -> Callable:
    """
    Create a dependency that requires one of the given roles exactly.

    Usage:
        @router.get("/hr-only")
        def hr_route(user: Profile = Depends(require_role(Role.PROPERTY_HR, Role.REGIONAL_HR))):
            ...
    """
    async def role_checker(
        request: Request,
        current_user: Profile = Depends(get_current_user),
    ) -> Profile:
        if current_user.role not in allowed_roles:
            raise _deny(
                request,
                current_user,
                "Role-based access denied",
                required_roles=[r.value for r in allowed_roles],
            )
        return current_user

    return role_checker


def require_role_or_higher(minimum_role: Role) -> Callable:
    """
    Create a dependency that requires a minimum role level.

    Usage:
        @router.post("/announcements")
        def create(user: Profile = Depends(require_role_or_higher(Role.DEPARTMENT_HEAD))):
            ...
    """
    async def role_checker(
        request: Request,
        current_user: Profile = Depends(get_current_user),
    ) -> Profile:
        if not has_role_or_higher(current_user.role, minimum_role):
            raise _deny(
                request,
                current_user,
                "Hierarchical role access denied",
                minimum_role=minimum_role.value,
            )
        return current_user

    return role_checker


def require_permission(resource: str, action: str) -> Callable:
    """
    Create a dependency that checks the ROLE_PERMISSIONS map.

    Usage:
        @router.post("/training/modules")
        def create(user: Profile = Depends(require_permission("training", "create"))):
            ...
    """
    async def permission_checker(
        request: Request,
        current_user: Profile = Depends(get_current_user),
    ) -> Profile:
        if not has_permission(current_user.role, resource, action):
            raise _deny(
                request,
                current_user,
                "Permission denied",
                resource=resource,
                action=action,
            )
        return current_user

    return permission_checker


# =====================================
# Regional Admin Only
# =====================================

def require_regional_admin(
    request: Request,
    current_user: Profile = Depends(get_current_user),
) -> Profile:
    """
    Dependency that requires the REGIONAL_ADMIN role.
    """
    if current_user.role != Role.REGIONAL_ADMIN:
        security_logger.log_unauthorized_access(
            user_id=str(current_user.id),
            resource=request.url.path,
            action=request.method,
        )

        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="This action requires regional admin privileges",
        )

    return current_user
