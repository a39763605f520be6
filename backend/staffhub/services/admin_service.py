"""
Admin Service
=============

Property, department and staff administration.

Rules:
- Creating or deactivating a property requires a regional role
- Property-level admins manage only their own property's departments and staff
- Nobody can grant a role above their own
- Reporting lines are checked for self-reports and cycles
"""

from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from staffhub.core.dependencies.rbac import has_role_or_higher
from staffhub.core.exceptions import (
    AuthorizationError,
    ConflictError,
    EmailAlreadyExistsError,
    NotFoundError,
    UserNotFoundError,
    ValidationError,
)
from staffhub.core.logging import audit_logger, get_logger
from staffhub.core.tenant.tenant_query import TenantQuery, tenant_query, validate_tenant_access
from staffhub.models.organization import Department, Property
from staffhub.models.role_enum import Role, is_regional
from staffhub.models.user import Profile
from staffhub.schemas.organization import DepartmentCreate, DepartmentUpdate, PropertyCreate, PropertyUpdate
from staffhub.schemas.user import UserCreate, UserUpdate
from staffhub.services.auth_service import AuthService
from staffhub.services.email_service import welcome_email
from staffhub.services.org_chart import validate_reporting_line

logger = get_logger(__name__)


def _require_regional(user: Profile, action: str) -> None:
    if not is_regional(user.role):
        raise AuthorizationError(f"Only regional roles can {action}")


# =====================================
# Properties
# =====================================

def list_properties(db: Session, user: Profile, include_inactive: bool = False) -> List[Property]:
    query = db.query(Property)
    if not is_regional(user.role):
        query = query.filter(Property.id == user.property_id)
    if not include_inactive:
        query = query.filter(Property.is_active.is_(True))
    return query.order_by(Property.name.asc()).all()


def get_property(db: Session, user: Profile, property_id: UUID) -> Property:
    hotel = db.get(Property, property_id)
    if hotel is None:
        raise NotFoundError("Property", str(property_id))
    validate_tenant_access(user, hotel.id, resource="properties")
    return hotel


def _check_property_name(db: Session, name: str, exclude_id: Optional[UUID] = None) -> None:
    query = db.query(Property.id).filter(func.lower(Property.name) == name.lower())
    if exclude_id is not None:
        query = query.filter(Property.id != exclude_id)
    if query.first() is not None:
        raise ConflictError("A property with this name already exists")


def create_property(db: Session, user: Profile, data: PropertyCreate) -> Property:
    _require_regional(user, "create properties")
    _check_property_name(db, data.name)

    hotel = Property(**data.model_dump())
    db.add(hotel)
    db.commit()

    audit_logger.log_entity_changed(
        actor_id=str(user.id),
        entity_type="property",
        entity_id=str(hotel.id),
        action="create",
        changes={"name": hotel.name},
    )
    return hotel


def update_property(db: Session, user: Profile, property_id: UUID, data: PropertyUpdate) -> Property:
    hotel = get_property(db, user, property_id)
    changes = data.model_dump(exclude_unset=True)

    if "is_active" in changes or "is_headquarters" in changes:
        _require_regional(user, "change property status")
    if "name" in changes and changes["name"] != hotel.name:
        _check_property_name(db, changes["name"], exclude_id=hotel.id)

    for field, value in changes.items():
        setattr(hotel, field, value)
    db.commit()

    audit_logger.log_entity_changed(
        actor_id=str(user.id),
        entity_type="property",
        entity_id=str(hotel.id),
        action="update",
        changes={k: str(v) for k, v in changes.items()},
    )
    return hotel


def deactivate_property(db: Session, user: Profile, property_id: UUID) -> Property:
    _require_regional(user, "deactivate properties")
    hotel = get_property(db, user, property_id)
    hotel.is_active = False
    db.commit()

    audit_logger.log_entity_changed(
        actor_id=str(user.id),
        entity_type="property",
        entity_id=str(hotel.id),
        action="deactivate",
    )
    return hotel


# =====================================
# Departments
# =====================================

def list_departments(
    db: Session,
    user: Profile,
    property_id: Optional[UUID] = None,
    include_inactive: bool = False,
) -> List[Department]:
    query = tenant_query(db, Department, user)
    if property_id is not None:
        validate_tenant_access(user, property_id, resource="departments")
        query = query.filter(Department.property_id == property_id)
    if not include_inactive:
        query = query.filter(Department.is_active.is_(True))
    return query.order_by(Department.name.asc()).all()


def _get_department(db: Session, user: Profile, department_id: UUID) -> Department:
    department = TenantQuery(db, Department, user).get_by_id(department_id)
    if department is None:
        raise NotFoundError("Department", str(department_id))
    return department


def _check_department_name(db: Session, property_id: UUID, name: str, exclude_id: Optional[UUID] = None) -> None:
    query = db.query(Department.id).filter(
        Department.property_id == property_id,
        func.lower(Department.name) == name.lower(),
    )
    if exclude_id is not None:
        query = query.filter(Department.id != exclude_id)
    if query.first() is not None:
        raise ConflictError("A department with this name already exists at the property")


def create_department(db: Session, user: Profile, data: DepartmentCreate) -> Department:
    hotel = get_property(db, user, data.property_id)
    if not hotel.is_active:
        raise ValidationError("Cannot add departments to an inactive property")
    _check_department_name(db, hotel.id, data.name)

    department = Department(property_id=hotel.id, name=data.name, description=data.description)
    db.add(department)
    db.commit()

    logger.info(
        "Department created",
        extra={"department_id": str(department.id), "property_id": str(hotel.id)}
    )
    return department


def update_department(db: Session, user: Profile, department_id: UUID, data: DepartmentUpdate) -> Department:
    department = _get_department(db, user, department_id)
    changes = data.model_dump(exclude_unset=True)
    if "name" in changes and changes["name"] != department.name:
        _check_department_name(db, department.property_id, changes["name"], exclude_id=department.id)

    for field, value in changes.items():
        setattr(department, field, value)
    db.commit()
    return department


def deactivate_department(db: Session, user: Profile, department_id: UUID) -> Department:
    department = _get_department(db, user, department_id)
    department.is_active = False
    db.commit()

    logger.info("Department deactivated", extra={"department_id": str(department.id)})
    return department


# =====================================
# Users
# =====================================

def _check_grantable_role(actor: Profile, role: Role) -> None:
    if not has_role_or_higher(actor.role, role):
        raise AuthorizationError("You cannot assign a role above your own")


def _check_placement(db: Session, actor: Profile, property_id: Optional[UUID], department_id: Optional[UUID]) -> None:
    if property_id is None:
        if not is_regional(actor.role):
            raise ValidationError("property_id is required")
    else:
        hotel = db.get(Property, property_id)
        if hotel is None:
            raise NotFoundError("Property", str(property_id))
        validate_tenant_access(actor, hotel.id, resource="profiles")

    if department_id is not None:
        department = db.get(Department, department_id)
        if department is None:
            raise NotFoundError("Department", str(department_id))
        if department.property_id != property_id:
            raise ValidationError("Department does not belong to the property")


def list_users(
    db: Session,
    user: Profile,
    page: int = 1,
    page_size: int = 20,
    role: Optional[Role] = None,
    is_active: Optional[bool] = None,
    department_id: Optional[UUID] = None,
    search: Optional[str] = None,
) -> Dict[str, Any]:
    query = tenant_query(db, Profile, user)
    if role is not None:
        query = query.filter(Profile.role == role)
    if is_active is not None:
        query = query.filter(Profile.is_active.is_(is_active))
    if department_id is not None:
        query = query.filter(Profile.department_id == department_id)
    if search:
        pattern = f"%{search}%"
        query = query.filter(Profile.full_name.ilike(pattern) | Profile.email.ilike(pattern))

    total = query.count()
    users = (
        query.order_by(Profile.created_at.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
        .all()
    )
    return {"users": users, "total": total, "page": page, "page_size": page_size}


def get_user(db: Session, actor: Profile, user_id: UUID) -> Profile:
    target = db.get(Profile, user_id)
    if target is None:
        raise UserNotFoundError(str(user_id))
    validate_tenant_access(actor, target.property_id, resource="profiles")
    return target


def create_user(db: Session, actor: Profile, data: UserCreate) -> Profile:
    """
    Create a staff account and queue the welcome email.

    Property admins may only create accounts at their own property.
    """
    email = data.email.lower()
    if db.query(Profile.id).filter(func.lower(Profile.email) == email).first() is not None:
        raise EmailAlreadyExistsError()

    _check_grantable_role(actor, data.role)
    property_id = data.property_id if data.property_id is not None or is_regional(actor.role) else actor.property_id
    _check_placement(db, actor, property_id, data.department_id)
    if data.reporting_to is not None and db.get(Profile, data.reporting_to) is None:
        raise UserNotFoundError(str(data.reporting_to))

    profile = Profile(
        email=email,
        hashed_password=AuthService.hash_password(data.password),
        full_name=data.full_name,
        job_title=data.job_title,
        phone=data.phone,
        role=data.role,
        property_id=property_id,
        department_id=data.department_id,
        reporting_to=data.reporting_to,
        date_of_birth=data.date_of_birth,
        hire_date=data.hire_date,
    )
    db.add(profile)
    db.flush()
    welcome_email(db, profile.email, profile.full_name)
    db.commit()

    audit_logger.log_user_created(
        actor_id=str(actor.id),
        target_user_id=str(profile.id),
        role=profile.role.value,
    )
    return profile


def update_user(db: Session, actor: Profile, user_id: UUID, data: UserUpdate) -> Profile:
    target = get_user(db, actor, user_id)
    updates = data.model_dump(exclude_unset=True)
    changes: Dict[str, Any] = {}

    if "email" in updates and updates["email"] and updates["email"].lower() != target.email:
        new_email = updates["email"].lower()
        if db.query(Profile.id).filter(func.lower(Profile.email) == new_email).first() is not None:
            raise EmailAlreadyExistsError()
        updates["email"] = new_email

    if "role" in updates and updates["role"] is not None:
        _check_grantable_role(actor, updates["role"])
        _check_grantable_role(actor, target.role)

    if "property_id" in updates or "department_id" in updates:
        _check_placement(
            db,
            actor,
            updates.get("property_id", target.property_id),
            updates.get("department_id", target.department_id),
        )

    if "reporting_to" in updates and updates["reporting_to"] is not None:
        validate_reporting_line(db, target.id, updates["reporting_to"])

    if updates.get("is_active") is False and target.id == actor.id:
        raise ValidationError("You cannot deactivate your own account")

    deactivating = updates.get("is_active") is False and target.is_active

    for field, value in updates.items():
        old = getattr(target, field)
        if old != value:
            changes[field] = {"old": str(old) if old is not None else None, "new": str(value) if value is not None else None}
            setattr(target, field, value)

    if "role" in changes or deactivating:
        target.invalidate_tokens()

    db.commit()

    if changes:
        audit_logger.log_user_modified(
            actor_id=str(actor.id),
            target_user_id=str(target.id),
            changes=changes,
        )
    return target


def unlock_user(db: Session, actor: Profile, user_id: UUID) -> dict:
    target = get_user(db, actor, user_id)
    if not target.is_locked:
        return {"message": "Account is not locked", "user_id": str(user_id)}

    target.unlock_account()
    db.commit()

    logger.info(
        "User account unlocked by admin",
        extra={"admin_id": str(actor.id), "target_user_id": str(target.id)}
    )
    return {"message": "Account unlocked successfully", "user_id": str(user_id)}


def set_reporting_line(db: Session, actor: Profile, user_id: UUID, manager_id: Optional[UUID]) -> Profile:
    target = get_user(db, actor, user_id)
    if manager_id is not None:
        validate_reporting_line(db, target.id, manager_id)

    old = target.reporting_to
    target.reporting_to = manager_id
    db.commit()

    audit_logger.log_user_modified(
        actor_id=str(actor.id),
        target_user_id=str(target.id),
        changes={"reporting_to": {"old": str(old) if old else None, "new": str(manager_id) if manager_id else None}},
    )
    return target


# =====================================
# Dashboard
# =====================================

def admin_dashboard(db: Session, actor: Profile) -> dict:
    profiles = tenant_query(db, Profile, actor)
    total_users = profiles.count()
    active_users = profiles.filter(Profile.is_active.is_(True)).count()
    locked_users = profiles.filter(Profile.is_locked.is_(True)).count()

    role_query = db.query(Profile.role, func.count(Profile.id))
    if not is_regional(actor.role):
        role_query = role_query.filter(Profile.property_id == actor.property_id)
    users_by_role = {role.value: count for role, count in role_query.group_by(Profile.role).all()}

    return {
        "total_properties": len(list_properties(db, actor)),
        "total_departments": len(list_departments(db, actor)),
        "total_users": total_users,
        "active_users": active_users,
        "locked_users": locked_users,
        "users_by_role": users_by_role,
    }
