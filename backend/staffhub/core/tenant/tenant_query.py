"""
Tenant Query Utilities Module
=============================

Provides utilities for multi-tenant data isolation. The tenant is the
property (hotel); every tenant-owned table carries a property_id column.

Features:
- Automatic property filtering for queries
- Regional role bypass for cross-property access
- Optional inclusion of global rows (property_id IS NULL)
- Tenant validation helpers

Security:
- Enforces tenant isolation at the query level
- Logs tenant isolation violations
"""

from typing import Optional, Type, TypeVar
from uuid import UUID

from sqlalchemy import or_
from sqlalchemy.orm import Query, Session

from staffhub.core.exceptions import TenantIsolationError
from staffhub.core.logging import get_logger, security_logger
from staffhub.models.role_enum import is_regional
from staffhub.models.user import Profile

# Initialize logger
logger = get_logger(__name__)

T = TypeVar("T")

TENANT_COLUMN = "property_id"


def _str(value) -> Optional[str]:
    return str(value) if value else None


class TenantQuery:
    """
    Helper class for property-isolated database queries.

    Usage:
        tq = TenantQuery(db, Task, current_user)
        tasks = tq.filter_by_tenant().all()
        module = TenantQuery(db, TrainingModule, user, include_global=True).get_by_id(module_id)
    """

    def __init__(self, db: Session, model: Type[T], current_user: Profile, include_global: bool = False):
        """
        Args:
            db: Database session
            model: SQLAlchemy model class
            current_user: Current authenticated profile
            include_global: Also return rows with no property (shared content)
        """
        self.db = db
        self.model = model
        self.current_user = current_user
        self.include_global = include_global
        self._base_query = db.query(model)

    @property
    def _scoped(self) -> bool:
        return hasattr(self.model, TENANT_COLUMN)

    def filter_by_tenant(self) -> Query:
        """
        Query filtered to the current profile's property.

        Regional roles see every property. Models without a property
        column are returned unfiltered.
        """
        if is_regional(self.current_user.role) or not self._scoped:
            return self._base_query

        column = getattr(self.model, TENANT_COLUMN)
        if self.include_global:
            return self._base_query.filter(
                or_(column == self.current_user.property_id, column.is_(None))
            )
        return self._base_query.filter(column == self.current_user.property_id)

    def filter_by_tenant_id(self, tenant_id: UUID) -> Query:
        """
        Query filtered to a specific property, after validating access.

        Raises:
            TenantIsolationError: If the profile may not read that property
        """
        if not self._validate_tenant_access(tenant_id):
            self._log_violation(tenant_id)
            raise TenantIsolationError()

        return self._base_query.filter(getattr(self.model, TENANT_COLUMN) == tenant_id)

    def get_by_id(self, resource_id: UUID) -> Optional[T]:
        """
        Get a resource by ID with tenant validation.

        Returns:
            Resource instance or None

        Raises:
            TenantIsolationError: If the resource belongs to another property
        """
        resource = self._base_query.filter(self.model.id == resource_id).first()

        if resource is None:
            return None

        if self._scoped:
            owner = getattr(resource, TENANT_COLUMN)
            if owner is None and self.include_global:
                return resource
            if not self._validate_tenant_access(owner):
                self._log_violation(owner)
                raise TenantIsolationError()

        return resource

    def _validate_tenant_access(self, target_tenant_id: Optional[UUID]) -> bool:
        if is_regional(self.current_user.role):
            return True
        return self.current_user.property_id == target_tenant_id

    def _log_violation(self, target_tenant_id: Optional[UUID]) -> None:
        security_logger.log_tenant_isolation_violation(
            user_id=str(self.current_user.id),
            user_tenant=_str(self.current_user.property_id),
            target_tenant=_str(target_tenant_id),
            resource=self.model.__tablename__,
        )


# =====================================
# Convenience Functions
# =====================================

def tenant_query(db: Session, model: Type[T], current_user: Profile, include_global: bool = False) -> Query:
    """
    Get a property-filtered query for a model.

    Usage:
        tasks = tenant_query(db, Task, current_user).all()
    """
    return TenantQuery(db, model, current_user, include_global=include_global).filter_by_tenant()


def validate_tenant_access(current_user: Profile, target_tenant_id: Optional[UUID], resource: str = "validation") -> bool:
    """
    Validate that the profile has access to the target property.

    Raises:
        TenantIsolationError: If access is denied
    """
    if is_regional(current_user.role):
        return True

    if current_user.property_id != target_tenant_id:
        security_logger.log_tenant_isolation_violation(
            user_id=str(current_user.id),
            user_tenant=_str(current_user.property_id),
            target_tenant=_str(target_tenant_id),
            resource=resource,
        )
        raise TenantIsolationError()

    return True


def get_tenant_filter(current_user: Profile) -> dict:
    """
    Tenant filter for filter_by() queries (empty for regional roles).

    Usage:
        profiles = db.query(Profile).filter_by(**get_tenant_filter(current_user)).all()
    """
    if is_regional(current_user.role):
        return {}

    return {TENANT_COLUMN: current_user.property_id}
