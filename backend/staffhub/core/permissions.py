"""
Resource Permission Map
=======================

Coarse resource/action grants per role. Route-level checks use
require_permission(resource, action); finer rules (tenant scope, ownership)
live in the services.
"""

from typing import Dict, FrozenSet

from staffhub.models.role_enum import Role

WILDCARD = "*"

ROLE_PERMISSIONS: Dict[Role, Dict[str, FrozenSet[str]]] = {
    Role.STAFF: {
        "sop": frozenset({"read"}),
        "training": frozenset({"read"}),
        "documents": frozenset({"read"}),
        "announcements": frozenset({"read", "react", "comment"}),
        "hr": frozenset({"read", "create"}),
        "tasks": frozenset({"read", "update"}),
        "maintenance": frozenset({"read", "create"}),
        "messages": frozenset({"create", "read"}),
        "profile": frozenset({"read", "update"}),
    },
    Role.DEPARTMENT_HEAD: {
        "sop": frozenset({"read", "create", "update", "suggest"}),
        "training": frozenset({"read", "create", "assign"}),
        "documents": frozenset({"read", "create", "update"}),
        "announcements": frozenset({"read", "create", "react", "comment"}),
        "hr": frozenset({"read", "create", "approve"}),
        "tasks": frozenset({"create", "read", "update", "delete"}),
        "maintenance": frozenset({"read", "create", "update"}),
        "messages": frozenset({"create", "read"}),
        "profile": frozenset({"read", "update"}),
        "team": frozenset({"read", "manage"}),
    },
    Role.PROPERTY_HR: {
        "sop": frozenset({"read", "create", "update", "assign"}),
        "training": frozenset({"read", "create", "update", "assign", "delete"}),
        "documents": frozenset({"read", "create", "update", "delete"}),
        "announcements": frozenset({"read", "create", "update", "delete"}),
        "hr": frozenset({"create", "read", "update", "delete", "approve"}),
        "tasks": frozenset({"create", "read", "update", "delete"}),
        "maintenance": frozenset({"read", "create"}),
        "messages": frozenset({"create", "read"}),
        "profile": frozenset({"read", "update"}),
        "staff": frozenset({"read", "create", "update", "delete"}),
    },
    Role.PROPERTY_MANAGER: {
        "sop": frozenset({"read", "create", "update", "approve", "delete"}),
        "training": frozenset({"read", "create", "update", "assign", "delete"}),
        "documents": frozenset({"read", "create", "update", "approve", "delete"}),
        "announcements": frozenset({"read", "create", "update", "delete"}),
        "hr": frozenset({"read", "create", "approve"}),
        "tasks": frozenset({"create", "read", "update", "delete"}),
        "maintenance": frozenset({"read", "create", "update", "delete"}),
        "messages": frozenset({"create", "read"}),
        "profile": frozenset({"read", "update"}),
        "reports": frozenset({"read", "create"}),
        "departments": frozenset({"read", "manage"}),
        "staff": frozenset({"read", "create", "update"}),
    },
    Role.REGIONAL_HR: {
        "sop": frozenset({"read", "create", "update", "approve", "delete"}),
        "training": frozenset({"read", "create", "update", "assign", "delete"}),
        "documents": frozenset({"read", "create", "update", "approve", "delete"}),
        "announcements": frozenset({"read", "create", "update", "delete"}),
        "hr": frozenset({"create", "read", "update", "delete", "approve"}),
        "tasks": frozenset({"create", "read", "update", "delete"}),
        "maintenance": frozenset({"read"}),
        "messages": frozenset({"create", "read"}),
        "profile": frozenset({"read", "update"}),
        "reports": frozenset({"read", "create", "delete"}),
        "properties": frozenset({"read", "manage"}),
        "staff": frozenset({"read", "create", "update", "delete"}),
    },
    Role.REGIONAL_ADMIN: {
        WILDCARD: frozenset({WILDCARD}),
    },
}


def has_permission(role: Role, resource: str, action: str) -> bool:
    """
    Check whether a role may perform an action on a resource.

    A "*" resource or action entry grants everything under it.
    """
    grants = ROLE_PERMISSIONS.get(role, {})
    actions = grants.get(resource) or grants.get(WILDCARD)
    if not actions:
        return False
    return action in actions or WILDCARD in actions
