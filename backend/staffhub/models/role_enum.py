"""
Role Enumeration Module
=======================

Defines all valid staff roles in the system, from front-line staff up to
the regional administrators who operate across properties.
"""

from enum import Enum


class Role(str, Enum):
    """
    System-wide allowed roles.
    """

    STAFF = "staff"
    DEPARTMENT_HEAD = "department_head"
    PROPERTY_HR = "property_hr"
    PROPERTY_MANAGER = "property_manager"
    REGIONAL_HR = "regional_hr"
    REGIONAL_ADMIN = "regional_admin"


# Roles whose scope spans every property
REGIONAL_ROLES = (Role.REGIONAL_HR, Role.REGIONAL_ADMIN)

# Roles that may act on any HR request within their scope
HR_ROLES = (Role.PROPERTY_HR, Role.REGIONAL_HR, Role.REGIONAL_ADMIN)

# Roles shown at the top of the org hierarchy
EXECUTIVE_ROLES = (Role.REGIONAL_ADMIN, Role.REGIONAL_HR)


def is_regional(role) -> bool:
    return role in REGIONAL_ROLES
