"""
Org Chart Service
=================

Builds the reporting-line tree and the corporate / property / department
org hierarchy from flat profile lists. Everything except
validate_reporting_line and the two loaders is pure list processing.
"""

from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence
from uuid import UUID

from sqlalchemy import or_
from sqlalchemy.orm import Session

from staffhub.core.exceptions import UserNotFoundError, ValidationError
from staffhub.core.logging import get_logger
from staffhub.models.organization import Department, Property
from staffhub.models.role_enum import EXECUTIVE_ROLES, Role, is_regional
from staffhub.models.user import Profile

logger = get_logger(__name__)

MAX_CHAIN_DEPTH = 20

NO_TITLE_RANK = 999
UNKNOWN_TITLE_RANK = 500

# Lower number = more senior
JOB_TITLE_HIERARCHY: Dict[str, int] = {
    # C-level & founders
    "founder": 1,
    "co-founder": 1,
    "ceo": 2,
    "chief executive officer": 2,
    "president": 3,
    "cfo": 4,
    "chief financial officer": 4,
    "coo": 5,
    "chief operating officer": 5,
    "cto": 6,
    "chief technology officer": 6,
    "cmo": 7,
    "chief marketing officer": 7,
    "cio": 8,
    "chief information officer": 8,
    "chro": 9,
    "chief human resources officer": 9,
    # Vice presidents
    "evp": 10,
    "executive vice president": 10,
    "svp": 11,
    "senior vice president": 11,
    "vp": 12,
    "vice president": 12,
    # Directors
    "executive director": 21,
    "senior director": 22,
    "director": 23,
    "associate director": 24,
    # General & regional management
    "general manager": 31,
    "regional manager": 32,
    "area manager": 33,
    "district manager": 34,
    # Property management
    "property manager": 41,
    "assistant property manager": 42,
    "property director": 40,
    # Department leadership
    "department head": 51,
    "department manager": 52,
    "department director": 50,
    # Managers
    "senior manager": 61,
    "manager": 62,
    "assistant manager": 63,
    "deputy manager": 64,
    # Supervisors & team leads
    "senior supervisor": 71,
    "supervisor": 72,
    "team lead": 73,
    "lead": 74,
    "shift supervisor": 75,
    "floor supervisor": 76,
    # Senior staff
    "senior specialist": 81,
    "senior coordinator": 82,
    "senior associate": 83,
    "senior analyst": 84,
    "chief": 85,
    "head waiter": 86,
    "captain": 87,
    # Mid-level staff
    "specialist": 91,
    "coordinator": 92,
    "associate": 93,
    "analyst": 94,
    "officer": 95,
    # Entry level
    "staff": 101,
    "assistant": 102,
    "junior": 103,
    "trainee": 104,
    "intern": 105,
}

# sorted() is stable, so equal ranks keep declaration order
_RANKED_KEYS = sorted(JOB_TITLE_HIERARCHY.items(), key=lambda item: item[1])

SUPERVISOR_TITLE_KEYWORDS = ("supervisor", "lead", "senior", "chief", "head waiter", "captain")

LEVEL_LABELS = (
    ("head", "Department Head"),
    ("supervisor", "Supervisors"),
    ("staff", "Team Members"),
)


# ==========================
# Ranking & Grouping
# ==========================

def job_title_rank(title: Optional[str]) -> int:
    """
    Rank a job title: exact match first, then the most senior key the title
    contains.
    """
    if not title:
        return NO_TITLE_RANK

    normalized = title.lower().strip()
    if normalized in JOB_TITLE_HIERARCHY:
        return JOB_TITLE_HIERARCHY[normalized]

    for key, rank in _RANKED_KEYS:
        if key in normalized:
            return rank

    return UNKNOWN_TITLE_RANK


def _sort_key(emp: Mapping[str, Any]):
    return (job_title_rank(emp.get("job_title")), (emp.get("full_name") or "").lower())


def sort_by_rank(employees: Iterable[Mapping[str, Any]]) -> List[Mapping[str, Any]]:
    return sorted(employees, key=_sort_key)


def _role_value(role) -> Optional[str]:
    return role.value if hasattr(role, "value") else role


def classify_employee_level(emp: Mapping[str, Any]) -> str:
    if _role_value(emp.get("role")) == Role.DEPARTMENT_HEAD.value:
        return "head"

    title = (emp.get("job_title") or "").lower()
    if any(keyword in title for keyword in SUPERVISOR_TITLE_KEYWORDS):
        return "supervisor"

    return "staff"


def group_by_level(employees: Iterable[Mapping[str, Any]]) -> List[dict]:
    """Non-empty role groups in head / supervisor / staff order."""
    buckets: Dict[str, list] = {level: [] for level, _ in LEVEL_LABELS}
    for emp in employees:
        buckets[classify_employee_level(emp)].append(emp)

    return [
        {"level": level, "label": label, "employees": sort_by_rank(buckets[level])}
        for level, label in LEVEL_LABELS
        if buckets[level]
    ]


# ==========================
# Reporting Tree
# ==========================

def build_org_tree(nodes: Sequence[Mapping[str, Any]]) -> List[dict]:
    """
    Turn a flat list of {id, reporting_to, ...} into a forest.

    Nodes with no manager, or whose manager is not in the list, are roots.
    Each tree node is {"node", "children", "depth"}.
    """
    by_id = {str(node["id"]): node for node in nodes}
    children: Dict[str, list] = {node_id: [] for node_id in by_id}
    roots = []

    for node in nodes:
        manager = node.get("reporting_to")
        manager_key = str(manager) if manager else None
        # A self-reference would never be reached from a root
        if manager_key and manager_key in by_id and manager_key != str(node["id"]):
            children[manager_key].append(node)
        else:
            roots.append(node)

    def build(node: Mapping[str, Any], depth: int, seen: set) -> dict:
        node_id = str(node["id"])
        seen.add(node_id)
        kids = [child for child in sort_by_rank(children[node_id]) if str(child["id"]) not in seen]
        return {
            "node": node,
            "children": [build(child, depth + 1, seen) for child in kids],
            "depth": depth,
        }

    seen: set = set()
    forest = [build(root, 0, seen) for root in sort_by_rank(roots)]

    # Members of a reporting cycle are unreachable from any root
    for node in sort_by_rank(nodes):
        if str(node["id"]) not in seen:
            forest.append(build(node, 0, seen))

    return forest


def count_tree_nodes(forest: Sequence[dict]) -> int:
    return sum(1 + count_tree_nodes(tree["children"]) for tree in forest)


def validate_reporting_line(db: Session, employee_id: UUID, manager_id: Optional[UUID]) -> None:
    """
    Reject self-reporting and reporting cycles.

    Raises:
        UserNotFoundError: manager does not exist
        ValidationError: the new line would make the employee their own
            (indirect) manager
    """
    if manager_id is None:
        return
    if manager_id == employee_id:
        raise ValidationError("An employee cannot report to themselves")

    manager = db.get(Profile, manager_id)
    if manager is None:
        raise UserNotFoundError(str(manager_id))

    current = manager
    depth = 0
    while current is not None and current.reporting_to is not None and depth < MAX_CHAIN_DEPTH:
        if current.reporting_to == employee_id:
            raise ValidationError(
                "This reporting line would create a cycle",
                details={"employee_id": str(employee_id), "manager_id": str(manager_id)},
            )
        current = db.get(Profile, current.reporting_to)
        depth += 1


# ==========================
# Org Hierarchy
# ==========================

def employee_view(profile: Profile) -> dict:
    return {
        "id": str(profile.id),
        "full_name": profile.full_name or "Unknown",
        "job_title": profile.job_title,
        "email": profile.email,
        "phone": profile.phone,
        "avatar_url": profile.avatar_url,
        "role": profile.role.value,
        "property_id": str(profile.property_id) if profile.property_id else None,
        "department_id": str(profile.department_id) if profile.department_id else None,
        "reporting_to": str(profile.reporting_to) if profile.reporting_to else None,
    }


def _department_block(dept_id: str, name: str, employees: List[dict]) -> dict:
    return {
        "id": dept_id,
        "name": name,
        "role_groups": group_by_level(employees),
        "total_employees": len(employees),
    }


def build_org_hierarchy(
    employees: Sequence[dict],
    properties: Sequence[dict],
    departments: Sequence[dict],
    viewer: Optional[Mapping[str, Any]] = None,
) -> dict:
    """
    Corporate executives, HQ shared services, per-property departments and
    unassigned staff.

    Args:
        employees: employee_view() dicts of active profiles
        properties: active properties ({id, name, is_headquarters, ...})
        departments: {id, name, property_id}
        viewer: {role, property_id, department_id} of the requesting user;
            None means unrestricted
    """
    executives = sort_by_rank(e for e in employees if e["role"] in {r.value for r in EXECUTIVE_ROLES})
    executive_ids = {e["id"] for e in executives}

    hq = next((p for p in properties if p.get("is_headquarters")), None)
    dept_names = {d["id"]: d["name"] for d in departments}

    shared_services = []
    if hq is not None:
        for dept in departments:
            if dept["property_id"] != hq["id"]:
                continue
            members = [e for e in employees if e["department_id"] == dept["id"] and e["id"] not in executive_ids]
            if members:
                shared_services.append(_department_block(dept["id"], dept["name"], members))

    org_properties = []
    for prop in properties:
        if prop.get("is_headquarters"):
            continue
        members = [e for e in employees if e["property_id"] == prop["id"] and e["id"] not in executive_ids]
        if not members:
            continue

        general_manager = next((e for e in members if e["role"] == Role.PROPERTY_MANAGER.value), None)
        gm_id = general_manager["id"] if general_manager else None
        with_dept = [e for e in members if e["department_id"] and e["id"] != gm_id]
        without_dept = [e for e in members if not e["department_id"] and e["id"] != gm_id]

        dept_blocks = []
        for dept_id in dict.fromkeys(e["department_id"] for e in with_dept):
            dept_members = [e for e in with_dept if e["department_id"] == dept_id]
            dept_blocks.append(_department_block(dept_id, dept_names.get(dept_id, "Unknown Department"), dept_members))
        if without_dept:
            dept_blocks.append(_department_block(f"{prop['id']}-general", "General", without_dept))

        org_properties.append({
            "id": prop["id"],
            "name": prop["name"],
            "address": prop.get("address"),
            "city": prop.get("city"),
            "country": prop.get("country"),
            "property_code": prop.get("property_code"),
            "phone": prop.get("phone"),
            "is_headquarters": False,
            "general_manager": general_manager,
            "departments": dept_blocks,
            "total_employees": len(members),
        })

    assigned = set(executive_ids)
    for block in shared_services:
        assigned.update(e["id"] for g in block["role_groups"] for e in g["employees"])
    for prop in org_properties:
        if prop["general_manager"]:
            assigned.add(prop["general_manager"]["id"])
        for block in prop["departments"]:
            assigned.update(e["id"] for g in block["role_groups"] for e in g["employees"])
    unassigned = sort_by_rank(e for e in employees if e["id"] not in assigned)

    return {
        "corporate": {"executives": executives, "shared_services": shared_services},
        "properties": _filter_for_viewer(org_properties, viewer),
        "unassigned": unassigned,
        "total_employees": len(employees),
    }


def _filter_for_viewer(org_properties: List[dict], viewer: Optional[Mapping[str, Any]]) -> List[dict]:
    if viewer is None or is_regional(Role(_role_value(viewer["role"]))):
        return org_properties

    property_id = viewer.get("property_id")
    if _role_value(viewer["role"]) == Role.DEPARTMENT_HEAD.value and viewer.get("department_id"):
        scoped = []
        for prop in org_properties:
            depts = [d for d in prop["departments"] if d["id"] == viewer["department_id"]]
            if depts:
                scoped.append({**prop, "departments": depts})
        return scoped

    return [p for p in org_properties if p["id"] == property_id]


# ==========================
# Loaders
# ==========================

def _active_profiles(db: Session, search: Optional[str] = None) -> List[Profile]:
    query = db.query(Profile).filter(Profile.is_active.is_(True))
    if search:
        pattern = f"%{search}%"
        query = query.filter(
            or_(
                Profile.full_name.ilike(pattern),
                Profile.email.ilike(pattern),
                Profile.job_title.ilike(pattern),
            )
        )
    return query.all()


def org_tree_for(db: Session, user: Profile) -> List[dict]:
    """Reporting tree of the user's property (all properties for regional roles)."""
    query = db.query(Profile).filter(Profile.is_active.is_(True))
    if not is_regional(user.role):
        query = query.filter(Profile.property_id == user.property_id)
    return build_org_tree([employee_view(p) for p in query.all()])


def org_hierarchy_for(db: Session, user: Profile, search: Optional[str] = None) -> dict:
    properties = (
        db.query(Property)
        .filter(Property.is_active.is_(True))
        .order_by(Property.is_headquarters.desc(), Property.name)
        .all()
    )
    departments = db.query(Department).order_by(Department.name).all()

    viewer = {
        "role": user.role.value,
        "property_id": str(user.property_id) if user.property_id else None,
        "department_id": str(user.department_id) if user.department_id else None,
    }
    return build_org_hierarchy(
        [employee_view(p) for p in _active_profiles(db, search)],
        [
            {
                "id": str(p.id),
                "name": p.name,
                "address": p.address,
                "city": p.city,
                "country": p.country,
                "property_code": p.property_code,
                "phone": p.phone,
                "is_headquarters": p.is_headquarters,
            }
            for p in properties
        ],
        [{"id": str(d.id), "name": d.name, "property_id": str(d.property_id)} for d in departments],
        viewer=viewer,
    )
