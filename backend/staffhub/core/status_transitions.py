"""
Status Transition Rules
=======================

Allowed lifecycle moves for every status-bearing entity. A status that maps
to an empty list is terminal.
"""

from typing import Dict, List

from staffhub.core.exceptions import InvalidStatusTransitionError

VALID_TRANSITIONS: Dict[str, Dict[str, List[str]]] = {
    "task": {
        "open": ["in_progress", "cancelled"],
        "in_progress": ["completed", "cancelled", "on_hold"],
        "on_hold": ["in_progress", "cancelled"],
        "completed": [],
        "cancelled": [],
    },
    "maintenance_ticket": {
        "open": ["in_progress", "cancelled"],
        "in_progress": ["completed", "pending_parts", "on_hold", "cancelled"],
        "pending_parts": ["in_progress", "completed", "cancelled"],
        "on_hold": ["in_progress", "cancelled"],
        "completed": ["closed"],
        "closed": [],
        "cancelled": [],
    },
    "leave_request": {
        "pending": ["approved", "rejected", "cancelled"],
        "approved": ["cancelled"],
        "rejected": [],
        "cancelled": [],
    },
    "document": {
        "DRAFT": ["PENDING_REVIEW", "ARCHIVED"],
        "PENDING_REVIEW": ["APPROVED", "REJECTED"],
        "APPROVED": ["PUBLISHED", "ARCHIVED"],
        "REJECTED": ["DRAFT", "ARCHIVED"],
        "PUBLISHED": ["ARCHIVED"],
        "ARCHIVED": [],
    },
}


def _value(status) -> str:
    return status.value if hasattr(status, "value") else str(status)


def get_valid_next_statuses(entity_type: str, current_status) -> List[str]:
    return list(VALID_TRANSITIONS.get(entity_type, {}).get(_value(current_status), []))


def is_valid_transition(entity_type: str, current_status, new_status) -> bool:
    return _value(new_status) in get_valid_next_statuses(entity_type, current_status)


def is_terminal_status(entity_type: str, status) -> bool:
    transitions = VALID_TRANSITIONS.get(entity_type, {})
    return _value(status) in transitions and not transitions[_value(status)]


def validate_transition(entity_type: str, current_status, new_status) -> None:
    """
    Validate lifecycle transition rules.

    Raises:
        InvalidStatusTransitionError (400) if the move is not allowed.
    """
    if not is_valid_transition(entity_type, current_status, new_status):
        raise InvalidStatusTransitionError(
            entity_type=entity_type,
            current_status=_value(current_status),
            new_status=_value(new_status),
            allowed=get_valid_next_statuses(entity_type, current_status),
        )
