"""
Search Service
==============

Global search across pages and tenant-scoped content, plus typeahead
suggestions.

Scoring (case-insensitive):
    title == query        +100
    title startswith      +80
    title contains        +60
    description contains  +30
    each query word equal to a title word  +20
System pages get a further +20.
"""

import math
from typing import Iterable, List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from staffhub.core.enums import DocumentType
from staffhub.core.logging import get_logger
from staffhub.core.tenant.tenant_query import tenant_query
from staffhub.models.communication import Announcement
from staffhub.models.knowledge import Document
from staffhub.models.maintenance import MaintenanceTicket
from staffhub.models.role_enum import Role
from staffhub.models.training import TrainingModule
from staffhub.models.user import Profile
from staffhub.services.announcement_service import visible_announcements
from staffhub.services.knowledge_service import published_documents

logger = get_logger(__name__)

PAGE_BOOST = 20
MAX_SUGGESTIONS = 8
DOCUMENT_SUGGESTION_THRESHOLD = 5

SEARCH_TYPES = ("page", "document", "user", "training", "announcement", "sop", "ticket")

# Roles allowed to search the staff directory
PROFILE_SEARCH_ROLES = (
    Role.REGIONAL_ADMIN,
    Role.REGIONAL_HR,
    Role.PROPERTY_MANAGER,
    Role.DEPARTMENT_HEAD,
)

SYSTEM_PAGES = [
    {
        "id": "dashboard",
        "title": "Dashboard",
        "description": "Overview of your tasks, training and announcements",
        "category": "General",
        "url": "/dashboard",
        "keywords": ["home", "overview", "stats"],
    },
    {
        "id": "requests",
        "title": "Requests",
        "description": "Leave, promotion and transfer requests awaiting action",
        "category": "HR",
        "url": "/requests",
        "keywords": ["approvals", "approve", "inbox"],
    },
    {
        "id": "leave",
        "title": "Leave",
        "description": "Apply for leave and track your leave requests",
        "category": "HR",
        "url": "/leave",
        "keywords": ["vacation", "holiday", "sick", "time off"],
    },
    {
        "id": "training",
        "title": "Training",
        "description": "Assigned learning modules and certificates",
        "category": "Learning",
        "url": "/training",
        "keywords": ["course", "learning", "certificate", "module"],
    },
    {
        "id": "sops",
        "title": "Standard Operating Procedures",
        "description": "Published SOPs for every department",
        "category": "Knowledge",
        "url": "/sops",
        "keywords": ["sop", "procedure", "how to"],
    },
    {
        "id": "documents",
        "title": "Documents",
        "description": "Policies, guides and forms",
        "category": "Knowledge",
        "url": "/documents",
        "keywords": ["policy", "guide", "form", "manual"],
    },
    {
        "id": "announcements",
        "title": "Announcements",
        "description": "Property and company-wide news",
        "category": "Communication",
        "url": "/announcements",
        "keywords": ["news", "notice"],
    },
    {
        "id": "messages",
        "title": "Messages",
        "description": "Direct messages and broadcasts",
        "category": "Communication",
        "url": "/messages",
        "keywords": ["inbox", "chat", "mail"],
    },
    {
        "id": "tasks",
        "title": "Tasks",
        "description": "Your tasks and team tasks",
        "category": "Operations",
        "url": "/tasks",
        "keywords": ["todo", "task", "work"],
    },
    {
        "id": "maintenance",
        "title": "Maintenance",
        "description": "Raise and follow engineering tickets",
        "category": "Operations",
        "url": "/maintenance",
        "keywords": ["ticket", "repair", "engineering", "broken"],
    },
    {
        "id": "org-chart",
        "title": "Organization Chart",
        "description": "Who reports to whom across properties",
        "category": "Directory",
        "url": "/org",
        "keywords": ["hierarchy", "org", "team", "structure"],
    },
    {
        "id": "staff",
        "title": "Staff Directory",
        "description": "Find colleagues and their roles",
        "category": "Directory",
        "url": "/users",
        "keywords": ["staff", "employee", "people", "directory"],
    },
    {
        "id": "settings",
        "title": "Settings",
        "description": "Profile and password",
        "category": "General",
        "url": "/settings",
        "keywords": ["profile", "password", "account"],
    },
]

INTENT_ACTIONS = [
    {"keywords": ["user", "staff", "employee"], "text": "Add New Staff Member", "url": "/users/new"},
    {"keywords": ["task", "todo"], "text": "Create New Task", "url": "/tasks"},
    {"keywords": ["announcement", "news"], "text": "Post Announcement", "url": "/announcements"},
    {"keywords": ["ticket", "maintenance"], "text": "Raise Maintenance Ticket", "url": "/maintenance"},
]

HELP_SUGGESTIONS = [
    {"id": "help-sop", "text": "Search Standard Operating Procedures", "type": "help", "url": "/sops"},
    {"id": "help-manual", "text": "Open User Manual", "type": "help", "url": "/documents"},
]


def calculate_relevance_score(query: str, title: str, description: Optional[str] = None) -> int:
    query_lower = query.lower()
    title_lower = (title or "").lower()
    desc_lower = (description or "").lower()

    score = 0
    if title_lower == query_lower:
        score += 100
    elif title_lower.startswith(query_lower):
        score += 80
    elif query_lower in title_lower:
        score += 60

    if query_lower in desc_lower:
        score += 30

    title_words = title_lower.split()
    for word in query_lower.split():
        if word in title_words:
            score += 20

    return score


def _result(kind: str, id_, title: str, description, url: str, query: str, category=None, metadata=None) -> dict:
    return {
        "id": str(id_),
        "type": kind,
        "title": title,
        "description": description,
        "category": category,
        "url": url,
        "metadata": metadata or {},
        "relevance_score": calculate_relevance_score(query, title, description),
    }


def _page_matches(page: dict, query_lower: str) -> bool:
    return (
        query_lower in page["title"].lower()
        or query_lower in page["description"].lower()
        or any(query_lower in k.lower() for k in page["keywords"])
    )


def _search_pages(query: str) -> List[dict]:
    query_lower = query.lower()
    results = []
    for page in SYSTEM_PAGES:
        if not _page_matches(page, query_lower):
            continue
        item = _result("page", page["id"], page["title"], page["description"], page["url"], query, page["category"])
        item["relevance_score"] += PAGE_BOOST
        results.append(item)
    return results


def _like(query: str) -> str:
    return f"%{query}%"


def _search_documents(db: Session, user: Profile, query: str, cap: int, sop: bool) -> List[dict]:
    pattern = _like(query)
    q = published_documents(db, user).filter(
        or_(Document.title.ilike(pattern), Document.description.ilike(pattern), Document.category.ilike(pattern))
    )
    if sop:
        q = q.filter(Document.doc_type == DocumentType.SOP)
    else:
        q = q.filter(Document.doc_type != DocumentType.SOP)

    kind, prefix = ("sop", "/sops") if sop else ("document", "/documents")
    return [
        _result(
            kind, doc.id, doc.title, doc.description, f"{prefix}/{doc.id}", query,
            category=doc.category or ("SOP" if sop else "Document"),
            metadata={"version": doc.version, "doc_type": doc.doc_type.value},
        )
        for doc in q.limit(cap).all()
    ]


def _search_profiles(db: Session, user: Profile, query: str, cap: int) -> List[dict]:
    if user.role not in PROFILE_SEARCH_ROLES:
        return []
    pattern = _like(query)
    q = tenant_query(db, Profile, user).filter(
        Profile.is_active.is_(True),
        or_(Profile.full_name.ilike(pattern), Profile.email.ilike(pattern), Profile.job_title.ilike(pattern)),
    )
    return [
        _result(
            "user", p.id, p.full_name or "Unknown User", p.email, f"/users/{p.id}", query,
            category="Staff",
            metadata={"job_title": p.job_title, "role": p.role.value},
        )
        for p in q.limit(cap).all()
    ]


def _search_training(db: Session, user: Profile, query: str, cap: int) -> List[dict]:
    pattern = _like(query)
    q = tenant_query(db, TrainingModule, user, include_global=True).filter(
        TrainingModule.is_active.is_(True),
        or_(
            TrainingModule.title.ilike(pattern),
            TrainingModule.description.ilike(pattern),
            TrainingModule.category.ilike(pattern),
        ),
    )
    return [
        _result("training", m.id, m.title, m.description, f"/training/modules/{m.id}", query, category=m.category)
        for m in q.limit(cap).all()
    ]


def _search_announcements(db: Session, user: Profile, query: str, cap: int) -> List[dict]:
    query_lower = query.lower()
    matches = [
        a for a in visible_announcements(db, user)
        if query_lower in a.title.lower() or query_lower in (a.content or "").lower()
    ]
    return [
        _result(
            "announcement", a.id, a.title, a.content, f"/announcements/{a.id}", query,
            category="Announcement",
            metadata={"priority": a.priority.value},
        )
        for a in matches[:cap]
    ]


def _search_tickets(db: Session, user: Profile, query: str, cap: int) -> List[dict]:
    pattern = _like(query)
    q = tenant_query(db, MaintenanceTicket, user).filter(
        or_(
            MaintenanceTicket.title.ilike(pattern),
            MaintenanceTicket.description.ilike(pattern),
            MaintenanceTicket.room_number.ilike(pattern),
        )
    )
    return [
        _result(
            "ticket", t.id, t.title, t.description, f"/maintenance/tickets/{t.id}", query,
            category="Maintenance",
            metadata={"ticket_no": t.ticket_no, "status": t.status.value},
        )
        for t in q.order_by(MaintenanceTicket.created_at.desc()).limit(cap).all()
    ]


def global_search(
    db: Session,
    user: Profile,
    query: str,
    types: Optional[Iterable[str]] = None,
    limit: int = 20,
) -> List[dict]:
    """
    Search every source the user can see.

    Args:
        types: Restrict to these result types (see SEARCH_TYPES)
        limit: Maximum number of results

    Returns:
        Results sorted by relevance_score, highest first
    """
    query = (query or "").strip()
    if not query:
        return []

    wanted = set(types) if types else set(SEARCH_TYPES)
    document_cap = math.ceil(limit / 2)
    other_cap = math.ceil(limit / 4)

    results: List[dict] = []
    if "page" in wanted:
        results.extend(_search_pages(query))
    if "document" in wanted:
        results.extend(_search_documents(db, user, query, document_cap, sop=False))
    if "user" in wanted:
        results.extend(_search_profiles(db, user, query, other_cap))
    if "training" in wanted:
        results.extend(_search_training(db, user, query, other_cap))
    if "announcement" in wanted:
        results.extend(_search_announcements(db, user, query, other_cap))
    if "sop" in wanted:
        results.extend(_search_documents(db, user, query, other_cap, sop=True))
    if "ticket" in wanted:
        results.extend(_search_tickets(db, user, query, other_cap))

    results.sort(key=lambda r: r["relevance_score"], reverse=True)

    logger.debug("Global search", extra={"query": query, "results": len(results)})
    return results[:limit]


def search_suggestions(db: Session, user: Profile, query: str) -> List[dict]:
    """
    Typeahead suggestions: intent actions, navigation shortcuts, help
    entries, then matching document titles.
    """
    query_lower = (query or "").strip().lower()
    if not query_lower:
        return []

    suggestions: List[dict] = []

    if query_lower.startswith(("add", "create", "new")):
        for action in INTENT_ACTIONS:
            if any(k in query_lower for k in action["keywords"]) or len(query_lower) < 5:
                suggestions.append({
                    "id": f"action-{action['text']}",
                    "text": action["text"],
                    "type": "action",
                    "url": action["url"],
                })

    if query_lower.startswith(("go", "open")) or "page" in query_lower:
        for page in SYSTEM_PAGES:
            if any(k in query_lower for k in page["keywords"]) or query_lower in page["title"].lower():
                suggestions.append({
                    "id": f"nav-{page['id']}",
                    "text": f"Go to {page['title']}",
                    "type": "navigation",
                    "url": page["url"],
                })

    if "how" in query_lower or "help" in query_lower:
        suggestions.extend(dict(item) for item in HELP_SUGGESTIONS)

    if len(suggestions) < DOCUMENT_SUGGESTION_THRESHOLD:
        documents = (
            published_documents(db, user)
            .filter(Document.title.ilike(_like(query.strip())))
            .order_by(Document.title.asc())
            .limit(MAX_SUGGESTIONS)
            .all()
        )
        for doc in documents:
            sop = doc.doc_type == DocumentType.SOP
            suggestions.append({
                "id": str(doc.id),
                "text": doc.title,
                "type": "document",
                "url": f"/sops/{doc.id}" if sop else f"/documents/{doc.id}",
                "category": "SOP" if sop else None,
            })

    return suggestions[:MAX_SUGGESTIONS]
