"""
Knowledge Service
=================

Documents and SOPs with a review lifecycle, read acknowledgements, and the
question bank used for self-checks.

Document lifecycle (see core.status_transitions):
    DRAFT -> PENDING_REVIEW -> APPROVED -> PUBLISHED -> ARCHIVED
                            -> REJECTED -> DRAFT
"""

from typing import List, Optional
from uuid import UUID

from sqlalchemy import and_, or_
from sqlalchemy.orm import Query, Session

from staffhub.core.enums import (
    ApprovalStatus,
    DocumentStatus,
    DocumentType,
    DocumentVisibility,
    NotificationType,
    QuestionType,
)
from staffhub.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from staffhub.core.logging import audit_logger, get_logger
from staffhub.core.permissions import has_permission
from staffhub.core.status_transitions import validate_transition
from staffhub.core.tenant.tenant_query import validate_tenant_access
from staffhub.db.base import utcnow
from staffhub.models.knowledge import (
    Document,
    DocumentAcknowledgment,
    DocumentApproval,
    KnowledgeQuestion,
)
from staffhub.models.role_enum import Role, is_regional
from staffhub.models.user import Profile
from staffhub.schemas.knowledge import DocumentCreate, DocumentUpdate, QuestionCreate
from staffhub.services.notification_service import create_notification, notify_users

logger = get_logger(__name__)

EDITABLE_STATUSES = (DocumentStatus.DRAFT, DocumentStatus.REJECTED)

# Answers compared without regard to case
CASE_INSENSITIVE_TYPES = (QuestionType.FILL_BLANK, QuestionType.TRUE_FALSE)

REVIEWER_ROLE = Role.PROPERTY_MANAGER


# ==========================
# Visibility
# ==========================

def visible_documents(db: Session, user: Profile) -> Query:
    """
    Documents the user may read, regardless of status.

    Regional roles see everything. Others see global documents, documents of
    their property, and department documents of their department.
    """
    query = db.query(Document)
    if is_regional(user.role):
        return query

    scopes = [Document.visibility == DocumentVisibility.GLOBAL]
    if user.property_id is not None:
        scopes.append(
            and_(Document.visibility == DocumentVisibility.PROPERTY, Document.property_id == user.property_id)
        )
    if user.department_id is not None:
        scopes.append(
            and_(Document.visibility == DocumentVisibility.DEPARTMENT, Document.department_id == user.department_id)
        )
    return query.filter(or_(*scopes))


def published_documents(db: Session, user: Profile) -> Query:
    return visible_documents(db, user).filter(Document.status == DocumentStatus.PUBLISHED)


def _can_review(user: Profile) -> bool:
    return has_permission(user.role, "documents", "approve")


def _can_see_unpublished(user: Profile, document: Document) -> bool:
    return document.created_by == user.id or _can_review(user)


def get_document(db: Session, user: Profile, document_id: UUID) -> Document:
    document = visible_documents(db, user).filter(Document.id == document_id).first()
    if document is None:
        raise NotFoundError("Document", str(document_id))
    if document.status != DocumentStatus.PUBLISHED and not _can_see_unpublished(user, document):
        raise NotFoundError("Document", str(document_id))
    return document


def list_documents(
    db: Session,
    user: Profile,
    status: Optional[DocumentStatus] = None,
    doc_type: Optional[DocumentType] = None,
    search: Optional[str] = None,
) -> List[Document]:
    query = visible_documents(db, user)
    if not _can_review(user):
        query = query.filter(
            or_(Document.status == DocumentStatus.PUBLISHED, Document.created_by == user.id)
        )
    if status is not None:
        query = query.filter(Document.status == status)
    if doc_type is not None:
        query = query.filter(Document.doc_type == doc_type)
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(Document.title.ilike(pattern), Document.description.ilike(pattern)))
    return query.order_by(Document.updated_at.desc()).all()


def document_detail(db: Session, user: Profile, document: Document) -> dict:
    data = document.to_dict()
    data["acknowledged"] = (
        db.query(DocumentAcknowledgment.id)
        .filter(
            DocumentAcknowledgment.document_id == document.id,
            DocumentAcknowledgment.user_id == user.id,
        )
        .first()
        is not None
    )
    data["approvals"] = [approval.to_dict() for approval in document.approvals]
    return data


# ==========================
# Authoring
# ==========================

def create_document(db: Session, user: Profile, data: DocumentCreate) -> Document:
    property_id = data.property_id or user.property_id
    validate_tenant_access(user, property_id, resource="documents")

    if data.visibility == DocumentVisibility.DEPARTMENT and data.department_id is None and user.department_id is None:
        raise ValidationError("Department documents need a department")

    document = Document(
        title=data.title,
        description=data.description,
        content=data.content,
        category=data.category,
        doc_type=data.doc_type,
        visibility=data.visibility,
        property_id=property_id,
        department_id=data.department_id or user.department_id,
        requires_acknowledgment=data.requires_acknowledgment,
        status=DocumentStatus.DRAFT,
        created_by=user.id,
    )
    db.add(document)
    db.commit()

    audit_logger.log_entity_changed(
        actor_id=str(user.id),
        entity_type="document",
        entity_id=str(document.id),
        action="create",
    )
    return document


def update_document(db: Session, user: Profile, document_id: UUID, data: DocumentUpdate) -> Document:
    """
    Edit a draft or rejected document. Editing a rejected document sends it
    back to draft; content changes bump the version.
    """
    document = get_document(db, user, document_id)
    if document.created_by != user.id and not _can_review(user):
        raise AuthorizationError("Only the author or a reviewer can edit this document")
    if document.status not in EDITABLE_STATUSES:
        raise ValidationError(
            "Only draft or rejected documents can be edited",
            details={"status": document.status.value},
        )

    changes = data.model_dump(exclude_unset=True)
    for field, value in changes.items():
        setattr(document, field, value)

    if "content" in changes:
        document.version += 1
    if document.status == DocumentStatus.REJECTED:
        validate_transition("document", document.status, DocumentStatus.DRAFT)
        document.status = DocumentStatus.DRAFT

    db.commit()
    audit_logger.log_entity_changed(
        actor_id=str(user.id),
        entity_type="document",
        entity_id=str(document.id),
        action="update",
        changes={k: str(v) for k, v in changes.items()},
    )
    return document


# ==========================
# Review Lifecycle
# ==========================

def _reviewers(db: Session, document: Document) -> List[UUID]:
    query = db.query(Profile.id).filter(Profile.role == REVIEWER_ROLE, Profile.is_active.is_(True))
    if document.property_id is not None:
        query = query.filter(Profile.property_id == document.property_id)
    return [row.id for row in query.all()]


def submit_for_review(db: Session, user: Profile, document_id: UUID) -> Document:
    document = get_document(db, user, document_id)
    if document.created_by != user.id and not _can_review(user):
        raise AuthorizationError("Only the author can submit this document")

    validate_transition("document", document.status, DocumentStatus.PENDING_REVIEW)
    document.status = DocumentStatus.PENDING_REVIEW
    db.add(DocumentApproval(document_id=document.id, approver_role=REVIEWER_ROLE, status=ApprovalStatus.PENDING))

    notify_users(
        db,
        _reviewers(db, document),
        NotificationType.APPROVAL_REQUIRED,
        "Document Awaiting Review",
        f'Document "{document.title}" has been submitted for your review.',
        link=f"/knowledge/documents/{document.id}",
        entity_type="document",
        entity_id=document.id,
    )
    db.commit()

    logger.info("Document submitted for review", extra={"document_id": str(document.id)})
    return document


def review_document(
    db: Session,
    user: Profile,
    document_id: UUID,
    approve: bool,
    comment: Optional[str] = None,
) -> Document:
    """Approve or reject a pending document and tell its author."""
    document = get_document(db, user, document_id)
    new_status = DocumentStatus.APPROVED if approve else DocumentStatus.REJECTED
    validate_transition("document", document.status, new_status)

    approval = next((a for a in document.approvals if a.status == ApprovalStatus.PENDING), None)
    if approval is None:
        approval = DocumentApproval(document_id=document.id, approver_role=REVIEWER_ROLE)
        db.add(approval)
    approval.status = ApprovalStatus.APPROVED if approve else ApprovalStatus.REJECTED
    approval.reviewed_by = user.id
    approval.reviewed_at = utcnow()
    approval.comment = comment

    document.status = new_status

    if document.created_by is not None:
        verdict = "approved" if approve else "rejected"
        create_notification(
            db,
            document.created_by,
            NotificationType.SYSTEM,
            f"Document {verdict.capitalize()}",
            f'Your document "{document.title}" was {verdict}.',
            link=f"/knowledge/documents/{document.id}",
            entity_type="document",
            entity_id=document.id,
            metadata={"comment": comment} if comment else None,
        )
    db.commit()

    audit_logger.log_entity_changed(
        actor_id=str(user.id),
        entity_type="document",
        entity_id=str(document.id),
        action="review",
        changes={"status": new_status.value},
    )
    return document


def publish_document(db: Session, user: Profile, document_id: UUID) -> Document:
    document = get_document(db, user, document_id)
    validate_transition("document", document.status, DocumentStatus.PUBLISHED)
    document.status = DocumentStatus.PUBLISHED
    document.published_at = utcnow()
    db.commit()

    audit_logger.log_entity_changed(
        actor_id=str(user.id),
        entity_type="document",
        entity_id=str(document.id),
        action="publish",
    )
    return document


def archive_document(db: Session, user: Profile, document_id: UUID) -> Document:
    document = get_document(db, user, document_id)
    validate_transition("document", document.status, DocumentStatus.ARCHIVED)
    document.status = DocumentStatus.ARCHIVED
    db.commit()
    return document


def acknowledge_document(db: Session, user: Profile, document_id: UUID) -> DocumentAcknowledgment:
    """Record that the user read a published document. Repeat calls are no-ops."""
    document = get_document(db, user, document_id)
    if document.status != DocumentStatus.PUBLISHED:
        raise ValidationError("Only published documents can be acknowledged")

    existing = (
        db.query(DocumentAcknowledgment)
        .filter(DocumentAcknowledgment.document_id == document.id, DocumentAcknowledgment.user_id == user.id)
        .first()
    )
    if existing is not None:
        return existing

    ack = DocumentAcknowledgment(document_id=document.id, user_id=user.id)
    db.add(ack)
    db.commit()
    return ack


# ==========================
# Question Bank
# ==========================

def list_questions(
    db: Session,
    user: Profile,
    document_id: Optional[UUID] = None,
    module_id: Optional[UUID] = None,
) -> List[dict]:
    query = db.query(KnowledgeQuestion)
    if document_id is not None:
        query = query.filter(KnowledgeQuestion.document_id == document_id)
    if module_id is not None:
        query = query.filter(KnowledgeQuestion.module_id == module_id)

    include_answer = has_permission(user.role, "training", "create")
    return [q.to_dict(include_answer=include_answer) for q in query.order_by(KnowledgeQuestion.created_at).all()]


def create_question(db: Session, user: Profile, data: QuestionCreate) -> KnowledgeQuestion:
    if data.document_id is not None:
        get_document(db, user, data.document_id)

    answer = data.correct_answer
    if data.question_type == QuestionType.TRUE_FALSE:
        answer = answer.lower()

    question = KnowledgeQuestion(
        document_id=data.document_id,
        module_id=data.module_id,
        question_type=data.question_type,
        prompt=data.prompt,
        options=list(data.options),
        correct_answer=answer,
        explanation=data.explanation,
        difficulty=data.difficulty,
        created_by=user.id,
    )
    db.add(question)
    db.commit()
    return question


def check_answer(question: KnowledgeQuestion, answer: str) -> bool:
    given = answer.strip()
    expected = question.correct_answer.strip()
    if question.question_type in CASE_INSENSITIVE_TYPES:
        return given.lower() == expected.lower()
    return given == expected


def answer_question(db: Session, question_id: UUID, answer: str) -> dict:
    question = db.get(KnowledgeQuestion, question_id)
    if question is None:
        raise NotFoundError("Question", str(question_id))

    return {
        "question_id": str(question.id),
        "correct": check_answer(question, answer),
        "correct_answer": question.correct_answer,
        "explanation": question.explanation,
    }
