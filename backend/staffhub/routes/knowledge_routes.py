"""
Knowledge Routes
================

SOP and policy documents with their review lifecycle, plus the question
bank used for quizzes.

Lifecycle:
    draft -> pending_review -> approved | rejected -> published -> archived
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from staffhub.core.dependencies.auth import get_current_user
from staffhub.core.dependencies.rbac import require_permission
from staffhub.core.enums import DocumentStatus, DocumentType
from staffhub.db.session import get_db
from staffhub.models.user import Profile
from staffhub.schemas import (
    DocumentCreate,
    DocumentReviewRequest,
    DocumentUpdate,
    ErrorResponse,
    QuestionAnswerRequest,
    QuestionCreate,
)
from staffhub.services import knowledge_service

router = APIRouter(
    prefix="/knowledge",
    tags=["Knowledge Base"],
    responses={
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Insufficient permissions"},
        404: {"model": ErrorResponse, "description": "Resource not found"},
    },
)


# =====================================================
# DOCUMENTS
# =====================================================

@router.get(
    "/documents",
    summary="List Documents",
    description="Published documents in scope, plus the caller's own drafts. Reviewers also see pending documents.",
)
def list_documents(
    status: Optional[DocumentStatus] = Query(None),
    doc_type: Optional[DocumentType] = Query(None),
    search: Optional[str] = Query(None, max_length=200),
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    documents = knowledge_service.list_documents(db, current_user, status, doc_type, search)
    return {"documents": [d.to_dict() for d in documents], "total": len(documents)}


@router.post("/documents", status_code=status.HTTP_201_CREATED, summary="Create Document")
def create_document(
    data: DocumentCreate,
    current_user: Profile = Depends(require_permission("documents", "create")),
    db: Session = Depends(get_db),
) -> dict:
    return knowledge_service.create_document(db, current_user, data).to_dict()


@router.get("/documents/{document_id}", summary="Get Document")
def get_document(
    document_id: UUID,
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    document = knowledge_service.get_document(db, current_user, document_id)
    return knowledge_service.document_detail(db, current_user, document)


@router.patch("/documents/{document_id}", summary="Update Document")
def update_document(
    document_id: UUID,
    data: DocumentUpdate,
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    return knowledge_service.update_document(db, current_user, document_id, data).to_dict()


@router.post("/documents/{document_id}/submit", summary="Submit for Review")
def submit_document(
    document_id: UUID,
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    return knowledge_service.submit_for_review(db, current_user, document_id).to_dict()


@router.post(
    "/documents/{document_id}/review",
    summary="Review Document",
    responses={400: {"model": ErrorResponse, "description": "Document is not pending review"}},
)
def review_document(
    document_id: UUID,
    body: DocumentReviewRequest,
    current_user: Profile = Depends(require_permission("documents", "approve")),
    db: Session = Depends(get_db),
) -> dict:
    document = knowledge_service.review_document(db, current_user, document_id, body.approve, body.comment)
    return document.to_dict()


@router.post("/documents/{document_id}/publish", summary="Publish Document")
def publish_document(
    document_id: UUID,
    current_user: Profile = Depends(require_permission("documents", "approve")),
    db: Session = Depends(get_db),
) -> dict:
    return knowledge_service.publish_document(db, current_user, document_id).to_dict()


@router.post("/documents/{document_id}/archive", summary="Archive Document")
def archive_document(
    document_id: UUID,
    current_user: Profile = Depends(require_permission("documents", "approve")),
    db: Session = Depends(get_db),
) -> dict:
    return knowledge_service.archive_document(db, current_user, document_id).to_dict()


@router.post("/documents/{document_id}/acknowledge", summary="Acknowledge Document")
def acknowledge_document(
    document_id: UUID,
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    ack = knowledge_service.acknowledge_document(db, current_user, document_id)
    return {
        "document_id": str(ack.document_id),
        "acknowledged_at": ack.acknowledged_at.isoformat() if ack.acknowledged_at else None,
    }


# =====================================================
# QUESTION BANK
# =====================================================

@router.get(
    "/questions",
    summary="List Questions",
    description="Correct answers are only included for users who can author training.",
)
def list_questions(
    document_id: Optional[UUID] = Query(None),
    module_id: Optional[UUID] = Query(None),
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    questions = knowledge_service.list_questions(db, current_user, document_id, module_id)
    return {"questions": questions, "total": len(questions)}


@router.post("/questions", status_code=status.HTTP_201_CREATED, summary="Create Question")
def create_question(
    data: QuestionCreate,
    current_user: Profile = Depends(require_permission("training", "create")),
    db: Session = Depends(get_db),
) -> dict:
    return knowledge_service.create_question(db, current_user, data).to_dict(include_answer=True)


@router.post("/questions/{question_id}/answer", summary="Check Answer")
def answer_question(
    question_id: UUID,
    body: QuestionAnswerRequest,
    current_user: Profile = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    return knowledge_service.answer_question(db, question_id, body.answer)
