"""
Knowledge Base Models
=====================

Documents (SOPs, policies, guides) with a review workflow, role-based
approvals, read acknowledgements, and the question bank used for quizzes.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from sqlalchemy import String, Boolean, Integer, DateTime, ForeignKey, Text, JSON, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship, Mapped, mapped_column

from staffhub.core.enums import (
    ApprovalStatus,
    DocumentStatus,
    DocumentType,
    DocumentVisibility,
    QuestionType,
)
from staffhub.db.base import Base, enum_column, utcnow
from staffhub.models.role_enum import Role


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


class Document(Base):
    """Knowledge base document; doc_type "sop" marks standard operating procedures."""

    __tablename__ = "documents"

    def __init__(self, **kwargs):
        kwargs.setdefault("status", DocumentStatus.DRAFT)
        kwargs.setdefault("doc_type", DocumentType.OTHER)
        kwargs.setdefault("visibility", DocumentVisibility.PROPERTY)
        kwargs.setdefault("requires_acknowledgment", False)
        kwargs.setdefault("version", 1)
        super().__init__(**kwargs)

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    content: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    category: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    doc_type: Mapped[DocumentType] = mapped_column(enum_column(DocumentType), nullable=False, default=DocumentType.OTHER)
    status: Mapped[DocumentStatus] = mapped_column(
        enum_column(DocumentStatus),
        nullable=False,
        default=DocumentStatus.DRAFT,
        index=True,
    )
    visibility: Mapped[DocumentVisibility] = mapped_column(
        enum_column(DocumentVisibility),
        nullable=False,
        default=DocumentVisibility.PROPERTY,
    )
    property_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("properties.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    department_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("departments.id", ondelete="SET NULL"),
        nullable=True,
    )
    requires_acknowledgment: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    created_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("profiles.id", ondelete="SET NULL"),
        nullable=True,
    )
    published_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        onupdate=utcnow,
        nullable=False,
    )

    approvals: Mapped[List["DocumentApproval"]] = relationship(
        "DocumentApproval",
        back_populates="document",
        cascade="all, delete-orphan",
    )

    @property
    def is_sop(self) -> bool:
        return self.doc_type == DocumentType.SOP

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "title": self.title,
            "description": self.description,
            "content": self.content,
            "category": self.category,
            "doc_type": self.doc_type.value,
            "status": self.status.value,
            "visibility": self.visibility.value,
            "property_id": str(self.property_id) if self.property_id else None,
            "department_id": str(self.department_id) if self.department_id else None,
            "requires_acknowledgment": self.requires_acknowledgment,
            "version": self.version,
            "created_by": str(self.created_by) if self.created_by else None,
            "published_at": _iso(self.published_at),
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }


class DocumentApproval(Base):
    """Review slot for a document, addressed to a role rather than a person."""

    __tablename__ = "document_approvals"

    def __init__(self, **kwargs):
        kwargs.setdefault("status", ApprovalStatus.PENDING)
        super().__init__(**kwargs)

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    document_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("documents.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    approver_role: Mapped[Role] = mapped_column(enum_column(Role), nullable=False)
    status: Mapped[ApprovalStatus] = mapped_column(
        enum_column(ApprovalStatus),
        nullable=False,
        default=ApprovalStatus.PENDING,
    )
    reviewed_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("profiles.id", ondelete="SET NULL"),
        nullable=True,
    )
    comment: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    reviewed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        nullable=False,
    )

    document: Mapped["Document"] = relationship("Document", back_populates="approvals")

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "document_id": str(self.document_id),
            "approver_role": self.approver_role.value,
            "status": self.status.value,
            "reviewed_by": str(self.reviewed_by) if self.reviewed_by else None,
            "comment": self.comment,
            "reviewed_at": _iso(self.reviewed_at),
            "created_at": _iso(self.created_at),
        }


class DocumentAcknowledgment(Base):
    """Record that a profile has read and acknowledged a document."""

    __tablename__ = "document_acknowledgments"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    document_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("documents.id", ondelete="CASCADE"),
        nullable=False,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
    )
    acknowledged_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)

    __table_args__ = (
        UniqueConstraint("document_id", "user_id", name="uq_document_ack_user"),
    )


class KnowledgeQuestion(Base):
    """Quiz question tied to a document or a training module."""

    __tablename__ = "knowledge_questions"

    def __init__(self, **kwargs):
        kwargs.setdefault("options", [])
        kwargs.setdefault("difficulty", "medium")
        super().__init__(**kwargs)

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    document_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("documents.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    module_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("training_modules.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    question_type: Mapped[QuestionType] = mapped_column(enum_column(QuestionType), nullable=False)
    prompt: Mapped[str] = mapped_column(Text, nullable=False)
    options: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    correct_answer: Mapped[str] = mapped_column(Text, nullable=False)
    explanation: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    difficulty: Mapped[str] = mapped_column(String(20), nullable=False, default="medium")
    created_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("profiles.id", ondelete="SET NULL"),
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        nullable=False,
    )

    def to_dict(self, include_answer: bool = False) -> dict:
        data = {
            "id": str(self.id),
            "document_id": str(self.document_id) if self.document_id else None,
            "module_id": str(self.module_id) if self.module_id else None,
            "question_type": self.question_type.value,
            "prompt": self.prompt,
            "options": list(self.options or []),
            "difficulty": self.difficulty,
        }
        if include_answer:
            data["correct_answer"] = self.correct_answer
            data["explanation"] = self.explanation
        return data
