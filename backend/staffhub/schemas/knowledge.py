"""
Knowledge Base Schemas
======================
"""

from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, model_validator

from staffhub.core.enums import DocumentType, DocumentVisibility, QuestionType


class DocumentCreate(BaseModel):
    title: str = Field(..., min_length=2, max_length=255)
    description: Optional[str] = None
    content: Optional[str] = None
    category: Optional[str] = Field(default=None, max_length=100)
    doc_type: DocumentType = DocumentType.OTHER
    visibility: DocumentVisibility = DocumentVisibility.PROPERTY
    property_id: Optional[UUID] = None
    department_id: Optional[UUID] = None
    requires_acknowledgment: bool = False


class DocumentUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=2, max_length=255)
    description: Optional[str] = None
    content: Optional[str] = None
    category: Optional[str] = Field(default=None, max_length=100)
    doc_type: Optional[DocumentType] = None
    visibility: Optional[DocumentVisibility] = None
    department_id: Optional[UUID] = None
    requires_acknowledgment: Optional[bool] = None


class DocumentReviewRequest(BaseModel):
    approve: bool = Field(..., description="True to approve, False to reject")
    comment: Optional[str] = Field(default=None, max_length=2000)


class QuestionCreate(BaseModel):
    document_id: Optional[UUID] = None
    module_id: Optional[UUID] = None
    question_type: QuestionType
    prompt: str = Field(..., min_length=3)
    options: List[str] = Field(default_factory=list)
    correct_answer: str = Field(..., min_length=1)
    explanation: Optional[str] = None
    difficulty: str = Field(default="medium", pattern="^(easy|medium|hard)$")

    @model_validator(mode="after")
    def check_shape(self) -> "QuestionCreate":
        if self.question_type == QuestionType.MCQ:
            if len(self.options) < 2:
                raise ValueError("multiple choice questions need at least two options")
            if self.correct_answer not in self.options:
                raise ValueError("correct_answer must be one of the options")
        if self.question_type == QuestionType.TRUE_FALSE and self.correct_answer.lower() not in ("true", "false"):
            raise ValueError("true/false questions need a 'true' or 'false' answer")
        return self


class QuestionAnswerRequest(BaseModel):
    answer: str = Field(..., min_length=1)
