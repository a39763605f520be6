"""
Schemas Package Initialization
==============================

Exports all Pydantic schemas for the application.

Usage:
    from staffhub.schemas import LoginRequest, TokenResponse, UserResponse
"""

# Auth schemas
from staffhub.schemas.auth import (
    LoginRequest,
    TokenResponse,
    RefreshTokenRequest,
    LogoutResponse,
    PasswordChangeRequest,
    ErrorResponse,
)

# User schemas
from staffhub.schemas.user import (
    UserCreate,
    UserUpdate,
    UserResponse,
    UserListResponse,
    CurrentUserResponse,
    ReportingLineUpdate,
)

# Organization schemas
from staffhub.schemas.organization import (
    PropertyCreate,
    PropertyUpdate,
    DepartmentCreate,
    DepartmentUpdate,
)

# Workflow & HR schemas
from staffhub.schemas.request import RequestActionBody, RequestCancelBody, RequestDetailsUpdate
from staffhub.schemas.hr import LeaveRequestCreate, PromotionCreate, TransferCreate

# Content schemas
from staffhub.schemas.training import (
    TrainingModuleCreate,
    TrainingModuleUpdate,
    TrainingAssignRequest,
    TrainingCompleteRequest,
)
from staffhub.schemas.knowledge import (
    DocumentCreate,
    DocumentUpdate,
    DocumentReviewRequest,
    QuestionCreate,
    QuestionAnswerRequest,
)
from staffhub.schemas.communication import (
    AnnouncementCreate,
    AnnouncementUpdate,
    MessageCreate,
    MessageReply,
)

# Operations schemas
from staffhub.schemas.task import (
    TaskCreate,
    TaskUpdate,
    TaskStatusChange,
    TaskTemplateCreate,
    TaskTemplateUpdate,
    TicketCreate,
    TicketUpdate,
    TicketStatusChange,
)
from staffhub.schemas.jobs import TriageRequest, NotificationBatchRequest

__all__ = [
    # Auth
    "LoginRequest",
    "TokenResponse",
    "RefreshTokenRequest",
    "LogoutResponse",
    "PasswordChangeRequest",
    "ErrorResponse",
    # User
    "UserCreate",
    "UserUpdate",
    "UserResponse",
    "UserListResponse",
    "CurrentUserResponse",
    "ReportingLineUpdate",
    # Organization
    "PropertyCreate",
    "PropertyUpdate",
    "DepartmentCreate",
    "DepartmentUpdate",
    # Workflow & HR
    "RequestActionBody",
    "RequestCancelBody",
    "RequestDetailsUpdate",
    "LeaveRequestCreate",
    "PromotionCreate",
    "TransferCreate",
    # Content
    "TrainingModuleCreate",
    "TrainingModuleUpdate",
    "TrainingAssignRequest",
    "TrainingCompleteRequest",
    "DocumentCreate",
    "DocumentUpdate",
    "DocumentReviewRequest",
    "QuestionCreate",
    "QuestionAnswerRequest",
    "AnnouncementCreate",
    "AnnouncementUpdate",
    "MessageCreate",
    "MessageReply",
    # Operations
    "TaskCreate",
    "TaskUpdate",
    "TaskStatusChange",
    "TaskTemplateCreate",
    "TaskTemplateUpdate",
    "TicketCreate",
    "TicketUpdate",
    "TicketStatusChange",
    "TriageRequest",
    "NotificationBatchRequest",
]
