"""
Enumeration Module
==================

Defines the status and type vocabularies used across the application.
"""

from enum import Enum


# ==========================
# Approval Requests
# ==========================

class RequestStatus(str, Enum):
    DRAFT = "draft"
    PENDING_SUPERVISOR_APPROVAL = "pending_supervisor_approval"
    PENDING_HR_REVIEW = "pending_hr_review"
    APPROVED = "approved"
    REJECTED = "rejected"
    RETURNED_FOR_CORRECTION = "returned_for_correction"
    CLOSED = "closed"
    CANCELLED = "cancelled"


PENDING_REQUEST_STATUSES = (
    RequestStatus.PENDING_SUPERVISOR_APPROVAL,
    RequestStatus.PENDING_HR_REVIEW,
)

# Returned requests wait on the requester and may still be withdrawn
CANCELLABLE_REQUEST_STATUSES = PENDING_REQUEST_STATUSES + (RequestStatus.RETURNED_FOR_CORRECTION,)

TERMINAL_REQUEST_STATUSES = (
    RequestStatus.APPROVED,
    RequestStatus.REJECTED,
    RequestStatus.CLOSED,
    RequestStatus.CANCELLED,
)


class RequestEntityType(str, Enum):
    LEAVE_REQUEST = "leave_request"
    PROMOTION = "promotion"
    TRANSFER = "transfer"


class StepStatus(str, Enum):
    WAITING = "waiting"
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    RETURNED = "returned"
    SKIPPED = "skipped"


class RequestAction(str, Enum):
    APPROVE = "approve"
    REJECT = "reject"
    RETURN = "return"
    FORWARD = "forward"
    CLOSE = "close"
    ADD_COMMENT = "add_comment"


class RequestEventType(str, Enum):
    CREATED = "created"
    SUBMITTED = "submitted"
    STATUS_CHANGED = "status_changed"
    APPROVED = "approved"
    REJECTED = "rejected"
    FORWARDED = "forwarded"
    RETURNED_FOR_CORRECTION = "returned_for_correction"
    CLOSED = "closed"
    CANCELLED = "cancelled"
    COMMENT_ADDED = "comment_added"
    UPDATED = "updated"


class CommentVisibility(str, Enum):
    ALL = "all"
    INTERNAL = "internal"


# ==========================
# HR Entities
# ==========================

class LeaveType(str, Enum):
    ANNUAL = "annual"
    SICK = "sick"
    UNPAID = "unpaid"
    EMERGENCY = "emergency"
    MATERNITY = "maternity"
    PATERNITY = "paternity"
    OTHER = "other"


class LeaveStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


class HRChangeStatus(str, Enum):
    """Lifecycle of promotions and transfers."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


# ==========================
# Notifications
# ==========================

class NotificationType(str, Enum):
    REQUEST_SUBMITTED = "request_submitted"
    REQUEST_APPROVED = "request_approved"
    REQUEST_REJECTED = "request_rejected"
    REQUEST_RETURNED = "request_returned"
    REQUEST_CLOSED = "request_closed"
    COMMENT_ADDED = "comment_added"
    APPROVAL_REQUIRED = "approval_required"
    TRAINING_ASSIGNED = "training_assigned"
    TRAINING_DEADLINE = "training_deadline"
    ANNOUNCEMENT = "announcement"
    MESSAGE = "message"
    TASK_ASSIGNED = "task_assigned"
    TASK_OVERDUE = "task_overdue"
    SYSTEM = "system"


class BatchStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"


class QueueItemStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SENT = "sent"
    FAILED = "failed"


class EmailStatus(str, Enum):
    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"


# ==========================
# Training
# ==========================

class TrainingStatus(str, Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    EXPIRED = "expired"


class AssignmentTarget(str, Enum):
    USER = "user"
    DEPARTMENT = "department"
    PROPERTY = "property"
    ALL = "all"


# ==========================
# Knowledge Base
# ==========================

class DocumentStatus(str, Enum):
    DRAFT = "DRAFT"
    PENDING_REVIEW = "PENDING_REVIEW"
    APPROVED = "APPROVED"
    PUBLISHED = "PUBLISHED"
    REJECTED = "REJECTED"
    ARCHIVED = "ARCHIVED"


class DocumentType(str, Enum):
    SOP = "sop"
    POLICY = "policy"
    GUIDE = "guide"
    FORM = "form"
    OTHER = "other"


class DocumentVisibility(str, Enum):
    GLOBAL = "global"
    PROPERTY = "property"
    DEPARTMENT = "department"


class ApprovalStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class QuestionType(str, Enum):
    MCQ = "mcq"
    TRUE_FALSE = "true_false"
    FILL_BLANK = "fill_blank"


# ==========================
# Communication
# ==========================

class AnnouncementPriority(str, Enum):
    NORMAL = "normal"
    IMPORTANT = "important"
    CRITICAL = "critical"


class MessageType(str, Enum):
    DIRECT = "direct"
    BROADCAST = "broadcast"
    SYSTEM = "system"


class MessageStatus(str, Enum):
    SENT = "sent"
    READ = "read"
    ARCHIVED = "archived"


# ==========================
# Tasks & Maintenance
# ==========================

class TaskStatus(str, Enum):
    OPEN = "open"
    IN_PROGRESS = "in_progress"
    ON_HOLD = "on_hold"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class TaskPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class RecurrenceType(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class TicketStatus(str, Enum):
    OPEN = "open"
    IN_PROGRESS = "in_progress"
    PENDING_PARTS = "pending_parts"
    ON_HOLD = "on_hold"
    COMPLETED = "completed"
    CLOSED = "closed"
    CANCELLED = "cancelled"


class TicketPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class TicketCategory(str, Enum):
    PLUMBING = "plumbing"
    ELECTRICAL = "electrical"
    HVAC = "hvac"
    APPLIANCE = "appliance"
    STRUCTURAL = "structural"
    COSMETIC = "cosmetic"
    SAFETY = "safety"
    GENERAL = "general"
    OTHER = "other"


class ReminderType(str, Enum):
    ESCALATION = "escalation"
    DEADLINE = "deadline"
    OVERDUE_DAILY = "overdue_daily"
    ONE_DAY_BEFORE = "1_days_before"
    THREE_DAYS_BEFORE = "3_days_before"


class MaintenanceFrequency(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"
