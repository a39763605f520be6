"""
Model Package Initialization
============================

Ensures models are properly registered when imported by the application.

All SQLAlchemy ORM models are exported from this module.

Usage:
    from staffhub.models import Profile, Property, Request, Role
"""

from .role_enum import Role
from .organization import Property, Department
from .user import Profile
from .request import Request, RequestStep, RequestComment, RequestEvent
from .hr import LeaveRequest, Promotion, Transfer
from .notification import (
    Notification,
    NotificationBatch,
    NotificationQueueItem,
    EmailOutbox,
    ScheduledReminder,
)
from .training import TrainingModule, TrainingAssignment, TrainingProgress, TrainingCertificate
from .knowledge import Document, DocumentApproval, DocumentAcknowledgment, KnowledgeQuestion
from .communication import Announcement, AnnouncementRead, Message
from .task import Task, TaskTemplate
from .maintenance import MaintenanceTicket, MaintenanceSchedule

__all__ = [
    "Role",
    "Property",
    "Department",
    "Profile",
    "Request",
    "RequestStep",
    "RequestComment",
    "RequestEvent",
    "LeaveRequest",
    "Promotion",
    "Transfer",
    "Notification",
    "NotificationBatch",
    "NotificationQueueItem",
    "EmailOutbox",
    "ScheduledReminder",
    "TrainingModule",
    "TrainingAssignment",
    "TrainingProgress",
    "TrainingCertificate",
    "Document",
    "DocumentApproval",
    "DocumentAcknowledgment",
    "KnowledgeQuestion",
    "Announcement",
    "AnnouncementRead",
    "Message",
    "Task",
    "TaskTemplate",
    "MaintenanceTicket",
    "MaintenanceSchedule",
]
