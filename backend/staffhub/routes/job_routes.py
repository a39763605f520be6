"""
Job Routes
==========

Endpoints called by the external scheduler. Every route requires
`Authorization: Bearer <SERVICE_API_KEY>`; a missing or wrong key answers
401 {"error": "Unauthorized"}.

Job failures answer {"success": false, "error": ...}:
    ValidationError -> 400
    NotFoundError   -> 404
    anything else   -> 500
"""

from typing import Callable

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from staffhub.core.dependencies.auth import require_service_key
from staffhub.core.exceptions import NotFoundError, ValidationError
from staffhub.core.logging import audit_logger, get_logger
from staffhub.db.session import get_db
from staffhub.jobs.daily_workflows import run_daily_workflows
from staffhub.jobs.email_dispatch import run_email_dispatch
from staffhub.jobs.escalation import run_approval_escalation
from staffhub.jobs.notification_batches import run_notification_batches
from staffhub.jobs.preventive_maintenance import run_preventive_maintenance
from staffhub.jobs.template_tasks import run_template_tasks
from staffhub.jobs.ticket_triage import run_ticket_triage
from staffhub.jobs.training_notifications import run_training_notifications, run_weekly_report
from staffhub.schemas import NotificationBatchRequest, TriageRequest
from staffhub.services.email_service import EmailClient
from staffhub.services.llm_client import LLMClient

logger = get_logger(__name__)

router = APIRouter(
    prefix="/jobs",
    tags=["Jobs"],
    dependencies=[Depends(require_service_key)],
    responses={401: {"description": "Missing or invalid service key"}},
)


def get_llm_client() -> LLMClient:
    return LLMClient()


def get_email_client() -> EmailClient:
    return EmailClient()


def _job_failure(job: str, db: Session, exc: Exception) -> JSONResponse:
    db.rollback()
    if isinstance(exc, ValidationError):
        code = status.HTTP_400_BAD_REQUEST
    elif isinstance(exc, NotFoundError):
        code = status.HTTP_404_NOT_FOUND
    else:
        code = status.HTTP_500_INTERNAL_SERVER_ERROR
        logger.exception("Job failed", extra={"job": job})

    message = getattr(exc, "message", None) or str(exc)
    audit_logger.log_job_run(job, {"success": False, "error": message})
    return JSONResponse(status_code=code, content={"success": False, "error": message})


def _run(job: str, db: Session, func: Callable[[], dict]):
    try:
        result = func()
    except Exception as e:
        return _job_failure(job, db, e)
    audit_logger.log_job_run(job, result)
    return result


@router.post("/approval-escalation", summary="Escalate Overdue Approvals")
def approval_escalation(db: Session = Depends(get_db)):
    return _run("approval_escalation", db, lambda: run_approval_escalation(db))


@router.post("/generate-template-tasks", summary="Generate Template Tasks")
def generate_template_tasks(db: Session = Depends(get_db)):
    return _run("generate_template_tasks", db, lambda: run_template_tasks(db))


@router.post("/training-notifications", summary="Training Reminders")
def training_notifications(db: Session = Depends(get_db)):
    return _run("training_notifications", db, lambda: run_training_notifications(db))


@router.post("/weekly-manager-report", summary="Weekly Manager Report")
def weekly_manager_report(db: Session = Depends(get_db)):
    return _run("weekly_manager_report", db, lambda: run_weekly_report(db))


@router.post("/preventive-maintenance", summary="Preventive Maintenance Tickets")
def preventive_maintenance(db: Session = Depends(get_db)):
    return _run("preventive_maintenance", db, lambda: run_preventive_maintenance(db))


@router.post("/daily-workflows", summary="Daily Reminder Workflows")
def daily_workflows(db: Session = Depends(get_db)):
    return _run("daily_workflows", db, lambda: run_daily_workflows(db))


@router.post("/notification-batches", summary="Notification Batches")
def notification_batches(
    payload: NotificationBatchRequest,
    db: Session = Depends(get_db),
):
    return _run("notification_batches", db, lambda: run_notification_batches(db, payload))


@router.post(
    "/auto-triage-ticket",
    summary="AI Ticket Triage",
    description="Ask the language model for priority, category and an estimate for one ticket.",
)
async def auto_triage_ticket(
    payload: TriageRequest,
    db: Session = Depends(get_db),
    client: LLMClient = Depends(get_llm_client),
):
    try:
        result = await run_ticket_triage(db, payload.ticket_id, client)
    except Exception as e:
        return _job_failure("auto_triage_ticket", db, e)
    audit_logger.log_job_run("auto_triage_ticket", result)
    return result


@router.post("/send-emails", summary="Dispatch Email Outbox")
async def send_emails(
    db: Session = Depends(get_db),
    client: EmailClient = Depends(get_email_client),
):
    try:
        result = await run_email_dispatch(db, client)
    except Exception as e:
        return _job_failure("send_emails", db, e)
    audit_logger.log_job_run("send_emails", result)
    return result
