"""
Preventive Maintenance Job
==========================

Raises a maintenance ticket for every active MaintenanceSchedule whose
next_run_at has passed, then moves the schedule to its next occurrence.
Occurrences missed while the job was not running are skipped, so a late
run raises one ticket per schedule.
"""

from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from staffhub.core.enums import MaintenanceFrequency, TicketStatus
from staffhub.core.logging import audit_logger, get_logger, log_execution_time
from staffhub.db.base import as_utc, utcnow
from staffhub.jobs.template_tasks import add_months
from staffhub.models.maintenance import MaintenanceSchedule, MaintenanceTicket
from staffhub.services.maintenance_service import next_ticket_no

logger = get_logger(__name__)

FREQUENCY_MONTHS = {
    MaintenanceFrequency.MONTHLY: 1,
    MaintenanceFrequency.QUARTERLY: 3,
    MaintenanceFrequency.YEARLY: 12,
}


def next_occurrence(frequency: MaintenanceFrequency, current: datetime) -> datetime:
    if frequency == MaintenanceFrequency.DAILY:
        return current + timedelta(days=1)
    if frequency == MaintenanceFrequency.WEEKLY:
        return current + timedelta(weeks=1)
    return add_months(current, FREQUENCY_MONTHS[frequency])


def next_run_after(schedule: MaintenanceSchedule, now: datetime) -> datetime:
    """First occurrence after now, keeping the schedule's original cadence."""
    # Months count from the anchor; add_months clamps month ends
    anchor = as_utc(schedule.next_run_at)
    candidate = anchor
    steps = 0
    while candidate <= now:
        steps += 1
        if schedule.frequency in FREQUENCY_MONTHS:
            candidate = add_months(anchor, FREQUENCY_MONTHS[schedule.frequency] * steps)
        else:
            candidate = next_occurrence(schedule.frequency, candidate)
    return candidate


def _ticket_for(db: Session, schedule: MaintenanceSchedule) -> MaintenanceTicket:
    return MaintenanceTicket(
        ticket_no=next_ticket_no(db),
        title=f"[Scheduled] {schedule.title}",
        description=schedule.description or f"Automated maintenance task from schedule: {schedule.title}",
        property_id=schedule.property_id,
        category=schedule.category,
        priority=schedule.priority,
        status=TicketStatus.OPEN,
        assigned_to_id=schedule.assigned_to_id,
        reported_by_id=schedule.created_by_id,
    )


@log_execution_time(logger, "preventive_maintenance")
def run_preventive_maintenance(db: Session, now: Optional[datetime] = None) -> dict:
    """
    Returns:
        {success, processed, results} with one result per due schedule
    """
    now = now or utcnow()
    schedules = (
        db.query(MaintenanceSchedule)
        .filter(MaintenanceSchedule.is_active.is_(True), MaintenanceSchedule.next_run_at <= now)
        .order_by(MaintenanceSchedule.next_run_at.asc())
        .all()
    )

    results = []
    for schedule in schedules:
        schedule_id = str(schedule.id)
        try:
            ticket = _ticket_for(db, schedule)
            db.add(ticket)
            schedule.last_generated_at = now
            schedule.next_run_at = next_run_after(schedule, now)
            db.commit()
            results.append({"schedule_id": schedule_id, "status": "success", "ticket_no": ticket.ticket_no})
        except Exception as e:
            db.rollback()
            logger.error(
                "Preventive maintenance ticket failed",
                extra={"schedule_id": schedule_id, "error": str(e)}
            )
            results.append({"schedule_id": schedule_id, "status": "failed", "error": str(e)})

    result = {"success": True, "processed": len(schedules), "results": results}
    audit_logger.log_job_run("preventive_maintenance", {"processed": len(schedules)})
    return result
