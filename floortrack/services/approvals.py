# floortrack/services/approvals.py
"""
Supervisor review of work entries.

A supervisor may act on an entry only when the entry's technician AND the
entry's operation both belong to the supervisor's department. Approved and
rejected are not final: a supervisor can re-approve or re-reject at any time,
and cancel an approval back to pending.
"""
import logging
from datetime import date, datetime, timezone
from typing import List, Optional

from fastapi import HTTPException, status
from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from floortrack.core.enums import ActivityType, DepartmentCode, EntryStatus, Role
from floortrack.db import models
from floortrack.services import notifications
from floortrack.services import escalation  # noqa: F401  subscribes the planner escalation
from floortrack.services.events import EntryRejected, dispatcher

logger = logging.getLogger("floortrack.approvals")


def require_department(supervisor: models.Employee) -> DepartmentCode:
    if supervisor.department is None:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Supervisor must have a department assigned")
    return supervisor.department


def check_department_access(entry: models.TimeEntry, department: DepartmentCode):
    technician = entry.technician
    if technician is None or technician.department != department:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access denied. This entry belongs to a technician from a different department.",
        )
    if entry.operation is None or entry.operation.department != department:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access denied. This entry belongs to an operation from a different department.",
        )


def scoped_entries(db: Session, department: DepartmentCode):
    """Work entries whose technician and operation both belong to the department."""
    return (
        db.query(models.TimeEntry)
        .join(models.TimeEntry.technician)
        .join(models.TimeEntry.operation)
        .join(models.Operation.process)
        .filter(
            models.TimeEntry.activity_type == ActivityType.WORK,
            models.Employee.department == department,
            models.Process.department == department,
        )
    )


def _with_details(query):
    return query.options(
        joinedload(models.TimeEntry.technician),
        joinedload(models.TimeEntry.supervisor),
        joinedload(models.TimeEntry.product),
        joinedload(models.TimeEntry.operation),
    )


def list_pending(db: Session, supervisor: models.Employee, technician_id: Optional[int] = None,
                 on_date: Optional[date] = None) -> List[models.TimeEntry]:
    query = scoped_entries(db, require_department(supervisor)).filter(models.TimeEntry.status == EntryStatus.PENDING)
    if technician_id:
        query = query.filter(models.TimeEntry.technician_id == technician_id)
    if on_date:
        query = query.filter(models.TimeEntry.entry_date == on_date)
    return _with_details(query).order_by(models.TimeEntry.entry_date.desc(), models.TimeEntry.created_at.desc()).all()


def list_entries(db: Session, supervisor: models.Employee, status_filter: Optional[EntryStatus] = None,
                 technician_id: Optional[int] = None, start_date: Optional[date] = None,
                 end_date: Optional[date] = None) -> List[models.TimeEntry]:
    query = scoped_entries(db, require_department(supervisor))
    if status_filter:
        query = query.filter(models.TimeEntry.status == status_filter)
    if technician_id:
        query = query.filter(models.TimeEntry.technician_id == technician_id)
    if start_date and end_date:
        query = query.filter(models.TimeEntry.entry_date.between(start_date, end_date))
    return _with_details(query).order_by(models.TimeEntry.entry_date.desc(), models.TimeEntry.created_at.desc()).all()


def get_entry(db: Session, supervisor: models.Employee, entry_id: int) -> models.TimeEntry:
    department = require_department(supervisor)
    entry = db.get(models.TimeEntry, entry_id)
    if entry is None:
        raise HTTPException(status_code=404, detail="Work entry not found")
    check_department_access(entry, department)
    return entry


def approve_entry(db: Session, supervisor: models.Employee, entry_id: int,
                  feedback: Optional[str] = None) -> models.TimeEntry:
    entry = get_entry(db, supervisor, entry_id)
    entry.status = EntryStatus.APPROVED
    entry.supervisor_id = supervisor.id
    entry.supervisor_feedback = feedback or "Approved"
    entry.reviewed_at = datetime.now(timezone.utc)
    notifications.notify(db, entry.technician_id, "Work Entry Approved",
                         f"Your work entry #{entry.id} was approved by supervisor.", entry_id=entry.id)
    db.commit()
    logger.info("Entry approved", extra={"entry_id": entry.id, "supervisor_id": supervisor.id})
    return entry


def reject_entry(db: Session, supervisor: models.Employee, entry_id: int, feedback: Optional[str]) -> models.TimeEntry:
    if not feedback or not feedback.strip():
        raise HTTPException(status_code=400, detail="Feedback is required when rejecting an entry")

    entry = get_entry(db, supervisor, entry_id)
    entry.status = EntryStatus.REJECTED
    entry.supervisor_id = supervisor.id
    entry.supervisor_feedback = feedback
    entry.reviewed_at = datetime.now(timezone.utc)
    notifications.notify(db, entry.technician_id, "Work Entry Rejected",
                         f"Your work entry #{entry.id} was rejected: {feedback}", entry_id=entry.id)
    db.commit()
    logger.info("Entry rejected", extra={"entry_id": entry.id, "supervisor_id": supervisor.id})

    dispatcher.publish(EntryRejected(entry_id=entry.id, technician_id=entry.technician_id,
                                     supervisor_id=supervisor.id, entry_date=entry.entry_date), db)
    return entry


def cancel_approval(db: Session, supervisor: models.Employee, entry_id: int,
                    feedback: Optional[str] = None) -> models.TimeEntry:
    entry = get_entry(db, supervisor, entry_id)
    if entry.status != EntryStatus.APPROVED:
        raise HTTPException(status_code=400, detail="Only approved entries can be cancelled")
    entry.status = EntryStatus.PENDING
    entry.supervisor_feedback = feedback or "Approval cancelled."
    entry.reviewed_at = None
    db.commit()
    logger.info("Approval cancelled", extra={"entry_id": entry.id, "supervisor_id": supervisor.id})
    return entry


# --- Department reporting ---

def status_breakdown(db: Session, department: DepartmentCode) -> List[dict]:
    rows = (
        scoped_entries(db, department)
        .with_entities(models.TimeEntry.status, func.count(models.TimeEntry.id))
        .group_by(models.TimeEntry.status)
        .all()
    )
    return [{"status": entry_status.value, "count": count} for entry_status, count in rows]


def top_technicians(db: Session, department: DepartmentCode, limit: int = 10) -> List[dict]:
    total_output = func.coalesce(func.sum(models.TimeEntry.operation_count), 0)
    rows = (
        scoped_entries(db, department)
        .filter(models.TimeEntry.status == EntryStatus.APPROVED, models.Employee.role == Role.TECHNICIAN)
        .with_entities(models.TimeEntry.technician_id, func.count(models.TimeEntry.id), total_output)
        .group_by(models.TimeEntry.technician_id)
        .order_by(total_output.desc())
        .limit(limit)
        .all()
    )
    technicians = {}
    if rows:
        ids = [technician_id for technician_id, _, _ in rows]
        technicians = {e.id: e for e in db.query(models.Employee).filter(models.Employee.id.in_(ids)).all()}
    return [
        {"technician_id": technician_id, "entries_count": count, "total_output": int(output),
         "technician": technicians.get(technician_id)}
        for technician_id, count, output in rows
    ]


def technician_performance(db: Session, supervisor: models.Employee, technician_id: int,
                           start_date: Optional[date] = None, end_date: Optional[date] = None) -> dict:
    department = require_department(supervisor)
    technician = db.get(models.Employee, technician_id)
    if technician is None:
        raise HTTPException(status_code=404, detail="Technician not found")
    if technician.department != department:
        raise HTTPException(status_code=403,
                            detail="Access denied. This technician belongs to a different department.")

    query = scoped_entries(db, department).filter(
        models.TimeEntry.technician_id == technician_id,
        models.TimeEntry.status == EntryStatus.APPROVED,
    )
    if start_date and end_date:
        query = query.filter(models.TimeEntry.entry_date.between(start_date, end_date))
    total_entries, total_output, total_minutes = query.with_entities(
        func.count(models.TimeEntry.id),
        func.coalesce(func.sum(models.TimeEntry.operation_count), 0),
        func.coalesce(func.sum(models.TimeEntry.duration_minutes), 0),
    ).one()

    return {
        "technician": technician,
        "total_entries": total_entries,
        "total_output": int(total_output),
        "total_time_minutes": int(total_minutes),
        "average_output_per_entry": round(int(total_output) / total_entries, 2) if total_entries else 0,
        "start_date": start_date,
        "end_date": end_date,
        "generated_at": datetime.now(timezone.utc),
    }
