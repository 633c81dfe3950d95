# floortrack/api/v1/endpoints/supervisor.py
from datetime import date, datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from floortrack.core import security
from floortrack.core.enums import EntryStatus
from floortrack.db import models, session
from floortrack.schemas import report as report_schema
from floortrack.schemas import time_entry as entry_schema
from floortrack.schemas.report import StatsFilters
from floortrack.services import approvals, statistics

router = APIRouter()

def _feedback(review: Optional[entry_schema.ReviewRequest]) -> Optional[str]:
    return review.feedback if review else None

@router.get("/entries/pending", response_model=List[entry_schema.TimeEntry])
def list_pending_entries(
    technician_id: Optional[int] = None,
    on_date: Optional[date] = Query(None, alias="date"),
    db: Session = Depends(session.get_db),
    supervisor: models.Employee = Depends(security.get_current_supervisor_user)
):
    """ Pending work entries from the supervisor's own department. """
    return approvals.list_pending(db, supervisor, technician_id, on_date)

@router.get("/entries", response_model=List[entry_schema.TimeEntry])
def list_department_entries(
    status: Optional[EntryStatus] = None,
    technician_id: Optional[int] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: Session = Depends(session.get_db),
    supervisor: models.Employee = Depends(security.get_current_supervisor_user)
):
    return approvals.list_entries(db, supervisor, status, technician_id, start_date, end_date)

@router.get("/entries/{entry_id}", response_model=entry_schema.TimeEntry)
def read_entry(
    entry_id: int,
    db: Session = Depends(session.get_db),
    supervisor: models.Employee = Depends(security.get_current_supervisor_user)
):
    return approvals.get_entry(db, supervisor, entry_id)

@router.post("/entries/{entry_id}/approve", response_model=entry_schema.TimeEntryResponse)
def approve_entry(
    entry_id: int,
    review: Optional[entry_schema.ReviewRequest] = None,
    db: Session = Depends(session.get_db),
    supervisor: models.Employee = Depends(security.get_current_supervisor_user)
):
    entry = approvals.approve_entry(db, supervisor, entry_id, _feedback(review))
    return {"message": "Work entry approved successfully", "entry": entry}

@router.post("/entries/{entry_id}/reject", response_model=entry_schema.TimeEntryResponse)
def reject_entry(
    entry_id: int,
    review: Optional[entry_schema.ReviewRequest] = None,
    db: Session = Depends(session.get_db),
    supervisor: models.Employee = Depends(security.get_current_supervisor_user)
):
    """ Rejects an entry. Feedback is mandatory so the technician knows what to fix. """
    entry = approvals.reject_entry(db, supervisor, entry_id, _feedback(review))
    return {"message": "Work entry rejected successfully", "entry": entry}

@router.post("/entries/{entry_id}/cancel-approval", response_model=entry_schema.TimeEntryResponse)
def cancel_entry_approval(
    entry_id: int,
    review: Optional[entry_schema.ReviewRequest] = None,
    db: Session = Depends(session.get_db),
    supervisor: models.Employee = Depends(security.get_current_supervisor_user)
):
    entry = approvals.cancel_approval(db, supervisor, entry_id, _feedback(review))
    return {"message": "Approval cancelled, entry is pending again", "entry": entry}

@router.get("/dashboard", response_model=report_schema.SupervisorDashboard)
def read_dashboard(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: Session = Depends(session.get_db),
    supervisor: models.Employee = Depends(security.get_current_supervisor_user)
):
    """ Department statistics, review backlog and top technicians by approved output. """
    department = approvals.require_department(supervisor)
    filters = StatsFilters(start_date=start_date, end_date=end_date, department=department)
    pending = approvals.scoped_entries(db, department).filter(models.TimeEntry.status == EntryStatus.PENDING).count()
    return {
        "statistics": statistics.dashboard_stats(db, filters),
        "pending_count": pending,
        "entries_by_status": approvals.status_breakdown(db, department),
        "top_technicians": approvals.top_technicians(db, department),
        "generated_at": datetime.now(timezone.utc),
    }

@router.get("/technicians/{technician_id}/performance", response_model=report_schema.TechnicianPerformance)
def read_technician_performance(
    technician_id: int,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: Session = Depends(session.get_db),
    supervisor: models.Employee = Depends(security.get_current_supervisor_user)
):
    return approvals.technician_performance(db, supervisor, technician_id, start_date, end_date)
