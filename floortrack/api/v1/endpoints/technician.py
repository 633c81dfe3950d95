# floortrack/api/v1/endpoints/technician.py
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from floortrack.core import security
from floortrack.core.enums import ActivityType, EntryStatus, NotificationStatus
from floortrack.db import models, session
from floortrack.schemas import notification as notification_schema
from floortrack.schemas import time_entry as entry_schema
from floortrack.services import notifications, time_entries

router = APIRouter()

@router.post("/time-entries", response_model=entry_schema.TimeEntryResponse, status_code=status.HTTP_201_CREATED)
def create_time_entry(
    entry_in: entry_schema.TimeEntryCreate,
    db: Session = Depends(session.get_db),
    technician: models.Employee = Depends(security.get_current_technician_user)
):
    """ Logs one activity for the day. Work entries start out pending. """
    entry = time_entries.create_time_entry(db, technician, entry_in)
    return {"message": "Time entry created successfully", "entry": entry}

@router.post("/time-entries/bulk", response_model=entry_schema.BulkTimeEntryResponse,
             status_code=status.HTTP_201_CREATED)
def create_time_entries_bulk(
    bulk_in: entry_schema.BulkTimeEntryCreate,
    db: Session = Depends(session.get_db),
    technician: models.Employee = Depends(security.get_current_technician_user)
):
    """ Logs a whole day at once. Either every entry is stored or none is. """
    entries = time_entries.create_time_entries_bulk(db, technician, bulk_in)
    return {"message": f"Successfully created {len(entries)} time entries", "created": len(entries),
            "entries": entries}

@router.get("/time-entries", response_model=List[entry_schema.TimeEntry])
@router.get("/work-entries", response_model=List[entry_schema.TimeEntry])
def list_my_entries(
    status: Optional[EntryStatus] = None,
    activity_type: Optional[ActivityType] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: Session = Depends(session.get_db),
    technician: models.Employee = Depends(security.get_current_technician_user)
):
    return time_entries.list_own_entries(db, technician.id, status, activity_type, start_date, end_date)

@router.get("/work-entries/{entry_id}", response_model=entry_schema.TimeEntry)
def read_my_entry(
    entry_id: int,
    db: Session = Depends(session.get_db),
    technician: models.Employee = Depends(security.get_current_technician_user)
):
    return time_entries.get_own_entry(db, technician.id, entry_id)

@router.put("/work-entries/{entry_id}", response_model=entry_schema.TimeEntryResponse)
def update_my_entry(
    entry_id: int,
    updates: entry_schema.TimeEntryUpdate,
    db: Session = Depends(session.get_db),
    technician: models.Employee = Depends(security.get_current_technician_user)
):
    """ Corrects a rejected entry and sends it back for review. """
    entry = time_entries.update_rejected_entry(db, technician, entry_id, updates)
    return {"message": "Work entry updated and resubmitted for approval", "entry": entry}

@router.delete("/work-entries/{entry_id}")
def delete_my_entry(
    entry_id: int,
    db: Session = Depends(session.get_db),
    technician: models.Employee = Depends(security.get_current_technician_user)
):
    time_entries.delete_rejected_entry(db, technician, entry_id)
    return {"message": "Work entry deleted successfully"}

@router.get("/summary", response_model=entry_schema.WorkSummary)
def read_work_summary(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: Session = Depends(session.get_db),
    technician: models.Employee = Depends(security.get_current_technician_user)
):
    return time_entries.work_summary(db, technician.id, start_date, end_date)

# --- Notifications ---

@router.get("/notifications", response_model=notification_schema.NotificationList)
def list_my_notifications(
    status: Optional[NotificationStatus] = None,
    db: Session = Depends(session.get_db),
    technician: models.Employee = Depends(security.get_current_technician_user)
):
    items = notifications.list_for(db, technician.id, status)
    return {"count": len(items), "notifications": items}

@router.get("/notifications/unread-count", response_model=notification_schema.UnreadCount)
def read_unread_count(
    db: Session = Depends(session.get_db),
    technician: models.Employee = Depends(security.get_current_technician_user)
):
    return {"unread": notifications.unread_count(db, technician.id)}

@router.post("/notifications/read-all")
def mark_all_my_notifications_read(
    db: Session = Depends(session.get_db),
    technician: models.Employee = Depends(security.get_current_technician_user)
):
    updated = notifications.mark_all_read(db, technician.id)
    return {"message": "All notifications marked as read", "updated": updated}

@router.post("/notifications/{notification_id}/read", response_model=notification_schema.Notification)
def mark_my_notification_read(
    notification_id: int,
    db: Session = Depends(session.get_db),
    technician: models.Employee = Depends(security.get_current_technician_user)
):
    return notifications.mark_read(db, technician.id, notification_id)
