# floortrack/services/time_entries.py
"""
Technician time entries: validation, overlap detection and persistence.

Every write path locks the technician's employee row before reading the
entries of the day, so two concurrent submissions for the same technician are
serialized and cannot both pass the overlap check against a stale read.
"""
import logging
import re
from dataclasses import dataclass
from datetime import date, time
from typing import List, Optional

from fastapi import HTTPException, status
from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from floortrack.core.enums import ActivityType, EntryStatus
from floortrack.db import models
from floortrack.schemas.time_entry import TimeEntryCreate, BulkTimeEntryCreate, TimeEntryDraft, TimeEntryUpdate

logger = logging.getLogger("floortrack.time_entries")

# Minute precision only; stored times must be exactly what overlap checks compare
_CLOCK_RE = re.compile(r"^([01]?\d|2[0-3]):([0-5]\d)$")
_ACTIVITY_TYPES = [a.value for a in ActivityType]


class EntryRuleError(ValueError):
    """A submitted entry breaks a rule. Carries the HTTP status for single submissions."""

    def __init__(self, message: str, status_code: int = status.HTTP_400_BAD_REQUEST):
        super().__init__(message)
        self.status_code = status_code


@dataclass
class ValidatedEntry:
    activity_type: ActivityType
    start_time: time
    end_time: time
    duration_minutes: int
    product_id: Optional[int] = None
    operation_id: Optional[int] = None
    operation_count: Optional[int] = None
    index: Optional[int] = None

    @property
    def initial_status(self) -> EntryStatus:
        # Only work needs a supervisor; breaks, leave etc. are auto-approved
        return EntryStatus.PENDING if self.activity_type == ActivityType.WORK else EntryStatus.APPROVED


# --- Clock helpers ---

def parse_clock(value) -> time:
    """Parses a 24h "HH:MM" string. Seconds are refused."""
    match = _CLOCK_RE.match(str(value or "").strip())
    if not match:
        raise EntryRuleError("start_time and end_time must be HH:MM (24h)")
    hours, minutes = match.groups()
    return time(int(hours), int(minutes))


def clock(value: time) -> str:
    return value.strftime("%H:%M")


def to_minutes(value: time) -> int:
    return value.hour * 60 + value.minute


def duration_minutes(start: time, end: time) -> int:
    minutes = to_minutes(end) - to_minutes(start)
    if minutes <= 0:
        raise EntryRuleError("End time must be after start time")
    return minutes


def ranges_overlap(start1: time, end1: time, start2: time, end2: time) -> bool:
    """Half-open ranges: 10:00-11:00 and 11:00-12:00 only touch."""
    return to_minutes(start1) < to_minutes(end2) and to_minutes(start2) < to_minutes(end1)


def describe_range(start: time, end: time) -> str:
    return f"{clock(start)} - {clock(end)}"


# --- Validation ---

def validate_draft(db: Session, technician: models.Employee, draft: TimeEntryDraft,
                   index: Optional[int] = None) -> ValidatedEntry:
    """Checks one submitted entry against every rule that does not depend on other entries."""
    if draft.activity_type not in _ACTIVITY_TYPES:
        raise EntryRuleError("activity_type is required and must be: work, break, leave, waiting, or other")
    activity_type = ActivityType(draft.activity_type)

    if not draft.start_time or not draft.end_time:
        raise EntryRuleError("start_time and end_time are required for all activity types")
    start, end = parse_clock(draft.start_time), parse_clock(draft.end_time)
    minutes = duration_minutes(start, end)

    validated = ValidatedEntry(activity_type=activity_type, start_time=start, end_time=end,
                               duration_minutes=minutes, index=index)
    if activity_type != ActivityType.WORK:
        return validated

    if draft.product_id is None or draft.operation_id is None or draft.operation_count is None:
        raise EntryRuleError("For work entries: product_id, operation_id, and operation_count are required")
    if draft.operation_count <= 0:
        raise EntryRuleError("operation_count must be greater than 0")

    if db.get(models.Product, draft.product_id) is None:
        raise EntryRuleError(f"Product with ID {draft.product_id} not found", status.HTTP_404_NOT_FOUND)
    operation = db.get(models.Operation, draft.operation_id)
    if operation is None:
        raise EntryRuleError(f"Operation with ID {draft.operation_id} not found", status.HTTP_404_NOT_FOUND)

    if technician.department is None:
        raise EntryRuleError("Technician must have a department assigned to create work entries")
    if operation.department != technician.department:
        mine, theirs = technician.department.value, operation.department.value
        raise EntryRuleError(
            f"Access denied. You ({mine} department) cannot work on {theirs} operations. "
            f"Please use operations from your department ({mine}).",
            status.HTTP_403_FORBIDDEN,
        )

    validated.product_id = draft.product_id
    validated.operation_id = draft.operation_id
    validated.operation_count = draft.operation_count
    return validated


def _reject(exc: EntryRuleError):
    raise HTTPException(status_code=exc.status_code, detail=str(exc))


def lock_technician(db: Session, technician_id: int) -> models.Employee:
    return db.query(models.Employee).filter(models.Employee.id == technician_id).with_for_update().one()


def entries_on(db: Session, technician_id: int, entry_date: date, exclude_id: Optional[int] = None):
    query = db.query(models.TimeEntry).filter(
        models.TimeEntry.technician_id == technician_id,
        models.TimeEntry.entry_date == entry_date,
    )
    if exclude_id is not None:
        query = query.filter(models.TimeEntry.id != exclude_id)
    return query.order_by(models.TimeEntry.start_time).all()


def find_overlap(existing: List[models.TimeEntry], start: time, end: time) -> Optional[models.TimeEntry]:
    for entry in existing:
        if ranges_overlap(start, end, entry.start_time, entry.end_time):
            return entry
    return None


def _new_entry(technician_id: int, entry_date: date, validated: ValidatedEntry) -> models.TimeEntry:
    return models.TimeEntry(
        technician_id=technician_id,
        activity_type=validated.activity_type,
        entry_date=entry_date,
        start_time=validated.start_time,
        end_time=validated.end_time,
        duration_minutes=validated.duration_minutes,
        product_id=validated.product_id,
        operation_id=validated.operation_id,
        operation_count=validated.operation_count,
        status=validated.initial_status,
    )


# --- Submission ---

def create_time_entry(db: Session, technician: models.Employee, data: TimeEntryCreate) -> models.TimeEntry:
    try:
        validated = validate_draft(db, technician, data)
    except EntryRuleError as exc:
        _reject(exc)

    entry_date = data.entry_date or date.today()
    try:
        lock_technician(db, technician.id)
        conflict = find_overlap(entries_on(db, technician.id, entry_date), validated.start_time, validated.end_time)
        if conflict is not None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Time entry overlaps with existing entry #{conflict.id} "
                       f"({describe_range(conflict.start_time, conflict.end_time)}). Please adjust your times.",
            )
        entry = _new_entry(technician.id, entry_date, validated)
        db.add(entry)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(entry)
    return entry


def create_time_entries_bulk(db: Session, technician: models.Employee,
                             data: BulkTimeEntryCreate) -> List[models.TimeEntry]:
    """
    Submits a whole day at once. Every entry is validated, then checked
    against the rest of the batch and against what is already stored for the
    date; only when everything passes are the rows written, in one commit.
    """
    if data.entry_date is None:
        raise HTTPException(status_code=400, detail="entry_date is required")
    if not data.entries:
        raise HTTPException(status_code=400, detail="entries must be a non-empty array")

    try:
        validated, errors = [], []
        for index, draft in enumerate(data.entries, start=1):
            try:
                validated.append(validate_draft(db, technician, draft, index=index))
            except EntryRuleError as exc:
                errors.append({"entry": index, "error": str(exc)})
        if errors:
            raise HTTPException(status_code=400, detail={
                "message": f"{len(errors)} entry/entries failed validation", "errors": errors,
            })

        for i, first in enumerate(validated):
            for second in validated[i + 1:]:
                if ranges_overlap(first.start_time, first.end_time, second.start_time, second.end_time):
                    errors.append({"entry": second.index, "error":
                        f"Entry {first.index} ({describe_range(first.start_time, first.end_time)}) overlaps "
                        f"with Entry {second.index} ({describe_range(second.start_time, second.end_time)})"})
        if errors:
            raise HTTPException(status_code=400, detail={
                "message": "Time overlap detected within bulk entries", "errors": errors,
            })

        lock_technician(db, technician.id)
        existing = entries_on(db, technician.id, data.entry_date)
        for item in validated:
            conflict = find_overlap(existing, item.start_time, item.end_time)
            if conflict is not None:
                errors.append({"entry": item.index, "error":
                    f"Entry {item.index} ({describe_range(item.start_time, item.end_time)}) overlaps with "
                    f"existing entry #{conflict.id} ({describe_range(conflict.start_time, conflict.end_time)})"})
        if errors:
            raise HTTPException(status_code=400, detail={
                "message": "Time entry overlaps with existing entry", "errors": errors,
            })

        entries = [_new_entry(technician.id, data.entry_date, item) for item in validated]
        db.add_all(entries)
        db.commit()
    except Exception:
        db.rollback()
        raise

    for entry in entries:
        db.refresh(entry)
    logger.info("Bulk submission stored", extra={"technician_id": technician.id})
    return entries


# --- Technician's own entries ---

def list_own_entries(db: Session, technician_id: int, status_filter: Optional[EntryStatus] = None,
                     activity_type: Optional[ActivityType] = None, start_date: Optional[date] = None,
                     end_date: Optional[date] = None) -> List[models.TimeEntry]:
    query = db.query(models.TimeEntry).options(
        joinedload(models.TimeEntry.product),
        joinedload(models.TimeEntry.operation),
        joinedload(models.TimeEntry.supervisor),
    ).filter(models.TimeEntry.technician_id == technician_id)
    if status_filter:
        query = query.filter(models.TimeEntry.status == status_filter)
    if activity_type:
        query = query.filter(models.TimeEntry.activity_type == activity_type)
    if start_date and end_date:
        query = query.filter(models.TimeEntry.entry_date.between(start_date, end_date))
    return query.order_by(models.TimeEntry.entry_date.desc(), models.TimeEntry.start_time.asc()).all()


def get_own_entry(db: Session, technician_id: int, entry_id: int) -> models.TimeEntry:
    entry = db.query(models.TimeEntry).filter(
        models.TimeEntry.id == entry_id, models.TimeEntry.technician_id == technician_id,
    ).first()
    if entry is None:
        raise HTTPException(status_code=404, detail="Work entry not found")
    return entry


def update_rejected_entry(db: Session, technician: models.Employee, entry_id: int,
                          updates: TimeEntryUpdate) -> models.TimeEntry:
    """A rejected entry may be corrected; the correction goes back to the supervisor as pending."""
    try:
        lock_technician(db, technician.id)
        entry = get_own_entry(db, technician.id, entry_id)
        if entry.status != EntryStatus.REJECTED:
            raise HTTPException(status_code=400, detail="Only rejected entries can be modified.")

        merged = TimeEntryDraft(
            activity_type=entry.activity_type.value,
            start_time=updates.start_time or clock(entry.start_time),
            end_time=updates.end_time or clock(entry.end_time),
            product_id=updates.product_id if updates.product_id is not None else entry.product_id,
            operation_id=updates.operation_id if updates.operation_id is not None else entry.operation_id,
            operation_count=updates.operation_count if updates.operation_count is not None else entry.operation_count,
        )
        try:
            validated = validate_draft(db, technician, merged)
        except EntryRuleError as exc:
            _reject(exc)

        conflict = find_overlap(entries_on(db, technician.id, entry.entry_date, exclude_id=entry.id),
                                validated.start_time, validated.end_time)
        if conflict is not None:
            raise HTTPException(
                status_code=400,
                detail=f"Updated time overlaps with existing entry #{conflict.id} "
                       f"({describe_range(conflict.start_time, conflict.end_time)}). Please adjust your times.",
            )

        entry.start_time = validated.start_time
        entry.end_time = validated.end_time
        entry.duration_minutes = validated.duration_minutes
        entry.product_id = validated.product_id
        entry.operation_id = validated.operation_id
        entry.operation_count = validated.operation_count
        entry.status = EntryStatus.PENDING
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(entry)
    return entry


def delete_rejected_entry(db: Session, technician: models.Employee, entry_id: int) -> None:
    entry = get_own_entry(db, technician.id, entry_id)
    if entry.status != EntryStatus.REJECTED:
        raise HTTPException(status_code=400, detail="Only rejected entries can be deleted")
    db.delete(entry)
    db.commit()


def work_summary(db: Session, technician_id: int, start_date: Optional[date] = None,
                 end_date: Optional[date] = None) -> dict:
    query = db.query(
        func.count(models.TimeEntry.id),
        func.coalesce(func.sum(models.TimeEntry.operation_count), 0),
        func.coalesce(func.sum(models.TimeEntry.duration_minutes), 0),
    ).filter(
        models.TimeEntry.technician_id == technician_id,
        models.TimeEntry.status == EntryStatus.APPROVED,
        models.TimeEntry.activity_type == ActivityType.WORK,
    )
    if start_date and end_date:
        query = query.filter(models.TimeEntry.entry_date.between(start_date, end_date))
    total_entries, total_operations, total_minutes = query.one()

    def count_status(entry_status):
        return db.query(func.count(models.TimeEntry.id)).filter(
            models.TimeEntry.technician_id == technician_id, models.TimeEntry.status == entry_status,
        ).scalar()

    return {
        "work_summary": {
            "total_entries": total_entries,
            "total_operations": int(total_operations),
            "total_minutes": int(total_minutes),
            "avg_operations_per_entry": round(int(total_operations) / total_entries, 2) if total_entries else 0,
        },
        "pending_count": count_status(EntryStatus.PENDING),
        "rejected_count": count_status(EntryStatus.REJECTED),
        "start_date": start_date,
        "end_date": end_date,
    }
