# floortrack/services/escalation.py
"""
Planner escalation for repeated rejections.

After every rejection the technician's rejected entries of the last
ESCALATION_LOOKBACK_DAYS days are collapsed to distinct calendar days. The
first run of ESCALATION_STREAK_DAYS consecutive days (oldest first) triggers
one notification per planner. Days further back than the lookback window are
not considered.
"""
import logging
from datetime import date, datetime, timedelta
from typing import Iterable, List

from sqlalchemy.orm import Session

from floortrack.core.config import settings
from floortrack.core.enums import EntryStatus, NotificationType, RecordStatus, Role
from floortrack.db import models
from floortrack.services import notifications
from floortrack.services.events import EntryRejected, dispatcher

logger = logging.getLogger("floortrack.escalation")

ALERT_TITLE = "Consecutive Rejection Alert"


def normalize_day(value) -> date:
    """Accepts a date, a datetime or an ISO string ("2024-01-03" or "2024-01-03T10:00:00")."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value).split("T")[0])


def first_consecutive_run(days: Iterable[date], length: int = 3) -> List[date]:
    """Oldest run of `length` back-to-back calendar days, or [] when there is none."""
    ordered = sorted(set(days))
    one_day = timedelta(days=1)
    for i in range(len(ordered) - length + 1):
        window = ordered[i:i + length]
        if all(later - earlier == one_day for earlier, later in zip(window, window[1:])):
            return window
    return []


def rejection_days(db: Session, technician_id: int, until: date, lookback_days: int) -> List[date]:
    since = until - timedelta(days=lookback_days)
    rows = db.query(models.TimeEntry.entry_date).filter(
        models.TimeEntry.technician_id == technician_id,
        models.TimeEntry.status == EntryStatus.REJECTED,
        models.TimeEntry.entry_date >= since,
        models.TimeEntry.entry_date <= until,
    ).distinct().all()
    return sorted(normalize_day(day) for (day,) in rows)


def find_consecutive_rejection_days(db: Session, technician_id: int, on_date) -> List[date]:
    days = rejection_days(db, technician_id, normalize_day(on_date), settings.ESCALATION_LOOKBACK_DAYS)
    return first_consecutive_run(days, settings.ESCALATION_STREAK_DAYS)


def format_day(day: date) -> str:
    return f"{day:%b} {day.day}, {day.year}"


def notify_planners(db: Session, technician: models.Employee, days: List[date]) -> List[models.Notification]:
    planners = db.query(models.Employee).filter(
        models.Employee.role == Role.PLANNER, models.Employee.status == RecordStatus.ACTIVE,
    ).all()
    if not planners:
        logger.info("No planners found to notify")
        return []

    message = (
        f"Technician {technician.employee_code} (ID: {technician.id}) has rejected work entries on "
        f"{len(days)} consecutive days: {', '.join(format_day(d) for d in days)}. Please review."
    )
    sent = [
        notifications.notify(db, planner.id, ALERT_TITLE, message, type=NotificationType.CONSECUTIVE_REJECTIONS)
        for planner in planners
    ]
    logger.info("Sent consecutive rejection notifications to %d planner(s)", len(sent),
                extra={"technician_id": technician.id})
    return sent


def handle_entry_rejected(event: EntryRejected, db: Session):
    technician = db.get(models.Employee, event.technician_id)
    if technician is None:
        return
    days = find_consecutive_rejection_days(db, technician.id, event.entry_date)
    if days:
        notify_planners(db, technician, days)


dispatcher.subscribe(EntryRejected, handle_entry_rejected)
