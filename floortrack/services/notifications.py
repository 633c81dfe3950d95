# floortrack/services/notifications.py
from typing import List, Optional

from fastapi import HTTPException
from sqlalchemy import func
from sqlalchemy.orm import Session

from floortrack.core.enums import NotificationStatus, NotificationType
from floortrack.db import models


def notify(db: Session, recipient_id: int, title: str, message: str,
           type: NotificationType = NotificationType.WORK_ENTRY_STATUS,
           entry_id: Optional[int] = None) -> models.Notification:
    """Queues a notification on the session; the caller owns the commit."""
    notification = models.Notification(
        recipient_id=recipient_id, entry_id=entry_id, type=type, title=title, message=message,
        status=NotificationStatus.UNREAD,
    )
    db.add(notification)
    return notification


def list_for(db: Session, recipient_id: int,
             status: Optional[NotificationStatus] = None) -> List[models.Notification]:
    query = db.query(models.Notification).filter(models.Notification.recipient_id == recipient_id)
    if status:
        query = query.filter(models.Notification.status == status)
    return query.order_by(models.Notification.created_at.desc(), models.Notification.id.desc()).all()


def unread_count(db: Session, recipient_id: int) -> int:
    return db.query(func.count(models.Notification.id)).filter(
        models.Notification.recipient_id == recipient_id,
        models.Notification.status == NotificationStatus.UNREAD,
    ).scalar()


def mark_read(db: Session, recipient_id: int, notification_id: int) -> models.Notification:
    # Someone else's notification is reported as missing
    notification = db.query(models.Notification).filter(
        models.Notification.id == notification_id, models.Notification.recipient_id == recipient_id,
    ).first()
    if notification is None:
        raise HTTPException(status_code=404, detail="Notification not found")
    notification.status = NotificationStatus.READ
    db.commit()
    return notification


def mark_all_read(db: Session, recipient_id: int) -> int:
    updated = db.query(models.Notification).filter(
        models.Notification.recipient_id == recipient_id,
        models.Notification.status == NotificationStatus.UNREAD,
    ).update({models.Notification.status: NotificationStatus.READ}, synchronize_session=False)
    db.commit()
    return updated
