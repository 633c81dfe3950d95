# floortrack/schemas/notification.py
from pydantic import BaseModel
from typing import List, Optional
from datetime import datetime

from floortrack.core.enums import NotificationStatus, NotificationType

class Notification(BaseModel):
    id: int
    recipient_id: int
    entry_id: Optional[int] = None
    type: NotificationType
    title: str
    message: str
    status: NotificationStatus
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class NotificationList(BaseModel):
    count: int
    notifications: List[Notification]

class UnreadCount(BaseModel):
    unread: int
