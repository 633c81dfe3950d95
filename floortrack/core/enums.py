"""
Closed enumerations shared by the models, schemas and services.
"""
from enum import Enum


class Role(str, Enum):
    """Employee roles. Every role string entering the system goes through normalize()."""
    ADMIN = "admin"
    PLANNER = "planner"
    SUPERVISOR = "supervisor"
    TECHNICIAN = "technician"

    @classmethod
    def normalize(cls, value) -> "Role":
        if isinstance(value, cls):
            return value
        text = str(value or "").strip().lower()
        # Legacy spelling still found in older accounts
        if text == "technicien":
            text = "technician"
        try:
            return cls(text)
        except ValueError:
            allowed = ", ".join(r.value for r in cls)
            raise ValueError(f"Role must be one of: {allowed}")

    @property
    def needs_department(self) -> bool:
        return self in (Role.SUPERVISOR, Role.TECHNICIAN)


class DepartmentCode(str, Enum):
    MANAGEMENT = "management"
    PRODUCTION = "production"
    TESTING = "testing"
    QA = "qa"


# Processes auto-created for every new product, in stage order
PRODUCT_STAGES = (DepartmentCode.PRODUCTION, DepartmentCode.TESTING, DepartmentCode.QA)


class ActivityType(str, Enum):
    WORK = "work"
    BREAK = "break"
    LEAVE = "leave"
    WAITING = "waiting"
    OTHER = "other"


class EntryStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class NotificationStatus(str, Enum):
    UNREAD = "unread"
    READ = "read"


class NotificationType(str, Enum):
    WORK_ENTRY_STATUS = "work_entry_status"
    CONSECUTIVE_REJECTIONS = "consecutive_rejections"


class RecordStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class JobOrderType(str, Enum):
    PRODUCTION = "production"
    MAINTENANCE = "maintenance"
    INSPECTION = "inspection"


class JobOrderStatus(str, Enum):
    PLANNED = "planned"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"
