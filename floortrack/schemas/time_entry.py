# floortrack/schemas/time_entry.py
from pydantic import BaseModel, field_serializer
from typing import List, Optional
from datetime import date, datetime, time

from floortrack.core.enums import ActivityType, EntryStatus
from floortrack.schemas.employee import EmployeeRef
from floortrack.schemas.catalog import ProductSummary

# Submission fields are deliberately loose: the entry rules in
# services.time_entries produce the per-field (and per-item) messages.
class TimeEntryDraft(BaseModel):
    activity_type: Optional[str] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    product_id: Optional[int] = None
    operation_id: Optional[int] = None
    operation_count: Optional[int] = None

class TimeEntryCreate(TimeEntryDraft):
    # Defaults to today when omitted
    entry_date: Optional[date] = None

class BulkTimeEntryCreate(BaseModel):
    entry_date: Optional[date] = None
    entries: Optional[List[TimeEntryDraft]] = None

class TimeEntryUpdate(BaseModel):
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    product_id: Optional[int] = None
    operation_id: Optional[int] = None
    operation_count: Optional[int] = None

class ReviewRequest(BaseModel):
    feedback: Optional[str] = None

class OperationRef(BaseModel):
    id: int
    operation_name: str
    minimum_time_minutes: int
    minimum_output_count: int

    class Config:
        from_attributes = True

class TimeEntry(BaseModel):
    id: int
    technician_id: int
    activity_type: ActivityType
    entry_date: date
    start_time: time
    end_time: time
    duration_minutes: int
    product_id: Optional[int] = None
    operation_id: Optional[int] = None
    operation_count: Optional[int] = None
    status: EntryStatus
    supervisor_id: Optional[int] = None
    supervisor_feedback: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    product: Optional[ProductSummary] = None
    operation: Optional[OperationRef] = None
    technician: Optional[EmployeeRef] = None
    supervisor: Optional[EmployeeRef] = None

    @field_serializer("start_time", "end_time")
    def format_clock(self, value: time) -> str:
        return value.strftime("%H:%M")

    class Config:
        from_attributes = True

class TimeEntryResponse(BaseModel):
    message: str
    entry: TimeEntry

class BulkTimeEntryResponse(BaseModel):
    message: str
    created: int
    entries: List[TimeEntry]

class WorkSummaryTotals(BaseModel):
    total_entries: int = 0
    total_operations: int = 0
    total_minutes: int = 0
    avg_operations_per_entry: float = 0

class WorkSummary(BaseModel):
    work_summary: WorkSummaryTotals
    pending_count: int
    rejected_count: int
    start_date: Optional[date] = None
    end_date: Optional[date] = None
