# floortrack/schemas/catalog.py
# Master data: departments, products, processes, operations and job orders.
from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import date, datetime

from floortrack.core.enums import (
    DepartmentCode, JobOrderStatus, JobOrderType, Priority, RecordStatus,
)

# --- Departments ---
class DepartmentCreate(BaseModel):
    code: DepartmentCode
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None

class DepartmentUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None

class Department(BaseModel):
    code: DepartmentCode
    name: str
    description: Optional[str] = None

    class Config:
        from_attributes = True

# --- Operations ---
class OperationCreate(BaseModel):
    process_id: int
    operation_name: str = Field(..., min_length=1, max_length=150)
    description: Optional[str] = None
    minimum_time_minutes: int = Field(0, ge=0)
    minimum_output_count: int = Field(0, ge=0)

class OperationUpdate(BaseModel):
    operation_name: Optional[str] = Field(None, min_length=1, max_length=150)
    operation_order: Optional[int] = Field(None, ge=1)
    description: Optional[str] = None
    minimum_time_minutes: Optional[int] = Field(None, ge=0)
    minimum_output_count: Optional[int] = Field(None, ge=0)
    status: Optional[RecordStatus] = None

class Operation(BaseModel):
    id: int
    process_id: int
    operation_name: str
    operation_order: int
    description: Optional[str] = None
    minimum_time_minutes: int
    minimum_output_count: int
    status: RecordStatus
    department: Optional[DepartmentCode] = None

    class Config:
        from_attributes = True

# --- Processes ---
class ProcessCreate(BaseModel):
    product_id: int
    department: DepartmentCode
    stage_order: Optional[int] = Field(None, ge=1)

class ProcessUpdate(BaseModel):
    stage_order: Optional[int] = Field(None, ge=1)
    status: Optional[RecordStatus] = None

class Process(BaseModel):
    id: int
    product_id: int
    department: DepartmentCode
    stage_order: int
    status: RecordStatus
    operations: List[Operation] = []

    class Config:
        from_attributes = True

# --- Products ---
class ProductCreate(BaseModel):
    product_code: str = Field(..., min_length=1, max_length=50)
    product_name: str = Field(..., min_length=1, max_length=150)
    description: Optional[str] = None
    status: RecordStatus = RecordStatus.ACTIVE

class ProductUpdate(BaseModel):
    product_code: Optional[str] = Field(None, min_length=1, max_length=50)
    product_name: Optional[str] = Field(None, min_length=1, max_length=150)
    description: Optional[str] = None
    status: Optional[RecordStatus] = None

class ProductSummary(BaseModel):
    id: int
    product_code: str
    product_name: str
    status: RecordStatus

    class Config:
        from_attributes = True

class Product(ProductSummary):
    description: Optional[str] = None
    created_by: Optional[int] = None
    created_at: Optional[datetime] = None
    processes: List[Process] = []

# --- Job orders ---
class JobOrderCreate(BaseModel):
    order_number: str = Field(..., min_length=1, max_length=50)
    order_type: JobOrderType = JobOrderType.PRODUCTION
    product_id: int
    target_quantity: int
    start_date: date
    due_date: date
    priority: Priority = Priority.MEDIUM
    notes: Optional[str] = None

class JobOrderUpdate(BaseModel):
    order_type: Optional[JobOrderType] = None
    target_quantity: Optional[int] = None
    completed_quantity: Optional[int] = None
    start_date: Optional[date] = None
    due_date: Optional[date] = None
    status: Optional[JobOrderStatus] = None
    priority: Optional[Priority] = None
    notes: Optional[str] = None

class JobOrder(BaseModel):
    id: int
    order_number: str
    order_type: JobOrderType
    product_id: int
    planner_id: Optional[int] = None
    target_quantity: int
    completed_quantity: int
    start_date: date
    due_date: date
    status: JobOrderStatus
    priority: Priority
    notes: Optional[str] = None
    product: Optional[ProductSummary] = None

    class Config:
        from_attributes = True

class JobOrderProgress(BaseModel):
    job_order_id: int
    order_number: str
    target_quantity: int
    completed_quantity: int
    remaining_quantity: int
    progress_percentage: float
    status: JobOrderStatus
    product: Optional[ProductSummary] = None
