# floortrack/schemas/report.py
from pydantic import BaseModel
from typing import Dict, List, Optional
from datetime import date, datetime

from floortrack.core.enums import DepartmentCode, JobOrderStatus, Role
from floortrack.schemas.employee import EmployeeRef

class StatsFilters(BaseModel):
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    department: Optional[DepartmentCode] = None
    technician_id: Optional[int] = None
    product_id: Optional[int] = None

class Productivity(BaseModel):
    productivity: float = 0
    total_actual_output: int = 0
    total_target_output: int = 0
    entries_count: int = 0

class Efficiency(BaseModel):
    efficiency: float = 0
    total_standard_time: int = 0
    total_actual_time: int = 0
    entries_count: int = 0

class Utilization(BaseModel):
    utilization: float = 0
    total_productive_time: int = 0
    total_available_time: int = 0
    work_days: int = 0

class DashboardStats(BaseModel):
    productivity: Productivity
    efficiency: Efficiency
    utilization: Utilization
    filters: StatsFilters
    generated_at: datetime

# --- Supervisor ---
class StatusCount(BaseModel):
    status: str
    count: int

class TopTechnician(BaseModel):
    technician_id: int
    entries_count: int
    total_output: int
    technician: Optional[EmployeeRef] = None

class SupervisorDashboard(BaseModel):
    statistics: DashboardStats
    pending_count: int
    entries_by_status: List[StatusCount]
    top_technicians: List[TopTechnician]
    generated_at: datetime

class TechnicianPerformance(BaseModel):
    technician: EmployeeRef
    total_entries: int
    total_output: int
    total_time_minutes: int
    average_output_per_entry: float
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    generated_at: datetime

# --- Planner ---
class JobOrderStatusSummary(BaseModel):
    status: JobOrderStatus
    count: int
    total_target: int
    total_completed: int

class PlannerDashboard(BaseModel):
    statistics: DashboardStats
    job_orders_summary: List[JobOrderStatusSummary]
    generated_at: datetime

# --- Admin ---
class SystemStats(BaseModel):
    total_employees: int
    total_products: int
    total_operations: int
    total_entries: int
    pending_entries: int
    approved_entries: int
    rejected_entries: int
    total_departments: int
    employees_by_role: Dict[Role, int]
    generated_at: datetime

class EntryTotals(BaseModel):
    total_entries: int = 0
    approved: int = 0
    rejected: int = 0
    pending: int = 0

class EmployeeOutput(BaseModel):
    total_operations: int = 0
    total_minutes: int = 0
    productivity_per_hour: float = 0

class EmployeeStats(BaseModel):
    employee_id: int
    employee_code: str
    role: Role
    department: Optional[DepartmentCode] = None
    totals: EntryTotals
    output: EmployeeOutput
