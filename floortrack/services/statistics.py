# floortrack/services/statistics.py
"""
Reporting ratios over approved work entries.

    productivity = sum(operation_count) / sum(operation.minimum_output_count) * 100
    efficiency   = sum(operation.minimum_time_minutes * operation_count) / sum(duration_minutes) * 100
    utilization  = sum(duration_minutes) / (work_days * WORK_MINUTES_PER_DAY) * 100

work_days is the number of distinct (technician, date) pairs with an approved
work entry. Each ratio is 0 when its denominator is 0. Only `work` entries
count, so breaks never reach the productive time.
"""
from datetime import date, datetime, timezone
from typing import Dict, List, Optional

from fastapi import HTTPException
from sqlalchemy import case, func
from sqlalchemy.orm import Session

from floortrack.core.config import settings
from floortrack.core.enums import ActivityType, DepartmentCode, EntryStatus
from floortrack.db import models
from floortrack.schemas.report import StatsFilters


def _ratio(numerator, denominator) -> float:
    if not denominator:
        return 0
    return round(numerator / denominator * 100, 2)


def approved_work(db: Session, filters: StatsFilters, *columns):
    """Approved work entries joined to their operation, narrowed by the filter set."""
    query = (
        db.query(*columns)
        .select_from(models.TimeEntry)
        .join(models.Operation, models.TimeEntry.operation_id == models.Operation.id)
        .filter(
            models.TimeEntry.status == EntryStatus.APPROVED,
            models.TimeEntry.activity_type == ActivityType.WORK,
        )
    )
    if filters.start_date and filters.end_date:
        query = query.filter(models.TimeEntry.entry_date.between(filters.start_date, filters.end_date))
    if filters.technician_id:
        query = query.filter(models.TimeEntry.technician_id == filters.technician_id)
    if filters.product_id:
        query = query.filter(models.TimeEntry.product_id == filters.product_id)
    if filters.department:
        # Both the technician and the operation's process stage must match
        query = (
            query.join(models.Employee, models.TimeEntry.technician_id == models.Employee.id)
            .join(models.Process, models.Operation.process_id == models.Process.id)
            .filter(models.Employee.department == filters.department,
                    models.Process.department == filters.department)
        )
    return query


def calculate_productivity(db: Session, filters: StatsFilters) -> dict:
    actual, target, count = approved_work(
        db, filters,
        func.coalesce(func.sum(models.TimeEntry.operation_count), 0),
        func.coalesce(func.sum(models.Operation.minimum_output_count), 0),
        func.count(models.TimeEntry.id),
    ).one()
    actual, target = int(actual), int(target)
    return {
        "productivity": _ratio(actual, target),
        "total_actual_output": actual,
        "total_target_output": target,
        "entries_count": count,
    }


def calculate_efficiency(db: Session, filters: StatsFilters) -> dict:
    standard, actual, count = approved_work(
        db, filters,
        func.coalesce(func.sum(models.Operation.minimum_time_minutes * models.TimeEntry.operation_count), 0),
        func.coalesce(func.sum(models.TimeEntry.duration_minutes), 0),
        func.count(models.TimeEntry.id),
    ).one()
    standard, actual = int(standard), int(actual)
    return {
        "efficiency": _ratio(standard, actual),
        "total_standard_time": standard,
        "total_actual_time": actual,
        "entries_count": count,
    }


def calculate_utilization(db: Session, filters: StatsFilters) -> dict:
    per_day = approved_work(
        db, filters,
        models.TimeEntry.technician_id,
        models.TimeEntry.entry_date,
        func.sum(models.TimeEntry.duration_minutes),
    ).group_by(models.TimeEntry.technician_id, models.TimeEntry.entry_date).all()

    work_days = len(per_day)
    productive = sum(int(minutes or 0) for _, _, minutes in per_day)
    available = work_days * settings.WORK_MINUTES_PER_DAY
    return {
        "utilization": _ratio(productive, available),
        "total_productive_time": productive,
        "total_available_time": available,
        "work_days": work_days,
    }


def dashboard_stats(db: Session, filters: StatsFilters) -> dict:
    return {
        "productivity": calculate_productivity(db, filters),
        "efficiency": calculate_efficiency(db, filters),
        "utilization": calculate_utilization(db, filters),
        "filters": filters,
        "generated_at": datetime.now(timezone.utc),
    }


def job_order_progress(db: Session, job_order_id: int) -> dict:
    order = db.get(models.JobOrder, job_order_id)
    if order is None:
        raise HTTPException(status_code=404, detail="Job order not found")
    return {
        "job_order_id": order.id,
        "order_number": order.order_number,
        "target_quantity": order.target_quantity,
        "completed_quantity": order.completed_quantity,
        "remaining_quantity": order.target_quantity - order.completed_quantity,
        "progress_percentage": _ratio(order.completed_quantity, order.target_quantity),
        "status": order.status,
        "product": order.product,
    }


def job_orders_summary(db: Session) -> List[dict]:
    rows = db.query(
        models.JobOrder.status,
        func.count(models.JobOrder.id),
        func.coalesce(func.sum(models.JobOrder.target_quantity), 0),
        func.coalesce(func.sum(models.JobOrder.completed_quantity), 0),
    ).group_by(models.JobOrder.status).all()
    return [
        {"status": status, "count": count, "total_target": int(target), "total_completed": int(completed)}
        for status, count, target, completed in rows
    ]


# --- Admin rollups ---

def _count_entries(db: Session, entry_status: Optional[EntryStatus] = None) -> int:
    query = db.query(func.count(models.TimeEntry.id))
    if entry_status:
        query = query.filter(models.TimeEntry.status == entry_status)
    return query.scalar()


def system_stats(db: Session) -> dict:
    by_role = db.query(models.Employee.role, func.count(models.Employee.id)).group_by(models.Employee.role).all()
    return {
        "total_employees": db.query(func.count(models.Employee.id)).scalar(),
        "total_products": db.query(func.count(models.Product.id)).scalar(),
        "total_operations": db.query(func.count(models.Operation.id)).scalar(),
        "total_entries": _count_entries(db),
        "pending_entries": _count_entries(db, EntryStatus.PENDING),
        "approved_entries": _count_entries(db, EntryStatus.APPROVED),
        "rejected_entries": _count_entries(db, EntryStatus.REJECTED),
        "total_departments": db.query(func.count(models.Department.code)).scalar(),
        "employees_by_role": {role: count for role, count in by_role},
        "generated_at": datetime.now(timezone.utc),
    }


def _status_sum(entry_status: EntryStatus):
    return func.coalesce(func.sum(case((models.TimeEntry.status == entry_status, 1), else_=0)), 0)


def employee_stats(db: Session, start_date: Optional[date] = None, end_date: Optional[date] = None,
                   department: Optional[DepartmentCode] = None) -> List[dict]:
    """Per-employee entry counts by status, and output from approved work."""
    employees_query = db.query(models.Employee)
    if department:
        employees_query = employees_query.filter(models.Employee.department == department)
    employees = employees_query.order_by(models.Employee.id).all()
    if not employees:
        return []

    ids = [e.id for e in employees]
    totals_query = db.query(
        models.TimeEntry.technician_id,
        func.count(models.TimeEntry.id),
        _status_sum(EntryStatus.APPROVED),
        _status_sum(EntryStatus.REJECTED),
        _status_sum(EntryStatus.PENDING),
    ).filter(models.TimeEntry.technician_id.in_(ids))
    output_query = db.query(
        models.TimeEntry.technician_id,
        func.coalesce(func.sum(models.TimeEntry.operation_count), 0),
        func.coalesce(func.sum(models.TimeEntry.duration_minutes), 0),
    ).filter(
        models.TimeEntry.technician_id.in_(ids),
        models.TimeEntry.status == EntryStatus.APPROVED,
        models.TimeEntry.activity_type == ActivityType.WORK,
    )
    if start_date and end_date:
        totals_query = totals_query.filter(models.TimeEntry.entry_date.between(start_date, end_date))
        output_query = output_query.filter(models.TimeEntry.entry_date.between(start_date, end_date))

    totals: Dict[int, tuple] = {row[0]: row[1:] for row in totals_query.group_by(models.TimeEntry.technician_id)}
    output: Dict[int, tuple] = {row[0]: row[1:] for row in output_query.group_by(models.TimeEntry.technician_id)}

    result = []
    for employee in employees:
        total, approved, rejected, pending = totals.get(employee.id, (0, 0, 0, 0))
        operations, minutes = (int(v) for v in output.get(employee.id, (0, 0)))
        result.append({
            "employee_id": employee.id,
            "employee_code": employee.employee_code,
            "role": employee.role,
            "department": employee.department,
            "totals": {"total_entries": total, "approved": int(approved),
                       "rejected": int(rejected), "pending": int(pending)},
            "output": {"total_operations": operations, "total_minutes": minutes,
                       "productivity_per_hour": round(operations / (minutes / 60), 2) if minutes else 0},
        })
    return result
