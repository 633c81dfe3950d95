# floortrack/api/v1/endpoints/planner.py
from datetime import date, datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session, joinedload

from floortrack.core import security
from floortrack.core.enums import JobOrderStatus, NotificationStatus
from floortrack.db import models, session
from floortrack.schemas import catalog as catalog_schema
from floortrack.schemas import notification as notification_schema
from floortrack.schemas import report as report_schema
from floortrack.schemas.report import StatsFilters
from floortrack.services import notifications, statistics

router = APIRouter()

def _check_quantities(target: int, completed: int, start: date, due: date):
    if target is None or target <= 0:
        raise HTTPException(status_code=400, detail="target_quantity must be greater than 0")
    if completed < 0:
        raise HTTPException(status_code=400, detail="completed_quantity cannot be negative")
    if due < start:
        raise HTTPException(status_code=400, detail="due_date cannot be before start_date")

# --- Job orders ---

@router.post("/job-orders", response_model=catalog_schema.JobOrder, status_code=status.HTTP_201_CREATED)
def create_job_order(
    order_in: catalog_schema.JobOrderCreate,
    db: Session = Depends(session.get_db),
    planner: models.Employee = Depends(security.get_current_planner_user)
):
    _check_quantities(order_in.target_quantity, 0, order_in.start_date, order_in.due_date)
    if not db.get(models.Product, order_in.product_id):
        raise HTTPException(status_code=404, detail="Product not found")
    if db.query(models.JobOrder).filter(models.JobOrder.order_number == order_in.order_number).first():
        raise HTTPException(status_code=400, detail="Order number already exists")

    order = models.JobOrder(**order_in.model_dump(), planner_id=planner.id)
    db.add(order)
    db.commit()
    db.refresh(order)
    return order

@router.get("/job-orders", response_model=List[catalog_schema.JobOrder])
def list_job_orders(
    status: Optional[JobOrderStatus] = None,
    db: Session = Depends(session.get_db),
    planner: models.Employee = Depends(security.get_current_planner_user)
):
    query = db.query(models.JobOrder).options(joinedload(models.JobOrder.product))
    if status:
        query = query.filter(models.JobOrder.status == status)
    return query.order_by(models.JobOrder.due_date, models.JobOrder.id).all()

@router.get("/job-orders/{job_order_id}", response_model=catalog_schema.JobOrder)
def read_job_order(
    job_order_id: int,
    db: Session = Depends(session.get_db),
    planner: models.Employee = Depends(security.get_current_planner_user)
):
    order = db.get(models.JobOrder, job_order_id)
    if not order:
        raise HTTPException(status_code=404, detail="Job order not found")
    return order

@router.put("/job-orders/{job_order_id}", response_model=catalog_schema.JobOrder)
def update_job_order(
    job_order_id: int,
    updates: catalog_schema.JobOrderUpdate,
    db: Session = Depends(session.get_db),
    planner: models.Employee = Depends(security.get_current_planner_user)
):
    order = db.get(models.JobOrder, job_order_id)
    if not order:
        raise HTTPException(status_code=404, detail="Job order not found")

    update_data = updates.model_dump(exclude_unset=True)
    merged = {field: update_data.get(field, getattr(order, field))
              for field in ("target_quantity", "completed_quantity", "start_date", "due_date")}
    _check_quantities(merged["target_quantity"], merged["completed_quantity"], merged["start_date"], merged["due_date"])
    for field, value in update_data.items():
        setattr(order, field, value)

    db.commit()
    db.refresh(order)
    return order

@router.delete("/job-orders/{job_order_id}")
def delete_job_order(
    job_order_id: int,
    db: Session = Depends(session.get_db),
    planner: models.Employee = Depends(security.get_current_planner_user)
):
    order = db.get(models.JobOrder, job_order_id)
    if not order:
        raise HTTPException(status_code=404, detail="Job order not found")
    db.delete(order)
    db.commit()
    return {"message": "Job order deleted successfully"}

@router.get("/job-orders/{job_order_id}/progress", response_model=catalog_schema.JobOrderProgress)
def read_job_order_progress(
    job_order_id: int,
    db: Session = Depends(session.get_db),
    planner: models.Employee = Depends(security.get_current_planner_user)
):
    return statistics.job_order_progress(db, job_order_id)

# --- Dashboard ---

@router.get("/dashboard", response_model=report_schema.PlannerDashboard)
def read_dashboard(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    product_id: Optional[int] = None,
    db: Session = Depends(session.get_db),
    planner: models.Employee = Depends(security.get_current_planner_user)
):
    """ Plant-wide statistics plus where the job orders stand. """
    filters = StatsFilters(start_date=start_date, end_date=end_date, product_id=product_id)
    return {
        "statistics": statistics.dashboard_stats(db, filters),
        "job_orders_summary": statistics.job_orders_summary(db),
        "generated_at": datetime.now(timezone.utc),
    }

# --- Notifications ---

@router.get("/notifications", response_model=notification_schema.NotificationList)
def list_planner_notifications(
    status: Optional[NotificationStatus] = None,
    db: Session = Depends(session.get_db),
    planner: models.Employee = Depends(security.get_current_planner_user)
):
    items = notifications.list_for(db, planner.id, status)
    return {"count": len(items), "notifications": items}

@router.get("/notifications/unread-count", response_model=notification_schema.UnreadCount)
def read_unread_count(
    db: Session = Depends(session.get_db),
    planner: models.Employee = Depends(security.get_current_planner_user)
):
    return {"unread": notifications.unread_count(db, planner.id)}

@router.post("/notifications/read-all")
def mark_all_planner_notifications_read(
    db: Session = Depends(session.get_db),
    planner: models.Employee = Depends(security.get_current_planner_user)
):
    updated = notifications.mark_all_read(db, planner.id)
    return {"message": "All notifications marked as read", "updated": updated}

@router.post("/notifications/{notification_id}/read", response_model=notification_schema.Notification)
def mark_planner_notification_read(
    notification_id: int,
    db: Session = Depends(session.get_db),
    planner: models.Employee = Depends(security.get_current_planner_user)
):
    return notifications.mark_read(db, planner.id, notification_id)
