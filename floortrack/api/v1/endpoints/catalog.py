# floortrack/api/v1/endpoints/catalog.py
# Products, their department processes, and the operations inside each process.
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from floortrack.core import security
from floortrack.core.enums import PRODUCT_STAGES, DepartmentCode
from floortrack.db import models, session
from floortrack.schemas import catalog as catalog_schema

products_router = APIRouter()
processes_router = APIRouter()
operations_router = APIRouter()

def _referenced_by_entries(db: Session, *criteria) -> bool:
    return db.query(models.TimeEntry.id).filter(*criteria).first() is not None

# --- Products ---

@products_router.get("", response_model=List[catalog_schema.Product])
def list_products(
    db: Session = Depends(session.get_db),
    current_user: models.Employee = Depends(security.get_current_technician_user)
):
    return db.query(models.Product).options(
        joinedload(models.Product.processes).joinedload(models.Process.operations)
    ).order_by(models.Product.product_code).all()

@products_router.get("/{product_id}", response_model=catalog_schema.Product)
def read_product(
    product_id: int,
    db: Session = Depends(session.get_db),
    current_user: models.Employee = Depends(security.get_current_technician_user)
):
    product = db.get(models.Product, product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product

@products_router.post("", response_model=catalog_schema.Product, status_code=status.HTTP_201_CREATED)
def create_product(
    product_in: catalog_schema.ProductCreate,
    db: Session = Depends(session.get_db),
    planner: models.Employee = Depends(security.get_current_planner_user)
):
    """ Creates a product together with its production, testing and QA processes. """
    if db.query(models.Product).filter(models.Product.product_code == product_in.product_code).first():
        raise HTTPException(status_code=400, detail="Product code already exists")

    product = models.Product(**product_in.model_dump(), created_by=planner.id)
    product.processes = [
        models.Process(department=department, stage_order=order)
        for order, department in enumerate(PRODUCT_STAGES, start=1)
    ]
    db.add(product)
    db.commit()
    db.refresh(product)
    return product

@products_router.put("/{product_id}", response_model=catalog_schema.Product)
def update_product(
    product_id: int,
    updates: catalog_schema.ProductUpdate,
    db: Session = Depends(session.get_db),
    planner: models.Employee = Depends(security.get_current_planner_user)
):
    product = db.get(models.Product, product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")

    update_data = updates.model_dump(exclude_unset=True)
    code = update_data.get("product_code")
    if code and code != product.product_code and \
            db.query(models.Product).filter(models.Product.product_code == code).first():
        raise HTTPException(status_code=400, detail="Product code already exists")
    for field, value in update_data.items():
        setattr(product, field, value)

    db.commit()
    db.refresh(product)
    return product

@products_router.delete("/{product_id}")
def delete_product(
    product_id: int,
    db: Session = Depends(session.get_db),
    planner: models.Employee = Depends(security.get_current_planner_user)
):
    product = db.get(models.Product, product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    if _referenced_by_entries(db, models.TimeEntry.product_id == product_id) or \
            db.query(models.JobOrder.id).filter(models.JobOrder.product_id == product_id).first():
        raise HTTPException(status_code=400,
                            detail="Cannot delete product. It is referenced by work entries or job orders.")
    db.delete(product)
    db.commit()
    return {"message": "Product deleted successfully"}

# --- Processes ---

@processes_router.get("", response_model=List[catalog_schema.Process])
def list_processes(
    department: Optional[DepartmentCode] = None,
    db: Session = Depends(session.get_db),
    current_user: models.Employee = Depends(security.get_current_technician_user)
):
    query = db.query(models.Process)
    if department:
        query = query.filter(models.Process.department == department)
    return query.order_by(models.Process.product_id, models.Process.stage_order).all()

@processes_router.get("/product/{product_id}", response_model=List[catalog_schema.Process])
def list_product_processes(
    product_id: int,
    db: Session = Depends(session.get_db),
    current_user: models.Employee = Depends(security.get_current_technician_user)
):
    if not db.get(models.Product, product_id):
        raise HTTPException(status_code=404, detail="Product not found")
    return db.query(models.Process).filter(models.Process.product_id == product_id) \
        .order_by(models.Process.stage_order).all()

@processes_router.get("/{process_id}", response_model=catalog_schema.Process)
def read_process(
    process_id: int,
    db: Session = Depends(session.get_db),
    current_user: models.Employee = Depends(security.get_current_technician_user)
):
    process = db.get(models.Process, process_id)
    if not process:
        raise HTTPException(status_code=404, detail="Process not found")
    return process

@processes_router.post("", response_model=catalog_schema.Process, status_code=status.HTTP_201_CREATED)
def create_process(
    process_in: catalog_schema.ProcessCreate,
    db: Session = Depends(session.get_db),
    planner: models.Employee = Depends(security.get_current_planner_user)
):
    if not db.get(models.Product, process_in.product_id):
        raise HTTPException(status_code=404, detail="Product not found")
    if db.query(models.Process).filter(models.Process.product_id == process_in.product_id,
                                       models.Process.department == process_in.department).first():
        raise HTTPException(status_code=400, detail="Process already exists for this product and department")

    stage_order = process_in.stage_order
    if stage_order is None:
        current_max = db.query(func.max(models.Process.stage_order)) \
            .filter(models.Process.product_id == process_in.product_id).scalar()
        stage_order = (current_max or 0) + 1
    process = models.Process(product_id=process_in.product_id, department=process_in.department,
                             stage_order=stage_order)
    db.add(process)
    db.commit()
    db.refresh(process)
    return process

@processes_router.put("/{process_id}", response_model=catalog_schema.Process)
def update_process(
    process_id: int,
    updates: catalog_schema.ProcessUpdate,
    db: Session = Depends(session.get_db),
    planner: models.Employee = Depends(security.get_current_planner_user)
):
    process = db.get(models.Process, process_id)
    if not process:
        raise HTTPException(status_code=404, detail="Process not found")
    for field, value in updates.model_dump(exclude_unset=True).items():
        setattr(process, field, value)
    db.commit()
    db.refresh(process)
    return process

@processes_router.delete("/{process_id}")
def delete_process(
    process_id: int,
    db: Session = Depends(session.get_db),
    planner: models.Employee = Depends(security.get_current_planner_user)
):
    process = db.get(models.Process, process_id)
    if not process:
        raise HTTPException(status_code=404, detail="Process not found")
    operation_ids = [op.id for op in process.operations]
    if operation_ids and _referenced_by_entries(db, models.TimeEntry.operation_id.in_(operation_ids)):
        raise HTTPException(status_code=400,
                            detail="Cannot delete process. Its operations are referenced by work entries.")
    db.delete(process)
    db.commit()
    return {"message": "Process deleted successfully"}

# --- Operations ---

@operations_router.get("", response_model=List[catalog_schema.Operation])
def list_operations(
    department: Optional[DepartmentCode] = None,
    process_id: Optional[int] = None,
    db: Session = Depends(session.get_db),
    current_user: models.Employee = Depends(security.get_current_technician_user)
):
    """ All operations, optionally narrowed to one department or one process. """
    query = db.query(models.Operation).join(models.Operation.process).options(joinedload(models.Operation.process))
    if department:
        query = query.filter(models.Process.department == department)
    if process_id:
        query = query.filter(models.Operation.process_id == process_id)
    return query.order_by(models.Process.product_id, models.Process.stage_order,
                          models.Operation.operation_order).all()

@operations_router.get("/{operation_id}", response_model=catalog_schema.Operation)
def read_operation(
    operation_id: int,
    db: Session = Depends(session.get_db),
    current_user: models.Employee = Depends(security.get_current_technician_user)
):
    operation = db.get(models.Operation, operation_id)
    if not operation:
        raise HTTPException(status_code=404, detail="Operation not found")
    return operation

@operations_router.post("", response_model=catalog_schema.Operation, status_code=status.HTTP_201_CREATED)
def create_operation(
    operation_in: catalog_schema.OperationCreate,
    db: Session = Depends(session.get_db),
    planner: models.Employee = Depends(security.get_current_planner_user)
):
    """ Appends an operation to a process; its order is the next free slot. """
    if not db.get(models.Process, operation_in.process_id):
        raise HTTPException(status_code=404, detail="Process not found")
    if db.query(models.Operation).filter(models.Operation.process_id == operation_in.process_id,
                                         models.Operation.operation_name == operation_in.operation_name).first():
        raise HTTPException(status_code=400, detail="Operation name already exists in this process")

    current_max = db.query(func.max(models.Operation.operation_order)) \
        .filter(models.Operation.process_id == operation_in.process_id).scalar()
    operation = models.Operation(**operation_in.model_dump(), operation_order=(current_max or 0) + 1)
    db.add(operation)
    db.commit()
    db.refresh(operation)
    return operation

@operations_router.put("/{operation_id}", response_model=catalog_schema.Operation)
def update_operation(
    operation_id: int,
    updates: catalog_schema.OperationUpdate,
    db: Session = Depends(session.get_db),
    planner: models.Employee = Depends(security.get_current_planner_user)
):
    operation = db.get(models.Operation, operation_id)
    if not operation:
        raise HTTPException(status_code=404, detail="Operation not found")

    update_data = updates.model_dump(exclude_unset=True)
    name = update_data.get("operation_name")
    if name and name != operation.operation_name and db.query(models.Operation).filter(
            models.Operation.process_id == operation.process_id, models.Operation.operation_name == name).first():
        raise HTTPException(status_code=400, detail="Operation name already exists in this process")
    for field, value in update_data.items():
        setattr(operation, field, value)

    db.commit()
    db.refresh(operation)
    return operation

@operations_router.delete("/{operation_id}")
def delete_operation(
    operation_id: int,
    db: Session = Depends(session.get_db),
    planner: models.Employee = Depends(security.get_current_planner_user)
):
    operation = db.get(models.Operation, operation_id)
    if not operation:
        raise HTTPException(status_code=404, detail="Operation not found")
    if _referenced_by_entries(db, models.TimeEntry.operation_id == operation_id):
        raise HTTPException(status_code=400, detail="Cannot delete operation. It is referenced by work entries.")
    db.delete(operation)
    db.commit()
    return {"message": "Operation deleted successfully"}
