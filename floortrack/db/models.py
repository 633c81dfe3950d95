# floortrack/db/models.py
from sqlalchemy import ( Column, Integer, String, ForeignKey, Date, Time, DateTime, Text, Enum,
                         CheckConstraint, UniqueConstraint, Index )
from sqlalchemy.orm import relationship, declarative_base
from sqlalchemy.sql import func

from floortrack.core.enums import (
    ActivityType, DepartmentCode, EntryStatus, JobOrderStatus, JobOrderType,
    NotificationStatus, NotificationType, Priority, RecordStatus, Role,
)

Base = declarative_base()


def _enum(enum_cls, length=20):
    # Store the enum values ("technician"), not the member names
    return Enum(enum_cls, native_enum=False, length=length, validate_strings=True,
                values_callable=lambda members: [m.value for m in members])


class Department(Base):
    __tablename__ = "departments"
    code = Column(_enum(DepartmentCode), primary_key=True)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)


class Employee(Base):
    __tablename__ = "employees"
    id = Column(Integer, primary_key=True, index=True)
    employee_code = Column(String(50), unique=True, nullable=False, index=True)
    full_name = Column(String(100))
    email = Column(String(100), unique=True, nullable=True)
    hashed_password = Column(String(255), nullable=False)
    role = Column(_enum(Role), nullable=False)
    department = Column(_enum(DepartmentCode), ForeignKey("departments.code"), nullable=True)
    status = Column(_enum(RecordStatus), nullable=False, default=RecordStatus.ACTIVE)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    entries = relationship("TimeEntry", back_populates="technician", foreign_keys="TimeEntry.technician_id",
                           cascade="all, delete-orphan")
    reviewed_entries = relationship("TimeEntry", back_populates="supervisor", foreign_keys="TimeEntry.supervisor_id")
    notifications = relationship("Notification", back_populates="recipient", cascade="all, delete-orphan")


class Product(Base):
    __tablename__ = "products"
    id = Column(Integer, primary_key=True, index=True)
    product_code = Column(String(50), unique=True, nullable=False, index=True)
    product_name = Column(String(150), nullable=False)
    description = Column(Text, nullable=True)
    status = Column(_enum(RecordStatus), nullable=False, default=RecordStatus.ACTIVE)
    created_by = Column(Integer, ForeignKey("employees.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    processes = relationship("Process", back_populates="product", cascade="all, delete-orphan",
                             order_by="Process.stage_order")


class Process(Base):
    __tablename__ = "processes"
    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False)
    department = Column(_enum(DepartmentCode), ForeignKey("departments.code"), nullable=False)
    stage_order = Column(Integer, nullable=False, default=1)
    status = Column(_enum(RecordStatus), nullable=False, default=RecordStatus.ACTIVE)
    __table_args__ = ( UniqueConstraint("product_id", "department", name="uq_process_product_department"), )

    product = relationship("Product", back_populates="processes")
    operations = relationship("Operation", back_populates="process", cascade="all, delete-orphan",
                              order_by="Operation.operation_order")


class Operation(Base):
    __tablename__ = "operations"
    id = Column(Integer, primary_key=True, index=True)
    process_id = Column(Integer, ForeignKey("processes.id", ondelete="CASCADE"), nullable=False)
    operation_name = Column(String(150), nullable=False)
    operation_order = Column(Integer, nullable=False, default=1)
    description = Column(Text, nullable=True)
    minimum_time_minutes = Column(Integer, nullable=False, default=0)
    minimum_output_count = Column(Integer, nullable=False, default=0)
    status = Column(_enum(RecordStatus), nullable=False, default=RecordStatus.ACTIVE)
    __table_args__ = (
        UniqueConstraint("process_id", "operation_name", name="uq_operation_process_name"),
        CheckConstraint("minimum_time_minutes >= 0 AND minimum_output_count >= 0"),
    )

    process = relationship("Process", back_populates="operations")

    @property
    def department(self):
        return self.process.department if self.process else None


class TimeEntry(Base):
    __tablename__ = "time_entries"
    id = Column(Integer, primary_key=True, index=True)
    technician_id = Column(Integer, ForeignKey("employees.id", ondelete="CASCADE"), nullable=False)
    activity_type = Column(_enum(ActivityType), nullable=False)
    entry_date = Column(Date, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    duration_minutes = Column(Integer, nullable=False)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=True)
    operation_id = Column(Integer, ForeignKey("operations.id"), nullable=True)
    operation_count = Column(Integer, nullable=True)
    status = Column(_enum(EntryStatus), nullable=False, default=EntryStatus.PENDING)
    supervisor_id = Column(Integer, ForeignKey("employees.id", ondelete="SET NULL"), nullable=True)
    supervisor_feedback = Column(Text, nullable=True)
    reviewed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    __table_args__ = (
        CheckConstraint("duration_minutes > 0"),
        CheckConstraint(
            "activity_type != 'work' OR "
            "(product_id IS NOT NULL AND operation_id IS NOT NULL AND operation_count IS NOT NULL)",
            name="ck_work_entry_fields",
        ),
        Index("ix_time_entries_technician_date", "technician_id", "entry_date"),
    )

    technician = relationship("Employee", back_populates="entries", foreign_keys=[technician_id])
    supervisor = relationship("Employee", back_populates="reviewed_entries", foreign_keys=[supervisor_id])
    product = relationship("Product")
    operation = relationship("Operation")


class Notification(Base):
    __tablename__ = "notifications"
    id = Column(Integer, primary_key=True, index=True)
    recipient_id = Column(Integer, ForeignKey("employees.id", ondelete="CASCADE"), nullable=False, index=True)
    entry_id = Column(Integer, ForeignKey("time_entries.id", ondelete="SET NULL"), nullable=True)
    type = Column(_enum(NotificationType, length=30), nullable=False)
    title = Column(String(150), nullable=False)
    message = Column(Text, nullable=False)
    status = Column(_enum(NotificationStatus), nullable=False, default=NotificationStatus.UNREAD)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    recipient = relationship("Employee", back_populates="notifications")


class JobOrder(Base):
    __tablename__ = "job_orders"
    id = Column(Integer, primary_key=True, index=True)
    order_number = Column(String(50), unique=True, nullable=False, index=True)
    order_type = Column(_enum(JobOrderType), nullable=False, default=JobOrderType.PRODUCTION)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    planner_id = Column(Integer, ForeignKey("employees.id", ondelete="SET NULL"), nullable=True)
    target_quantity = Column(Integer, nullable=False)
    completed_quantity = Column(Integer, nullable=False, default=0)
    start_date = Column(Date, nullable=False)
    due_date = Column(Date, nullable=False)
    status = Column(_enum(JobOrderStatus), nullable=False, default=JobOrderStatus.PLANNED)
    priority = Column(_enum(Priority), nullable=False, default=Priority.MEDIUM)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    __table_args__ = ( CheckConstraint("target_quantity > 0 AND completed_quantity >= 0"), )

    product = relationship("Product")
