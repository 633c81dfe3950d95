"""
test_statistics.py: Productivity, efficiency and utilization over approved
work entries, including the zero-denominator cases.
"""
from datetime import date

import pytest

from floortrack.core.enums import DepartmentCode, EntryStatus, JobOrderStatus, Role
from floortrack.db import models
from floortrack.schemas.report import StatsFilters
from floortrack.services import statistics


@pytest.fixture
def technician(make_employee):
    return make_employee(Role.TECHNICIAN, DepartmentCode.PRODUCTION)


@pytest.fixture
def operation(make_operation):
    # Standard: 10 minutes per piece, 5 pieces expected per entry
    return make_operation(DepartmentCode.PRODUCTION, minimum_time_minutes=10, minimum_output_count=5)


class TestZeroDenominators:

    def test_no_entries_at_all(self, db):
        stats = statistics.dashboard_stats(db, StatsFilters())

        assert stats["productivity"]["productivity"] == 0
        assert stats["efficiency"]["efficiency"] == 0
        assert stats["utilization"]["utilization"] == 0
        assert stats["utilization"]["work_days"] == 0

    def test_only_pending_and_rejected_entries(self, db, technician, operation, add_entry):
        add_entry(technician, operation, start=(8, 0), end=(9, 0), status=EntryStatus.PENDING)
        add_entry(technician, operation, start=(9, 0), end=(10, 0), status=EntryStatus.REJECTED)

        stats = statistics.dashboard_stats(db, StatsFilters())

        assert stats["productivity"]["entries_count"] == 0
        assert stats["productivity"]["productivity"] == 0
        assert stats["efficiency"]["efficiency"] == 0
        assert stats["utilization"]["utilization"] == 0

    def test_zero_output_target(self, db, technician, make_operation, add_entry):
        free_form = make_operation(DepartmentCode.PRODUCTION, minimum_time_minutes=0, minimum_output_count=0)
        add_entry(technician, free_form, count=3, status=EntryStatus.APPROVED)

        assert statistics.calculate_productivity(db, StatsFilters())["productivity"] == 0
        assert statistics.calculate_efficiency(db, StatsFilters())["efficiency"] == 0


class TestRatios:

    @pytest.fixture
    def approved_day(self, technician, operation, add_entry):
        add_entry(technician, operation, start=(8, 0), end=(9, 0), count=4, status=EntryStatus.APPROVED)
        add_entry(technician, operation, start=(9, 0), end=(9, 30), count=2, status=EntryStatus.APPROVED)
        # Ignored everywhere
        add_entry(technician, operation, start=(10, 0), end=(12, 0), count=50, status=EntryStatus.PENDING)

    def test_productivity(self, db, approved_day):
        result = statistics.calculate_productivity(db, StatsFilters())
        assert result == {"productivity": 60.0, "total_actual_output": 6, "total_target_output": 10,
                          "entries_count": 2}

    def test_efficiency(self, db, approved_day):
        result = statistics.calculate_efficiency(db, StatsFilters())
        # 10 min * 6 pieces standard against 90 minutes spent
        assert result == {"efficiency": 66.67, "total_standard_time": 60, "total_actual_time": 90,
                          "entries_count": 2}

    def test_utilization(self, db, approved_day):
        result = statistics.calculate_utilization(db, StatsFilters())
        assert result == {"utilization": 18.75, "total_productive_time": 90, "total_available_time": 480,
                          "work_days": 1}

    def test_work_days_are_technician_date_pairs(self, db, technician, make_employee, operation, add_entry):
        colleague = make_employee(Role.TECHNICIAN, DepartmentCode.PRODUCTION)
        add_entry(technician, operation, day=date(2024, 1, 1), start=(8, 0), end=(12, 0), status=EntryStatus.APPROVED)
        add_entry(technician, operation, day=date(2024, 1, 2), start=(8, 0), end=(12, 0), status=EntryStatus.APPROVED)
        add_entry(colleague, operation, day=date(2024, 1, 1), start=(8, 0), end=(12, 0), status=EntryStatus.APPROVED)

        result = statistics.calculate_utilization(db, StatsFilters())

        assert result["work_days"] == 3
        assert result["utilization"] == 50.0

    def test_filters(self, db, technician, make_employee, operation, make_operation, add_entry):
        tester = make_employee(Role.TECHNICIAN, DepartmentCode.TESTING)
        testing_operation = make_operation(DepartmentCode.TESTING, minimum_output_count=10)
        add_entry(technician, operation, day=date(2024, 1, 1), count=5, status=EntryStatus.APPROVED)
        add_entry(tester, testing_operation, day=date(2024, 2, 1), count=5, status=EntryStatus.APPROVED)

        production = statistics.calculate_productivity(db, StatsFilters(department=DepartmentCode.PRODUCTION))
        testing = statistics.calculate_productivity(db, StatsFilters(department=DepartmentCode.TESTING))
        january = statistics.calculate_productivity(
            db, StatsFilters(start_date=date(2024, 1, 1), end_date=date(2024, 1, 31)))
        by_technician = statistics.calculate_productivity(db, StatsFilters(technician_id=tester.id))
        by_product = statistics.calculate_productivity(
            db, StatsFilters(product_id=operation.process.product_id))
        qa = statistics.calculate_productivity(db, StatsFilters(department=DepartmentCode.QA))

        assert production["productivity"] == 100.0
        assert testing["productivity"] == 50.0
        assert january["entries_count"] == 1
        assert by_technician["productivity"] == 50.0
        assert by_product["entries_count"] == 1
        assert qa == {"productivity": 0, "total_actual_output": 0, "total_target_output": 0, "entries_count": 0}


class TestJobOrders:

    @pytest.fixture
    def job_order(self, db, make_product, make_employee):
        order = models.JobOrder(order_number="JO-001", product_id=make_product().id,
                                planner_id=make_employee(Role.PLANNER).id, target_quantity=80,
                                completed_quantity=20, start_date=date(2024, 1, 1), due_date=date(2024, 1, 31))
        db.add(order)
        db.commit()
        return order

    def test_progress(self, db, job_order):
        progress = statistics.job_order_progress(db, job_order.id)
        assert progress["remaining_quantity"] == 60
        assert progress["progress_percentage"] == 25.0
        assert progress["status"] == JobOrderStatus.PLANNED

    def test_summary_by_status(self, db, job_order):
        assert statistics.job_orders_summary(db) == [
            {"status": JobOrderStatus.PLANNED, "count": 1, "total_target": 80, "total_completed": 20}
        ]


class TestAdminRollups:

    def test_employee_stats(self, db, technician, operation, add_entry):
        add_entry(technician, operation, start=(8, 0), end=(9, 0), count=6, status=EntryStatus.APPROVED)
        add_entry(technician, operation, start=(9, 0), end=(10, 0), count=6, status=EntryStatus.REJECTED)
        add_entry(technician, operation, start=(10, 0), end=(11, 0), count=6, status=EntryStatus.PENDING)

        [row] = statistics.employee_stats(db, department=DepartmentCode.PRODUCTION)

        assert row["employee_id"] == technician.id
        assert row["totals"] == {"total_entries": 3, "approved": 1, "rejected": 1, "pending": 1}
        assert row["output"] == {"total_operations": 6, "total_minutes": 60, "productivity_per_hour": 6.0}

    def test_system_stats(self, db, technician, operation, add_entry):
        add_entry(technician, operation, status=EntryStatus.APPROVED)

        stats = statistics.system_stats(db)

        assert stats["total_employees"] == 1
        assert stats["total_departments"] == 4
        assert stats["approved_entries"] == 1
        assert stats["employees_by_role"] == {Role.TECHNICIAN: 1}
