"""
test_admin_api.py: Login, role gates, employee administration and the
department catalogue.
"""
import pytest

from floortrack.core.enums import DepartmentCode, RecordStatus, Role
from floortrack.db import models

USERS_URL = "/api/v1/admin/users"


@pytest.fixture
def admin(make_employee):
    return make_employee(Role.ADMIN, code="ADMIN-1")


class TestLogin:

    def test_login_with_employee_code(self, password, client, admin):
        response = client.post("/auth/token", data={"username": "ADMIN-1", "password": password})

        assert response.status_code == 200
        body = response.json()
        assert body["token_type"] == "bearer"
        assert body["employee"]["id"] == admin.id
        me = client.get("/api/v1/users/me", headers={"Authorization": f"Bearer {body['access_token']}"})
        assert me.json()["employee_code"] == "ADMIN-1"

    def test_wrong_password(self, client, admin):
        response = client.post("/auth/token", data={"username": "ADMIN-1", "password": "nope"})
        assert response.status_code == 401
        assert response.json()["message"] == "Invalid credentials"

    def test_inactive_account(self, password, client, db, admin):
        admin.status = RecordStatus.INACTIVE
        db.commit()
        response = client.post("/auth/token", data={"username": "ADMIN-1", "password": password})
        assert response.status_code == 401

    def test_garbage_token(self, client):
        response = client.get("/api/v1/users/me", headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 401
        assert response.json()["message"] == "Invalid or expired token"

    def test_change_own_password(self, password, client, headers, admin):
        response = client.put("/api/v1/users/me/password",
                              json={"current_password": password, "new_password": "another-pass-456"},
                              headers=headers(admin))
        assert response.status_code == 204
        login = client.post("/auth/token", data={"username": "ADMIN-1", "password": "another-pass-456"})
        assert login.status_code == 200


class TestRoleGates:

    @pytest.mark.parametrize("role", [Role.PLANNER, Role.SUPERVISOR, Role.TECHNICIAN])
    def test_admin_routes_reject_other_roles(self, client, headers, make_employee, role):
        response = client.get(USERS_URL, headers=headers(make_employee(role)))
        assert response.status_code == 403
        assert response.json()["message"] == "Access denied. Insufficient permissions."

    def test_missing_token(self, client, db):
        assert client.get(USERS_URL).status_code == 401


class TestUsers:

    def test_create_generates_a_password(self, client, headers, admin):
        response = client.post(USERS_URL, json={"employee_code": "T-100", "role": "technician",
                                                "department": "production"}, headers=headers(admin))

        assert response.status_code == 201
        body = response.json()
        assert len(body["generated_password"]) == 12
        login = client.post("/auth/token", data={"username": "T-100", "password": body["generated_password"]})
        assert login.status_code == 200

    def test_legacy_role_spelling_is_normalized(self, client, headers, admin):
        response = client.post(USERS_URL, json={"employee_code": "T-101", "role": "Technicien",
                                                "department": "qa", "password": "long-enough"},
                               headers=headers(admin))

        assert response.status_code == 201
        assert response.json()["user"]["role"] == "technician"
        assert response.json()["generated_password"] is None

    def test_unknown_role(self, client, headers, admin):
        response = client.post(USERS_URL, json={"employee_code": "X-1", "role": "operator"}, headers=headers(admin))
        assert response.status_code == 400

    def test_supervisor_needs_a_department(self, client, headers, admin):
        response = client.post(USERS_URL, json={"employee_code": "S-1", "role": "supervisor"}, headers=headers(admin))
        assert response.status_code == 400
        assert "Department is required" in response.json()["message"]

    def test_duplicate_employee_code(self, client, headers, admin):
        response = client.post(USERS_URL, json={"employee_code": "ADMIN-1", "role": "planner"},
                               headers=headers(admin))
        assert response.status_code == 400
        assert response.json()["message"] == "Employee code already exists"

    def test_admin_cannot_delete_self(self, client, headers, db, admin):
        response = client.delete(f"{USERS_URL}/{admin.id}", headers=headers(admin))

        assert response.status_code == 400
        assert response.json()["message"] == "You cannot delete your own account"
        db.expire_all()
        assert db.get(models.Employee, admin.id) is not None

    def test_delete_other_employee(self, client, headers, db, admin, make_employee):
        planner = make_employee(Role.PLANNER)
        response = client.delete(f"{USERS_URL}/{planner.id}", headers=headers(admin))
        assert response.status_code == 200
        assert client.get(f"{USERS_URL}/{planner.id}", headers=headers(admin)).status_code == 404

    def test_update_and_filter(self, client, headers, admin, make_employee):
        technician = make_employee(Role.TECHNICIAN, DepartmentCode.PRODUCTION)

        response = client.put(f"{USERS_URL}/{technician.id}", json={"department": "testing"}, headers=headers(admin))
        assert response.status_code == 200
        assert response.json()["department"] == "testing"

        listed = client.get(USERS_URL, params={"role": "technician", "department": "testing"},
                            headers=headers(admin))
        assert [u["id"] for u in listed.json()] == [technician.id]

    def test_removing_a_technicians_department_is_refused(self, client, headers, admin, make_employee):
        technician = make_employee(Role.TECHNICIAN, DepartmentCode.PRODUCTION)
        response = client.put(f"{USERS_URL}/{technician.id}", json={"department": None}, headers=headers(admin))
        assert response.status_code == 400

    def test_reset_password(self, client, headers, admin, make_employee):
        planner = make_employee(Role.PLANNER, code="PLN-9")
        response = client.post(f"{USERS_URL}/{planner.id}/reset-password", headers=headers(admin))
        new_password = response.json()["generated_password"]
        assert client.post("/auth/token", data={"username": "PLN-9", "password": new_password}).status_code == 200

    def test_generate_password(self, client, headers, admin):
        response = client.get("/api/v1/admin/generate-password", headers=headers(admin))
        assert len(response.json()["password"]) == 12


class TestDepartments:

    def test_seeded_departments(self, client, headers, admin):
        response = client.get("/api/v1/admin/departments", headers=headers(admin))
        assert sorted(d["code"] for d in response.json()) == ["management", "production", "qa", "testing"]

    def test_existing_code_is_rejected(self, client, headers, admin):
        response = client.post("/api/v1/admin/departments", json={"code": "qa", "name": "QA again"},
                               headers=headers(admin))
        assert response.status_code == 400

    def test_department_in_use_cannot_be_deleted(self, client, headers, admin, make_employee):
        make_employee(Role.TECHNICIAN, DepartmentCode.TESTING)
        response = client.delete("/api/v1/admin/departments/testing", headers=headers(admin))
        assert response.status_code == 400

    def test_unused_department_can_be_deleted(self, client, headers, admin):
        response = client.delete("/api/v1/admin/departments/management", headers=headers(admin))
        assert response.status_code == 200

    def test_rename(self, client, headers, admin):
        response = client.put("/api/v1/admin/departments/qa", json={"name": "Quality"}, headers=headers(admin))
        assert response.json()["name"] == "Quality"


class TestStats:

    def test_system_stats(self, client, headers, admin, make_employee):
        make_employee(Role.TECHNICIAN)
        response = client.get("/api/v1/admin/stats", headers=headers(admin))
        assert response.status_code == 200
        assert response.json()["employees_by_role"] == {"admin": 1, "technician": 1}
