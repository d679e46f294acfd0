from hrms.models.audit_log import AuditLog
from hrms.models.employee import Employee


def _payload(**overrides):
    payload = {
        "employee_code": "EMP-100",
        "first_name": "Bilal",
        "last_name": "Ahmed",
        "email": "bilal@example.com",
        "gender": "MALE",
        "shift_start_time": "09:00:00",
        "monthly_salary": 4500,
        "bank_name": "HBL",
        "bank_account_number": "PK36SCBL0000001123456702",
    }
    payload.update(overrides)
    return payload


def test_hr_creates_employee_with_encrypted_account(client, db_session, hr_user, office, auth_headers):
    response = client.post("/api/employees", headers=auth_headers(hr_user), json=_payload(location_id=office.id))
    assert response.status_code == 200
    data = response.json()
    assert data["full_name"] == "Bilal Ahmed"
    assert data["bank_account_number"].endswith("6702")
    assert data["bank_account_number"].startswith("****")

    stored = db_session.get(Employee, data["id"])
    assert stored.bank_account_number != "PK36SCBL0000001123456702"

    log = db_session.query(AuditLog).filter_by(action="create_employee").one()
    assert log.details["bank_account_number"] == "***"


def test_duplicate_code_conflicts(client, hr_user, auth_headers):
    client.post("/api/employees", headers=auth_headers(hr_user), json=_payload())
    response = client.post("/api/employees", headers=auth_headers(hr_user), json=_payload(email="other@example.com"))
    assert response.status_code == 409
    assert response.json()["errors"][0]["code"] == "DUPLICATE_EMPLOYEE"


def test_unknown_manager_rejected(client, hr_user, auth_headers):
    response = client.post("/api/employees", headers=auth_headers(hr_user), json=_payload(reporting_manager_id=999))
    assert response.status_code == 422


def test_invalid_email_rejected(client, hr_user, auth_headers):
    response = client.post("/api/employees", headers=auth_headers(hr_user), json=_payload(email="not-an-email"))
    assert response.status_code == 422
    assert response.json()["errors"][0]["field"] == "email"


def test_employees_cannot_manage_master_data(client, employee, auth_headers):
    assert client.get("/api/employees", headers=auth_headers(employee)).status_code == 403
    assert client.post("/api/employees", headers=auth_headers(employee), json=_payload()).status_code == 403


def test_profile_visibility(client, employee, manager, hr_user, auth_headers):
    assert client.get(f"/api/employees/{employee.id}", headers=auth_headers(employee)).status_code == 200
    assert client.get(f"/api/employees/{manager.id}", headers=auth_headers(employee)).status_code == 403
    assert client.get(f"/api/employees/{employee.id}", headers=auth_headers(hr_user)).status_code == 200
    assert client.get("/api/employees/999", headers=auth_headers(hr_user)).status_code == 404


def test_partial_update(client, employee, hr_user, auth_headers):
    response = client.put(
        f"/api/employees/{employee.id}",
        headers=auth_headers(hr_user),
        json={"monthly_salary": 3500, "shift_start_time": "10:00:00"},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["monthly_salary"] == 3500
    assert data["shift_start_time"] == "10:00:00"
    # Untouched fields keep their values
    assert data["first_name"] == "Sara"


def test_search_employees(client, employee, manager, hr_user, auth_headers):
    response = client.get("/api/employees?search=khan", headers=auth_headers(hr_user))
    assert [e["id"] for e in response.json()] == [employee.id]


def test_inactive_employee_token_is_refused(client, db_session, employee, hr_user, auth_headers):
    headers = auth_headers(employee)
    client.put(f"/api/employees/{employee.id}", headers=auth_headers(hr_user), json={"employment_status": "INACTIVE"})
    response = client.get("/api/attendance/today", headers=headers)
    assert response.status_code == 403
