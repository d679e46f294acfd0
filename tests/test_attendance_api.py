from datetime import datetime

OFFICE = {"device_latitude": 24.8607, "device_longitude": 67.0011}
FAR_AWAY = {"device_latitude": 24.95, "device_longitude": 67.10}


def test_check_in_and_out(client, employee, auth_headers, clock):
    clock.set(datetime(2024, 1, 10, 9, 15))
    response = client.post("/api/attendance/check-in", headers=auth_headers(employee), json=OFFICE)
    assert response.status_code == 200
    data = response.json()
    assert data["is_late"] is True
    assert data["status"] == "PRESENT"
    assert data["work_location"] == "ON_SITE"
    assert data["employee_code"] == employee.employee_code

    clock.set(datetime(2024, 1, 10, 17, 15))
    response = client.post("/api/attendance/check-out", headers=auth_headers(employee), json=OFFICE)
    assert response.status_code == 200
    assert response.json()["total_hours"] == 8.0


def test_double_check_in_returns_policy_error(client, employee, auth_headers):
    client.post("/api/attendance/check-in", headers=auth_headers(employee), json=OFFICE)
    response = client.post("/api/attendance/check-in", headers=auth_headers(employee), json=OFFICE)
    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["error"] == "You have already checked in today."
    assert body["errors"][0]["code"] == "ALREADY_CHECKED_IN"


def test_check_out_before_check_in(client, employee, auth_headers):
    response = client.post("/api/attendance/check-out", headers=auth_headers(employee), json=OFFICE)
    assert response.status_code == 400
    assert response.json()["errors"][0]["code"] == "NOT_CHECKED_IN"


def test_check_in_outside_geo_fence(client, employee, auth_headers):
    response = client.post("/api/attendance/check-in", headers=auth_headers(employee), json=FAR_AWAY)
    assert response.status_code == 400
    error = response.json()["errors"][0]
    assert error["code"] == "OUTSIDE_GEO_FENCE"
    assert error["details"]["radius_meters"] == 200


def test_cannot_check_in_for_someone_else(client, employee, manager, auth_headers):
    payload = dict(OFFICE, employee_id=manager.id)
    response = client.post("/api/attendance/check-in", headers=auth_headers(employee), json=payload)
    assert response.status_code == 403


def test_invalid_coordinates_rejected(client, employee, auth_headers):
    response = client.post(
        "/api/attendance/check-in",
        headers=auth_headers(employee),
        json={"device_latitude": 123.0, "device_longitude": 67.0},
    )
    assert response.status_code == 422
    assert response.json()["errors"][0]["field"] == "device_latitude"


def test_today_record(client, employee, auth_headers):
    response = client.get("/api/attendance/today", headers=auth_headers(employee))
    assert response.status_code == 200
    assert response.json() is None

    client.post("/api/attendance/check-in", headers=auth_headers(employee), json=OFFICE)
    response = client.get("/api/attendance/today", headers=auth_headers(employee))
    assert response.json()["attendance_date"] == "2024-01-10"


def test_employee_list_is_pinned_to_self(client, employee, manager, auth_headers, clock):
    client.post("/api/attendance/check-in", headers=auth_headers(employee), json=OFFICE)
    client.post("/api/attendance/check-in", headers=auth_headers(manager), json=OFFICE)

    response = client.get("/api/attendance", headers=auth_headers(employee))
    assert response.status_code == 200
    assert [r["employee_id"] for r in response.json()] == [employee.id]

    response = client.get(f"/api/attendance?employee_id={manager.id}", headers=auth_headers(employee))
    assert response.status_code == 403


def test_hr_can_search_attendance(client, employee, manager, hr_user, auth_headers):
    client.post("/api/attendance/check-in", headers=auth_headers(employee), json=OFFICE)
    client.post("/api/attendance/check-in", headers=auth_headers(manager), json=OFFICE)

    response = client.get("/api/attendance?employee_name=khan", headers=auth_headers(hr_user))
    assert response.status_code == 200
    rows = response.json()
    assert len(rows) == 1
    assert rows[0]["employee_name"] == "Sara Khan"

    response = client.get("/api/attendance?date_from=2024-01-10&date_to=2024-01-10", headers=auth_headers(hr_user))
    assert len(response.json()) == 2


def test_mark_absent_requires_hr(client, employee, hr_user, auth_headers):
    response = client.post("/api/attendance/mark-absent", headers=auth_headers(employee), json={"date": "2024-01-10"})
    assert response.status_code == 403

    response = client.post("/api/attendance/mark-absent", headers=auth_headers(hr_user), json={"date": "2024-01-10"})
    assert response.status_code == 200
    data = response.json()
    assert data["date"] == "2024-01-10"
    # hr_user, employee and their manager
    assert data["created"] == 3
