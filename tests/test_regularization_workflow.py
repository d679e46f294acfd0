from datetime import datetime

import pytest

from hrms.models.attendance import AttendanceRecord
from hrms.services.attendance_service import AttendanceService

OFFICE_LAT, OFFICE_LON = 24.8607, 67.0011


@pytest.fixture
def late_record(db_session, employee):
    service = AttendanceService(db_session)
    record = service.check_in(employee.id, OFFICE_LAT, OFFICE_LON, datetime(2024, 1, 10, 9, 30))
    service.check_out(employee.id, OFFICE_LAT, OFFICE_LON, datetime(2024, 1, 10, 17, 30))
    return record


def _submit(client, headers, record, **times):
    payload = {"attendance_record_id": record.id, "reason": "Badge reader was down"}
    payload.update(times)
    return client.post("/api/attendance/regularization", headers=headers, json=payload)


def _act(client, headers, request_id, status="APPROVED", **extra):
    payload = {"status": status}
    payload.update(extra)
    return client.put(f"/api/attendance/regularization/{request_id}/action", headers=headers, json=payload)


def test_approved_correction_rewrites_record(client, db_session, employee, manager, hr_user, late_record, auth_headers):
    response = _submit(client, auth_headers(employee), late_record, requested_clock_in="2024-01-10T09:00:00")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "PENDING"
    assert data["approval_stage"] == "MANAGER"
    assert data["original_clock_in"] == "2024-01-10T09:30:00"
    assert data["attendance_date"] == "2024-01-10"

    response = _act(client, auth_headers(manager), data["id"], role="MANAGER")
    assert response.json()["approval_stage"] == "HR"

    response = _act(client, auth_headers(hr_user), data["id"], role="HR", comment="Verified")
    assert response.status_code == 200
    assert response.json()["status"] == "APPROVED"
    assert response.json()["hr_comment"] == "Verified"

    record = db_session.get(AttendanceRecord, late_record.id)
    db_session.refresh(record)
    assert record.clock_in_time == datetime(2024, 1, 10, 9, 0)
    assert record.is_late is False
    assert record.total_hours == 8.5


def test_rejected_correction_leaves_record(client, db_session, employee, manager, late_record, auth_headers):
    request_id = _submit(client, auth_headers(employee), late_record, requested_clock_in="2024-01-10T09:00:00").json()["id"]
    response = _act(client, auth_headers(manager), request_id, status="REJECTED", comment="No evidence")
    assert response.json()["status"] == "REJECTED"

    record = db_session.get(AttendanceRecord, late_record.id)
    db_session.refresh(record)
    assert record.clock_in_time == datetime(2024, 1, 10, 9, 30)
    assert record.is_late is True


def test_correction_must_change_something(client, employee, late_record, auth_headers):
    response = _submit(client, auth_headers(employee), late_record, requested_clock_in="2024-01-10T09:30:00")
    assert response.status_code == 422


def test_correction_times_must_stay_on_the_day(client, employee, late_record, auth_headers):
    response = _submit(client, auth_headers(employee), late_record, requested_clock_in="2024-01-11T09:00:00")
    assert response.status_code == 422


def test_correction_out_before_in_rejected(client, employee, late_record, auth_headers):
    response = _submit(client, auth_headers(employee), late_record, requested_clock_out="2024-01-10T08:00:00")
    assert response.status_code == 422
    assert response.json()["errors"][0]["details"]["requested_clock_out"]


def test_one_pending_correction_per_record(client, employee, late_record, auth_headers):
    _submit(client, auth_headers(employee), late_record, requested_clock_in="2024-01-10T09:00:00")
    response = _submit(client, auth_headers(employee), late_record, requested_clock_in="2024-01-10T08:55:00")
    assert response.status_code == 409
    assert response.json()["errors"][0]["code"] == "DUPLICATE_REQUEST"


def test_cannot_correct_someone_elses_record(client, manager, late_record, auth_headers):
    response = _submit(client, auth_headers(manager), late_record, requested_clock_in="2024-01-10T09:00:00")
    assert response.status_code == 403


def test_invalid_status_rejected(client, employee, manager, late_record, auth_headers):
    request_id = _submit(client, auth_headers(employee), late_record, requested_clock_in="2024-01-10T09:00:00").json()["id"]
    response = _act(client, auth_headers(manager), request_id, status="PENDING")
    assert response.status_code == 422


def test_regularization_listing_scopes(client, employee, manager, hr_user, make_employee, late_record, auth_headers):
    _submit(client, auth_headers(employee), late_record, requested_clock_in="2024-01-10T09:00:00")
    outsider = make_employee()

    own = client.get("/api/attendance/regularizations", headers=auth_headers(employee)).json()
    assert len(own) == 1
    team = client.get("/api/attendance/regularizations", headers=auth_headers(manager)).json()
    assert [r["employee_id"] for r in team] == [employee.id]
    assert client.get("/api/attendance/regularizations", headers=auth_headers(outsider)).json() == []
    assert len(client.get("/api/attendance/regularizations?status=pending", headers=auth_headers(hr_user)).json()) == 1

    response = client.get(f"/api/attendance/regularizations?employee_id={employee.id}", headers=auth_headers(outsider))
    assert response.status_code == 403
