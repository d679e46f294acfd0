def test_employee_dashboard(client, employee, manager, leave_types, auth_headers):
    client.post(
        "/api/attendance/check-in",
        headers=auth_headers(employee),
        json={"device_latitude": 24.8607, "device_longitude": 67.0011},
    )
    client.post(
        "/api/leaves/requests",
        headers=auth_headers(employee),
        json={
            "leave_type_id": leave_types["AL"].id,
            "start_date": "2024-01-20",
            "end_date": "2024-01-22",
            "reason": "Trip",
        },
    )
    client.put(
        f"/api/leaves/requests/{_first_request_id(client, auth_headers(employee))}/action",
        headers=auth_headers(manager),
        json={"action": "APPROVE"},
    )

    response = client.get("/api/dashboard/employee", headers=auth_headers(employee))
    assert response.status_code == 200
    data = response.json()
    assert data["employee"]["id"] == employee.id
    assert data["employee"]["shift_start_time"] == "09:00:00"
    assert data["attendanceToday"]["attendance_date"] == "2024-01-10"
    assert data["notifications"][0]["title"] == "Request Update"
    assert [leave["start_date"] for leave in data["upcomingLeaves"]] == ["2024-01-20"]


def test_dashboard_of_another_employee_requires_hr(client, employee, manager, hr_user, auth_headers):
    url = f"/api/dashboard/employee?employee_id={manager.id}"
    assert client.get(url, headers=auth_headers(employee)).status_code == 403

    data = client.get(url, headers=auth_headers(hr_user)).json()
    assert data["employee"]["id"] == manager.id
    assert data["attendanceToday"] is None
    assert data["upcomingLeaves"] == []


def _first_request_id(client, headers):
    return client.get("/api/leaves/requests", headers=headers).json()[0]["id"]
