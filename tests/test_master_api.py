from hrms.models.audit_log import AuditLog


def _create(client, headers, **overrides):
    payload = {
        "name": "Dubai Office",
        "country_code": "ae",
        "latitude": 25.2048,
        "longitude": 55.2708,
        "geo_fence_radius_meters": 150,
        "timezone": "Asia/Dubai",
    }
    payload.update(overrides)
    return client.post("/api/master/locations", headers=headers, json=payload)


def test_any_employee_can_list_locations(client, employee, office, auth_headers):
    response = client.get("/api/master/locations", headers=auth_headers(employee))
    assert response.status_code == 200
    rows = response.json()
    assert [row["name"] for row in rows] == ["Karachi HQ"]
    assert rows[0]["country_code"] == "PK"
    assert rows[0]["geo_fence_radius_meters"] == 200


def test_hr_creates_location(client, db_session, hr_user, auth_headers):
    response = _create(client, auth_headers(hr_user))
    assert response.status_code == 200
    body = response.json()
    assert body["country_code"] == "AE"
    assert body["timezone"] == "Asia/Dubai"

    fetched = client.get(f"/api/master/locations/{body['id']}", headers=auth_headers(hr_user)).json()
    assert fetched["name"] == "Dubai Office"
    assert db_session.query(AuditLog).filter_by(action="create_location", entity_id=body["id"]).count() == 1


def test_create_requires_hr(client, employee, auth_headers):
    assert _create(client, auth_headers(employee)).status_code == 403


def test_create_rejects_bad_input(client, hr_user, auth_headers):
    headers = auth_headers(hr_user)
    assert _create(client, headers, timezone="Mars/Olympus").status_code == 422
    assert _create(client, headers, latitude=120).status_code == 422
    assert _create(client, headers, longitude=None).status_code == 422
    assert _create(client, headers, geo_fence_radius_meters=0).status_code == 422


def test_update_moves_geo_fence(client, db_session, employee, hr_user, office, auth_headers):
    response = client.put(
        f"/api/master/locations/{office.id}",
        headers=auth_headers(hr_user),
        json={"geo_fence_radius_meters": 500, "timezone": "Asia/Karachi"},
    )
    assert response.status_code == 200
    assert response.json()["geo_fence_radius_meters"] == 500
    assert response.json()["name"] == "Karachi HQ"

    db_session.expire_all()
    assert employee.location.timezone == "Asia/Karachi"


def test_update_keeps_coordinates_paired(client, hr_user, office, auth_headers):
    headers = auth_headers(hr_user)
    response = client.put(f"/api/master/locations/{office.id}", headers=headers, json={"latitude": None})
    assert response.status_code == 422

    response = client.put(f"/api/master/locations/{office.id}", headers=headers, json={"name": None})
    assert response.status_code == 422


def test_update_requires_hr_and_known_location(client, employee, hr_user, office, auth_headers):
    url = f"/api/master/locations/{office.id}"
    assert client.put(url, headers=auth_headers(employee), json={"name": "HQ"}).status_code == 403
    assert client.put("/api/master/locations/999", headers=auth_headers(hr_user), json={"name": "HQ"}).status_code == 404
