from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import update

from hrms.core.config import settings
from hrms.core.exceptions import NotPendingError
from hrms.models.audit_log import AuditLog
from hrms.models.employee import EmployeeRole, Gender
from hrms.models.leave_request import LeaveRequest
from hrms.models.notification import Notification
from hrms.services.leave_ledger import LeaveLedger
from hrms.services.leave_service import LeaveService, compute_total_days


def _apply(client, headers, leave_type, start="2024-01-10", end="2024-01-12", **extra):
    payload = {
        "leave_type_id": leave_type.id,
        "start_date": start,
        "end_date": end,
        "reason": "Family wedding",
    }
    payload.update(extra)
    return client.post("/api/leaves/requests", headers=headers, json=payload)


def _act(client, headers, request_id, action="APPROVE", **extra):
    payload = {"action": action}
    payload.update(extra)
    return client.put(f"/api/leaves/requests/{request_id}/action", headers=headers, json=payload)


def _balance(client, headers, employee, code="AL"):
    response = client.get(f"/api/leaves/balance/{employee.id}?year=2024", headers=headers)
    assert response.status_code == 200
    return next(row for row in response.json() if row["code"] == code)


def test_total_days_counts_inclusive_calendar_days():
    assert compute_total_days(date(2024, 1, 10), date(2024, 1, 12), False) == Decimal("3")
    assert compute_total_days(date(2024, 1, 10), date(2024, 1, 10), True) == Decimal("0.5")


def test_two_stage_approval_consumes_balance(client, employee, manager, hr_user, leave_types, auth_headers):
    response = _apply(client, auth_headers(employee), leave_types["AL"])
    assert response.status_code == 200
    data = response.json()
    assert data["total_days"] == 3
    assert data["status"] == "PENDING"
    assert data["approval_stage"] == "MANAGER"
    assert data["code"] == "AL"
    assert data["warning"] is None
    request_id = data["id"]

    balance = _balance(client, auth_headers(employee), employee)
    assert balance["pending_approval_days"] == 3
    assert balance["available_days"] == 11

    response = _act(client, auth_headers(manager), request_id, role="MANAGER", approver_id=manager.id, comment="ok")
    assert response.status_code == 200
    assert response.json()["status"] == "PENDING"
    assert response.json()["approval_stage"] == "HR"
    assert response.json()["manager_comment"] == "ok"

    response = _act(client, auth_headers(hr_user), request_id, role="HR")
    assert response.status_code == 200
    assert response.json()["status"] == "APPROVED"
    assert response.json()["approval_stage"] is None

    balance = _balance(client, auth_headers(employee), employee)
    assert balance["used_days"] == 3
    assert balance["pending_approval_days"] == 0
    assert balance["available_days"] == 11


def test_rejection_returns_reservation(client, employee, manager, leave_types, auth_headers):
    request_id = _apply(client, auth_headers(employee), leave_types["AL"]).json()["id"]

    response = _act(client, auth_headers(manager), request_id, action="REJECT", comment="Busy week")
    assert response.status_code == 200
    assert response.json()["status"] == "REJECTED"

    balance = _balance(client, auth_headers(employee), employee)
    assert balance["pending_approval_days"] == 0
    assert balance["used_days"] == 0
    assert balance["available_days"] == 14


def test_second_decision_conflicts_and_leaves_ledger_alone(client, employee, manager, hr_user, leave_types, auth_headers):
    request_id = _apply(client, auth_headers(employee), leave_types["AL"]).json()["id"]
    _act(client, auth_headers(manager), request_id)
    _act(client, auth_headers(hr_user), request_id)
    before = _balance(client, auth_headers(employee), employee)

    response = _act(client, auth_headers(hr_user), request_id, action="REJECT")
    assert response.status_code == 409
    assert response.json()["errors"][0]["code"] == "NOT_PENDING"
    assert _balance(client, auth_headers(employee), employee) == before


def test_concurrent_decision_loses_the_conditional_update(db_session, employee, manager, leave_types):
    service = LeaveService(db_session)
    request, _ = service.submit(
        employee, leave_types["AL"].id, date(2024, 1, 10), date(2024, 1, 12), reason="Trip",
    )
    # Another approver decides first; the session still holds the PENDING copy
    db_session.execute(
        update(LeaveRequest)
        .where(LeaveRequest.id == request.id)
        .values(status="REJECTED", approval_stage=None)
        .execution_options(synchronize_session=False)
    )
    assert request.status == "PENDING"

    with pytest.raises(NotPendingError):
        service.act(request.id, manager, "APPROVE")

    balance = LeaveLedger(db_session).get_balance(employee.id, leave_types["AL"].id, 2024)
    assert balance.used_days == Decimal("0")
    assert balance.pending_approval_days == Decimal("3")


def test_edit_after_concurrent_approval_is_rejected(db_session, employee, leave_types):
    service = LeaveService(db_session)
    request, _ = service.submit(
        employee, leave_types["AL"].id, date(2024, 1, 10), date(2024, 1, 12), reason="Trip",
    )
    # Final approval lands first and consumes the days; the editor still holds the PENDING copy
    db_session.execute(
        update(LeaveRequest)
        .where(LeaveRequest.id == request.id)
        .values(status="APPROVED", approval_stage=None)
        .execution_options(synchronize_session=False)
    )
    LeaveLedger(db_session).consume(employee.id, leave_types["AL"].id, 2024, Decimal("3"))
    assert request.status == "PENDING"

    with pytest.raises(NotPendingError):
        service.edit(
            request.id, employee, leave_types["AL"].id, date(2024, 1, 10), date(2024, 1, 14), reason="Longer trip",
        )

    db_session.expire_all()
    stored = db_session.get(LeaveRequest, request.id)
    assert stored.total_days == Decimal("3")
    assert stored.end_date == date(2024, 1, 12)
    balance = LeaveLedger(db_session).get_balance(employee.id, leave_types["AL"].id, 2024)
    assert balance.pending_approval_days == Decimal("3")
    assert balance.used_days == Decimal("0")


def test_edit_adjusts_reservation_by_delta(client, employee, manager, leave_types, auth_headers):
    request_id = _apply(client, auth_headers(employee), leave_types["AL"]).json()["id"]
    _act(client, auth_headers(manager), request_id)

    response = client.put(
        f"/api/leaves/requests/{request_id}",
        headers=auth_headers(employee),
        json={
            "leave_type_id": leave_types["AL"].id,
            "start_date": "2024-01-10",
            "end_date": "2024-01-14",
            "reason": "Longer trip",
        },
    )
    assert response.status_code == 200
    data = response.json()
    assert data["total_days"] == 5
    # Edits restart the approval chain
    assert data["approval_stage"] == "MANAGER"
    assert data["manager_approver_id"] is None

    balance = _balance(client, auth_headers(employee), employee)
    assert balance["pending_approval_days"] == 5


def test_edit_to_another_leave_type_moves_reservation(client, employee, leave_types, auth_headers):
    request_id = _apply(client, auth_headers(employee), leave_types["AL"]).json()["id"]
    response = client.put(
        f"/api/leaves/requests/{request_id}",
        headers=auth_headers(employee),
        json={
            "leave_type_id": leave_types["SL"].id,
            "start_date": "2024-01-10",
            "end_date": "2024-01-11",
            "reason": "Flu",
        },
    )
    assert response.status_code == 200
    assert _balance(client, auth_headers(employee), employee, "AL")["pending_approval_days"] == 0
    assert _balance(client, auth_headers(employee), employee, "SL")["pending_approval_days"] == 2


def test_only_owner_edits_pending_requests(client, employee, manager, hr_user, leave_types, auth_headers):
    request_id = _apply(client, auth_headers(employee), leave_types["AL"]).json()["id"]
    payload = {
        "leave_type_id": leave_types["AL"].id,
        "start_date": "2024-01-10",
        "end_date": "2024-01-11",
        "reason": "Shorter",
    }
    assert client.put(f"/api/leaves/requests/{request_id}", headers=auth_headers(manager), json=payload).status_code == 403

    _act(client, auth_headers(manager), request_id)
    _act(client, auth_headers(hr_user), request_id)
    response = client.put(f"/api/leaves/requests/{request_id}", headers=auth_headers(employee), json=payload)
    assert response.status_code == 409


def test_insufficient_balance_is_blocked(client, employee, leave_types, auth_headers):
    response = _apply(client, auth_headers(employee), leave_types["AL"], start="2024-02-01", end="2024-02-15")
    assert response.status_code == 400
    assert response.json()["errors"][0]["code"] == "INSUFFICIENT_BALANCE"

    listing = client.get("/api/leaves/requests", headers=auth_headers(employee))
    assert listing.json() == []
    assert _balance(client, auth_headers(employee), employee)["pending_approval_days"] == 0


def test_negative_balance_allowed_with_warning(client, employee, leave_types, auth_headers, monkeypatch):
    monkeypatch.setattr(settings.leave, "allow_negative_balance", True)
    response = _apply(client, auth_headers(employee), leave_types["AL"], start="2024-02-01", end="2024-02-15")
    assert response.status_code == 200
    assert "negative" in response.json()["warning"]
    assert _balance(client, auth_headers(employee), employee)["available_days"] == -1


def test_only_reporting_manager_acts_at_manager_stage(client, employee, make_employee, leave_types, auth_headers):
    other_manager = make_employee(role=EmployeeRole.MANAGER)
    request_id = _apply(client, auth_headers(employee), leave_types["AL"]).json()["id"]
    response = _act(client, auth_headers(other_manager), request_id)
    assert response.status_code == 403


def test_hr_cannot_skip_manager_stage(client, employee, hr_user, leave_types, auth_headers):
    request_id = _apply(client, auth_headers(employee), leave_types["AL"]).json()["id"]
    response = _act(client, auth_headers(hr_user), request_id, role="HR")
    assert response.status_code == 409
    assert response.json()["errors"][0]["code"] == "NOT_PENDING"


def test_manager_claim_after_manager_stage_conflicts(client, employee, manager, leave_types, auth_headers):
    request_id = _apply(client, auth_headers(employee), leave_types["AL"]).json()["id"]
    _act(client, auth_headers(manager), request_id, role="MANAGER")
    response = _act(client, auth_headers(manager), request_id, role="MANAGER")
    assert response.status_code == 409


def test_employee_cannot_claim_hr_role(client, employee, manager, leave_types, auth_headers):
    request_id = _apply(client, auth_headers(employee), leave_types["AL"]).json()["id"]
    _act(client, auth_headers(manager), request_id)
    response = _act(client, auth_headers(manager), request_id, role="HR")
    assert response.status_code == 403


def test_admin_at_manager_stage_advances_to_hr(client, employee, admin_user, leave_types, auth_headers):
    request_id = _apply(client, auth_headers(employee), leave_types["AL"]).json()["id"]
    response = _act(client, auth_headers(admin_user), request_id)
    assert response.status_code == 200
    assert response.json()["status"] == "PENDING"
    assert response.json()["approval_stage"] == "HR"


def test_approver_id_must_match_caller(client, employee, manager, hr_user, leave_types, auth_headers):
    request_id = _apply(client, auth_headers(employee), leave_types["AL"]).json()["id"]
    response = _act(client, auth_headers(manager), request_id, approver_id=hr_user.id)
    assert response.status_code == 403


def test_invalid_action_rejected(client, employee, manager, leave_types, auth_headers):
    request_id = _apply(client, auth_headers(employee), leave_types["AL"]).json()["id"]
    response = _act(client, auth_headers(manager), request_id, action="MAYBE")
    assert response.status_code == 422


def test_requests_without_manager_go_straight_to_hr(client, hr_user, make_employee, leave_types, auth_headers):
    loner = make_employee()
    response = _apply(client, auth_headers(loner), leave_types["AL"])
    assert response.json()["approval_stage"] == "HR"

    response = _act(client, auth_headers(hr_user), response.json()["id"])
    assert response.json()["status"] == "APPROVED"


def test_self_approval_forbidden(client, hr_user, leave_types, auth_headers):
    request_id = _apply(client, auth_headers(hr_user), leave_types["AL"]).json()["id"]
    response = _act(client, auth_headers(hr_user), request_id)
    assert response.status_code == 403


def test_cancel_releases_reservation(client, employee, manager, leave_types, auth_headers):
    request_id = _apply(client, auth_headers(employee), leave_types["AL"]).json()["id"]

    response = client.post(f"/api/leaves/requests/{request_id}/cancel", headers=auth_headers(manager))
    assert response.status_code == 403

    response = client.post(f"/api/leaves/requests/{request_id}/cancel", headers=auth_headers(employee))
    assert response.status_code == 200
    assert response.json()["status"] == "CANCELLED"
    assert _balance(client, auth_headers(employee), employee)["pending_approval_days"] == 0

    response = client.post(f"/api/leaves/requests/{request_id}/cancel", headers=auth_headers(employee))
    assert response.status_code == 409


def test_overlapping_requests_rejected(client, employee, leave_types, auth_headers):
    _apply(client, auth_headers(employee), leave_types["AL"])
    response = _apply(client, auth_headers(employee), leave_types["SL"], start="2024-01-12", end="2024-01-13")
    assert response.status_code == 400
    assert response.json()["errors"][0]["code"] == "OVERLAPPING_LEAVE"


def test_cancelled_request_frees_the_dates(client, employee, leave_types, auth_headers):
    request_id = _apply(client, auth_headers(employee), leave_types["AL"]).json()["id"]
    client.post(f"/api/leaves/requests/{request_id}/cancel", headers=auth_headers(employee))
    assert _apply(client, auth_headers(employee), leave_types["AL"]).status_code == 200


def test_half_days_in_different_sessions_coexist(client, employee, leave_types, auth_headers):
    first = _apply(client, auth_headers(employee), leave_types["AL"], start="2024-01-10", end="2024-01-10",
                   is_half_day=True, half_day_session="FIRST_HALF")
    assert first.status_code == 200
    assert first.json()["total_days"] == 0.5

    second = _apply(client, auth_headers(employee), leave_types["SL"], start="2024-01-10", end="2024-01-10",
                    is_half_day=True, half_day_session="SECOND_HALF")
    assert second.status_code == 200

    third = _apply(client, auth_headers(employee), leave_types["SL"], start="2024-01-10", end="2024-01-10",
                   is_half_day=True, half_day_session="SECOND_HALF")
    assert third.status_code == 400


def test_half_day_must_be_a_single_date(client, employee, leave_types, auth_headers):
    response = _apply(client, auth_headers(employee), leave_types["AL"], is_half_day=True)
    assert response.status_code == 422
    assert response.json()["errors"][0]["details"]["end_date"]


def test_end_before_start_rejected(client, employee, leave_types, auth_headers):
    response = _apply(client, auth_headers(employee), leave_types["AL"], start="2024-01-12", end="2024-01-10")
    assert response.status_code == 422


def test_wfh_leave_capped_per_request(client, employee, leave_types, auth_headers):
    response = _apply(client, auth_headers(employee), leave_types["WFH"], start="2024-01-08", end="2024-01-11")
    assert response.status_code == 400
    assert response.json()["errors"][0]["code"] == "WFH_LIMIT_EXCEEDED"


def test_gender_restricted_types(client, employee, make_employee, leave_types, auth_headers):
    codes = {t["code"] for t in client.get("/api/leaves/types", headers=auth_headers(employee)).json()}
    assert "ML" in codes
    assert "PL" not in codes

    male = make_employee(gender=Gender.MALE)
    rows = client.get(f"/api/leaves/balance/{male.id}?year=2024", headers=auth_headers(male)).json()
    assert {"PL", "AL"} <= {row["code"] for row in rows}
    assert "ML" not in {row["code"] for row in rows}

    response = _apply(client, auth_headers(male), leave_types["ML"])
    assert response.status_code == 422


def test_balance_of_another_employee_requires_hr(client, employee, manager, hr_user, leave_types, auth_headers):
    assert client.get(f"/api/leaves/balance/{manager.id}", headers=auth_headers(employee)).status_code == 403
    assert client.get(f"/api/leaves/balance/{employee.id}", headers=auth_headers(hr_user)).status_code == 200


def test_request_views(client, employee, manager, hr_user, leave_types, auth_headers):
    _apply(client, auth_headers(employee), leave_types["AL"])

    team = client.get("/api/leaves/requests?view=manager", headers=auth_headers(manager))
    assert team.status_code == 200
    assert [r["employee_id"] for r in team.json()] == [employee.id]
    assert team.json()[0]["first_name"] == "Sara"

    assert client.get("/api/leaves/requests?view=hr", headers=auth_headers(employee)).status_code == 403
    assert len(client.get("/api/leaves/requests?view=hr", headers=auth_headers(hr_user)).json()) == 1

    assert client.get("/api/leaves/requests?date_from=2024-02-01", headers=auth_headers(employee)).json() == []


def test_decisions_are_audited_and_notified(client, db_session, employee, manager, hr_user, leave_types, auth_headers):
    request_id = _apply(client, auth_headers(employee), leave_types["AL"]).json()["id"]
    _act(client, auth_headers(manager), request_id)
    _act(client, auth_headers(hr_user), request_id)

    actions = [
        log.action for log in db_session.query(AuditLog).filter(
            AuditLog.entity_type == "leave_request", AuditLog.entity_id == request_id
        ).order_by(AuditLog.id)
    ]
    assert actions == ["submit_leave", "approve_leave_manager", "approve_leave_hr"]

    manager_inbox = db_session.query(Notification).filter_by(employee_id=manager.id).all()
    approval_needed = [n for n in manager_inbox if n.title == "Approval Needed"]
    assert approval_needed
    assert approval_needed[0].entity_type == "leave_request"
    assert approval_needed[0].entity_id == request_id
    assert approval_needed[0].link == "/api/leaves/requests"
    titles = [n.title for n in db_session.query(Notification).filter_by(employee_id=employee.id)]
    assert "Request Approved" in titles


def test_list_requests_filters_by_date_range(db_session, employee, leave_types):
    service = LeaveService(db_session)
    january, _ = service.submit(employee, leave_types["AL"].id, date(2024, 1, 10), date(2024, 1, 12), reason="Trip")
    february, _ = service.submit(employee, leave_types["AL"].id, date(2024, 2, 5), date(2024, 2, 6), reason="Trip")

    # A range overlapping only the end of the January request still finds it
    ids = [r.id for r in service.list_requests(employee_id=employee.id, date_from=date(2024, 1, 12), date_to=date(2024, 1, 31))]
    assert ids == [january.id]

    ids = [r.id for r in service.list_requests(employee_id=employee.id, date_from=date(2024, 2, 1))]
    assert ids == [february.id]

    assert service.list_requests(employee_id=employee.id, date_to=date(2024, 1, 9)) == []
