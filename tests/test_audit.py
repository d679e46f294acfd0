from datetime import date, time
from decimal import Decimal

from hrms.models.audit_log import AuditLog
from hrms.models.employee import EmployeeRole
from hrms.services.audit import AuditService, to_json_safe


def test_snapshots_are_json_safe():
    snapshot = {
        "net_salary": Decimal("2727.28"),
        "role": EmployeeRole.HR,
        "start_date": date(2024, 1, 15),
        "check_in": time(9, 30),
        "days": (1, 2),
    }
    assert to_json_safe(snapshot) == {
        "net_salary": "2727.28",
        "role": "HR",
        "start_date": "2024-01-15",
        "check_in": "09:30:00",
        "days": [1, 2],
    }


def test_entry_rolls_back_with_the_caller(db_session, hr_user):
    AuditService.log(db_session, "update_employee", "employee", hr_user.id, hr_user.id, hr_user.role, {})
    db_session.rollback()
    assert db_session.query(AuditLog).count() == 0

    AuditService.log(db_session, "update_employee", "employee", hr_user.id, hr_user.id, hr_user.role, {})
    db_session.commit()
    entry = db_session.query(AuditLog).one()
    assert entry.actor_role == "HR"
