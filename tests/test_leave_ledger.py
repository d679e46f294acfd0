from decimal import Decimal

import pytest

from hrms.core.exceptions import InsufficientBalanceError
from hrms.models.leave_balance import LeaveBalance
from hrms.services.leave_ledger import LeaveLedger, available_days


def test_available_uses_every_ledger_column(db_session, employee, leave_types):
    balance = LeaveBalance(
        employee_id=employee.id,
        leave_type_id=leave_types["AL"].id,
        year=2024,
        opening_balance_days=Decimal("10"),
        carry_forward_days=Decimal("2"),
        accrued_days=Decimal("1"),
        used_days=Decimal("3"),
        pending_approval_days=Decimal("4"),
    )
    db_session.add(balance)
    db_session.commit()

    ledger = LeaveLedger(db_session)
    assert ledger.available(employee.id, leave_types["AL"].id, 2024) == Decimal("6")


def test_balance_row_opens_with_yearly_default(db_session, employee, leave_types):
    ledger = LeaveLedger(db_session)
    balance = ledger.get_balance(employee.id, leave_types["AL"].id, 2024)
    assert balance.opening_balance_days == Decimal("14")
    assert available_days(balance) == Decimal("14")

    # A second lookup reuses the row instead of opening another one
    ledger.get_balance(employee.id, leave_types["AL"].id, 2024)
    assert db_session.query(LeaveBalance).filter_by(employee_id=employee.id).count() == 1


def test_reserve_consume_release_cycle(db_session, employee, leave_types):
    ledger = LeaveLedger(db_session, allow_negative_balance=False)
    al = leave_types["AL"].id

    assert ledger.reserve(employee.id, al, 2024, Decimal("3")) is None
    balance = ledger.get_balance(employee.id, al, 2024)
    assert balance.pending_approval_days == Decimal("3")

    ledger.consume(employee.id, al, 2024, Decimal("3"))
    assert balance.pending_approval_days == Decimal("0")
    assert balance.used_days == Decimal("3")

    ledger.reserve(employee.id, al, 2024, Decimal("2"))
    ledger.release(employee.id, al, 2024, Decimal("2"))
    assert balance.pending_approval_days == Decimal("0")
    assert available_days(balance) == Decimal("11")


def test_reserve_blocks_when_balance_insufficient(db_session, employee, leave_types):
    ledger = LeaveLedger(db_session, allow_negative_balance=False)
    al = leave_types["AL"].id

    with pytest.raises(InsufficientBalanceError) as exc:
        ledger.reserve(employee.id, al, 2024, Decimal("15"))
    assert exc.value.details["available"] == 14.0
    assert ledger.get_balance(employee.id, al, 2024).pending_approval_days == Decimal("0")


def test_reserve_warns_when_negative_balance_allowed(db_session, employee, leave_types):
    ledger = LeaveLedger(db_session, allow_negative_balance=True)
    al = leave_types["AL"].id

    warning = ledger.reserve(employee.id, al, 2024, Decimal("15"))
    assert warning is not None
    assert "negative" in warning
    assert ledger.available(employee.id, al, 2024) == Decimal("-1")


def test_unbalanced_types_never_block(db_session, employee, leave_types):
    ledger = LeaveLedger(db_session, allow_negative_balance=False)
    unpaid = leave_types["UL"].id

    assert ledger.reserve(employee.id, unpaid, 2024, Decimal("20")) is None
    assert ledger.get_balance(employee.id, unpaid, 2024).pending_approval_days == Decimal("20")


def test_adjust_reservation_moves_only_the_delta(db_session, employee, leave_types):
    ledger = LeaveLedger(db_session, allow_negative_balance=False)
    al = leave_types["AL"].id

    ledger.reserve(employee.id, al, 2024, Decimal("3"))
    ledger.adjust_reservation(employee.id, al, 2024, Decimal("3"), Decimal("5"))
    assert ledger.get_balance(employee.id, al, 2024).pending_approval_days == Decimal("5")


def test_failed_adjustment_keeps_original_reservation(db_session, employee, leave_types):
    ledger = LeaveLedger(db_session, allow_negative_balance=False)
    al = leave_types["AL"].id

    ledger.reserve(employee.id, al, 2024, Decimal("10"))
    with pytest.raises(InsufficientBalanceError):
        ledger.adjust_reservation(employee.id, al, 2024, Decimal("10"), Decimal("20"))
    assert ledger.get_balance(employee.id, al, 2024).pending_approval_days == Decimal("10")


def test_balances_for_returns_one_row_per_active_type(db_session, employee, leave_types):
    ledger = LeaveLedger(db_session)
    rows = ledger.balances_for(employee.id, 2024)
    assert {row.leave_type.code for row in rows} == set(leave_types)
