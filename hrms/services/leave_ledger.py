"""
Leave Balance Ledger

Authoritative per (employee, leave type, year) accounting. Every mutation
here is flushed into the caller's transaction and never committed on its own:
a reservation must live or die with the status change that caused it.

    available = opening + carry_forward + accrued - used - pending_approval
"""
from decimal import Decimal
from typing import List, Optional

from hrms.core.config import settings
from hrms.core.exceptions import InsufficientBalanceError, NotFoundError
from hrms.models.leave_balance import LeaveBalance
from hrms.models.leave_type import LeaveType
from hrms.services.base import BaseService

ZERO = Decimal("0")


def to_days(value) -> Decimal:
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def available_days(balance: LeaveBalance) -> Decimal:
    return (
        to_days(balance.opening_balance_days)
        + to_days(balance.carry_forward_days)
        + to_days(balance.accrued_days)
        - to_days(balance.used_days)
        - to_days(balance.pending_approval_days)
    )


class LeaveLedger(BaseService):
    def __init__(self, db, allow_negative_balance: Optional[bool] = None):
        super().__init__(db)
        self.allow_negative_balance = (
            settings.leave.allow_negative_balance if allow_negative_balance is None else allow_negative_balance
        )

    def _leave_type(self, leave_type_id: int) -> LeaveType:
        leave_type = self.db.get(LeaveType, leave_type_id)
        if not leave_type:
            raise NotFoundError(f"Leave type {leave_type_id} not found")
        return leave_type

    def get_balance(self, employee_id: int, leave_type_id: int, year: int, lock: bool = False) -> LeaveBalance:
        """Return the ledger row, opening it with the type's yearly default if missing."""
        query = self.db.query(LeaveBalance).filter(
            LeaveBalance.employee_id == employee_id,
            LeaveBalance.leave_type_id == leave_type_id,
            LeaveBalance.year == year,
        )
        if lock:
            query = query.with_for_update()
        balance = query.first()
        if balance is None:
            leave_type = self._leave_type(leave_type_id)
            balance = LeaveBalance(
                employee_id=employee_id,
                leave_type_id=leave_type_id,
                year=year,
                opening_balance_days=to_days(leave_type.default_days_per_year),
                carry_forward_days=ZERO,
                accrued_days=ZERO,
                used_days=ZERO,
                pending_approval_days=ZERO,
            )
            self.db.add(balance)
            self.db.flush()
        return balance

    def available(self, employee_id: int, leave_type_id: int, year: int) -> Decimal:
        return available_days(self.get_balance(employee_id, leave_type_id, year))

    def balances_for(self, employee_id: int, year: int) -> List[LeaveBalance]:
        """One row per active leave type, uniformly; callers filter for presentation."""
        leave_types = self.db.query(LeaveType).filter(LeaveType.is_active.is_(True)).order_by(LeaveType.id).all()
        return [self.get_balance(employee_id, lt.id, year) for lt in leave_types]

    def reserve(self, employee_id: int, leave_type_id: int, year: int, days) -> Optional[str]:
        """
        Move `days` into pending_approval_days.

        Raises InsufficientBalanceError when the reservation would take the
        balance below zero, unless negative balances are allowed, in which
        case a warning message is returned instead.
        """
        days = to_days(days)
        balance = self.get_balance(employee_id, leave_type_id, year, lock=True)
        leave_type = balance.leave_type or self._leave_type(leave_type_id)
        available = available_days(balance)
        warning = None
        if leave_type.requires_balance and available < days:
            if not self.allow_negative_balance:
                self.log_warning(
                    f"Insufficient {leave_type.code} balance for employee {employee_id}",
                    requested=str(days), available=str(available),
                )
                raise InsufficientBalanceError(leave_type.code, float(days), float(available))
            warning = (
                f"{leave_type.code} balance will be negative after this request "
                f"(available {available}, requested {days})."
            )
            self.log_warning(warning, employee_id=employee_id)
        balance.pending_approval_days = to_days(balance.pending_approval_days) + days
        self.db.flush()
        return warning

    def release(self, employee_id: int, leave_type_id: int, year: int, days) -> LeaveBalance:
        """Undo a reservation (reject / cancel / edit)."""
        balance = self.get_balance(employee_id, leave_type_id, year, lock=True)
        balance.pending_approval_days = to_days(balance.pending_approval_days) - to_days(days)
        self.db.flush()
        return balance

    def consume(self, employee_id: int, leave_type_id: int, year: int, days) -> LeaveBalance:
        """Final approval: pending -> used."""
        days = to_days(days)
        balance = self.get_balance(employee_id, leave_type_id, year, lock=True)
        balance.pending_approval_days = to_days(balance.pending_approval_days) - days
        balance.used_days = to_days(balance.used_days) + days
        self.db.flush()
        return balance

    def adjust_reservation(self, employee_id: int, leave_type_id: int, year: int, old_days, new_days) -> Optional[str]:
        """
        Change an existing reservation on the same ledger row by the delta only.
        The availability check treats the old reservation as already returned.
        """
        old_days, new_days = to_days(old_days), to_days(new_days)
        balance = self.get_balance(employee_id, leave_type_id, year, lock=True)
        balance.pending_approval_days = to_days(balance.pending_approval_days) - old_days
        try:
            return self.reserve(employee_id, leave_type_id, year, new_days)
        except InsufficientBalanceError:
            balance.pending_approval_days = to_days(balance.pending_approval_days) + old_days
            self.db.flush()
            raise
