import logging
from decimal import Decimal

from hrms.database import session_scope
from hrms.models.leave_type import GenderApplicability, LeaveType

logger = logging.getLogger(__name__)

DEFAULT_LEAVE_TYPES = [
    {"code": "AL", "name": "Annual Leave", "is_paid": True, "requires_balance": True,
     "gender_applicability": GenderApplicability.ALL.value, "default_days_per_year": Decimal("14")},
    {"code": "SL", "name": "Sick Leave", "is_paid": True, "requires_balance": True,
     "gender_applicability": GenderApplicability.ALL.value, "default_days_per_year": Decimal("10")},
    {"code": "WFH", "name": "Work From Home", "is_paid": True, "requires_balance": False,
     "gender_applicability": GenderApplicability.ALL.value, "default_days_per_year": Decimal("0")},
    {"code": "ML", "name": "Maternity Leave", "is_paid": True, "requires_balance": True,
     "gender_applicability": GenderApplicability.FEMALE.value, "default_days_per_year": Decimal("90")},
    {"code": "PL", "name": "Paternity Leave", "is_paid": True, "requires_balance": True,
     "gender_applicability": GenderApplicability.MALE.value, "default_days_per_year": Decimal("5")},
    {"code": "UL", "name": "Unpaid Leave", "is_paid": False, "requires_balance": False,
     "gender_applicability": GenderApplicability.ALL.value, "default_days_per_year": Decimal("0")},
]


def seed_leave_types(db) -> int:
    """Insert any missing default leave types. Existing codes are left untouched."""
    existing = {code for (code,) in db.query(LeaveType.code).all()}
    created = 0
    for data in DEFAULT_LEAVE_TYPES:
        if data["code"] in existing:
            continue
        db.add(LeaveType(**data))
        created += 1
    return created


def init_system_data():
    """Seed the default leave types on an empty database."""
    with session_scope() as db:
        created = seed_leave_types(db)
    if created:
        logger.info(f"Seeded {created} default leave types")
    else:
        logger.info("Leave types already present")
