from sqlalchemy import Column, Integer, String, Boolean, Numeric
from hrms.database import Base
import enum


class GenderApplicability(str, enum.Enum):
    ALL = "ALL"
    FEMALE = "FEMALE"
    MALE = "MALE"


class LeaveType(Base):
    __tablename__ = "leave_types"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String, unique=True, index=True, nullable=False)  # AL, SL, WFH, ML, PL, UL
    name = Column(String, nullable=False)
    is_paid = Column(Boolean, default=True, nullable=False)
    # Unpaid types are still tracked in the ledger but never blocked on balance
    requires_balance = Column(Boolean, default=True, nullable=False)
    gender_applicability = Column(String, default=GenderApplicability.ALL.value, nullable=False)
    default_days_per_year = Column(Numeric(6, 2), default=0)
    is_active = Column(Boolean, default=True, nullable=False)
