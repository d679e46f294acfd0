from sqlalchemy import Column, Integer, String, Date, UniqueConstraint
from hrms.database import Base


class Holiday(Base):
    __tablename__ = "holidays"
    __table_args__ = (
        UniqueConstraint("country_code", "holiday_date", name="uq_holiday_country_date"),
    )

    id = Column(Integer, primary_key=True, index=True)
    country_code = Column(String(2), nullable=False, index=True)
    holiday_date = Column(Date, nullable=False, index=True)
    name = Column(String, nullable=False)
