from sqlalchemy import Column, Integer, String, Float
from sqlalchemy.orm import relationship
from hrms.database import Base


class Location(Base):
    """Office location: drives the holiday calendar and the check-in geo-fence."""
    __tablename__ = "locations"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    country_code = Column(String(2), nullable=False, default="PK")
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    # NULL falls back to settings.attendance.geo_fence_radius_meters
    geo_fence_radius_meters = Column(Float, nullable=True)
    # IANA name, e.g. "Asia/Karachi"; shift times are wall-clock in this zone
    timezone = Column(String(64), nullable=True)

    employees = relationship("Employee", back_populates="location")

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    def __repr__(self):
        return f"<Location {self.name} ({self.country_code})>"
