import enum

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.sql import func

from hrms.database import Base


class NotificationType(str, enum.Enum):
    INFO = "info"
    SUCCESS = "success"
    ERROR = "error"


class Notification(Base):
    """In-app message to an employee about a request they own or must act on."""
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    type = Column(String(20), default=NotificationType.INFO.value, nullable=False)

    # The request this is about, e.g. ("leave_request", 42)
    entity_type = Column(String(50), nullable=True)
    entity_id = Column(Integer, nullable=True)
    link = Column(String(255), nullable=True)

    is_read = Column(Boolean, default=False, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
