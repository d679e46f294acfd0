from typing import List, Optional

from sqlalchemy.orm import Session

from hrms.models.notification import Notification, NotificationType

# API views where the recipient finds the request
ENTITY_LINKS = {
    "leave_request": "/api/leaves/requests",
    "regularization_request": "/api/attendance/regularizations",
    "wfh_request": "/api/wfh/my-requests",
}


class NotificationService:
    @staticmethod
    def create_notification(
        db: Session,
        employee_id: int,
        title: str,
        message: str,
        type: str = NotificationType.INFO.value,
        entity_type: Optional[str] = None,
        entity_id: Optional[int] = None,
    ) -> Notification:
        """
        Queue a notification in the caller's transaction (flushed, not committed).
        """
        notification = Notification(
            employee_id=employee_id,
            title=title,
            message=message,
            type=type,
            entity_type=entity_type,
            entity_id=entity_id,
            link=ENTITY_LINKS.get(entity_type),
        )
        db.add(notification)
        db.flush()
        return notification

    @staticmethod
    def recent_for(db: Session, employee_id: int, limit: int = 10) -> List[Notification]:
        return (
            db.query(Notification)
            .filter(Notification.employee_id == employee_id)
            .order_by(Notification.created_at.desc(), Notification.id.desc())
            .limit(limit)
            .all()
        )

    @staticmethod
    def unread_count(db: Session, employee_id: int) -> int:
        return db.query(Notification).filter(
            Notification.employee_id == employee_id,
            Notification.is_read.is_(False),
        ).count()
