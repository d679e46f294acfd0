import enum
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, Optional

from hrms.models.audit_log import AuditLog
from hrms.services.base import BaseService


def to_json_safe(value: Any) -> Any:
    """Convert snapshots to what a JSON column accepts. Money stays exact as a string."""
    if value is None or isinstance(value, (str, bool, int, float)):
        return value
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if hasattr(value, "model_dump"):
        return value.model_dump(mode="json")
    if isinstance(value, dict):
        return {str(k): to_json_safe(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [to_json_safe(v) for v in value]
    return str(value)


class AuditService(BaseService):
    def log_action(
        self,
        action: str,
        entity_type: str,
        entity_id: Optional[int],
        actor_id: Optional[int],
        actor_role: Any,
        details: dict,
        before_state: Optional[dict] = None,
        after_state: Optional[dict] = None,
    ) -> AuditLog:
        """
        Append an audit entry to the caller's transaction.

        Nothing is committed here, so the entry is rolled back together with
        the change it describes.
        """
        entry = AuditLog(
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            actor_id=actor_id,
            actor_role=to_json_safe(actor_role),
            details=to_json_safe(details),
            before_state=to_json_safe(before_state),
            after_state=to_json_safe(after_state),
        )
        self.db.add(entry)
        self.db.flush()
        return entry

    @staticmethod
    def log(db, *args, **kwargs) -> AuditLog:
        return AuditService(db).log_action(*args, **kwargs)
