import logging
from sqlalchemy.orm import Session


class BaseService:
    """Holds the request-scoped session and a logger named after the concrete service."""

    def __init__(self, db: Session):
        self.db = db
        self._logger = logging.getLogger(f"hrms.services.{type(self).__name__}")

    def log_info(self, message: str, **extra):
        self._logger.info(message, extra=extra or None)

    def log_warning(self, message: str, **extra):
        self._logger.warning(message, extra=extra or None)

    def _commit(self):
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
