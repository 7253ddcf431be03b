import logging
from enum import Enum
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from housing.models.notification import Notification

logger = logging.getLogger(__name__)


class NotificationType(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class NotificationEmitter:
    """
    Records human-readable events for the notifications page.

    Called after an occupancy operation has committed. A failure here is
    logged and swallowed: the operation already happened and must not be
    reported as failed because its notification could not be stored.
    """

    def __init__(self, db: Session):
        self.db = db

    def emit(
        self,
        title: str,
        message: str,
        type: NotificationType = NotificationType.INFO,
        *,
        sector_id: Optional[int] = None,
        user_id: Optional[int] = None,
    ) -> Optional[Notification]:
        notification = Notification(
            title=title,
            message=message,
            type=NotificationType(type).value,
            sector_id=sector_id,
            user_id=user_id,
        )
        try:
            self.db.add(notification)
            self.db.commit()
            self.db.refresh(notification)
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Failed to store notification %r", title)
            return None
        logger.debug("Notification %s stored: %s", notification.id, title)
        return notification
