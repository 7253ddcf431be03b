from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class NotificationOut(BaseModel):
    id: int
    title: str
    message: str
    type: str
    is_read: bool
    user_id: Optional[int] = None
    sector_id: Optional[int] = None
    created_at: datetime

    class Config:
        from_attributes = True
