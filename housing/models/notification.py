from sqlalchemy import Column, String, DateTime, Integer, Boolean, Text, ForeignKey
from sqlalchemy.sql import func
from housing.core.database import Base


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(200), nullable=False)
    message = Column(Text, nullable=False)
    type = Column(String(20), nullable=False, default="info", index=True)  # info/success/warning/error
    is_read = Column(Boolean, nullable=False, default=False, index=True)

    # Both optional: NULL sector means every sector sees it
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    sector_id = Column(Integer, ForeignKey("sectors.id"), nullable=True, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
