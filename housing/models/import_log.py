from enum import Enum

from sqlalchemy import Column, String, Integer, DateTime, JSON
from sqlalchemy.sql import func
from housing.core.database import Base


class ImportStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class ImportLog(Base):
    """One row per bulk operation (resident import or eviction)."""

    __tablename__ = "import_logs"

    id = Column(Integer, primary_key=True, index=True)
    file_name = Column(String(255), nullable=False)
    total_rows = Column(Integer, nullable=False, default=0)
    success_rows = Column(Integer, nullable=False, default=0)
    failed_rows = Column(Integer, nullable=False, default=0)
    errors = Column(JSON, nullable=True)  # [{"row": 2, "error": "...", "code": "NOT_FOUND"}]
    status = Column(String(20), nullable=False, default=ImportStatus.PENDING.value, index=True)
    imported_by = Column(String(200), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
