from enum import Enum

from sqlalchemy import Column, String, Integer, DateTime, Text
from sqlalchemy.sql import func
from housing.core.database import Base


class OccupancyAction(str, Enum):
    CHECK_IN = "check_in"
    CHECK_OUT = "check_out"
    TRANSFER_IN = "transfer_in"
    TRANSFER_OUT = "transfer_out"


class OccupancyRecord(Base):
    """Append-only housing log. Rows are never updated or deleted."""

    __tablename__ = "occupancy_records"

    id = Column(Integer, primary_key=True, index=True)

    resident_type = Column(String(20), nullable=False, index=True)  # egyptian/russian
    resident_id = Column(Integer, nullable=False, index=True)
    resident_name = Column(String(200), nullable=False)

    # Plain ids (no FK) so history survives a unit being deleted later
    unit_id = Column(Integer, nullable=False, index=True)
    unit_code = Column(String(50), nullable=False)

    action = Column(String(20), nullable=False, index=True)  # check_in/check_out/transfer_in/transfer_out

    # transfer_in: the unit the resident came from; transfer_out: the unit they went to
    from_unit_id = Column(Integer, nullable=True)
    from_unit_code = Column(String(50), nullable=True)

    notes = Column(Text, nullable=True)
    action_date = Column(DateTime(timezone=True), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
