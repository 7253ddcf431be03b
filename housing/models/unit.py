from enum import Enum

from sqlalchemy import CheckConstraint, Column, String, Integer, DateTime, ForeignKey, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from housing.core.database import Base


class UnitType(str, Enum):
    APARTMENT = "apartment"
    CHALET = "chalet"


class UnitStatus(str, Enum):
    VACANT = "vacant"
    OCCUPIED = "occupied"
    MAINTENANCE = "maintenance"


class Unit(Base):
    __tablename__ = "units"
    __table_args__ = (
        CheckConstraint("current_occupants >= 0 AND current_occupants <= beds", name="ck_units_occupancy"),
    )

    id = Column(Integer, primary_key=True, index=True)

    code = Column(String(50), nullable=False, unique=True, index=True)  # e.g. "A-101"
    name = Column(String(200), nullable=False)
    type = Column(String(20), nullable=False, index=True)  # apartment/chalet

    # Optional sector; NULL means the unit is visible to every sector
    sector_id = Column(Integer, ForeignKey("sectors.id"), nullable=True, index=True)
    sector = relationship("Sector", back_populates="units")

    floor = Column(String(20), nullable=True)
    rooms = Column(Integer, nullable=False, default=1)
    beds = Column(Integer, nullable=False, default=1)

    # Occupancy fields are owned by the occupancy engine
    status = Column(String(20), nullable=False, default=UnitStatus.VACANT.value, index=True)  # vacant/occupied/maintenance
    current_occupants = Column(Integer, nullable=False, default=0)

    owner_name = Column(String(255), nullable=True)
    building_name = Column(String(255), nullable=True)
    notes = Column(Text, nullable=True)

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now(), server_default=func.now(), nullable=False)

    @property
    def available_beds(self) -> int:
        return max(0, self.beds - self.current_occupants)
