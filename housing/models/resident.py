"""
Resident ledger.

Egyptian and Russian residents live in two tables because they carry different
identity documents and may only be housed in one kind of unit each. Code that
does not care about the difference works through ResidentType, which owns the
population -> unit type binding and the model class for each population.
"""
from enum import Enum

from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, Text
from sqlalchemy.orm import declared_attr
from sqlalchemy.sql import func
from housing.core.database import Base
from housing.models.unit import UnitType


class ResidentStatus(str, Enum):
    ACTIVE = "active"
    CHECKED_OUT = "checked_out"
    TRANSFERRED = "transferred"


class ResidentColumns:
    """Columns shared by both resident tables."""

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(200), nullable=False, index=True)
    phone = Column(String(20), nullable=True)
    shift = Column(String(50), nullable=True)

    @declared_attr
    def unit_id(cls):
        # NULL once the resident is checked out
        return Column(Integer, ForeignKey("units.id"), nullable=True, index=True)

    check_in_date = Column(DateTime(timezone=True), nullable=False)
    check_out_date = Column(DateTime(timezone=True), nullable=True)
    status = Column(String(20), nullable=False, default=ResidentStatus.ACTIVE.value, index=True)  # active/checked_out/transferred

    ocr_confidence = Column(Integer, nullable=True)  # 0-100 from the OCR service
    image_url = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now(), server_default=func.now(), nullable=False)


class EgyptianResident(ResidentColumns, Base):
    __tablename__ = "egyptian_residents"

    national_id = Column(String(20), nullable=False, index=True)

    @property
    def id_number(self) -> str:
        return self.national_id


class RussianResident(ResidentColumns, Base):
    __tablename__ = "russian_residents"

    passport_number = Column(String(50), nullable=False, index=True)
    nationality = Column(String(100), nullable=False, default="Russian")
    gender = Column(String(10), nullable=False)  # male/female

    @property
    def id_number(self) -> str:
        return self.passport_number


class ResidentType(str, Enum):
    EGYPTIAN = "egyptian"
    RUSSIAN = "russian"

    @property
    def unit_type(self) -> UnitType:
        """The only unit type this population may be housed in."""
        return _UNIT_TYPES[self]

    @property
    def model(self):
        return _MODELS[self]

    @property
    def identity_field(self) -> str:
        """Column holding the identity document number."""
        return "national_id" if self is ResidentType.EGYPTIAN else "passport_number"

    @classmethod
    def for_unit_type(cls, unit_type: str) -> "ResidentType":
        for resident_type, bound in _UNIT_TYPES.items():
            if bound.value == unit_type:
                return resident_type
        raise ValueError(f"Unknown unit type: {unit_type}")


_UNIT_TYPES = {
    ResidentType.EGYPTIAN: UnitType.APARTMENT,
    ResidentType.RUSSIAN: UnitType.CHALET,
}

_MODELS = {
    ResidentType.EGYPTIAN: EgyptianResident,
    ResidentType.RUSSIAN: RussianResident,
}
