from pydantic import BaseModel, Field, field_validator, model_validator
from datetime import datetime
from typing import List, Optional

from housing.models.unit import UnitStatus, UnitType


def unit_type_from_label(label: Optional[str]) -> UnitType:
    """
    Map a free-text type cell ("Chalet", "شاليه", "apartment", "شقة") to a UnitType.
    Anything that does not mention a chalet is an apartment.
    """
    raw = (label or "").strip().lower()
    if "chalet" in raw or "شاليه" in raw:
        return UnitType.CHALET
    return UnitType.APARTMENT


class UnitCreate(BaseModel):
    code: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., min_length=1, max_length=200)
    type: UnitType
    sector_id: Optional[int] = None
    floor: Optional[str] = None
    rooms: int = Field(1, ge=1)
    beds: int = Field(1, ge=1)
    owner_name: Optional[str] = None
    building_name: Optional[str] = None
    notes: Optional[str] = None
    # status and current_occupants are not accepted: a new unit is always vacant

    @field_validator("code", "name", mode="before")
    @classmethod
    def strip_strings(cls, v):
        if isinstance(v, str):
            return v.strip()
        return v


class UnitUpdate(BaseModel):
    code: Optional[str] = Field(None, min_length=1, max_length=50)
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    type: Optional[UnitType] = None
    sector_id: Optional[int] = None
    floor: Optional[str] = None
    rooms: Optional[int] = Field(None, ge=1)
    beds: Optional[int] = Field(None, ge=1)
    status: Optional[UnitStatus] = None
    owner_name: Optional[str] = None
    building_name: Optional[str] = None
    notes: Optional[str] = None
    # current_occupants is owned by the occupancy engine and cannot be patched

    @model_validator(mode="before")
    @classmethod
    def reject_occupancy_fields(cls, data):
        if isinstance(data, dict) and "current_occupants" in data:
            raise ValueError("current_occupants is maintained by check-in/check-out and cannot be edited")
        return data


class UnitOut(BaseModel):
    id: int
    code: str
    name: str
    type: str
    sector_id: Optional[int] = None
    floor: Optional[str] = None
    rooms: int
    beds: int
    status: str
    current_occupants: int
    available_beds: int
    owner_name: Optional[str] = None
    building_name: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class UnitImportRow(BaseModel):
    code: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    type: UnitType
    floor: Optional[str] = None
    rooms: int = Field(1, ge=1)
    beds: int = Field(1, ge=1)
    owner_name: Optional[str] = None
    building_name: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("type", mode="before")
    @classmethod
    def parse_type(cls, v):
        if isinstance(v, UnitType):
            return v
        return unit_type_from_label(v)


class UnitImportRequest(BaseModel):
    sector_id: Optional[int] = None
    units: List[UnitImportRow]


class UnitImportError(BaseModel):
    code: str
    error: str


class UnitImportResult(BaseModel):
    created: int
    skipped: int
    errors: List[UnitImportError] = []
