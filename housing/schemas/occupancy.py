from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from housing.models.resident import ResidentType
from housing.schemas.resident import EgyptianResidentIn, ResidentIn, RussianResidentIn


class CheckInRequest(BaseModel):
    resident: ResidentIn
    unit_id: int
    check_in_date: Optional[datetime] = None  # defaults to now


class CheckInResult(BaseModel):
    resident_id: int
    resident_type: ResidentType
    unit_id: int
    current_occupants: int


class CheckOutResult(BaseModel):
    resident_id: int
    resident_type: ResidentType
    unit_id: Optional[int] = None
    current_occupants: Optional[int] = None


class EgyptianBulkCheckInRequest(BaseModel):
    residents: List[EgyptianResidentIn]
    unit_id: int
    check_in_date: Optional[datetime] = None


class RussianBulkCheckInRequest(BaseModel):
    residents: List[RussianResidentIn]
    unit_id: int
    check_in_date: Optional[datetime] = None


class BulkCheckInResult(BaseModel):
    count: int
    resident_ids: List[int]
    unit_id: int
    current_occupants: int


class TransferResident(BaseModel):
    resident_id: int
    resident_type: ResidentType


class TransferRequest(BaseModel):
    residents: List[TransferResident]
    from_unit_id: int
    to_unit_id: int


class TransferResult(BaseModel):
    transferred: int
    from_unit_id: int
    to_unit_id: int
    action_date: datetime


class OccupancyRecordOut(BaseModel):
    id: int
    resident_type: str
    resident_id: int
    resident_name: str
    unit_id: int
    unit_code: str
    action: str
    from_unit_id: Optional[int] = None
    from_unit_code: Optional[str] = None
    notes: Optional[str] = None
    action_date: datetime
    created_at: datetime

    class Config:
        from_attributes = True
