from datetime import datetime
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator



class ResidentBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    phone: Optional[str] = None
    shift: Optional[str] = None
    ocr_confidence: Optional[int] = Field(None, ge=0, le=100)  # as returned by /ocr/*
    image_url: Optional[str] = None

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v):
        if isinstance(v, str):
            return v.strip()
        return v


class EgyptianResidentIn(ResidentBase):
    resident_type: Literal["egyptian"] = "egyptian"
    national_id: str = Field(..., min_length=1, max_length=20)

    def identity_fields(self) -> Dict[str, Any]:
        return {"national_id": self.national_id}


class RussianResidentIn(ResidentBase):
    resident_type: Literal["russian"] = "russian"
    passport_number: str = Field(..., min_length=1, max_length=50)
    nationality: str = "Russian"
    gender: Literal["male", "female"]

    def identity_fields(self) -> Dict[str, Any]:
        return {
            "passport_number": self.passport_number,
            "nationality": self.nationality,
            "gender": self.gender,
        }


# Tagged union: the "resident_type" field picks the variant
ResidentIn = Annotated[Union[EgyptianResidentIn, RussianResidentIn], Field(discriminator="resident_type")]


class ResidentOutBase(BaseModel):
    id: int
    name: str
    phone: Optional[str] = None
    shift: Optional[str] = None
    unit_id: Optional[int] = None
    check_in_date: datetime
    check_out_date: Optional[datetime] = None
    status: str
    ocr_confidence: Optional[int] = None
    image_url: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class EgyptianResidentOut(ResidentOutBase):
    resident_type: Literal["egyptian"] = "egyptian"
    national_id: str


class RussianResidentOut(ResidentOutBase):
    resident_type: Literal["russian"] = "russian"
    passport_number: str
    nationality: str
    gender: str


class UnitResidentsOut(BaseModel):
    """Active residents of one unit, split by population."""
    egyptians: List[EgyptianResidentOut] = []
    russians: List[RussianResidentOut] = []
