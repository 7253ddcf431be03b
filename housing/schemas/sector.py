from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from typing import Optional


class SectorCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    code: str = Field(..., min_length=1, max_length=50)
    description: Optional[str] = None
    color: str = "#3b82f6"

    @field_validator("name", "code", mode="before")
    @classmethod
    def strip_strings(cls, v):
        if isinstance(v, str):
            return v.strip()
        return v


class SectorUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    code: Optional[str] = Field(None, min_length=1, max_length=50)
    description: Optional[str] = None
    color: Optional[str] = None


class SectorOut(BaseModel):
    id: int
    name: str
    code: str
    description: Optional[str] = None
    color: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class SectorAssignment(BaseModel):
    user_id: int
    sector_id: Optional[int] = None  # None makes the user global


class UserOut(BaseModel):
    id: int
    open_id: str
    name: Optional[str] = None
    email: Optional[str] = None
    role: str
    sector_id: Optional[int] = None
    last_signed_in: datetime

    class Config:
        from_attributes = True
