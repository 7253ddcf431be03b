from datetime import datetime
from typing import Annotated, List, Optional

from pydantic import BaseModel, BeforeValidator, Field


def _blank_to_none(v):
    """Spreadsheet cells come through as '' when empty."""
    if v is None:
        return None
    v = str(v).strip()
    return v or None


Cell = Annotated[Optional[str], BeforeValidator(_blank_to_none)]


class ImportRow(BaseModel):
    """One resident row of a (historical) check-in spreadsheet."""
    name: Cell = None
    national_id: Cell = None  # national ID for apartments, passport number for chalets
    phone: Cell = None
    check_in_date: Cell = None
    unit_code: Cell = None
    shift: Cell = None
    check_out_date: Cell = None
    gender: Cell = None
    nationality: Cell = None


class EvictionRow(BaseModel):
    """One row of a bulk check-out spreadsheet."""
    name: Cell = None
    national_id: Cell = None  # national ID or passport number
    unit_code: Cell = None
    check_out_date: Cell = None
    reason: Cell = None


class ImportRequest(BaseModel):
    rows: List[ImportRow]
    file_name: str = Field(..., min_length=1, max_length=200)


class EvictionRequest(BaseModel):
    rows: List[EvictionRow]
    file_name: str = Field(..., min_length=1, max_length=200)


class GoogleSheetSource(BaseModel):
    spreadsheet_id: str
    worksheet_name: str = "Sheet1"


class RowError(BaseModel):
    row: int  # 1-based
    error: str
    code: Optional[str] = None


class BulkResult(BaseModel):
    log_id: int
    success_count: int
    failed_count: int
    errors: List[RowError] = []


class ImportLogOut(BaseModel):
    id: int
    file_name: str
    total_rows: int
    success_rows: int
    failed_rows: int
    errors: Optional[List[RowError]] = None
    status: str
    imported_by: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True
