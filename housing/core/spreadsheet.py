"""
Spreadsheet parsing for resident import, eviction and unit import.

Sheets arrive as uploaded .xlsx files (openpyxl) or Google Sheets
(housing.core.google_sheets). Either way they become a list of dicts keyed by
the header cells, and the bilingual (Arabic / English) headers are mapped to
the canonical row fields before anything reaches the occupancy engine.
"""
import logging
from datetime import date, datetime
from io import BytesIO
from typing import Any, Dict, Iterable, List, Tuple
from zipfile import BadZipFile

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException
from pydantic import ValidationError

from housing.core.exceptions import InvalidFieldError
from housing.schemas.import_log import EvictionRow, ImportRow
from housing.schemas.unit import UnitImportError, UnitImportRow

logger = logging.getLogger(__name__)

IMPORT_HEADERS = {
    "name": ["الاسم", "name", "Name"],
    "national_id": ["الرقم القومي", "nationalId", "National ID", "ID", "رقم الجواز", "passportNumber"],
    "phone": ["الهاتف", "phone", "Phone"],
    "check_in_date": ["تاريخ التسكين", "checkInDate", "Check In"],
    "unit_code": ["كود الوحدة", "unitCode", "Unit Code", "Unit"],
    "shift": ["الشيفت", "shift", "Shift"],
    "check_out_date": ["تاريخ الرفد", "checkOutDate", "Check Out"],
    "gender": ["الجنس", "gender", "Gender"],
    "nationality": ["الجنسية", "nationality", "Nationality"],
}

EVICTION_HEADERS = {
    "name": ["الاسم", "name", "Name"],
    "national_id": ["الرقم القومي", "رقم الجواز", "nationalId", "passportNumber", "National ID", "ID"],
    "unit_code": ["كود الوحدة", "unitCode", "Unit Code", "Unit"],
    "check_out_date": ["تاريخ الإخلاء", "checkOutDate", "Date"],
    "reason": ["السبب", "reason", "Reason"],
}

UNIT_HEADERS = {
    "code": ["الكود", "code", "Code"],
    "name": ["الاسم", "name", "Name"],
    "type": ["النوع", "type", "Type"],
    "floor": ["الطابق", "floor", "Floor"],
    "rooms": ["الغرف", "rooms", "Rooms"],
    "beds": ["الأسرة", "beds", "Beds"],
    "owner_name": ["المالك", "owner", "Owner"],
    "building_name": ["المبنى", "building", "Building"],
    "notes": ["ملاحظات", "notes", "Notes"],
}


def _cell_text(value: Any) -> Any:
    """openpyxl gives dates and numbers back typed; rows carry text."""
    if value is None:
        return None
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def read_xlsx(data: bytes, file_name: str = "upload.xlsx") -> List[Dict[str, Any]]:
    """Read the first worksheet; the first row holds the headers. Empty rows are dropped."""
    try:
        workbook = load_workbook(BytesIO(data), read_only=True, data_only=True)
    except (InvalidFileException, BadZipFile, KeyError, OSError):
        logger.warning("Could not open %s as a workbook", file_name)
        raise InvalidFieldError("file", file_name)

    try:
        worksheet = workbook.worksheets[0]
        rows = worksheet.iter_rows(values_only=True)
        header_row = next(rows, None)
        if header_row is None:
            return []
        headers = [_cell_text(h) or "" for h in header_row]

        records = []
        for values in rows:
            if all(v is None or str(v).strip() == "" for v in values):
                continue
            records.append({h: _cell_text(v) for h, v in zip(headers, values) if h})
    finally:
        workbook.close()

    logger.info("Read %s rows from %s", len(records), file_name)
    return records


def normalize_headers(records: Iterable[Dict[str, Any]], header_map: Dict[str, List[str]]) -> List[Dict[str, Any]]:
    """
    Rename columns to canonical field names. For each field the first listed
    header present in the row wins; unknown columns are dropped.
    """
    normalized = []
    for record in records:
        row = {}
        for field, aliases in header_map.items():
            for alias in aliases:
                value = record.get(alias)
                if value not in (None, ""):
                    row[field] = value
                    break
        normalized.append(row)
    return normalized


def import_rows(records: Iterable[Dict[str, Any]]) -> List[ImportRow]:
    return [ImportRow(**row) for row in normalize_headers(records, IMPORT_HEADERS)]


def eviction_rows(records: Iterable[Dict[str, Any]]) -> List[EvictionRow]:
    return [EvictionRow(**row) for row in normalize_headers(records, EVICTION_HEADERS)]


def unit_rows(records: Iterable[Dict[str, Any]]) -> Tuple[List[UnitImportRow], List[UnitImportError]]:
    """Valid unit rows, plus an error entry for each row that could not be read."""
    rows, errors = [], []
    for index, row in enumerate(normalize_headers(records, UNIT_HEADERS), start=1):
        try:
            rows.append(UnitImportRow(**row))
        except ValidationError as exc:
            first = exc.errors()[0]
            field = ".".join(str(p) for p in first.get("loc", ()))
            errors.append(
                UnitImportError(code=str(row.get("code") or f"row {index}"), error=f"{field}: {first.get('msg')}")
            )
    return rows, errors
