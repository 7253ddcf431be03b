"""
Bulk spreadsheet routes: resident import, eviction and unit import.

Rows can be posted as JSON (already parsed by the browser), uploaded as an
.xlsx file, or pulled from a Google Sheet. All three paths normalise headers in
housing.core.spreadsheet and end in the same occupancy engine call.
"""
from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from typing import List, Optional

from housing.api.deps import get_engine, get_registry, get_repository
from housing.core import google_sheets, spreadsheet
from housing.core.auth import CurrentUser, get_current_user
from housing.core.exceptions import NotFoundError
from housing.schemas.import_log import (
    BulkResult,
    EvictionRequest,
    GoogleSheetSource,
    ImportLogOut,
    ImportRequest,
)
from housing.schemas.unit import UnitImportResult
from housing.services.occupancy_engine import OccupancyEngine
from housing.services.repository import HousingRepository
from housing.services.unit_registry import UnitRegistry

router = APIRouter(prefix="/imports", tags=["imports"])


def _result(log, errors) -> BulkResult:
    return BulkResult(
        log_id=log.id,
        success_count=log.success_rows,
        failed_count=log.failed_rows,
        errors=errors,
    )


# --- resident import (historical check-in) ---

@router.post("/residents", response_model=BulkResult)
def import_residents(
    payload: ImportRequest,
    engine: OccupancyEngine = Depends(get_engine),
    current_user: CurrentUser = Depends(get_current_user),
):
    log, errors = engine.bulk_import(payload.rows, payload.file_name, current_user.label)
    return _result(log, errors)


@router.post("/residents/xlsx", response_model=BulkResult)
def import_residents_xlsx(
    file: UploadFile = File(..., description="Resident sheet (.xlsx)"),
    engine: OccupancyEngine = Depends(get_engine),
    current_user: CurrentUser = Depends(get_current_user),
):
    records = spreadsheet.read_xlsx(file.file.read(), file.filename or "upload.xlsx")
    log, errors = engine.bulk_import(spreadsheet.import_rows(records), file.filename or "upload.xlsx", current_user.label)
    return _result(log, errors)


@router.post("/residents/google-sheet", response_model=BulkResult)
def import_residents_google_sheet(
    source: GoogleSheetSource,
    engine: OccupancyEngine = Depends(get_engine),
    current_user: CurrentUser = Depends(get_current_user),
):
    records = google_sheets.read_worksheet(source.spreadsheet_id, source.worksheet_name)
    label = f"google:{source.spreadsheet_id}/{source.worksheet_name}"
    log, errors = engine.bulk_import(spreadsheet.import_rows(records), label, current_user.label)
    return _result(log, errors)


# --- eviction (bulk check-out) ---

@router.post("/eviction", response_model=BulkResult)
def evict(
    payload: EvictionRequest,
    engine: OccupancyEngine = Depends(get_engine),
    current_user: CurrentUser = Depends(get_current_user),
):
    log, errors = engine.bulk_evict(payload.rows, payload.file_name, current_user.label)
    return _result(log, errors)


@router.post("/eviction/xlsx", response_model=BulkResult)
def evict_xlsx(
    file: UploadFile = File(..., description="Eviction sheet (.xlsx)"),
    engine: OccupancyEngine = Depends(get_engine),
    current_user: CurrentUser = Depends(get_current_user),
):
    records = spreadsheet.read_xlsx(file.file.read(), file.filename or "upload.xlsx")
    log, errors = engine.bulk_evict(spreadsheet.eviction_rows(records), file.filename or "upload.xlsx", current_user.label)
    return _result(log, errors)


@router.post("/eviction/google-sheet", response_model=BulkResult)
def evict_google_sheet(
    source: GoogleSheetSource,
    engine: OccupancyEngine = Depends(get_engine),
    current_user: CurrentUser = Depends(get_current_user),
):
    records = google_sheets.read_worksheet(source.spreadsheet_id, source.worksheet_name)
    label = f"google:{source.spreadsheet_id}/{source.worksheet_name}"
    log, errors = engine.bulk_evict(spreadsheet.eviction_rows(records), label, current_user.label)
    return _result(log, errors)


# --- units ---

@router.post("/units/xlsx", response_model=UnitImportResult)
def import_units_xlsx(
    file: UploadFile = File(..., description="Unit sheet (.xlsx)"),
    sector_id: Optional[int] = Form(None),
    registry: UnitRegistry = Depends(get_registry),
    current_user: CurrentUser = Depends(get_current_user),
):
    """
    Create units from a sheet. Unreadable rows and existing codes are reported, not fatal.
    """
    records = spreadsheet.read_xlsx(file.file.read(), file.filename or "upload.xlsx")
    rows, row_errors = spreadsheet.unit_rows(records)
    result = registry.import_units(rows, sector_id)
    result.errors = row_errors + result.errors
    result.skipped += len(row_errors)
    return result


# --- logs ---

@router.get("/logs", response_model=List[ImportLogOut])
def list_import_logs(
    repo: HousingRepository = Depends(get_repository),
    current_user: CurrentUser = Depends(get_current_user),
    limit: int = Query(50, ge=1, le=500),
):
    return repo.list_import_logs(limit)


@router.get("/logs/{log_id}", response_model=ImportLogOut)
def get_import_log(
    log_id: int,
    repo: HousingRepository = Depends(get_repository),
    current_user: CurrentUser = Depends(get_current_user),
):
    log = repo.get_import_log(log_id)
    if log is None:
        raise NotFoundError("import log", log_id)
    return log
