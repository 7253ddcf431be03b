from fastapi import APIRouter, Depends, Query
from typing import List, Optional

from housing.api.deps import get_engine, get_reports, get_repository
from housing.core.auth import CurrentUser, get_current_user
from housing.core.scope import narrow
from housing.models.occupancy_record import OccupancyAction
from housing.models.resident import ResidentType
from housing.schemas.occupancy import (
    BulkCheckInResult,
    EgyptianBulkCheckInRequest,
    OccupancyRecordOut,
    RussianBulkCheckInRequest,
    TransferRequest,
    TransferResult,
)
from housing.services.occupancy_engine import OccupancyEngine
from housing.services.reporting import ReportingService
from housing.services.repository import HousingRepository

router = APIRouter(prefix="/occupancy", tags=["occupancy"])


def _bulk_result(residents, unit) -> BulkCheckInResult:
    return BulkCheckInResult(
        count=len(residents),
        resident_ids=[r.id for r in residents],
        unit_id=unit.id,
        current_occupants=unit.current_occupants,
    )


@router.post("/bulk-check-in/egyptian", response_model=BulkCheckInResult, status_code=201)
def bulk_check_in_egyptians(
    payload: EgyptianBulkCheckInRequest,
    engine: OccupancyEngine = Depends(get_engine),
    current_user: CurrentUser = Depends(get_current_user),
):
    """
    House a group of Egyptian residents in one apartment. All or nothing.
    """
    residents, unit = engine.bulk_check_in(
        ResidentType.EGYPTIAN, payload.residents, payload.unit_id, payload.check_in_date,
    )
    return _bulk_result(residents, unit)


@router.post("/bulk-check-in/russian", response_model=BulkCheckInResult, status_code=201)
def bulk_check_in_russians(
    payload: RussianBulkCheckInRequest,
    engine: OccupancyEngine = Depends(get_engine),
    current_user: CurrentUser = Depends(get_current_user),
):
    """
    House a group of Russian residents in one chalet. All or nothing.
    """
    residents, unit = engine.bulk_check_in(
        ResidentType.RUSSIAN, payload.residents, payload.unit_id, payload.check_in_date,
    )
    return _bulk_result(residents, unit)


@router.post("/transfer", response_model=TransferResult)
def transfer(
    payload: TransferRequest,
    engine: OccupancyEngine = Depends(get_engine),
    current_user: CurrentUser = Depends(get_current_user),
):
    selected = [(r.resident_type, r.resident_id) for r in payload.residents]
    count, action_date = engine.transfer(selected, payload.from_unit_id, payload.to_unit_id)
    return TransferResult(
        transferred=count,
        from_unit_id=payload.from_unit_id,
        to_unit_id=payload.to_unit_id,
        action_date=action_date,
    )


@router.get("/records", response_model=List[OccupancyRecordOut])
def list_records(
    repo: HousingRepository = Depends(get_repository),
    current_user: CurrentUser = Depends(get_current_user),
    unit_id: Optional[int] = Query(None),
    action: Optional[OccupancyAction] = Query(None),
    sector_id: Optional[int] = Query(None),
    limit: int = Query(500, ge=1, le=5000),
):
    """
    Occupancy log, newest first.
    """
    scope = narrow(current_user.scope, sector_id)
    return repo.list_records(scope, unit_id=unit_id, action=action.value if action else None, limit=limit)


@router.get("/recent", response_model=List[OccupancyRecordOut])
def recent_activity(
    reports: ReportingService = Depends(get_reports),
    current_user: CurrentUser = Depends(get_current_user),
    limit: int = Query(10, ge=1, le=100),
):
    return reports.recent_activity(current_user.scope, limit)
