from fastapi import APIRouter, Depends, Query
from typing import List, Optional, Union

from housing.api.deps import get_engine, get_repository
from housing.core.auth import CurrentUser, get_current_user
from housing.core.exceptions import NotFoundError
from housing.core.scope import narrow
from housing.models.resident import ResidentStatus, ResidentType
from housing.schemas.occupancy import CheckInRequest, CheckInResult, CheckOutResult, OccupancyRecordOut
from housing.schemas.resident import EgyptianResidentOut, RussianResidentOut
from housing.services.occupancy_engine import OccupancyEngine
from housing.services.repository import HousingRepository

router = APIRouter(prefix="/residents", tags=["residents"])

ResidentOut = Union[EgyptianResidentOut, RussianResidentOut]

_OUT_MODELS = {
    ResidentType.EGYPTIAN: EgyptianResidentOut,
    ResidentType.RUSSIAN: RussianResidentOut,
}


def _to_out(resident_type: ResidentType, resident) -> ResidentOut:
    return _OUT_MODELS[resident_type].model_validate(resident)


def _visible_resident(
    repo: HousingRepository,
    current_user: CurrentUser,
    resident_type: ResidentType,
    resident_id: int,
):
    """Residents housed in another sector's unit read as missing."""
    resident = repo.get_resident(resident_type, resident_id)
    if resident is None:
        raise NotFoundError("resident", resident_id)
    if resident.unit_id is not None:
        unit = repo.get_unit(resident.unit_id)
        if unit is not None and not current_user.scope.allows(unit.sector_id):
            raise NotFoundError("resident", resident_id)
    return resident


@router.post("/check-in", response_model=CheckInResult, status_code=201)
def check_in(
    payload: CheckInRequest,
    engine: OccupancyEngine = Depends(get_engine),
    current_user: CurrentUser = Depends(get_current_user),
):
    """
    House one resident. Egyptian residents go to apartments, Russian residents to chalets.
    """
    resident = engine.check_in(payload.resident, payload.unit_id, payload.check_in_date)
    unit = engine.repo.get_unit(payload.unit_id)
    return CheckInResult(
        resident_id=resident.id,
        resident_type=payload.resident.resident_type,
        unit_id=unit.id,
        current_occupants=unit.current_occupants,
    )


@router.get("/{resident_type}", response_model=List[ResidentOut])
def list_residents(
    resident_type: ResidentType,
    repo: HousingRepository = Depends(get_repository),
    current_user: CurrentUser = Depends(get_current_user),
    status: Optional[ResidentStatus] = Query(None),
    unit_id: Optional[int] = Query(None),
    search: Optional[str] = Query(None, description="Matches name, ID/passport number or phone"),
    sector_id: Optional[int] = Query(None),
):
    scope = narrow(current_user.scope, sector_id)
    residents = repo.list_residents(
        resident_type,
        scope,
        status=status.value if status else None,
        unit_id=unit_id,
        search=search,
    )
    return [_to_out(resident_type, r) for r in residents]


@router.get("/{resident_type}/{resident_id}", response_model=ResidentOut)
def get_resident(
    resident_type: ResidentType,
    resident_id: int,
    repo: HousingRepository = Depends(get_repository),
    current_user: CurrentUser = Depends(get_current_user),
):
    resident = _visible_resident(repo, current_user, resident_type, resident_id)
    return _to_out(resident_type, resident)


@router.get("/{resident_type}/{resident_id}/history", response_model=List[OccupancyRecordOut])
def get_resident_history(
    resident_type: ResidentType,
    resident_id: int,
    repo: HousingRepository = Depends(get_repository),
    current_user: CurrentUser = Depends(get_current_user),
):
    """
    Every occupancy record of one resident, oldest first.
    """
    _visible_resident(repo, current_user, resident_type, resident_id)
    return repo.records_for_resident(resident_type, resident_id)


@router.post("/{resident_type}/{resident_id}/check-out", response_model=CheckOutResult)
def check_out(
    resident_type: ResidentType,
    resident_id: int,
    engine: OccupancyEngine = Depends(get_engine),
    current_user: CurrentUser = Depends(get_current_user),
):
    resident, unit = engine.check_out(resident_type, resident_id)
    return CheckOutResult(
        resident_id=resident.id,
        resident_type=resident_type,
        unit_id=unit.id if unit else None,
        current_occupants=unit.current_occupants if unit else None,
    )
