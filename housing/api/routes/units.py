from fastapi import APIRouter, Depends, Query
from typing import List, Optional

from housing.api.deps import get_registry, get_repository
from housing.core.auth import CurrentUser, get_current_user
from housing.core.exceptions import NotFoundError
from housing.core.scope import narrow
from housing.models.resident import ResidentType
from housing.models.unit import UnitStatus, UnitType
from housing.schemas.resident import UnitResidentsOut
from housing.schemas.unit import UnitCreate, UnitImportRequest, UnitImportResult, UnitOut, UnitUpdate
from housing.services.repository import HousingRepository
from housing.services.unit_registry import UnitRegistry

router = APIRouter(prefix="/units", tags=["units"])


@router.get("", response_model=List[UnitOut])
def list_units(
    repo: HousingRepository = Depends(get_repository),
    current_user: CurrentUser = Depends(get_current_user),
    type: Optional[UnitType] = Query(None, description="apartment or chalet"),
    status: Optional[UnitStatus] = Query(None),
    search: Optional[str] = Query(None, description="Matches code, name, building or owner"),
    sector_id: Optional[int] = Query(None, description="Narrow a global view to one sector"),
):
    """
    Units visible to the caller's sector, ordered by code.
    """
    scope = narrow(current_user.scope, sector_id)
    return repo.list_units(
        scope,
        type=type.value if type else None,
        status=status.value if status else None,
        search=search,
    )


@router.get("/{unit_id}", response_model=UnitOut)
def get_unit(
    unit_id: int,
    registry: UnitRegistry = Depends(get_registry),
    current_user: CurrentUser = Depends(get_current_user),
):
    unit = registry.get(unit_id)
    if not current_user.scope.allows(unit.sector_id):
        raise NotFoundError("unit", unit_id)
    return unit


@router.get("/{unit_id}/residents", response_model=UnitResidentsOut)
def get_unit_residents(
    unit_id: int,
    repo: HousingRepository = Depends(get_repository),
    current_user: CurrentUser = Depends(get_current_user),
):
    """
    Active residents currently housed in a unit.
    """
    unit = repo.get_unit(unit_id)
    if unit is None or not current_user.scope.allows(unit.sector_id):
        raise NotFoundError("unit", unit_id)
    return UnitResidentsOut(
        egyptians=repo.active_residents_in_unit(ResidentType.EGYPTIAN, unit.id),
        russians=repo.active_residents_in_unit(ResidentType.RUSSIAN, unit.id),
    )


@router.post("", response_model=UnitOut, status_code=201)
def create_unit(
    payload: UnitCreate,
    registry: UnitRegistry = Depends(get_registry),
    current_user: CurrentUser = Depends(get_current_user),
):
    """
    Create a unit. New units are always vacant with no occupants.
    """
    return registry.create(payload)


@router.post("/import", response_model=UnitImportResult)
def import_units(
    payload: UnitImportRequest,
    registry: UnitRegistry = Depends(get_registry),
    current_user: CurrentUser = Depends(get_current_user),
):
    """
    Create many units at once; existing codes are skipped and reported.
    """
    return registry.import_units(payload.units, payload.sector_id)


@router.patch("/{unit_id}", response_model=UnitOut)
def update_unit(
    unit_id: int,
    payload: UnitUpdate,
    registry: UnitRegistry = Depends(get_registry),
    current_user: CurrentUser = Depends(get_current_user),
):
    """
    Update a unit's descriptive fields. Occupancy is never edited here.
    """
    return registry.update(unit_id, payload)


@router.delete("/{unit_id}", status_code=204)
def delete_unit(
    unit_id: int,
    registry: UnitRegistry = Depends(get_registry),
    current_user: CurrentUser = Depends(get_current_user),
):
    """
    Delete a unit. Refused while anyone lives there.
    """
    registry.delete(unit_id)
    return None
