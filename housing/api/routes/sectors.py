import logging

from fastapi import APIRouter, Depends
from typing import List

from housing.api.deps import get_repository
from housing.core.auth import CurrentUser, get_current_user, require_admin
from housing.core.exceptions import ConflictError, DuplicateCodeError, NotFoundError
from housing.models.sector import Sector
from housing.schemas.sector import SectorAssignment, SectorCreate, SectorOut, SectorUpdate, UserOut
from housing.services.repository import HousingRepository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sectors", tags=["sectors"])


@router.get("", response_model=List[SectorOut])
def list_sectors(
    repo: HousingRepository = Depends(get_repository),
    current_user: CurrentUser = Depends(get_current_user),
):
    """
    Sectors the caller can see: all of them for a global user, their own otherwise.
    """
    return [s for s in repo.list_sectors() if current_user.scope.allows(s.id)]


@router.get("/{sector_id}", response_model=SectorOut)
def get_sector(
    sector_id: int,
    repo: HousingRepository = Depends(get_repository),
    current_user: CurrentUser = Depends(get_current_user),
):
    sector = repo.get_sector(sector_id)
    if sector is None or not current_user.scope.allows(sector.id):
        raise NotFoundError("sector", sector_id)
    return sector


@router.post("", response_model=SectorOut, status_code=201)
def create_sector(
    payload: SectorCreate,
    repo: HousingRepository = Depends(get_repository),
    current_user: CurrentUser = Depends(require_admin),
):
    if repo.get_sector_by_code(payload.code) is not None:
        raise DuplicateCodeError("sector", payload.code)
    if repo.get_sector_by_name(payload.name) is not None:
        raise DuplicateCodeError("sector", payload.name)

    sector = Sector(**payload.model_dump())
    repo.add(sector)
    repo.commit()
    repo.refresh(sector)
    logger.info("Sector %s created by %s", sector.code, current_user.label)
    return sector


@router.patch("/{sector_id}", response_model=SectorOut)
def update_sector(
    sector_id: int,
    payload: SectorUpdate,
    repo: HousingRepository = Depends(get_repository),
    current_user: CurrentUser = Depends(require_admin),
):
    sector = repo.get_sector(sector_id)
    if sector is None:
        raise NotFoundError("sector", sector_id)

    data = payload.model_dump(exclude_unset=True)
    if data.get("code") and data["code"] != sector.code and repo.get_sector_by_code(data["code"]) is not None:
        raise DuplicateCodeError("sector", data["code"])
    if data.get("name") and data["name"] != sector.name and repo.get_sector_by_name(data["name"]) is not None:
        raise DuplicateCodeError("sector", data["name"])

    for k, v in data.items():
        if v is not None:
            setattr(sector, k, v)
    repo.commit()
    repo.refresh(sector)
    return sector


@router.delete("/{sector_id}", status_code=204)
def delete_sector(
    sector_id: int,
    repo: HousingRepository = Depends(get_repository),
    current_user: CurrentUser = Depends(require_admin),
):
    """
    Delete a sector. Refused while units still belong to it.
    """
    sector = repo.get_sector(sector_id)
    if sector is None:
        raise NotFoundError("sector", sector_id)
    units = repo.count_units_in_sector(sector_id)
    if units:
        raise ConflictError(f"Sector {sector.code} still has {units} units")

    for user in sector.users:
        user.sector_id = None
    repo.delete(sector)
    repo.commit()
    logger.info("Sector %s deleted by %s", sector_id, current_user.label)
    return None


@router.post("/assign", response_model=UserOut)
def assign_user(
    payload: SectorAssignment,
    repo: HousingRepository = Depends(get_repository),
    current_user: CurrentUser = Depends(require_admin),
):
    """
    Bind a user to a sector, or make them global again with sector_id=null.
    """
    user = repo.get_user(payload.user_id)
    if user is None:
        raise NotFoundError("user", payload.user_id)
    if payload.sector_id is not None and repo.get_sector(payload.sector_id) is None:
        raise NotFoundError("sector", payload.sector_id)

    user.sector_id = payload.sector_id
    repo.commit()
    repo.refresh(user)
    logger.info("User %s assigned to sector %s by %s", user.open_id, payload.sector_id, current_user.label)
    return user
