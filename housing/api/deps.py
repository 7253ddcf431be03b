from typing import Generator

from fastapi import Depends
from sqlalchemy.orm import Session

from housing.core.database import SessionLocal
from housing.core.notifications import NotificationEmitter
from housing.services.occupancy_engine import OccupancyEngine
from housing.services.reporting import ReportingService
from housing.services.repository import HousingRepository
from housing.services.unit_registry import UnitRegistry


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_repository(db: Session = Depends(get_db)) -> HousingRepository:
    return HousingRepository(db)


def get_notifier(db: Session = Depends(get_db)) -> NotificationEmitter:
    return NotificationEmitter(db)


def get_engine(
    repo: HousingRepository = Depends(get_repository),
    notifier: NotificationEmitter = Depends(get_notifier),
) -> OccupancyEngine:
    return OccupancyEngine(repo, notifier)


def get_registry(
    repo: HousingRepository = Depends(get_repository),
    notifier: NotificationEmitter = Depends(get_notifier),
) -> UnitRegistry:
    return UnitRegistry(repo, notifier)


def get_reports(repo: HousingRepository = Depends(get_repository)) -> ReportingService:
    return ReportingService(repo)
