"""
Data access for the housing tables.

HousingRepository wraps one SQLAlchemy Session and is constructed explicitly
(per request in housing.api.deps, per test in tests/conftest.py). The
occupancy engine, unit registry and reporting service all receive it at
construction time and never open connections of their own.
"""
from typing import Iterable, List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from housing.core.scope import GlobalScope, Scope, apply_scope
from housing.models.import_log import ImportLog
from housing.models.notification import Notification
from housing.models.occupancy_record import OccupancyRecord
from housing.models.resident import ResidentStatus, ResidentType
from housing.models.sector import Sector
from housing.models.unit import Unit
from housing.models.user import User


class HousingRepository:
    def __init__(self, db: Session):
        self.db = db

    # --- transaction control ---
    def add(self, obj):
        self.db.add(obj)
        return obj

    def flush(self) -> None:
        self.db.flush()

    def commit(self) -> None:
        self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()

    def refresh(self, obj) -> None:
        self.db.refresh(obj)

    def delete(self, obj) -> None:
        self.db.delete(obj)

    # --- units ---
    def get_unit(self, unit_id: int, lock: bool = False) -> Optional[Unit]:
        q = self.db.query(Unit).filter(Unit.id == unit_id)
        if lock:
            q = q.with_for_update()
        return q.first()

    def get_unit_by_code(self, code: str, lock: bool = False) -> Optional[Unit]:
        q = self.db.query(Unit).filter(Unit.code == code)
        if lock:
            q = q.with_for_update()
        return q.first()

    def lock_units(self, unit_ids: Iterable[int]) -> dict:
        """Lock several units in id order (avoids lock-order deadlocks) and return them keyed by id."""
        ids = sorted(set(unit_ids))
        units = self.db.query(Unit).filter(Unit.id.in_(ids)).order_by(Unit.id).with_for_update().all()
        return {u.id: u for u in units}

    def list_units(
        self,
        scope: Scope = GlobalScope(),
        type: Optional[str] = None,
        status: Optional[str] = None,
        search: Optional[str] = None,
    ) -> List[Unit]:
        q = apply_scope(self.db.query(Unit), Unit.sector_id, scope)
        if type:
            q = q.filter(Unit.type == type)
        if status:
            q = q.filter(Unit.status == status)
        if search:
            like = f"%{search.strip()}%"
            q = q.filter(
                Unit.code.ilike(like)
                | Unit.name.ilike(like)
                | Unit.building_name.ilike(like)
                | Unit.owner_name.ilike(like)
            )
        return q.order_by(Unit.code).all()

    def count_units_in_sector(self, sector_id: int) -> int:
        return self.db.query(Unit).filter(Unit.sector_id == sector_id).count()

    # --- residents ---
    def get_resident(self, resident_type: ResidentType, resident_id: int):
        model = resident_type.model
        return self.db.query(model).filter(model.id == resident_id).first()

    def find_active_by_identity(self, resident_type: ResidentType, identity: str):
        model = resident_type.model
        column = getattr(model, resident_type.identity_field)
        return (
            self.db.query(model)
            .filter(column == identity, model.status == ResidentStatus.ACTIVE.value)
            .order_by(model.id.desc())
            .first()
        )

    def find_active_by_name_and_unit(self, resident_type: ResidentType, name: str, unit_id: int):
        model = resident_type.model
        return (
            self.db.query(model)
            .filter(
                model.name == name,
                model.unit_id == unit_id,
                model.status == ResidentStatus.ACTIVE.value,
            )
            .first()
        )

    def active_residents_in_unit(self, resident_type: ResidentType, unit_id: int) -> list:
        model = resident_type.model
        return (
            self.db.query(model)
            .filter(model.unit_id == unit_id, model.status == ResidentStatus.ACTIVE.value)
            .order_by(model.name)
            .all()
        )

    def list_residents(
        self,
        resident_type: ResidentType,
        scope: Scope = GlobalScope(),
        status: Optional[str] = None,
        unit_id: Optional[int] = None,
        search: Optional[str] = None,
    ) -> list:
        """
        Residents of one population. A sector scope keeps residents of units in
        that sector (or sector-less units) plus residents that have no unit.
        """
        model = resident_type.model
        q = self.db.query(model).outerjoin(Unit, model.unit_id == Unit.id)
        q = apply_scope(q, Unit.sector_id, scope)
        if status:
            q = q.filter(model.status == status)
        if unit_id is not None:
            q = q.filter(model.unit_id == unit_id)
        if search:
            like = f"%{search.strip()}%"
            identity = getattr(model, resident_type.identity_field)
            q = q.filter(or_(model.name.ilike(like), identity.ilike(like), model.phone.ilike(like)))
        return q.order_by(model.id.desc()).all()

    def count_active_residents(self, resident_type: ResidentType, scope: Scope = GlobalScope()) -> int:
        model = resident_type.model
        q = self.db.query(model).outerjoin(Unit, model.unit_id == Unit.id)
        q = apply_scope(q, Unit.sector_id, scope)
        return q.filter(model.status == ResidentStatus.ACTIVE.value).count()

    # --- occupancy records ---
    def list_records(
        self,
        scope: Scope = GlobalScope(),
        unit_id: Optional[int] = None,
        action: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[OccupancyRecord]:
        q = self.db.query(OccupancyRecord).outerjoin(Unit, OccupancyRecord.unit_id == Unit.id)
        q = apply_scope(q, Unit.sector_id, scope)
        if unit_id is not None:
            q = q.filter(OccupancyRecord.unit_id == unit_id)
        if action:
            q = q.filter(OccupancyRecord.action == action)
        q = q.order_by(OccupancyRecord.action_date.desc(), OccupancyRecord.id.desc())
        if limit is not None:
            q = q.limit(limit)
        return q.all()

    def records_for_resident(self, resident_type: ResidentType, resident_id: int) -> List[OccupancyRecord]:
        return (
            self.db.query(OccupancyRecord)
            .filter(
                OccupancyRecord.resident_type == resident_type.value,
                OccupancyRecord.resident_id == resident_id,
            )
            .order_by(OccupancyRecord.action_date, OccupancyRecord.id)
            .all()
        )

    # --- sectors ---
    def list_sectors(self) -> List[Sector]:
        return self.db.query(Sector).order_by(Sector.name).all()

    def get_sector(self, sector_id: int) -> Optional[Sector]:
        return self.db.query(Sector).filter(Sector.id == sector_id).first()

    def get_sector_by_code(self, code: str) -> Optional[Sector]:
        return self.db.query(Sector).filter(Sector.code == code).first()

    def get_sector_by_name(self, name: str) -> Optional[Sector]:
        return self.db.query(Sector).filter(Sector.name == name).first()

    # --- import logs ---
    def get_import_log(self, log_id: int) -> Optional[ImportLog]:
        return self.db.query(ImportLog).filter(ImportLog.id == log_id).first()

    def list_import_logs(self, limit: int = 50) -> List[ImportLog]:
        return self.db.query(ImportLog).order_by(ImportLog.id.desc()).limit(limit).all()

    # --- notifications ---
    def list_notifications(self, scope: Scope = GlobalScope(), unread_only: bool = False, limit: int = 100):
        q = apply_scope(self.db.query(Notification), Notification.sector_id, scope)
        if unread_only:
            q = q.filter(Notification.is_read.is_(False))
        return q.order_by(Notification.id.desc()).limit(limit).all()

    def get_notification(self, notification_id: int) -> Optional[Notification]:
        return self.db.query(Notification).filter(Notification.id == notification_id).first()

    # --- users ---
    def get_user(self, user_id: int) -> Optional[User]:
        return self.db.query(User).filter(User.id == user_id).first()
