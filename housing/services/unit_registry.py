"""
Unit registry: descriptive maintenance of units.

Occupancy (current_occupants and the vacant/occupied status it implies) is
owned by the occupancy engine; this module only creates, edits and removes
units and refuses edits that would contradict the live occupancy.
"""
import logging
from typing import Optional, Sequence

from housing.core.exceptions import ConflictError, DuplicateCodeError, NotFoundError
from housing.core.notifications import NotificationEmitter, NotificationType
from housing.models.unit import Unit, UnitStatus
from housing.schemas.unit import UnitCreate, UnitImportError, UnitImportResult, UnitImportRow, UnitUpdate
from housing.services.repository import HousingRepository

logger = logging.getLogger(__name__)


class UnitRegistry:
    def __init__(self, repo: HousingRepository, notifier: Optional[NotificationEmitter] = None):
        self.repo = repo
        self.notifier = notifier

    def get(self, unit_id: int) -> Unit:
        unit = self.repo.get_unit(unit_id)
        if unit is None:
            raise NotFoundError("unit", unit_id)
        return unit

    def create(self, payload: UnitCreate) -> Unit:
        if self.repo.get_unit_by_code(payload.code) is not None:
            raise DuplicateCodeError("unit", payload.code)
        self._require_sector(payload.sector_id)

        unit = Unit(
            **payload.model_dump(),
            status=UnitStatus.VACANT.value,
            current_occupants=0,
        )
        unit.type = payload.type.value
        self.repo.add(unit)
        self.repo.commit()
        self.repo.refresh(unit)
        logger.info("Created unit %s (%s, %s beds)", unit.code, unit.type, unit.beds)
        return unit

    def update(self, unit_id: int, payload: UnitUpdate) -> Unit:
        unit = self.repo.get_unit(unit_id, lock=True)
        if unit is None:
            raise NotFoundError("unit", unit_id)

        data = payload.model_dump(exclude_unset=True)
        try:
            if "code" in data and data["code"] != unit.code:
                if self.repo.get_unit_by_code(data["code"]) is not None:
                    raise DuplicateCodeError("unit", data["code"])
            if "sector_id" in data:
                self._require_sector(data["sector_id"])
            if data.get("beds") is not None and data["beds"] < unit.current_occupants:
                raise ConflictError(
                    f"Unit {unit.code} has {unit.current_occupants} occupants; beds cannot be reduced to {data['beds']}"
                )
            if data.get("type") is not None and data["type"].value != unit.type and unit.current_occupants > 0:
                raise ConflictError(f"Unit {unit.code} is occupied; its type cannot change")
            if data.get("status") is not None:
                self._check_manual_status(unit, data["status"])
        except Exception:
            self.repo.rollback()
            raise

        for field, value in data.items():
            if value is None and field in ("code", "name", "type", "rooms", "beds", "status"):
                continue
            if hasattr(value, "value"):
                value = value.value
            setattr(unit, field, value)

        self.repo.commit()
        self.repo.refresh(unit)
        logger.info("Updated unit %s: %s", unit.code, sorted(data))
        return unit

    def delete(self, unit_id: int) -> None:
        unit = self.repo.get_unit(unit_id, lock=True)
        if unit is None:
            raise NotFoundError("unit", unit_id)
        if unit.current_occupants > 0:
            self.repo.rollback()
            raise ConflictError(f"Unit {unit.code} still has {unit.current_occupants} occupants")
        code = unit.code
        self.repo.delete(unit)
        self.repo.commit()
        logger.info("Deleted unit %s", code)

    def import_units(self, rows: Sequence[UnitImportRow], sector_id: Optional[int] = None) -> UnitImportResult:
        """
        Create units from a spreadsheet. Codes that already exist (in the
        database or earlier in the same sheet) are skipped and reported.
        """
        self._require_sector(sector_id)
        created = 0
        errors = []
        seen = set()
        for row in rows:
            if row.code in seen or self.repo.get_unit_by_code(row.code) is not None:
                errors.append(UnitImportError(code=row.code, error=f"Unit code {row.code} already exists"))
                continue
            seen.add(row.code)
            unit = Unit(
                **row.model_dump(),
                sector_id=sector_id,
                status=UnitStatus.VACANT.value,
                current_occupants=0,
            )
            unit.type = row.type.value
            self.repo.add(unit)
            created += 1
        self.repo.commit()
        logger.info("Unit import: %s created, %s skipped", created, len(errors))

        if created and self.notifier is not None:
            self.notifier.emit(
                "Units imported",
                f"{created} units imported",
                NotificationType.SUCCESS,
                sector_id=sector_id,
            )
        return UnitImportResult(created=created, skipped=len(errors), errors=errors)

    def _require_sector(self, sector_id: Optional[int]) -> None:
        if sector_id is not None and self.repo.get_sector(sector_id) is None:
            raise NotFoundError("sector", sector_id)

    def _check_manual_status(self, unit: Unit, status: UnitStatus) -> None:
        if status is UnitStatus.MAINTENANCE:
            return
        if status is UnitStatus.VACANT and unit.current_occupants > 0:
            raise ConflictError(f"Unit {unit.code} has occupants and cannot be marked vacant")
        if status is UnitStatus.OCCUPIED and unit.current_occupants == 0:
            raise ConflictError(f"Unit {unit.code} has no occupants and cannot be marked occupied")
