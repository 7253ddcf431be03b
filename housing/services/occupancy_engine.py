"""
Occupancy engine.

Every change to who lives where goes through OccupancyEngine: single check-in
and check-out, bulk check-in, transfer, spreadsheet eviction and spreadsheet
import. Each operation validates against the current (row-locked) unit state,
then writes residents, the unit counters and the occupancy log inside one
transaction. Bulk operations commit row by row so that one bad row never undoes
the rows before it.

Invariants maintained here:
- 0 <= unit.current_occupants <= unit.beds
- unit.status is vacant when nobody lives there and occupied otherwise
  (maintenance is only ever set by hand)
- an active resident's unit has the type bound to the resident's population
"""
import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Callable, List, Optional, Sequence, Tuple

from sqlalchemy.exc import SQLAlchemyError

from housing.core.exceptions import (
    CapacityExceededError,
    ConflictError,
    HousingError,
    InvalidFieldError,
    MissingFieldError,
    NotAssignedError,
    NotFoundError,
    PopulationMismatchError,
)
from housing.core.notifications import NotificationEmitter, NotificationType
from housing.models.import_log import ImportLog, ImportStatus
from housing.models.occupancy_record import OccupancyAction, OccupancyRecord
from housing.models.resident import ResidentStatus, ResidentType
from housing.models.unit import Unit, UnitStatus
from housing.schemas.import_log import EvictionRow, ImportRow, RowError
from housing.services.repository import HousingRepository

logger = logging.getLogger(__name__)

EVICTION_LABEL_PREFIX = "[eviction] "

_FEMALE_LABELS = {"female", "f", "woman", "أنثى", "انثى", "женский", "ж"}


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_row_date(value: Optional[str], field: str) -> Optional[datetime]:
    """
    Parse a spreadsheet date cell. Accepts ISO 8601 dates/date-times
    ("2024-01-15", "2024-01-15T08:00:00Z") and day-first "15/01/2024".
    Naive values are treated as UTC.
    """
    if value is None:
        return None
    raw = str(value).strip()
    if not raw:
        return None
    try:
        dt = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        try:
            dt = datetime.strptime(raw, "%d/%m/%Y")
        except ValueError:
            raise InvalidFieldError(field, value)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def _gender_from_cell(value: Optional[str]) -> str:
    if value and value.strip().lower() in _FEMALE_LABELS:
        return "female"
    return "male"


class OccupancyEngine:
    def __init__(
        self,
        repo: HousingRepository,
        notifier: NotificationEmitter,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.repo = repo
        self.notifier = notifier
        self.clock = clock

    # ------------------------------------------------------------------
    # Single check-in / check-out
    # ------------------------------------------------------------------

    def check_in(self, entry, unit_id: int, check_in_date: Optional[datetime] = None):
        """
        House one resident in a unit.

        `entry` is an EgyptianResidentIn or RussianResidentIn. Preconditions are
        checked in order (unit exists, a bed is free, unit type matches the
        population) and the first failure is raised before anything is written.
        Returns the new resident row.
        """
        resident_type = ResidentType(entry.resident_type)
        with self._transaction():
            unit = self._require_unit(unit_id)
            self._ensure_capacity(unit, 1)
            self._ensure_population(unit, resident_type)

            when = check_in_date or self.clock()
            resident = self._new_resident(resident_type, entry, unit, when)
            self._occupy(unit, 1)
            self._record(resident_type, resident, unit, OccupancyAction.CHECK_IN, when)

        logger.info(
            "Checked in %s resident %s (%s) to unit %s, occupants now %s/%s",
            resident_type.value, resident.id, resident.name, unit.code, unit.current_occupants, unit.beds,
        )
        self.notifier.emit(
            "New check-in",
            f"{resident.name} checked in to {unit.code}",
            NotificationType.SUCCESS,
            sector_id=unit.sector_id,
        )
        return resident

    def check_out(self, resident_type: ResidentType, resident_id: int):
        """Check a resident out of their unit. Emits no notification."""
        with self._transaction():
            resident = self.repo.get_resident(resident_type, resident_id)
            if resident is None:
                raise NotFoundError("resident", resident_id)
            if resident.unit_id is None:
                raise NotAssignedError(resident.name)

            unit = self.repo.get_unit(resident.unit_id, lock=True)
            self._check_out_resident(resident_type, resident, unit, self.clock())

        logger.info(
            "Checked out %s resident %s (%s) from unit %s",
            resident_type.value, resident.id, resident.name, unit.code if unit else None,
        )
        return resident, unit

    # ------------------------------------------------------------------
    # Bulk check-in
    # ------------------------------------------------------------------

    def bulk_check_in(
        self,
        resident_type: ResidentType,
        entries: Sequence,
        unit_id: int,
        check_in_date: Optional[datetime] = None,
    ) -> Tuple[List, Unit]:
        """
        House a group of residents of one population in one unit.

        All or nothing: if the batch does not fit in the free beds nothing is
        inserted.
        """
        if not entries:
            raise MissingFieldError("residents")
        for entry in entries:
            if ResidentType(entry.resident_type) is not resident_type:
                raise PopulationMismatchError(resident_type.unit_type.value, entry.resident_type)

        with self._transaction():
            unit = self._require_unit(unit_id)
            self._ensure_population(unit, resident_type)
            self._ensure_capacity(unit, len(entries))

            when = check_in_date or self.clock()
            residents = []
            for entry in entries:
                resident = self._new_resident(resident_type, entry, unit, when)
                self._record(resident_type, resident, unit, OccupancyAction.CHECK_IN, when)
                residents.append(resident)
            self._occupy(unit, len(residents))

        logger.info(
            "Bulk check-in of %s %s residents to unit %s, occupants now %s/%s",
            len(residents), resident_type.value, unit.code, unit.current_occupants, unit.beds,
        )
        self.notifier.emit(
            "Bulk check-in",
            f"{len(residents)} residents checked in to {unit.code}",
            NotificationType.SUCCESS,
            sector_id=unit.sector_id,
        )
        return residents, unit

    # ------------------------------------------------------------------
    # Transfer
    # ------------------------------------------------------------------

    def transfer(
        self,
        selected: Sequence[Tuple[ResidentType, int]],
        from_unit_id: int,
        to_unit_id: int,
    ) -> Tuple[int, datetime]:
        """
        Move residents from one unit to another.

        Each resident gets a transfer_in row (on the destination, pointing back
        at the source) and a transfer_out row (on the source, pointing at the
        destination), all stamped with the same action date. Returns the number
        moved and that date.
        """
        if not selected:
            raise MissingFieldError("residents")
        if len(set(selected)) != len(selected):
            raise ConflictError("The same resident was selected more than once")

        with self._transaction():
            units = self.repo.lock_units([from_unit_id, to_unit_id])
            from_unit = units.get(from_unit_id)
            to_unit = units.get(to_unit_id)
            if from_unit is None:
                raise NotFoundError("unit", from_unit_id)
            if to_unit is None:
                raise NotFoundError("unit", to_unit_id)
            if from_unit.id == to_unit.id:
                raise ConflictError("Source and destination unit are the same")
            self._ensure_capacity(to_unit, len(selected))

            movers = []
            for resident_type, resident_id in selected:
                resident = self.repo.get_resident(resident_type, resident_id)
                if resident is None:
                    raise NotFoundError("resident", resident_id)
                if resident.unit_id != from_unit.id:
                    raise NotAssignedError(resident.name, from_unit.code)
                self._ensure_population(to_unit, resident_type)
                movers.append((resident_type, resident))

            when = self.clock()
            for resident_type, resident in movers:
                resident.unit_id = to_unit.id
                resident.status = ResidentStatus.ACTIVE.value
                self._record(
                    resident_type, resident, to_unit, OccupancyAction.TRANSFER_IN, when, from_unit=from_unit,
                )
                self._record(
                    resident_type, resident, from_unit, OccupancyAction.TRANSFER_OUT, when, from_unit=to_unit,
                )

            self._release(from_unit, len(movers))
            self._occupy(to_unit, len(movers))

        logger.info(
            "Transferred %s residents from unit %s to unit %s",
            len(movers), from_unit.code, to_unit.code,
        )
        self.notifier.emit(
            "Residents transferred",
            f"{len(movers)} residents moved from {from_unit.code} to {to_unit.code}",
            NotificationType.INFO,
            sector_id=to_unit.sector_id,
        )
        return len(movers), when

    # ------------------------------------------------------------------
    # Spreadsheet eviction (bulk check-out)
    # ------------------------------------------------------------------

    def bulk_evict(
        self,
        rows: Sequence[EvictionRow],
        file_name: str,
        imported_by: Optional[str] = None,
    ) -> Tuple[ImportLog, List[RowError]]:
        """
        Check out every resident listed in an eviction sheet.

        A row is matched by identity document (Egyptian national ID first, then
        Russian passport number) and otherwise by name within the unit given by
        its unit code. Rows succeed or fail independently; the outcome is kept
        on an ImportLog.
        """
        log, errors = self._run_rows(
            rows, EVICTION_LABEL_PREFIX + file_name, self._evict_row, imported_by,
        )
        failed = len(errors)
        message = f"{log.success_rows} residents checked out"
        if failed:
            message += f" ({failed} failed)"
        self.notifier.emit(
            "Bulk eviction",
            message,
            NotificationType.SUCCESS if failed == 0 else NotificationType.WARNING,
        )
        return log, errors

    def _evict_row(self, row: EvictionRow) -> None:
        if not row.name:
            raise MissingFieldError("name")
        when = parse_row_date(row.check_out_date, "check_out_date") or self.clock()

        if row.national_id:
            for resident_type in ResidentType:
                resident = self.repo.find_active_by_identity(resident_type, row.national_id)
                if resident is not None and resident.unit_id is not None:
                    unit = self.repo.get_unit(resident.unit_id, lock=True)
                    self._check_out_resident(resident_type, resident, unit, when, notes=row.reason)
                    return

        if row.unit_code:
            unit = self.repo.get_unit_by_code(row.unit_code, lock=True)
            if unit is None:
                raise NotFoundError("unit", row.unit_code)
            resident_type = ResidentType.for_unit_type(unit.type)
            resident = self.repo.find_active_by_name_and_unit(resident_type, row.name, unit.id)
            if resident is not None:
                self._check_out_resident(resident_type, resident, unit, when, notes=row.reason)
                return

        raise NotFoundError("resident", row.name)

    # ------------------------------------------------------------------
    # Spreadsheet import (historical / backfill check-in)
    # ------------------------------------------------------------------

    def bulk_import(
        self,
        rows: Sequence[ImportRow],
        file_name: str,
        imported_by: Optional[str] = None,
    ) -> Tuple[ImportLog, List[RowError]]:
        """
        Create residents from an import sheet. The unit code decides the
        population. Rows that carry a check-out date describe people who have
        already left: they are stored as checked out and do not take a bed.
        Emits no notification.
        """
        return self._run_rows(rows, file_name, self._import_row, imported_by)

    def _import_row(self, row: ImportRow) -> None:
        if not row.name:
            raise MissingFieldError("name")
        if not row.unit_code:
            raise MissingFieldError("unit_code")

        unit = self.repo.get_unit_by_code(row.unit_code, lock=True)
        if unit is None:
            raise NotFoundError("unit", row.unit_code)

        if not row.check_out_date:
            self._ensure_capacity(unit, 1)

        check_in_date = parse_row_date(row.check_in_date, "check_in_date")
        check_out_date = parse_row_date(row.check_out_date, "check_out_date")
        if check_in_date is None:
            check_in_date = check_out_date or self.clock()
        elif check_out_date is not None and check_out_date < check_in_date:
            raise InvalidFieldError("check_out_date", row.check_out_date)

        resident_type = ResidentType.for_unit_type(unit.type)
        identity = row.national_id or ""
        if resident_type is ResidentType.EGYPTIAN:
            fields = {"national_id": identity}
        else:
            fields = {
                "passport_number": identity,
                "nationality": row.nationality or "Russian",
                "gender": _gender_from_cell(row.gender),
            }

        resident = resident_type.model(
            name=row.name,
            phone=row.phone,
            shift=row.shift,
            check_in_date=check_in_date,
            **fields,
        )
        if check_out_date is not None:
            # Historical stay: recorded, but the person no longer occupies a bed
            resident.status = ResidentStatus.CHECKED_OUT.value
            resident.check_out_date = check_out_date
            resident.unit_id = None
            self.repo.add(resident)
            self.repo.flush()
            return

        resident.status = ResidentStatus.ACTIVE.value
        resident.unit_id = unit.id
        self.repo.add(resident)
        self.repo.flush()
        self._occupy(unit, 1)
        self._record(resident_type, resident, unit, OccupancyAction.CHECK_IN, check_in_date)

    # ------------------------------------------------------------------
    # Shared steps
    # ------------------------------------------------------------------

    @contextmanager
    def _transaction(self):
        try:
            yield
            self.repo.commit()
        except HousingError as exc:
            self.repo.rollback()
            logger.info("Rejected: %s", exc.message)
            raise
        except Exception:
            self.repo.rollback()
            raise

    def _require_unit(self, unit_id: int) -> Unit:
        unit = self.repo.get_unit(unit_id, lock=True)
        if unit is None:
            raise NotFoundError("unit", unit_id)
        return unit

    def _ensure_capacity(self, unit: Unit, requested: int) -> None:
        available = unit.beds - unit.current_occupants
        if requested > available:
            raise CapacityExceededError(max(0, available), requested, unit.code)

    def _ensure_population(self, unit: Unit, resident_type: ResidentType) -> None:
        """The one place the population / unit type binding is enforced."""
        if unit.type != resident_type.unit_type.value:
            raise PopulationMismatchError(resident_type.unit_type.value, resident_type.value)

    def _new_resident(self, resident_type: ResidentType, entry, unit: Unit, when: datetime):
        resident = resident_type.model(
            name=entry.name,
            phone=entry.phone,
            shift=entry.shift,
            unit_id=unit.id,
            check_in_date=when,
            status=ResidentStatus.ACTIVE.value,
            ocr_confidence=entry.ocr_confidence,
            image_url=entry.image_url,
            **entry.identity_fields(),
        )
        self.repo.add(resident)
        self.repo.flush()  # assigns resident.id for the occupancy record
        return resident

    def _occupy(self, unit: Unit, count: int) -> None:
        unit.current_occupants = unit.current_occupants + count
        unit.status = UnitStatus.OCCUPIED.value

    def _release(self, unit: Unit, count: int) -> None:
        unit.current_occupants = max(0, unit.current_occupants - count)
        unit.status = UnitStatus.VACANT.value if unit.current_occupants == 0 else UnitStatus.OCCUPIED.value

    def _check_out_resident(
        self,
        resident_type: ResidentType,
        resident,
        unit: Optional[Unit],
        when: datetime,
        notes: Optional[str] = None,
    ) -> None:
        resident.status = ResidentStatus.CHECKED_OUT.value
        resident.check_out_date = when
        resident.unit_id = None
        if unit is not None:
            self._release(unit, 1)
            self._record(resident_type, resident, unit, OccupancyAction.CHECK_OUT, when, notes=notes)

    def _record(
        self,
        resident_type: ResidentType,
        resident,
        unit: Unit,
        action: OccupancyAction,
        when: datetime,
        from_unit: Optional[Unit] = None,
        notes: Optional[str] = None,
    ) -> OccupancyRecord:
        record = OccupancyRecord(
            resident_type=resident_type.value,
            resident_id=resident.id,
            resident_name=resident.name,
            unit_id=unit.id,
            unit_code=unit.code,
            action=action.value,
            from_unit_id=from_unit.id if from_unit else None,
            from_unit_code=from_unit.code if from_unit else None,
            notes=notes,
            action_date=when,
        )
        self.repo.add(record)
        return record

    def _run_rows(
        self,
        rows: Sequence,
        file_name: str,
        handle_row: Callable,
        imported_by: Optional[str],
    ) -> Tuple[ImportLog, List[RowError]]:
        log = ImportLog(
            file_name=file_name,
            total_rows=len(rows),
            status=ImportStatus.PROCESSING.value,
            imported_by=imported_by,
        )
        self.repo.add(log)
        self.repo.commit()
        logger.info("Processing %s (%s rows, log %s)", file_name, len(rows), log.id)

        success = 0
        errors: List[RowError] = []
        for index, row in enumerate(rows, start=1):
            try:
                with self._transaction():
                    handle_row(row)
                success += 1
            except HousingError as exc:
                logger.warning("%s row %s failed: %s", file_name, index, exc.message)
                errors.append(RowError(row=index, error=exc.message, code=exc.error_code.value))
            except SQLAlchemyError:
                logger.exception("%s row %s failed with a database error", file_name, index)
                errors.append(RowError(row=index, error="Database error while saving the row", code="DATABASE_ERROR"))

        log.success_rows = success
        log.failed_rows = len(errors)
        log.errors = [e.model_dump() for e in errors]
        all_failed = len(rows) > 0 and len(errors) == len(rows)
        log.status = ImportStatus.FAILED.value if all_failed else ImportStatus.COMPLETED.value
        self.repo.commit()
        self.repo.refresh(log)
        logger.info(
            "Finished %s: %s succeeded, %s failed (log %s, %s)",
            file_name, success, len(errors), log.id, log.status,
        )
        return log, errors
