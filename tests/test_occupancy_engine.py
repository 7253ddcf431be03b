from datetime import date

import pytest

from housing.core.exceptions import (
    CapacityExceededError,
    ConflictError,
    MissingFieldError,
    NotAssignedError,
    NotFoundError,
    PopulationMismatchError,
)
from housing.models.import_log import ImportLog
from housing.models.notification import Notification
from housing.models.resident import EgyptianResident, ResidentType, RussianResident
from housing.schemas.import_log import EvictionRow, ImportRow
from housing.schemas.resident import EgyptianResidentIn, RussianResidentIn


def egyptian(name="Ahmed Hassan", national_id="29001011234567", **fields):
    return EgyptianResidentIn(name=name, national_id=national_id, **fields)


def russian(name="Ivan Petrov", passport_number="751234567", gender="male", **fields):
    return RussianResidentIn(name=name, passport_number=passport_number, gender=gender, **fields)


def notifications(db):
    return db.query(Notification).order_by(Notification.id).all()


class TestCheckIn:
    def test_check_in_fills_a_bed_and_logs_it(self, db, occupancy, make_unit, records, assert_consistent):
        unit = make_unit("A-101", beds=2)

        resident = occupancy.check_in(
            egyptian(phone="01001234567", shift="night", ocr_confidence=91, image_url="/uploads/ocr-images/a.jpg"),
            unit.id,
        )

        db.refresh(unit)
        assert unit.current_occupants == 1
        assert unit.status == "occupied"
        assert resident.status == "active"
        assert resident.unit_id == unit.id
        assert resident.ocr_confidence == 91
        assert resident.image_url == "/uploads/ocr-images/a.jpg"

        [record] = records()
        assert record.action == "check_in"
        assert record.resident_type == "egyptian"
        assert record.resident_id == resident.id
        assert record.unit_code == "A-101"
        assert_consistent()

    def test_full_unit_is_rejected_without_writing(self, db, occupancy, make_unit, records):
        unit = make_unit("A-102", beds=1)
        occupancy.check_in(egyptian(), unit.id)

        with pytest.raises(CapacityExceededError) as exc:
            occupancy.check_in(egyptian(name="Mona Ali", national_id="29502021234567"), unit.id)

        assert exc.value.available == 0
        assert exc.value.requested == 1
        db.refresh(unit)
        assert unit.current_occupants == 1
        assert db.query(EgyptianResident).count() == 1
        assert len(records()) == 1

    def test_unknown_unit(self, occupancy):
        with pytest.raises(NotFoundError) as exc:
            occupancy.check_in(egyptian(), 999)
        assert exc.value.entity == "unit"

    @pytest.mark.parametrize(
        "entry, unit_type",
        [(egyptian(), "chalet"), (russian(), "apartment")],
        ids=["egyptian-into-chalet", "russian-into-apartment"],
    )
    def test_population_must_match_unit_type(self, db, occupancy, make_unit, records, entry, unit_type):
        unit = make_unit("X-1", type=unit_type)

        with pytest.raises(PopulationMismatchError):
            occupancy.check_in(entry, unit.id)

        db.refresh(unit)
        assert unit.current_occupants == 0
        assert unit.status == "vacant"
        assert db.query(EgyptianResident).count() == 0
        assert db.query(RussianResident).count() == 0
        assert records() == []

    def test_capacity_is_checked_before_population(self, occupancy, make_unit):
        chalet = make_unit("C-1", type="chalet", beds=1)
        occupancy.check_in(russian(), chalet.id)

        with pytest.raises(CapacityExceededError):
            occupancy.check_in(egyptian(), chalet.id)

    def test_check_in_notifies_the_unit_sector(self, db, occupancy, make_unit, make_sector):
        sector = make_sector("N")
        unit = make_unit("A-103", sector_id=sector.id)

        occupancy.check_in(egyptian(name="Omar Said"), unit.id)

        [note] = notifications(db)
        assert note.type == "success"
        assert note.sector_id == sector.id
        assert "Omar Said" in note.message
        assert "A-103" in note.message


class TestCheckOut:
    def test_check_in_then_check_out_returns_unit_to_vacant(self, db, occupancy, make_unit, records, assert_consistent):
        unit = make_unit("A-201", beds=2)
        resident = occupancy.check_in(egyptian(), unit.id)

        checked_out, from_unit = occupancy.check_out(ResidentType.EGYPTIAN, resident.id)

        db.refresh(unit)
        assert from_unit.id == unit.id
        assert unit.current_occupants == 0
        assert unit.status == "vacant"
        assert checked_out.status == "checked_out"
        assert checked_out.unit_id is None
        assert checked_out.check_out_date is not None
        assert [r.action for r in records()] == ["check_in", "check_out"]
        assert_consistent()

    def test_single_check_out_emits_no_notification(self, db, occupancy, make_unit):
        unit = make_unit("C-201", type="chalet")
        resident = occupancy.check_in(russian(), unit.id)
        assert len(notifications(db)) == 1

        occupancy.check_out(ResidentType.RUSSIAN, resident.id)

        assert len(notifications(db)) == 1

    def test_unknown_resident(self, occupancy):
        with pytest.raises(NotFoundError) as exc:
            occupancy.check_out(ResidentType.EGYPTIAN, 42)
        assert exc.value.entity == "resident"

    def test_checked_out_resident_cannot_leave_again(self, occupancy, make_unit):
        unit = make_unit("A-202")
        resident = occupancy.check_in(egyptian(), unit.id)
        occupancy.check_out(ResidentType.EGYPTIAN, resident.id)

        with pytest.raises(NotAssignedError):
            occupancy.check_out(ResidentType.EGYPTIAN, resident.id)

    def test_occupant_count_never_goes_negative(self, db, occupancy, make_unit):
        unit = make_unit("A-203")
        resident = occupancy.check_in(egyptian(), unit.id)
        unit.current_occupants = 0
        unit.status = "vacant"
        db.commit()

        occupancy.check_out(ResidentType.EGYPTIAN, resident.id)

        db.refresh(unit)
        assert unit.current_occupants == 0
        assert unit.status == "vacant"


class TestBulkCheckIn:
    def test_group_fills_unit_with_one_notification(self, db, occupancy, make_unit, records, assert_consistent):
        chalet = make_unit("C-301", type="chalet", beds=4)
        group = [
            russian(name="Ivan Petrov", passport_number="751000001"),
            russian(name="Olga Ivanova", passport_number="751000002", gender="female"),
            russian(name="Sergey Smirnov", passport_number="751000003"),
        ]

        residents, unit = occupancy.bulk_check_in(ResidentType.RUSSIAN, group, chalet.id)

        assert len(residents) == 3
        assert unit.current_occupants == 3
        assert unit.status == "occupied"
        assert [r.action for r in records()] == ["check_in"] * 3
        assert len(notifications(db)) == 1
        assert_consistent()

    def test_all_or_nothing_when_batch_does_not_fit(self, db, occupancy, make_unit, records):
        apartment = make_unit("A-301", beds=3)
        group = [egyptian(name=f"Resident {i}", national_id=f"2900101000000{i}") for i in range(4)]

        with pytest.raises(CapacityExceededError) as exc:
            occupancy.bulk_check_in(ResidentType.EGYPTIAN, group, apartment.id)

        assert exc.value.available == 3
        assert exc.value.requested == 4
        db.refresh(apartment)
        assert apartment.current_occupants == 0
        assert db.query(EgyptianResident).count() == 0
        assert records() == []
        assert notifications(db) == []

    def test_empty_batch(self, occupancy, make_unit):
        unit = make_unit("A-302")
        with pytest.raises(MissingFieldError):
            occupancy.bulk_check_in(ResidentType.EGYPTIAN, [], unit.id)

    def test_batch_population_must_match_unit(self, occupancy, make_unit):
        apartment = make_unit("A-303", beds=4)
        with pytest.raises(PopulationMismatchError):
            occupancy.bulk_check_in(ResidentType.RUSSIAN, [russian()], apartment.id)

    def test_entries_must_all_be_the_declared_population(self, occupancy, make_unit):
        apartment = make_unit("A-304", beds=4)
        with pytest.raises(PopulationMismatchError):
            occupancy.bulk_check_in(ResidentType.EGYPTIAN, [egyptian(), russian()], apartment.id)


class TestTransfer:
    def test_transfer_moves_counts_and_writes_paired_records(
        self, db, occupancy, make_unit, records, assert_consistent
    ):
        source = make_unit("A-401", beds=3)
        target = make_unit("A-402", beds=3)
        first = occupancy.check_in(egyptian(name="Ahmed", national_id="1"), source.id)
        second = occupancy.check_in(egyptian(name="Karim", national_id="2"), source.id)
        before = len(records())

        moved, action_date = occupancy.transfer(
            [(ResidentType.EGYPTIAN, first.id), (ResidentType.EGYPTIAN, second.id)],
            source.id,
            target.id,
        )

        db.refresh(source)
        db.refresh(target)
        assert moved == 2
        assert source.current_occupants == 0
        assert source.status == "vacant"
        assert target.current_occupants == 2
        assert target.status == "occupied"

        new = records()[before:]
        assert len(new) == 4
        assert len({r.action_date for r in new}) == 1
        transfer_in = [r for r in new if r.action == "transfer_in"]
        transfer_out = [r for r in new if r.action == "transfer_out"]
        assert {(r.unit_id, r.from_unit_id) for r in transfer_in} == {(target.id, source.id)}
        assert {(r.unit_id, r.from_unit_id) for r in transfer_out} == {(source.id, target.id)}
        for resident in (first, second):
            db.refresh(resident)
            assert resident.unit_id == target.id
            assert resident.status == "active"
        assert_consistent()

    def test_destination_capacity(self, db, occupancy, make_unit, records):
        source = make_unit("A-403", beds=3)
        target = make_unit("A-404", beds=1)
        a = occupancy.check_in(egyptian(name="A", national_id="1"), source.id)
        b = occupancy.check_in(egyptian(name="B", national_id="2"), source.id)
        before = len(records())

        with pytest.raises(CapacityExceededError):
            occupancy.transfer([(ResidentType.EGYPTIAN, a.id), (ResidentType.EGYPTIAN, b.id)], source.id, target.id)

        db.refresh(source)
        db.refresh(target)
        assert source.current_occupants == 2
        assert target.current_occupants == 0
        assert len(records()) == before

    def test_population_guard_applies_to_transfer(self, occupancy, make_unit):
        apartment = make_unit("A-405")
        chalet = make_unit("C-405", type="chalet")
        resident = occupancy.check_in(egyptian(), apartment.id)

        with pytest.raises(PopulationMismatchError):
            occupancy.transfer([(ResidentType.EGYPTIAN, resident.id)], apartment.id, chalet.id)

    def test_resident_must_live_in_source_unit(self, occupancy, make_unit):
        source = make_unit("A-406")
        elsewhere = make_unit("A-407")
        target = make_unit("A-408")
        resident = occupancy.check_in(egyptian(), elsewhere.id)

        with pytest.raises(NotAssignedError):
            occupancy.transfer([(ResidentType.EGYPTIAN, resident.id)], source.id, target.id)

    def test_same_unit_is_a_conflict(self, occupancy, make_unit):
        unit = make_unit("A-409")
        resident = occupancy.check_in(egyptian(), unit.id)

        with pytest.raises(ConflictError):
            occupancy.transfer([(ResidentType.EGYPTIAN, resident.id)], unit.id, unit.id)

    def test_duplicate_selection_is_a_conflict(self, occupancy, make_unit):
        source = make_unit("A-410", beds=3)
        target = make_unit("A-411", beds=3)
        resident = occupancy.check_in(egyptian(), source.id)

        with pytest.raises(ConflictError):
            occupancy.transfer(
                [(ResidentType.EGYPTIAN, resident.id), (ResidentType.EGYPTIAN, resident.id)], source.id, target.id,
            )

    def test_empty_selection(self, occupancy, make_unit):
        source = make_unit("A-412")
        target = make_unit("A-413")
        with pytest.raises(MissingFieldError):
            occupancy.transfer([], source.id, target.id)

    def test_unknown_resident(self, occupancy, make_unit):
        source = make_unit("A-414")
        target = make_unit("A-415")
        with pytest.raises(NotFoundError) as exc:
            occupancy.transfer([(ResidentType.EGYPTIAN, 77)], source.id, target.id)
        assert exc.value.entity == "resident"

    def test_transfer_notifies_once(self, db, occupancy, make_unit):
        source = make_unit("C-416", type="chalet", beds=2)
        target = make_unit("C-417", type="chalet", beds=2)
        a = occupancy.check_in(russian(name="A", passport_number="1"), source.id)
        b = occupancy.check_in(russian(name="B", passport_number="2"), source.id)
        before = len(notifications(db))

        occupancy.transfer([(ResidentType.RUSSIAN, a.id), (ResidentType.RUSSIAN, b.id)], source.id, target.id)

        new = notifications(db)[before:]
        assert len(new) == 1
        assert new[0].type == "info"


class TestBulkEviction:
    def test_rows_are_isolated(self, db, occupancy, make_unit, assert_consistent):
        unit = make_unit("A-501", beds=3)
        occupancy.check_in(egyptian(name="Ahmed", national_id="111"), unit.id)
        occupancy.check_in(egyptian(name="Karim", national_id="222"), unit.id)
        rows = [
            EvictionRow(name="Ahmed", national_id="111"),
            EvictionRow(name="Nobody", unit_code="NOPE"),
            EvictionRow(name="Karim", unit_code="A-501"),
        ]

        log, errors = occupancy.bulk_evict(rows, "march.xlsx", "ops@compound.test")

        assert log.success_rows == 2
        assert log.failed_rows == 1
        assert log.status == "completed"
        assert log.file_name == "[eviction] march.xlsx"
        assert log.imported_by == "ops@compound.test"
        assert [(e.row, e.code) for e in errors] == [(2, "NOT_FOUND")]
        assert log.errors[0]["row"] == 2
        db.refresh(unit)
        assert unit.current_occupants == 0
        assert unit.status == "vacant"
        assert_consistent()

    def test_passport_match_records_reason_and_date(self, db, occupancy, make_unit, records):
        chalet = make_unit("C-501", type="chalet")
        resident = occupancy.check_in(russian(passport_number="751999888"), chalet.id)

        log, errors = occupancy.bulk_evict(
            [EvictionRow(name="Ivan Petrov", national_id="751999888", check_out_date="2024-03-01", reason="contract ended")],
            "end.xlsx",
        )

        assert errors == []
        db.refresh(resident)
        assert resident.status == "checked_out"
        assert resident.check_out_date.date() == date(2024, 3, 1)
        checkout = records()[-1]
        assert checkout.action == "check_out"
        assert checkout.notes == "contract ended"
        assert checkout.action_date.date() == date(2024, 3, 1)

    def test_every_row_failing_marks_log_failed(self, occupancy):
        log, errors = occupancy.bulk_evict(
            [EvictionRow(name="Ghost", national_id="000"), EvictionRow(national_id="123")], "bad.xlsx",
        )

        assert log.status == "failed"
        assert [e.code for e in errors] == ["NOT_FOUND", "MISSING_FIELD"]

    def test_empty_sheet_completes(self, db, occupancy):
        log, errors = occupancy.bulk_evict([], "empty.xlsx")

        assert log.status == "completed"
        assert log.total_rows == 0
        assert db.query(ImportLog).count() == 1

    def test_summary_notification_warns_on_failures(self, db, occupancy):
        occupancy.bulk_evict([EvictionRow(name="Ghost", national_id="000")], "bad.xlsx")

        [note] = notifications(db)
        assert note.type == "warning"
        assert "1 failed" in note.message


class TestBulkImport:
    def test_row_with_check_out_date_takes_no_bed(self, db, occupancy, make_unit, records):
        unit = make_unit("A-601")
        rows = [
            ImportRow(
                name="Old Tenant",
                national_id="29001011234567",
                unit_code="A-601",
                check_in_date="2023-01-10",
                check_out_date="2023-06-30",
            )
        ]

        log, errors = occupancy.bulk_import(rows, "history.xlsx")

        assert errors == []
        assert log.success_rows == 1
        db.refresh(unit)
        assert unit.current_occupants == 0
        assert unit.status == "vacant"
        resident = db.query(EgyptianResident).one()
        assert resident.status == "checked_out"
        assert resident.unit_id is None
        assert records() == []

    def test_row_with_only_check_out_date_is_backfilled(self, db, occupancy, make_unit, records):
        make_unit("A-606", beds=1)
        occupancy.bulk_import([ImportRow(name="Current", national_id="7", unit_code="A-606")], "now.xlsx")

        log, errors = occupancy.bulk_import(
            [ImportRow(name="Former", national_id="8", unit_code="A-606", check_out_date="2024-02-01")],
            "history.xlsx",
        )

        assert errors == []
        assert log.success_rows == 1
        former = db.query(EgyptianResident).filter_by(name="Former").one()
        assert former.status == "checked_out"
        assert former.check_in_date.date() == date(2024, 2, 1)
        assert former.check_out_date.date() == date(2024, 2, 1)
        assert len(records()) == 1

    def test_check_out_before_check_in_is_rejected(self, occupancy, make_unit):
        make_unit("A-607")

        log, errors = occupancy.bulk_import(
            [
                ImportRow(
                    name="Backwards",
                    national_id="9",
                    unit_code="A-607",
                    check_in_date="2024-03-01",
                    check_out_date="2024-02-01",
                )
            ],
            "backwards.xlsx",
        )

        assert [(e.row, e.code) for e in errors] == [(1, "INVALID_FIELD")]
        assert log.status == "failed"

    def test_active_row_checks_in_on_its_date(self, db, occupancy, make_unit, records, assert_consistent):
        make_unit("A-602")

        log, errors = occupancy.bulk_import(
            [ImportRow(name="New Tenant", national_id="2900", unit_code="A-602", check_in_date="2024-01-15")],
            "jan.xlsx",
        )

        assert errors == []
        [record] = records()
        assert record.action == "check_in"
        assert record.action_date.date() == date(2024, 1, 15)
        assert_consistent()

    def test_chalet_row_creates_russian_resident(self, db, occupancy, make_unit):
        make_unit("C-601", type="chalet")

        occupancy.bulk_import(
            [ImportRow(name="Olga Ivanova", national_id="752000111", unit_code="C-601", gender="Female")],
            "chalets.xlsx",
        )

        resident = db.query(RussianResident).one()
        assert resident.passport_number == "752000111"
        assert resident.gender == "female"
        assert resident.nationality == "Russian"

    def test_bad_rows_are_reported_and_good_rows_kept(self, db, occupancy, make_unit):
        make_unit("A-603", beds=1)
        rows = [
            ImportRow(name="First", national_id="1", unit_code="A-603"),
            ImportRow(name="Second", national_id="2", unit_code="A-603"),
            ImportRow(name="Third", national_id="3"),
            ImportRow(name="Fourth", national_id="4", unit_code="A-603", check_in_date="yesterday"),
        ]

        log, errors = occupancy.bulk_import(rows, "mixed.xlsx")

        assert log.success_rows == 1
        assert [(e.row, e.code) for e in errors] == [
            (2, "CAPACITY_EXCEEDED"),
            (3, "MISSING_FIELD"),
            (4, "CAPACITY_EXCEEDED"),
        ]
        assert db.query(EgyptianResident).count() == 1

    def test_unparsable_date(self, occupancy, make_unit):
        make_unit("A-604", beds=2)

        log, errors = occupancy.bulk_import(
            [ImportRow(name="Late", national_id="5", unit_code="A-604", check_in_date="someday")], "dates.xlsx",
        )

        assert [e.code for e in errors] == ["INVALID_FIELD"]
        assert log.status == "failed"

    def test_import_emits_no_notification(self, db, occupancy, make_unit):
        make_unit("A-605")

        occupancy.bulk_import([ImportRow(name="Quiet", national_id="6", unit_code="A-605")], "quiet.xlsx")

        assert notifications(db) == []
