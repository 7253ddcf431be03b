from housing.core.scope import GlobalScope, SectorScope
from housing.models.resident import ResidentType
from housing.schemas.resident import EgyptianResidentIn, RussianResidentIn


def _populate(occupancy, make_unit, make_sector):
    north = make_sector("N")
    south = make_sector("S")
    a1 = make_unit("A-1", beds=2, sector_id=north.id, building_name="Tower 1")
    a2 = make_unit("A-2", beds=2, sector_id=south.id)
    c1 = make_unit("C-1", type="chalet", beds=3)
    make_unit("C-2", type="chalet", beds=1, sector_id=north.id, status="maintenance")

    ahmed = occupancy.check_in(EgyptianResidentIn(name="Ahmed", national_id="111"), a1.id)
    occupancy.check_in(EgyptianResidentIn(name="Karim", national_id="222"), a2.id)
    occupancy.check_in(RussianResidentIn(name="Ivan", passport_number="751", gender="male"), c1.id)
    occupancy.check_out(ResidentType.EGYPTIAN, ahmed.id)
    return north, south


def test_dashboard_stats_global(reports, occupancy, make_unit, make_sector):
    _populate(occupancy, make_unit, make_sector)

    stats = reports.dashboard_stats()

    assert stats.total_units == 4
    assert stats.occupied_units == 2
    assert stats.vacant_units == 1
    assert stats.maintenance_units == 1
    assert stats.total_apartments == 2
    assert stats.occupied_apartments == 1
    assert stats.total_chalets == 2
    assert stats.occupied_chalets == 1
    assert stats.total_beds == 8
    assert stats.occupied_beds == 2
    assert stats.occupancy_rate == 25.0
    assert stats.active_egyptians == 1
    assert stats.active_russians == 1


def test_sector_scope_keeps_own_and_sectorless_units(reports, occupancy, make_unit, make_sector):
    north, _ = _populate(occupancy, make_unit, make_sector)

    stats = reports.dashboard_stats(SectorScope(north.id))

    # A-1, C-2 (north) and C-1 (no sector)
    assert stats.total_units == 3
    assert stats.active_egyptians == 0
    assert stats.active_russians == 1


def test_empty_database_has_zero_rate(reports):
    stats = reports.dashboard_stats()
    assert stats.total_units == 0
    assert stats.occupancy_rate == 0.0


def test_occupancy_stats_per_unit(reports, occupancy, make_unit, make_sector):
    _populate(occupancy, make_unit, make_sector)

    rows = {row.unit_code: row for row in reports.occupancy_stats()}

    assert rows["A-1"].building_name == "Tower 1"
    assert (rows["A-1"].total_beds, rows["A-1"].occupied_beds, rows["A-1"].vacant_beds) == (2, 0, 2)
    assert (rows["C-1"].occupied_beds, rows["C-1"].vacant_beds, rows["C-1"].status) == (1, 2, "occupied")


def test_detailed_report_lists_residents_and_checkouts(reports, occupancy, make_unit, make_sector):
    _populate(occupancy, make_unit, make_sector)

    units = {u.unit_code: u for u in reports.detailed_report()}

    assert units["A-1"].residents == []
    assert [c.resident_name for c in units["A-1"].checkouts] == ["Ahmed"]
    assert [(r.resident_type, r.name, r.id_number) for r in units["C-1"].residents] == [("russian", "Ivan", "751")]


def test_resident_history_spans_both_populations(reports, occupancy, make_unit, make_sector):
    _populate(occupancy, make_unit, make_sector)

    history = reports.resident_history()

    assert {(h.resident_type, h.name) for h in history} == {
        ("egyptian", "Ahmed"),
        ("egyptian", "Karim"),
        ("russian", "Ivan"),
    }
    ahmed = next(h for h in history if h.name == "Ahmed")
    assert ahmed.status == "checked_out"
    assert ahmed.unit_code is None
    dates = [h.check_in_date for h in history]
    assert dates == sorted(dates, reverse=True)


def test_recent_activity_and_occupancy_report(reports, occupancy, make_unit, make_sector):
    _populate(occupancy, make_unit, make_sector)

    recent = reports.recent_activity(limit=2)
    report = reports.occupancy_report()

    assert len(recent) == 2
    assert recent[0].action == "check_out"
    assert len(report.records) == 4
    assert report.stats.total_units == 4


def test_views_are_idempotent(reports, occupancy, make_unit, make_sector):
    north, _ = _populate(occupancy, make_unit, make_sector)

    for scope in (GlobalScope(), SectorScope(north.id)):
        assert reports.dashboard_stats(scope) == reports.dashboard_stats(scope)
        assert reports.detailed_report(scope) == reports.detailed_report(scope)
        assert reports.resident_history(scope) == reports.resident_history(scope)
