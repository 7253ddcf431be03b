"""
Read-only reporting views for the dashboard and reports pages.
Nothing here writes; calling a view twice without an intervening mutation
returns the same result.
"""
from typing import List, Optional

from housing.core.scope import GlobalScope, Scope
from housing.models.occupancy_record import OccupancyAction
from housing.models.resident import ResidentType
from housing.models.unit import UnitStatus, UnitType
from housing.schemas.occupancy import OccupancyRecordOut
from housing.schemas.report import (
    DashboardStats,
    OccupancyReport,
    ReportResident,
    ResidentHistoryItem,
    UnitDetailReport,
    UnitOccupancyItem,
)
from housing.services.repository import HousingRepository

DEFAULT_RECENT_ACTIVITY = 10


class ReportingService:
    def __init__(self, repo: HousingRepository):
        self.repo = repo

    def dashboard_stats(self, scope: Scope = GlobalScope()) -> DashboardStats:
        units = self.repo.list_units(scope)
        stats = DashboardStats()
        for unit in units:
            stats.total_units += 1
            if unit.status == UnitStatus.OCCUPIED.value:
                stats.occupied_units += 1
            elif unit.status == UnitStatus.MAINTENANCE.value:
                stats.maintenance_units += 1
            else:
                stats.vacant_units += 1

            occupied = unit.current_occupants > 0
            if unit.type == UnitType.CHALET.value:
                stats.total_chalets += 1
                stats.occupied_chalets += int(occupied)
            else:
                stats.total_apartments += 1
                stats.occupied_apartments += int(occupied)

            stats.total_beds += unit.beds
            stats.occupied_beds += unit.current_occupants

        if stats.total_beds:
            stats.occupancy_rate = round(stats.occupied_beds * 100.0 / stats.total_beds, 1)
        stats.active_egyptians = self.repo.count_active_residents(ResidentType.EGYPTIAN, scope)
        stats.active_russians = self.repo.count_active_residents(ResidentType.RUSSIAN, scope)
        return stats

    def occupancy_stats(self, scope: Scope = GlobalScope()) -> List[UnitOccupancyItem]:
        return [
            UnitOccupancyItem(
                unit_id=unit.id,
                unit_code=unit.code,
                building_name=unit.building_name,
                type=unit.type,
                total_beds=unit.beds,
                occupied_beds=unit.current_occupants,
                vacant_beds=unit.available_beds,
                status=unit.status,
            )
            for unit in self.repo.list_units(scope)
        ]

    def detailed_report(self, scope: Scope = GlobalScope()) -> List[UnitDetailReport]:
        """Every unit with its current residents and its check-out history."""
        report = []
        for unit in self.repo.list_units(scope):
            residents = []
            for resident_type in ResidentType:
                for resident in self.repo.active_residents_in_unit(resident_type, unit.id):
                    residents.append(
                        ReportResident(
                            id=resident.id,
                            resident_type=resident_type.value,
                            name=resident.name,
                            id_number=resident.id_number,
                            phone=resident.phone,
                            shift=resident.shift,
                            check_in_date=resident.check_in_date,
                        )
                    )
            checkouts = self.repo.list_records(unit_id=unit.id, action=OccupancyAction.CHECK_OUT.value)
            report.append(
                UnitDetailReport(
                    unit_id=unit.id,
                    unit_code=unit.code,
                    unit_name=unit.name,
                    type=unit.type,
                    building_name=unit.building_name,
                    beds=unit.beds,
                    current_occupants=unit.current_occupants,
                    status=unit.status,
                    residents=residents,
                    checkouts=[OccupancyRecordOut.model_validate(r) for r in checkouts],
                )
            )
        return report

    def resident_history(self, scope: Scope = GlobalScope()) -> List[ResidentHistoryItem]:
        unit_codes = {unit.id: unit.code for unit in self.repo.list_units()}
        items = []
        for resident_type in ResidentType:
            for resident in self.repo.list_residents(resident_type, scope):
                items.append(
                    ResidentHistoryItem(
                        id=resident.id,
                        resident_type=resident_type.value,
                        name=resident.name,
                        id_number=resident.id_number,
                        phone=resident.phone,
                        unit_code=unit_codes.get(resident.unit_id),
                        check_in_date=resident.check_in_date,
                        check_out_date=resident.check_out_date,
                        status=resident.status,
                    )
                )
        items.sort(key=lambda item: item.check_in_date.timestamp(), reverse=True)
        return items

    def occupancy_report(self, scope: Scope = GlobalScope()) -> OccupancyReport:
        records = self.repo.list_records(scope)
        return OccupancyReport(
            stats=self.dashboard_stats(scope),
            records=[OccupancyRecordOut.model_validate(r) for r in records],
        )

    def recent_activity(self, scope: Scope = GlobalScope(), limit: Optional[int] = None) -> List[OccupancyRecordOut]:
        records = self.repo.list_records(scope, limit=limit or DEFAULT_RECENT_ACTIVITY)
        return [OccupancyRecordOut.model_validate(r) for r in records]
