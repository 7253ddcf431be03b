from pydantic import BaseModel
from datetime import datetime
from typing import Optional, List

from housing.schemas.occupancy import OccupancyRecordOut


class DashboardStats(BaseModel):
    """Top cards of the dashboard."""
    total_units: int = 0
    occupied_units: int = 0
    vacant_units: int = 0
    maintenance_units: int = 0
    total_apartments: int = 0
    occupied_apartments: int = 0
    total_chalets: int = 0
    occupied_chalets: int = 0
    total_beds: int = 0
    occupied_beds: int = 0
    occupancy_rate: float = 0.0  # percent of beds in use
    active_egyptians: int = 0
    active_russians: int = 0


class UnitOccupancyItem(BaseModel):
    """One row of the occupancy stats table."""
    unit_id: int
    unit_code: str
    building_name: Optional[str] = None
    type: str
    total_beds: int
    occupied_beds: int
    vacant_beds: int
    status: str


class ReportResident(BaseModel):
    """Active resident shown under a unit in the detailed report."""
    id: int
    resident_type: str
    name: str
    id_number: str
    phone: Optional[str] = None
    shift: Optional[str] = None
    check_in_date: datetime


class UnitDetailReport(BaseModel):
    unit_id: int
    unit_code: str
    unit_name: str
    type: str
    building_name: Optional[str] = None
    beds: int
    current_occupants: int
    status: str
    residents: List[ReportResident] = []
    checkouts: List[OccupancyRecordOut] = []


class ResidentHistoryItem(BaseModel):
    """Flattened row across both resident tables."""
    id: int
    resident_type: str
    name: str
    id_number: str
    phone: Optional[str] = None
    unit_code: Optional[str] = None
    check_in_date: datetime
    check_out_date: Optional[datetime] = None
    status: str


class OccupancyReport(BaseModel):
    stats: DashboardStats
    records: List[OccupancyRecordOut] = []


class InsightsOut(BaseModel):
    stats: DashboardStats
    insights: str
