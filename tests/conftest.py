import os
import tempfile

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SUPABASE_URL", "http://supabase.test")
os.environ.setdefault("SUPABASE_JWT_SECRET", "test-secret")
os.environ.setdefault("UPLOADS_DIR", tempfile.mkdtemp(prefix="housing-uploads-"))

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from housing.api.deps import get_db
from housing.core.auth import CurrentUser, get_current_user
from housing.core.database import Base
from housing.core.notifications import NotificationEmitter
from housing.main import app
from housing.models.occupancy_record import OccupancyRecord
from housing.models.resident import ResidentStatus, ResidentType
from housing.models.sector import Sector
from housing.models.unit import Unit, UnitStatus
from housing.models.user import User
from housing.services.occupancy_engine import OccupancyEngine
from housing.services.reporting import ReportingService
from housing.services.repository import HousingRepository
from housing.services.unit_registry import UnitRegistry


@pytest.fixture
def db():
    """Fresh in-memory database per test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    session = sessionmaker(bind=engine, autocommit=False, autoflush=False)()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(engine)
        engine.dispose()


@pytest.fixture
def repo(db):
    return HousingRepository(db)


@pytest.fixture
def notifier(db):
    return NotificationEmitter(db)


@pytest.fixture
def occupancy(repo, notifier):
    return OccupancyEngine(repo, notifier)


@pytest.fixture
def registry(repo, notifier):
    return UnitRegistry(repo, notifier)


@pytest.fixture
def reports(repo):
    return ReportingService(repo)


@pytest.fixture
def make_sector(db):
    def _make(code="N", name=None):
        sector = Sector(code=code, name=name or f"Sector {code}")
        db.add(sector)
        db.commit()
        db.refresh(sector)
        return sector
    return _make


@pytest.fixture
def make_unit(db):
    def _make(code, type="apartment", beds=2, sector_id=None, **fields):
        unit = Unit(
            code=code,
            name=fields.pop("name", f"Unit {code}"),
            type=type,
            beds=beds,
            rooms=fields.pop("rooms", 1),
            sector_id=sector_id,
            status=fields.pop("status", UnitStatus.VACANT.value),
            current_occupants=0,
            **fields,
        )
        db.add(unit)
        db.commit()
        db.refresh(unit)
        return unit
    return _make


@pytest.fixture
def current_user(db):
    """Global admin by default; tests change role / sector_id as needed."""
    user = User(open_id="user-ops", email="ops@compound.test", name="Ops", role="admin")
    db.add(user)
    db.commit()
    db.refresh(user)
    return CurrentUser.from_row(user)


@pytest.fixture
def client(db, current_user):
    def _get_db():
        yield db

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_current_user] = lambda: current_user
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def assert_consistent(db):
    """Unit counters, statuses and resident links agree with each other."""
    def _check():
        _assert_occupancy_consistent(db)
    return _check


def _assert_occupancy_consistent(db):
    for unit in db.query(Unit).all():
        assert 0 <= unit.current_occupants <= unit.beds, unit.code
        if unit.status != UnitStatus.MAINTENANCE.value:
            expected = UnitStatus.VACANT.value if unit.current_occupants == 0 else UnitStatus.OCCUPIED.value
            assert unit.status == expected, unit.code

        active = 0
        for resident_type in ResidentType:
            model = resident_type.model
            residents = (
                db.query(model)
                .filter(model.unit_id == unit.id, model.status == ResidentStatus.ACTIVE.value)
                .all()
            )
            if residents:
                assert unit.type == resident_type.unit_type.value, unit.code
            active += len(residents)
        assert active == unit.current_occupants, unit.code


@pytest.fixture
def records(db):
    def _records():
        return db.query(OccupancyRecord).order_by(OccupancyRecord.id).all()
    return _records
