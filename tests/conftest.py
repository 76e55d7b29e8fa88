"""Shared fixtures: a throwaway SQLite database, a settable clock and a recording notifier."""

from datetime import date, datetime, timedelta

import pytest
from fastapi.testclient import TestClient

from Controller.appointment_ledger import AppointmentLedger
from Controller.booking_controller import BookingService
from Controller.doctor_controller import DoctorDirectory
from Controller.slot_calendar import SlotCalendar
from core.config import Settings
from database import Database
from main import create_app
from model.doctor_schema import CreateDoctorRequest, DayScheduleIn

DAY = date(2024, 6, 1)


class FakeClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class RecordingNotifier:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent = []

    async def send(self, notice) -> None:
        if self.fail:
            raise ConnectionError("SMTP server unreachable")
        self.sent.append(notice)


# ----------------------------------------------------------------------------
# Core
# ----------------------------------------------------------------------------


@pytest.fixture
def database(tmp_path):
    db = Database(f"sqlite:///{tmp_path / 'core.db'}")
    db.create_all()
    yield db
    db.dispose()


@pytest.fixture
def clock():
    return FakeClock(datetime(2024, 6, 1, 8, 0))


@pytest.fixture
def calendar(database):
    return SlotCalendar(database)


@pytest.fixture
def ledger(database):
    return AppointmentLedger(database)


@pytest.fixture
def directory(database):
    return DoctorDirectory(database)


@pytest.fixture
def service(calendar, ledger, clock):
    return BookingService(calendar, ledger, clock=clock)


@pytest.fixture
def doctor(directory):
    """Doctor D1 with 10:00 and 11:00 free on 2024-06-01."""
    directory.add_doctor(
        CreateDoctorRequest(
            doctor_id="D1",
            name="Dr. Ada",
            email="ada@x.com",
            schedule=[DayScheduleIn(date=DAY, available_slots=["10:00", "11:00"])],
        )
    )
    return "D1"


# ----------------------------------------------------------------------------
# HTTP
# ----------------------------------------------------------------------------


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def client(tmp_path, notifier):
    settings = Settings(database_url=f"sqlite:///{tmp_path / 'api.db'}", sweep_enabled=False)
    app = create_app(settings, notifier=notifier)
    with TestClient(app) as test_client:
        yield test_client
