# tests/conftest.py

from datetime import date, datetime

import pytest

from estate_payments.business_logic.payment_schedule_manager import PaymentScheduleManager
from estate_payments.data_access.database_manager import DatabaseManager
from estate_payments.data_access.payment_schedules_repository import PaymentSchedulesRepository
from estate_payments.data_access.record_store import InMemoryRecordStore, SqliteRecordStore

FIXED_TODAY = date(2024, 1, 1)
FIXED_NOW = datetime(2024, 1, 1, 9, 30, 0)


class FakeCalendar:
    """Mutable 'today' so tests can move time forward."""

    def __init__(self, today: date = FIXED_TODAY):
        self.today = today

    def __call__(self) -> date:
        return self.today


@pytest.fixture
def calendar():
    return FakeCalendar()


@pytest.fixture
def memory_store():
    return InMemoryRecordStore()


@pytest.fixture
def repository(memory_store):
    repo = PaymentSchedulesRepository(memory_store)
    repo.initialize()
    return repo


@pytest.fixture
def manager(repository, calendar):
    return PaymentScheduleManager(repository, today_provider=calendar, clock=lambda: FIXED_NOW)


@pytest.fixture
def db_manager(tmp_path):
    return DatabaseManager(str(tmp_path / "data" / "payments.db"))


@pytest.fixture
def sqlite_repository(db_manager):
    repo = PaymentSchedulesRepository(SqliteRecordStore(db_manager))
    repo.initialize()
    return repo


@pytest.fixture
def sqlite_manager(sqlite_repository, calendar):
    return PaymentScheduleManager(sqlite_repository, today_provider=calendar, clock=lambda: FIXED_NOW)


@pytest.fixture
def schedule_kwargs():
    return dict(
        total_amount=1000000,
        number_of_instalments=3,
        start_date="2024-01-01",
        payment_completion_days=90,
        entity_id="sell-cycle-17",
        entity_type="sell-cycle",
        created_by="agent-4",
        created_by_name="Ayesha Khan",
        property_id="property-9",
    )
