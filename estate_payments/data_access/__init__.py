# estate_payments/data_access/__init__.py

from .database_manager import DatabaseManager
from .record_store import RecordStore, SqliteRecordStore, InMemoryRecordStore
from .base_repository import BaseRepository
from .payment_schedules_repository import PaymentSchedulesRepository
