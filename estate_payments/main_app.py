# estate_payments/main_app.py
import os
import sys
import logging
import logging.config
from typing import Optional

from estate_payments.config import DATABASE_PATH, LOGGING_CONFIG, LOGS_DIR, PAYMENT_SCHEDULES_KEY
from estate_payments.data_access.database_manager import DatabaseManager
from estate_payments.data_access.record_store import SqliteRecordStore
from estate_payments.data_access.payment_schedules_repository import PaymentSchedulesRepository
from estate_payments.business_logic.payment_schedule_manager import PaymentScheduleManager
from estate_payments.exceptions import PaymentScheduleError

logger = logging.getLogger(__name__)


def setup_logging(logging_config: Optional[dict] = None) -> None:
    if not os.path.exists(LOGS_DIR):
        os.makedirs(LOGS_DIR)
    logging.config.dictConfig(logging_config or LOGGING_CONFIG)


def build_payment_schedule_manager(db_path: Optional[str] = None,
                                   namespace: str = PAYMENT_SCHEDULES_KEY) -> PaymentScheduleManager:
    """Wires the SQLite-backed record store, repository and manager together and prepares the schema."""
    db_manager = DatabaseManager(db_path or DATABASE_PATH)
    record_store = SqliteRecordStore(db_manager)
    repository = PaymentSchedulesRepository(record_store, namespace=namespace)
    manager = PaymentScheduleManager(repository)
    manager.initialize()
    return manager


def main(argv: Optional[list] = None) -> int:
    """Initializes the payment schedule database and reconciles stored statuses with today's date."""
    argv = sys.argv[1:] if argv is None else argv
    setup_logging()
    db_path = argv[0] if argv else None
    try:
        manager = build_payment_schedule_manager(db_path)
        changed = manager.refresh_payment_statuses()
        logger.info(f"{len(manager.get_all_payment_schedules())} payment schedule(s) on record, "
                    f"{changed} refreshed.")
    except PaymentScheduleError as e:
        logger.critical(f"Payment schedule store could not be prepared: {e}", exc_info=True)
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
