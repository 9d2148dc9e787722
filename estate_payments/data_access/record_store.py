# estate_payments/data_access/record_store.py

from abc import ABC, abstractmethod
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple
import json
import logging
import sqlite3
import threading

from estate_payments.data_access.database_manager import DatabaseManager
from estate_payments.exceptions import ConcurrentModificationError, PersistenceError

logger = logging.getLogger(__name__)

Record = Dict[str, Any]


def _decode(namespace: str, raw_value: str) -> List[Record]:
    try:
        records = json.loads(raw_value, parse_float=Decimal)
    except (TypeError, ValueError) as e:
        logger.error(f"Record store namespace '{namespace}' holds invalid JSON: {e}", exc_info=True)
        raise PersistenceError(f"Record store namespace '{namespace}' is unreadable.") from e
    if not isinstance(records, list):
        raise PersistenceError(
            f"Record store namespace '{namespace}' must hold a JSON array, got {type(records).__name__}.")
    return records


def _encode(namespace: str, records: List[Record]) -> str:
    try:
        return json.dumps(records, ensure_ascii=False)
    except (TypeError, ValueError) as e:
        logger.error(f"Records for namespace '{namespace}' are not JSON serializable: {e}", exc_info=True)
        raise PersistenceError(f"Records for namespace '{namespace}' could not be serialized.") from e


class RecordStore(ABC):
    """
    Key-value store where each namespace key holds a whole collection of records.

    Every namespace carries a version that grows by one on each write. Passing
    the version obtained from read() to write() turns the write into a
    compare-and-swap.
    """

    @abstractmethod
    def read(self, namespace: str) -> Tuple[List[Record], int]:
        """Returns (records, version). A missing namespace reads as ([], 0)."""

    @abstractmethod
    def write(self, namespace: str, records: List[Record], expected_version: Optional[int] = None) -> int:
        """Replaces the namespace content and returns the new version."""

    @abstractmethod
    def initialize(self, namespace: str) -> None:
        """Creates the namespace with an empty collection if it does not exist yet."""


class SqliteRecordStore(RecordStore):
    def __init__(self, db_manager: DatabaseManager):
        if db_manager is None: raise ValueError("db_manager cannot be None")
        self.db_manager = db_manager
        self.table_name = "record_store"

    def initialize(self, namespace: str) -> None:
        try:
            self.db_manager.create_tables()
            self.db_manager.execute_query(
                f"INSERT OR IGNORE INTO {self.table_name} (key, value, version, updated_at) VALUES (?, ?, 0, ?)",
                (namespace, "[]", datetime.now().isoformat()))
        except sqlite3.Error as e:
            raise PersistenceError(f"Could not initialize record store namespace '{namespace}'.") from e

    def read(self, namespace: str) -> Tuple[List[Record], int]:
        query = f"SELECT value, version FROM {self.table_name} WHERE key = ?"
        try:
            row = self.db_manager.fetch_one(query, (namespace,))
        except sqlite3.Error as e:
            raise PersistenceError(f"Could not read record store namespace '{namespace}'.") from e
        if row is None:
            logger.debug(f"Namespace '{namespace}' not found; reading as empty collection.")
            return [], 0
        records = _decode(namespace, row["value"])
        logger.debug(f"Read {len(records)} record(s) from '{namespace}' at version {row['version']}.")
        return records, int(row["version"])

    def write(self, namespace: str, records: List[Record], expected_version: Optional[int] = None) -> int:
        payload = _encode(namespace, records)
        now = datetime.now().isoformat()
        try:
            with self.db_manager as conn:
                if expected_version is None:
                    conn.execute(
                        f"INSERT INTO {self.table_name} (key, value, version, updated_at) VALUES (?, ?, 1, ?) "
                        f"ON CONFLICT(key) DO UPDATE SET value = excluded.value, "
                        f"version = {self.table_name}.version + 1, updated_at = excluded.updated_at",
                        (namespace, payload, now))
                else:
                    cursor = conn.execute(
                        f"UPDATE {self.table_name} SET value = ?, version = version + 1, updated_at = ? "
                        f"WHERE key = ? AND version = ?",
                        (payload, now, namespace, expected_version))
                    if cursor.rowcount == 0:
                        row = conn.execute(
                            f"SELECT version FROM {self.table_name} WHERE key = ?", (namespace,)).fetchone()
                        if row is not None or expected_version != 0:
                            conn.rollback()
                            actual_version = int(row["version"]) if row is not None else 0
                            raise ConcurrentModificationError(namespace, expected_version, actual_version)
                        conn.execute(
                            f"INSERT INTO {self.table_name} (key, value, version, updated_at) VALUES (?, ?, 1, ?)",
                            (namespace, payload, now))
                new_version = int(conn.execute(
                    f"SELECT version FROM {self.table_name} WHERE key = ?", (namespace,)).fetchone()["version"])
                conn.commit()
        except sqlite3.IntegrityError as e:
            # Another writer created the namespace between our UPDATE and INSERT
            raise ConcurrentModificationError(namespace, expected_version, 1) from e
        except sqlite3.Error as e:
            logger.error(f"Failed to write record store namespace '{namespace}': {e}", exc_info=True)
            raise PersistenceError(f"Could not write record store namespace '{namespace}'.") from e
        logger.debug(f"Wrote {len(records)} record(s) to '{namespace}', now at version {new_version}.")
        return new_version


class InMemoryRecordStore(RecordStore):
    """Process-local store. Records are kept as JSON text so callers never share mutable state with it."""

    def __init__(self):
        self._namespaces: Dict[str, Tuple[str, int]] = {}
        self._lock = threading.Lock()

    def initialize(self, namespace: str) -> None:
        with self._lock:
            self._namespaces.setdefault(namespace, ("[]", 0))

    def read(self, namespace: str) -> Tuple[List[Record], int]:
        with self._lock:
            payload, version = self._namespaces.get(namespace, ("[]", 0))
        return _decode(namespace, payload), version

    def write(self, namespace: str, records: List[Record], expected_version: Optional[int] = None) -> int:
        payload = _encode(namespace, records)
        with self._lock:
            _, current_version = self._namespaces.get(namespace, ("[]", 0))
            if expected_version is not None and expected_version != current_version:
                raise ConcurrentModificationError(namespace, expected_version, current_version)
            self._namespaces[namespace] = (payload, current_version + 1)
            return current_version + 1
