# estate_payments/data_access/database_manager.py

import os
import sqlite3
import logging
import threading
from estate_payments.config import DATABASE_PATH

logger = logging.getLogger(__name__)

class DatabaseManager:
    """
    Opens a fresh sqlite3 connection for every `with` block. The open
    connection is tracked per thread, so one instance can be shared by
    threads without one closing another's connection.
    """

    def __init__(self, db_path=DATABASE_PATH):
        self.db_path = db_path
        self._local = threading.local()

    @property
    def conn(self):
        return getattr(self._local, "conn", None)

    def __enter__(self):
        try:
            if self.db_path != ":memory:":
                db_dir = os.path.dirname(os.path.abspath(self.db_path))
                if not os.path.exists(db_dir):
                    os.makedirs(db_dir, exist_ok=True)
            conn = sqlite3.connect(self.db_path)
            conn.row_factory = sqlite3.Row # Access columns by name
            self._local.conn = conn
            logger.debug(f"Database connection established to {self.db_path}")
            return conn
        except (sqlite3.Error, OSError) as e:
            logger.error(f"Error connecting to database {self.db_path}: {e}")
            raise

    def __exit__(self, exc_type, exc_val, exc_tb):
        conn = self.conn
        if conn is not None:
            self._local.conn = None
            conn.close()
            logger.debug("Database connection closed.")

    def execute_query(self, query, params=None):
        try:
            with self as conn:
                cursor = conn.cursor()
                cursor.execute(query, params or ())
                conn.commit()
                return cursor
        except sqlite3.Error as e:
            logger.error(f"Query execution failed: {query} with params {params} - {e}")
            raise

    def fetch_one(self, query, params=None):
        try:
            with self as conn:
                cursor = conn.cursor()
                cursor.execute(query, params or ())
                return cursor.fetchone()
        except sqlite3.Error as e:
            logger.error(f"Fetch one failed: {query} with params {params} - {e}")
            raise

    def create_tables(self):
        queries = [
            """
            CREATE TABLE IF NOT EXISTS record_store (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,            -- JSON array of records
                version INTEGER NOT NULL DEFAULT 0,
                updated_at TEXT                 -- ISO timestamp of the last write
            );
            """,
        ]
        try:
            with self as conn:
                cursor = conn.cursor()
                for query in queries:
                    cursor.execute(query)
                conn.commit()
            logger.info(f"Database schema ready at {self.db_path}.")
        except sqlite3.Error as e:
            logger.error(f"Failed to initialize database schema: {e}", exc_info=True)
            raise
