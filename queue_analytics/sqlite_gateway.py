"""SQLite record store and gateway for queue and employee records"""

import functools
import logging
import sqlite3
import threading
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

from .constants import EmployeeStatus
from .datetime_utils import normalize_iso
from .exceptions import GatewayError
from .gateway import RecordGateway
from .models import EmployeeRecord, Page, QueueRecord

logger = logging.getLogger(__name__)


def synchronized(method):
    """Decorator to synchronize gateway methods with threading lock."""
    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        with self._lock:
            return method(self, *args, **kwargs)
    return wrapper


def _iso_or_none(value) -> Optional[str]:
    return normalize_iso(value) if value is not None else None


class SQLiteRecordGateway(RecordGateway):
    """Handle SQLite storage and paginated reads of queue records"""

    def __init__(self, db_path: str, wal_mode: bool = True):
        """
        Initialize database connection

        Args:
            db_path: Path to SQLite database file (":memory:" for tests)
            wal_mode: Enable WAL mode for crash resistance
        """
        self.db_path = db_path

        # Thread safety lock for concurrent access from orchestrator workers
        self._lock = threading.RLock()

        if db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)

        self.conn = sqlite3.connect(db_path, check_same_thread=False)
        self.conn.row_factory = sqlite3.Row

        if wal_mode and db_path != ":memory:":
            self.conn.execute("PRAGMA journal_mode=WAL")
            logger.info("WAL mode enabled")

        self._create_tables()

    def _create_tables(self):
        """Create database tables if they don't exist"""
        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS queues (
                id TEXT PRIMARY KEY,
                shop_id TEXT NOT NULL,
                status TEXT NOT NULL,
                created_at TEXT NOT NULL,
                called_at TEXT,
                completed_at TEXT,
                actual_wait_time REAL,
                served_by_employee_id TEXT,
                department_id TEXT
            )
        """)

        # Timestamps are stored as normalized UTC ISO strings, so range
        # filters can compare them as text
        self.conn.execute("""
            CREATE INDEX IF NOT EXISTS idx_queues_shop_created
            ON queues(shop_id, created_at)
        """)

        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS queue_line_items (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                queue_id TEXT NOT NULL REFERENCES queues(id) ON DELETE CASCADE,
                position INTEGER NOT NULL,
                service_id TEXT NOT NULL,
                service_name TEXT NOT NULL DEFAULT '',
                unit_price REAL NOT NULL DEFAULT 0,
                quantity INTEGER NOT NULL DEFAULT 1
            )
        """)

        self.conn.execute("""
            CREATE INDEX IF NOT EXISTS idx_line_items_queue
            ON queue_line_items(queue_id, position)
        """)

        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS employees (
                id TEXT PRIMARY KEY,
                shop_id TEXT NOT NULL,
                name TEXT NOT NULL DEFAULT '',
                status TEXT NOT NULL DEFAULT 'active',
                active_queue_count INTEGER NOT NULL DEFAULT 0,
                department_id TEXT
            )
        """)

        self.conn.commit()
        logger.info("Record tables initialized")

    # =========================================================================
    # Loading
    # =========================================================================

    @synchronized
    def insert_queue(self, record: Union[QueueRecord, Mapping[str, Any]]) -> QueueRecord:
        """
        Insert or replace a queue record with its line items

        Args:
            record: QueueRecord or raw record dictionary

        Returns:
            The stored QueueRecord
        """
        if not isinstance(record, QueueRecord):
            record = QueueRecord.from_dict(record)

        with self.conn:
            self.conn.execute(
                "DELETE FROM queue_line_items WHERE queue_id = ?", (record.id,)
            )
            self.conn.execute(
                """
                INSERT OR REPLACE INTO queues (
                    id, shop_id, status, created_at, called_at, completed_at,
                    actual_wait_time, served_by_employee_id, department_id
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
                (
                    record.id,
                    record.shop_id,
                    record.status.value,
                    normalize_iso(record.created_at),
                    _iso_or_none(record.called_at),
                    _iso_or_none(record.completed_at),
                    record.actual_wait_time,
                    record.served_by_employee_id,
                    record.department_id,
                ),
            )
            self.conn.executemany(
                """
                INSERT INTO queue_line_items (
                    queue_id, position, service_id, service_name, unit_price, quantity
                ) VALUES (?, ?, ?, ?, ?, ?)
            """,
                [
                    (record.id, position, item.service_id, item.service_name,
                     item.unit_price, item.quantity)
                    for position, item in enumerate(record.line_items)
                ],
            )

        logger.debug("Stored queue %s for shop %s", record.id, record.shop_id)
        return record

    @synchronized
    def insert_employee(
        self,
        shop_id: str,
        employee: Union[EmployeeRecord, Mapping[str, Any]],
    ) -> EmployeeRecord:
        """
        Insert or replace an employee of a shop

        Args:
            shop_id: Shop the employee works for
            employee: EmployeeRecord or raw employee dictionary

        Returns:
            The stored EmployeeRecord
        """
        if not isinstance(employee, EmployeeRecord):
            employee = EmployeeRecord.from_dict(employee)

        with self.conn:
            self.conn.execute(
                """
                INSERT OR REPLACE INTO employees (
                    id, shop_id, name, status, active_queue_count, department_id
                ) VALUES (?, ?, ?, ?, ?, ?)
            """,
                (
                    employee.id,
                    shop_id,
                    employee.name,
                    employee.status.value,
                    employee.active_queue_count,
                    employee.department_id,
                ),
            )
        return employee

    # =========================================================================
    # Gateway reads
    # =========================================================================

    @synchronized
    def get_queues(
        self,
        shop_id: str,
        date_from: str,
        date_to: str,
        page: int = 1,
        limit: int = 10000,
        department_id: Optional[str] = None,
    ) -> Page:
        where = "shop_id = ? AND created_at >= ? AND created_at <= ?"
        try:
            params: List[Any] = [shop_id, normalize_iso(date_from), normalize_iso(date_to)]
        except ValueError as e:
            raise GatewayError(f"invalid date range: {e}", "get_queues", cause=e)
        if department_id:
            where += " AND department_id = ?"
            params.append(department_id)

        try:
            total = self.conn.execute(
                f"SELECT COUNT(*) as count FROM queues WHERE {where}", params
            ).fetchone()["count"]

            rows = self.conn.execute(
                f"""
                SELECT * FROM queues WHERE {where}
                ORDER BY created_at, id
                LIMIT ? OFFSET ?
            """,
                params + [limit, (max(page, 1) - 1) * limit],
            ).fetchall()

            items = self._line_items_for([row["id"] for row in rows])
        except sqlite3.Error as e:
            logger.error("Queue query failed for shop %s: %s", shop_id, e)
            raise GatewayError(str(e), "get_queues", {"shop_id": shop_id}, cause=e)

        records = []
        for row in rows:
            raw = dict(row)
            raw["line_items"] = items.get(row["id"], [])
            records.append(QueueRecord.from_dict(raw))

        return Page(data=records, total=total)

    def _line_items_for(self, queue_ids: List[str]) -> Dict[str, List[Dict[str, Any]]]:
        items: Dict[str, List[Dict[str, Any]]] = {}
        if not queue_ids:
            return items

        # Stay well below SQLite's bound-parameter limit
        chunk_size = 500
        for start in range(0, len(queue_ids), chunk_size):
            chunk = queue_ids[start:start + chunk_size]
            placeholders = ",".join("?" for _ in chunk)
            cursor = self.conn.execute(
                f"""
                SELECT * FROM queue_line_items
                WHERE queue_id IN ({placeholders})
                ORDER BY queue_id, position
            """,
                chunk,
            )
            for row in cursor.fetchall():
                items.setdefault(row["queue_id"], []).append(dict(row))
        return items

    @synchronized
    def get_employees(
        self,
        shop_id: str,
        status_filter: Optional[EmployeeStatus] = EmployeeStatus.ACTIVE,
        page: int = 1,
        limit: int = 100,
        department_id: Optional[str] = None,
    ) -> Page:
        where = "shop_id = ?"
        params: List[Any] = [shop_id]
        if status_filter is not None:
            where += " AND status = ?"
            params.append(EmployeeStatus(status_filter).value)
        if department_id:
            where += " AND department_id = ?"
            params.append(department_id)

        try:
            total = self.conn.execute(
                f"SELECT COUNT(*) as count FROM employees WHERE {where}", params
            ).fetchone()["count"]

            rows = self.conn.execute(
                f"""
                SELECT * FROM employees WHERE {where}
                ORDER BY id
                LIMIT ? OFFSET ?
            """,
                params + [limit, (max(page, 1) - 1) * limit],
            ).fetchall()
        except sqlite3.Error as e:
            logger.error("Employee query failed for shop %s: %s", shop_id, e)
            raise GatewayError(str(e), "get_employees", {"shop_id": shop_id}, cause=e)

        return Page(data=[EmployeeRecord.from_dict(dict(row)) for row in rows], total=total)

    def close(self):
        """Close database connection"""
        if self.conn:
            self.conn.close()
            self.conn = None
            logger.info("Database connection closed")
