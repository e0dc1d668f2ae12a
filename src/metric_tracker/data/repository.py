"""Metric storage contract and its SQLite implementation."""

import asyncio
import sqlite3
import threading
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence
import structlog

from ..errors import InfrastructureError
from ..models.config import DatabaseConfig
from ..models.metric import Metric, MetricType

logger = structlog.get_logger()


class MetricRepository(ABC):
    """Storage contract consumed by the metric service."""

    async def initialize(self) -> None:
        """Prepare the backend for use."""

    async def close(self) -> None:
        """Release backend resources."""

    @abstractmethod
    async def save(self, metric: Metric) -> Metric:
        """Insert a metric, replacing any stored metric with the same id."""

    @abstractmethod
    async def find_by_id(self, metric_id: str, user_id: str) -> Optional[Metric]:
        """Get a metric owned by ``user_id``."""

    @abstractmethod
    async def find_by_user_and_type(self, user_id: str, metric_type: MetricType) -> List[Metric]:
        """Get all of a user's metrics of one type, most recent first."""

    @abstractmethod
    async def find_by_user_type_and_time_range(
        self,
        user_id: str,
        metric_type: MetricType,
        start_timestamp: int,
        end_timestamp: int
    ) -> List[Metric]:
        """Get a user's metrics of one type with start <= timestamp <= end."""

    @abstractmethod
    async def delete(self, metric_id: str, user_id: str) -> bool:
        """Delete a metric owned by ``user_id``. Returns whether one was removed."""


class SQLiteMetricRepository(MetricRepository):
    """Repository for metrics stored in a SQLite database."""

    def __init__(self, config: DatabaseConfig):
        """Initialize the repository."""
        self.config = config
        self.db_path = config.path
        self._connection_pool: Dict[int, sqlite3.Connection] = {}
        self._lock = asyncio.Lock()

        # Ensure database directory exists
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    async def initialize(self) -> None:
        """Initialize the database connection and tables."""
        async with self._lock:
            conn = await self._get_connection()
            await self._ensure_tables_exist(conn)
            logger.info("Database initialized", db_path=str(self.db_path))

    async def _get_connection(self) -> sqlite3.Connection:
        """Get or create a database connection for the current thread."""
        thread_id = threading.get_ident()

        if thread_id not in self._connection_pool:
            try:
                conn = sqlite3.connect(
                    self.db_path,
                    timeout=self.config.connection_timeout,
                    isolation_level=None  # autocommit mode
                )
                conn.execute("PRAGMA journal_mode=WAL")
                conn.execute("PRAGMA synchronous=NORMAL")
            except sqlite3.Error as e:
                logger.error("Failed to open database", db_path=str(self.db_path), error=str(e))
                raise InfrastructureError(
                    f"Could not open database: {e}",
                    {"db_path": str(self.db_path)},
                ) from e

            self._connection_pool[thread_id] = conn

        return self._connection_pool[thread_id]

    async def _ensure_tables_exist(self, conn: sqlite3.Connection) -> None:
        """Ensure required tables exist."""
        try:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS metrics (
                    id TEXT NOT NULL PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    type TEXT NOT NULL,
                    value REAL NOT NULL,
                    original_unit TEXT NOT NULL,
                    timestamp INTEGER NOT NULL,
                    created_at TEXT NOT NULL
                )
            """)

            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_metrics_user_type_time
                ON metrics(user_id, type, timestamp)
            """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_metrics_user_time
                ON metrics(user_id, timestamp)
            """)
        except sqlite3.Error as e:
            raise InfrastructureError(f"Could not create tables: {e}") from e

    async def _execute(self, query: str, params: Sequence[Any] = ()) -> sqlite3.Cursor:
        conn = await self._get_connection()
        logger.debug("Executing database query", query=" ".join(query.split()), params=list(params))
        try:
            return conn.execute(query, params)
        except sqlite3.Error as e:
            logger.error("Database query failed", error=str(e), exc_info=True)
            raise InfrastructureError(f"Database query failed: {e}") from e

    async def save(self, metric: Metric) -> Metric:
        await self._execute(
            """
            INSERT OR REPLACE INTO metrics
                (id, user_id, type, value, original_unit, timestamp, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                metric.id,
                metric.user_id,
                metric.type.value,
                metric.value,
                metric.original_unit,
                metric.timestamp,
                metric.created_at.isoformat(),
            ),
        )
        return metric

    async def find_by_id(self, metric_id: str, user_id: str) -> Optional[Metric]:
        cursor = await self._execute(
            "SELECT * FROM metrics WHERE id = ? AND user_id = ?",
            (metric_id, user_id),
        )
        row = cursor.fetchone()
        return self._to_metric(row) if row else None

    async def find_by_user_and_type(self, user_id: str, metric_type: MetricType) -> List[Metric]:
        cursor = await self._execute(
            "SELECT * FROM metrics WHERE user_id = ? AND type = ? ORDER BY timestamp DESC",
            (user_id, MetricType(metric_type).value),
        )
        return [self._to_metric(row) for row in cursor.fetchall()]

    async def find_by_user_type_and_time_range(
        self,
        user_id: str,
        metric_type: MetricType,
        start_timestamp: int,
        end_timestamp: int
    ) -> List[Metric]:
        cursor = await self._execute(
            """
            SELECT * FROM metrics
            WHERE user_id = ? AND type = ? AND timestamp >= ? AND timestamp <= ?
            ORDER BY timestamp ASC
            """,
            (user_id, MetricType(metric_type).value, start_timestamp, end_timestamp),
        )
        result = [self._to_metric(row) for row in cursor.fetchall()]

        logger.debug(
            "Retrieved metrics in range",
            user_id=user_id,
            type=MetricType(metric_type).value,
            count=len(result),
            start_timestamp=start_timestamp,
            end_timestamp=end_timestamp
        )

        return result

    async def delete(self, metric_id: str, user_id: str) -> bool:
        cursor = await self._execute(
            "DELETE FROM metrics WHERE id = ? AND user_id = ?",
            (metric_id, user_id),
        )
        return cursor.rowcount > 0

    @staticmethod
    def _to_metric(row: Sequence[Any]) -> Metric:
        metric_id, user_id, metric_type, value, original_unit, timestamp, created_at = row
        return Metric(
            id=metric_id,
            user_id=user_id,
            type=MetricType(metric_type),
            value=float(value),
            original_unit=original_unit,
            timestamp=int(timestamp),
            created_at=datetime.fromisoformat(created_at),
        )

    async def close(self) -> None:
        """Close all database connections."""
        async with self._lock:
            for conn in self._connection_pool.values():
                try:
                    conn.close()
                except sqlite3.Error as e:
                    logger.warning("Error closing connection", error=str(e))
            self._connection_pool.clear()
            logger.info("Database closed", db_path=str(self.db_path))
