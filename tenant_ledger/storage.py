"""
Storage Backend Module

Provides an abstract storage interface and implementations for in-memory
(testing) and SQLite (persistence). Every record belongs to exactly one tenant;
the tenant id is stored alongside the payload so that tenant-scoped lookups
are answered by the backend itself rather than filtered afterwards.
All monetary values are stored as Decimal strings.
"""

from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Any, Union
from decimal import Decimal
from datetime import datetime, timezone
from enum import Enum
import sqlite3
import json
import threading
from dataclasses import dataclass, asdict
from pathlib import Path
from contextlib import contextmanager


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _to_storable(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {k: _to_storable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_storable(v) for v in value]
    return value


def parse_datetime(value: Optional[Union[str, datetime]]) -> Optional[datetime]:
    """Parse an ISO timestamp from storage (datetimes pass through)"""
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value)


@dataclass
class StorageRecord:
    """Base class for all stored records"""
    id: str
    tenant_id: str
    created_at: datetime
    updated_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-safe dictionary for storage"""
        return {key: _to_storable(value) for key, value in asdict(self).items()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'StorageRecord':
        """Create instance from dictionary"""
        data = dict(data)
        data['created_at'] = parse_datetime(data.get('created_at'))
        data['updated_at'] = parse_datetime(data.get('updated_at'))
        return cls(**data)


class StorageInterface(ABC):
    """Abstract interface for storage backends"""

    @abstractmethod
    def save(self, table: str, record_id: str, data: Dict[str, Any]) -> None:
        """Insert or fully replace a record. ``data['tenant_id']`` is required."""
        pass

    @abstractmethod
    def load(self, table: str, record_id: str) -> Optional[Dict[str, Any]]:
        """Load a record regardless of owner"""
        pass

    @abstractmethod
    def load_for_tenant(self, table: str, record_id: str, tenant_id: str) -> Optional[Dict[str, Any]]:
        """Load a record only if it belongs to ``tenant_id``"""
        pass

    @abstractmethod
    def find(self, table: str, filters: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Find records whose fields equal every filter value, oldest first"""
        pass

    @abstractmethod
    def delete(self, table: str, record_id: str) -> bool:
        """Delete a record from storage"""
        pass

    @abstractmethod
    def exists(self, table: str, record_id: str) -> bool:
        """Check if a record exists"""
        pass

    @abstractmethod
    def count(self, table: str) -> int:
        """Count records in table"""
        pass

    @abstractmethod
    def clear_table(self, table: str) -> None:
        """Clear all records from a table"""
        pass

    @abstractmethod
    def close(self) -> None:
        """Close storage connection"""
        pass

    def begin_transaction(self) -> None:
        """Start a database transaction (default no-op)"""
        pass

    def commit(self) -> None:
        """Commit current transaction (default no-op)"""
        pass

    def rollback(self) -> None:
        """Rollback current transaction (default no-op)"""
        pass

    @contextmanager
    def atomic(self):
        """Context manager for atomic operations"""
        self.begin_transaction()
        try:
            yield
            self.commit()
        except Exception:
            self.rollback()
            raise


def _require_tenant(data: Dict[str, Any]) -> str:
    tenant_id = data.get('tenant_id')
    if not tenant_id:
        raise ValueError("Stored records must carry a tenant_id")
    return tenant_id


class InMemoryStorage(StorageInterface):
    """In-memory storage implementation for testing"""

    def __init__(self):
        self._data: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self._lock = threading.RLock()

    def _table(self, table: str) -> Dict[str, Dict[str, Any]]:
        return self._data.setdefault(table, {})

    @staticmethod
    def _copy(record: Dict[str, Any]) -> Dict[str, Any]:
        # Round-trip through JSON so callers never share mutable state with the store
        return json.loads(json.dumps(record, default=str))

    def save(self, table: str, record_id: str, data: Dict[str, Any]) -> None:
        _require_tenant(data)
        with self._lock:
            self._table(table)[record_id] = self._copy(data)

    def load(self, table: str, record_id: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            record = self._table(table).get(record_id)
            return self._copy(record) if record is not None else None

    def load_for_tenant(self, table: str, record_id: str, tenant_id: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            record = self._table(table).get(record_id)
            if record is None or record.get('tenant_id') != tenant_id:
                return None
            return self._copy(record)

    def find(self, table: str, filters: Dict[str, Any]) -> List[Dict[str, Any]]:
        with self._lock:
            return [
                self._copy(record)
                for record in self._table(table).values()
                if all(key in record and record[key] == value for key, value in filters.items())
            ]

    def delete(self, table: str, record_id: str) -> bool:
        with self._lock:
            return self._table(table).pop(record_id, None) is not None

    def exists(self, table: str, record_id: str) -> bool:
        with self._lock:
            return record_id in self._table(table)

    def count(self, table: str) -> int:
        with self._lock:
            return len(self._table(table))

    def clear_table(self, table: str) -> None:
        with self._lock:
            self._data[table] = {}

    def close(self) -> None:
        """Close storage (no-op for in-memory)"""
        pass


class SQLiteStorage(StorageInterface):
    """SQLite storage implementation for persistence"""

    def __init__(self, db_path: Union[str, Path] = ":memory:"):
        self.db_path = str(db_path)
        self._connection = sqlite3.connect(self.db_path, check_same_thread=False, isolation_level='DEFERRED')
        self._connection.row_factory = sqlite3.Row
        self._lock = threading.RLock()
        self._tx_depth = 0
        self._known_tables = set()

        # WAL lets request threads read while a statement worker writes
        if self.db_path != ":memory:":
            with self._lock:
                self._connection.execute("PRAGMA journal_mode = WAL")
                self._connection.execute("PRAGMA synchronous = NORMAL")
                self._connection.commit()

    def _ensure_table(self, table: str) -> None:
        """Ensure table exists with proper schema"""
        if table in self._known_tables:
            return
        self._connection.execute(f"""
            CREATE TABLE IF NOT EXISTS {table} (
                id TEXT PRIMARY KEY,
                tenant_id TEXT NOT NULL,
                data TEXT NOT NULL,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
        """)
        self._connection.execute(f"""
            CREATE INDEX IF NOT EXISTS idx_{table}_id_tenant
            ON {table}(id, tenant_id)
        """)
        self._connection.execute(f"""
            CREATE INDEX IF NOT EXISTS idx_{table}_tenant_created
            ON {table}(tenant_id, created_at)
        """)
        self._connection.commit()
        self._known_tables.add(table)

    def _maybe_commit(self) -> None:
        if not self._tx_depth:
            self._connection.commit()

    def save(self, table: str, record_id: str, data: Dict[str, Any]) -> None:
        tenant_id = _require_tenant(data)
        with self._lock:
            self._ensure_table(table)
            now = utcnow().isoformat()
            self._connection.execute(f"""
                INSERT OR REPLACE INTO {table} (id, tenant_id, data, created_at, updated_at)
                VALUES (?, ?, ?,
                    COALESCE((SELECT created_at FROM {table} WHERE id = ?), ?),
                    ?)
            """, (record_id, tenant_id, json.dumps(data, default=str), record_id, now, now))
            self._maybe_commit()

    def load(self, table: str, record_id: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            self._ensure_table(table)
            row = self._connection.execute(
                f"SELECT data FROM {table} WHERE id = ?", (record_id,)
            ).fetchone()
            return json.loads(row['data']) if row else None

    def load_for_tenant(self, table: str, record_id: str, tenant_id: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            self._ensure_table(table)
            row = self._connection.execute(
                f"SELECT data FROM {table} WHERE id = ? AND tenant_id = ?",
                (record_id, tenant_id)
            ).fetchone()
            return json.loads(row['data']) if row else None

    def find(self, table: str, filters: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Find records; a tenant_id filter is pushed down to the indexed column"""
        filters = dict(filters)
        with self._lock:
            self._ensure_table(table)
            if 'tenant_id' in filters:
                cursor = self._connection.execute(
                    f"SELECT data FROM {table} WHERE tenant_id = ? ORDER BY created_at",
                    (filters.pop('tenant_id'),)
                )
            else:
                cursor = self._connection.execute(
                    f"SELECT data FROM {table} ORDER BY created_at"
                )
            records = [json.loads(row['data']) for row in cursor.fetchall()]

        return [
            record for record in records
            if all(key in record and record[key] == value for key, value in filters.items())
        ]

    def delete(self, table: str, record_id: str) -> bool:
        with self._lock:
            self._ensure_table(table)
            cursor = self._connection.execute(f"DELETE FROM {table} WHERE id = ?", (record_id,))
            self._maybe_commit()
            return cursor.rowcount > 0

    def exists(self, table: str, record_id: str) -> bool:
        with self._lock:
            self._ensure_table(table)
            cursor = self._connection.execute(
                f"SELECT 1 FROM {table} WHERE id = ? LIMIT 1", (record_id,)
            )
            return cursor.fetchone() is not None

    def count(self, table: str) -> int:
        with self._lock:
            self._ensure_table(table)
            cursor = self._connection.execute(f"SELECT COUNT(*) AS count FROM {table}")
            return cursor.fetchone()['count']

    def clear_table(self, table: str) -> None:
        with self._lock:
            self._ensure_table(table)
            self._connection.execute(f"DELETE FROM {table}")
            self._maybe_commit()

    def begin_transaction(self) -> None:
        """
        Open a transaction owned by the calling thread.

        The connection lock stays held until commit or rollback, so writes
        from other threads wait instead of joining the transaction.
        """
        self._lock.acquire()
        # isolation_level='DEFERRED' opens the transaction on the next write
        self._tx_depth += 1

    def commit(self) -> None:
        with self._lock:
            if not self._tx_depth:
                return
            if self._tx_depth == 1:
                self._connection.commit()
            self._end_transaction()

    def rollback(self) -> None:
        with self._lock:
            if not self._tx_depth:
                return
            try:
                if self._tx_depth == 1:
                    self._connection.rollback()
            finally:
                self._end_transaction()

    def _end_transaction(self) -> None:
        self._tx_depth -= 1
        self._lock.release()

    def close(self) -> None:
        with self._lock:
            if self._connection:
                self._connection.close()
                self._connection = None


def create_storage(backend: str = "sqlite", database_path: str = ":memory:") -> StorageInterface:
    """Build the configured storage backend"""
    if backend == "memory":
        return InMemoryStorage()
    if backend == "sqlite":
        return SQLiteStorage(database_path)
    raise ValueError(f"Unknown storage backend: {backend}")
