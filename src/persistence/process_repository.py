"""
SQLite storage of process records.

One connection shared across threads (job threads, the watcher thread and
request handlers) behind a lock.
"""
import json
import logging
import sqlite3
import threading
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from src.models import Process, ProcessStatus

logger = logging.getLogger(__name__)

_COLUMNS = ('status', 'message', 'error', 'html', 'pages_info', 'config', 'progress',
            'start_time', 'end_time', 'created_at', 'updated_at')
_JSON_COLUMNS = ('pages_info', 'config')
_TIME_COLUMNS = ('start_time', 'end_time', 'created_at', 'updated_at')

_SCHEMA = """
CREATE TABLE IF NOT EXISTS processes (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    status TEXT NOT NULL,
    message TEXT,
    error TEXT,
    html TEXT,
    pages_info TEXT NOT NULL DEFAULT '[]',
    config TEXT NOT NULL DEFAULT '{}',
    progress INTEGER,
    start_time TEXT,
    end_time TEXT,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
)
"""


class ProcessRepository(ABC):
    """Create/read/update/delete of process records"""

    @abstractmethod
    def create(self, fields: Dict[str, Any]) -> Process:
        ...

    @abstractmethod
    def find_by_id(self, process_id: int) -> Optional[Process]:
        ...

    @abstractmethod
    def update(self, process_id: int, fields: Dict[str, Any]) -> Optional[Process]:
        ...

    @abstractmethod
    def find_by_statuses(self, statuses: Iterable[ProcessStatus]) -> List[Process]:
        ...

    @abstractmethod
    def list_all(self) -> List[Process]:
        ...

    @abstractmethod
    def delete(self, process_id: int) -> bool:
        ...


def _encode(column: str, value: Any) -> Any:
    if value is None:
        return None
    if column in _JSON_COLUMNS:
        return json.dumps(value, ensure_ascii=False)
    if column in _TIME_COLUMNS:
        return value.isoformat()
    if column == 'status':
        return ProcessStatus(value).value
    return value


def _decode_row(row: sqlite3.Row) -> Process:
    data = dict(row)
    for column in _JSON_COLUMNS:
        data[column] = json.loads(data[column]) if data[column] else ([] if column == 'pages_info' else {})
    for column in _TIME_COLUMNS:
        data[column] = datetime.fromisoformat(data[column]) if data[column] else None
    data['status'] = ProcessStatus(data['status'])
    return Process(**data)


class SqliteProcessRepository(ProcessRepository):
    """
    Process records in a single SQLite table; JSON columns for pages_info and config.

    Args:
        path: Database file, or ":memory:"
    """

    def __init__(self, path: str = ":memory:"):
        self._path = path
        if path != ":memory:":
            Path(path).parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()
        self._conn = sqlite3.connect(path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        if path != ":memory:":
            self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.execute(_SCHEMA)
        self._conn.commit()

    def close(self):
        with self._lock:
            self._conn.close()

    def create(self, fields: Dict[str, Any]) -> Process:
        now = datetime.now()
        values = {'pages_info': [], 'config': {}, **fields, 'created_at': now, 'updated_at': now}
        columns = [c for c in _COLUMNS if c in values]
        with self._lock:
            cur = self._conn.execute(
                f"INSERT INTO processes ({', '.join(columns)}) VALUES ({', '.join('?' for _ in columns)})",
                [_encode(c, values[c]) for c in columns],
            )
            self._conn.commit()
            process_id = cur.lastrowid
        logger.debug(f"Created process {process_id}")
        return self.find_by_id(process_id)

    def find_by_id(self, process_id: int) -> Optional[Process]:
        with self._lock:
            row = self._conn.execute("SELECT * FROM processes WHERE id = ?", (process_id,)).fetchone()
        return _decode_row(row) if row else None

    def update(self, process_id: int, fields: Dict[str, Any]) -> Optional[Process]:
        """Write the given columns and touch updated_at; None if the record does not exist"""
        values = {c: v for c, v in fields.items() if c in _COLUMNS and c not in ('created_at', 'updated_at')}
        values['updated_at'] = fields.get('updated_at') or datetime.now()
        assignments = ", ".join(f"{c} = ?" for c in values)
        with self._lock:
            cur = self._conn.execute(
                f"UPDATE processes SET {assignments} WHERE id = ?",
                [_encode(c, v) for c, v in values.items()] + [process_id],
            )
            self._conn.commit()
            if cur.rowcount == 0:
                return None
        return self.find_by_id(process_id)

    def find_by_statuses(self, statuses: Iterable[ProcessStatus]) -> List[Process]:
        values = [ProcessStatus(s).value for s in statuses]
        if not values:
            return []
        with self._lock:
            rows = self._conn.execute(
                f"SELECT * FROM processes WHERE status IN ({', '.join('?' for _ in values)}) ORDER BY id",
                values,
            ).fetchall()
        return [_decode_row(row) for row in rows]

    def list_all(self) -> List[Process]:
        with self._lock:
            rows = self._conn.execute("SELECT * FROM processes ORDER BY created_at DESC, id DESC").fetchall()
        return [_decode_row(row) for row in rows]

    def delete(self, process_id: int) -> bool:
        with self._lock:
            cur = self._conn.execute("DELETE FROM processes WHERE id = ?", (process_id,))
            self._conn.commit()
        return cur.rowcount > 0
