"""Log event stores (storage backends)."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

import duckdb

from .models import LogEvent, dump_log_lines, from_millis, load_log_lines

IN_MEMORY = ":memory:"


class LogEventStore(Protocol):
    """A synchronous store for call records.

    Stores guard their own state, so `put`, `find` and `delete_older_than` may be
    called from many threads at once.
    """

    def put(self, event: LogEvent) -> None:
        """Insert a record. The store assigns its identity; there is no upsert."""

    def distinct_names(self) -> list[str]:
        """Return every endpoint name with at least one stored record."""

    def find(self, name: str, start_ms: int, end_ms: int) -> list[LogEvent]:
        """Return records named `name` whose start time lies in `[start_ms, end_ms]`.

        Results come back in insertion order; callers sort as they need.
        """

    def delete_older_than(self, cutoff_ms: int) -> int:
        """Delete records that started before `cutoff_ms` and return how many were removed."""

    def size_on_disk(self) -> int:
        """Approximate storage size in bytes."""

    def close(self) -> None:
        """Close any underlying resources."""


class InMemoryLogEventStore:
    """In-memory store for tests and local debugging."""

    def __init__(self) -> None:
        """Create an empty in-memory store."""
        self._lock = threading.Lock()
        self._events: list[LogEvent] = []

    def put(self, event: LogEvent) -> None:
        with self._lock:
            self._events.append(event)

    def distinct_names(self) -> list[str]:
        with self._lock:
            return sorted({e.name for e in self._events})

    def find(self, name: str, start_ms: int, end_ms: int) -> list[LogEvent]:
        with self._lock:
            return [e for e in self._events if e.name == name and start_ms <= e.start_ms <= end_ms]

    def delete_older_than(self, cutoff_ms: int) -> int:
        with self._lock:
            kept = [e for e in self._events if e.start_ms >= cutoff_ms]
            removed = len(self._events) - len(kept)
            self._events = kept
            return removed

    def size_on_disk(self) -> int:
        return 0

    def close(self) -> None:  # noqa: D401 - keep interface consistent
        """No-op."""

    def snapshot(self) -> list[LogEvent]:
        """Return a point-in-time copy of all stored events, in insertion order."""
        with self._lock:
            return list(self._events)


@dataclass(frozen=True)
class DuckDBOptions:
    path: Path
    table: str = "log_events"


class DuckDBLogEventStore:
    """DuckDB store for durable local persistence.

    One row per call. Start/end times are epoch millis so day and retention
    filters are plain integer comparisons; the lines are kept as a JSON array.
    """

    def __init__(self, *, path: str | Path, table: str = "log_events") -> None:
        """Create (or open) a DuckDB-backed store at the given path."""
        self._opts = DuckDBOptions(path=Path(path), table=table)
        self._lock = threading.Lock()
        if not self._in_memory:
            self._opts.path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = duckdb.connect(str(self._opts.path))
        self._ensure_schema()

    @property
    def _in_memory(self) -> bool:
        return str(self._opts.path) == IN_MEMORY

    def _ensure_schema(self) -> None:
        """Create the id sequence and backing table if they do not exist yet."""
        table = self._opts.table
        with self._lock:
            self._conn.execute(f"create sequence if not exists {table}_id_seq")
            self._conn.execute(
                f"""
                create table if not exists {table} (
                  id bigint primary key default nextval('{table}_id_seq'),
                  name varchar not null,
                  start_time bigint not null,
                  end_time bigint not null,
                  logs_json varchar not null
                )
                """
            )

    def put(self, event: LogEvent) -> None:
        insert_sql = f"insert into {self._opts.table} (name, start_time, end_time, logs_json) values (?, ?, ?, ?)"
        with self._lock:
            self._conn.execute(
                insert_sql,
                [event.name, event.start_ms, event.end_ms, dump_log_lines(list(event.logs))],
            )

    def distinct_names(self) -> list[str]:
        with self._lock:
            rows = self._conn.execute(f"select distinct name from {self._opts.table} order by name").fetchall()
        return [row[0] for row in rows]

    def find(self, name: str, start_ms: int, end_ms: int) -> list[LogEvent]:
        query_sql = f"""
        select name, start_time, end_time, logs_json
        from {self._opts.table}
        where name = ? and start_time between ? and ?
        order by id
        """
        with self._lock:
            rows = self._conn.execute(query_sql, [name, start_ms, end_ms]).fetchall()
        return [
            LogEvent(
                name=row_name,
                start_time=from_millis(start_time),
                end_time=from_millis(end_time),
                logs=tuple(load_log_lines(logs_json)),
            )
            for row_name, start_time, end_time, logs_json in rows
        ]

    def delete_older_than(self, cutoff_ms: int) -> int:
        table = self._opts.table
        # Count and delete under one lock so the count matches the rows removed.
        with self._lock:
            row = self._conn.execute(f"select count(*) from {table} where start_time < ?", [cutoff_ms]).fetchone()
            self._conn.execute(f"delete from {table} where start_time < ?", [cutoff_ms])
        return int(row[0]) if row else 0

    def size_on_disk(self) -> int:
        if self._in_memory:
            return 0
        total = 0
        for candidate in (self._opts.path, self._opts.path.with_name(self._opts.path.name + ".wal")):
            if candidate.exists():
                total += candidate.stat().st_size
        return total

    def close(self) -> None:
        """Close the underlying DuckDB connection."""
        with self._lock:
            self._conn.close()
