"""Per-call structured logging with a queryable local store.

This package provides:
- A `LogContext` that collects ordered log lines during one call.
- A `CallRunner` that wraps work in a context and stores one `LogEvent` per call.
- Stores (DuckDB by default) and a day-filtered, paginated query service.
- A retention sweeper that deletes records older than one calendar month.
- A FastAPI router and a matching client for browsing stored calls.
"""

from .context import LogContext, endpoint_name
from .models import DetailLine, Day, ErrorLine, LogEvent, LogLine, LogResponse, MessageLine
from .query import PAGE_SIZE, LogQueryService
from .retention import RetentionSweeper, SweepReport
from .runner import CallRunner
from .stores import DuckDBLogEventStore, InMemoryLogEventStore, LogEventStore
from .viewer import LogViewer

__all__ = [
    "PAGE_SIZE",
    "CallRunner",
    "Day",
    "DetailLine",
    "DuckDBLogEventStore",
    "ErrorLine",
    "InMemoryLogEventStore",
    "LogContext",
    "LogEvent",
    "LogEventStore",
    "LogLine",
    "LogQueryService",
    "LogResponse",
    "LogViewer",
    "MessageLine",
    "RetentionSweeper",
    "SweepReport",
    "endpoint_name",
]
