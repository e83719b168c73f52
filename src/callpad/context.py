"""Per-call log accumulation."""

from __future__ import annotations

import traceback
from collections.abc import Callable
from datetime import datetime
from typing import Any

from .models import DetailLine, ErrorLine, LogEvent, LogLine, MessageLine, Severity, utc_now

Clock = Callable[[], datetime]


def endpoint_name(call_name: str) -> str:
    """Turn a call name such as `/api/users` into its endpoint key (`api_users`)."""
    return call_name.removeprefix("/").replace("/", "_")


def format_stacktrace(exc: BaseException) -> str:
    """Render the full traceback of `exc`, chained causes included, as one string."""
    return "".join(traceback.format_exception(type(exc), exc, exc.__traceback__)).rstrip("\n")


class LogContext:
    """Ordered log lines for a single call.

    Messages and values are passed as zero-argument callables and are evaluated
    once, when the line is appended. A context belongs to exactly one call and is
    not shared between threads or tasks.
    """

    def __init__(self, name: str, start_time: datetime, *, clock: Clock = utc_now) -> None:
        self.name = name
        self.start_time = start_time
        self._clock = clock
        self._lines: list[LogLine] = []

    @property
    def lines(self) -> tuple[LogLine, ...]:
        """Lines appended so far, in call order."""
        return tuple(self._lines)

    def log_info(self, message: Callable[[], str]) -> None:
        self._log_message(message, "Info")

    def log_warn(self, message: Callable[[], str]) -> None:
        self._log_message(message, "Warn")

    def log_error(self, message: Callable[[], str], exc: BaseException | None = None) -> None:
        """Append an error.

        With an exception, the line keeps its type, message and formatted
        traceback. Without one, this is a plain message of severity `Error`.
        """
        if exc is None:
            self._log_message(message, "Error")
            return
        self._lines.append(
            ErrorLine(
                message=message(),
                time=self._clock(),
                exception_type=type(exc).__name__,
                exception_message=str(exc),
                stacktrace=format_stacktrace(exc),
            )
        )

    def log_data(self, key: str, value: Callable[[], Any]) -> None:
        self._lines.append(DetailLine(key=key, value=str(value())))

    def _log_message(self, message: Callable[[], str], severity: Severity) -> None:
        self._lines.append(MessageLine(message=message(), time=self._clock(), severity=severity))

    def build_event(self) -> LogEvent:
        """Freeze the context into a `LogEvent` ending now."""
        return LogEvent(
            name=self.name,
            start_time=self.start_time,
            end_time=max(self._clock(), self.start_time),
            logs=tuple(self._lines),
        )
