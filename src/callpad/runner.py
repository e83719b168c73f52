"""Run units of work inside a `LogContext` and persist one record per call."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from .context import Clock, LogContext, endpoint_name
from .models import LogEvent, utc_now
from .stores import LogEventStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CallRunner:
    """Wraps calls in a fresh `LogContext`.

    For every invocation:
    - the body receives the context explicitly,
    - a failure is recorded as an error line and re-raised unchanged,
    - on every exit path the event is stored exactly once, if it has any lines.

    Store failures are not caught.
    """

    def __init__(self, *, store: LogEventStore, log_to_console: bool = False, clock: Clock = utc_now) -> None:
        self._store = store
        self._log_to_console = log_to_console
        self._clock = clock

    @property
    def store(self) -> LogEventStore:
        return self._store

    def _open(self, name: str) -> LogContext:
        return LogContext(endpoint_name(name), self._clock(), clock=self._clock)

    def run(self, name: str, body: Callable[[LogContext], T]) -> T:
        """Run a synchronous body and return its result."""
        context = self._open(name)
        try:
            return body(context)
        except BaseException as exc:
            context.log_error(lambda: f"Unexpected error handling '{name}'", exc)
            raise
        finally:
            event = context.build_event()
            if event.logs:
                self._store.put(event)
                self._echo(event)

    async def run_async(self, name: str, body: Callable[[LogContext], Awaitable[T]]) -> T:
        """Run a coroutine body; the store write happens in a worker thread."""
        context = self._open(name)
        try:
            return await body(context)
        except BaseException as exc:
            context.log_error(lambda: f"Unexpected error handling '{name}'", exc)
            raise
        finally:
            event = context.build_event()
            if event.logs:
                await asyncio.to_thread(self._store.put, event)
                self._echo(event)

    def _echo(self, event: LogEvent) -> None:
        if not self._log_to_console:
            return
        errors = sum(1 for line in event.logs if line.type == "error")
        logger.info(
            "%s: %d line(s), %d error(s), %d ms",
            event.name,
            len(event.logs),
            errors,
            event.end_ms - event.start_ms,
        )
