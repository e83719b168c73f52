"""Background deletion of old call records.

The sweep is itself a call: it runs through `CallRunner` under a fixed name, so
every cleanup leaves a record of its own with the store size and removed count.
"""

from __future__ import annotations

import asyncio
import calendar
import logging
from contextlib import suppress
from dataclasses import dataclass
from datetime import datetime

from .context import Clock, LogContext
from .models import to_millis, utc_now
from .runner import CallRunner

logger = logging.getLogger(__name__)

CLEANUP_CALL_NAME = "logViewer_cleanup"
RETENTION_MONTHS = 1
SWEEP_INTERVAL_S = 24 * 60 * 60.0


def minus_months(dt: datetime, months: int) -> datetime:
    """Subtract calendar months, clamping the day to the end of the target month.

    March 31st minus one month is February 28th (or 29th in a leap year).
    """
    index = dt.year * 12 + (dt.month - 1) - months
    year, month = divmod(index, 12)
    month += 1
    day = min(dt.day, calendar.monthrange(year, month)[1])
    return dt.replace(year=year, month=month, day=day)


@dataclass(frozen=True)
class SweepReport:
    disk_size_before_kb: int
    removed_count: int


class RetentionSweeper:
    """Deletes records older than the retention window, once at start and then on an interval."""

    def __init__(
        self,
        *,
        runner: CallRunner,
        clock: Clock = utc_now,
        retention_months: int = RETENTION_MONTHS,
        interval_s: float = SWEEP_INTERVAL_S,
    ) -> None:
        self._runner = runner
        self._clock = clock
        self._retention_months = retention_months
        self._interval_s = interval_s
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def cutoff(self) -> datetime:
        """Records that started strictly before this instant are removed."""
        return minus_months(self._clock(), self._retention_months)

    def sweep_once(self) -> SweepReport:
        """Run one sweep synchronously and return what it did."""
        return self._runner.run(CLEANUP_CALL_NAME, self._evict_old)

    def _evict_old(self, ctx: LogContext) -> SweepReport:
        store = self._runner.store
        ctx.log_data("Time", self._clock)
        cutoff_ms = to_millis(self.cutoff())

        size_kb = store.size_on_disk() // 1000
        ctx.log_data("Log Size", lambda: f"{size_kb}KB")
        removed = store.delete_older_than(cutoff_ms)
        ctx.log_data("Logs Removed", lambda: removed)
        return SweepReport(disk_size_before_kb=size_kb, removed_count=removed)

    def start(self) -> None:
        """Start the sweep loop on the running event loop (no-op if already running)."""
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run_loop(), name="retention-sweeper")

    async def aclose(self) -> None:
        """Stop the sweep loop, waiting for a sweep in progress. Safe to call multiple times."""
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        with suppress(asyncio.CancelledError):
            await task

    async def _run_loop(self) -> None:
        """Sweep now, then once per interval, until cancelled."""
        while True:
            sweep = asyncio.ensure_future(asyncio.to_thread(self.sweep_once))
            try:
                report = await asyncio.shield(sweep)
            except asyncio.CancelledError:
                # A worker thread cannot be interrupted; the sweep finishes before the loop
                # stops, so the store is never closed underneath it.
                await asyncio.wait([sweep])
                if sweep.exception() is not None:
                    logger.error("Retention sweep failed", exc_info=sweep.exception())
                raise
            except Exception:  # noqa: BLE001 - a failed sweep must not stop the schedule
                logger.exception("Retention sweep failed")
            else:
                logger.info(
                    "Retention sweep removed %d record(s); store was %d KB",
                    report.removed_count,
                    report.disk_size_before_kb,
                )
            await asyncio.sleep(self._interval_s)
