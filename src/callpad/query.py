"""Day-filtered, paginated reads over a `LogEventStore`."""

from __future__ import annotations

import math

from .models import Day, LogResponse
from .stores import LogEventStore

PAGE_SIZE = 18


class LogQueryService:
    """Answers the viewer's questions: which endpoints exist, and what happened on a day."""

    def __init__(self, *, store: LogEventStore, page_size: int = PAGE_SIZE) -> None:
        if page_size <= 0:
            raise ValueError(f"page_size must be > 0. Got: {page_size}")
        self._store = store
        self._page_size = page_size

    def list_endpoints(self) -> list[str]:
        return self._store.distinct_names()

    def get_logs(self, endpoint: str, day: Day, page: int) -> LogResponse:
        """Return page `page` (zero-indexed) of `endpoint`'s records for `day`, newest first.

        Records with equal start times keep the store's insertion order. A page
        past the end is empty; a negative page raises `ValueError`.
        """
        if page < 0:
            raise ValueError(f"page must be >= 0. Got: {page}")

        start_ms, end_ms = day.bounds_ms()
        events = self._store.find(endpoint, start_ms, end_ms)
        # sorted() is stable with reverse=True, so ties stay in insertion order.
        events = sorted(events, key=lambda e: e.start_ms, reverse=True)

        offset = page * self._page_size
        return LogResponse(
            page_count=math.ceil(len(events) / self._page_size),
            logs=events[offset : offset + self._page_size],
        )
