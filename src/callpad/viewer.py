"""One object that owns the store and everything built on it.

Typical use in a FastAPI app::

    viewer = LogViewer.from_config(load_config().viewer)
    app = FastAPI(lifespan=viewer.lifespan)
    viewer.install(app)

    @app.get("/users")
    async def users():
        return await viewer.call_async("/users", fetch_users)
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import Any, Protocol, TypeVar

from fastapi import FastAPI

from .api import create_router
from .context import Clock, LogContext
from .models import utc_now
from .query import LogQueryService
from .retention import RetentionSweeper
from .runner import CallRunner
from .stores import DuckDBLogEventStore, LogEventStore

T = TypeVar("T")


class ViewerSettings(Protocol):
    """Settings `LogViewer.from_config` reads; `config.ViewerConfig` is one."""

    db_path: str
    log_to_console: bool
    api_prefix: str


class LogViewer:
    """Store, runner, query service and retention sweeper wired together."""

    def __init__(
        self,
        *,
        store: LogEventStore,
        log_to_console: bool = False,
        api_prefix: str = "",
        clock: Clock = utc_now,
    ) -> None:
        self.store = store
        self.runner = CallRunner(store=store, log_to_console=log_to_console, clock=clock)
        self.queries = LogQueryService(store=store)
        self.sweeper = RetentionSweeper(runner=self.runner, clock=clock)
        self._api_prefix = api_prefix

    @classmethod
    def from_config(cls, config: ViewerSettings) -> LogViewer:
        """Open the DuckDB store named by `config` and wire everything to it."""
        return cls(
            store=DuckDBLogEventStore(path=config.db_path),
            log_to_console=config.log_to_console,
            api_prefix=config.api_prefix,
        )

    def call(self, name: str, body: Callable[[LogContext], T]) -> T:
        """Shortcut for `self.runner.run`."""
        return self.runner.run(name, body)

    async def call_async(self, name: str, body: Callable[[LogContext], Awaitable[T]]) -> T:
        """Shortcut for `self.runner.run_async`."""
        return await self.runner.run_async(name, body)

    def install(self, app: FastAPI) -> None:
        """Mount the `/endpoints` and `/logs` routes on `app`."""
        app.include_router(create_router(self.queries, prefix=self._api_prefix))

    async def start(self) -> None:
        """Start the retention sweeper (its first sweep runs right away)."""
        self.sweeper.start()

    async def aclose(self) -> None:
        """Stop the sweeper and close the store."""
        await self.sweeper.aclose()
        self.store.close()

    @asynccontextmanager
    async def lifespan(self, _app: Any) -> AsyncIterator[None]:
        """FastAPI lifespan hook: sweeper runs while the app is up."""
        await self.start()
        try:
            yield
        finally:
            await self.aclose()
