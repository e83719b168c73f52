"""Demo entrypoint serving a small app instrumented with callpad.

This module intentionally contains a small, end-to-end "smoke test" that:

- Loads configuration from environment.
- Opens the DuckDB store and starts the retention sweeper.
- Records one sample call at startup.
- Serves two instrumented routes plus the viewer API.

It is **not** intended as production wiring; it is a convenient manual harness.
"""

from __future__ import annotations

import logging

import uvicorn
from fastapi import FastAPI

from callpad import LogContext, LogViewer
from config import Config, load_config


def _sample_call(ctx: LogContext) -> None:
    """Record one line of each kind."""
    ctx.log_info(lambda: "Info Test")
    ctx.log_warn(lambda: "Warn Test")
    ctx.log_error(lambda: "Error Test", LookupError("sample"))
    ctx.log_data("Foo", lambda: "Bar")
    ctx.log_data("Biz", lambda: "Baz")


def create_app(cfg: Config) -> FastAPI:
    """Build the demo app around a `LogViewer` opened from `cfg`."""
    viewer = LogViewer.from_config(cfg.viewer)
    app = FastAPI(title="callpad demo", lifespan=viewer.lifespan)
    viewer.install(app)

    viewer.call("amar", _sample_call)

    # Plain `def`: FastAPI runs it in its threadpool, so the blocking store write is fine.
    @app.get("/test")
    def failing_request() -> str:
        def body(ctx: LogContext) -> str:
            ctx.log_data("Amar", lambda: "XD")
            raise RuntimeError("demo failure")

        return viewer.call("/test", body)

    @app.get("/test2")
    async def quiet_request() -> str:
        async def body(ctx: LogContext) -> str:
            ctx.log_info(lambda: "Test Test")
            ctx.log_warn(lambda: "Warn Test Test")
            return "Test2"

        return await viewer.call_async("/test2", body)

    return app


def main() -> None:
    cfg = load_config()
    logging.basicConfig(
        level=cfg.server.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(create_app(cfg), host=cfg.server.host, port=cfg.server.port)


if __name__ == "__main__":
    main()
