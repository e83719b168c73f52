"""Async client for a running call log viewer.

The HTTP call uses `requests` executed in a thread, the same way the rest of
the project keeps blocking I/O off the event loop.
"""

from __future__ import annotations

import asyncio
from typing import Any

import requests  # type: ignore

from .models import Day, LogResponse


class LogViewerHttpError(RuntimeError):
    """Non-2xx answer from the viewer API."""

    def __init__(self, *, status_code: int, text: str):
        """Create an error capturing the HTTP status code and plain-text reason."""
        self.status_code = status_code
        self.text = text
        super().__init__(f"Log viewer HTTP {status_code}: {text}")


class LogViewerClient:
    """Reads endpoints and paged call records from the viewer API.

    `base_url` includes any route prefix, e.g. `http://localhost:8000/__log_viewer__`.
    """

    def __init__(self, base_url: str, *, timeout: float = 30.0, headers: dict[str, str] | None = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.headers = dict(headers or {})

    async def _get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        """Send a GET and return the decoded JSON body.

        Raises:
        - `LogViewerHttpError` for non-2xx responses
        - `requests.RequestException` for transport errors
        """
        url = self.base_url + path

        def _do_request() -> Any:
            """Execute the HTTP request synchronously (runs in a worker thread)."""
            resp = requests.request("GET", url, params=params, headers=self.headers, timeout=self.timeout)
            if 200 <= resp.status_code < 300:
                return resp.json()
            raise LogViewerHttpError(status_code=resp.status_code, text=resp.text)

        return await asyncio.to_thread(_do_request)

    async def get_endpoints(self) -> list[str]:
        """List every endpoint that has stored calls."""
        return list(await self._get("/endpoints"))

    async def get_logs(self, endpoint: str, day: Day, page: int = 0) -> LogResponse:
        """Fetch one page of `endpoint`'s calls on `day`, newest first."""
        params = {"endpoint": endpoint, "day": day.model_dump_json(), "page": str(page)}
        return LogResponse.model_validate(await self._get("/logs", params))
