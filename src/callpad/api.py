"""HTTP surface for browsing stored calls.

Routes (relative to the configured prefix):

- `GET /endpoints` -> JSON array of endpoint names
- `GET /logs?endpoint=<name>&day=<json>&page=<int>` -> `{"pageCount": .., "logs": [..]}`

Authentication is the host application's job; these routes assume the request
already passed it. Bad query parameters get a `400` with a short plain-text
reason. Every response allows any origin.
"""

from __future__ import annotations

import asyncio
import logging
import re

from fastapi import APIRouter, Request, Response
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import ValidationError

from .models import Day
from .query import LogQueryService

logger = logging.getLogger(__name__)

CORS_HEADERS = {"Access-Control-Allow-Origin": "*"}

MISSING_PARAMETER = "Missing parameter"
MALFORMED_PAGE = "Malformed page"
MALFORMED_DAY = "Malformed day"

MAX_PAGE = 2**31 - 1
_PAGE_PATTERN = re.compile(r"[0-9]{1,10}")


def _bad_request(reason: str) -> PlainTextResponse:
    return PlainTextResponse(reason, status_code=400, headers=CORS_HEADERS)


def _parse_page(raw: str) -> int | None:
    """Parse a zero-indexed page number, or return None if it is not one.

    Only plain ASCII digits within the 32-bit signed range are accepted.
    """
    if _PAGE_PATTERN.fullmatch(raw) is None:
        return None
    page = int(raw)
    return page if page <= MAX_PAGE else None


def create_router(query_service: LogQueryService, *, prefix: str = "") -> APIRouter:
    """Build the router serving `/endpoints` and `/logs` from `query_service`."""
    router = APIRouter(prefix=prefix)

    @router.get("/endpoints")
    async def list_endpoints() -> Response:
        endpoints = await asyncio.to_thread(query_service.list_endpoints)
        return JSONResponse(endpoints, headers=CORS_HEADERS)

    @router.get("/logs")
    async def get_logs(request: Request) -> Response:
        params = request.query_params
        endpoint = params.get("endpoint")
        day_raw = params.get("day")
        page_raw = params.get("page")
        if endpoint is None or day_raw is None or page_raw is None:
            return _bad_request(MISSING_PARAMETER)

        page = _parse_page(page_raw)
        if page is None:
            return _bad_request(MALFORMED_PAGE)

        try:
            day = Day.model_validate_json(day_raw)
        except ValidationError as exc:
            logger.debug("Rejected day parameter %r: %s", day_raw, exc)
            return _bad_request(MALFORMED_DAY)

        response = await asyncio.to_thread(query_service.get_logs, endpoint, day, page)
        return Response(
            content=response.model_dump_json(by_alias=True),
            media_type="application/json",
            headers=CORS_HEADERS,
        )

    return router
