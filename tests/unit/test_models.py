from __future__ import annotations

import json
from datetime import date, datetime, timezone

import pytest
from pydantic import ValidationError

from callpad.models import (
    Day,
    DetailLine,
    ErrorLine,
    LogEvent,
    LogResponse,
    MessageLine,
    dump_log_lines,
    from_millis,
    load_log_lines,
    to_millis,
)


def _at(ms: int) -> datetime:
    return from_millis(ms)


def test_millis_conversion_is_exact_at_the_end_of_a_day() -> None:
    dt = datetime(2023, 2, 18, 23, 59, 59, 999_000, tzinfo=timezone.utc)
    assert from_millis(to_millis(dt)) == dt
    assert to_millis(dt) % 1000 == 999


def test_naive_datetimes_are_read_as_utc() -> None:
    assert to_millis(datetime(1970, 1, 1, 0, 0, 1)) == 1000


def test_day_bounds_cover_the_whole_utc_day() -> None:
    start, end = Day(day=18, month=2, year=2023).bounds_ms()
    assert _at(start) == datetime(2023, 2, 18, tzinfo=timezone.utc)
    assert _at(end) == datetime(2023, 2, 18, 23, 59, 59, 999_000, tzinfo=timezone.utc)
    assert end - start == 24 * 60 * 60 * 1000 - 1


def test_day_decodes_from_wire_format_and_keeps_field_order() -> None:
    day = Day.model_validate_json('{"day": 18, "month": 2, "year": 2023}')
    assert day == Day.of(date(2023, 2, 18))
    assert day.model_dump_json() == '{"day":18,"month":2,"year":2023}'


@pytest.mark.parametrize(
    "raw",
    [
        "not json",
        '{"day": 18, "month": 2}',
        '{"day": 30, "month": 2, "year": 2023}',
        '{"day": 1, "month": 13, "year": 2023}',
        '{"day": 1, "month": 1, "year": 99999999999999999999}',
        '{"day": 1, "month": 1, "year": 0}',
        '{"day": "x", "month": 2, "year": 2023}',
    ],
)
def test_day_rejects_malformed_input(raw: str) -> None:
    with pytest.raises(ValidationError):
        Day.model_validate_json(raw)


def test_log_event_json_shape() -> None:
    event = LogEvent(
        name="amar",
        start_time=_at(1_676_755_225_068),
        end_time=_at(1_676_755_225_071),
        logs=(
            MessageLine(message="hello", time=_at(1_676_755_225_069), severity="Warn"),
            DetailLine(key="Foo", value="Bar"),
            ErrorLine(
                message="boom",
                time=_at(1_676_755_225_070),
                exception_type="KeyError",
                exception_message="'x'",
                stacktrace="Traceback ...",
            ),
        ),
    )

    payload = json.loads(event.model_dump_json(by_alias=True))
    assert payload == {
        "name": "amar",
        "startTime": 1_676_755_225_068,
        "endTime": 1_676_755_225_071,
        "logs": [
            {"type": "message", "message": "hello", "time": 1_676_755_225_069, "severity": "Warn"},
            {"type": "detail", "key": "Foo", "value": "Bar"},
            {
                "type": "error",
                "message": "boom",
                "time": 1_676_755_225_070,
                "exceptionType": "KeyError",
                "exceptionMessage": "'x'",
                "stacktrace": "Traceback ...",
            },
        ],
    }
    assert LogEvent.model_validate(payload) == event


def test_log_lines_survive_storage_encoding_in_order() -> None:
    lines = [
        DetailLine(key="b", value="2"),
        MessageLine(message="m", time=_at(5)),
        DetailLine(key="a", value="1"),
    ]
    restored = load_log_lines(dump_log_lines(lines))
    assert restored == lines
    assert [type(line) for line in restored] == [DetailLine, MessageLine, DetailLine]


def test_log_event_rejects_end_before_start() -> None:
    with pytest.raises(ValidationError):
        LogEvent(name="x", start_time=_at(10), end_time=_at(9))


def test_log_event_is_frozen() -> None:
    event = LogEvent(name="x", start_time=_at(1), end_time=_at(2))
    with pytest.raises(ValidationError):
        event.name = "y"  # type: ignore[misc]


def test_log_response_uses_camel_case() -> None:
    response = LogResponse(page_count=2, logs=[])
    assert json.loads(response.model_dump_json(by_alias=True)) == {"pageCount": 2, "logs": []}
