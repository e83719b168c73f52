"""Call log models.

A `LogEvent` is the durable record of one wrapped call. Its `logs` field holds
the lines appended during the call, in call order, as a tagged union keyed by
`type`. Everything here is frozen; records are never mutated after creation.

JSON uses camelCase keys and encodes instants as integer epoch milliseconds.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import Annotated, Any, Literal, TypeAlias

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    PlainSerializer,
    TypeAdapter,
    model_validator,
)
from pydantic.alias_generators import to_camel


def utc_now() -> datetime:
    """Return the current UTC time as a timezone-aware datetime."""
    return datetime.now(tz=timezone.utc)


_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_ONE_MS = timedelta(milliseconds=1)
_DAY_MS = 24 * 60 * 60 * 1000


def to_millis(dt: datetime) -> int:
    """Convert a datetime to integer epoch milliseconds (naive values are treated as UTC)."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return (dt - _EPOCH) // _ONE_MS


def from_millis(ms: int) -> datetime:
    """Convert integer epoch milliseconds to a UTC datetime."""
    return _EPOCH + ms * _ONE_MS


def _parse_instant(value: Any) -> Any:
    # Integers on the wire are epoch millis; leave other shapes to pydantic.
    if isinstance(value, int) and not isinstance(value, bool):
        return from_millis(value)
    return value


Instant = Annotated[
    datetime,
    BeforeValidator(_parse_instant),
    PlainSerializer(to_millis, return_type=int),
]

Severity = Literal["Info", "Warn", "Error"]


class _Model(BaseModel):
    model_config = ConfigDict(
        extra="ignore",
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class MessageLine(_Model):
    """A free-text message with a severity."""

    type: Literal["message"] = "message"
    message: str
    time: Instant
    severity: Severity = "Info"


class DetailLine(_Model):
    """A key/value detail. Values are stored in their string form."""

    type: Literal["detail"] = "detail"
    key: str
    value: str


class ErrorLine(_Model):
    """A failure captured during a call.

    The exception itself is not retained; only its type name, message and the
    formatted traceback (including chained causes) are kept.
    """

    type: Literal["error"] = "error"
    message: str
    time: Instant
    exception_type: str
    exception_message: str
    stacktrace: str


LogLine: TypeAlias = Annotated[MessageLine | DetailLine | ErrorLine, Field(discriminator="type")]

_log_lines_adapter: TypeAdapter[list[LogLine]] = TypeAdapter(list[LogLine])


def dump_log_lines(lines: list[LogLine]) -> str:
    """Encode log lines as a compact JSON array (camelCase keys, epoch-millis instants)."""
    return _log_lines_adapter.dump_json(lines, by_alias=True).decode("utf-8")


def load_log_lines(raw: str | bytes) -> list[LogLine]:
    """Decode a JSON array produced by `dump_log_lines`."""
    return _log_lines_adapter.validate_json(raw)


class LogEvent(_Model):
    """The persisted record of one call."""

    name: str
    start_time: Instant
    end_time: Instant
    logs: tuple[LogLine, ...] = ()

    @model_validator(mode="after")
    def _check_times(self) -> LogEvent:
        if self.end_time < self.start_time:
            raise ValueError("end_time must not be before start_time")
        return self

    @property
    def start_ms(self) -> int:
        return to_millis(self.start_time)

    @property
    def end_ms(self) -> int:
        return to_millis(self.end_time)


class Day(_Model):
    """A calendar day filter, interpreted in UTC.

    Field order matches the wire format: `{"day": .., "month": .., "year": ..}`.
    """

    day: int = Field(ge=1, le=31)
    month: int = Field(ge=1, le=12)
    year: int = Field(ge=1, le=9999)

    @model_validator(mode="after")
    def _check_calendar_date(self) -> Day:
        # Fields are range-checked first; this rejects February 30th and the like.
        date(self.year, self.month, self.day)
        return self

    @classmethod
    def of(cls, value: date) -> Day:
        return cls(day=value.day, month=value.month, year=value.year)

    def bounds_ms(self) -> tuple[int, int]:
        """Return the closed `[00:00:00.000, 23:59:59.999]` UTC interval in epoch millis."""
        start_ms = to_millis(datetime(self.year, self.month, self.day, tzinfo=timezone.utc))
        return start_ms, start_ms + _DAY_MS - 1


class LogResponse(_Model):
    """One page of query results."""

    page_count: int
    logs: list[LogEvent]
