from __future__ import annotations

import threading

import pytest

from callpad.models import DetailLine, LogEvent, MessageLine, from_millis
from callpad.stores import DuckDBLogEventStore, InMemoryLogEventStore, LogEventStore


def _event(name: str, start_ms: int, *, note: str = "x") -> LogEvent:
    return LogEvent(
        name=name,
        start_time=from_millis(start_ms),
        end_time=from_millis(start_ms + 3),
        logs=(
            DetailLine(key="note", value=note),
            MessageLine(message=f"{name}@{start_ms}", time=from_millis(start_ms + 1)),
        ),
    )


@pytest.fixture(params=["memory", "duckdb"])
def store(request: pytest.FixtureRequest):
    if request.param == "memory":
        s: LogEventStore = InMemoryLogEventStore()
    else:
        s = DuckDBLogEventStore(path=":memory:")
    yield s
    s.close()


def test_find_filters_by_name_and_closed_interval(store: LogEventStore) -> None:
    for ms in (99, 100, 150, 200, 201):
        store.put(_event("a", ms))
    store.put(_event("b", 150))

    found = store.find("a", 100, 200)
    assert [e.start_ms for e in found] == [100, 150, 200]
    assert all(e.name == "a" for e in found)


def test_find_returns_full_records(store: LogEventStore) -> None:
    original = _event("a", 1_000, note="hello")
    store.put(original)
    assert store.find("a", 0, 2_000) == [original]


def test_find_keeps_insertion_order(store: LogEventStore) -> None:
    for note in ("first", "second", "third"):
        store.put(_event("a", 500, note=note))
    store.put(_event("a", 400, note="older"))

    found = store.find("a", 0, 1_000)
    assert [e.logs[0].value for e in found] == ["first", "second", "third", "older"]


def test_distinct_names(store: LogEventStore) -> None:
    assert store.distinct_names() == []
    for name in ("zeta", "amar", "zeta", "test2"):
        store.put(_event(name, 10))
    assert store.distinct_names() == ["amar", "test2", "zeta"]


def test_delete_older_than_is_strict_and_counts(store: LogEventStore) -> None:
    for ms in (10, 20, 30, 30, 40):
        store.put(_event("a", ms))

    assert store.delete_older_than(30) == 2
    assert [e.start_ms for e in store.find("a", 0, 100)] == [30, 30, 40]
    assert store.delete_older_than(30) == 0


def test_concurrent_puts_are_all_kept(store: LogEventStore) -> None:
    def writer(offset: int) -> None:
        for i in range(25):
            store.put(_event("load", offset * 1_000 + i))

    threads = [threading.Thread(target=writer, args=(n,)) for n in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(store.find("load", 0, 10_000)) == 100


def test_in_memory_sizes_are_zero() -> None:
    assert InMemoryLogEventStore().size_on_disk() == 0
    db = DuckDBLogEventStore(path=":memory:")
    try:
        assert db.size_on_disk() == 0
    finally:
        db.close()
