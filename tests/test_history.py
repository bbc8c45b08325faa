"""Test history stores and the background writer."""
import logging
from pathlib import Path

import pytest

from simple_calculator.common.models import HistoryEntry
from simple_calculator.history.store import (
    BackgroundHistoryWriter,
    InMemoryHistoryStore,
    SqliteHistoryStore,
)


@pytest.fixture(params=["memory", "sqlite"])
def store(request, tmp_path: Path):
    """Each store implementation behind the same contract."""
    if request.param == "memory":
        return InMemoryHistoryStore()
    return SqliteHistoryStore(path=tmp_path / "history.db")


def entry(timestamp: int, calculation: str) -> HistoryEntry:
    return HistoryEntry(timestamp=timestamp, calculation=calculation)


def test_list_all_newest_first(store) -> None:
    """Entries are listed by descending timestamp."""
    store.append(entry(1, "1+1=2"))
    store.append(entry(3, "3+3=6"))
    store.append(entry(2, "2+2=4"))

    assert [e.timestamp for e in store.list_all()] == [3, 2, 1]


def test_list_all_same_timestamp_latest_insert_first(store) -> None:
    """Entries sharing a timestamp are listed latest insert first."""
    store.append(entry(5, "first=1"))
    store.append(entry(5, "second=2"))

    assert [e.calculation for e in store.list_all()] == ["second=2", "first=1"]


def test_search_is_case_insensitive_substring(store) -> None:
    """Search matches any part of the calculation, ignoring case."""
    store.append(entry(1, "2+3=5"))
    store.append(entry(2, "10÷0=Error"))
    store.append(entry(3, "12×4=48"))

    assert [e.calculation for e in store.search("error")] == ["10÷0=Error"]
    assert [e.calculation for e in store.search("×")] == ["12×4=48"]
    assert store.search("7") == []


def test_search_folds_non_ascii_case(store) -> None:
    """Both stores fold case beyond ASCII the same way."""
    store.append(entry(1, "Ω×2=Error"))
    store.append(entry(2, "Straße=Error"))

    assert [e.calculation for e in store.search("ω")] == ["Ω×2=Error"]
    assert [e.calculation for e in store.search("STRASSE")] == ["Straße=Error"]


def test_search_treats_wildcards_literally(store) -> None:
    """SQL wildcards in the query do not match arbitrary text."""
    store.append(entry(1, "1+1=2"))

    assert store.search("_") == []
    assert store.search("%") == []


def test_search_results_newest_first(store) -> None:
    """Search results keep the newest-first ordering."""
    store.append(entry(1, "1+1=2"))
    store.append(entry(2, "1+2=3"))

    assert [e.timestamp for e in store.search("1+")] == [2, 1]


def test_clear(store) -> None:
    """Clear removes every entry."""
    store.append(entry(1, "1+1=2"))
    store.clear()

    assert store.list_all() == []


def test_sqlite_store_persists_between_instances(tmp_path: Path) -> None:
    """Entries written by one store are read by another on the same file."""
    path = tmp_path / "nested" / "dir" / "history.db"
    SqliteHistoryStore(path=path).append(entry(42, "6×7=42"))

    assert SqliteHistoryStore(path=path).list_all() == [entry(42, "6×7=42")]


def test_background_writer_keeps_order(tmp_path: Path) -> None:
    """Queued appends reach the store in submission order."""
    store = SqliteHistoryStore(path=tmp_path / "history.db")

    with BackgroundHistoryWriter(store) as writer:
        for i in range(20):
            writer.append(entry(7, f"{i}+0={i}"))

    assert [e.calculation for e in store.list_all()] == [f"{i}+0={i}" for i in reversed(range(20))]


def test_background_writer_clear_waits_for_pending_appends() -> None:
    """Clear runs after appends already queued."""
    store = InMemoryHistoryStore()

    with BackgroundHistoryWriter(store) as writer:
        writer.append(entry(1, "1+1=2"))
        writer.clear()
        assert writer.list_all() == []
        writer.append(entry(2, "2+2=4"))

    assert writer.search("2+2") == [entry(2, "2+2=4")]


def test_background_writer_logs_failures(caplog) -> None:
    """A failing write is logged instead of raised."""
    class BrokenStore(InMemoryHistoryStore):
        def append(self, entry) -> None:
            raise OSError("disk full")

    with caplog.at_level(logging.ERROR, logger="simple_calculator"):
        with BackgroundHistoryWriter(BrokenStore()) as writer:
            future = writer.append(entry(1, "1+1=2"))

    assert isinstance(future.exception(), OSError)
    assert "disk full" in caplog.text
