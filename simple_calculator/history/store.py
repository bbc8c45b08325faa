"""History persistence: an append/query log of calculations keyed by timestamp."""
from concurrent.futures import Future, ThreadPoolExecutor
from contextlib import closing
from pathlib import Path
import sqlite3
import threading
from typing import Any, List, Protocol

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr

from simple_calculator.common.logger import logger
from simple_calculator.common.models import HistoryEntry


class HistoryStore(Protocol):
    """Persistence handle injected into the calculator."""

    def append(self, entry: HistoryEntry) -> None:
        ...

    def list_all(self) -> List[HistoryEntry]:
        ...

    def search(self, query: str) -> List[HistoryEntry]:
        """
        Entries whose calculation contains the query, newest first.

        Matching is a plain substring test after Unicode case folding, so
        "ERROR" finds "Error" and "STRASSE" finds "straße". No character of
        the query acts as a wildcard.
        """
        ...

    def clear(self) -> None:
        ...


def _casefold(text: str) -> str:
    return text.casefold()


def _newest_first(entries: List[HistoryEntry]) -> List[HistoryEntry]:
    # Stable sort keeps the latest insert first among equal timestamps
    return sorted(reversed(entries), key=lambda entry: entry.timestamp, reverse=True)


class InMemoryHistoryStore(BaseModel):
    """Process-local history, used for tests and sessions without a database."""

    _entries: List[HistoryEntry] = PrivateAttr(default_factory=list)
    _lock: threading.Lock = PrivateAttr(default_factory=threading.Lock)

    def append(self, entry: HistoryEntry) -> None:
        with self._lock:
            self._entries.append(entry)

    def list_all(self) -> List[HistoryEntry]:
        with self._lock:
            return _newest_first(self._entries)

    def search(self, query: str) -> List[HistoryEntry]:
        needle = _casefold(query)
        return [entry for entry in self.list_all() if needle in _casefold(entry.calculation)]

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()


class SqliteHistoryStore(BaseModel):
    """
    History stored in a SQLite database file.

    A new connection is opened for every call, so the store can be used from
    the background writer thread and the caller's thread alike.
    """

    model_config = ConfigDict(frozen=True)

    path: Path = Field(..., description="SQLite database file, created on first use")

    def model_post_init(self, context: Any) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with closing(self._connect()) as conn, conn:
            conn.execute(
                "CREATE TABLE IF NOT EXISTS history ("
                " id INTEGER PRIMARY KEY AUTOINCREMENT,"
                " timestamp INTEGER NOT NULL,"
                " calculation TEXT NOT NULL)"
            )

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.path)
        conn.create_function("casefold", 1, _casefold, deterministic=True)
        return conn

    def _query(self, sql: str, params: tuple = ()) -> List[HistoryEntry]:
        with closing(self._connect()) as conn:
            rows = conn.execute(sql, params).fetchall()
        return [HistoryEntry(timestamp=timestamp, calculation=calculation) for timestamp, calculation in rows]

    def append(self, entry: HistoryEntry) -> None:
        with closing(self._connect()) as conn, conn:
            conn.execute(
                "INSERT INTO history (timestamp, calculation) VALUES (?, ?)",
                (entry.timestamp, entry.calculation),
            )

    def list_all(self) -> List[HistoryEntry]:
        return self._query("SELECT timestamp, calculation FROM history ORDER BY timestamp DESC, id DESC")

    def search(self, query: str) -> List[HistoryEntry]:
        # Same folding as the in-memory store; LIKE would only fold ASCII
        return self._query(
            "SELECT timestamp, calculation FROM history WHERE instr(casefold(calculation), ?) > 0 "
            "ORDER BY timestamp DESC, id DESC",
            (_casefold(query),),
        )

    def clear(self) -> None:
        with closing(self._connect()) as conn, conn:
            conn.execute("DELETE FROM history")


class BackgroundHistoryWriter:
    """
    Fire-and-forget wrapper around a history store.

    Appends are queued on a single worker thread, so writes reach the store in
    submission order and never block the caller. A failed write is logged and
    dropped. Reads go straight to the wrapped store; clear runs after the
    appends already queued.
    """

    def __init__(self, store: HistoryStore) -> None:
        self.store = store
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="history-writer")

    def append(self, entry: HistoryEntry) -> Future:
        future = self._executor.submit(self.store.append, entry)
        future.add_done_callback(self._report_failure)
        return future

    @staticmethod
    def _report_failure(future: Future) -> None:
        exc = future.exception()
        if exc is not None:
            logger.error(f"💾❌ Could not save history entry: {exc}")

    def list_all(self) -> List[HistoryEntry]:
        return self.store.list_all()

    def search(self, query: str) -> List[HistoryEntry]:
        return self.store.search(query)

    def clear(self) -> None:
        # Queued behind pending appends so none of them lands after the wipe
        self._executor.submit(self.store.clear).result()

    def close(self) -> None:
        """Wait for queued writes to finish and stop the worker thread."""
        self._executor.shutdown(wait=True)

    def __enter__(self) -> "BackgroundHistoryWriter":
        return self

    def __exit__(self, *args) -> None:
        self.close()
