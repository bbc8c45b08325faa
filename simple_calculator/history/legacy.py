"""Import history saved by the preference-based format of earlier releases."""
from typing import Callable

from simple_calculator.common.logger import logger
from simple_calculator.common.models import MAX_TIMESTAMP, HistoryEntry, now_millis
from simple_calculator.history.store import HistoryStore


LEGACY_ITEM_SEPARATOR = "|||"
LEGACY_FIELD_SEPARATOR = ";"


def parse_legacy_item(item: str, clock: Callable[[], int] = now_millis) -> HistoryEntry:
    """
    Parse one legacy "<timestamp>;<calculation>" item.

    An unreadable or out-of-range timestamp is replaced by the current time;
    an item without a separator is kept whole as the calculation.

    :param str item: Legacy history item
    :param Callable clock: Source of the fallback timestamp in epoch milliseconds

    :return: Parsed history entry
    :rtype: HistoryEntry
    """
    raw_timestamp, separator, calculation = item.partition(LEGACY_FIELD_SEPARATOR)
    if not separator:
        calculation = item

    try:
        timestamp = int(raw_timestamp)
    except ValueError:
        timestamp = clock()

    if not 0 <= timestamp <= MAX_TIMESTAMP:
        timestamp = clock()

    return HistoryEntry(timestamp=timestamp, calculation=calculation)


def import_legacy_history(store: HistoryStore, raw: str, clock: Callable[[], int] = now_millis) -> int:
    """
    Copy every item of a legacy history blob into a history store.

    :param HistoryStore store: Destination store
    :param str raw: Items joined with "|||"
    :param Callable clock: Source of fallback timestamps

    :return: Number of imported entries
    :rtype: int
    """
    items = [item for item in raw.split(LEGACY_ITEM_SEPARATOR) if item]
    for item in items:
        store.append(parse_legacy_item(item, clock))

    logger.info(f"📥 Imported {len(items)} legacy history entries")
    return len(items)
