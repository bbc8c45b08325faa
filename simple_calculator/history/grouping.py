"""Group and label history entries by calendar day."""
from datetime import date, datetime, timedelta
from typing import Dict, Iterable, List, Optional

from simple_calculator.common.models import HistoryEntry


def entry_day(entry: HistoryEntry) -> date:
    """Local calendar day on which an entry was recorded."""
    return datetime.fromtimestamp(entry.timestamp / 1000).date()


def filter_by_day(entries: Iterable[HistoryEntry], day: Optional[date]) -> List[HistoryEntry]:
    """
    Keep the entries recorded on a given day, or all of them when no day is given.

    :param Iterable[HistoryEntry] entries: Entries to filter
    :param Optional[date] day: Day to keep

    :return: Matching entries, in their original order
    :rtype: List[HistoryEntry]
    """
    if day is None:
        return list(entries)
    return [entry for entry in entries if entry_day(entry) == day]


def group_by_day(entries: Iterable[HistoryEntry]) -> Dict[date, List[HistoryEntry]]:
    """
    Bucket entries per day, most recent day first.

    :param Iterable[HistoryEntry] entries: Entries, usually newest first

    :return: Mapping of day to the entries of that day, in input order
    :rtype: Dict[date, List[HistoryEntry]]
    """
    groups: Dict[date, List[HistoryEntry]] = {}
    for entry in entries:
        groups.setdefault(entry_day(entry), []).append(entry)
    return dict(sorted(groups.items(), reverse=True))


def format_day(day: date) -> str:
    """Render a day as "Saturday, Oct 17, 2026"."""
    return f"{day:%A}, {day:%b} {day.day}, {day.year}"


def day_header(day: date, today: Optional[date] = None) -> str:
    """
    Build the heading shown above the entries of one day.

    :param date day: Day of the group
    :param Optional[date] today: Reference day, the current date by default

    :return: "Today (...)", "Yesterday (...)" or the plain formatted day
    :rtype: str
    """
    today = today or date.today()
    if day == today:
        return f"Today ({format_day(day)})"
    if day == today - timedelta(days=1):
        return f"Yesterday ({format_day(day)})"
    return format_day(day)
