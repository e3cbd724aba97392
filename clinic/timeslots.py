"""
Pure time-slot helpers shared by the server and the REST client.

No Django imports here: :mod:`clinic.client` runs outside a configured
project.
"""
from __future__ import annotations

from datetime import date, datetime, time
from typing import Iterable, List, Union


def normalize_slot(value: Union[str, time]) -> str:
    """``'09:00:00'`` / ``'9:00'`` / ``time(9, 0)`` -> ``'09:00'``.

    Raises ``ValueError`` for anything that is not a clock time.
    """
    if isinstance(value, time):
        return value.strftime('%H:%M')
    parts = str(value).strip().split(':')
    if len(parts) not in (2, 3) or not all(p.isdigit() for p in parts):
        raise ValueError(f'Invalid time: {value!r}.')
    return time(*(int(p) for p in parts)).strftime('%H:%M')


def parse_slot(value: Union[str, time]) -> time:
    return datetime.strptime(normalize_slot(value), '%H:%M').time()


def as_date(value: Union[str, date]) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value))


def filter_past_slots(slots: Iterable[Union[str, time]], on_date: Union[str, date], now: datetime) -> List[str]:
    """Normalize and sort ``slots``; if ``on_date`` is today keep only times after ``now``."""
    normalized = sorted({normalize_slot(s) for s in slots})
    if as_date(on_date) != now.date():
        return normalized
    current = now.time()
    return [s for s in normalized if parse_slot(s) > current]
