"""
Bookable time slots for a doctor on a given date.

The grid comes from the doctor's working days/hours and slot length
(falling back to the project defaults).  Slots already taken by a
pending, approved or completed appointment are removed, and for today
only times strictly after the current wall-clock time are kept.
"""
from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import Iterable, List, Optional, Union

from django.conf import settings
from django.utils import timezone

from clinic.exceptions import NotFoundError
from clinic.models import Appointment, Doctor
from clinic.timeslots import as_date, normalize_slot, parse_slot
from clinic import timeslots

__all__ = [
    'as_date', 'available_slots', 'booked_slots', 'filter_past_slots', 'local_now',
    'normalize_slot', 'parse_slot', 'working_slots',
]


def local_now() -> datetime:
    """Current time in the hospital's timezone."""
    return timezone.localtime(timezone.now())


def filter_past_slots(slots: Iterable[Union[str, time]], on_date: Union[str, date],
                      now: Optional[datetime] = None) -> List[str]:
    """Normalize and sort ``slots``; for today drop those not after ``now``."""
    return timeslots.filter_past_slots(slots, on_date, now or local_now())


def working_slots(doctor: Doctor, on_date: date) -> List[str]:
    """The doctor's full slot grid for ``on_date`` (empty on days off)."""
    days = doctor.working_days or settings.HMS_DEFAULT_WORKING_DAYS
    if on_date.weekday() not in days:
        return []
    windows = doctor.working_hours or settings.HMS_DEFAULT_WORKING_HOURS
    step = timedelta(minutes=doctor.slot_minutes or settings.HMS_DEFAULT_SLOT_MINUTES)

    grid: List[str] = []
    for window in windows:
        start = datetime.combine(on_date, parse_slot(window['start']))
        end = datetime.combine(on_date, parse_slot(window['end']))
        t = start
        while t + step <= end:
            grid.append(t.strftime('%H:%M'))
            t += step
    return grid


def booked_slots(doctor_id: int, on_date: date) -> set:
    times = Appointment.objects.filter(
        doctor_id=doctor_id,
        appointment_date=on_date,
        status__in=Appointment.BOOKED_STATUSES,
    ).values_list('appointment_time', flat=True)
    return {normalize_slot(t) for t in times}


def available_slots(doctor_id: int, on_date: Union[str, date], now: Optional[datetime] = None) -> List[str]:
    """Ordered ``HH:MM`` strings still bookable with ``doctor_id`` on ``on_date``.

    Raises :class:`NotFoundError` for an unknown doctor.  An empty list
    means nothing can be booked that day.
    """
    doctor = Doctor.objects.filter(pk=doctor_id).first()
    if doctor is None:
        raise NotFoundError('Doctor not found.')
    on_date = as_date(on_date)
    now = now or local_now()
    if on_date < now.date():
        return []
    taken = booked_slots(doctor.pk, on_date)
    free = [s for s in working_slots(doctor, on_date) if s not in taken]
    return filter_past_slots(free, on_date, now)
