from datetime import date, datetime, time

import pytest

from clinic.exceptions import NotFoundError
from clinic.models import Appointment
from clinic.services import slots
from clinic.tests.conftest import BOOKING_DATE
from clinic.timeslots import filter_past_slots, normalize_slot

pytestmark = pytest.mark.django_db


def test_today_keeps_only_future_slots():
    now = datetime(2024, 12, 30, 10, 30)
    assert filter_past_slots(['09:00', '10:00', '14:00'], date(2024, 12, 30), now) == ['14:00']


def test_slot_equal_to_now_is_dropped():
    now = datetime(2024, 12, 30, 10, 0)
    assert filter_past_slots(['10:00', '10:30'], '2024-12-30', now) == ['10:30']


def test_other_days_keep_everything_sorted():
    now = datetime(2024, 12, 30, 10, 30)
    assert filter_past_slots(['14:00', '09:00', '10:00'], date(2024, 12, 31), now) == ['09:00', '10:00', '14:00']


def test_seconds_are_normalized_away():
    assert normalize_slot('09:30:00') == '09:30'
    assert normalize_slot(time(14, 0)) == '14:00'
    now = datetime(2024, 12, 30, 8, 0)
    assert filter_past_slots(['09:00:00', '09:00'], date(2024, 12, 31), now) == ['09:00']


@pytest.mark.parametrize('raw', ['9:00', '9:00:00', ' 09:00 ', '09:00:00'])
def test_unpadded_hours_are_zero_padded(raw):
    assert normalize_slot(raw) == '09:00'


@pytest.mark.parametrize('raw', ['', '9', '09-00', '25:00', '09:61', 'ab:cd'])
def test_garbage_times_raise(raw):
    with pytest.raises(ValueError):
        normalize_slot(raw)


def test_default_working_grid(doctor, frozen_now):
    result = slots.available_slots(doctor.pk, BOOKING_DATE)
    assert result[0] == '08:00'
    assert result[-1] == '16:30'
    assert '12:00' not in result and '12:30' not in result
    assert len(result) == 16


def test_custom_working_hours(doctor, frozen_now):
    doctor.working_hours = [{'start': '09:00', 'end': '10:00'}]
    doctor.slot_minutes = 20
    doctor.save()
    assert slots.available_slots(doctor.pk, BOOKING_DATE) == ['09:00', '09:20', '09:40']


def test_day_off_has_no_slots(doctor, frozen_now):
    assert slots.available_slots(doctor.pk, date(2025, 1, 4)) == []  # Saturday


def test_booked_slots_are_excluded(doctor, patient, insured_patient, make_appointment, frozen_now):
    make_appointment(patient, at=time(10, 0))
    make_appointment(insured_patient, status=Appointment.STATUS_REJECTED, at=time(11, 0))
    result = slots.available_slots(doctor.pk, BOOKING_DATE)
    assert '10:00' not in result
    # A rejected appointment frees its slot
    assert '11:00' in result


def test_today_hides_elapsed_slots(doctor, frozen_now):
    result = slots.available_slots(doctor.pk, frozen_now.date())
    assert result[0] == '09:30'


def test_past_date_has_no_slots(doctor, frozen_now):
    assert slots.available_slots(doctor.pk, date(2024, 12, 1)) == []


def test_unknown_doctor():
    with pytest.raises(NotFoundError):
        slots.available_slots(999, BOOKING_DATE)


def test_endpoint(api, patient, doctor, frozen_now):
    client = api(patient)
    r = client.get(f'/api/appointments/available/{doctor.pk}/{BOOKING_DATE.isoformat()}')
    assert r.status_code == 200
    assert r.json()[:2] == ['08:00', '08:30']

    r = client.get(f'/api/appointments/available/999/{BOOKING_DATE.isoformat()}')
    assert r.status_code == 404
    assert r.json()['error'] == 'Doctor not found.'

    r = client.get(f'/api/appointments/available/{doctor.pk}/31-12-2024')
    assert r.status_code == 400
