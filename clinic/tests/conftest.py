from datetime import date, datetime, time
from decimal import Decimal

import pytest
from django.core.cache import cache
from django.utils import timezone
from rest_framework.test import APIClient

from clinic.models import (
    Appointment,
    Department,
    Doctor,
    Hospital,
    Insurance,
    LabTestTemplate,
    Medication,
    Payment,
    Pharmacy,
    User,
)
from clinic.services import slots

BOOKING_DATE = date(2024, 12, 31)  # a Tuesday


@pytest.fixture(autouse=True)
def _clear_cache():
    # Throttle counters and catalog lists live in the cache
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def frozen_now(monkeypatch):
    """Pin the hospital clock to Monday 2024-12-30 09:00."""
    now = timezone.make_aware(datetime(2024, 12, 30, 9, 0))
    monkeypatch.setattr(slots, 'local_now', lambda: now)
    return now


def make_user(email, role, **extra):
    extra.setdefault('full_name', email.split('@')[0].title())
    return User.objects.create_user(username=email, email=email, password='P@ssw0rd1', role=role, **extra)


@pytest.fixture
def hospital(db):
    return Hospital.objects.create(name='Kigali Hospital', location='Kigali', consultation_fee=Decimal('5000'))


@pytest.fixture
def other_hospital(db):
    return Hospital.objects.create(name='Butaro Hospital', location='Burera', consultation_fee=Decimal('3000'))


@pytest.fixture
def department(db):
    return Department.objects.create(name='General Medicine')


@pytest.fixture
def doctor(hospital, department):
    user = make_user('doctor@example.com', 'doctor', full_name='Jane Doctor')
    return Doctor.objects.create(
        user=user, hospital=hospital, department=department,
        specialization='General', license_number='LIC-1', signature_data='data:image/png;base64,SIG',
    )


@pytest.fixture
def other_doctor(hospital, department):
    user = make_user('doctor2@example.com', 'doctor')
    return Doctor.objects.create(user=user, hospital=hospital, department=department, license_number='LIC-2')


@pytest.fixture
def nurse(hospital):
    return make_user('nurse@example.com', 'nurse', hospital=hospital)


@pytest.fixture
def lab_tech(hospital):
    return make_user('lab@example.com', 'lab_technician', hospital=hospital)


@pytest.fixture
def pharmacist(db):
    return make_user('pharmacist@example.com', 'pharmacist')


@pytest.fixture
def pharmacy(pharmacist):
    return Pharmacy.objects.create(name='Pharmacie Conseil', location='Kigali', pharmacist=pharmacist)


@pytest.fixture
def admin_user(db):
    return make_user('admin@example.com', 'admin')


@pytest.fixture
def patient(db):
    return make_user('patient@example.com', 'patient', full_name='Pat Patient')


@pytest.fixture
def insurance80(db):
    return Insurance.objects.create(name='RSSB', coverage_percentage=Decimal('80'))


@pytest.fixture
def insured_patient(insurance80):
    return make_user('insured@example.com', 'patient', insurance=insurance80)


@pytest.fixture
def lab_template(db):
    return LabTestTemplate.objects.create(name='Complete Blood Count', price=Decimal('10000'))


@pytest.fixture
def lab_template2(db):
    return LabTestTemplate.objects.create(name='Malaria Rapid Test', price=Decimal('3000'))


@pytest.fixture
def medication(db):
    return Medication.objects.create(name='Amoxicillin 500mg', unit_price=Decimal('250'))


@pytest.fixture
def medication2(db):
    return Medication.objects.create(name='Paracetamol 500mg', unit_price=Decimal('100'))


@pytest.fixture
def api():
    """Return an APIClient authenticated as ``user`` (or anonymous)."""
    def _client(user=None):
        client = APIClient()
        if user is not None:
            client.force_authenticate(user=user)
        return client
    return _client


@pytest.fixture
def make_appointment(doctor):
    """Create an appointment directly, optionally approved and paid."""
    def _make(patient, *, status=Appointment.STATUS_PENDING, paid=False, at=time(10, 0), on=BOOKING_DATE):
        appt = Appointment.objects.create(
            patient=patient, doctor=doctor, hospital=doctor.hospital, department=doctor.department,
            appointment_date=on, appointment_time=at, status=status,
            consultation_fee=doctor.hospital.consultation_fee,
        )
        if status != Appointment.STATUS_PENDING:
            appt.weight, appt.temperature = 70, 37
            appt.save()
        if paid:
            Payment.objects.create(
                patient=patient, payment_type=Payment.TYPE_CONSULTATION, reference_id=appt.pk,
                amount=appt.consultation_fee, patient_pays=appt.consultation_fee,
                transaction_id=f'TXN-TEST-{appt.pk}',
            )
        return appt
    return _make
