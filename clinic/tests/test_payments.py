from decimal import Decimal

import pytest

from clinic.exceptions import AlreadyPaidError, InvalidTransitionError
from clinic.models import Appointment, Consultation, LabTestRequest, Notification, Payment, Prescription
from clinic.services import payments
from clinic.services.payments import has_paid, patient_pays

pytestmark = pytest.mark.django_db


# ---------------------------------------------------------------------
# Pure helpers
# ---------------------------------------------------------------------
@pytest.mark.parametrize('amount,coverage,expected', [
    (1000, 80, 200),
    (1000, 100, 0),
    (5000, 50, 2500),
    (1000, 0, 1000),
    (0, 80, 0),
])
def test_patient_pays_applies_coverage(amount, coverage, expected):
    assert patient_pays(amount, {'coverage_percentage': coverage}) == expected
    assert patient_pays(amount, {'coverage_percentage': coverage}) == amount - amount * coverage / 100


def test_patient_pays_without_insurance_is_full_amount():
    assert patient_pays(1000, None) == 1000
    assert patient_pays(1000) == 1000


def test_patient_pays_with_decimal_model_values():
    class Ins:
        coverage_percentage = Decimal('80.00')
    assert patient_pays(Decimal('10000.00'), Ins()) == Decimal('2000')


@pytest.mark.parametrize('amount,coverage', [(-1, 50), (100, -5), (100, 101)])
def test_patient_pays_rejects_out_of_range(amount, coverage):
    with pytest.raises(ValueError):
        patient_pays(amount, {'coverage_percentage': coverage})


def test_has_paid():
    assert has_paid([]) is False
    assert has_paid([{'status': 'pending'}]) is False
    assert has_paid([{'status': 'completed'}]) is True
    assert has_paid([{'status': 'failed'}, {'status': 'completed'}]) is True
    assert has_paid(['failed']) is False


def test_format_amount():
    assert payments.format_amount(Decimal('5000.00')) == '5,000'
    assert payments.format_amount(Decimal('12.50')) == '12.50'


def test_transaction_ids_are_unique_and_prefixed():
    a, b = payments.generate_transaction_id(), payments.generate_transaction_id()
    assert a.startswith('TXN') and a != b
    assert a == a.upper()


# ---------------------------------------------------------------------
# record_payment
# ---------------------------------------------------------------------

def test_consultation_payment_without_insurance(patient, make_appointment, django_capture_on_commit_callbacks):
    appt = make_appointment(patient, status=Appointment.STATUS_APPROVED)
    with django_capture_on_commit_callbacks(execute=True):
        p = payments.record_payment(patient, payment_type='consultation', reference_id=appt.pk)
    assert p.amount == Decimal('5000') and p.patient_pays == Decimal('5000')
    assert p.insurance_coverage == 0
    assert p.status == Payment.STATUS_COMPLETED
    assert p.transaction_id.startswith('TXN')
    assert payments.payment_exists('consultation', appt.pk)
    n = Notification.objects.get(user=patient, title='Payment Successful')
    assert n.message == 'Your payment of 5,000 RWF has been processed successfully.'
    # Consultation payment only unlocks; the appointment stays approved
    appt.refresh_from_db()
    assert appt.status == Appointment.STATUS_APPROVED


def test_payment_requires_approved_appointment(patient, make_appointment):
    appt = make_appointment(patient)
    with pytest.raises(InvalidTransitionError):
        payments.record_payment(patient, payment_type='consultation', reference_id=appt.pk)
    assert not Payment.objects.exists()


def test_second_payment_is_refused(patient, make_appointment):
    appt = make_appointment(patient, status=Appointment.STATUS_APPROVED, paid=True)
    with pytest.raises(AlreadyPaidError):
        payments.record_payment(patient, payment_type='consultation', reference_id=appt.pk)
    assert Payment.objects.count() == 1


def test_failed_payment_does_not_count(patient, make_appointment):
    appt = make_appointment(patient, status=Appointment.STATUS_APPROVED)
    payments.record_payment(patient, payment_type='consultation', reference_id=appt.pk, status='failed')
    assert not payments.payment_exists('consultation', appt.pk)
    # A later successful payment is still accepted
    payments.record_payment(patient, payment_type='consultation', reference_id=appt.pk)
    assert payments.payment_exists('consultation', appt.pk)


def test_mismatched_amount_is_rejected(patient, make_appointment):
    appt = make_appointment(patient, status=Appointment.STATUS_APPROVED)
    with pytest.raises(ValueError):
        payments.record_payment(patient, payment_type='consultation', reference_id=appt.pk, amount=100)


def test_cannot_pay_for_someone_else(patient, insured_patient, make_appointment):
    appt = make_appointment(patient, status=Appointment.STATUS_APPROVED)
    with pytest.raises(PermissionError):
        payments.record_payment(insured_patient, payment_type='consultation', reference_id=appt.pk)


def test_medication_payment_advances_prescription(patient, doctor, medication, make_appointment):
    appt = make_appointment(patient, status=Appointment.STATUS_COMPLETED, paid=True)
    consultation = Consultation.objects.create(appointment=appt, patient=patient, doctor=doctor, diagnosis='flu')
    rx = Prescription.objects.create(
        consultation=consultation, patient=patient, doctor=doctor, medication=medication,
        quantity=4, dosage='1x3', status=Prescription.STATUS_APPROVED,
        unit_price=Decimal('250'), total_price=Decimal('1000'),
    )
    p = payments.record_payment(patient, payment_type='medication', reference_id=rx.pk)
    rx.refresh_from_db()
    assert rx.status == Prescription.STATUS_PAID
    assert p.amount == Decimal('1000')


def test_lab_payment_with_insurance_splits_amount(insured_patient, doctor, lab_template, make_appointment):
    appt = make_appointment(insured_patient, status=Appointment.STATUS_COMPLETED, paid=True)
    consultation = Consultation.objects.create(appointment=appt, patient=insured_patient, doctor=doctor,
                                               diagnosis='anemia', requires_lab_test=True)
    req = LabTestRequest.objects.create(consultation=consultation, patient=insured_patient, doctor=doctor,
                                        hospital=appt.hospital, lab_test_template=lab_template,
                                        total_price=lab_template.price)
    p = payments.record_payment(insured_patient, payment_type='lab_test', reference_id=req.pk)
    assert p.amount == Decimal('10000')
    assert p.insurance_coverage == Decimal('8000')
    assert p.patient_pays == Decimal('2000')
    req.refresh_from_db()
    # Payment alone does not move the request
    assert req.status == LabTestRequest.STATUS_AWAITING_PAYMENT
