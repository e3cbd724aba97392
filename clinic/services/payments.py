"""
Payment gate.

``patient_pays`` and ``has_paid`` are the single implementation of the
insurance split and the "is this paid" check used by every payment type.
``record_payment`` stores a payment for an appointment (consultation
fee), a lab test request or a prescription.  The amount due is always
derived from the referenced record, never trusted from the client.
"""
from __future__ import annotations

import logging
import secrets
import time
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Mapping, Optional, Union

from django.conf import settings
from django.db import transaction

from clinic.exceptions import AlreadyPaidError, InvalidTransitionError
from clinic.models import Appointment, LabTestRequest, Payment, Prescription, User
from clinic.services.audit import log_action
from clinic.services.common import lock_or_404
from clinic.services.notifications import notify

logger = logging.getLogger(__name__)

Number = Union[int, float, Decimal]

CENTS = Decimal('0.01')

REFERENCE_MODELS = {
    Payment.TYPE_CONSULTATION: (Appointment, 'Appointment'),
    Payment.TYPE_LAB_TEST: (LabTestRequest, 'Lab test request'),
    Payment.TYPE_MEDICATION: (Prescription, 'Prescription'),
}


def _coverage_of(insurance) -> Optional[Number]:
    if insurance is None:
        return None
    if isinstance(insurance, Mapping):
        return insurance.get('coverage_percentage')
    if isinstance(insurance, (int, float, Decimal)):
        return insurance
    return getattr(insurance, 'coverage_percentage', None)


def patient_pays(amount: Number, insurance=None) -> Number:
    """Return what the patient owes for ``amount`` after insurance.

    ``insurance`` may be an :class:`~clinic.models.Insurance`, a mapping
    with ``coverage_percentage``, a bare percentage or ``None``.  Without
    insurance the full amount is due.
    """
    if amount < 0:
        raise ValueError('amount must not be negative')
    coverage = _coverage_of(insurance)
    if coverage is None:
        return amount
    if not 0 <= coverage <= 100:
        raise ValueError('coverage_percentage must be between 0 and 100')
    if isinstance(amount, Decimal) or isinstance(coverage, Decimal):
        amount, coverage = Decimal(str(amount)), Decimal(str(coverage))
    due = amount - amount * coverage / 100
    return min(max(due, 0), amount)


def _status_of(payment) -> Optional[str]:
    if isinstance(payment, str):
        return payment
    if isinstance(payment, Mapping):
        return payment.get('status')
    return getattr(payment, 'status', None)


def has_paid(payments: Iterable) -> bool:
    """True when at least one of ``payments`` is completed."""
    return any(_status_of(p) == Payment.STATUS_COMPLETED for p in payments)


def payment_exists(payment_type: str, reference_id: int) -> bool:
    return Payment.objects.filter(
        payment_type=payment_type, reference_id=reference_id, status=Payment.STATUS_COMPLETED
    ).exists()


def payments_for(payment_type: str, reference_id: int):
    return Payment.objects.filter(payment_type=payment_type, reference_id=reference_id).order_by('-created_at')


def format_amount(value: Number) -> str:
    """``5000`` -> ``'5,000'``; keeps cents only when there are any."""
    value = Decimal(str(value))
    if value == value.to_integral_value():
        return f'{value:,.0f}'
    return f'{value:,.2f}'


def generate_transaction_id() -> str:
    return f'TXN{int(time.time() * 1000)}{secrets.token_hex(4).upper()}'


def amount_due(payment_type: str, target) -> Decimal:
    if payment_type == Payment.TYPE_CONSULTATION:
        return target.consultation_fee
    if payment_type == Payment.TYPE_LAB_TEST:
        return target.total_price
    return target.total_price or Decimal('0')


def _ensure_payable(payment_type: str, target) -> None:
    if payment_type == Payment.TYPE_CONSULTATION and target.status != Appointment.STATUS_APPROVED:
        raise InvalidTransitionError('The appointment must be approved before the consultation fee can be paid.')
    if payment_type == Payment.TYPE_LAB_TEST and target.status != LabTestRequest.STATUS_AWAITING_PAYMENT:
        raise InvalidTransitionError('This lab test is not awaiting payment.')
    if payment_type == Payment.TYPE_MEDICATION and target.status != Prescription.STATUS_APPROVED:
        raise InvalidTransitionError('The prescription must be approved by a pharmacist before payment.')


def record_payment(payer: User, *, payment_type: str, reference_id: int, amount: Optional[Number] = None,
                   payment_method: str = 'mobile_money', phone_number: str = '',
                   status: str = Payment.STATUS_COMPLETED, transaction_id: Optional[str] = None) -> Payment:
    """Store a payment for the referenced record and apply its side effects.

    A completed medication payment advances the prescription to ``paid``.
    Consultation and lab test payments only unlock the next explicit
    transition.
    """
    if payment_type not in REFERENCE_MODELS:
        raise ValueError(f'Unknown payment type: {payment_type}')
    model, label = REFERENCE_MODELS[payment_type]

    with transaction.atomic():
        target = lock_or_404(model, reference_id, label)
        if payer.role != 'admin' and target.patient_id != payer.pk:
            raise PermissionError('You can only pay for your own records.')
        if payment_exists(payment_type, target.pk):
            raise AlreadyPaidError()
        _ensure_payable(payment_type, target)

        due = Decimal(amount_due(payment_type, target)).quantize(CENTS)
        if amount is not None and Decimal(str(amount)).quantize(CENTS) != due:
            raise ValueError(f'Amount does not match the amount due ({format_amount(due)} {settings.HMS_CURRENCY}).')

        patient = target.patient
        pays = Decimal(patient_pays(due, patient.insurance)).quantize(CENTS, rounding=ROUND_HALF_UP)
        payment = Payment.objects.create(
            patient=patient,
            payment_type=payment_type,
            reference_id=target.pk,
            amount=due,
            insurance_coverage=due - pays,
            patient_pays=pays,
            status=status,
            payment_method=payment_method,
            phone_number=phone_number or '',
            transaction_id=transaction_id or generate_transaction_id(),
        )

        if status == Payment.STATUS_COMPLETED and payment_type == Payment.TYPE_MEDICATION:
            target.status = Prescription.STATUS_PAID
            target.save(update_fields=['status', 'updated_at'])

        log_action(user=payer, action='payment', object_type=payment_type, object_id=target.pk,
                   detail={'transaction_id': payment.transaction_id, 'status': status,
                           'amount': str(due), 'patient_pays': str(pays)})
        logger.info('payment %s %s:%s status=%s', payment.transaction_id, payment_type, target.pk, status)

        if status == Payment.STATUS_COMPLETED:
            notify(patient, 'Payment Successful',
                   f'Your payment of {format_amount(pays)} {settings.HMS_CURRENCY} has been processed successfully.',
                   'payment', payment.pk)
    return payment
