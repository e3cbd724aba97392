"""
Prescription authoring and the pharmacy sub-lifecycle.

    pending  -> approved | rejected   (pharmacist prices or rejects)
    approved -> paid | rejected       (medication payment / pharmacist)
    paid     -> completed             (pharmacist dispenses)

One row is created per medication line.
"""
from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from typing import Iterable, List, Mapping, Optional

from django.conf import settings
from django.db import transaction
from django.db.models import QuerySet
from django.utils import timezone

from clinic.exceptions import (
    DomainValidationError,
    EmptyPrescriptionError,
    InvalidTransitionError,
    MissingDosageError,
    NotFoundError,
    PaymentRequiredError,
    RejectionReasonRequiredError,
    SignatureRequiredError,
)
from clinic.models import Appointment, Consultation, Medication, Payment, Pharmacy, Prescription, User
from clinic.services import appointments, payments
from clinic.services.audit import log_action
from clinic.services.common import clean_text, get_or_404, lock_or_404
from clinic.services.notifications import notify

logger = logging.getLogger(__name__)


def can_transition(current: str, new: str) -> bool:
    transitions = {
        Prescription.STATUS_PENDING: [Prescription.STATUS_APPROVED, Prescription.STATUS_REJECTED],
        Prescription.STATUS_APPROVED: [Prescription.STATUS_PAID, Prescription.STATUS_REJECTED],
        Prescription.STATUS_PAID: [Prescription.STATUS_COMPLETED],
        Prescription.STATUS_COMPLETED: [],
        Prescription.STATUS_REJECTED: [],
    }
    return new in transitions.get(current, [])


def _ensure_transition(rx: Prescription, new: str) -> None:
    if not can_transition(rx.status, new):
        raise InvalidTransitionError(f'Cannot change prescription from {rx.status} to {new}.')


def visible_prescriptions(user: User) -> QuerySet:
    qs = Prescription.objects.select_related('medication', 'patient', 'doctor__user', 'pharmacy')
    if user.role == 'patient':
        return qs.filter(patient=user)
    if user.role == 'doctor':
        return qs.filter(doctor__user=user)
    if user.role == 'pharmacist':
        return qs.filter(pharmacy__pharmacist=user)
    if user.role == 'admin':
        return qs
    return qs.none()


def _medication_name(rx: Prescription) -> str:
    return rx.medication.name if rx.medication_id else 'medication'


def validate_items(items: Optional[Iterable[Mapping]]) -> List[dict]:
    """Check prescription lines before anything is written."""
    items = list(items or [])
    if not items:
        raise EmptyPrescriptionError()
    lines: List[dict] = []
    seen = set()
    for item in items:
        dosage = clean_text(item.get('dosage'))
        if not dosage:
            raise MissingDosageError()
        medication_id = item.get('medication_id')
        if medication_id in seen:
            raise DomainValidationError('Medication already added.')
        seen.add(medication_id)
        lines.append({
            'medication_id': medication_id,
            'quantity': item.get('quantity') or 1,
            'dosage': dosage,
            'instructions': clean_text(item.get('instructions')),
        })
    return lines


def create_prescriptions(actor: User, *, consultation_id: int, items: Iterable[Mapping],
                         signature_data: Optional[str] = None, notes: Optional[str] = None) -> List[Prescription]:
    """Create one pending prescription per line and complete the appointment.

    Medications already prescribed under this consultation are skipped.
    """
    lines = validate_items(items)
    medications = Medication.objects.in_bulk([line['medication_id'] for line in lines])
    for line in lines:
        if line['medication_id'] not in medications:
            raise NotFoundError(f"Medication not found: {line['medication_id']}.")

    with transaction.atomic():
        consultation = lock_or_404(Consultation, consultation_id, 'Consultation')
        doctor = consultation.doctor
        if actor.role != 'admin' and doctor.user_id != actor.pk:
            raise PermissionError('Only the consulting doctor can prescribe.')
        signature = (signature_data or '').strip()
        if not signature:
            raise SignatureRequiredError()

        appt = lock_or_404(Appointment, consultation.appointment_id, 'Appointment')
        already = set(
            consultation.prescriptions.exclude(status=Prescription.STATUS_REJECTED)
            .values_list('medication_id', flat=True)
        )
        notes = clean_text(notes)
        created: List[Prescription] = []
        for line in lines:
            if line['medication_id'] in already:
                continue
            created.append(Prescription.objects.create(
                consultation=consultation,
                patient_id=consultation.patient_id,
                doctor=doctor,
                medication=medications[line['medication_id']],
                quantity=line['quantity'],
                dosage=line['dosage'],
                instructions=line['instructions'],
                notes=notes,
                signature_data=signature,
            ))

        if not consultation.requires_prescription:
            consultation.requires_prescription = True
            consultation.save(update_fields=['requires_prescription', 'updated_at'])
        if appt.status == Appointment.STATUS_APPROVED:
            appointments.complete_locked(actor, appt, consultation)

        if created:
            notify(consultation.patient_id, 'New Prescriptions Available',
                   f'Dr. {doctor.user.display_name} has prescribed {len(created)} medication(s). '
                   'Please choose a pharmacy.',
                   'prescription', consultation.pk)
        log_action(user=actor, action='prescription_create', object_type='consultation', object_id=consultation.pk,
                   detail={'prescriptions': [p.pk for p in created]})
    return created


def _ensure_pharmacist(actor: User, rx: Prescription) -> None:
    if actor.role == 'admin':
        return
    if actor.role != 'pharmacist' or rx.pharmacy is None or rx.pharmacy.pharmacist_id != actor.pk:
        raise PermissionError('This prescription was not sent to your pharmacy.')


def _to_decimal(value, field: str) -> Decimal:
    try:
        d = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise DomainValidationError(f'{field} must be a number.')
    if not d.is_finite() or d < 0:
        raise DomainValidationError(f'{field} must be a non-negative number.')
    return d.quantize(payments.CENTS)


def select_pharmacy(actor: User, prescription_id: int, *, pharmacy_id: int) -> Prescription:
    pharmacy = get_or_404(Pharmacy, pharmacy_id, 'Pharmacy')
    with transaction.atomic():
        rx = lock_or_404(Prescription, prescription_id, 'Prescription')
        if actor.role != 'admin' and rx.patient_id != actor.pk:
            raise PermissionError('You can only choose a pharmacy for your own prescriptions.')
        if rx.status != Prescription.STATUS_PENDING:
            raise InvalidTransitionError('A pharmacy can only be chosen while the prescription is pending.')
        rx.pharmacy = pharmacy
        rx.save(update_fields=['pharmacy', 'updated_at'])
        if pharmacy.pharmacist_id:
            notify(pharmacy.pharmacist_id, 'New Prescription',
                   f'{rx.patient.display_name} sent a prescription for {_medication_name(rx)}.',
                   'prescription', rx.pk)
        log_action(user=actor, action='prescription_pharmacy', object_type='prescription', object_id=rx.pk,
                   detail={'pharmacy': pharmacy.pk})
    return rx


def approve_prescription(actor: User, prescription_id: int, *, unit_price=None, total_price=None) -> Prescription:
    with transaction.atomic():
        rx = lock_or_404(Prescription, prescription_id, 'Prescription')
        _ensure_pharmacist(actor, rx)
        _ensure_transition(rx, Prescription.STATUS_APPROVED)
        if not rx.medication_id:
            raise EmptyPrescriptionError('Prescription contains no medication and can only be rejected.')

        unit = _to_decimal(unit_price, 'unit_price') if unit_price is not None else rx.medication.unit_price
        total = (unit * rx.quantity).quantize(payments.CENTS)
        if total_price is not None and _to_decimal(total_price, 'total_price') != total:
            raise DomainValidationError('total_price must equal unit_price × quantity.')

        rx.unit_price = unit
        rx.total_price = total
        rx.pharmacist = actor
        rx.pharmacist_approved_at = timezone.now()
        rx.status = Prescription.STATUS_APPROVED
        rx.save()
        notify(rx.patient_id, 'Prescription Approved',
               f'Your prescription for {_medication_name(rx)} has been approved. '
               f'Total: {payments.format_amount(total)} {settings.HMS_CURRENCY}. Please proceed with payment.',
               'prescription', rx.pk)
        log_action(user=actor, action='prescription_approve', object_type='prescription', object_id=rx.pk,
                   detail={'unit_price': str(unit), 'total_price': str(total)})
    return rx


def reject_prescription(actor: User, prescription_id: int, *, reason: Optional[str]) -> Prescription:
    reason = clean_text(reason)
    if not reason:
        raise RejectionReasonRequiredError()
    with transaction.atomic():
        rx = lock_or_404(Prescription, prescription_id, 'Prescription')
        _ensure_pharmacist(actor, rx)
        _ensure_transition(rx, Prescription.STATUS_REJECTED)
        rx.status = Prescription.STATUS_REJECTED
        rx.rejection_reason = reason
        rx.pharmacist = actor
        rx.save()
        notify(rx.patient_id, 'Prescription Rejected',
               f'Your prescription for {_medication_name(rx)} was rejected. Reason: {reason}',
               'prescription', rx.pk)
        log_action(user=actor, action='prescription_reject', object_type='prescription', object_id=rx.pk,
                   detail={'reason': reason})
    return rx


def dispense_prescription(actor: User, prescription_id: int) -> Prescription:
    with transaction.atomic():
        rx = lock_or_404(Prescription, prescription_id, 'Prescription')
        _ensure_pharmacist(actor, rx)
        if rx.status == Prescription.STATUS_APPROVED:
            raise PaymentRequiredError('Cannot dispense. Patient has not paid yet.')
        _ensure_transition(rx, Prescription.STATUS_COMPLETED)
        if not payments.payment_exists(Payment.TYPE_MEDICATION, rx.pk):
            raise PaymentRequiredError('Cannot dispense. Patient has not paid yet.')
        rx.status = Prescription.STATUS_COMPLETED
        rx.save(update_fields=['status', 'updated_at'])
        pharmacy = rx.pharmacy.name if rx.pharmacy_id else 'the pharmacy'
        notify(rx.patient_id, 'Prescription Ready',
               f'Your {_medication_name(rx)} is ready for pickup at {pharmacy}.',
               'prescription', rx.pk)
        log_action(user=actor, action='prescription_dispense', object_type='prescription', object_id=rx.pk)
    logger.info('prescription %s dispensed by %s', rx.pk, actor.pk)
    return rx


def update_prescription(actor: User, prescription_id: int, *, status: Optional[str] = None,
                        pharmacy_id: Optional[int] = None, unit_price=None, total_price=None,
                        rejection_reason: Optional[str] = None) -> Prescription:
    """Dispatch a ``PUT /api/prescriptions/{id}`` request."""
    if pharmacy_id is not None and status is None:
        return select_pharmacy(actor, prescription_id, pharmacy_id=pharmacy_id)
    if status == Prescription.STATUS_APPROVED:
        return approve_prescription(actor, prescription_id, unit_price=unit_price, total_price=total_price)
    if status == Prescription.STATUS_REJECTED:
        return reject_prescription(actor, prescription_id, reason=rejection_reason)
    if status == Prescription.STATUS_COMPLETED:
        return dispense_prescription(actor, prescription_id)
    if status == Prescription.STATUS_PAID:
        raise InvalidTransitionError('Prescriptions become paid through a medication payment.')
    raise InvalidTransitionError('Nothing to update.')
