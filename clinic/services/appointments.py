"""
Appointment lifecycle.

    pending  -> approved | rejected     (nurse records vitals / nurse or doctor rejects)
    approved -> completed               (doctor, after payment and a saved diagnosis)

Every transition locks the appointment row, checks its preconditions and
writes in one transaction.
"""
from __future__ import annotations

import logging
import math
from typing import Optional, Tuple

from django.db import IntegrityError, transaction
from django.db.models import QuerySet
from django.utils import timezone

from clinic.exceptions import (
    ActiveAppointmentExistsError,
    InvalidTransitionError,
    InvalidVitalsError,
    NotFoundError,
    PaymentRequiredError,
    RejectionReasonRequiredError,
    SlotUnavailableError,
)
from clinic.models import Appointment, Consultation, Doctor, Payment, User
from clinic.services import payments, slots
from clinic.services.audit import log_action
from clinic.services.common import clean_text, lock_or_404
from clinic.services.notifications import notify

logger = logging.getLogger(__name__)

MIN_WEIGHT, MAX_WEIGHT = 0, 500
MIN_TEMPERATURE, MAX_TEMPERATURE = 30, 45

NOT_PAID_MESSAGE = 'Patient has not paid the consultation fee yet.'


def can_transition(current: str, new: str) -> bool:
    """Return True if an appointment may move from ``current`` to ``new``."""
    transitions = {
        Appointment.STATUS_PENDING: [Appointment.STATUS_APPROVED, Appointment.STATUS_REJECTED],
        Appointment.STATUS_APPROVED: [Appointment.STATUS_COMPLETED],
        Appointment.STATUS_REJECTED: [],
        Appointment.STATUS_COMPLETED: [],
    }
    return new in transitions.get(current, [])


def _ensure_transition(appt: Appointment, new: str) -> None:
    if not can_transition(appt.status, new):
        raise InvalidTransitionError(f'Cannot change appointment from {appt.status} to {new}.')


def validate_vitals(weight, temperature) -> Tuple[float, float]:
    """Parse and range-check vitals; raises InvalidVitalsError."""
    try:
        w = float(weight)
        t = float(temperature)
    except (TypeError, ValueError):
        raise InvalidVitalsError('Please enter weight and temperature as numbers.')
    if not (math.isfinite(w) and math.isfinite(t)):
        raise InvalidVitalsError('Please enter weight and temperature as numbers.')
    if w <= MIN_WEIGHT or w > MAX_WEIGHT:
        raise InvalidVitalsError(f'Please enter a valid weight ({MIN_WEIGHT}-{MAX_WEIGHT} kg).')
    if t < MIN_TEMPERATURE or t > MAX_TEMPERATURE:
        raise InvalidVitalsError(f'Please enter a valid temperature ({MIN_TEMPERATURE}-{MAX_TEMPERATURE} °C).')
    return w, t


def visible_appointments(user: User) -> QuerySet:
    qs = Appointment.objects.select_related('patient', 'doctor__user', 'hospital', 'department')
    if user.role == 'patient':
        return qs.filter(patient=user)
    if user.role == 'doctor':
        return qs.filter(doctor__user=user)
    if user.role in ('nurse', 'lab_technician'):
        return qs.filter(hospital_id=user.hospital_id)
    if user.role == 'admin':
        return qs
    return qs.none()


def _ensure_doctor(actor: User, appt: Appointment) -> None:
    if actor.role == 'admin':
        return
    if actor.role != 'doctor' or appt.doctor.user_id != actor.pk:
        raise PermissionError('Only the assigned doctor can do this.')


def _ensure_hospital_nurse(actor: User, appt: Appointment) -> None:
    if actor.role == 'admin':
        return
    if actor.role != 'nurse' or actor.hospital_id != appt.hospital_id:
        raise PermissionError('Only a nurse of this hospital can do this.')


def book_appointment(patient: User, *, doctor_id: int, appointment_date, appointment_time,
                     hospital_id: Optional[int] = None, department_id: Optional[int] = None,
                     reason: str = '') -> Appointment:
    if patient.role != 'patient':
        raise PermissionError('Only patients can book appointments.')

    on_date = slots.as_date(appointment_date)
    slot = slots.normalize_slot(appointment_time)
    if on_date < slots.local_now().date():
        raise SlotUnavailableError('Cannot book an appointment in the past.')

    doctor = Doctor.objects.select_related('user', 'hospital', 'department').filter(pk=doctor_id).first()
    if doctor is None:
        raise NotFoundError('Doctor not found.')
    if hospital_id is not None and doctor.hospital_id != hospital_id:
        raise ValueError('The selected doctor does not work at this hospital.')
    if department_id is not None and doctor.department_id != department_id:
        raise ValueError('The selected doctor does not work in this department.')

    with transaction.atomic():
        # Serializes concurrent bookings by the same patient
        User.objects.select_for_update().filter(pk=patient.pk).first()
        if Appointment.objects.filter(patient=patient, status__in=Appointment.ACTIVE_STATUSES).exists():
            raise ActiveAppointmentExistsError()
        if slot not in slots.available_slots(doctor.pk, on_date):
            raise SlotUnavailableError(f'The {slot} slot on {on_date} is not available.')

        fee = doctor.consultation_fee if doctor.consultation_fee > 0 else doctor.hospital.consultation_fee
        try:
            with transaction.atomic():
                appt = Appointment.objects.create(
                    patient=patient,
                    doctor=doctor,
                    hospital=doctor.hospital,
                    department=doctor.department,
                    appointment_date=on_date,
                    appointment_time=slots.parse_slot(slot),
                    reason=clean_text(reason),
                    consultation_fee=fee,
                )
        except IntegrityError:
            if Appointment.objects.filter(patient=patient, status__in=Appointment.ACTIVE_STATUSES).exists():
                raise ActiveAppointmentExistsError()
            raise SlotUnavailableError(f'The {slot} slot on {on_date} is not available.')

        log_action(user=patient, action='appointment_book', object_type='appointment', object_id=appt.pk,
                   detail={'doctor': doctor.pk, 'date': on_date.isoformat(), 'time': slot})
        notify(doctor.user, 'New Appointment Request',
               f'{patient.display_name} has requested an appointment on {on_date.isoformat()} at {slot}.',
               'appointment', appt.pk)
    logger.info('appointment %s booked by patient %s', appt.pk, patient.pk)
    return appt


def approve_appointment(actor: User, appointment_id: int, *, weight, temperature) -> Appointment:
    w, t = validate_vitals(weight, temperature)
    with transaction.atomic():
        appt = lock_or_404(Appointment, appointment_id, 'Appointment')
        _ensure_hospital_nurse(actor, appt)
        _ensure_transition(appt, Appointment.STATUS_APPROVED)
        appt.status = Appointment.STATUS_APPROVED
        appt.weight = w
        appt.temperature = t
        appt.vitals_recorded_by = actor
        appt.vitals_recorded_at = timezone.now()
        appt.rejection_reason = ''
        appt.save()
        log_action(user=actor, action='appointment_approve', object_type='appointment', object_id=appt.pk,
                   detail={'weight': w, 'temperature': t})
        notify(appt.patient_id, 'Appointment Approved',
               'Your appointment has been approved. Please proceed with payment.',
               'appointment', appt.pk)
    return appt


def reject_appointment(actor: User, appointment_id: int, *, reason: Optional[str]) -> Appointment:
    reason = clean_text(reason)
    if not reason:
        raise RejectionReasonRequiredError()
    with transaction.atomic():
        appt = lock_or_404(Appointment, appointment_id, 'Appointment')
        if actor.role == 'doctor':
            _ensure_doctor(actor, appt)
        else:
            _ensure_hospital_nurse(actor, appt)
        _ensure_transition(appt, Appointment.STATUS_REJECTED)
        appt.status = Appointment.STATUS_REJECTED
        appt.rejection_reason = reason
        appt.save()
        log_action(user=actor, action='appointment_reject', object_type='appointment', object_id=appt.pk,
                   detail={'reason': reason})
        notify(appt.patient_id, 'Appointment Rejected',
               f'Your appointment has been rejected. Reason: {reason}',
               'appointment', appt.pk)
    return appt


def start_consultation(actor: User, appointment_id: int) -> Appointment:
    """Check that the doctor may open the consultation screen for this appointment."""
    with transaction.atomic():
        appt = lock_or_404(Appointment, appointment_id, 'Appointment')
        _ensure_doctor(actor, appt)
        if appt.status != Appointment.STATUS_APPROVED:
            raise InvalidTransitionError(
                f'Only approved appointments can be consulted (current status: {appt.status}).'
            )
        if not payments.payment_exists(Payment.TYPE_CONSULTATION, appt.pk):
            raise PaymentRequiredError(NOT_PAID_MESSAGE)
        log_action(user=actor, action='consultation_start', object_type='appointment', object_id=appt.pk)
    return appt


def complete_locked(actor: User, appt: Appointment, consultation: Optional[Consultation] = None) -> Appointment:
    """Complete an appointment the caller has already locked."""
    _ensure_transition(appt, Appointment.STATUS_COMPLETED)
    if not payments.payment_exists(Payment.TYPE_CONSULTATION, appt.pk):
        raise PaymentRequiredError(NOT_PAID_MESSAGE)
    if consultation is None:
        consultation = Consultation.objects.filter(appointment=appt).first()
    if consultation is None or not consultation.diagnosis.strip():
        raise InvalidTransitionError('Save a consultation with a diagnosis before completing the appointment.')

    appt.status = Appointment.STATUS_COMPLETED
    appt.save()
    log_action(user=actor, action='appointment_complete', object_type='appointment', object_id=appt.pk)
    notify(appt.patient_id, 'Consultation Completed',
           consultation.notes or 'Your consultation has been completed.',
           'consultation', consultation.pk)
    return appt


def complete_appointment(actor: User, appointment_id: int) -> Appointment:
    with transaction.atomic():
        appt = lock_or_404(Appointment, appointment_id, 'Appointment')
        _ensure_doctor(actor, appt)
        return complete_locked(actor, appt)


def update_appointment(actor: User, appointment_id: int, *, status: str, weight=None, temperature=None,
                       rejection_reason: Optional[str] = None) -> Appointment:
    """Dispatch a ``PUT /api/appointments/{id}`` status change."""
    if status == Appointment.STATUS_APPROVED:
        return approve_appointment(actor, appointment_id, weight=weight, temperature=temperature)
    if status == Appointment.STATUS_REJECTED:
        return reject_appointment(actor, appointment_id, reason=rejection_reason)
    if status == Appointment.STATUS_COMPLETED:
        return complete_appointment(actor, appointment_id)
    raise InvalidTransitionError(f'Cannot set appointment status to {status}.')
