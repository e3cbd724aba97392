"""
Consultation outcome recording.

Saving is create-or-update keyed by appointment.  Lab tests are requested
idempotently per template.  When no prescription is needed the
appointment is completed in the same transaction; otherwise prescription
authoring completes it.
"""
from __future__ import annotations

from typing import Iterable, List, Optional, Tuple

from django.db import transaction
from django.db.models import QuerySet

from clinic.exceptions import DomainValidationError, InvalidTransitionError, PaymentRequiredError
from clinic.models import Appointment, Consultation, LabTestRequest, Payment, User
from clinic.services import appointments, lab, payments
from clinic.services.audit import log_action
from clinic.services.common import clean_text, get_or_404, lock_or_404

EDITABLE_STATUSES = (Appointment.STATUS_APPROVED, Appointment.STATUS_COMPLETED)


def visible_consultations(user: User) -> QuerySet:
    qs = Consultation.objects.select_related('appointment', 'patient', 'doctor__user')
    if user.role == 'patient':
        return qs.filter(patient=user)
    if user.role == 'doctor':
        return qs.filter(doctor__user=user)
    if user.role in ('nurse', 'lab_technician'):
        return qs.filter(appointment__hospital_id=user.hospital_id)
    if user.role == 'admin':
        return qs
    return qs.none()


def save_consultation(actor: User, *, appointment_id: int, diagnosis: str, notes: Optional[str] = None,
                      requires_lab_test: bool = False, requires_prescription: bool = False,
                      lab_test_template_ids: Iterable[int] = ()) -> Tuple[Consultation, List[LabTestRequest]]:
    """Create or update the consultation for ``appointment_id``.

    Returns the consultation and the lab test requests created by this
    call (re-saving never duplicates a template).
    """
    diagnosis = clean_text(diagnosis)
    if not diagnosis:
        raise DomainValidationError('Please enter a diagnosis.')
    templates = lab.resolve_templates(lab_test_template_ids) if requires_lab_test else []

    with transaction.atomic():
        appt = lock_or_404(Appointment, appointment_id, 'Appointment')
        if actor.role != 'admin' and (actor.role != 'doctor' or appt.doctor.user_id != actor.pk):
            raise PermissionError('Only the assigned doctor can record this consultation.')
        if appt.status not in EDITABLE_STATUSES:
            raise InvalidTransitionError(
                f'Consultations can only be recorded for approved appointments (current status: {appt.status}).'
            )
        if not payments.payment_exists(Payment.TYPE_CONSULTATION, appt.pk):
            raise PaymentRequiredError(appointments.NOT_PAID_MESSAGE)

        # The flag stays set once any lab test has been requested
        if LabTestRequest.objects.filter(consultation__appointment=appt).exists():
            requires_lab_test = True

        consultation, created = Consultation.objects.update_or_create(
            appointment=appt,
            defaults={
                'patient_id': appt.patient_id,
                'doctor_id': appt.doctor_id,
                'diagnosis': diagnosis,
                'notes': clean_text(notes),
                'requires_lab_test': requires_lab_test,
                'requires_prescription': requires_prescription,
            },
        )

        new_requests = lab.add_requests(consultation, templates) if templates else []

        if not requires_prescription and appt.status == Appointment.STATUS_APPROVED:
            appointments.complete_locked(actor, appt, consultation)

        log_action(user=actor, action='consultation_save', object_type='consultation', object_id=consultation.pk,
                   detail={'created': created, 'lab_requests': [r.pk for r in new_requests],
                           'requires_prescription': requires_prescription})
    return consultation, new_requests


def update_consultation(actor: User, consultation_id: int, **fields) -> Tuple[Consultation, List[LabTestRequest]]:
    consultation = get_or_404(Consultation, consultation_id, 'Consultation')
    return save_consultation(actor, appointment_id=consultation.appointment_id, **fields)
