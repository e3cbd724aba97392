"""
Lab test requests and results.

    awaiting_payment -> pending -> in_progress -> completed

Leaving ``awaiting_payment`` and starting work both require a completed
``lab_test`` payment.  A request only becomes ``completed`` when a
technician submits its result.
"""
from __future__ import annotations

import logging
from decimal import Decimal
from typing import Iterable, List, Optional

from django.conf import settings
from django.db import transaction
from django.db.models import QuerySet
from django.utils import timezone

from clinic.exceptions import InvalidTransitionError, NotFoundError, PaymentRequiredError, DomainValidationError
from clinic.models import Consultation, LabTestRequest, LabTestResult, LabTestTemplate, Payment, User
from clinic.services import payments
from clinic.services.audit import log_action
from clinic.services.common import clean_text, lock_or_404
from clinic.services.notifications import notify

logger = logging.getLogger(__name__)


def can_transition(current: str, new: str) -> bool:
    transitions = {
        LabTestRequest.STATUS_AWAITING_PAYMENT: [LabTestRequest.STATUS_PENDING],
        LabTestRequest.STATUS_PENDING: [LabTestRequest.STATUS_IN_PROGRESS],
        LabTestRequest.STATUS_IN_PROGRESS: [LabTestRequest.STATUS_COMPLETED],
        LabTestRequest.STATUS_COMPLETED: [],
    }
    return new in transitions.get(current, [])


def visible_requests(user: User) -> QuerySet:
    qs = LabTestRequest.objects.select_related('lab_test_template', 'patient', 'doctor__user', 'hospital')
    if user.role == 'patient':
        return qs.filter(patient=user)
    if user.role == 'doctor':
        return qs.filter(doctor__user=user)
    if user.role in ('nurse', 'lab_technician'):
        return qs.filter(hospital_id=user.hospital_id)
    if user.role == 'admin':
        return qs
    return qs.none()


def visible_results(user: User) -> QuerySet:
    qs = LabTestResult.objects.select_related('lab_test_request__lab_test_template', 'technician')
    request_ids = visible_requests(user).values('id')
    return qs.filter(lab_test_request_id__in=request_ids)


def resolve_templates(template_ids: Iterable[int]) -> List[LabTestTemplate]:
    ids = list(dict.fromkeys(int(i) for i in template_ids))
    found = LabTestTemplate.objects.in_bulk(ids)
    missing = [i for i in ids if i not in found]
    if missing:
        raise NotFoundError(f'Lab test template not found: {missing[0]}.')
    return [found[i] for i in ids]


def add_requests(consultation: Consultation, templates: Iterable[LabTestTemplate]) -> List[LabTestRequest]:
    """Create one awaiting_payment request per template not yet requested.

    The caller holds the lock on the consultation's appointment.  Sends one
    aggregate notification for the newly added tests.
    """
    existing = set(consultation.lab_test_requests.values_list('lab_test_template_id', flat=True))
    appt = consultation.appointment
    created: List[LabTestRequest] = []
    for tpl in templates:
        if tpl.pk in existing:
            continue
        created.append(LabTestRequest.objects.create(
            consultation=consultation,
            patient_id=consultation.patient_id,
            doctor_id=consultation.doctor_id,
            hospital_id=appt.hospital_id,
            lab_test_template=tpl,
            total_price=tpl.price,
        ))
        existing.add(tpl.pk)

    if created:
        total = sum((r.total_price for r in created), Decimal('0'))
        notify(consultation.patient_id, 'Lab Tests Required',
               f'Doctor has prescribed {len(created)} lab test(s). '
               f'Total: {payments.format_amount(total)} {settings.HMS_CURRENCY}. Please proceed with payment.',
               'lab_test', consultation.pk)
    return created


def request_lab_tests(actor: User, *, consultation_id: int, template_ids: Iterable[int]) -> List[LabTestRequest]:
    templates = resolve_templates(template_ids)
    if not templates:
        raise DomainValidationError('Please select at least one lab test.')
    with transaction.atomic():
        consultation = lock_or_404(Consultation, consultation_id, 'Consultation')
        if actor.role != 'admin' and consultation.doctor.user_id != actor.pk:
            raise PermissionError('Only the consulting doctor can request lab tests.')
        created = add_requests(consultation, templates)
        if not consultation.requires_lab_test:
            consultation.requires_lab_test = True
            consultation.save(update_fields=['requires_lab_test', 'updated_at'])
        log_action(user=actor, action='lab_request', object_type='consultation', object_id=consultation.pk,
                   detail={'templates': [t.pk for t in templates], 'created': [r.pk for r in created]})
    return created


def _ensure_technician(actor: User, req: LabTestRequest) -> None:
    if actor.role == 'admin':
        return
    if actor.role != 'lab_technician' or actor.hospital_id != req.hospital_id:
        raise PermissionError('Only a lab technician of this hospital can do this.')


def _ensure_paid(req: LabTestRequest, message: str) -> None:
    if not payments.payment_exists(Payment.TYPE_LAB_TEST, req.pk):
        raise PaymentRequiredError(message)


def update_request_status(actor: User, request_id: int, *, status: str) -> LabTestRequest:
    with transaction.atomic():
        req = lock_or_404(LabTestRequest, request_id, 'Lab test request')
        if status == LabTestRequest.STATUS_COMPLETED:
            raise InvalidTransitionError('Submit the test result to complete a lab test.')
        if not can_transition(req.status, status):
            raise InvalidTransitionError(f'Cannot change lab test from {req.status} to {status}.')

        name = req.lab_test_template.name
        if status == LabTestRequest.STATUS_PENDING:
            if actor.role == 'patient':
                if req.patient_id != actor.pk:
                    raise PermissionError('You can only update your own lab tests.')
            else:
                _ensure_technician(actor, req)
            _ensure_paid(req, 'Please pay for this lab test first.')
            req.status = status
            req.save(update_fields=['status', 'updated_at'])
            notify(req.patient_id, 'Lab Test Sent to Lab',
                   f'Your {name} test has been sent to the lab.', 'lab_test', req.pk)
        else:
            _ensure_technician(actor, req)
            _ensure_paid(req, 'Patient has not paid for this test yet.')
            req.status = status
            req.save(update_fields=['status', 'updated_at'])
            notify(req.patient_id, 'Lab Test In Progress',
                   f'Your {name} test is being processed.', 'lab_test', req.pk)

        log_action(user=actor, action=f'lab_{status}', object_type='lab_test_request', object_id=req.pk)
    return req


def submit_result(actor: User, *, request_id: int, result_status: str, result_data: str,
                  notes: Optional[str] = None) -> LabTestResult:
    result_data = clean_text(result_data)
    if not result_data:
        raise DomainValidationError('Please enter the test results.')
    with transaction.atomic():
        req = lock_or_404(LabTestRequest, request_id, 'Lab test request')
        _ensure_technician(actor, req)
        if req.status != LabTestRequest.STATUS_IN_PROGRESS:
            raise InvalidTransitionError(f'Results can only be submitted for tests in progress (current status: {req.status}).')

        result = LabTestResult.objects.create(
            lab_test_request=req,
            technician=actor,
            result_status=result_status,
            result_data=result_data,
            notes=clean_text(notes),
            completed_at=timezone.now(),
        )
        req.status = LabTestRequest.STATUS_COMPLETED
        req.save(update_fields=['status', 'updated_at'])

        name = req.lab_test_template.name
        notify(req.patient_id, 'Lab Test Results Ready',
               f'Your {name} results are ready.', 'lab_test', req.pk)
        notify(req.doctor.user_id, 'Lab Test Results Available',
               f'{name} results for {req.patient.display_name} are available.', 'lab_test', req.pk)
        log_action(user=actor, action='lab_result', object_type='lab_test_request', object_id=req.pk,
                   detail={'result_status': result_status})
    logger.info('lab request %s completed by %s', req.pk, actor.pk)
    return result
