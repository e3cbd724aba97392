"""
Domain exceptions and the project-wide DRF exception handler.

Every non-2xx response carries a human readable ``error`` string that
clients display verbatim, plus a stable ``code``.
"""
import logging

from django.http import Http404
from rest_framework import status
from rest_framework.exceptions import APIException, ValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

logger = logging.getLogger(__name__)

GENERIC_ERROR = 'Something went wrong. Please try again.'


class WorkflowError(APIException):
    """A business rule forbids the requested change in the current state."""
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'This action is not allowed in the current state.'
    default_code = 'conflict'


class InvalidTransitionError(WorkflowError):
    default_detail = 'Invalid status transition.'
    default_code = 'invalid_transition'


class ActiveAppointmentExistsError(WorkflowError):
    default_detail = 'You already have an active appointment. Please wait until it is completed or rejected.'
    default_code = 'active_appointment_exists'


class AlreadyPaidError(WorkflowError):
    default_detail = 'This item has already been paid.'
    default_code = 'already_paid'


class PaymentRequiredError(APIException):
    status_code = status.HTTP_402_PAYMENT_REQUIRED
    default_detail = 'Payment has not been completed.'
    default_code = 'payment_required'


class DomainValidationError(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Invalid input.'
    default_code = 'invalid'


class InvalidVitalsError(DomainValidationError):
    default_detail = 'Please enter valid vitals.'
    default_code = 'invalid_vitals'


class EmptyPrescriptionError(DomainValidationError):
    default_detail = 'Please add at least one medication.'
    default_code = 'empty_prescription'


class MissingDosageError(DomainValidationError):
    default_detail = 'Please specify dosage for all medications.'
    default_code = 'missing_dosage'


class SignatureRequiredError(DomainValidationError):
    default_detail = 'Please provide your signature.'
    default_code = 'signature_required'


class RejectionReasonRequiredError(DomainValidationError):
    default_detail = 'Please provide a reason for rejection.'
    default_code = 'rejection_reason_required'


class SlotUnavailableError(DomainValidationError):
    default_detail = 'The selected time slot is not available.'
    default_code = 'slot_unavailable'


class NotFoundError(APIException):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'Not found.'
    default_code = 'not_found'


def _first_message(data) -> str:
    """Flatten serializer error payloads into one display string."""
    if isinstance(data, dict):
        if 'detail' in data:
            return str(data['detail'])
        for field, value in data.items():
            msg = _first_message(value)
            if field == 'non_field_errors':
                return msg
            return f'{field}: {msg}'
        return 'Invalid input.'
    if isinstance(data, (list, tuple)):
        return _first_message(data[0]) if data else 'Invalid input.'
    return str(data)


def api_exception_handler(exc, context):
    # Services raise plain PermissionError/ValueError for ad hoc rule violations
    if isinstance(exc, PermissionError):
        return Response({'ok': False, 'error': str(exc) or 'Permission denied.', 'code': 'permission_denied'},
                        status=status.HTTP_403_FORBIDDEN)
    if isinstance(exc, ValueError):
        return Response({'ok': False, 'error': str(exc) or 'Invalid input.', 'code': 'invalid'},
                        status=status.HTTP_400_BAD_REQUEST)

    resp = drf_exception_handler(exc, context)
    if resp is None:
        request = context.get('request')
        logger.exception('Unhandled API error on %s', getattr(request, 'path', '?'), exc_info=exc)
        return Response({'ok': False, 'error': GENERIC_ERROR, 'code': 'server_error'},
                        status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    if isinstance(exc, APIException):
        code = exc.default_code
    elif isinstance(exc, Http404):
        code = 'not_found'
    else:
        code = 'error'

    payload = {'ok': False, 'error': _first_message(resp.data), 'code': code}
    if isinstance(exc, ValidationError) and isinstance(resp.data, dict):
        payload['fields'] = resp.data
    resp.data = payload
    return resp
