"""
Appointment endpoints: slot lookup, booking, nurse review and the
doctor's consultation entry point.
"""
from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from clinic.exceptions import DomainValidationError, NotFoundError
from clinic.models import Appointment, User
from clinic.permissions import IsDoctorRole, IsPatientRole
from clinic.serializers.appointments import (
    AppointmentCreateSerializer,
    AppointmentSerializer,
    AppointmentUpdateSerializer,
)
from clinic.serializers.consultations import ConsultationSerializer
from clinic.services import appointments as appointment_service
from clinic.services import slots


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def available_slots(request, doctor_id: int, date: str):
    """Ordered ``HH:MM`` slots still free for the doctor on ``date``."""
    try:
        on_date = slots.as_date(date)
    except ValueError:
        raise DomainValidationError('Invalid date. Use YYYY-MM-DD.')
    return Response(slots.available_slots(doctor_id, on_date))


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def appointments(request):
    user: User = request.user  # type: ignore[assignment]
    if request.method == 'GET':
        qs = appointment_service.visible_appointments(user)
        status_filter = request.query_params.get('status')
        if status_filter:
            qs = qs.filter(status=status_filter)
        on_date = request.query_params.get('date')
        if on_date:
            qs = qs.filter(appointment_date=on_date)
        qs = qs.order_by('-appointment_date', '-appointment_time')
        return Response(AppointmentSerializer(qs, many=True).data)

    if not IsPatientRole().has_permission(request, None):
        return Response({'ok': False, 'error': 'Only patients can book appointments.', 'code': 'permission_denied'},
                        status=status.HTTP_403_FORBIDDEN)
    s = AppointmentCreateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    appt = appointment_service.book_appointment(user, **s.validated_data)
    return Response(AppointmentSerializer(appt).data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT'])
@permission_classes([IsAuthenticated])
def appointment_detail(request, pk: int):
    user: User = request.user  # type: ignore[assignment]
    if request.method == 'GET':
        appt = appointment_service.visible_appointments(user).filter(pk=pk).first()
        if appt is None:
            raise NotFoundError('Appointment not found.')
        return Response(AppointmentSerializer(appt).data)

    s = AppointmentUpdateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    appt = appointment_service.update_appointment(user, pk, **s.validated_data)
    return Response(AppointmentSerializer(Appointment.objects.get(pk=appt.pk)).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsDoctorRole])
def start_consultation(request, pk: int):
    """Return the appointment (and any saved consultation) once payment is confirmed."""
    appt = appointment_service.start_consultation(request.user, pk)
    consultation = getattr(appt, 'consultation', None)
    return Response({
        'ok': True,
        'appointment': AppointmentSerializer(appt).data,
        'consultation': ConsultationSerializer(consultation).data if consultation else None,
    })
