from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from clinic.exceptions import NotFoundError
from clinic.permissions import IsDoctorRole
from clinic.serializers.consultations import (
    ConsultationSaveSerializer,
    ConsultationSerializer,
    ConsultationUpdateSerializer,
)
from clinic.services import consultations as consultation_service


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def consultations(request):
    if request.method == 'GET':
        qs = consultation_service.visible_consultations(request.user).order_by('-consultation_date')
        appointment_id = request.query_params.get('appointment_id')
        if appointment_id:
            qs = qs.filter(appointment_id=appointment_id)
        return Response(ConsultationSerializer(qs, many=True).data)

    if not IsDoctorRole().has_permission(request, None):
        return Response({'ok': False, 'error': 'Only doctors can record consultations.', 'code': 'permission_denied'},
                        status=status.HTTP_403_FORBIDDEN)
    s = ConsultationSaveSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    consultation, _ = consultation_service.save_consultation(request.user, **s.validated_data)
    return Response(ConsultationSerializer(consultation).data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT'])
@permission_classes([IsAuthenticated])
def consultation_detail(request, pk: int):
    if request.method == 'GET':
        consultation = consultation_service.visible_consultations(request.user).filter(pk=pk).first()
        if consultation is None:
            raise NotFoundError('Consultation not found.')
        return Response(ConsultationSerializer(consultation).data)

    if not IsDoctorRole().has_permission(request, None):
        return Response({'ok': False, 'error': 'Only doctors can record consultations.', 'code': 'permission_denied'},
                        status=status.HTTP_403_FORBIDDEN)
    s = ConsultationUpdateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    consultation, _ = consultation_service.update_consultation(request.user, pk, **s.validated_data)
    return Response(ConsultationSerializer(consultation).data)
