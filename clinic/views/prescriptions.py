from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from clinic.exceptions import NotFoundError
from clinic.models import Prescription
from clinic.permissions import IsDoctorRole
from clinic.serializers.prescriptions import (
    PrescriptionCreateSerializer,
    PrescriptionSerializer,
    PrescriptionUpdateSerializer,
)
from clinic.services import prescriptions as prescription_service


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def prescriptions(request):
    if request.method == 'GET':
        qs = prescription_service.visible_prescriptions(request.user).order_by('-created_at')
        for param in ('status', 'consultation_id'):
            value = request.query_params.get(param)
            if value:
                qs = qs.filter(**{param: value})
        return Response(PrescriptionSerializer(qs, many=True).data)

    if not IsDoctorRole().has_permission(request, None):
        return Response({'ok': False, 'error': 'Only doctors can prescribe.', 'code': 'permission_denied'},
                        status=status.HTTP_403_FORBIDDEN)
    s = PrescriptionCreateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    created = prescription_service.create_prescriptions(request.user, **s.validated_data)
    return Response(PrescriptionSerializer(created, many=True).data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT'])
@permission_classes([IsAuthenticated])
def prescription_detail(request, pk: int):
    if request.method == 'GET':
        rx = prescription_service.visible_prescriptions(request.user).filter(pk=pk).first()
        if rx is None:
            raise NotFoundError('Prescription not found.')
        return Response(PrescriptionSerializer(rx).data)

    s = PrescriptionUpdateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    data = dict(s.validated_data)
    # The reviewing pharmacist is always the caller
    data.pop('pharmacist_id', None)
    rx = prescription_service.update_prescription(request.user, pk, **data)
    return Response(PrescriptionSerializer(Prescription.objects.get(pk=rx.pk)).data)
