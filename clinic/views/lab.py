"""Lab test request and result endpoints."""
from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from clinic.exceptions import NotFoundError
from clinic.models import LabTestRequest
from clinic.permissions import IsDoctorRole, IsLabTechnicianRole
from clinic.serializers.lab import (
    LabRequestCreateSerializer,
    LabRequestStatusSerializer,
    LabResultCreateSerializer,
    LabTestRequestSerializer,
    LabTestResultSerializer,
)
from clinic.services import lab as lab_service


def _forbidden(message: str) -> Response:
    return Response({'ok': False, 'error': message, 'code': 'permission_denied'}, status=status.HTTP_403_FORBIDDEN)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def lab_requests(request):
    if request.method == 'GET':
        qs = lab_service.visible_requests(request.user).order_by('-created_at')
        status_filter = request.query_params.get('status')
        if status_filter:
            qs = qs.filter(status=status_filter)
        return Response(LabTestRequestSerializer(qs, many=True).data)

    if not IsDoctorRole().has_permission(request, None):
        return _forbidden('Only doctors can request lab tests.')
    s = LabRequestCreateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    created = lab_service.request_lab_tests(
        request.user,
        consultation_id=s.validated_data['consultation_id'],
        template_ids=s.validated_data['lab_test_template_ids'],
    )
    return Response(LabTestRequestSerializer(created, many=True).data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT'])
@permission_classes([IsAuthenticated])
def lab_request_detail(request, pk: int):
    if request.method == 'GET':
        req = lab_service.visible_requests(request.user).filter(pk=pk).first()
        if req is None:
            raise NotFoundError('Lab test request not found.')
        return Response(LabTestRequestSerializer(req).data)

    s = LabRequestStatusSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    req = lab_service.update_request_status(request.user, pk, status=s.validated_data['status'])
    return Response(LabTestRequestSerializer(LabTestRequest.objects.get(pk=req.pk)).data)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def lab_results(request):
    if request.method == 'GET':
        qs = lab_service.visible_results(request.user).order_by('-completed_at')
        request_id = request.query_params.get('lab_test_request_id')
        if request_id:
            qs = qs.filter(lab_test_request_id=request_id)
        return Response(LabTestResultSerializer(qs, many=True).data)

    if not IsLabTechnicianRole().has_permission(request, None):
        return _forbidden('Only lab technicians can submit results.')
    s = LabResultCreateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    result = lab_service.submit_result(
        request.user,
        request_id=s.validated_data['lab_test_request_id'],
        result_status=s.validated_data['result_status'],
        result_data=s.validated_data['result_data'],
        notes=s.validated_data.get('notes'),
    )
    return Response(LabTestResultSerializer(result).data, status=status.HTTP_201_CREATED)
