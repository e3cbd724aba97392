"""Cached catalog reads for the booking and payment screens."""
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response

from clinic.services import catalog


def _int_param(request, name: str):
    value = request.query_params.get(name)
    if value in (None, ''):
        return None
    try:
        return int(value)
    except ValueError:
        raise ValueError(f'{name} must be an integer.')


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def hospitals(request):
    return Response(catalog.list_hospitals())


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def hospital_departments(request, pk: int):
    return Response(catalog.list_departments(hospital_id=pk))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def departments(request):
    return Response(catalog.list_departments())


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def doctors(request):
    return Response(catalog.list_doctors(
        hospital_id=_int_param(request, 'hospital_id'),
        department_id=_int_param(request, 'department_id'),
    ))


@api_view(['GET'])
@permission_classes([AllowAny])
def insurances(request):
    """Public: the signup form offers the insurance list."""
    return Response(catalog.list_insurances())


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def lab_test_templates(request):
    return Response(catalog.list_lab_test_templates())


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def medications(request):
    return Response(catalog.list_medications())


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def pharmacies(request):
    return Response(catalog.list_pharmacies())
