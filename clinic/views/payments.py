from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from clinic.exceptions import DomainValidationError
from clinic.models import Payment
from clinic.serializers.payments import PaymentCreateSerializer, PaymentSerializer
from clinic.services import payments as payment_service


def _visible_payments(user):
    qs = Payment.objects.select_related('patient')
    if user.role == 'admin':
        return qs
    if user.role == 'patient':
        return qs.filter(patient=user)
    # Staff look payments up by reference
    return qs.none()


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def payments(request):
    if request.method == 'GET':
        qs = _visible_payments(request.user).order_by('-created_at')
        payment_type = request.query_params.get('payment_type')
        if payment_type:
            qs = qs.filter(payment_type=payment_type)
        return Response(PaymentSerializer(qs, many=True).data)

    s = PaymentCreateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    payment = payment_service.record_payment(request.user, **s.validated_data)
    return Response(PaymentSerializer(payment).data, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def payment_lookup(request, payment_type: str, reference_id: int):
    """All payments for one reference plus the has-paid verdict."""
    if payment_type not in payment_service.REFERENCE_MODELS:
        raise DomainValidationError(f'Unknown payment type: {payment_type}')
    qs = payment_service.payments_for(payment_type, reference_id).select_related('patient')
    if request.user.role == 'patient':
        qs = qs.filter(patient=request.user)
    items = list(qs)
    return Response({
        'payment_type': payment_type,
        'reference_id': reference_id,
        'has_paid': payment_service.has_paid(items),
        'payments': PaymentSerializer(items, many=True).data,
    })
