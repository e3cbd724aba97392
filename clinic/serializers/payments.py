from rest_framework import serializers

from clinic.models import Payment
from clinic.serializers.summaries import UserSummarySerializer


class PaymentCreateSerializer(serializers.Serializer):
    payment_type = serializers.ChoiceField(choices=[c[0] for c in Payment.TYPE_CHOICES])
    reference_id = serializers.IntegerField(min_value=1)
    amount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0, required=False)
    payment_method = serializers.ChoiceField(choices=[c[0] for c in Payment.METHOD_CHOICES], default='mobile_money')
    phone_number = serializers.CharField(max_length=32, required=False, allow_blank=True, default='')
    status = serializers.ChoiceField(choices=[c[0] for c in Payment.STATUS_CHOICES], default=Payment.STATUS_COMPLETED)
    transaction_id = serializers.CharField(max_length=64, required=False, allow_blank=True)

    def validate_transaction_id(self, v):
        v = (v or '').strip()
        if v and Payment.objects.filter(transaction_id=v).exists():
            raise serializers.ValidationError('Duplicate transaction id.')
        return v or None


class PaymentSerializer(serializers.ModelSerializer):
    patient = UserSummarySerializer()

    class Meta:
        model = Payment
        fields = [
            'id', 'patient_id', 'patient', 'payment_type', 'reference_id',
            'amount', 'insurance_coverage', 'patient_pays', 'status', 'payment_method',
            'phone_number', 'transaction_id', 'created_at',
        ]
