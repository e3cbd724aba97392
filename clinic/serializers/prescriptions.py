from rest_framework import serializers

from clinic.models import Prescription
from clinic.serializers.summaries import DoctorSummarySerializer, NamedSerializer, UserSummarySerializer


class PrescriptionItemSerializer(serializers.Serializer):
    medication_id = serializers.IntegerField(min_value=1)
    quantity = serializers.IntegerField(min_value=1, default=1)
    dosage = serializers.CharField(max_length=255, allow_blank=True, default='')
    instructions = serializers.CharField(max_length=2000, required=False, allow_blank=True, default='')


class PrescriptionCreateSerializer(serializers.Serializer):
    consultation_id = serializers.IntegerField(min_value=1)
    # An empty list is rejected by the service with a dedicated error
    items = PrescriptionItemSerializer(many=True, allow_empty=True)
    signature_data = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    notes = serializers.CharField(max_length=5000, required=False, allow_blank=True, allow_null=True)


class PrescriptionUpdateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=[c[0] for c in Prescription.STATUS_CHOICES], required=False)
    pharmacy_id = serializers.IntegerField(min_value=1, required=False)
    pharmacist_id = serializers.IntegerField(min_value=1, required=False)
    unit_price = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0, required=False)
    total_price = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0, required=False)
    rejection_reason = serializers.CharField(max_length=2000, required=False, allow_blank=True, allow_null=True)

    def validate(self, attrs):
        if 'status' not in attrs and 'pharmacy_id' not in attrs:
            raise serializers.ValidationError('Provide a status or a pharmacy_id.')
        return attrs


class PrescriptionSerializer(serializers.ModelSerializer):
    patient = UserSummarySerializer()
    doctor = DoctorSummarySerializer()
    medication = NamedSerializer(allow_null=True)
    pharmacy = NamedSerializer(allow_null=True)

    class Meta:
        model = Prescription
        fields = [
            'id', 'consultation_id', 'patient_id', 'doctor_id', 'medication_id', 'pharmacy_id', 'pharmacist_id',
            'patient', 'doctor', 'medication', 'pharmacy',
            'quantity', 'dosage', 'instructions', 'notes', 'status',
            'unit_price', 'total_price', 'pharmacist_approved_at', 'rejection_reason',
            'created_at', 'updated_at',
        ]
