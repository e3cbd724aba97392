from rest_framework import serializers

from clinic.models import Consultation
from clinic.serializers.lab import LabTestRequestSerializer
from clinic.serializers.summaries import DoctorSummarySerializer, UserSummarySerializer


class ConsultationSaveSerializer(serializers.Serializer):
    appointment_id = serializers.IntegerField(min_value=1)
    diagnosis = serializers.CharField(max_length=5000, allow_blank=True)
    notes = serializers.CharField(max_length=5000, required=False, allow_blank=True, allow_null=True)
    requires_lab_test = serializers.BooleanField(default=False)
    requires_prescription = serializers.BooleanField(default=False)
    lab_test_template_ids = serializers.ListField(
        child=serializers.IntegerField(min_value=1), required=False, default=list
    )


class ConsultationUpdateSerializer(ConsultationSaveSerializer):
    appointment_id = None


class ConsultationSerializer(serializers.ModelSerializer):
    patient = UserSummarySerializer()
    doctor = DoctorSummarySerializer()
    lab_test_requests = LabTestRequestSerializer(many=True)
    prescription_ids = serializers.SerializerMethodField()

    class Meta:
        model = Consultation
        fields = [
            'id', 'appointment_id', 'patient_id', 'doctor_id', 'patient', 'doctor',
            'diagnosis', 'notes', 'requires_lab_test', 'requires_prescription',
            'consultation_date', 'lab_test_requests', 'prescription_ids', 'created_at', 'updated_at',
        ]

    def get_prescription_ids(self, obj):
        return list(obj.prescriptions.order_by('id').values_list('id', flat=True))
