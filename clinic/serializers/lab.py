from rest_framework import serializers

from clinic.models import LabTestRequest, LabTestResult
from clinic.serializers.summaries import DoctorSummarySerializer, NamedSerializer, UserSummarySerializer


class LabRequestCreateSerializer(serializers.Serializer):
    consultation_id = serializers.IntegerField(min_value=1)
    lab_test_template_ids = serializers.ListField(child=serializers.IntegerField(min_value=1), allow_empty=False)


class LabRequestStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=[c[0] for c in LabTestRequest.STATUS_CHOICES])


class LabResultCreateSerializer(serializers.Serializer):
    lab_test_request_id = serializers.IntegerField(min_value=1)
    result_status = serializers.ChoiceField(choices=[c[0] for c in LabTestResult.RESULT_CHOICES])
    result_data = serializers.CharField(max_length=10000, allow_blank=True)
    notes = serializers.CharField(max_length=5000, required=False, allow_blank=True, allow_null=True)


class LabTestTemplateSummarySerializer(serializers.Serializer):
    id = serializers.IntegerField()
    name = serializers.CharField()
    price = serializers.DecimalField(max_digits=12, decimal_places=2)


class LabTestResultSerializer(serializers.ModelSerializer):
    technician = UserSummarySerializer()
    test_name = serializers.CharField(source='lab_test_request.lab_test_template.name')

    class Meta:
        model = LabTestResult
        fields = [
            'id', 'lab_test_request_id', 'test_name', 'result_status', 'result_data', 'notes',
            'technician_id', 'technician', 'completed_at',
        ]


class LabTestRequestSerializer(serializers.ModelSerializer):
    lab_test_template = LabTestTemplateSummarySerializer()
    patient = UserSummarySerializer()
    doctor = DoctorSummarySerializer()
    hospital = NamedSerializer(allow_null=True)
    result_id = serializers.SerializerMethodField()

    class Meta:
        model = LabTestRequest
        fields = [
            'id', 'consultation_id', 'patient_id', 'doctor_id', 'hospital_id', 'lab_test_template_id',
            'lab_test_template', 'patient', 'doctor', 'hospital',
            'status', 'total_price', 'result_id', 'created_at', 'updated_at',
        ]

    def get_result_id(self, obj):
        result = getattr(obj, 'result', None)
        return result.id if result else None
