import re

from rest_framework import serializers

from clinic.models import Appointment
from clinic.serializers.summaries import DoctorSummarySerializer, NamedSerializer, UserSummarySerializer
from clinic.timeslots import normalize_slot

SLOT_RE = re.compile(r'^([01]?\d|2[0-3]):[0-5]\d(:[0-5]\d)?$')


class AppointmentCreateSerializer(serializers.Serializer):
    doctor_id = serializers.IntegerField(min_value=1)
    hospital_id = serializers.IntegerField(min_value=1, required=False)
    department_id = serializers.IntegerField(min_value=1, required=False)
    appointment_date = serializers.DateField()
    appointment_time = serializers.CharField(max_length=8)
    reason = serializers.CharField(max_length=2000, required=False, allow_blank=True)

    def validate_appointment_time(self, v):
        v = v.strip()
        if not SLOT_RE.match(v):
            raise serializers.ValidationError('Time must be HH:MM.')
        return normalize_slot(v)


class AppointmentUpdateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=[c[0] for c in Appointment.STATUS_CHOICES])
    weight = serializers.FloatField(required=False, allow_null=True)
    temperature = serializers.FloatField(required=False, allow_null=True)
    rejection_reason = serializers.CharField(max_length=2000, required=False, allow_blank=True, allow_null=True)


class AppointmentSerializer(serializers.ModelSerializer):
    patient = UserSummarySerializer()
    doctor = DoctorSummarySerializer()
    hospital = NamedSerializer()
    department = NamedSerializer()
    appointment_time = serializers.TimeField(format='%H:%M')
    consultation_id = serializers.SerializerMethodField()

    class Meta:
        model = Appointment
        fields = [
            'id', 'patient_id', 'doctor_id', 'hospital_id', 'department_id',
            'patient', 'doctor', 'hospital', 'department',
            'appointment_date', 'appointment_time', 'status', 'reason', 'rejection_reason',
            'weight', 'temperature', 'vitals_recorded_by_id', 'vitals_recorded_at',
            'consultation_fee', 'consultation_id', 'created_at', 'updated_at',
        ]

    def get_consultation_id(self, obj):
        consultation = getattr(obj, 'consultation', None)
        return consultation.id if consultation else None
