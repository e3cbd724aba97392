from django.contrib.auth import password_validation
from rest_framework import serializers

from clinic.models import Insurance, User


class LoginSerializer(serializers.Serializer):
    email = serializers.CharField()
    password = serializers.CharField()

    def validate_email(self, v):
        v = (v or '').strip().lower()
        if not v:
            raise serializers.ValidationError('Email is required.')
        return v

    def validate_password(self, v):
        if not v:
            raise serializers.ValidationError('Password is required.')
        return v


class RegisterSerializer(serializers.Serializer):
    """Self-service signup.  Always creates a patient; any submitted role is ignored."""
    email = serializers.EmailField()
    password = serializers.CharField(min_length=8, write_only=True)
    full_name = serializers.CharField(max_length=255)
    phone = serializers.CharField(max_length=32, required=False, allow_blank=True)
    national_id = serializers.CharField(max_length=32, required=False, allow_blank=True)
    insurance_id = serializers.IntegerField(required=False, allow_null=True)

    def validate_email(self, v):
        v = v.strip().lower()
        if User.objects.filter(email__iexact=v).exists():
            raise serializers.ValidationError('An account with this email already exists.')
        return v

    def validate_insurance_id(self, v):
        if v is not None and not Insurance.objects.filter(pk=v).exists():
            raise serializers.ValidationError('Insurance not found.')
        return v

    def validate(self, attrs):
        password_validation.validate_password(
            attrs['password'], User(email=attrs['email'], full_name=attrs['full_name'])
        )
        return attrs


class InsuranceUpdateSerializer(serializers.Serializer):
    insurance_id = serializers.IntegerField(allow_null=True)

    def validate_insurance_id(self, v):
        if v is not None and not Insurance.objects.filter(pk=v).exists():
            raise serializers.ValidationError('Insurance not found.')
        return v


class InsuranceSerializer(serializers.ModelSerializer):
    class Meta:
        model = Insurance
        fields = ['id', 'name', 'coverage_percentage']


class UserSerializer(serializers.ModelSerializer):
    full_name = serializers.CharField(source='display_name')
    insurance = InsuranceSerializer(allow_null=True)
    doctor_id = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = ['id', 'email', 'full_name', 'role', 'phone', 'national_id', 'hospital_id', 'insurance', 'doctor_id']

    def get_doctor_id(self, obj):
        profile = getattr(obj, 'doctor_profile', None) if obj.role == 'doctor' else None
        return profile.id if profile else None
