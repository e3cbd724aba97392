"""Compact nested representations shared by the workflow serializers."""
from rest_framework import serializers

from clinic.models import Doctor, User


class NamedSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    name = serializers.CharField()


class UserSummarySerializer(serializers.ModelSerializer):
    full_name = serializers.CharField(source='display_name')

    class Meta:
        model = User
        fields = ['id', 'full_name', 'email', 'phone']


class DoctorSummarySerializer(serializers.ModelSerializer):
    name = serializers.CharField(source='user.display_name')

    class Meta:
        model = Doctor
        fields = ['id', 'user_id', 'name', 'specialization']
