from rest_framework import serializers

from clinic.models import Notification, User


class NotificationCreateSerializer(serializers.Serializer):
    user_id = serializers.IntegerField(min_value=1)
    title = serializers.CharField(max_length=255)
    message = serializers.CharField(max_length=5000)
    type = serializers.ChoiceField(choices=[c[0] for c in Notification.TYPE_CHOICES], default='general')
    reference_id = serializers.CharField(max_length=64, required=False, allow_blank=True, allow_null=True)

    def validate_user_id(self, v):
        if not User.objects.filter(pk=v).exists():
            raise serializers.ValidationError('User not found.')
        return v


class NotificationSerializer(serializers.ModelSerializer):
    type = serializers.CharField(source='notification_type')

    class Meta:
        model = Notification
        fields = ['id', 'user_id', 'title', 'message', 'type', 'reference_id', 'is_read', 'created_at']
