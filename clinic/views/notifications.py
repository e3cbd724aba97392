from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from clinic.exceptions import NotFoundError
from clinic.models import Notification
from clinic.permissions import IsStaffRole
from clinic.serializers.notifications import NotificationCreateSerializer, NotificationSerializer
from clinic.services import notifications as notification_service


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def notifications(request):
    if request.method == 'GET':
        qs = Notification.objects.filter(user=request.user).order_by('-created_at')
        if request.query_params.get('unread') in ('1', 'true'):
            qs = qs.filter(is_read=False)
        return Response(NotificationSerializer(qs[:100], many=True).data)

    if not IsStaffRole().has_permission(request, None):
        return Response({'ok': False, 'error': 'Only staff can send notifications.', 'code': 'permission_denied'},
                        status=status.HTTP_403_FORBIDDEN)
    s = NotificationCreateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    v = s.validated_data
    n = notification_service.create_notification(
        v['user_id'], v['title'], v['message'], v['type'], v.get('reference_id')
    )
    return Response(NotificationSerializer(n).data, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def unread_count(request):
    return Response({'count': notification_service.unread_count(request.user)})


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def mark_read(request, pk: int):
    n = notification_service.mark_read(request.user, pk)
    if n is None:
        raise NotFoundError('Notification not found.')
    return Response(NotificationSerializer(n).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def read_all(request):
    return Response({'ok': True, 'updated': notification_service.mark_all_read(request.user)})
