from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from clinic.serializers.notifications import NotificationListQuerySerializer, NotificationReadSerializer
from clinic.services.notifications import list_notifications, mark_notifications_read


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def notification_list(request):
    """Return the caller's notifications, newest first, with the unread total."""
    q = NotificationListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    items, unread = list_notifications(
        request.user,
        unread_only=q.validated_data.get('unread', False),
        limit=q.validated_data.get('limit', 50),
    )
    return Response({'ok': True, 'unread': unread, 'data': items})


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def notification_read(request):
    s = NotificationReadSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    n = mark_notifications_read(request.user, s.validated_data.get('ids'))
    return Response({'ok': True, 'updated': n})
