"""
Conversation and message endpoints.

``/api/conversations`` lists the caller's conversations (plus virtual
entries for appointment counterparts) and resolves a conversation with
a counterpart.  ``/api/conversations/<id>/messages`` reads a thread,
marking the other participant's messages read, and appends to it.
"""
from rest_framework.decorators import api_view, permission_classes, throttle_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.throttling import UserRateThrottle

from clinic.models import Conversation
from clinic.serializers.conversations import ConversationOpenSerializer, MessageSendSerializer
from clinic.services.conversations import (
    CounterpartNotFound,
    counterpart_key,
    format_conversation,
    list_conversations,
    resolve_conversation,
)
from clinic.services.messaging import format_message, list_messages, send_message


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def conversations(request):
    if request.method == 'GET':
        return Response(list_conversations(request.user))

    key = counterpart_key(request.user)
    if key is None:
        return Response({'ok': False, 'detail': 'Invalid user role'}, status=403)

    s = ConversationOpenSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    counterpart_id = s.validated_data.get(key)
    if counterpart_id is None:
        return Response({'ok': False, 'detail': f'{key} is required and must be a valid UUID'}, status=400)

    try:
        c, _ = resolve_conversation(request.user, counterpart_id)
    except CounterpartNotFound as e:
        return Response({'ok': False, 'detail': str(e)}, status=404)
    except PermissionError as e:
        return Response({'ok': False, 'detail': str(e)}, status=403)
    except ValueError as e:
        return Response({'ok': False, 'detail': str(e)}, status=400)
    return Response(format_conversation(c))


class MessageSendThrottle(UserRateThrottle):
    """Per-user send rate; polling GETs are left to the general user rate."""
    scope = 'message_send'

    def allow_request(self, request, view):
        if request.method != 'POST':
            return True
        return super().allow_request(request, view)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
@throttle_classes([UserRateThrottle, MessageSendThrottle])
def conversation_messages(request, conversation_id):
    try:
        c = Conversation.objects.get(id=conversation_id)
    except Conversation.DoesNotExist:
        return Response({'ok': False, 'detail': 'Conversation not found'}, status=404)

    if request.method == 'GET':
        try:
            items = list_messages(request.user, c)
        except PermissionError as e:
            return Response({'ok': False, 'detail': str(e)}, status=403)
        return Response(items)

    if not c.is_participant(request.user):
        return Response({'ok': False, 'detail': 'Access denied'}, status=403)
    s = MessageSendSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    try:
        msg = send_message(c, request.user, s.validated_data['content'])
    except PermissionError as e:
        return Response({'ok': False, 'detail': str(e)}, status=403)
    except ValueError as e:
        return Response({'ok': False, 'detail': str(e)}, status=400)
    return Response(format_message(msg))
