"""
URL mappings for the telehealth backend API.

Trailing slashes are deliberately omitted; the portals call these paths
exactly as written here.
"""
from django.urls import path, include
from .views import conversations
from .views import health
from .views import notifications


urlpatterns = [
    path('', include('django_prometheus.urls')),  # serves /metrics
    path('healthz', health.healthz),
    # Conversations & messages
    path('api/conversations', conversations.conversations, name='conversations'),
    path('api/conversations/<uuid:conversation_id>/messages', conversations.conversation_messages, name='conversation-messages'),
    # Notifications
    path('api/notifications', notifications.notification_list, name='notifications'),
    path('api/notifications/read', notifications.notification_read, name='notifications-read'),
]
