from django.conf import settings
from rest_framework import serializers


class ConversationOpenSerializer(serializers.Serializer):
    """Body of ``POST /api/conversations``.

    Patients name the doctor, doctors name the patient; which key is
    required depends on the caller and is decided by the view.
    """
    doctorId = serializers.UUIDField(required=False)
    patientId = serializers.UUIDField(required=False)


class MessageContentField(serializers.CharField):
    """CharField that refuses numbers and booleans instead of coercing them."""

    def to_internal_value(self, data):
        if not isinstance(data, str):
            self.fail('invalid')
        return super().to_internal_value(data)


class MessageSendSerializer(serializers.Serializer):
    content = MessageContentField(max_length=settings.MESSAGE_MAX_LENGTH)

    def validate_content(self, v):
        v = (v or '').strip()
        if not v:
            raise serializers.ValidationError('Message content is required')
        return v
