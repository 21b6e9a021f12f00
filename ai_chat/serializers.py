from rest_framework import serializers
from .models import Event


class EventSerializer(serializers.ModelSerializer):
    has_transcript = serializers.BooleanField(read_only=True)

    class Meta:
        model = Event
        fields = [
            'id',
            'title',
            'description',
            'ai_summary',
            'scheduled_at',
            'youtube_url',
            'has_transcript',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields


class UserApiKeysSerializer(serializers.Serializer):
    """Caller-supplied provider keys. Used for this request only, never stored."""
    openai = serializers.CharField(required=False, allow_blank=True, allow_null=True, trim_whitespace=True)
    anthropic = serializers.CharField(required=False, allow_blank=True, allow_null=True, trim_whitespace=True)
    gemini = serializers.CharField(required=False, allow_blank=True, allow_null=True, trim_whitespace=True)


class ChatRequestSerializer(serializers.Serializer):
    """Serializer for the chat endpoint."""
    message = serializers.CharField(trim_whitespace=False)
    eventIds = serializers.ListField(
        child=serializers.CharField(max_length=64),
        required=False,
        default=list,
    )
    userApiKeys = UserApiKeysSerializer(required=False, allow_null=True, default=dict)


class ChatResponseSerializer(serializers.Serializer):
    response = serializers.CharField()


class UsageCheckResponseSerializer(serializers.Serializer):
    currentCount = serializers.IntegerField()
    dailyLimit = serializers.IntegerField()


class ChatErrorSerializer(serializers.Serializer):
    error = serializers.CharField()
    requiresAuth = serializers.BooleanField(required=False)


class TranscriptSummaryRequestSerializer(serializers.Serializer):
    """Optional YouTube URL; the event's stored URL is used otherwise."""
    youtube_url = serializers.URLField(max_length=500, required=False, allow_blank=True)
