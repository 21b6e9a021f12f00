import logging

from django.conf import settings
from django.utils import timezone
from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny, IsAdminUser
from rest_framework.response import Response
from drf_spectacular.utils import OpenApiParameter, extend_schema
from .exceptions import AuthenticationRequired, ChatError, ProviderUpstreamError, TranscriptFetchError
from .models import Event
from .serializers import (
    ChatErrorSerializer,
    ChatRequestSerializer,
    ChatResponseSerializer,
    EventSerializer,
    TranscriptSummaryRequestSerializer,
    UsageCheckResponseSerializer,
)
from .services import chat_service
from .usage import resolve_principal
from .utils import truncate_for_log

logger = logging.getLogger(__name__)


class EventViewSet(viewsets.ReadOnlyModelViewSet):
    """Public read-only event listing, plus an admin transcript refresh."""
    queryset = Event.objects.all()
    serializer_class = EventSerializer
    permission_classes = [AllowAny]

    @extend_schema(
        parameters=[OpenApiParameter('upcoming', bool, description='Only future (true) or past (false) events')],
    )
    def list(self, request, *args, **kwargs):
        return super().list(request, *args, **kwargs)

    def get_queryset(self):
        """Filter by schedule if `upcoming` is provided."""
        queryset = Event.objects.all()
        upcoming = self.request.query_params.get('upcoming')
        if upcoming is not None:
            now = timezone.now()
            if upcoming.lower() in {'1', 'true', 'yes'}:
                queryset = queryset.filter(scheduled_at__gte=now).order_by('scheduled_at')
            else:
                queryset = queryset.filter(scheduled_at__lt=now)
        return queryset

    @extend_schema(
        request=TranscriptSummaryRequestSerializer,
        responses={'200': {'type': 'object'}, '202': {'type': 'object'}},
    )
    @action(
        detail=True,
        methods=['post'],
        url_path='transcript-summary',
        permission_classes=[IsAdminUser],
    )
    def transcript_summary(self, request, pk=None):
        """
        Fetch the event's YouTube transcript and generate an AI summary.

        Expected body:
        {
          "youtube_url": "https://www.youtube.com/watch?v=..."   (optional)
        }
        """
        event = self.get_object()
        serializer = TranscriptSummaryRequestSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        youtube_url = serializer.validated_data.get('youtube_url') or None

        if settings.TRANSCRIPT_REFRESH_ASYNC:
            from .tasks import refresh_event_transcript_task

            task = refresh_event_transcript_task.delay(str(event.pk), youtube_url)
            return Response({'status': 'queued', 'task_id': task.id}, status=status.HTTP_202_ACCEPTED)

        from .transcripts import refresh_event_transcript

        try:
            result = refresh_event_transcript(event.pk, youtube_url)
        except TranscriptFetchError as e:
            logger.error('Transcript refresh failed for event %s: %s', event.pk, e)
            return Response({'error': str(e)}, status=status.HTTP_502_BAD_GATEWAY)
        return Response(result, status=status.HTTP_200_OK)


class ChatViewSet(viewsets.ViewSet):
    """AI chat grounded in selected video transcripts, with a daily quota."""
    permission_classes = [AllowAny]

    @extend_schema(
        request=ChatRequestSerializer,
        responses={
            200: ChatResponseSerializer,
            429: ChatErrorSerializer,
            502: ChatErrorSerializer,
            503: ChatErrorSerializer,
        },
        description=(
            'Send a chat message. A message of "__CHECK_USAGE__" returns '
            '{"currentCount", "dailyLimit"} without consuming a credit.'
        ),
    )
    def create(self, request):
        """
        Main chat endpoint.

        Request body:
        {
            "message": "What is the main topic of the video?",
            "eventIds": ["uuid", ...] (optional),
            "userApiKeys": {"openai": "...", "anthropic": "...", "gemini": "..."} (optional)
        }
        """
        serializer = ChatRequestSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        data = serializer.validated_data
        try:
            response = chat_service(
                request,
                message=data['message'],
                event_ids=data.get('eventIds'),
                user_api_keys=data.get('userApiKeys'),
            )
        except ChatError as e:
            self._log_error(request, data['message'], e)
            body = {'error': e.message}
            if isinstance(e, AuthenticationRequired):
                body['requiresAuth'] = True
            return Response(body, status=e.status_code)
        except Exception as e:
            self._log_error(request, data['message'], e)
            return Response(
                {'error': ChatError.default_message},
                status=status.HTTP_500_INTERNAL_SERVER_ERROR,
            )

        if 'currentCount' in response:
            return Response(UsageCheckResponseSerializer(response).data)
        return Response(ChatResponseSerializer(response).data)

    @staticmethod
    def _log_error(request, message, error):
        principal = resolve_principal(request)
        snippet = truncate_for_log(message)
        if isinstance(error, ProviderUpstreamError):
            logger.error('Provider failure for principal=%s message=%r: %s', principal, snippet, error)
        elif isinstance(error, ChatError) and error.status_code < 500:
            logger.info('Chat rejected for principal=%s message=%r: %s', principal, snippet, error.message)
        elif isinstance(error, ChatError):
            logger.error('Chat failed for principal=%s message=%r: %s', principal, snippet, error.message)
        else:
            logger.exception('Error in chat for principal=%s message=%r', principal, snippet)
