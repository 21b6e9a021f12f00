"""
Background jobs for the AI chat app.
"""
import logging

from celery import shared_task

from .exceptions import TranscriptFetchError
from .transcripts import refresh_event_transcript

logger = logging.getLogger(__name__)


@shared_task
def refresh_event_transcript_task(event_id: str, youtube_url: str | None = None) -> dict:
    """Fetch a transcript and summary for an event outside the request cycle."""
    try:
        return refresh_event_transcript(event_id, youtube_url)
    except TranscriptFetchError as e:
        logger.error('Transcript refresh failed for event %s: %s', event_id, e)
        return {'success': False, 'error': str(e)}
