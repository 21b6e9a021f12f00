"""
Fetch a YouTube transcript for an event and store it with an AI summary.
"""
import logging
import re

import openai
import requests
from django.conf import settings

from .exceptions import NoCredentialsAvailable, TranscriptFetchError
from .models import Event
from .services import get_openai_client

logger = logging.getLogger(__name__)

VIDEO_ID_PATTERNS = (
    re.compile(r'(?:youtube\.com/watch\?v=|youtu\.be/|youtube\.com/embed/)([^&\n?#]+)'),
    re.compile(r'youtube\.com/live/([^&\n?#]+)'),
)

SUMMARY_INPUT_LIMIT = 4000
SUMMARY_SYSTEM_PROMPT = (
    'You are an AI assistant that creates concise, informative summaries of video content. '
    'Focus on key topics, main points, and actionable insights. Keep summaries between 100-200 words.'
)


def extract_video_id(url: str) -> str | None:
    for pattern in VIDEO_ID_PATTERNS:
        match = pattern.search(url or '')
        if match:
            return match.group(1)
    return None


def fetch_youtube_transcript(video_id: str) -> str:
    """
    Fetch a transcript from the youtube-transcript.io API, preferring the
    English track, with segments joined by spaces.

    Raises:
        TranscriptFetchError: token missing, API error, or no transcript
    """
    token = settings.YOUTUBE_TRANSCRIPT_API_TOKEN
    if not token:
        raise TranscriptFetchError('YouTube Transcript API token not configured')

    try:
        response = requests.post(
            settings.YOUTUBE_TRANSCRIPT_API_URL,
            headers={'Authorization': f'Basic {token}'},
            json={'ids': [video_id], 'countryCode': 'us'},
            timeout=30,
        )
    except requests.RequestException as e:
        raise TranscriptFetchError(f'YouTube Transcript API request failed: {e}') from e

    if not response.ok:
        logger.error('YouTube Transcript API error: %s %s', response.status_code, response.text[:500])
        raise TranscriptFetchError(f'YouTube Transcript API error: {response.status_code}')

    data = response.json()
    if isinstance(data, list) and data:
        video = next((item for item in data if item.get('id') == video_id), data[0])
        tracks = video.get('tracks') or []
        if tracks:
            track = next((t for t in tracks if t.get('language') == 'en'), tracks[0])
            segments = track.get('transcript') or []
            if segments:
                return ' '.join(segment.get('text', '') for segment in segments)

    raise TranscriptFetchError('No transcript found in API response')


def generate_ai_summary(transcript: str) -> str | None:
    """Summarize a transcript with the operator OpenAI key. None if unavailable."""
    try:
        client = get_openai_client()
    except NoCredentialsAvailable:
        logger.warning('AI summary skipped: OpenAI API key not configured')
        return None

    try:
        response = client.chat.completions.create(
            model=settings.OPENAI_MODEL,
            messages=[
                {'role': 'system', 'content': SUMMARY_SYSTEM_PROMPT},
                {
                    'role': 'user',
                    'content': f'Please provide a summary of this video transcript:\n\n{transcript[:SUMMARY_INPUT_LIMIT]}',
                },
            ],
            max_tokens=300,
            temperature=0.7,
        )
        return response.choices[0].message.content.strip()
    except openai.APIError:
        logger.exception('Error generating AI summary')
        return None


def refresh_event_transcript(event_id, youtube_url: str | None = None) -> dict:
    """
    Fetch and store the transcript and summary for an event.

    Raises:
        Event.DoesNotExist: unknown event
        TranscriptFetchError: bad URL or transcript unavailable
    """
    event = Event.objects.get(pk=event_id)
    url = youtube_url or event.youtube_url
    video_id = extract_video_id(url)
    if not video_id:
        raise TranscriptFetchError('Invalid YouTube URL')

    transcript = fetch_youtube_transcript(video_id)
    summary = generate_ai_summary(transcript)

    event.transcription = transcript
    update_fields = ['transcription', 'updated_at']
    if summary:
        event.ai_summary = summary
        update_fields.append('ai_summary')
    if youtube_url and youtube_url != event.youtube_url:
        event.youtube_url = youtube_url
        update_fields.append('youtube_url')
    event.save(update_fields=update_fields)
    logger.info('Stored transcript for event %s (%d chars, summary=%s)', event.pk, len(transcript), bool(summary))

    return {
        'success': True,
        'message': 'Transcript and summary generated successfully',
        'transcript': transcript[:200] + ('...' if len(transcript) > 200 else ''),
        'summary': summary,
    }
