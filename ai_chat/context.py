"""
Build the transcript context injected into the assistant's system prompt.
"""
import logging
import uuid

from django.conf import settings
from django.db import DatabaseError

from .exceptions import ContextFetchError
from .models import Event

logger = logging.getLogger(__name__)

# Characters kept back from each half for the marker text.
TRUNCATION_RESERVE = 100
TRUNCATION_MARKER = '[... MIDDLE SECTION TRUNCATED FOR LENGTH ...]'
BLOCK_SEPARATOR = '\n==========================================\n\n'
NO_TRANSCRIPTS_NOTE = 'Note: The selected videos do not have transcripts available yet.'


def truncate_transcript(transcript: str, max_length: int | None = None) -> str:
    """
    Keep the opening and closing of a transcript that exceeds `max_length`,
    dropping the middle. Shorter transcripts are returned unchanged.
    """
    max_length = max_length or settings.MAX_TRANSCRIPT_LENGTH
    if len(transcript) <= max_length:
        return transcript

    chunk_size = max(max_length // 2 - TRUNCATION_RESERVE, 0)
    first_chunk = transcript[:chunk_size]
    last_chunk = transcript[len(transcript) - chunk_size:]
    # Half-up rounding, so 20500 chars reads as 21k.
    size_k = int(len(transcript) / 1000 + 0.5)
    return (
        f'[BEGINNING OF VIDEO]\n{first_chunk}\n\n'
        f'{TRUNCATION_MARKER}\n\n'
        f'[END OF VIDEO]\n{last_chunk}\n'
        f'\n[Note: original transcript is {size_k}k characters, showing beginning and end sections]'
    )


def build_event_block(event: Event, max_length: int | None = None) -> str:
    """Render one video as a titled block: description, summary, transcript."""
    max_length = max_length or settings.MAX_TRANSCRIPT_LENGTH
    block = f'=== VIDEO: {event.title} ===\n'
    if event.description:
        block += f'Description: {event.description}\n\n'
    if event.ai_summary:
        block += f'AI Summary: {event.ai_summary}\n\n'

    transcript = event.transcription
    if len(transcript) > max_length:
        logger.info(
            'Chunking transcript for "%s" (%d chars -> %d chars)',
            event.title, len(transcript), max_length,
        )
        block += 'Full Transcript (chunked due to length):\n'
        block += truncate_transcript(transcript, max_length)
    else:
        block += f'Full Transcript:\n{transcript}\n'
    return block


def _valid_ids(event_ids) -> list[uuid.UUID]:
    valid = []
    for raw in event_ids:
        try:
            valid.append(uuid.UUID(str(raw)))
        except ValueError:
            logger.warning('Ignoring malformed event id: %r', raw)
    return valid


def get_event_context(event_ids) -> str:
    """
    Assemble context text for the given event ids.

    Returns:
        '' when no ids are given, an explanatory note when nothing usable is
        found, otherwise one block per event with a transcript

    Raises:
        ContextFetchError: the events could not be loaded
    """
    if not event_ids:
        return ''

    ids = _valid_ids(event_ids)
    logger.info('Fetching events for IDs: %s', event_ids)
    try:
        events = list(
            Event.objects.filter(pk__in=ids).only(
                'id', 'title', 'description', 'transcription', 'ai_summary'
            )
        )
    except DatabaseError as e:
        logger.exception('Error fetching events')
        raise ContextFetchError() from e

    if not events:
        logger.info('No events found for provided IDs: %s', event_ids)
        return (
            f'Note: No videos found for the selected IDs ({", ".join(str(i) for i in event_ids)}). '
            'Please check if the video IDs are correct.'
        )

    with_transcripts = [event for event in events if event.has_transcript]
    logger.info('Events with transcripts: %d of %d', len(with_transcripts), len(events))
    if not with_transcripts:
        return NO_TRANSCRIPTS_NOTE

    context = BLOCK_SEPARATOR.join(build_event_block(event) for event in with_transcripts)
    logger.info('Built context length: %d', len(context))
    return context
