"""
Core chat services: provider selection and the chat request flow.
"""
import logging
import time
from dataclasses import dataclass

from django.conf import settings
from openai import OpenAI

from .context import get_event_context
from .exceptions import AuthenticationRequired, ContextFetchError, NoCredentialsAvailable, QuotaExceeded
from .providers import OPERATOR_KEY_SETTINGS, PROVIDER_PRIORITY, PROVIDERS
from .usage import CHECK_USAGE_MESSAGE, check_usage, daily_limit, resolve_principal
from .utils import truncate_for_log

logger = logging.getLogger(__name__)


def get_openai_client():
    """Operator OpenAI client, created on first use."""
    if not hasattr(get_openai_client, '_client'):
        if not settings.OPENAI_API_KEY:
            raise NoCredentialsAvailable('OPENAI_API_KEY is not configured.')
        get_openai_client._client = OpenAI(
            api_key=settings.OPENAI_API_KEY,
            timeout=settings.PROVIDER_TIMEOUT,
            max_retries=0,
        )
    return get_openai_client._client


@dataclass(frozen=True)
class ProviderChoice:
    name: str
    api_key: str
    source: str  # "user" | "operator"


def has_user_api_keys(user_api_keys: dict | None) -> bool:
    return any((user_api_keys or {}).get(name) for name in PROVIDER_PRIORITY)


def select_provider(user_api_keys: dict | None) -> ProviderChoice:
    """
    Pick the provider to call: the caller's keys first, then the operator's,
    each in PROVIDER_PRIORITY order.

    Raises:
        NoCredentialsAvailable: neither the caller nor the operator has a key
    """
    user_api_keys = user_api_keys or {}
    for name in PROVIDER_PRIORITY:
        key = user_api_keys.get(name)
        if key:
            return ProviderChoice(name=name, api_key=key, source='user')

    available = {
        name: bool(getattr(settings, OPERATOR_KEY_SETTINGS[name], ''))
        for name in PROVIDER_PRIORITY
    }
    logger.info('Server-side API keys availability: %s', available)
    for name in PROVIDER_PRIORITY:
        key = getattr(settings, OPERATOR_KEY_SETTINGS[name], '')
        if key:
            return ProviderChoice(name=name, api_key=key, source='operator')

    logger.error('No API keys available - neither user-provided nor server-side')
    raise NoCredentialsAvailable()


def get_ai_response(message: str, context: str, user_api_keys: dict | None) -> str:
    choice = select_provider(user_api_keys)
    logger.info('Using %s %s API key', choice.source, choice.name)
    return PROVIDERS[choice.name].send(message, context, choice.api_key)


def chat_service(request, message: str, event_ids: list | None = None, user_api_keys: dict | None = None) -> dict:
    """
    Main service for a chat message.

    Args:
        request: DRF request (used for the caller's identity)
        message: User message, or CHECK_USAGE_MESSAGE for a quota check
        event_ids: Optional event ids whose transcripts ground the answer
        user_api_keys: Optional caller-supplied provider keys

    Returns:
        {'currentCount', 'dailyLimit'} for a usage check, else {'response'}

    Raises:
        ChatError subclasses, mapped to HTTP statuses by the view
    """
    own_keys = has_user_api_keys(user_api_keys)
    logger.info(
        'Received request: message=%r eventIds=%s hasUserApiKeys=%s',
        truncate_for_log(message), event_ids, own_keys,
    )

    if message == CHECK_USAGE_MESSAGE:
        result = check_usage(request, own_keys, message=message)
        if result.requires_auth:
            raise AuthenticationRequired(result.error)
        return {'currentCount': result.current_count, 'dailyLimit': daily_limit()}

    result = check_usage(request, own_keys)
    if not result.allowed:
        if result.requires_auth:
            raise AuthenticationRequired(result.error)
        raise QuotaExceeded(result.error)

    start_time = time.time()
    try:
        context = get_event_context(event_ids)
    except ContextFetchError:
        logger.warning(
            'Context fetch failed for principal=%s, continuing without video context',
            resolve_principal(request),
        )
        context = ''
    context_time = time.time() - start_time

    llm_start = time.time()
    response = get_ai_response(message, context, user_api_keys)
    llm_time = time.time() - llm_start
    logger.info('Context: %.2fs, LLM: %.2fs, Total: %.2fs', context_time, llm_time, time.time() - start_time)

    return {'response': response}
