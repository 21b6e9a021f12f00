"""
LLM vendor adapters. Each one sends a single chat completion and returns the
reply as plain text, raising ProviderUpstreamError on any vendor failure.
"""
import logging

import anthropic
import openai
import requests
from django.conf import settings
from openai import OpenAI

from .exceptions import ProviderUpstreamError

logger = logging.getLogger(__name__)

GEMINI_URL = 'https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent'


def build_system_prompt(context: str) -> str:
    """Assistant persona, grounded in the video content when there is any."""
    hub = settings.HUB_NAME
    if not context:
        return (
            f'You are an AI assistant for the {hub}. Help users with questions about '
            'web development, the videos on the hub, and general programming topics.'
        )
    return f"""You are an AI assistant for the {hub}. Help users with questions about web development and the video content they've selected.

IMPORTANT: You have been provided with specific video content below. Use this content to answer questions when relevant. Reference specific details from the transcripts when possible.

VIDEO CONTENT:
{context}

Answer questions based on this video content when relevant, and provide general web development guidance when needed. When referencing the videos, mention specific details from the transcripts to show you're using the actual content."""


def _vendor_message(exc: Exception) -> str:
    """Best-effort vendor error message from an SDK exception body."""
    body = getattr(exc, 'body', None)
    if isinstance(body, dict):
        if isinstance(body.get('error'), dict):
            body = body['error']
        if body.get('message'):
            return str(body['message'])
    return getattr(exc, 'message', None) or str(exc) or 'Unknown error'


class BaseProvider:
    name = ''

    def send(self, message: str, context: str, api_key: str) -> str:
        raise NotImplementedError


class OpenAIProvider(BaseProvider):
    name = 'openai'

    def send(self, message, context, api_key):
        system = build_system_prompt(context)
        logger.info('Calling OpenAI with system message length: %d', len(system))
        client = OpenAI(api_key=api_key, timeout=settings.PROVIDER_TIMEOUT, max_retries=0)
        try:
            response = client.chat.completions.create(
                model=settings.OPENAI_MODEL,
                messages=[
                    {'role': 'system', 'content': system},
                    {'role': 'user', 'content': message},
                ],
                max_tokens=settings.AI_MAX_TOKENS,
                temperature=settings.AI_TEMPERATURE,
            )
        except openai.APIError as e:
            raise ProviderUpstreamError(self.name, _vendor_message(e)) from e
        try:
            return response.choices[0].message.content or ''
        except (IndexError, AttributeError) as e:
            raise ProviderUpstreamError(self.name, 'Malformed response') from e


class AnthropicProvider(BaseProvider):
    name = 'anthropic'

    def send(self, message, context, api_key):
        system = build_system_prompt(context)
        logger.info('Calling Anthropic with system message length: %d', len(system))
        client = anthropic.Anthropic(api_key=api_key, timeout=settings.PROVIDER_TIMEOUT, max_retries=0)
        try:
            response = client.messages.create(
                model=settings.ANTHROPIC_MODEL,
                max_tokens=settings.AI_MAX_TOKENS,
                system=system,
                messages=[{'role': 'user', 'content': message}],
            )
        except anthropic.APIError as e:
            raise ProviderUpstreamError(self.name, _vendor_message(e)) from e
        try:
            return response.content[0].text
        except (IndexError, AttributeError) as e:
            raise ProviderUpstreamError(self.name, 'Malformed response') from e


class GeminiProvider(BaseProvider):
    name = 'gemini'

    def send(self, message, context, api_key):
        system = build_system_prompt(context)
        logger.info('Calling Gemini with system message length: %d', len(system))
        try:
            response = requests.post(
                GEMINI_URL.format(model=settings.GEMINI_MODEL),
                params={'key': api_key},
                json={
                    'contents': [{'parts': [{'text': f'{system}\n\nUser: {message}'}]}],
                    'generationConfig': {
                        'temperature': settings.AI_TEMPERATURE,
                        'maxOutputTokens': settings.AI_MAX_TOKENS,
                    },
                },
                timeout=settings.PROVIDER_TIMEOUT,
            )
        except requests.RequestException as e:
            raise ProviderUpstreamError(self.name, str(e)) from e

        try:
            data = response.json()
        except ValueError:
            data = {}
        if not response.ok:
            error = data.get('error') if isinstance(data, dict) else None
            detail = error.get('message') if isinstance(error, dict) else None
            raise ProviderUpstreamError(self.name, detail or f'HTTP {response.status_code}')
        try:
            return data['candidates'][0]['content']['parts'][0]['text']
        except (KeyError, IndexError, TypeError) as e:
            raise ProviderUpstreamError(self.name, 'Malformed response') from e


PROVIDERS: dict[str, BaseProvider] = {
    provider.name: provider
    for provider in (GeminiProvider(), OpenAIProvider(), AnthropicProvider())
}

# Selection order for both caller-supplied and operator keys.
PROVIDER_PRIORITY = ('gemini', 'openai', 'anthropic')

OPERATOR_KEY_SETTINGS = {
    'gemini': 'GEMINI_API_KEY',
    'openai': 'OPENAI_API_KEY',
    'anthropic': 'ANTHROPIC_API_KEY',
}
