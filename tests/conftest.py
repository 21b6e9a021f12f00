from datetime import timedelta

import pytest
from django.contrib.auth import get_user_model
from django.utils import timezone
from rest_framework.authtoken.models import Token
from rest_framework.test import APIClient

from ai_chat.models import Event
from ai_chat.services import get_openai_client


@pytest.fixture(autouse=True)
def ai_settings(settings):
    """Known quota and no operator keys, whatever the local .env holds."""
    settings.DAILY_CREDIT_LIMIT = 5
    settings.USAGE_PRINCIPAL = 'user'
    settings.MAX_TRANSCRIPT_LENGTH = 12000
    settings.OPENAI_API_KEY = ''
    settings.ANTHROPIC_API_KEY = ''
    settings.GEMINI_API_KEY = ''
    settings.YOUTUBE_TRANSCRIPT_API_TOKEN = ''
    settings.TRANSCRIPT_REFRESH_ASYNC = False
    if hasattr(get_openai_client, '_client'):
        del get_openai_client._client
    yield settings
    if hasattr(get_openai_client, '_client'):
        del get_openai_client._client


@pytest.fixture
def user(db):
    return get_user_model().objects.create_user(username='viewer', password='pw')


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def auth_client(user):
    token = Token.objects.create(user=user)
    client = APIClient()
    client.credentials(HTTP_AUTHORIZATION=f'Bearer {token.key}')
    return client


@pytest.fixture
def make_event(db):
    def _make(title='Shipping a feature', transcription='', scheduled_in_days=-1, **kwargs):
        return Event.objects.create(
            title=title,
            transcription=transcription,
            scheduled_at=timezone.now() + timedelta(days=scheduled_in_days),
            **kwargs,
        )
    return _make
