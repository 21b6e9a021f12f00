"""Endpoint tests for chat and events."""

from unittest.mock import MagicMock, patch

import pytest

from ai_chat.exceptions import ContextFetchError, ProviderUpstreamError
from ai_chat.models import UsageRecord
from ai_chat.providers import PROVIDERS

pytestmark = pytest.mark.django_db

CHAT_URL = '/api/ai/chat/'


@pytest.fixture
def operator_gemini(settings):
    settings.GEMINI_API_KEY = 'op-gemini'
    with patch.object(PROVIDERS['gemini'], 'send', return_value='Here is an answer.') as send:
        yield send


class TestChatEndpoint:
    def test_anonymous_without_keys_is_rejected(self, api_client, operator_gemini):
        response = api_client.post(CHAT_URL, {'message': 'hi'}, format='json')
        assert response.status_code == 429
        assert response.data['requiresAuth'] is True
        assert 'sign in' in response.data['error']
        operator_gemini.assert_not_called()

    def test_authenticated_message_succeeds(self, auth_client, operator_gemini, user):
        response = auth_client.post(CHAT_URL, {'message': 'hi'}, format='json')
        assert response.status_code == 200
        assert response.data == {'response': 'Here is an answer.'}
        operator_gemini.assert_called_once_with('hi', '', 'op-gemini')
        assert UsageRecord.objects.get(principal=str(user.pk)).credits_used == 1

    def test_five_messages_then_quota_exceeded(self, auth_client, operator_gemini):
        for _ in range(5):
            assert auth_client.post(CHAT_URL, {'message': 'hi'}, format='json').status_code == 200

        response = auth_client.post(CHAT_URL, {'message': 'hi'}, format='json')
        assert response.status_code == 429
        assert 'Daily credit limit of 5 reached' in response.data['error']
        assert 'requiresAuth' not in response.data
        assert operator_gemini.call_count == 5

    def test_usage_check_does_not_consume(self, auth_client, operator_gemini, user):
        auth_client.post(CHAT_URL, {'message': 'hi'}, format='json')
        for _ in range(3):
            response = auth_client.post(CHAT_URL, {'message': '__CHECK_USAGE__'}, format='json')
            assert response.status_code == 200
            assert response.data == {'currentCount': 1, 'dailyLimit': 5}

        assert UsageRecord.objects.get(principal=str(user.pk)).credits_used == 1
        operator_gemini.assert_called_once()

    def test_usage_check_requires_auth(self, api_client):
        response = api_client.post(CHAT_URL, {'message': '__CHECK_USAGE__'}, format='json')
        assert response.status_code == 429
        assert response.data['requiresAuth'] is True

    def test_own_keys_skip_auth_and_quota(self, api_client):
        with patch.object(PROVIDERS['anthropic'], 'send', return_value='From Claude') as send:
            response = api_client.post(
                CHAT_URL,
                {'message': 'hi', 'userApiKeys': {'anthropic': 'sk-user'}},
                format='json',
            )
        assert response.status_code == 200
        assert response.data['response'] == 'From Claude'
        send.assert_called_once_with('hi', '', 'sk-user')
        assert not UsageRecord.objects.exists()

    def test_null_user_keys_are_treated_as_absent(self, auth_client, operator_gemini, user):
        response = auth_client.post(
            CHAT_URL,
            {'message': 'hi', 'userApiKeys': {'openai': None, 'anthropic': None}},
            format='json',
        )
        assert response.status_code == 200
        operator_gemini.assert_called_once_with('hi', '', 'op-gemini')
        assert UsageRecord.objects.get(principal=str(user.pk)).credits_used == 1

    def test_null_key_object_is_accepted(self, auth_client, operator_gemini, user):
        response = auth_client.post(CHAT_URL, {'message': 'hi', 'userApiKeys': None}, format='json')
        assert response.status_code == 200
        assert UsageRecord.objects.get(principal=str(user.pk)).credits_used == 1

    def test_long_message_is_accepted(self, auth_client, operator_gemini):
        message = 'Please summarise this: ' + 'word ' * 5000
        response = auth_client.post(CHAT_URL, {'message': message}, format='json')
        assert response.status_code == 200
        assert operator_gemini.call_args.args[0] == message

    def test_no_credentials_is_503(self, auth_client):
        response = auth_client.post(CHAT_URL, {'message': 'hi'}, format='json')
        assert response.status_code == 503
        assert 'No AI API keys' in response.data['error']

    def test_provider_failure_is_502_without_vendor_detail(self, auth_client, operator_gemini):
        operator_gemini.side_effect = ProviderUpstreamError('gemini', 'API key not valid')
        response = auth_client.post(CHAT_URL, {'message': 'hi'}, format='json')
        assert response.status_code == 502
        assert 'temporarily unavailable' in response.data['error']
        assert 'API key not valid' not in response.data['error']

    def test_unexpected_error_is_500(self, auth_client, operator_gemini):
        operator_gemini.side_effect = RuntimeError('boom')
        response = auth_client.post(CHAT_URL, {'message': 'hi'}, format='json')
        assert response.status_code == 500
        assert 'boom' not in response.data['error']

    def test_event_context_reaches_provider(self, auth_client, operator_gemini, make_event):
        event = make_event(title='Deploy Friday', transcription='We deploy on Fridays.')
        response = auth_client.post(
            CHAT_URL,
            {'message': 'When do we deploy?', 'eventIds': [str(event.pk)]},
            format='json',
        )
        assert response.status_code == 200
        context = operator_gemini.call_args.args[1]
        assert '=== VIDEO: Deploy Friday ===' in context
        assert 'We deploy on Fridays.' in context

    def test_context_failure_degrades_to_empty_context(self, auth_client, operator_gemini):
        with patch('ai_chat.services.get_event_context', side_effect=ContextFetchError()):
            response = auth_client.post(
                CHAT_URL,
                {'message': 'hi', 'eventIds': ['0b5c1c1e-1111-4444-8888-000000000000']},
                format='json',
            )
        assert response.status_code == 200
        assert operator_gemini.call_args.args[1] == ''

    def test_missing_message_is_400(self, auth_client):
        response = auth_client.post(CHAT_URL, {'eventIds': []}, format='json')
        assert response.status_code == 400
        assert 'message' in response.data

    def test_invalid_token_is_401(self, api_client):
        api_client.credentials(HTTP_AUTHORIZATION='Bearer not-a-real-token')
        response = api_client.post(CHAT_URL, {'message': 'hi'}, format='json')
        assert response.status_code == 401


class TestEventEndpoints:
    def test_list_events(self, api_client, make_event):
        make_event(title='Past', transcription='words', scheduled_in_days=-3)
        make_event(title='Future', scheduled_in_days=3)
        response = api_client.get('/api/ai/events/')
        assert response.status_code == 200
        titles = [item['title'] for item in response.data]
        assert titles == ['Future', 'Past']
        past = next(item for item in response.data if item['title'] == 'Past')
        assert past['has_transcript'] is True
        assert 'transcription' not in past

    def test_upcoming_filter(self, api_client, make_event):
        make_event(title='Past', scheduled_in_days=-3)
        make_event(title='Soon', scheduled_in_days=1)
        make_event(title='Later', scheduled_in_days=5)
        upcoming = api_client.get('/api/ai/events/', {'upcoming': 'true'}).data
        assert [item['title'] for item in upcoming] == ['Soon', 'Later']
        past = api_client.get('/api/ai/events/', {'upcoming': 'false'}).data
        assert [item['title'] for item in past] == ['Past']

    def test_transcript_refresh_requires_admin(self, api_client, auth_client, make_event):
        event = make_event()
        url = f'/api/ai/events/{event.pk}/transcript-summary/'
        assert api_client.post(url, {}, format='json').status_code == 401
        assert auth_client.post(url, {}, format='json').status_code == 403

    def test_transcript_refresh_inline(self, admin_client, make_event):
        event = make_event(youtube_url='https://youtu.be/abc123')
        result = {'success': True, 'message': 'ok', 'transcript': 'hello', 'summary': None}
        with patch('ai_chat.transcripts.refresh_event_transcript', return_value=result) as refresh:
            response = admin_client.post(f'/api/ai/events/{event.pk}/transcript-summary/', {}, content_type='application/json')
        assert response.status_code == 200
        assert response.json()['success'] is True
        refresh.assert_called_once_with(event.pk, None)

    def test_transcript_refresh_failure_is_502(self, admin_client, make_event):
        event = make_event(youtube_url='not a youtube link')
        response = admin_client.post(f'/api/ai/events/{event.pk}/transcript-summary/', {}, content_type='application/json')
        assert response.status_code == 502
        assert response.json()['error'] == 'Invalid YouTube URL'

    def test_transcript_refresh_async(self, admin_client, make_event, settings):
        settings.TRANSCRIPT_REFRESH_ASYNC = True
        event = make_event()
        with patch('ai_chat.tasks.refresh_event_transcript_task.delay', return_value=MagicMock(id='task-1')) as delay:
            response = admin_client.post(
                f'/api/ai/events/{event.pk}/transcript-summary/',
                {'youtube_url': 'https://www.youtube.com/watch?v=xyz'},
                content_type='application/json',
            )
        assert response.status_code == 202
        assert response.json() == {'status': 'queued', 'task_id': 'task-1'}
        delay.assert_called_once_with(str(event.pk), 'https://www.youtube.com/watch?v=xyz')
