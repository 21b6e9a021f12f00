"""
Errors raised while serving a chat request. Each carries the HTTP status and
the user-presentable message the view responds with.
"""


class ChatError(Exception):
    status_code = 500
    default_message = 'Something went wrong while processing your message. Please try again.'

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class AuthenticationRequired(ChatError):
    status_code = 429
    default_message = 'Authentication required. Please sign in to use the AI assistant.'


class QuotaExceeded(ChatError):
    status_code = 429
    default_message = 'Daily credit limit reached. Please add your own API keys to continue using the AI assistant.'


class NoCredentialsAvailable(ChatError):
    status_code = 503
    default_message = (
        'No AI API keys are currently available. '
        'Please add your own API keys to use the AI chat feature.'
    )


class ProviderUpstreamError(ChatError):
    """
    A vendor call failed. `detail` holds the vendor's own message and is only
    logged; users see the generic message.
    """
    status_code = 502
    default_message = 'The AI service is temporarily unavailable. Please try again in a moment.'

    def __init__(self, provider: str, detail: str):
        self.provider = provider
        self.detail = detail
        super().__init__()

    def __str__(self):
        return f'{self.provider} API error: {self.detail}'


class ContextFetchError(ChatError):
    default_message = 'Failed to fetch video context'


class TranscriptFetchError(Exception):
    """Fetching a video transcript from the transcript API failed."""
