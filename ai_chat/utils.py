"""
Utility functions for the AI chat app.
"""
from datetime import date, timezone as dt_timezone

from django.utils import timezone

# Checked in order; CDN headers carry the real client address.
CLIENT_IP_HEADERS = (
    'HTTP_CF_CONNECTING_IP',
    'HTTP_TRUE_CLIENT_IP',
    'HTTP_X_FORWARDED_FOR',
    'HTTP_X_REAL_IP',
)
DEFAULT_CLIENT_IP = '127.0.0.1'


def client_ip(request) -> str:
    """
    Extract the client IP from proxy headers.

    Args:
        request: Django or DRF request

    Returns:
        The first non-empty address found, or the loopback address
    """
    meta = request.META
    for header in CLIENT_IP_HEADERS:
        value = meta.get(header, '')
        if header == 'HTTP_X_FORWARDED_FOR':
            value = value.split(',')[0]
        value = value.strip()
        if value:
            return value
    return DEFAULT_CLIENT_IP


def utc_today() -> date:
    """Current calendar date in UTC."""
    return timezone.now().astimezone(dt_timezone.utc).date()


def truncate_for_log(text: str, limit: int = 100) -> str:
    if text is None:
        return ''
    return text if len(text) <= limit else f'{text[:limit]}...'
