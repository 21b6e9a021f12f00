"""
Daily usage quota for callers without their own provider keys.

Counters live in UsageRecord, one row per (principal, UTC day). Increments go
through a single conditional UPDATE so concurrent requests from the same
principal can never lose an update.
"""
import logging
from dataclasses import dataclass
from datetime import date

from django.conf import settings
from django.db import transaction
from django.db.models import F
from django.utils import timezone

from .exceptions import AuthenticationRequired
from .models import UsageRecord
from .utils import client_ip, utc_today

logger = logging.getLogger(__name__)

CHECK_USAGE_MESSAGE = '__CHECK_USAGE__'


@dataclass
class UsageResult:
    allowed: bool
    current_count: int
    error: str | None = None
    requires_auth: bool = False


def daily_limit() -> int:
    return settings.DAILY_CREDIT_LIMIT


def resolve_principal(request) -> str | None:
    """
    Identity the quota is metered against: the authenticated user's id, or
    the client IP when USAGE_PRINCIPAL is 'ip'. None means anonymous.
    """
    if settings.USAGE_PRINCIPAL == 'ip':
        return client_ip(request)
    user = getattr(request, 'user', None)
    if user is None or not user.is_authenticated:
        return None
    return str(user.pk)


def get_usage_count(principal: str, day: date | None = None) -> int:
    """Credits used by `principal` on `day` (default today). Never writes."""
    day = day or utc_today()
    count = (
        UsageRecord.objects.filter(principal=principal, usage_date=day)
        .values_list('credits_used', flat=True)
        .first()
    )
    return count or 0


def increment_usage(principal: str, limit: int, day: date | None = None) -> tuple[bool, int]:
    """
    Atomically consume one credit if fewer than `limit` have been used.

    Returns:
        (consumed, count) where count is the value after the attempt
    """
    day = day or utc_today()
    with transaction.atomic():
        UsageRecord.objects.get_or_create(principal=principal, usage_date=day)
        consumed = UsageRecord.objects.filter(
            principal=principal,
            usage_date=day,
            credits_used__lt=limit,
        ).update(credits_used=F('credits_used') + 1, updated_at=timezone.now())
        count = UsageRecord.objects.filter(
            principal=principal, usage_date=day
        ).values_list('credits_used', flat=True).get()
    return bool(consumed), count


def check_usage(request, has_user_api_keys: bool, message: str | None = None) -> UsageResult:
    """
    Decide whether the caller may send a chat message.

    Callers with their own keys are unlimited. The CHECK_USAGE_MESSAGE
    sentinel reports the current count without consuming a credit.
    """
    if has_user_api_keys:
        return UsageResult(allowed=True, current_count=0)

    principal = resolve_principal(request)
    if principal is None:
        return UsageResult(
            allowed=False,
            current_count=0,
            error=AuthenticationRequired.default_message,
            requires_auth=True,
        )

    limit = daily_limit()

    if message == CHECK_USAGE_MESSAGE:
        count = get_usage_count(principal)
        logger.info('Usage check for %s: %d/%d', principal, count, limit)
        return UsageResult(allowed=count < limit, current_count=count)

    consumed, count = increment_usage(principal, limit)
    logger.info('Message request for %s: %d/%d credits used', principal, count, limit)
    if not consumed:
        logger.info('Credit limit reached for %s', principal)
        return UsageResult(
            allowed=False,
            current_count=count,
            error=(
                f'Daily credit limit of {limit} reached. '
                'Please add your own API keys to continue using the AI assistant.'
            ),
        )
    return UsageResult(allowed=True, current_count=count)
