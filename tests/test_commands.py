from datetime import timedelta
from io import StringIO

import pytest
from django.core.management import call_command
from django.core.management.base import CommandError

from ai_chat.models import UsageRecord
from ai_chat.utils import utc_today

pytestmark = pytest.mark.django_db


def test_purge_usage_records_keeps_recent_rows():
    today = utc_today()
    UsageRecord.objects.create(principal='a', usage_date=today, credits_used=2)
    UsageRecord.objects.create(principal='a', usage_date=today - timedelta(days=10), credits_used=5)
    UsageRecord.objects.create(principal='b', usage_date=today - timedelta(days=40), credits_used=1)

    out = StringIO()
    call_command('purge_usage_records', '--days', '7', stdout=out)

    assert 'Deleted 2 usage records' in out.getvalue()
    assert list(UsageRecord.objects.values_list('principal', 'usage_date')) == [('a', today)]


def test_purge_usage_records_rejects_bad_days():
    with pytest.raises(CommandError):
        call_command('purge_usage_records', '--days', '0')
