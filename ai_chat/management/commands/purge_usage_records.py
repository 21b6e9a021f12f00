"""
Management command to delete old daily usage counters.
Run with: python manage.py purge_usage_records --days 30
"""
from datetime import timedelta

from django.core.management.base import BaseCommand, CommandError

from ai_chat.models import UsageRecord
from ai_chat.utils import utc_today


class Command(BaseCommand):
    help = 'Delete usage records older than the given number of days'

    def add_arguments(self, parser):
        parser.add_argument('--days', type=int, default=30, help='Keep records from the last N days')

    def handle(self, *args, **options):
        days = options['days']
        if days < 1:
            raise CommandError('--days must be at least 1')

        cutoff = utc_today() - timedelta(days=days)
        deleted, _ = UsageRecord.objects.filter(usage_date__lt=cutoff).delete()
        self.stdout.write(
            self.style.SUCCESS(f'Deleted {deleted} usage records older than {cutoff.isoformat()}')
        )
