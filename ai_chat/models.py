import uuid

from django.db import models


class Event(models.Model):
    """
    A scheduled or past video event. The transcript and AI summary feed the
    chat assistant's context.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True, default='')
    transcription = models.TextField(blank=True, default='')
    ai_summary = models.TextField(blank=True, default='')
    scheduled_at = models.DateTimeField(db_index=True)
    youtube_url = models.URLField(max_length=500, blank=True, default='')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = 'Event'
        verbose_name_plural = 'Events'
        ordering = ['-scheduled_at']

    def __str__(self):
        return self.title

    @property
    def has_transcript(self) -> bool:
        return bool(self.transcription and self.transcription.strip())


class UsageRecord(models.Model):
    """
    Credits consumed by one principal (user id or client IP) on one UTC day.
    Only ever incremented through ai_chat.usage.increment_usage.
    """
    principal = models.CharField(max_length=255)
    usage_date = models.DateField()
    credits_used = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = 'Usage Record'
        verbose_name_plural = 'Usage Records'
        ordering = ['-usage_date', 'principal']
        constraints = [
            models.UniqueConstraint(fields=['principal', 'usage_date'], name='unique_principal_usage_date'),
        ]

    def __str__(self):
        return f'{self.principal} @ {self.usage_date}: {self.credits_used}'
