from django.contrib import admin
from .models import Event, UsageRecord


@admin.register(Event)
class EventAdmin(admin.ModelAdmin):
    list_display = ('title', 'scheduled_at', 'has_transcript', 'updated_at')
    search_fields = ('title', 'description', 'transcription')
    list_filter = ('scheduled_at',)
    readonly_fields = ('created_at', 'updated_at')
    ordering = ('-scheduled_at',)

    @admin.display(boolean=True)
    def has_transcript(self, obj):
        return obj.has_transcript


@admin.register(UsageRecord)
class UsageRecordAdmin(admin.ModelAdmin):
    list_display = ('principal', 'usage_date', 'credits_used', 'updated_at')
    search_fields = ('principal',)
    list_filter = ('usage_date',)
    # Counters only change through the atomic increment.
    readonly_fields = ('principal', 'usage_date', 'credits_used', 'created_at', 'updated_at')
    ordering = ('-usage_date', 'principal')
