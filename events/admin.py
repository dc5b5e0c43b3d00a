"""
Admin configuration for the events app.

Besides events, staff review the scraped-event queue and the history of
scheduled imports here.
"""
from django.contrib import admin

from .models import Event, ImportLog, ImportScheduler, ScrapedEvent


@admin.register(Event)
class EventAdmin(admin.ModelAdmin):
    list_display = ("title", "category", "city", "start_date", "is_published", "moderation_status", "external_source")
    list_filter = ("category", "is_published", "is_auto_imported", "moderation_status")
    search_fields = ("title", "city", "external_event_id")
    prepopulated_fields = {"slug": ("title",)}


class ImportLogInline(admin.TabularInline):
    model = ImportLog
    extra = 0
    can_delete = False
    readonly_fields = (
        "started_at", "finished_at", "status", "events_found",
        "events_imported", "events_skipped", "error_message",
    )
    fields = readonly_fields


@admin.register(ImportScheduler)
class ImportSchedulerAdmin(admin.ModelAdmin):
    list_display = ("name", "source", "is_active", "updated_at")
    list_filter = ("source", "is_active")
    inlines = [ImportLogInline]


@admin.register(ScrapedEvent)
class ScrapedEventAdmin(admin.ModelAdmin):
    list_display = ("title", "external_id", "status", "category", "start_date", "event")
    list_filter = ("status", "category")
    search_fields = ("title", "external_id")
    raw_id_fields = ("event", "source")
    actions = ["mark_rejected"]

    @admin.action(description="Reject selected scraped events")
    def mark_rejected(self, request, queryset):
        from django.utils import timezone

        updated = queryset.update(status=ScrapedEvent.STATUS_REJECTED, reviewed_at=timezone.now())
        self.message_user(request, f"{updated} scraped events rejected")
