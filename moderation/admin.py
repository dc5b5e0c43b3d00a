from django.contrib import admin

from .models import ApiUsageLog, ContentModeration, ModerationAction, Report


@admin.register(Report)
class ReportAdmin(admin.ModelAdmin):
    list_display = ("id", "content_type", "object_id", "reason", "reporter", "reported_user", "created_at")
    list_filter = ("reason", "content_type")
    search_fields = ("object_id", "reporter__username", "reporter__email")


@admin.register(ModerationAction)
class ModerationActionAdmin(admin.ModelAdmin):
    list_display = ("id", "content_type", "object_id", "action", "performed_by", "created_at")
    list_filter = ("action", "content_type")
    search_fields = ("object_id", "performed_by__username", "performed_by__email")


@admin.register(ContentModeration)
class ContentModerationAdmin(admin.ModelAdmin):
    list_display = ("content_type", "content_id", "flagged", "risk_level", "auto_action", "created_at")
    list_filter = ("risk_level", "auto_action", "content_type")
    search_fields = ("content_id",)


@admin.register(ApiUsageLog)
class ApiUsageLogAdmin(admin.ModelAdmin):
    list_display = ("service", "function_name", "status", "execution_time_ms", "created_at")
    list_filter = ("service", "status")
