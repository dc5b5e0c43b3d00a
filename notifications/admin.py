from django.contrib import admin

from .models import EmailNotification


@admin.register(EmailNotification)
class EmailNotificationAdmin(admin.ModelAdmin):
    list_display = ("notification_type", "email_to", "status", "retry_count", "sent_at", "created_at")
    list_filter = ("status", "notification_type")
    search_fields = ("email_to", "subject")
    readonly_fields = ("sent_at", "error_message", "created_at", "updated_at")
