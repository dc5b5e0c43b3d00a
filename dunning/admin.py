from django.contrib import admin

from .models import CollectionCase, CollectionExport, DunningCase, DunningLetter


class DunningLetterInline(admin.TabularInline):
    model = DunningLetter
    extra = 0
    can_delete = False
    readonly_fields = (
        "dunning_level", "letter_number", "amount_claimed", "payment_deadline",
        "email_delivered", "email_error", "sent_at", "paid_at",
    )
    fields = readonly_fields


@admin.register(DunningCase)
class DunningCaseAdmin(admin.ModelAdmin):
    list_display = ("letter_number", "user", "status", "dunning_level", "total_amount", "next_action_date")
    list_filter = ("status", "dunning_level")
    search_fields = ("user__username", "user__email", "subscription__stripe_subscription_id")
    raw_id_fields = ("user", "subscription")
    inlines = [DunningLetterInline]


@admin.register(CollectionCase)
class CollectionCaseAdmin(admin.ModelAdmin):
    list_display = ("id", "user", "status", "total_amount", "data_complete", "collection_agency_name")
    list_filter = ("status", "data_complete", "priority")
    search_fields = ("user__username", "collection_reference_number")
    raw_id_fields = ("user", "subscription", "dunning_case")


@admin.register(CollectionExport)
class CollectionExportAdmin(admin.ModelAdmin):
    list_display = ("file_name", "collection_agency_name", "total_cases", "total_amount", "export_date")
    readonly_fields = ("case_ids", "export_date")
