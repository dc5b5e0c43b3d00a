"""
Django admin registration for the payments app.

Mostly read-mostly views over what Stripe webhooks wrote, for support
and troubleshooting.
"""
from django.contrib import admin

from .models import (
    CreatorPayout,
    EventTicket,
    PaymentRetryLog,
    PremiumSubscription,
    StripeConnectedAccount,
    StripeInvoice,
    SubscriptionAuditLog,
    TicketPurchase,
)


@admin.register(EventTicket)
class EventTicketAdmin(admin.ModelAdmin):
    list_display = ("name", "event", "price", "currency", "available_quantity", "total_quantity")
    search_fields = ("name", "event__title")
    raw_id_fields = ("event",)


@admin.register(TicketPurchase)
class TicketPurchaseAdmin(admin.ModelAdmin):
    list_display = ("id", "ticket", "user", "quantity", "total_amount", "payment_status", "created_at")
    list_filter = ("payment_status",)
    search_fields = ("user__username", "stripe_payment_intent_id", "qr_code")
    ordering = ("-created_at",)


@admin.register(StripeConnectedAccount)
class StripeConnectedAccountAdmin(admin.ModelAdmin):
    list_display = ("user", "stripe_account_id", "details_submitted", "charges_enabled", "payouts_enabled")
    search_fields = ("user__username", "stripe_account_id")


@admin.register(CreatorPayout)
class CreatorPayoutAdmin(admin.ModelAdmin):
    list_display = ("id", "user", "amount", "status", "stripe_payout_id", "completed_at")
    list_filter = ("status",)


@admin.register(PremiumSubscription)
class PremiumSubscriptionAdmin(admin.ModelAdmin):
    list_display = ("stripe_subscription_id", "user", "plan_type", "status", "is_paused", "current_period_end")
    list_filter = ("plan_type", "status", "is_paused")
    search_fields = ("stripe_subscription_id", "stripe_customer_id", "user__email")


@admin.register(StripeInvoice)
class StripeInvoiceAdmin(admin.ModelAdmin):
    list_display = ("stripe_invoice_id", "invoice_number", "user", "amount_due", "status", "attempt_count")
    list_filter = ("status",)
    search_fields = ("stripe_invoice_id", "invoice_number")


@admin.register(PaymentRetryLog)
class PaymentRetryLogAdmin(admin.ModelAdmin):
    list_display = ("subscription", "attempt_number", "status", "failure_code", "amount", "created_at")
    list_filter = ("status",)


@admin.register(SubscriptionAuditLog)
class SubscriptionAuditLogAdmin(admin.ModelAdmin):
    list_display = ("stripe_subscription_id", "action", "changed_by_type", "created_at")
    list_filter = ("action",)
