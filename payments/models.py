"""
Database models for the payments app.

Ticket sales go through Stripe Connect: the buyer pays the platform, the
organizer's connected account receives the transfer minus the
application fee.  Premium subscriptions, their invoices and failed
payment attempts are mirrored from Stripe webhooks; the dunning app
works from these records.  All amounts are integer cents.
"""
from __future__ import annotations

from django.conf import settings
from django.db import models

from events.models import Event


class EventTicket(models.Model):
    """A ticket type offered for an event."""

    event = models.ForeignKey(Event, on_delete=models.CASCADE, related_name="tickets")
    name = models.CharField(max_length=255)
    price = models.PositiveIntegerField(help_text="Ticket price in cents")
    currency = models.CharField(max_length=3, default="eur")
    total_quantity = models.PositiveIntegerField(default=0)
    available_quantity = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["price"]

    def __str__(self) -> str:
        return f"{self.name} ({self.currency} {self.price / 100:.2f})"


class TicketPurchase(models.Model):
    """Represents an individual purchase of one or more tickets."""

    STATUS_PENDING = "pending"
    STATUS_COMPLETED = "completed"
    STATUS_FAILED = "failed"
    STATUS_CHOICES = [
        (STATUS_PENDING, "Pending"),
        (STATUS_COMPLETED, "Completed"),
        (STATUS_FAILED, "Failed"),
    ]

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="ticket_purchases",
    )
    ticket = models.ForeignKey(EventTicket, on_delete=models.PROTECT, related_name="purchases")
    quantity = models.PositiveIntegerField(default=1)
    total_amount = models.PositiveIntegerField(help_text="Charged amount in cents")
    payment_status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=STATUS_PENDING)
    qr_code = models.CharField(max_length=255, blank=True)
    stripe_payment_intent_id = models.CharField(max_length=255, unique=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [
            models.Index(fields=["user", "payment_status"], name="purchase_user_status_idx"),
        ]
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"Purchase {self.id} ({self.get_payment_status_display()})"


class StripeConnectedAccount(models.Model):
    """An organizer's Stripe Connect account."""

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="stripe_account",
    )
    stripe_account_id = models.CharField(max_length=255, unique=True)
    details_submitted = models.BooleanField(default=False)
    charges_enabled = models.BooleanField(default=False)
    payouts_enabled = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return self.stripe_account_id


class CreatorPayout(models.Model):
    STATUS_PENDING = "pending"
    STATUS_COMPLETED = "completed"
    STATUS_FAILED = "failed"
    STATUS_CHOICES = [
        (STATUS_PENDING, "Pending"),
        (STATUS_COMPLETED, "Completed"),
        (STATUS_FAILED, "Failed"),
    ]

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="payouts")
    amount = models.PositiveIntegerField(help_text="Payout amount in cents")
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=STATUS_PENDING)
    stripe_payout_id = models.CharField(max_length=255, blank=True, db_index=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"Payout {self.id} ({self.status})"


class PremiumSubscription(models.Model):
    """A premium subscription as last reported by Stripe."""

    PLAN_MONTHLY = "monthly"
    PLAN_YEARLY = "yearly"
    PLAN_CHOICES = [(PLAN_MONTHLY, "Monthly"), (PLAN_YEARLY, "Yearly")]

    # Stripe statuses are stored verbatim; "cancelled" is set locally on deletion
    STATUS_ACTIVE = "active"
    STATUS_TRIALING = "trialing"
    STATUS_PAST_DUE = "past_due"
    STATUS_CANCELLED = "cancelled"

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="premium_subscriptions",
    )
    plan_type = models.CharField(max_length=10, choices=PLAN_CHOICES, default=PLAN_MONTHLY)
    stripe_subscription_id = models.CharField(max_length=255, unique=True)
    stripe_customer_id = models.CharField(max_length=255, blank=True)
    status = models.CharField(max_length=32, default=STATUS_ACTIVE)
    amount = models.PositiveIntegerField(default=0, help_text="Price per period in cents")
    current_period_start = models.DateTimeField(null=True, blank=True)
    current_period_end = models.DateTimeField(null=True, blank=True)
    cancel_at_period_end = models.BooleanField(default=False)
    trial_start_date = models.DateTimeField(null=True, blank=True)
    trial_end_date = models.DateTimeField(null=True, blank=True)
    has_used_trial = models.BooleanField(default=False)
    is_paused = models.BooleanField(default=False)
    pause_start_date = models.DateTimeField(null=True, blank=True)
    pause_end_date = models.DateTimeField(null=True, blank=True)
    canceled_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [
            models.Index(fields=["status", "is_paused"], name="subscription_status_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.stripe_subscription_id} ({self.status})"


class StripeInvoice(models.Model):
    stripe_invoice_id = models.CharField(max_length=255, unique=True)
    subscription = models.ForeignKey(
        PremiumSubscription,
        on_delete=models.CASCADE,
        related_name="invoices",
    )
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="stripe_invoices")
    stripe_customer_id = models.CharField(max_length=255, blank=True)
    amount_due = models.PositiveIntegerField(default=0)
    amount_paid = models.PositiveIntegerField(default=0)
    amount_remaining = models.PositiveIntegerField(default=0)
    currency = models.CharField(max_length=3, default="eur")
    status = models.CharField(max_length=32, default="open")
    invoice_number = models.CharField(max_length=64, blank=True)
    invoice_created_at = models.DateTimeField(null=True, blank=True)
    invoice_due_date = models.DateTimeField(null=True, blank=True)
    hosted_invoice_url = models.URLField(max_length=1000, blank=True)
    invoice_pdf_url = models.URLField(max_length=1000, blank=True)
    attempt_count = models.PositiveIntegerField(default=0)
    next_payment_attempt = models.DateTimeField(null=True, blank=True)
    billing_reason = models.CharField(max_length=64, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return self.invoice_number or self.stripe_invoice_id


class PaymentRetryLog(models.Model):
    STATUS_FAILED = "failed"
    STATUS_REQUIRES_ACTION = "requires_action"
    STATUS_CHOICES = [
        (STATUS_FAILED, "Failed"),
        (STATUS_REQUIRES_ACTION, "Requires action"),
    ]

    subscription = models.ForeignKey(
        PremiumSubscription,
        on_delete=models.CASCADE,
        related_name="retry_logs",
    )
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="payment_retry_logs")
    stripe_payment_intent_id = models.CharField(max_length=255, blank=True)
    stripe_invoice_id = models.CharField(max_length=255, blank=True)
    attempt_number = models.PositiveIntegerField(default=1)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES)
    failure_code = models.CharField(max_length=64, blank=True)
    failure_message = models.TextField(blank=True)
    amount = models.PositiveIntegerField(default=0)
    currency = models.CharField(max_length=3, default="eur")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]


class SubscriptionAuditLog(models.Model):
    stripe_subscription_id = models.CharField(max_length=255, db_index=True)
    action = models.CharField(max_length=32)
    changed_by_type = models.CharField(max_length=32, default="stripe_webhook")
    metadata = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.stripe_subscription_id}: {self.action}"
