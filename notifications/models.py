"""Queued transactional emails."""
from django.conf import settings
from django.db import models


class EmailNotification(models.Model):
    TYPE_PAYOUT_REQUESTED = "payout_requested"
    TYPE_PAYOUT_COMPLETED = "payout_completed"
    TYPE_ID_VERIFICATION_REQUIRED = "id_verification_required"
    TYPE_TICKET_PURCHASE_CONFIRMED = "ticket_purchase_confirmed"
    TYPE_CHOICES = [
        (TYPE_PAYOUT_REQUESTED, "Payout requested"),
        (TYPE_PAYOUT_COMPLETED, "Payout completed"),
        (TYPE_ID_VERIFICATION_REQUIRED, "ID verification required"),
        (TYPE_TICKET_PURCHASE_CONFIRMED, "Ticket purchase confirmed"),
    ]

    STATUS_PENDING = "pending"
    STATUS_SENT = "sent"
    STATUS_FAILED = "failed"
    STATUS_CHOICES = [
        (STATUS_PENDING, "Pending"),
        (STATUS_SENT, "Sent"),
        (STATUS_FAILED, "Failed"),
    ]

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="email_notifications",
    )
    # Not restricted to TYPE_CHOICES so unknown types fail at send time, not at queue time
    notification_type = models.CharField(max_length=64)
    email_to = models.EmailField()
    subject = models.CharField(max_length=255)
    data = models.JSONField(default=dict, blank=True)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=STATUS_PENDING)
    retry_count = models.PositiveIntegerField(default=0)
    sent_at = models.DateTimeField(null=True, blank=True)
    error_message = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["created_at"]
        indexes = [
            models.Index(fields=["status", "retry_count", "created_at"], name="email_queue_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.notification_type} -> {self.email_to} ({self.status})"
