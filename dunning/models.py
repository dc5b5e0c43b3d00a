"""
Models for the dunning app.

A `DunningCase` tracks one overdue premium subscription through up to
three reminder letters.  Cases that stay unpaid after the last letter
become a `CollectionCase`, which staff hand over to a collection agency
in bulk; each hand-over is recorded as a `CollectionExport`.  All
amounts are integer cents.
"""
from __future__ import annotations

import uuid

from django.conf import settings
from django.db import models
from django.utils import timezone

from payments.models import PremiumSubscription


class DunningCase(models.Model):
    STATUS_OPEN = "open"
    STATUS_PAID = "paid"
    STATUS_FORWARDED = "forwarded_to_collection"
    STATUS_WRITTEN_OFF = "written_off"
    STATUS_CLOSED = "closed"
    STATUS_CHOICES = [
        (STATUS_OPEN, "Open"),
        (STATUS_PAID, "Paid"),
        (STATUS_FORWARDED, "Forwarded to collection"),
        (STATUS_WRITTEN_OFF, "Written off"),
        (STATUS_CLOSED, "Closed"),
    ]

    MAX_LEVEL = 3

    public_id = models.UUIDField(default=uuid.uuid4, unique=True, editable=False)
    subscription = models.ForeignKey(
        PremiumSubscription,
        on_delete=models.CASCADE,
        related_name="dunning_cases",
    )
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="dunning_cases")
    status = models.CharField(max_length=32, choices=STATUS_CHOICES, default=STATUS_OPEN)
    dunning_level = models.PositiveSmallIntegerField(default=0)

    principal_amount = models.PositiveIntegerField(default=0)
    late_fees = models.PositiveIntegerField(default=0)
    interest_amount = models.PositiveIntegerField(default=0)
    total_amount = models.PositiveIntegerField(default=0)

    first_dunning_sent_at = models.DateTimeField(null=True, blank=True)
    second_dunning_sent_at = models.DateTimeField(null=True, blank=True)
    third_dunning_sent_at = models.DateTimeField(null=True, blank=True)
    next_action_date = models.DateTimeField(null=True, blank=True)

    interest_start_date = models.DateTimeField(null=True, blank=True)
    interest_rate = models.DecimalField(max_digits=5, decimal_places=2, default=0, help_text="Percent per year")
    admin_notes = models.TextField(blank=True)
    paid_at = models.DateTimeField(null=True, blank=True)
    payment_amount = models.PositiveIntegerField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [
            models.Index(fields=["status", "next_action_date"], name="dunning_status_next_idx"),
            models.Index(fields=["status", "dunning_level"], name="dunning_status_level_idx"),
        ]
        ordering = ["-dunning_level", "created_at"]

    def __str__(self) -> str:
        return f"{self.letter_number} (level {self.dunning_level}, {self.status})"

    @property
    def letter_number(self) -> str:
        return f"MAHN-{str(self.public_id)[:8].upper()}"


class DunningLetter(models.Model):
    SENT_VIA_EMAIL = "email"
    SENT_VIA_POSTAL = "postal_mail"
    SENT_VIA_BOTH = "both"
    SENT_VIA_CHOICES = [
        (SENT_VIA_EMAIL, "Email"),
        (SENT_VIA_POSTAL, "Postal mail"),
        (SENT_VIA_BOTH, "Both"),
    ]

    dunning_case = models.ForeignKey(DunningCase, on_delete=models.CASCADE, related_name="letters")
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="dunning_letters")
    subscription = models.ForeignKey(
        PremiumSubscription,
        on_delete=models.CASCADE,
        related_name="dunning_letters",
    )
    dunning_level = models.PositiveSmallIntegerField()
    letter_number = models.CharField(max_length=32)
    amount_claimed = models.PositiveIntegerField()
    late_fee = models.PositiveIntegerField(default=0)
    interest_amount = models.PositiveIntegerField(default=0)
    payment_deadline = models.DateTimeField()
    sent_via = models.CharField(max_length=16, choices=SENT_VIA_CHOICES, default=SENT_VIA_EMAIL)
    email_delivered = models.BooleanField(default=False)
    email_error = models.TextField(blank=True)
    sent_at = models.DateTimeField(default=timezone.now)
    paid_at = models.DateTimeField(null=True, blank=True)
    payment_amount = models.PositiveIntegerField(null=True, blank=True)
    metadata = models.JSONField(default=dict, blank=True)

    class Meta:
        ordering = ["sent_at"]

    def __str__(self) -> str:
        return f"{self.letter_number} level {self.dunning_level}"


class CollectionCase(models.Model):
    STATUS_OPEN = "open"
    STATUS_FORWARDED = "forwarded"
    STATUS_PAID = "paid"
    STATUS_CLOSED = "closed"
    STATUS_WRITTEN_OFF = "written_off"
    STATUS_CHOICES = [
        (STATUS_OPEN, "Open"),
        (STATUS_FORWARDED, "Forwarded"),
        (STATUS_PAID, "Paid"),
        (STATUS_CLOSED, "Closed"),
        (STATUS_WRITTEN_OFF, "Written off"),
    ]

    dunning_case = models.OneToOneField(DunningCase, on_delete=models.CASCADE, related_name="collection_case")
    subscription = models.ForeignKey(
        PremiumSubscription,
        on_delete=models.CASCADE,
        related_name="collection_cases",
    )
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="collection_cases")
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_OPEN)

    principal_amount = models.PositiveIntegerField(default=0)
    late_fees = models.PositiveIntegerField(default=0)
    interest_amount = models.PositiveIntegerField(default=0)
    collection_fees = models.PositiveIntegerField(default=0)
    total_amount = models.PositiveIntegerField(default=0)

    priority = models.CharField(max_length=16, default="normal")
    data_complete = models.BooleanField(default=False)
    missing_data = models.JSONField(default=list, blank=True)

    forwarded_to_collection_at = models.DateTimeField(null=True, blank=True)
    collection_agency_name = models.CharField(max_length=255, blank=True)
    collection_agency_email = models.EmailField(blank=True)
    collection_reference_number = models.CharField(max_length=128, blank=True)
    partial_payments_received = models.PositiveIntegerField(default=0)
    admin_notes = models.TextField(blank=True)
    closed_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"Collection {self.pk} ({self.status})"


class CollectionExport(models.Model):
    case_ids = models.JSONField(default=list)
    export_date = models.DateTimeField(auto_now_add=True)
    file_name = models.CharField(max_length=255)
    export_file_url = models.URLField(max_length=1000, blank=True)
    collection_agency_name = models.CharField(max_length=255)
    collection_agency_email = models.EmailField(blank=True)
    exported_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="collection_exports",
    )
    total_cases = models.PositiveIntegerField(default=0)
    total_amount = models.PositiveIntegerField(default=0)
    notes = models.TextField(blank=True)

    class Meta:
        ordering = ["-export_date"]

    def __str__(self) -> str:
        return self.file_name
