"""
Models for the events app.

An `Event` is either created by an organizer in the app or imported from
an external source (Ticketmaster).  Imported events carry
``external_source``/``external_event_id``; the pair is unique so repeated
imports never duplicate an event.

Scheduled imports first land in `ScrapedEvent` (a staging table with the
raw payload) and are promoted to `Event` by the auto-import job.  Each
run of an `ImportScheduler` leaves an `ImportLog`.
"""

import uuid

from django.conf import settings
from django.db import models
from django.db.models import Q
from django.utils.text import slugify


class Event(models.Model):
    """Represents a listed event."""

    CATEGORY_MUSIC = "music"
    CATEGORY_SPORTS = "sports"
    CATEGORY_ART = "art"
    CATEGORY_NIGHTLIFE = "nightlife"
    CATEGORY_FOOD = "food"
    CATEGORY_OTHER = "other"
    CATEGORY_CHOICES = [
        (CATEGORY_MUSIC, "Music"),
        (CATEGORY_SPORTS, "Sports"),
        (CATEGORY_ART, "Art"),
        (CATEGORY_NIGHTLIFE, "Nightlife"),
        (CATEGORY_FOOD, "Food"),
        (CATEGORY_OTHER, "Other"),
    ]

    SOURCE_TICKETMASTER = "ticketmaster"

    MODERATION_VISIBLE = "visible"
    MODERATION_UNDER_REVIEW = "under_review"
    MODERATION_REMOVED = "removed"
    MODERATION_CHOICES = [
        (MODERATION_VISIBLE, "Visible"),
        (MODERATION_UNDER_REVIEW, "Under review"),
        (MODERATION_REMOVED, "Removed"),
    ]

    organizer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="organized_events",
    )
    title = models.CharField(max_length=255)
    slug = models.SlugField(max_length=255, unique=True, blank=True)
    description = models.TextField(blank=True)
    category = models.CharField(max_length=20, choices=CATEGORY_CHOICES, default=CATEGORY_OTHER)

    location = models.CharField(max_length=500, blank=True)
    city = models.CharField(max_length=128, blank=True)
    latitude = models.FloatField(null=True, blank=True)
    longitude = models.FloatField(null=True, blank=True)

    start_date = models.DateField(null=True, blank=True)
    start_time = models.TimeField(null=True, blank=True)
    end_date = models.DateField(null=True, blank=True)
    end_time = models.TimeField(null=True, blank=True)

    image_url = models.URLField(max_length=1000, blank=True)
    ticket_url = models.URLField(max_length=1000, blank=True)
    external_url = models.URLField(max_length=1000, blank=True)
    external_event_id = models.CharField(max_length=255, null=True, blank=True)
    external_source = models.CharField(max_length=50, blank=True)

    is_published = models.BooleanField(default=False)
    is_free = models.BooleanField(default=True)
    is_auto_imported = models.BooleanField(default=False)
    moderation_status = models.CharField(
        max_length=16, choices=MODERATION_CHOICES, default=MODERATION_VISIBLE
    )
    moderation_updated_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["start_date", "start_time"]
        constraints = [
            models.UniqueConstraint(
                fields=["external_source", "external_event_id"],
                condition=Q(external_event_id__isnull=False),
                name="uniq_event_external_id",
            ),
        ]
        indexes = [
            models.Index(fields=["external_event_id"], name="event_external_id_idx"),
            models.Index(fields=["is_published", "start_date"], name="event_published_start_idx"),
        ]

    def save(self, *args, **kwargs):
        if not self.slug:
            self.slug = build_slug(self.title)
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.title} ({self.start_date or 'tba'})"


def build_slug(title: str) -> str:
    """Slug from the title plus a short random suffix; bulk imports skip the uniqueness query."""
    base = slugify(title)[:240] or "event"
    return f"{base}-{uuid.uuid4().hex[:8]}"


class ImportScheduler(models.Model):
    """
    A recurring import from an external source.

    ``config`` keys (camelCase, as stored by the admin UI): countryCode,
    city, radius, startDate, endDate, plus the resume state currentPage and
    consecutiveDuplicatePages maintained by the importer.
    """

    SOURCE_TICKETMASTER = "ticketmaster"
    SOURCE_CHOICES = [(SOURCE_TICKETMASTER, "Ticketmaster")]

    name = models.CharField(max_length=255)
    source = models.CharField(max_length=32, choices=SOURCE_CHOICES, default=SOURCE_TICKETMASTER)
    is_active = models.BooleanField(default=True)
    config = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name


class ImportLog(models.Model):
    STATUS_RUNNING = "running"
    STATUS_SUCCESS = "success"
    STATUS_FAILED = "failed"
    STATUS_CHOICES = [
        (STATUS_RUNNING, "Running"),
        (STATUS_SUCCESS, "Success"),
        (STATUS_FAILED, "Failed"),
    ]

    scheduler = models.ForeignKey(ImportScheduler, on_delete=models.CASCADE, related_name="logs")
    started_at = models.DateTimeField()
    finished_at = models.DateTimeField(null=True, blank=True)
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_RUNNING)
    events_found = models.PositiveIntegerField(default=0)
    events_imported = models.PositiveIntegerField(default=0)
    events_skipped = models.PositiveIntegerField(default=0)
    details = models.JSONField(default=dict, blank=True)
    error_message = models.TextField(blank=True)

    class Meta:
        ordering = ["-started_at"]

    def __str__(self) -> str:
        return f"ImportLog({self.scheduler_id}, {self.status})"


class ScrapedEvent(models.Model):
    """An externally sourced event waiting to be promoted into `Event`."""

    STATUS_PENDING = "pending"
    STATUS_APPROVED = "approved"
    STATUS_REJECTED = "rejected"
    STATUS_DUPLICATE = "duplicate"
    STATUS_CHOICES = [
        (STATUS_PENDING, "Pending"),
        (STATUS_APPROVED, "Approved"),
        (STATUS_REJECTED, "Rejected"),
        (STATUS_DUPLICATE, "Duplicate"),
    ]

    source = models.ForeignKey(
        ImportScheduler,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="scraped_events",
    )
    external_id = models.CharField(max_length=255, unique=True)
    title = models.CharField(max_length=500)
    description = models.TextField(blank=True)
    location = models.CharField(max_length=500, blank=True)
    latitude = models.FloatField(null=True, blank=True)
    longitude = models.FloatField(null=True, blank=True)
    start_date = models.DateTimeField(null=True, blank=True)
    end_date = models.DateTimeField(null=True, blank=True)
    category = models.CharField(max_length=64, default="Sonstiges")
    image_url = models.URLField(max_length=1000, blank=True)
    external_url = models.URLField(max_length=1000, blank=True)
    ticket_url = models.URLField(max_length=1000, blank=True)
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_PENDING)
    event = models.ForeignKey(
        Event,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="scraped_sources",
    )
    reviewed_at = models.DateTimeField(null=True, blank=True)
    raw_data = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["created_at"]
        indexes = [
            models.Index(fields=["status", "created_at"], name="scraped_status_created_idx"),
        ]

    def __str__(self) -> str:
        return f"ScrapedEvent({self.external_id}, {self.status})"
