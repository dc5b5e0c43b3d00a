from django.conf import settings
from django.contrib.contenttypes.fields import GenericForeignKey
from django.contrib.contenttypes.models import ContentType
from django.db import models


class Report(models.Model):
    REASON_SPAM = "spam"
    REASON_HARASSMENT = "harassment"
    REASON_HATE_SPEECH = "hate_speech"
    REASON_FALSE_INFO = "false_info"
    REASON_VIOLENCE = "violence"
    REASON_SEXUAL = "sexual_content"
    REASON_OTHER = "other"

    REASON_CHOICES = [
        (REASON_SPAM, "Spam"),
        (REASON_HARASSMENT, "Harassment"),
        (REASON_HATE_SPEECH, "Hate speech"),
        (REASON_FALSE_INFO, "False information"),
        (REASON_VIOLENCE, "Violence"),
        (REASON_SEXUAL, "Sexual content"),
        (REASON_OTHER, "Other"),
    ]

    DEFAULT_PRIORITY = 50

    reporter = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="reports_filed",
    )
    content_type = models.ForeignKey(ContentType, on_delete=models.CASCADE)
    object_id = models.PositiveBigIntegerField()
    target = GenericForeignKey("content_type", "object_id")
    reported_user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="reports_received",
    )
    reason = models.CharField(max_length=32, choices=REASON_CHOICES)
    notes = models.TextField(blank=True)
    priority_score = models.PositiveSmallIntegerField(default=DEFAULT_PRIORITY)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["reporter", "content_type", "object_id"],
                name="unique_report_per_user_target",
            ),
        ]
        indexes = [
            models.Index(fields=["content_type", "object_id", "created_at"], name="report_target_idx"),
            models.Index(fields=["reporter", "created_at"], name="report_reporter_idx"),
            models.Index(fields=["reason", "created_at"], name="report_reason_idx"),
        ]
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"Report({self.id}) {self.content_type_id}:{self.object_id} by {self.reporter_id}"


class ModerationAction(models.Model):
    ACTION_APPROVE = "approve"
    ACTION_SOFT_DELETE = "soft_delete"
    ACTION_AUTO_UNDER_REVIEW = "auto_under_review"

    ACTION_CHOICES = [
        (ACTION_APPROVE, "Approve"),
        (ACTION_SOFT_DELETE, "Soft delete"),
        (ACTION_AUTO_UNDER_REVIEW, "Auto under review"),
    ]

    performed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="moderation_actions",
    )
    content_type = models.ForeignKey(ContentType, on_delete=models.CASCADE)
    object_id = models.PositiveBigIntegerField()
    target = GenericForeignKey("content_type", "object_id")
    action = models.CharField(max_length=32, choices=ACTION_CHOICES)
    note = models.TextField(blank=True)
    meta = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=["content_type", "object_id", "created_at"], name="modaction_target_idx"),
        ]
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"ModerationAction({self.action}) {self.content_type_id}:{self.object_id}"


class ContentModeration(models.Model):
    """Result of an automated moderation check on a piece of text."""

    RISK_SAFE = "safe"
    RISK_LOW = "low"
    RISK_MEDIUM = "medium"
    RISK_HIGH = "high"
    RISK_CRITICAL = "critical"
    RISK_CHOICES = [
        (RISK_SAFE, "Safe"),
        (RISK_LOW, "Low"),
        (RISK_MEDIUM, "Medium"),
        (RISK_HIGH, "High"),
        (RISK_CRITICAL, "Critical"),
    ]

    ACTION_APPROVED = "approved"
    ACTION_NEEDS_REVIEW = "needs_review"
    ACTION_BLOCKED = "blocked"
    ACTION_CHOICES = [
        (ACTION_APPROVED, "Approved"),
        (ACTION_NEEDS_REVIEW, "Needs review"),
        (ACTION_BLOCKED, "Blocked"),
    ]

    content_type = models.CharField(max_length=64)
    content_id = models.CharField(max_length=64)
    flagged = models.BooleanField(default=False)
    risk_level = models.CharField(max_length=16, choices=RISK_CHOICES, default=RISK_SAFE)
    auto_action = models.CharField(max_length=16, choices=ACTION_CHOICES, default=ACTION_APPROVED)
    flagged_categories = models.JSONField(default=list, blank=True)
    category_scores = models.JSONField(default=dict, blank=True)
    model = models.CharField(max_length=64, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=["content_type", "content_id"], name="contentmod_target_idx"),
            models.Index(fields=["auto_action", "created_at"], name="contentmod_action_idx"),
        ]
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.content_type}:{self.content_id} {self.risk_level}"


class ApiUsageLog(models.Model):
    """One call to an external API, for cost and error tracking."""

    STATUS_SUCCESS = "success"
    STATUS_ERROR = "error"

    service = models.CharField(max_length=32)
    function_name = models.CharField(max_length=64)
    endpoint = models.CharField(max_length=255, blank=True)
    execution_time_ms = models.PositiveIntegerField(default=0)
    status = models.CharField(max_length=16)
    error_message = models.TextField(blank=True)
    metadata = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=["service", "created_at"], name="apiusage_service_idx"),
        ]
        ordering = ["-created_at"]
