"""
Initial migration for the moderation app.

Creates user reports and staff actions (both pointing at their target
through a generic relation), automated content checks and the external
API usage log.
"""
from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("contenttypes", "0002_remove_content_type_name"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Report",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("object_id", models.PositiveBigIntegerField()),
                (
                    "reason",
                    models.CharField(
                        choices=[
                            ("spam", "Spam"),
                            ("harassment", "Harassment"),
                            ("hate_speech", "Hate speech"),
                            ("false_info", "False information"),
                            ("violence", "Violence"),
                            ("sexual_content", "Sexual content"),
                            ("other", "Other"),
                        ],
                        max_length=32,
                    ),
                ),
                ("notes", models.TextField(blank=True)),
                ("priority_score", models.PositiveSmallIntegerField(default=50)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "content_type",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        to="contenttypes.contenttype",
                    ),
                ),
                (
                    "reported_user",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="reports_received",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "reporter",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="reports_filed",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["content_type", "object_id", "created_at"], name="report_target_idx"),
                    models.Index(fields=["reporter", "created_at"], name="report_reporter_idx"),
                    models.Index(fields=["reason", "created_at"], name="report_reason_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("reporter", "content_type", "object_id"),
                        name="unique_report_per_user_target",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="ModerationAction",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("object_id", models.PositiveBigIntegerField()),
                (
                    "action",
                    models.CharField(
                        choices=[
                            ("approve", "Approve"),
                            ("soft_delete", "Soft delete"),
                            ("auto_under_review", "Auto under review"),
                        ],
                        max_length=32,
                    ),
                ),
                ("note", models.TextField(blank=True)),
                ("meta", models.JSONField(blank=True, default=dict)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "content_type",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        to="contenttypes.contenttype",
                    ),
                ),
                (
                    "performed_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="moderation_actions",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["content_type", "object_id", "created_at"], name="modaction_target_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="ContentModeration",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("content_type", models.CharField(max_length=64)),
                ("content_id", models.CharField(max_length=64)),
                ("flagged", models.BooleanField(default=False)),
                (
                    "risk_level",
                    models.CharField(
                        choices=[
                            ("safe", "Safe"),
                            ("low", "Low"),
                            ("medium", "Medium"),
                            ("high", "High"),
                            ("critical", "Critical"),
                        ],
                        default="safe",
                        max_length=16,
                    ),
                ),
                (
                    "auto_action",
                    models.CharField(
                        choices=[("approved", "Approved"), ("needs_review", "Needs review"), ("blocked", "Blocked")],
                        default="approved",
                        max_length=16,
                    ),
                ),
                ("flagged_categories", models.JSONField(blank=True, default=list)),
                ("category_scores", models.JSONField(blank=True, default=dict)),
                ("model", models.CharField(blank=True, max_length=64)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["content_type", "content_id"], name="contentmod_target_idx"),
                    models.Index(fields=["auto_action", "created_at"], name="contentmod_action_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="ApiUsageLog",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("service", models.CharField(max_length=32)),
                ("function_name", models.CharField(max_length=64)),
                ("endpoint", models.CharField(blank=True, max_length=255)),
                ("execution_time_ms", models.PositiveIntegerField(default=0)),
                ("status", models.CharField(max_length=16)),
                ("error_message", models.TextField(blank=True)),
                ("metadata", models.JSONField(blank=True, default=dict)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["service", "created_at"], name="apiusage_service_idx"),
                ],
            },
        ),
    ]
