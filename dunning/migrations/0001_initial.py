"""
Initial migration for the dunning app.

Creates dunning cases with their letters, collection cases and the
record of bulk exports to collection agencies.
"""
import uuid

from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("payments", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="DunningCase",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("public_id", models.UUIDField(default=uuid.uuid4, editable=False, unique=True)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("open", "Open"),
                            ("paid", "Paid"),
                            ("forwarded_to_collection", "Forwarded to collection"),
                            ("written_off", "Written off"),
                            ("closed", "Closed"),
                        ],
                        default="open",
                        max_length=32,
                    ),
                ),
                ("dunning_level", models.PositiveSmallIntegerField(default=0)),
                ("principal_amount", models.PositiveIntegerField(default=0)),
                ("late_fees", models.PositiveIntegerField(default=0)),
                ("interest_amount", models.PositiveIntegerField(default=0)),
                ("total_amount", models.PositiveIntegerField(default=0)),
                ("first_dunning_sent_at", models.DateTimeField(blank=True, null=True)),
                ("second_dunning_sent_at", models.DateTimeField(blank=True, null=True)),
                ("third_dunning_sent_at", models.DateTimeField(blank=True, null=True)),
                ("next_action_date", models.DateTimeField(blank=True, null=True)),
                ("interest_start_date", models.DateTimeField(blank=True, null=True)),
                (
                    "interest_rate",
                    models.DecimalField(decimal_places=2, default=0, help_text="Percent per year", max_digits=5),
                ),
                ("admin_notes", models.TextField(blank=True)),
                ("paid_at", models.DateTimeField(blank=True, null=True)),
                ("payment_amount", models.PositiveIntegerField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "subscription",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="dunning_cases",
                        to="payments.premiumsubscription",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="dunning_cases",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-dunning_level", "created_at"],
                "indexes": [
                    models.Index(fields=["status", "next_action_date"], name="dunning_status_next_idx"),
                    models.Index(fields=["status", "dunning_level"], name="dunning_status_level_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="DunningLetter",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("dunning_level", models.PositiveSmallIntegerField()),
                ("letter_number", models.CharField(max_length=32)),
                ("amount_claimed", models.PositiveIntegerField()),
                ("late_fee", models.PositiveIntegerField(default=0)),
                ("interest_amount", models.PositiveIntegerField(default=0)),
                ("payment_deadline", models.DateTimeField()),
                (
                    "sent_via",
                    models.CharField(
                        choices=[("email", "Email"), ("postal_mail", "Postal mail"), ("both", "Both")],
                        default="email",
                        max_length=16,
                    ),
                ),
                ("email_delivered", models.BooleanField(default=False)),
                ("email_error", models.TextField(blank=True)),
                ("sent_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("paid_at", models.DateTimeField(blank=True, null=True)),
                ("payment_amount", models.PositiveIntegerField(blank=True, null=True)),
                ("metadata", models.JSONField(blank=True, default=dict)),
                (
                    "dunning_case",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="letters",
                        to="dunning.dunningcase",
                    ),
                ),
                (
                    "subscription",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="dunning_letters",
                        to="payments.premiumsubscription",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="dunning_letters",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["sent_at"],
            },
        ),
        migrations.CreateModel(
            name="CollectionCase",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("open", "Open"),
                            ("forwarded", "Forwarded"),
                            ("paid", "Paid"),
                            ("closed", "Closed"),
                            ("written_off", "Written off"),
                        ],
                        default="open",
                        max_length=16,
                    ),
                ),
                ("principal_amount", models.PositiveIntegerField(default=0)),
                ("late_fees", models.PositiveIntegerField(default=0)),
                ("interest_amount", models.PositiveIntegerField(default=0)),
                ("collection_fees", models.PositiveIntegerField(default=0)),
                ("total_amount", models.PositiveIntegerField(default=0)),
                ("priority", models.CharField(default="normal", max_length=16)),
                ("data_complete", models.BooleanField(default=False)),
                ("missing_data", models.JSONField(blank=True, default=list)),
                ("forwarded_to_collection_at", models.DateTimeField(blank=True, null=True)),
                ("collection_agency_name", models.CharField(blank=True, max_length=255)),
                ("collection_agency_email", models.EmailField(blank=True, max_length=254)),
                ("collection_reference_number", models.CharField(blank=True, max_length=128)),
                ("partial_payments_received", models.PositiveIntegerField(default=0)),
                ("admin_notes", models.TextField(blank=True)),
                ("closed_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "dunning_case",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="collection_case",
                        to="dunning.dunningcase",
                    ),
                ),
                (
                    "subscription",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="collection_cases",
                        to="payments.premiumsubscription",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="collection_cases",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
            },
        ),
        migrations.CreateModel(
            name="CollectionExport",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("case_ids", models.JSONField(default=list)),
                ("export_date", models.DateTimeField(auto_now_add=True)),
                ("file_name", models.CharField(max_length=255)),
                ("export_file_url", models.URLField(blank=True, max_length=1000)),
                ("collection_agency_name", models.CharField(max_length=255)),
                ("collection_agency_email", models.EmailField(blank=True, max_length=254)),
                ("total_cases", models.PositiveIntegerField(default=0)),
                ("total_amount", models.PositiveIntegerField(default=0)),
                ("notes", models.TextField(blank=True)),
                (
                    "exported_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="collection_exports",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-export_date"],
            },
        ),
    ]
