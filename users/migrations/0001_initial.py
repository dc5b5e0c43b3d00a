"""
Initial migration for the users app.

Creates the `UserProfile` extension of ``auth.User`` with the billing
address, creator earnings and Stripe Identity verification fields.
"""
from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="UserProfile",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("phone_number", models.CharField(blank=True, max_length=32)),
                ("date_of_birth", models.DateField(blank=True, null=True)),
                ("street", models.CharField(blank=True, max_length=255)),
                ("house_number", models.CharField(blank=True, max_length=32)),
                ("postcode", models.CharField(blank=True, max_length=16)),
                ("city", models.CharField(blank=True, max_length=128)),
                ("country", models.CharField(default="DE", max_length=2)),
                ("lifetime_earnings", models.PositiveBigIntegerField(default=0)),
                ("kyc_required", models.BooleanField(default=False)),
                (
                    "kyc_verification_status",
                    models.CharField(
                        blank=True,
                        choices=[
                            ("not_started", "Not started"),
                            ("pending", "Pending"),
                            ("verified", "Verified"),
                            ("failed", "Failed"),
                        ],
                        max_length=16,
                        null=True,
                    ),
                ),
                ("stripe_identity_verification_id", models.CharField(blank=True, max_length=255)),
                ("kyc_verification_last_attempt", models.DateTimeField(blank=True, null=True)),
                ("kyc_verified_at", models.DateTimeField(blank=True, null=True)),
                ("kyc_verified_first_name", models.CharField(blank=True, max_length=150)),
                ("kyc_verified_last_name", models.CharField(blank=True, max_length=150)),
                ("kyc_verified_dob", models.DateField(blank=True, null=True)),
                ("kyc_verified_address", models.JSONField(blank=True, default=dict)),
                ("kyc_verified_id_number", models.CharField(blank=True, max_length=64)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "user",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="profile",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "indexes": [
                    models.Index(fields=["stripe_identity_verification_id"], name="profile_identity_session_idx"),
                    models.Index(fields=["kyc_required", "kyc_verification_status"], name="profile_kyc_idx"),
                ],
            },
        ),
    ]
