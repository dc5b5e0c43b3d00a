"""
Models for the users app.

A `UserProfile` model extends the built-in `auth.User` with the billing
address used for invoices and collections, the creator's lifetime
earnings, and the Stripe Identity (KYC) verification state.  The profile
is created automatically via signals when a new user instance is saved.
"""
from django.contrib.auth.models import User
from django.db import models


class UserProfile(models.Model):
    """Extension of Django's built-in User model."""

    KYC_NOT_STARTED = "not_started"
    KYC_PENDING = "pending"
    KYC_VERIFIED = "verified"
    KYC_FAILED = "failed"
    KYC_STATUS_CHOICES = [
        (KYC_NOT_STARTED, "Not started"),
        (KYC_PENDING, "Pending"),
        (KYC_VERIFIED, "Verified"),
        (KYC_FAILED, "Failed"),
    ]

    # Address fields in the order they are reported when missing
    BILLING_FIELDS = (
        ("street", "Straße"),
        ("house_number", "Hausnummer"),
        ("postcode", "PLZ"),
        ("city", "Stadt"),
    )

    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name="profile")
    phone_number = models.CharField(max_length=32, blank=True)
    date_of_birth = models.DateField(null=True, blank=True)

    # Billing address
    street = models.CharField(max_length=255, blank=True)
    house_number = models.CharField(max_length=32, blank=True)
    postcode = models.CharField(max_length=16, blank=True)
    city = models.CharField(max_length=128, blank=True)
    country = models.CharField(max_length=2, default="DE")

    # Creator earnings, in cents
    lifetime_earnings = models.PositiveBigIntegerField(default=0)

    # KYC / Stripe Identity
    kyc_required = models.BooleanField(default=False)
    kyc_verification_status = models.CharField(
        max_length=16, choices=KYC_STATUS_CHOICES, null=True, blank=True
    )
    stripe_identity_verification_id = models.CharField(max_length=255, blank=True)
    kyc_verification_last_attempt = models.DateTimeField(null=True, blank=True)
    kyc_verified_at = models.DateTimeField(null=True, blank=True)
    kyc_verified_first_name = models.CharField(max_length=150, blank=True)
    kyc_verified_last_name = models.CharField(max_length=150, blank=True)
    kyc_verified_dob = models.DateField(null=True, blank=True)
    kyc_verified_address = models.JSONField(default=dict, blank=True)
    kyc_verified_id_number = models.CharField(max_length=64, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [
            models.Index(fields=["stripe_identity_verification_id"], name="profile_identity_session_idx"),
            models.Index(fields=["kyc_required", "kyc_verification_status"], name="profile_kyc_idx"),
        ]

    def __str__(self) -> str:
        return f"Profile<{self.user.username}>"

    def missing_billing_fields(self) -> list[str]:
        """German labels of the billing address fields that are still empty."""
        return [label for field, label in self.BILLING_FIELDS if not (getattr(self, field) or "").strip()]

    @property
    def billing_data_complete(self) -> bool:
        return not self.missing_billing_fields()

    @property
    def is_kyc_verified(self) -> bool:
        return self.kyc_verification_status == self.KYC_VERIFIED
