"""
Serializers for the users app.

Exposes the KYC status snapshot and the request body for starting an
identity verification.
"""
from __future__ import annotations

from rest_framework import serializers


class KYCStatusSerializer(serializers.Serializer):
    required = serializers.BooleanField()
    status = serializers.CharField(allow_null=True)
    verified_at = serializers.DateTimeField(allow_null=True)
    last_attempt = serializers.DateTimeField(allow_null=True)
    lifetime_earnings = serializers.IntegerField()
    can_receive_payouts = serializers.BooleanField()
    show_banner = serializers.BooleanField()


class VerificationRequestSerializer(serializers.Serializer):
    """Optional return URL; defaults to the app's KYC callback screen."""

    return_url = serializers.URLField(required=False)
