"""
KYC (identity verification) logic for creators.

Creators receive payouts without verification until their lifetime
earnings reach ``KYC_EARNINGS_THRESHOLD_CENTS``.  From then on the
profile is flagged ``kyc_required`` and payouts stay blocked until a
Stripe Identity session has been verified.

Status transitions:
    None / not_started --create session--> pending
    pending --identity.verification_session.verified--> verified
    pending --identity.verification_session.requires_input--> failed
    failed --create session--> pending
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, asdict
from datetime import date, datetime

from django.conf import settings
from django.db import transaction
from django.db.models import F
from django.utils import timezone

from notifications.services import queue_notification
from .models import UserProfile
from . import stripe_identity

logger = logging.getLogger(__name__)


class AlreadyVerified(Exception):
    """Raised when a verified user asks for a new verification session."""


@dataclass
class KYCStatus:
    required: bool
    status: str | None
    verified_at: datetime | None
    last_attempt: datetime | None
    lifetime_earnings: int
    can_receive_payouts: bool

    def as_dict(self) -> dict:
        return asdict(self)


def _profile(user) -> UserProfile:
    profile, _ = UserProfile.objects.get_or_create(user=user)
    return profile


def record_earnings(user, amount_cents: int) -> UserProfile:
    """
    Add `amount_cents` to the user's lifetime earnings and flag KYC once the
    threshold is crossed for the first time; the creator is emailed then.
    """
    became_required = False
    with transaction.atomic():
        profile = UserProfile.objects.select_for_update().get(pk=_profile(user).pk)
        UserProfile.objects.filter(pk=profile.pk).update(
            lifetime_earnings=F("lifetime_earnings") + max(int(amount_cents), 0)
        )
        profile.refresh_from_db()
        if profile.lifetime_earnings >= settings.KYC_EARNINGS_THRESHOLD_CENTS and not profile.kyc_required:
            profile.kyc_required = True
            profile.kyc_verification_status = UserProfile.KYC_NOT_STARTED
            profile.save(update_fields=["kyc_required", "kyc_verification_status", "updated_at"])
            became_required = True
            logger.info(
                "KYC now required for user %s (lifetime earnings %s cents)",
                user.pk,
                profile.lifetime_earnings,
            )

    if became_required:
        queue_notification(
            user,
            "id_verification_required",
            "Bitte verifiziere deine Identität",
            {
                "threshold_eur": settings.KYC_EARNINGS_THRESHOLD_CENTS // 100,
                "verification_url": f"{settings.FRONTEND_URL.rstrip('/')}/profile/kyc",
            },
        )
    return profile


def mark_kyc_required(user) -> UserProfile:
    """Flag KYC as required; leaves an existing verification status untouched."""
    profile = _profile(user)
    if not profile.kyc_required or not profile.kyc_verification_status:
        profile.kyc_required = True
        profile.kyc_verification_status = profile.kyc_verification_status or UserProfile.KYC_NOT_STARTED
        profile.save(update_fields=["kyc_required", "kyc_verification_status", "updated_at"])
    return profile


def kyc_status(user) -> KYCStatus:
    profile = _profile(user)
    return KYCStatus(
        required=profile.kyc_required,
        status=profile.kyc_verification_status,
        verified_at=profile.kyc_verified_at,
        last_attempt=profile.kyc_verification_last_attempt,
        lifetime_earnings=profile.lifetime_earnings,
        can_receive_payouts=(not profile.kyc_required) or profile.is_kyc_verified,
    )


def should_show_kyc_banner(status: KYCStatus | None) -> bool:
    if status is None or not status.required:
        return False
    return status.status != UserProfile.KYC_VERIFIED


def create_identity_verification(user, return_url: str) -> dict:
    """
    Start (or resume) a Stripe Identity verification for `user`.

    A pending session that still ``requires_input`` is handed back instead
    of creating a new one, so users can continue where they left off.
    """
    profile = _profile(user)
    if profile.kyc_verification_status == UserProfile.KYC_VERIFIED:
        raise AlreadyVerified()

    if profile.kyc_verification_status == UserProfile.KYC_PENDING and profile.stripe_identity_verification_id:
        existing = stripe_identity.retrieve_verification_session(profile.stripe_identity_verification_id)
        if existing is not None and existing.status == "requires_input":
            return _session_payload(existing)

    session = stripe_identity.create_verification_session(user, return_url)
    profile.stripe_identity_verification_id = session.id
    profile.kyc_verification_status = UserProfile.KYC_PENDING
    profile.kyc_verification_last_attempt = timezone.now()
    profile.save(
        update_fields=[
            "stripe_identity_verification_id",
            "kyc_verification_status",
            "kyc_verification_last_attempt",
            "updated_at",
        ]
    )
    logger.info("Created identity verification session %s for user %s", session.id, user.pk)
    return _session_payload(session)


def _session_payload(session) -> dict:
    return {
        "client_secret": session.client_secret,
        "verification_url": session.url,
        "session_id": session.id,
        "status": session.status,
    }


# ---------------------------
# Webhook transitions
# ---------------------------

def handle_verification_created(session: dict) -> bool:
    user_id = (session.get("metadata") or {}).get("user_id")
    if not user_id:
        logger.error("No user_id in verification session metadata (%s)", session.get("id"))
        return False
    updated = UserProfile.objects.filter(user_id=user_id).update(
        stripe_identity_verification_id=session["id"],
        kyc_verification_status=UserProfile.KYC_PENDING,
        kyc_verification_last_attempt=timezone.now(),
        updated_at=timezone.now(),
    )
    return bool(updated)


def handle_verification_verified(session: dict) -> bool:
    profile = UserProfile.objects.filter(stripe_identity_verification_id=session["id"]).first()
    if profile is None:
        logger.error("Profile not found for verification session %s", session["id"])
        return False

    profile.kyc_verification_status = UserProfile.KYC_VERIFIED
    profile.kyc_verified_at = timezone.now()
    outputs = session.get("verified_outputs") or {}
    if outputs.get("first_name"):
        profile.kyc_verified_first_name = outputs["first_name"]
    if outputs.get("last_name"):
        profile.kyc_verified_last_name = outputs["last_name"]
    dob = outputs.get("dob")
    if dob and dob.get("year") and dob.get("month") and dob.get("day"):
        profile.kyc_verified_dob = date(int(dob["year"]), int(dob["month"]), int(dob["day"]))
    address = outputs.get("address")
    if address:
        profile.kyc_verified_address = {
            key: address.get(key) for key in ("line1", "line2", "city", "postal_code", "country")
        }
    if outputs.get("id_number"):
        profile.kyc_verified_id_number = outputs["id_number"]
    profile.save()
    logger.info("KYC verification completed for user %s", profile.user_id)
    return True


def handle_verification_requires_input(session: dict) -> bool:
    updated = UserProfile.objects.filter(stripe_identity_verification_id=session["id"]).update(
        kyc_verification_status=UserProfile.KYC_FAILED,
        kyc_verification_last_attempt=timezone.now(),
        updated_at=timezone.now(),
    )
    if updated:
        logger.info("KYC verification failed for session %s", session["id"])
    return bool(updated)
