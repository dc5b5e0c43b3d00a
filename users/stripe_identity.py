"""
Thin wrapper around Stripe Identity verification sessions.

Only document verification is used: a government ID (driving licence,
passport or national ID card) with ID number, live capture and a
matching selfie.
"""
import logging

import stripe
from django.conf import settings

logger = logging.getLogger(__name__)

ALLOWED_DOCUMENT_TYPES = ["driving_license", "passport", "id_card"]


def _configure():
    stripe.api_key = settings.STRIPE_SECRET_KEY
    stripe.api_version = settings.STRIPE_API_VERSION


def create_verification_session(user, return_url: str):
    """
    Create a document verification session for `user`.
    The user id travels in the session metadata so webhooks can find the profile.
    """
    _configure()
    try:
        return stripe.identity.VerificationSession.create(
            type="document",
            metadata={"user_id": str(user.id), "email": user.email or ""},
            options={
                "document": {
                    "allowed_types": ALLOWED_DOCUMENT_TYPES,
                    "require_id_number": True,
                    "require_live_capture": True,
                    "require_matching_selfie": True,
                }
            },
            return_url=return_url,
        )
    except stripe.StripeError as e:
        logger.error("Stripe Identity session creation failed for user %s: %s", user.id, e)
        raise


def retrieve_verification_session(session_id: str):
    """Fetch an existing session, or None if Stripe no longer knows it."""
    _configure()
    try:
        return stripe.identity.VerificationSession.retrieve(session_id)
    except stripe.StripeError as e:
        logger.info("Existing verification session %s not retrievable: %s", session_id, e)
        return None
