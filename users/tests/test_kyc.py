"""
Tests for creator KYC in the users app.

Covers the earnings threshold, the status snapshot and banner, starting
or resuming a Stripe Identity session, and the webhook transitions.
"""
from datetime import date
from unittest import mock

import pytest
import stripe

from notifications.models import EmailNotification
from users import kyc
from users.models import UserProfile


@pytest.mark.django_db
def test_profile_is_created_with_user(user):
    assert UserProfile.objects.filter(user=user).count() == 1
    assert user.profile.billing_data_complete is False
    assert user.profile.missing_billing_fields() == ["Straße", "Hausnummer", "PLZ", "Stadt"]

    user.profile.street = "Torstraße"
    user.profile.postcode = "10119"
    assert user.profile.missing_billing_fields() == ["Hausnummer", "Stadt"]


@pytest.mark.django_db
def test_record_earnings_flags_kyc_once(user, settings):
    settings.KYC_EARNINGS_THRESHOLD_CENTS = 10000

    profile = kyc.record_earnings(user, 6000)
    assert profile.lifetime_earnings == 6000
    assert profile.kyc_required is False
    assert not EmailNotification.objects.exists()

    profile = kyc.record_earnings(user, 4000)
    assert profile.lifetime_earnings == 10000
    assert profile.kyc_required is True
    assert profile.kyc_verification_status == UserProfile.KYC_NOT_STARTED
    notice = EmailNotification.objects.get()
    assert notice.notification_type == "id_verification_required"
    assert notice.data == {"threshold_eur": 100, "verification_url": "https://app.jetzz.test/profile/kyc"}

    UserProfile.objects.filter(pk=profile.pk).update(kyc_verification_status=UserProfile.KYC_PENDING)
    profile = kyc.record_earnings(user, 500)
    assert profile.kyc_verification_status == UserProfile.KYC_PENDING
    assert EmailNotification.objects.count() == 1


@pytest.mark.django_db
def test_mark_kyc_required_is_idempotent(user):
    profile = kyc.mark_kyc_required(user)
    assert profile.kyc_required is True
    assert profile.kyc_verification_status == UserProfile.KYC_NOT_STARTED

    UserProfile.objects.filter(pk=profile.pk).update(kyc_verification_status=UserProfile.KYC_FAILED)
    assert kyc.mark_kyc_required(user).kyc_verification_status == UserProfile.KYC_FAILED


@pytest.mark.django_db
def test_status_snapshot_and_banner(user):
    status = kyc.kyc_status(user)
    assert status.can_receive_payouts is True
    assert kyc.should_show_kyc_banner(status) is False

    kyc.mark_kyc_required(user)
    status = kyc.kyc_status(user)
    assert status.can_receive_payouts is False
    assert kyc.should_show_kyc_banner(status) is True

    UserProfile.objects.filter(user=user).update(kyc_verification_status=UserProfile.KYC_VERIFIED)
    status = kyc.kyc_status(user)
    assert status.can_receive_payouts is True
    assert kyc.should_show_kyc_banner(status) is False
    assert kyc.should_show_kyc_banner(None) is False


@pytest.mark.django_db
def test_kyc_status_endpoint(auth_client):
    resp = auth_client.get("/api/users/me/kyc/")
    assert resp.status_code == 200
    body = resp.json()
    assert body["required"] is False
    assert body["status"] is None
    assert body["show_banner"] is False
    assert body["lifetime_earnings"] == 0


def _session(session_id="vs_1", status="requires_input"):
    return mock.Mock(id=session_id, client_secret=f"{session_id}_secret", url=f"https://verify.stripe.com/{session_id}", status=status)


@pytest.mark.django_db
def test_start_verification_creates_document_session(auth_client, user):
    with mock.patch(
        "users.stripe_identity.stripe.identity.VerificationSession.create", return_value=_session()
    ) as create:
        resp = auth_client.post("/api/users/me/kyc/verify/", {}, content_type="application/json")

    assert resp.status_code == 200
    assert resp.json() == {
        "client_secret": "vs_1_secret",
        "verification_url": "https://verify.stripe.com/vs_1",
        "session_id": "vs_1",
        "status": "requires_input",
    }
    kwargs = create.call_args.kwargs
    assert kwargs["type"] == "document"
    assert kwargs["metadata"] == {"user_id": str(user.id), "email": "u1@example.com"}
    assert kwargs["options"]["document"]["allowed_types"] == ["driving_license", "passport", "id_card"]
    assert kwargs["options"]["document"]["require_matching_selfie"] is True
    assert kwargs["return_url"] == "https://app.jetzz.test/profile/kyc-callback"

    profile = UserProfile.objects.get(user=user)
    assert profile.kyc_verification_status == UserProfile.KYC_PENDING
    assert profile.stripe_identity_verification_id == "vs_1"
    assert profile.kyc_verification_last_attempt is not None


@pytest.mark.django_db
def test_pending_session_is_resumed(user):
    UserProfile.objects.filter(user=user).update(
        kyc_verification_status=UserProfile.KYC_PENDING, stripe_identity_verification_id="vs_old"
    )
    with mock.patch(
        "users.stripe_identity.stripe.identity.VerificationSession.retrieve", return_value=_session("vs_old")
    ), mock.patch("users.stripe_identity.stripe.identity.VerificationSession.create") as create:
        payload = kyc.create_identity_verification(user, "https://app.jetzz.test/cb")

    assert payload["session_id"] == "vs_old"
    create.assert_not_called()


@pytest.mark.django_db
def test_expired_session_is_replaced(user):
    UserProfile.objects.filter(user=user).update(
        kyc_verification_status=UserProfile.KYC_PENDING, stripe_identity_verification_id="vs_gone"
    )
    with mock.patch(
        "users.stripe_identity.stripe.identity.VerificationSession.retrieve",
        side_effect=stripe.InvalidRequestError("No such session", "id"),
    ), mock.patch(
        "users.stripe_identity.stripe.identity.VerificationSession.create", return_value=_session("vs_new")
    ):
        payload = kyc.create_identity_verification(user, "https://app.jetzz.test/cb")

    assert payload["session_id"] == "vs_new"
    assert UserProfile.objects.get(user=user).stripe_identity_verification_id == "vs_new"


@pytest.mark.django_db
def test_verified_user_cannot_start_again(auth_client, user):
    UserProfile.objects.filter(user=user).update(kyc_verification_status=UserProfile.KYC_VERIFIED)
    resp = auth_client.post("/api/users/me/kyc/verify/", {}, content_type="application/json")
    assert resp.status_code == 400
    assert resp.json()["error"] == "Already verified"


@pytest.mark.django_db
def test_stripe_outage_returns_502(auth_client):
    with mock.patch(
        "users.stripe_identity.stripe.identity.VerificationSession.create",
        side_effect=stripe.APIConnectionError("network down"),
    ):
        resp = auth_client.post("/api/users/me/kyc/verify/", {}, content_type="application/json")
    assert resp.status_code == 502


@pytest.mark.django_db
def test_webhook_transitions(user):
    assert kyc.handle_verification_created({"id": "vs_9", "metadata": {"user_id": str(user.id)}}) is True
    profile = UserProfile.objects.get(user=user)
    assert profile.kyc_verification_status == UserProfile.KYC_PENDING
    assert profile.stripe_identity_verification_id == "vs_9"

    assert kyc.handle_verification_requires_input({"id": "vs_9"}) is True
    assert UserProfile.objects.get(user=user).kyc_verification_status == UserProfile.KYC_FAILED

    verified = kyc.handle_verification_verified(
        {
            "id": "vs_9",
            "verified_outputs": {
                "first_name": "Ada",
                "last_name": "Muster",
                "dob": {"year": 1990, "month": 4, "day": 7},
                "address": {"line1": "Torstraße 1", "city": "Berlin", "postal_code": "10119", "country": "DE"},
                "id_number": "L01X00T47",
            },
        }
    )
    assert verified is True
    profile = UserProfile.objects.get(user=user)
    assert profile.kyc_verification_status == UserProfile.KYC_VERIFIED
    assert profile.kyc_verified_at is not None
    assert profile.kyc_verified_dob == date(1990, 4, 7)
    assert profile.kyc_verified_address["city"] == "Berlin"
    assert profile.kyc_verified_id_number == "L01X00T47"


def test_unknown_session_is_ignored(db):
    assert kyc.handle_verification_verified({"id": "vs_missing"}) is False
    assert kyc.handle_verification_created({"id": "vs_missing"}) is False
