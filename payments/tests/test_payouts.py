"""
Tests for creator payout requests: the KYC gate, the balance check and
the Stripe payout on the connected account.
"""
from unittest import mock

import pytest
import stripe
from django.test import Client

from notifications.models import EmailNotification
from payments.models import CreatorPayout, StripeConnectedAccount
from payments.payouts import available_balance
from users.models import UserProfile

URL = "/api/payments/payouts/request/"


@pytest.fixture
def creator_client(organizer):
    client = Client()
    resp = client.post("/api/token/", {"username": "org", "password": "pass12345"}, content_type="application/json")
    client.defaults["HTTP_AUTHORIZATION"] = f"Bearer {resp.json()['access']}"
    return client


@pytest.fixture
def earnings(organizer):
    UserProfile.objects.filter(user=organizer).update(lifetime_earnings=20000)


def _request(client, amount):
    return client.post(URL, {"amount": amount}, content_type="application/json")


@pytest.mark.django_db
def test_request_payout(creator_client, organizer, earnings):
    with mock.patch("payments.payouts.stripe.Payout.create", return_value=mock.Mock(id="po_1")) as create:
        resp = _request(creator_client, 15000)

    assert resp.status_code == 201
    assert resp.json()["status"] == CreatorPayout.STATUS_PENDING
    assert resp.json()["stripe_payout_id"] == "po_1"
    kwargs = create.call_args.kwargs
    assert kwargs["amount"] == 15000
    assert kwargs["currency"] == "eur"
    assert kwargs["stripe_account"] == "acct_123"

    notice = EmailNotification.objects.get()
    assert notice.user == organizer
    assert notice.notification_type == "payout_requested"
    assert notice.data["amount_eur"] == 150

    assert available_balance(organizer) == 5000
    listing = creator_client.get("/api/payments/payouts/")
    assert [p["stripe_payout_id"] for p in listing.json()["results"]] == ["po_1"]


@pytest.mark.django_db
def test_payout_blocked_until_kyc_verified(creator_client, organizer, earnings):
    UserProfile.objects.filter(user=organizer).update(
        kyc_required=True, kyc_verification_status=UserProfile.KYC_PENDING
    )
    with mock.patch("payments.payouts.stripe.Payout.create") as create:
        resp = _request(creator_client, 1000)

    assert resp.status_code == 403
    assert resp.json()["detail"] == "Identity verification is required before payouts"
    create.assert_not_called()
    assert not CreatorPayout.objects.exists()
    assert not EmailNotification.objects.exists()

    UserProfile.objects.filter(user=organizer).update(kyc_verification_status=UserProfile.KYC_VERIFIED)
    with mock.patch("payments.payouts.stripe.Payout.create", return_value=mock.Mock(id="po_2")):
        assert _request(creator_client, 1000).status_code == 201


@pytest.mark.django_db
def test_payout_cannot_exceed_balance(creator_client, organizer, earnings):
    CreatorPayout.objects.create(user=organizer, amount=15000, status=CreatorPayout.STATUS_COMPLETED)
    CreatorPayout.objects.create(user=organizer, amount=9000, status=CreatorPayout.STATUS_FAILED)

    with mock.patch("payments.payouts.stripe.Payout.create") as create:
        resp = _request(creator_client, 6000)

    assert resp.status_code == 400
    assert resp.json() == {"amount": "Only 5000 cents are available for payout."}
    create.assert_not_called()


@pytest.mark.django_db
def test_payout_requires_enabled_account(creator_client, organizer, earnings):
    StripeConnectedAccount.objects.filter(user=organizer).update(payouts_enabled=False)
    resp = _request(creator_client, 1000)
    assert resp.status_code == 400
    assert resp.json() == {"error": "Payouts are not enabled for your Stripe account"}


@pytest.mark.django_db
def test_payout_stripe_error_marks_payout_failed(creator_client, organizer, earnings):
    with mock.patch("payments.payouts.stripe.Payout.create", side_effect=stripe.StripeError("insufficient funds")):
        resp = _request(creator_client, 1000)

    assert resp.status_code == 502
    assert CreatorPayout.objects.get().status == CreatorPayout.STATUS_FAILED
    assert available_balance(organizer) == 20000
    assert not EmailNotification.objects.exists()
