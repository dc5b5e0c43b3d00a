"""
Tests for ticket checkout.

Stripe is mocked; the assertions cover the fee split, the PaymentIntent
parameters and the checks that run before Stripe is called.
"""
from unittest import mock

import pytest
import stripe

from payments.checkout import calculate_fees
from payments.models import EventTicket, StripeConnectedAccount


def test_calculate_fees():
    fees = calculate_fees(5000)
    assert fees.platform_fee == 250
    assert fees.stripe_fee == 175
    assert fees.application_fee == 425


def test_calculate_fees_rounds_half_up():
    # 2.9% of 2500 is 72.5
    fees = calculate_fees(2500)
    assert fees.platform_fee == 125
    assert fees.stripe_fee == 103


def _checkout(client, event_id, ticket_id, quantity=2):
    return client.post(
        "/api/payments/tickets/checkout/",
        {"event_id": event_id, "ticket_id": ticket_id, "quantity": quantity},
        content_type="application/json",
    )


@pytest.mark.django_db
def test_checkout_creates_payment_intent(auth_client, user, event, ticket):
    intent = mock.Mock(id="pi_123", client_secret="pi_123_secret")
    with mock.patch("payments.checkout.stripe.PaymentIntent.create", return_value=intent) as create:
        resp = _checkout(auth_client, event.id, ticket.id)

    assert resp.status_code == 200
    assert resp.json() == {
        "client_secret": "pi_123_secret",
        "payment_intent_id": "pi_123",
        "amount": 5000,
        "platform_fee": 250,
        "stripe_fee": 175,
    }
    kwargs = create.call_args.kwargs
    assert kwargs["amount"] == 5000
    assert kwargs["currency"] == "eur"
    assert kwargs["application_fee_amount"] == 425
    assert kwargs["transfer_data"] == {"destination": "acct_123"}
    assert kwargs["metadata"] == {
        "user_id": str(user.id),
        "event_id": str(event.id),
        "ticket_id": str(ticket.id),
        "quantity": "2",
        "type": "ticket_purchase",
    }


@pytest.mark.django_db
def test_checkout_requires_authentication(client, event, ticket):
    assert _checkout(client, event.id, ticket.id).status_code == 401


@pytest.mark.django_db
def test_checkout_ticket_must_belong_to_event(auth_client, event, ticket, organizer):
    from events.models import Event

    other = Event.objects.create(title="Other", organizer=organizer)
    with mock.patch("payments.checkout.stripe.PaymentIntent.create") as create:
        resp = _checkout(auth_client, other.id, ticket.id)
    assert resp.status_code == 404
    create.assert_not_called()


@pytest.mark.django_db
def test_checkout_rejects_invalid_quantity(auth_client, event, ticket):
    assert _checkout(auth_client, event.id, ticket.id, quantity=0).status_code == 400

    EventTicket.objects.filter(pk=ticket.pk).update(available_quantity=1)
    with mock.patch("payments.checkout.stripe.PaymentIntent.create") as create:
        resp = _checkout(auth_client, event.id, ticket.id, quantity=2)
    assert resp.status_code == 400
    assert resp.json() == {"error": "Not enough tickets available"}
    create.assert_not_called()


@pytest.mark.django_db
def test_checkout_requires_connected_account(auth_client, event, ticket):
    StripeConnectedAccount.objects.all().delete()
    resp = _checkout(auth_client, event.id, ticket.id)
    assert resp.status_code == 400
    assert resp.json() == {"error": "Event organizer has not set up payment processing"}


@pytest.mark.django_db
def test_checkout_stripe_error(auth_client, event, ticket):
    with mock.patch(
        "payments.checkout.stripe.PaymentIntent.create",
        side_effect=stripe.StripeError("card declined"),
    ):
        resp = _checkout(auth_client, event.id, ticket.id)
    assert resp.status_code == 502
