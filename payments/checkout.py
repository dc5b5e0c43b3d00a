"""
Ticket checkout through Stripe Connect.

The buyer is charged the full ticket price; the platform keeps an
application fee (platform share plus the Stripe processing cost) and the
rest is transferred to the organizer's connected account.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP

import stripe
from django.conf import settings
from rest_framework.exceptions import NotFound, ValidationError

from .models import EventTicket, StripeConnectedAccount

logger = logging.getLogger(__name__)


@dataclass
class Fees:
    platform_fee: int
    stripe_fee: int

    @property
    def application_fee(self) -> int:
        return self.platform_fee + self.stripe_fee


def _round_cents(value: Decimal) -> int:
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def calculate_fees(total_cents: int) -> Fees:
    total = Decimal(total_cents)
    platform = _round_cents(total * Decimal(str(settings.PLATFORM_FEE_RATE)))
    stripe_fee = _round_cents(
        total * Decimal(str(settings.STRIPE_FEE_RATE)) + Decimal(settings.STRIPE_FEE_FIXED_CENTS)
    )
    return Fees(platform_fee=platform, stripe_fee=stripe_fee)


def create_ticket_payment(user, event_id: int, ticket_id: int, quantity: int) -> dict:
    """Create the PaymentIntent for buying `quantity` tickets; the purchase row is written by the webhook."""
    if not quantity or quantity < 1:
        raise ValidationError({"quantity": "Quantity must be at least 1."})

    ticket = (
        EventTicket.objects.select_related("event")
        .filter(pk=ticket_id, event_id=event_id)
        .first()
    )
    if ticket is None:
        raise NotFound("Ticket not found")
    if ticket.available_quantity < quantity:
        raise ValidationError({"error": "Not enough tickets available"})

    account = StripeConnectedAccount.objects.filter(user_id=ticket.event.organizer_id).first()
    if account is None:
        raise ValidationError({"error": "Event organizer has not set up payment processing"})

    total = ticket.price * quantity
    fees = calculate_fees(total)

    stripe.api_key = settings.STRIPE_SECRET_KEY
    stripe.api_version = settings.STRIPE_API_VERSION
    intent = stripe.PaymentIntent.create(
        amount=total,
        currency="eur",
        application_fee_amount=fees.application_fee,
        transfer_data={"destination": account.stripe_account_id},
        metadata={
            "user_id": str(user.id),
            "event_id": str(event_id),
            "ticket_id": str(ticket_id),
            "quantity": str(quantity),
            "type": "ticket_purchase",
        },
        description=f"{quantity}x {ticket.name} - {ticket.event.title}",
    )
    logger.info("Created PaymentIntent %s for user %s (%s cents)", intent.id, user.id, total)

    return {
        "client_secret": intent.client_secret,
        "payment_intent_id": intent.id,
        "amount": total,
        "platform_fee": fees.platform_fee,
        "stripe_fee": fees.stripe_fee,
    }
