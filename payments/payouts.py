"""
Creator payouts from a connected Stripe account.

A payout is only allowed while `users.kyc.kyc_status` says the creator
can receive payouts, i.e. KYC is not required yet or has been verified.
The payout row starts pending; the ``payout.paid`` / ``payout.failed``
webhooks finish it.
"""
from __future__ import annotations

import logging

import stripe
from django.conf import settings
from django.db.models import Sum
from rest_framework.exceptions import PermissionDenied, ValidationError

from notifications.services import queue_notification
from users import kyc
from .models import CreatorPayout, StripeConnectedAccount

logger = logging.getLogger(__name__)


def available_balance(user) -> int:
    """Lifetime earnings minus every payout that has not failed, in cents."""
    paid_out = (
        CreatorPayout.objects.filter(user=user)
        .exclude(status=CreatorPayout.STATUS_FAILED)
        .aggregate(total=Sum("amount"))["total"]
        or 0
    )
    return max(kyc.kyc_status(user).lifetime_earnings - paid_out, 0)


def request_payout(user, amount: int) -> CreatorPayout:
    if amount is None or amount < 1:
        raise ValidationError({"amount": "Amount must be at least 1 cent."})

    if not kyc.kyc_status(user).can_receive_payouts:
        raise PermissionDenied("Identity verification is required before payouts", code="kyc_required")

    account = StripeConnectedAccount.objects.filter(user=user).first()
    if account is None or not account.payouts_enabled:
        raise ValidationError({"error": "Payouts are not enabled for your Stripe account"})

    balance = available_balance(user)
    if amount > balance:
        raise ValidationError({"amount": f"Only {balance} cents are available for payout."})

    payout = CreatorPayout.objects.create(user=user, amount=amount)

    stripe.api_key = settings.STRIPE_SECRET_KEY
    stripe.api_version = settings.STRIPE_API_VERSION
    try:
        stripe_payout = stripe.Payout.create(
            amount=amount,
            currency="eur",
            metadata={"payout_id": str(payout.id), "user_id": str(user.id)},
            stripe_account=account.stripe_account_id,
        )
    except stripe.StripeError as e:
        logger.error("Payout of %s cents for user %s failed: %s", amount, user.id, e)
        payout.status = CreatorPayout.STATUS_FAILED
        payout.save(update_fields=["status"])
        raise

    payout.stripe_payout_id = stripe_payout.id
    payout.save(update_fields=["stripe_payout_id"])

    queue_notification(
        user,
        "payout_requested",
        "Deine Auszahlung wurde beantragt",
        {"amount": amount, "amount_eur": amount / 100, "net_amount_eur": amount / 100},
    )
    logger.info("Payout %s (%s cents) requested by user %s", stripe_payout.id, amount, user.id)
    return payout
