"""
Premium subscriptions on the Stripe side.

Checkout, pause and resume are started here; the local
`PremiumSubscription` row is otherwise kept in sync by the
``customer.subscription.*`` webhooks.  Every change a user (or account
deletion) makes is written to `SubscriptionAuditLog`.
"""
from __future__ import annotations

import calendar
import logging

import stripe
from django.conf import settings
from django.utils import timezone
from rest_framework.exceptions import NotFound, ValidationError

from .models import PremiumSubscription, SubscriptionAuditLog

logger = logging.getLogger(__name__)

TRIAL_PERIOD_DAYS = 7
PAUSE_BEHAVIOR = "keep_as_draft"
OPEN_STATUSES = (
    PremiumSubscription.STATUS_ACTIVE,
    PremiumSubscription.STATUS_TRIALING,
    PremiumSubscription.STATUS_PAST_DUE,
)


def _configure():
    stripe.api_key = settings.STRIPE_SECRET_KEY
    stripe.api_version = settings.STRIPE_API_VERSION


def _price_id(plan: str) -> str:
    prices = {
        PremiumSubscription.PLAN_MONTHLY: settings.STRIPE_PRICE_ID_MONTHLY,
        PremiumSubscription.PLAN_YEARLY: settings.STRIPE_PRICE_ID_YEARLY,
    }
    if plan not in prices:
        raise ValidationError({"plan": "Plan must be 'monthly' or 'yearly'."})
    if not prices[plan]:
        raise ValidationError({"plan": f"No Stripe price configured for the {plan} plan."})
    return prices[plan]


def _one_month_later(value):
    month = value.month % 12 + 1
    year = value.year + (value.month == 12)
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def _customer_id(user) -> str:
    known = (
        PremiumSubscription.objects.filter(user=user)
        .exclude(stripe_customer_id="")
        .order_by("-created_at")
        .values_list("stripe_customer_id", flat=True)
        .first()
    )
    if known:
        return known

    profile = user.profile
    customer = stripe.Customer.create(
        email=user.email,
        name=user.get_full_name() or user.username,
        address={
            "line1": f"{profile.street} {profile.house_number}".strip(),
            "city": profile.city,
            "postal_code": profile.postcode,
            "country": profile.country or "DE",
        },
        metadata={"user_id": str(user.id)},
    )
    logger.info("Created Stripe customer %s for user %s", customer.id, user.id)
    return customer.id


def create_premium_checkout(user, plan: str, origin: str | None = None) -> dict:
    """
    Start a Stripe Checkout Session for the premium plan.

    Billing data must be complete.  A trial is granted once per user; the
    user id travels in the subscription metadata so the subscription
    webhooks can attach the new subscription to the account.
    """
    price_id = _price_id(plan)
    if not user.profile.billing_data_complete:
        raise ValidationError(
            {
                "error": "Please complete your billing information first",
                "missing_fields": user.profile.missing_billing_fields(),
            }
        )

    has_used_trial = PremiumSubscription.objects.filter(user=user, has_used_trial=True).exists()
    base_url = (origin or settings.FRONTEND_URL).rstrip("/")

    _configure()
    subscription_data = {"metadata": {"user_id": str(user.id), "plan_type": plan}}
    if not has_used_trial:
        subscription_data["trial_period_days"] = TRIAL_PERIOD_DAYS

    session = stripe.checkout.Session.create(
        customer=_customer_id(user),
        mode="subscription",
        payment_method_types=["card", "sepa_debit"],
        line_items=[{"price": price_id, "quantity": 1}],
        success_url=f"{base_url}/subscription-management?success=true",
        cancel_url=f"{base_url}/subscription-management?canceled=true",
        metadata={"user_id": str(user.id), "plan_type": plan},
        subscription_data=subscription_data,
    )
    logger.info("Created checkout session %s for user %s (%s, trial=%s)", session.id, user.id, plan, not has_used_trial)
    return {"url": session.url, "session_id": session.id, "has_trial": not has_used_trial}


def _owned_subscription(user, subscription_id: str) -> PremiumSubscription:
    subscription = PremiumSubscription.objects.filter(user=user, stripe_subscription_id=subscription_id).first()
    if subscription is None:
        raise NotFound("Subscription not found")
    return subscription


def pause_subscription(user, subscription_id: str, reason: str = "") -> PremiumSubscription:
    """Pause collection for one month; invoices are kept as drafts meanwhile."""
    subscription = _owned_subscription(user, subscription_id)
    if subscription.is_paused:
        raise ValidationError({"error": "Subscription is already paused"})
    if subscription.status not in OPEN_STATUSES:
        raise ValidationError({"error": "Only running subscriptions can be paused"})

    _configure()
    stripe.Subscription.modify(subscription_id, pause_collection={"behavior": PAUSE_BEHAVIOR})

    now = timezone.now()
    subscription.is_paused = True
    subscription.pause_start_date = now
    subscription.pause_end_date = _one_month_later(now)
    subscription.save(update_fields=["is_paused", "pause_start_date", "pause_end_date", "updated_at"])
    SubscriptionAuditLog.objects.create(
        stripe_subscription_id=subscription_id,
        action="paused",
        changed_by_type="user",
        metadata={
            "user_id": user.id,
            "status": subscription.status,
            "reason": reason or "User requested pause",
            "pause_start": subscription.pause_start_date.isoformat(),
            "pause_end": subscription.pause_end_date.isoformat(),
        },
    )
    logger.info("Subscription %s paused until %s", subscription_id, subscription.pause_end_date)
    return subscription


def resume_subscription(user, subscription_id: str) -> PremiumSubscription:
    subscription = _owned_subscription(user, subscription_id)
    if not subscription.is_paused:
        raise ValidationError({"error": "Subscription is not paused"})

    _configure()
    # An empty value clears pause_collection on Stripe's side
    stripe.Subscription.modify(subscription_id, pause_collection="")

    subscription.is_paused = False
    subscription.pause_start_date = None
    subscription.pause_end_date = None
    subscription.save(update_fields=["is_paused", "pause_start_date", "pause_end_date", "updated_at"])
    SubscriptionAuditLog.objects.create(
        stripe_subscription_id=subscription_id,
        action="resumed",
        changed_by_type="user",
        metadata={"user_id": user.id, "status": subscription.status},
    )
    logger.info("Subscription %s resumed", subscription_id)
    return subscription


def cancel_subscriptions_for_user(user) -> list[str]:
    """
    Cancel every running subscription of `user` immediately.

    Runs before an account is deleted.  Returns the cancelled subscription ids.
    """
    running = list(PremiumSubscription.objects.filter(user=user, status__in=OPEN_STATUSES))
    if not running:
        return []

    _configure()
    cancelled = []
    for subscription in running:
        stripe.Subscription.cancel(subscription.stripe_subscription_id)
        old_status = subscription.status
        subscription.status = PremiumSubscription.STATUS_CANCELLED
        subscription.canceled_at = timezone.now()
        subscription.save(update_fields=["status", "canceled_at", "updated_at"])
        SubscriptionAuditLog.objects.create(
            stripe_subscription_id=subscription.stripe_subscription_id,
            action="cancelled",
            changed_by_type="system",
            metadata={"user_id": user.id, "old_status": old_status, "reason": "account_deletion"},
        )
        cancelled.append(subscription.stripe_subscription_id)
        logger.info("Cancelled subscription %s of user %s on account deletion", subscription.stripe_subscription_id, user.id)
    return cancelled
