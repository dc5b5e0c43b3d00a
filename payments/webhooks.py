"""
Stripe webhook event handlers.

Handlers register themselves for one or more event types with
``@handles(...)`` and receive the event's ``data.object`` as a plain
dict together with the whole event.  `dispatch` runs the matching
handler inside a transaction; an exception propagates so the view can
answer 500 and Stripe retries the delivery.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone as dt_timezone

from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import transaction
from django.db.models import F
from django.utils import timezone

from dunning.models import DunningCase
from dunning.services import mark_paid
from notifications.services import queue_notification
from users import kyc
from .checkout import calculate_fees
from .models import (
    CreatorPayout,
    EventTicket,
    PaymentRetryLog,
    PremiumSubscription,
    StripeConnectedAccount,
    StripeInvoice,
    SubscriptionAuditLog,
    TicketPurchase,
)

logger = logging.getLogger(__name__)
User = get_user_model()

HANDLERS = {}


def handles(*event_types):
    def register(func):
        for event_type in event_types:
            HANDLERS[event_type] = func
        return func
    return register


def dispatch(event: dict) -> bool:
    """Run the handler for `event`; returns False when the type is not handled."""
    handler = HANDLERS.get(event["type"])
    if handler is None:
        logger.info("Unhandled Stripe event type %s (%s)", event["type"], event.get("id"))
        return False
    with transaction.atomic():
        handler(event["data"]["object"], event)
    return True


def _ts(value):
    """Unix seconds from Stripe to an aware datetime."""
    if not value:
        return None
    return datetime.fromtimestamp(int(value), tz=dt_timezone.utc)


# ---------------------------
# Subscriptions
# ---------------------------

@handles("customer.subscription.created", "customer.subscription.updated")
def subscription_upserted(sub: dict, event: dict) -> None:
    user_id = (sub.get("metadata") or {}).get("user_id")
    if not user_id:
        logger.error("No user_id in metadata of subscription %s", sub["id"])
        return
    user = User.objects.filter(pk=user_id).first()
    if user is None:
        logger.error("Subscription %s references unknown user %s", sub["id"], user_id)
        return

    item = ((sub.get("items") or {}).get("data") or [{}])[0]
    price = item.get("price") or {}
    is_monthly = price.get("id") == settings.STRIPE_PRICE_ID_MONTHLY

    defaults = {
        "user": user,
        "plan_type": PremiumSubscription.PLAN_MONTHLY if is_monthly else PremiumSubscription.PLAN_YEARLY,
        "stripe_customer_id": sub.get("customer") or "",
        "status": sub.get("status") or PremiumSubscription.STATUS_ACTIVE,
        "amount": price.get("unit_amount") or 0,
        # Newer API versions report the billing period on the item
        "current_period_start": _ts(sub.get("current_period_start") or item.get("current_period_start")),
        "current_period_end": _ts(sub.get("current_period_end") or item.get("current_period_end")),
        "cancel_at_period_end": bool(sub.get("cancel_at_period_end")),
    }

    trial_start, trial_end = sub.get("trial_start"), sub.get("trial_end")
    if trial_start and trial_end:
        defaults["trial_start_date"] = _ts(trial_start)
        defaults["trial_end_date"] = _ts(trial_end)
        if event["type"] == "customer.subscription.created" or sub.get("status") == "trialing":
            defaults["has_used_trial"] = True
    if sub.get("pause_collection"):
        defaults["is_paused"] = True
    if sub.get("canceled_at"):
        defaults["canceled_at"] = _ts(sub["canceled_at"])

    _, created = PremiumSubscription.objects.update_or_create(
        stripe_subscription_id=sub["id"], defaults=defaults
    )
    logger.info(
        "Subscription %s %s for user %s (%s)",
        sub["id"], "created" if created else "updated", user.pk, defaults["status"],
    )


@handles("customer.subscription.paused")
def subscription_paused(sub: dict, event: dict) -> None:
    PremiumSubscription.objects.filter(stripe_subscription_id=sub["id"]).update(
        is_paused=True, pause_start_date=timezone.now(), updated_at=timezone.now()
    )
    SubscriptionAuditLog.objects.create(
        stripe_subscription_id=sub["id"], action="paused", metadata={"event_id": event.get("id")}
    )


@handles("customer.subscription.resumed")
def subscription_resumed(sub: dict, event: dict) -> None:
    PremiumSubscription.objects.filter(stripe_subscription_id=sub["id"]).update(
        is_paused=False, pause_start_date=None, pause_end_date=None, updated_at=timezone.now()
    )
    SubscriptionAuditLog.objects.create(
        stripe_subscription_id=sub["id"], action="resumed", metadata={"event_id": event.get("id")}
    )


@handles("customer.subscription.deleted")
def subscription_deleted(sub: dict, event: dict) -> None:
    PremiumSubscription.objects.filter(stripe_subscription_id=sub["id"]).update(
        status=PremiumSubscription.STATUS_CANCELLED,
        canceled_at=timezone.now(),
        updated_at=timezone.now(),
    )


# ---------------------------
# Invoices
# ---------------------------

def _invoice_subscription(invoice: dict) -> PremiumSubscription | None:
    sub_id = invoice.get("subscription")
    if not sub_id:
        details = (invoice.get("parent") or {}).get("subscription_details") or {}
        sub_id = details.get("subscription")
    if not sub_id:
        return None
    return PremiumSubscription.objects.filter(stripe_subscription_id=sub_id).first()


def _upsert_invoice(invoice: dict, subscription: PremiumSubscription) -> StripeInvoice:
    obj, _ = StripeInvoice.objects.update_or_create(
        stripe_invoice_id=invoice["id"],
        defaults={
            "subscription": subscription,
            "user_id": subscription.user_id,
            "stripe_customer_id": invoice.get("customer") or "",
            "amount_due": invoice.get("amount_due") or 0,
            "amount_paid": invoice.get("amount_paid") or 0,
            "amount_remaining": invoice.get("amount_remaining") or 0,
            "currency": invoice.get("currency") or "eur",
            "status": invoice.get("status") or "open",
            "invoice_number": invoice.get("number") or "",
            "invoice_created_at": _ts(invoice.get("created")),
            "invoice_due_date": _ts(invoice.get("due_date")),
            "invoice_pdf_url": invoice.get("invoice_pdf") or "",
            "hosted_invoice_url": invoice.get("hosted_invoice_url") or "",
            "attempt_count": invoice.get("attempt_count") or 1,
            "next_payment_attempt": _ts(invoice.get("next_payment_attempt")),
            "billing_reason": invoice.get("billing_reason") or "",
        },
    )
    return obj


@handles("invoice.payment_succeeded")
def invoice_paid(invoice: dict, event: dict) -> None:
    subscription = _invoice_subscription(invoice)
    if subscription is None:
        return
    subscription.status = PremiumSubscription.STATUS_ACTIVE
    subscription.save(update_fields=["status", "updated_at"])
    _upsert_invoice(invoice, subscription)

    open_cases = DunningCase.objects.filter(subscription=subscription, status=DunningCase.STATUS_OPEN)
    for case in open_cases:
        mark_paid(case, invoice.get("amount_paid") or 0)
        logger.info("Dunning case %s closed by payment of invoice %s", case.pk, invoice["id"])


@handles("invoice.payment_failed")
def invoice_payment_failed(invoice: dict, event: dict) -> None:
    subscription = _invoice_subscription(invoice)
    if subscription is None:
        return
    subscription.status = PremiumSubscription.STATUS_PAST_DUE
    subscription.save(update_fields=["status", "updated_at"])

    error = invoice.get("last_finalization_error") or {}
    PaymentRetryLog.objects.create(
        subscription=subscription,
        user_id=subscription.user_id,
        stripe_payment_intent_id=invoice.get("payment_intent") or "",
        stripe_invoice_id=invoice["id"],
        attempt_number=invoice.get("attempt_count") or 1,
        status=PaymentRetryLog.STATUS_FAILED,
        failure_code=error.get("code") or "unknown",
        failure_message=error.get("message") or "Payment failed",
        amount=invoice.get("amount_due") or 0,
        currency=invoice.get("currency") or "eur",
    )
    _upsert_invoice(invoice, subscription)


@handles("invoice.payment_action_required")
def invoice_action_required(invoice: dict, event: dict) -> None:
    subscription = _invoice_subscription(invoice)
    if subscription is None:
        return
    PaymentRetryLog.objects.create(
        subscription=subscription,
        user_id=subscription.user_id,
        stripe_payment_intent_id=invoice.get("payment_intent") or "",
        stripe_invoice_id=invoice["id"],
        attempt_number=invoice.get("attempt_count") or 1,
        status=PaymentRetryLog.STATUS_REQUIRES_ACTION,
        amount=invoice.get("amount_due") or 0,
        currency=invoice.get("currency") or "eur",
    )


# ---------------------------
# Ticket payments
# ---------------------------

@handles("payment_intent.succeeded")
def ticket_payment_succeeded(intent: dict, event: dict) -> None:
    metadata = intent.get("metadata") or {}
    if metadata.get("type") != "ticket_purchase":
        return
    if TicketPurchase.objects.filter(stripe_payment_intent_id=intent["id"]).exists():
        logger.info("Ticket purchase for %s already recorded", intent["id"])
        return

    user = User.objects.filter(pk=metadata.get("user_id")).first()
    ticket = EventTicket.objects.select_related("event").filter(pk=metadata.get("ticket_id")).first()
    if user is None or ticket is None:
        logger.error("PaymentIntent %s references unknown user or ticket: %s", intent["id"], metadata)
        return

    quantity = int(metadata.get("quantity") or 1)
    amount = intent.get("amount") or 0
    purchase = TicketPurchase.objects.create(
        user=user,
        ticket=ticket,
        quantity=quantity,
        total_amount=amount,
        payment_status=TicketPurchase.STATUS_COMPLETED,
        qr_code=f"TICKET-{intent['id']}-{int(timezone.now().timestamp() * 1000)}",
        stripe_payment_intent_id=intent["id"],
    )

    decremented = EventTicket.objects.filter(pk=ticket.pk, available_quantity__gte=quantity).update(
        available_quantity=F("available_quantity") - quantity
    )
    if not decremented:
        logger.warning("Ticket %s oversold by PaymentIntent %s", ticket.pk, intent["id"])
        EventTicket.objects.filter(pk=ticket.pk).update(available_quantity=0)

    organizer = ticket.event.organizer
    if organizer is not None:
        fee = intent.get("application_fee_amount")
        if fee is None:
            fee = calculate_fees(amount).application_fee
        kyc.record_earnings(organizer, max(amount - fee, 0))

    queue_notification(
        user,
        "ticket_purchase_confirmed",
        f"Deine Tickets für {ticket.event.title}",
        {
            "event_title": ticket.event.title,
            "ticket_name": ticket.name,
            "quantity": quantity,
            "total_amount": amount,
            "total_amount_eur": amount / 100,
            "qr_code": purchase.qr_code,
        },
    )
    logger.info("Created ticket purchase %s for user %s", purchase.pk, user.pk)


@handles("payment_intent.payment_failed")
def ticket_payment_failed(intent: dict, event: dict) -> None:
    if (intent.get("metadata") or {}).get("type") != "ticket_purchase":
        return
    TicketPurchase.objects.filter(stripe_payment_intent_id=intent["id"]).update(
        payment_status=TicketPurchase.STATUS_FAILED, updated_at=timezone.now()
    )


# ---------------------------
# Connect accounts and payouts
# ---------------------------

@handles("account.updated")
def account_updated(account: dict, event: dict) -> None:
    updated = StripeConnectedAccount.objects.filter(stripe_account_id=account["id"]).update(
        details_submitted=bool(account.get("details_submitted")),
        charges_enabled=bool(account.get("charges_enabled")),
        payouts_enabled=bool(account.get("payouts_enabled")),
        updated_at=timezone.now(),
    )
    if not updated:
        logger.info("Connected account %s not found, skipping update", account["id"])


@handles("payout.paid")
def payout_paid(payout: dict, event: dict) -> None:
    pending = CreatorPayout.objects.select_related("user").filter(stripe_payout_id=payout["id"]).exclude(
        status=CreatorPayout.STATUS_COMPLETED
    )
    for creator_payout in pending:
        creator_payout.status = CreatorPayout.STATUS_COMPLETED
        creator_payout.completed_at = timezone.now()
        creator_payout.save(update_fields=["status", "completed_at"])
        queue_notification(
            creator_payout.user,
            "payout_completed",
            "Deine Auszahlung ist unterwegs",
            {"amount": creator_payout.amount, "amount_eur": creator_payout.amount / 100},
        )
        logger.info("Payout %s for user %s completed", payout["id"], creator_payout.user_id)


@handles("payout.failed")
def payout_failed(payout: dict, event: dict) -> None:
    CreatorPayout.objects.filter(stripe_payout_id=payout["id"]).update(status=CreatorPayout.STATUS_FAILED)


# ---------------------------
# Identity (KYC)
# ---------------------------

@handles("identity.verification_session.created")
def identity_created(session: dict, event: dict) -> None:
    kyc.handle_verification_created(session)


@handles("identity.verification_session.verified")
def identity_verified(session: dict, event: dict) -> None:
    kyc.handle_verification_verified(session)


@handles("identity.verification_session.requires_input")
def identity_requires_input(session: dict, event: dict) -> None:
    kyc.handle_verification_requires_input(session)
