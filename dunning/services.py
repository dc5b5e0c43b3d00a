"""
Dunning and collection workflow.

The daily run (`process_dunning_cases`) opens a case for every past-due
subscription, sends up to three German reminder letters fourteen days
apart and, once the last letter has gone unanswered long enough, turns
the case into a `CollectionCase`.  Staff then hand collection cases over
to an agency with `forward_to_agency`.
"""
from __future__ import annotations

import logging
from datetime import timedelta
from decimal import Decimal, ROUND_HALF_UP

from django.conf import settings
from django.db import transaction
from django.db.models import F
from django.forms.models import model_to_dict
from django.template.loader import render_to_string
from django.utils import timezone

from notifications.services import send_email
from payments.models import PremiumSubscription, SubscriptionAuditLog
from users.models import UserProfile
from .models import CollectionCase, CollectionExport, DunningCase, DunningLetter

logger = logging.getLogger(__name__)

LETTER_SUBJECTS = {
    1: "1. Zahlungserinnerung - Rechnung {invoice_number}",
    2: "2. Mahnung - Rechnung {invoice_number} - Bitte umgehend begleichen",
    3: "LETZTE MAHNUNG - Rechnung {invoice_number} - Inkasso-Androhung",
}


def dunning_fee(level: int) -> int:
    return settings.DUNNING_FEES_CENTS.get(level, 0)


def cumulative_fees(level: int) -> int:
    return sum(dunning_fee(i) for i in range(1, level + 1))


def next_action_date(level: int, now=None):
    """When the step after a letter of this level is due."""
    now = now or timezone.now()
    days = 7 if level == 1 else 14
    return now + timedelta(days=days)


def compute_interest(case: DunningCase, as_of=None) -> int:
    """Simple yearly interest on the principal since ``interest_start_date``, in cents."""
    if not case.interest_rate or not case.interest_start_date:
        return 0
    as_of = as_of or timezone.now()
    elapsed = as_of - case.interest_start_date
    if elapsed <= timedelta(0):
        return 0
    days = Decimal(elapsed.total_seconds()) / Decimal(86400)
    interest = Decimal(case.principal_amount) * Decimal(case.interest_rate) / Decimal(100) * days / Decimal(365)
    return int(interest.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def open_case(subscription: PremiumSubscription, now=None) -> DunningCase:
    """Return the subscription's open case, creating it at level 0 if there is none."""
    existing = DunningCase.objects.filter(subscription=subscription, status=DunningCase.STATUS_OPEN).first()
    if existing:
        return existing

    now = now or timezone.now()
    principal = subscription.amount
    case = DunningCase.objects.create(
        subscription=subscription,
        user=subscription.user,
        dunning_level=0,
        principal_amount=principal,
        total_amount=principal + dunning_fee(1),
        interest_start_date=now,
        next_action_date=now + timedelta(days=settings.DUNNING_PAYMENT_DEADLINE_DAYS),
    )
    logger.info("Opened dunning case %s for subscription %s", case.letter_number, subscription.stripe_subscription_id)
    return case


def _latest_invoice(subscription: PremiumSubscription):
    return subscription.invoices.order_by(F("invoice_created_at").desc(nulls_last=True), "-created_at").first()


def _display_name(user) -> str:
    return user.get_full_name() or user.username


def send_dunning_letter(case: DunningCase, level: int, now=None) -> DunningLetter:
    """
    Email the reminder letter for ``level`` and move the case to that level.

    A failed delivery is stored on the letter; the case still advances so
    the next step happens on schedule.
    """
    if level not in LETTER_SUBJECTS:
        raise ValueError(f"Invalid dunning level: {level}")

    now = now or timezone.now()
    subscription = case.subscription
    user = case.user

    interest = compute_interest(case, now)
    late_fees = cumulative_fees(level)
    amount_claimed = case.principal_amount + late_fees + interest
    deadline = now + timedelta(days=settings.DUNNING_PAYMENT_DEADLINE_DAYS)

    invoice = _latest_invoice(subscription)
    invoice_number = (invoice.invoice_number if invoice else "") or subscription.stripe_subscription_id
    payment_link = (invoice.hosted_invoice_url if invoice else "") or f"{settings.FRONTEND_URL}/payment-required"

    subject = LETTER_SUBJECTS[level].format(invoice_number=invoice_number)
    html = render_to_string(
        f"dunning/letter_level_{level}.html",
        {
            "subject": subject,
            "name": _display_name(user),
            "letter_number": case.letter_number,
            "invoice_number": invoice_number,
            "letter_date": timezone.localtime(now),
            "principal_eur": Decimal(case.principal_amount) / 100,
            "late_fees_eur": Decimal(late_fees) / 100,
            "interest_eur": Decimal(interest) / 100,
            "total_eur": Decimal(amount_claimed) / 100,
            "deadline": timezone.localtime(deadline),
            "payment_link": payment_link,
        },
    )

    email_error = ""
    if not user.email:
        delivered = False
        email_error = "User has no email address"
    else:
        delivered = send_email(user.email, subject, html)
        if not delivered:
            email_error = "Email delivery failed"
    if not delivered:
        logger.warning("Dunning letter %s level %s not delivered: %s", case.letter_number, level, email_error)

    with transaction.atomic():
        letter = DunningLetter.objects.create(
            dunning_case=case,
            user=user,
            subscription=subscription,
            dunning_level=level,
            letter_number=case.letter_number,
            amount_claimed=amount_claimed,
            late_fee=late_fees,
            interest_amount=interest,
            payment_deadline=deadline,
            sent_via=DunningLetter.SENT_VIA_EMAIL,
            email_delivered=delivered,
            email_error=email_error,
            sent_at=now,
            metadata={"invoice_number": invoice_number, "payment_link": payment_link},
        )

        case.dunning_level = level
        case.late_fees = late_fees
        case.interest_amount = interest
        case.total_amount = amount_claimed
        setattr(case, ("first", "second", "third")[level - 1] + "_dunning_sent_at", now)
        case.next_action_date = deadline if level < DunningCase.MAX_LEVEL else None
        case.save()

    logger.info("Dunning letter %s level %s sent (delivered=%s)", case.letter_number, level, delivered)
    return letter


def cases_ready_for_collection(now=None):
    """Open level-3 cases whose last letter has been unanswered for the full wait period."""
    now = now or timezone.now()
    cutoff = now - timedelta(days=settings.DUNNING_COLLECTION_WAIT_DAYS)
    return DunningCase.objects.filter(
        status=DunningCase.STATUS_OPEN,
        dunning_level=DunningCase.MAX_LEVEL,
        third_dunning_sent_at__lte=cutoff,
    ).order_by("third_dunning_sent_at")


def forward_to_collection(case: DunningCase) -> CollectionCase:
    """Close the dunning stage and open a collection case with the full claim."""
    profile = getattr(case.user, "profile", None)
    if profile is not None:
        missing = profile.missing_billing_fields()
    else:
        missing = [label for _, label in UserProfile.BILLING_FIELDS]

    late_fees = cumulative_fees(DunningCase.MAX_LEVEL)
    with transaction.atomic():
        collection, created = CollectionCase.objects.get_or_create(
            dunning_case=case,
            defaults={
                "subscription": case.subscription,
                "user": case.user,
                "principal_amount": case.principal_amount,
                "late_fees": late_fees,
                "interest_amount": case.interest_amount,
                "collection_fees": 0,
                "total_amount": case.principal_amount + late_fees + case.interest_amount,
                "data_complete": not missing,
                "missing_data": missing,
            },
        )
        case.status = DunningCase.STATUS_FORWARDED
        case.next_action_date = None
        case.save(update_fields=["status", "next_action_date", "updated_at"])

    if created:
        logger.info("Dunning case %s forwarded to collection as %s", case.letter_number, collection.pk)
    return collection


def process_dunning_cases(now=None) -> dict:
    """
    One pass of the dunning workflow.

    Every case is handled on its own; a failing case is reported in
    ``errors`` and the run carries on.
    """
    now = now or timezone.now()
    result = {
        "new_cases_created": 0,
        "cases_escalated": 0,
        "cases_forwarded_to_collection": 0,
        "errors": [],
    }

    overdue = (
        PremiumSubscription.objects.filter(status=PremiumSubscription.STATUS_PAST_DUE, is_paused=False)
        .exclude(dunning_cases__status__in=[DunningCase.STATUS_OPEN, DunningCase.STATUS_FORWARDED])
        .select_related("user")
    )
    for subscription in overdue:
        try:
            with transaction.atomic():
                case = open_case(subscription, now)
                send_dunning_letter(case, 1, now)
            result["new_cases_created"] += 1
        except Exception as e:
            logger.exception("Opening dunning case for %s failed", subscription.stripe_subscription_id)
            result["errors"].append(f"Subscription {subscription.stripe_subscription_id}: {e}")

    due = DunningCase.objects.filter(
        status=DunningCase.STATUS_OPEN,
        dunning_level__lt=DunningCase.MAX_LEVEL,
        next_action_date__lte=now,
    ).select_related("user", "subscription")
    for case in due:
        try:
            send_dunning_letter(case, case.dunning_level + 1, now)
            result["cases_escalated"] += 1
        except Exception as e:
            logger.exception("Escalating dunning case %s failed", case.letter_number)
            result["errors"].append(f"Case {case.letter_number}: {e}")

    for case in cases_ready_for_collection(now).select_related("user", "subscription"):
        try:
            forward_to_collection(case)
            result["cases_forwarded_to_collection"] += 1
        except Exception as e:
            logger.exception("Forwarding dunning case %s to collection failed", case.letter_number)
            result["errors"].append(f"Case {case.letter_number}: {e}")

    logger.info(
        "Dunning run: %s new, %s escalated, %s forwarded, %s errors",
        result["new_cases_created"],
        result["cases_escalated"],
        result["cases_forwarded_to_collection"],
        len(result["errors"]),
    )
    return result


def mark_paid(case: DunningCase, amount: int, now=None) -> DunningCase:
    now = now or timezone.now()
    with transaction.atomic():
        case.status = DunningCase.STATUS_PAID
        case.paid_at = now
        case.payment_amount = amount
        case.next_action_date = None
        case.save(update_fields=["status", "paid_at", "payment_amount", "next_action_date", "updated_at"])

        letter = case.letters.order_by("-sent_at", "-pk").first()
        if letter is not None:
            letter.paid_at = now
            letter.payment_amount = amount
            letter.save(update_fields=["paid_at", "payment_amount"])
    return case


def forward_to_agency(
    case_ids,
    agency_name: str,
    agency_email: str = "",
    notes: str = "",
    exported_by=None,
    now=None,
) -> CollectionExport:
    """Hand collection cases to an agency and record the export."""
    now = now or timezone.now()
    cases = list(CollectionCase.objects.filter(pk__in=case_ids))
    if not cases:
        raise ValueError("No valid cases to export")

    file_name = f"inkasso_export_{timezone.localdate(now):%Y-%m-%d}_{len(cases)}_cases.zip"
    with transaction.atomic():
        export = CollectionExport.objects.create(
            case_ids=[c.pk for c in cases],
            file_name=file_name,
            export_file_url=f"/exports/{file_name}",
            collection_agency_name=agency_name,
            collection_agency_email=agency_email or "",
            exported_by=exported_by,
            total_cases=len(cases),
            total_amount=sum(c.total_amount for c in cases),
            notes=notes or "",
        )
        CollectionCase.objects.filter(pk__in=[c.pk for c in cases]).update(
            status=CollectionCase.STATUS_FORWARDED,
            forwarded_to_collection_at=now,
            collection_agency_name=agency_name,
            collection_agency_email=agency_email or "",
            updated_at=now,
        )

    logger.info("Exported %s collection cases to %s as %s", len(cases), agency_name, file_name)
    return export


def export_case_data(collection: CollectionCase) -> dict:
    """Everything the agency needs about one collection case."""
    dunning_case = collection.dunning_case
    subscription = collection.subscription
    user = collection.user
    profile = getattr(user, "profile", None)

    user_data = {
        "id": user.pk,
        "username": user.username,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "email": user.email,
    }
    if profile is not None:
        user_data.update(model_to_dict(profile, fields=["street", "house_number", "postcode", "city", "country"]))

    return {
        "case": model_to_dict(collection),
        "user": user_data,
        "subscription": model_to_dict(subscription),
        "dunning_case": {**model_to_dict(dunning_case), "letter_number": dunning_case.letter_number},
        "dunning_letters": [model_to_dict(letter) for letter in dunning_case.letters.order_by("sent_at")],
        "invoices": [
            model_to_dict(invoice)
            for invoice in subscription.invoices.order_by(F("invoice_created_at").desc(nulls_last=True))
        ],
        "audit_log": [
            model_to_dict(entry)
            for entry in SubscriptionAuditLog.objects.filter(
                stripe_subscription_id=subscription.stripe_subscription_id
            )
        ],
    }
