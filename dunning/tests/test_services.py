from datetime import datetime, timedelta, timezone as dt_timezone
from decimal import Decimal
from unittest import mock

import pytest
from django.core import mail

from dunning.models import CollectionCase, CollectionExport, DunningCase, DunningLetter
from dunning.services import (
    cases_ready_for_collection,
    compute_interest,
    cumulative_fees,
    dunning_fee,
    export_case_data,
    forward_to_agency,
    forward_to_collection,
    mark_paid,
    next_action_date,
    open_case,
    process_dunning_cases,
    send_dunning_letter,
)
from payments.models import PremiumSubscription, StripeInvoice

NOW = datetime(2026, 3, 2, 9, 0, tzinfo=dt_timezone.utc)


@pytest.fixture
def subscription(db, user):
    return PremiumSubscription.objects.create(
        user=user,
        stripe_subscription_id="sub_123",
        stripe_customer_id="cus_123",
        status=PremiumSubscription.STATUS_PAST_DUE,
        amount=999,
    )


def test_fees_per_level():
    assert [dunning_fee(level) for level in (0, 1, 2, 3, 4)] == [0, 500, 1000, 1500, 0]
    assert [cumulative_fees(level) for level in (1, 2, 3)] == [500, 1500, 3000]


def test_next_action_date_by_level():
    assert next_action_date(1, NOW) == NOW + timedelta(days=7)
    assert next_action_date(2, NOW) == NOW + timedelta(days=14)
    assert next_action_date(3, NOW) == NOW + timedelta(days=14)


@pytest.mark.django_db
def test_open_case_starts_at_level_zero_and_is_reused(subscription):
    case = open_case(subscription, NOW)
    assert case.dunning_level == 0
    assert case.principal_amount == 999
    assert case.total_amount == 1499
    assert case.interest_start_date == NOW
    assert case.next_action_date == NOW + timedelta(days=14)
    assert case.letter_number == f"MAHN-{str(case.public_id)[:8].upper()}"

    assert open_case(subscription, NOW).pk == case.pk
    assert DunningCase.objects.count() == 1


@pytest.mark.django_db
def test_first_letter_falls_back_to_subscription_id_and_payment_page(subscription):
    case = open_case(subscription, NOW)
    letter = send_dunning_letter(case, 1, NOW)

    assert len(mail.outbox) == 1
    message = mail.outbox[0]
    assert message.subject == "1. Zahlungserinnerung - Rechnung sub_123"
    html = message.alternatives[0][0]
    assert "https://app.jetzz.test/payment-required" in html
    assert "Jetzt bezahlen" in html
    assert "Ihr Jetzz-Team" in html

    assert letter.amount_claimed == 1499
    assert letter.late_fee == 500
    assert letter.payment_deadline == NOW + timedelta(days=14)
    assert letter.email_delivered is True
    assert letter.letter_number == case.letter_number

    case.refresh_from_db()
    assert case.dunning_level == 1
    assert case.first_dunning_sent_at == NOW
    assert case.late_fees == 500
    assert case.total_amount == 1499
    assert case.next_action_date == NOW + timedelta(days=14)


@pytest.mark.django_db
def test_letter_uses_latest_invoice(subscription, user):
    StripeInvoice.objects.create(
        stripe_invoice_id="in_old",
        subscription=subscription,
        user=user,
        invoice_number="JZ-0001",
        invoice_created_at=NOW - timedelta(days=60),
        hosted_invoice_url="https://invoice.stripe.com/old",
    )
    StripeInvoice.objects.create(
        stripe_invoice_id="in_new",
        subscription=subscription,
        user=user,
        invoice_number="JZ-0002",
        invoice_created_at=NOW - timedelta(days=30),
        hosted_invoice_url="https://invoice.stripe.com/new",
    )
    case = open_case(subscription, NOW)
    send_dunning_letter(case, 2, NOW)

    message = mail.outbox[0]
    assert message.subject == "2. Mahnung - Rechnung JZ-0002 - Bitte umgehend begleichen"
    html = message.alternatives[0][0]
    assert "https://invoice.stripe.com/new" in html
    assert "trotz unserer ersten Zahlungserinnerung" in html


@pytest.mark.django_db
def test_final_letter_has_no_next_action(subscription):
    case = open_case(subscription, NOW)
    letter = send_dunning_letter(case, 3, NOW)

    assert mail.outbox[0].subject == "LETZTE MAHNUNG - Rechnung sub_123 - Inkasso-Androhung"
    assert "SOFORT BEZAHLEN" in mail.outbox[0].alternatives[0][0]
    assert letter.amount_claimed == 999 + 3000
    case.refresh_from_db()
    assert case.third_dunning_sent_at == NOW
    assert case.next_action_date is None


@pytest.mark.django_db
def test_failed_delivery_is_recorded_not_raised(subscription):
    case = open_case(subscription, NOW)
    with mock.patch("dunning.services.send_email", return_value=False):
        letter = send_dunning_letter(case, 1, NOW)

    assert letter.email_delivered is False
    assert letter.email_error == "Email delivery failed"
    case.refresh_from_db()
    assert case.dunning_level == 1


@pytest.mark.django_db
def test_invalid_level_is_rejected(subscription):
    case = open_case(subscription, NOW)
    with pytest.raises(ValueError):
        send_dunning_letter(case, 4, NOW)


@pytest.mark.django_db
def test_process_runs_full_escalation_to_collection(subscription):
    result = process_dunning_cases(NOW)
    assert result == {"new_cases_created": 1, "cases_escalated": 0, "cases_forwarded_to_collection": 0, "errors": []}

    # A second run at the same instant changes nothing
    assert process_dunning_cases(NOW)["new_cases_created"] == 0
    assert DunningLetter.objects.count() == 1

    assert process_dunning_cases(NOW + timedelta(days=14))["cases_escalated"] == 1
    assert process_dunning_cases(NOW + timedelta(days=28))["cases_escalated"] == 1
    case = DunningCase.objects.get()
    assert case.dunning_level == 3
    assert case.next_action_date is None
    letters = list(case.letters.order_by("dunning_level"))
    assert [letter.late_fee for letter in letters] == [500, 1500, 3000]
    assert [letter.amount_claimed for letter in letters] == [999 + 500, 999 + 1500, 999 + 3000]
    assert letters[-1].late_fee == case.late_fees

    assert process_dunning_cases(NOW + timedelta(days=41))["cases_forwarded_to_collection"] == 0
    result = process_dunning_cases(NOW + timedelta(days=42))
    assert result["cases_forwarded_to_collection"] == 1

    case.refresh_from_db()
    assert case.status == DunningCase.STATUS_FORWARDED
    collection = CollectionCase.objects.get()
    assert collection.late_fees == 3000
    assert collection.collection_fees == 0
    assert collection.total_amount == 999 + 3000
    assert collection.data_complete is False
    assert collection.missing_data == ["Straße", "Hausnummer", "PLZ", "Stadt"]

    # Forwarded subscriptions are not dunned again
    assert process_dunning_cases(NOW + timedelta(days=43))["new_cases_created"] == 0


@pytest.mark.django_db
def test_process_skips_paused_and_active_subscriptions(user, subscription):
    subscription.is_paused = True
    subscription.save()
    PremiumSubscription.objects.create(user=user, stripe_subscription_id="sub_ok", amount=999)

    assert process_dunning_cases(NOW)["new_cases_created"] == 0
    assert not DunningCase.objects.exists()


@pytest.mark.django_db
def test_process_collects_errors_and_continues(subscription, user):
    PremiumSubscription.objects.create(
        user=user, stripe_subscription_id="sub_456", status=PremiumSubscription.STATUS_PAST_DUE, amount=999
    )
    real_send = send_dunning_letter

    def flaky(case, level, now=None):
        if case.subscription.stripe_subscription_id == "sub_123":
            raise RuntimeError("template broken")
        return real_send(case, level, now)

    with mock.patch("dunning.services.send_dunning_letter", side_effect=flaky):
        result = process_dunning_cases(NOW)

    assert result["new_cases_created"] == 1
    assert result["errors"] == ["Subscription sub_123: template broken"]
    # The failed case is rolled back and picked up by the next run
    assert list(DunningCase.objects.values_list("subscription__stripe_subscription_id", flat=True)) == ["sub_456"]


@pytest.mark.django_db
def test_cases_ready_for_collection_waits_full_period(subscription):
    case = open_case(subscription, NOW)
    send_dunning_letter(case, 3, NOW)

    assert not cases_ready_for_collection(NOW + timedelta(days=13)).exists()
    assert list(cases_ready_for_collection(NOW + timedelta(days=14))) == [case]


@pytest.mark.django_db
def test_forward_to_collection_with_complete_billing_data(subscription, user):
    profile = user.profile
    profile.street = "Torstraße"
    profile.house_number = "1"
    profile.postcode = "10119"
    profile.city = "Berlin"
    profile.save()

    case = open_case(subscription, NOW)
    send_dunning_letter(case, 3, NOW)
    collection = forward_to_collection(case)

    assert collection.data_complete is True
    assert collection.missing_data == []
    assert forward_to_collection(case).pk == collection.pk


@pytest.mark.django_db
def test_mark_paid_stamps_latest_letter(subscription):
    case = open_case(subscription, NOW)
    send_dunning_letter(case, 1, NOW)
    second = send_dunning_letter(case, 2, NOW + timedelta(days=14))

    mark_paid(case, 1999, NOW + timedelta(days=15))

    case.refresh_from_db()
    assert case.status == DunningCase.STATUS_PAID
    assert case.payment_amount == 1999
    assert case.next_action_date is None
    second.refresh_from_db()
    assert second.payment_amount == 1999
    assert second.paid_at == NOW + timedelta(days=15)
    assert DunningLetter.objects.filter(paid_at__isnull=True).count() == 1


@pytest.mark.django_db
def test_forward_to_agency(subscription, staff_user):
    case = open_case(subscription, NOW)
    send_dunning_letter(case, 3, NOW)
    collection = forward_to_collection(case)

    export = forward_to_agency([collection.pk, 999999], "Inkasso Nord", "akten@inkasso.test", exported_by=staff_user, now=NOW)

    assert export.file_name == "inkasso_export_2026-03-02_1_cases.zip"
    assert export.case_ids == [collection.pk]
    assert export.total_amount == collection.total_amount
    collection.refresh_from_db()
    assert collection.status == CollectionCase.STATUS_FORWARDED
    assert collection.collection_agency_name == "Inkasso Nord"
    assert collection.forwarded_to_collection_at == NOW


@pytest.mark.django_db
def test_forward_to_agency_without_valid_cases():
    with pytest.raises(ValueError):
        forward_to_agency([424242], "Inkasso Nord")
    assert not CollectionExport.objects.exists()


@pytest.mark.django_db
def test_compute_interest(subscription):
    case = open_case(subscription, NOW)
    assert compute_interest(case, NOW + timedelta(days=365)) == 0

    case.principal_amount = 10000
    case.interest_rate = Decimal("5.00")
    assert compute_interest(case, NOW + timedelta(days=365)) == 500
    assert compute_interest(case, NOW - timedelta(days=1)) == 0


@pytest.mark.django_db
def test_export_case_data(subscription):
    case = open_case(subscription, NOW)
    send_dunning_letter(case, 3, NOW)
    collection = forward_to_collection(case)

    data = export_case_data(collection)
    assert set(data) == {"case", "user", "subscription", "dunning_case", "dunning_letters", "invoices", "audit_log"}
    assert data["user"]["email"] == "u1@example.com"
    assert data["dunning_case"]["letter_number"] == case.letter_number
    assert len(data["dunning_letters"]) == 1
