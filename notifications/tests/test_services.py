from unittest import mock

import pytest
from django.core import mail
from django.template import TemplateSyntaxError

from notifications import services
from notifications.models import EmailNotification
from notifications.services import queue_notification, send_email, send_pending_notifications


@pytest.mark.django_db
def test_queue_notification_uses_user_email(user):
    notification = queue_notification(user, "payout_completed", "Auszahlung", {"amount_eur": 12.5})
    assert notification.email_to == "u1@example.com"
    assert notification.status == EmailNotification.STATUS_PENDING


@pytest.mark.django_db
def test_queue_notification_without_address_is_skipped(user):
    user.email = ""
    user.save()
    assert queue_notification(user, "payout_completed", "Auszahlung", {}) is None
    assert not EmailNotification.objects.exists()


def test_send_email_delivers_html():
    assert send_email("a@example.com", "Hallo", "<p>Hallo <b>Welt</b></p>") is True
    assert len(mail.outbox) == 1
    message = mail.outbox[0]
    assert message.body == "Hallo Welt"
    assert message.alternatives[0][0] == "<p>Hallo <b>Welt</b></p>"


@pytest.mark.django_db
def test_send_pending_notifications_sends_batch(user, settings):
    settings.EMAIL_BATCH_SIZE = 2
    for i in range(3):
        queue_notification(user, "payout_completed", f"Auszahlung {i}", {"amount_eur": 12.5})

    result = send_pending_notifications()

    assert result == {"processed": 2, "sent": 2, "failed": 0}
    assert len(mail.outbox) == 2
    assert "12,50" in mail.outbox[0].alternatives[0][0] or "12.50" in mail.outbox[0].alternatives[0][0]
    assert EmailNotification.objects.filter(status=EmailNotification.STATUS_SENT).count() == 2
    assert EmailNotification.objects.filter(status=EmailNotification.STATUS_PENDING).count() == 1


@pytest.mark.django_db
def test_unknown_type_fails_and_counts_retry(user):
    notification = queue_notification(user, "no_such_type", "?", {})

    result = send_pending_notifications()

    assert result["failed"] == 1
    notification.refresh_from_db()
    assert notification.retry_count == 1
    assert notification.status == EmailNotification.STATUS_PENDING
    assert "Unknown notification type" in notification.error_message


@pytest.mark.django_db
def test_delivery_failure_gives_up_after_max_retries(user, settings):
    settings.EMAIL_MAX_RETRIES = 3
    notification = queue_notification(user, "payout_completed", "Auszahlung", {})

    with mock.patch("notifications.services.send_mail", side_effect=OSError("smtp down")):
        for _ in range(4):
            send_pending_notifications()

    notification.refresh_from_db()
    assert notification.retry_count == 3
    assert notification.status == EmailNotification.STATUS_FAILED
    assert len(mail.outbox) == 0


@pytest.mark.django_db
def test_render_error_does_not_stop_the_batch(user):
    broken = queue_notification(user, "payout_completed", "Kaputt", {})
    queue_notification(user, "payout_completed", "Auszahlung", {})

    real_render = services.render_notification

    def render(notification):
        if notification.pk == broken.pk:
            raise TemplateSyntaxError("Invalid block tag")
        return real_render(notification)

    with mock.patch("notifications.services.render_notification", side_effect=render):
        result = send_pending_notifications()

    assert result == {"processed": 2, "sent": 1, "failed": 1}
    broken.refresh_from_db()
    assert broken.retry_count == 1
    assert "Invalid block tag" in broken.error_message
    assert [m.subject for m in mail.outbox] == ["Auszahlung"]
