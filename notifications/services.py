"""
Email queue and delivery.

Mail goes out through Django's mail API; the SMTP relay (for example
Resend's) is configured with the usual ``EMAIL_*`` settings.
"""
import logging

from django.conf import settings
from django.core.mail import send_mail
from django.template import TemplateDoesNotExist
from django.template.loader import render_to_string
from django.utils import timezone
from django.utils.html import strip_tags

from .models import EmailNotification

logger = logging.getLogger(__name__)


def queue_notification(user, notification_type: str, subject: str, data: dict, email_to: str | None = None):
    """Queue an email; it is sent by the next `send_pending_notifications` run."""
    recipient = email_to or getattr(user, "email", "")
    if not recipient:
        logger.warning("Not queuing %s for user %s: no email address", notification_type, getattr(user, "pk", None))
        return None
    return EmailNotification.objects.create(
        user=user,
        notification_type=notification_type,
        email_to=recipient,
        subject=subject,
        data=data or {},
    )


def send_email(to: str, subject: str, html: str) -> bool:
    """Send one HTML email. Returns True if delivered to the mail backend."""
    try:
        send_mail(
            subject=subject,
            message=strip_tags(html),
            from_email=settings.DEFAULT_FROM_EMAIL,
            recipient_list=[to],
            html_message=html,
            fail_silently=False,
        )
    except Exception as e:
        logger.error("Failed to send email %r to %s: %s", subject, to, e)
        return False
    logger.info("Email %r sent to %s", subject, to)
    return True


def render_notification(notification: EmailNotification) -> str:
    return render_to_string(
        f"notifications/{notification.notification_type}.html",
        {"data": notification.data, "subject": notification.subject, "frontend_url": settings.FRONTEND_URL},
    )


def _record_failure(notification: EmailNotification, error: str) -> None:
    notification.retry_count += 1
    notification.error_message = error
    if notification.retry_count >= settings.EMAIL_MAX_RETRIES:
        notification.status = EmailNotification.STATUS_FAILED
    notification.save(update_fields=["retry_count", "error_message", "status", "updated_at"])


def send_pending_notifications(limit: int | None = None) -> dict:
    """Send the oldest pending notifications; failures are retried up to EMAIL_MAX_RETRIES times."""
    limit = limit or settings.EMAIL_BATCH_SIZE
    pending = list(
        EmailNotification.objects.filter(
            status=EmailNotification.STATUS_PENDING,
            retry_count__lt=settings.EMAIL_MAX_RETRIES,
        ).order_by("created_at")[:limit]
    )

    sent = failed = 0
    for notification in pending:
        try:
            html = render_notification(notification)
        except TemplateDoesNotExist:
            _record_failure(notification, f"Unknown notification type: {notification.notification_type}")
            failed += 1
            continue
        except Exception as e:
            logger.exception("Rendering notification %s failed", notification.pk)
            _record_failure(notification, f"Rendering failed: {e}")
            failed += 1
            continue

        if send_email(notification.email_to, notification.subject, html):
            notification.status = EmailNotification.STATUS_SENT
            notification.sent_at = timezone.now()
            notification.error_message = ""
            notification.save(update_fields=["status", "sent_at", "error_message", "updated_at"])
            sent += 1
        else:
            _record_failure(notification, "Email delivery failed")
            failed += 1

    if pending:
        logger.info("Email batch: %s processed, %s sent, %s failed", len(pending), sent, failed)
    return {"processed": len(pending), "sent": sent, "failed": failed}
