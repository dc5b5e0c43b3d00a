from celery import shared_task

from .services import send_pending_notifications


@shared_task
def send_pending_email_notifications() -> dict:
    return send_pending_notifications()
