"""Periodic import jobs for the events app."""
import logging

from celery import shared_task

from .importers import assign_stock_image, auto_import_scraped_events, run_scheduled_import
from .models import ImportScheduler, ScrapedEvent
from .pexels import PexelsError

logger = logging.getLogger(__name__)


@shared_task
def run_scheduled_imports() -> dict:
    """Run every active scheduler; a failing scheduler does not stop the others."""
    results = {}
    for scheduler in ImportScheduler.objects.filter(is_active=True):
        try:
            results[scheduler.pk] = run_scheduled_import(scheduler)
        except Exception as e:
            logger.error("Scheduled import %s failed: %s", scheduler.pk, e)
            results[scheduler.pk] = {"error": str(e)}
    return results


@shared_task
def auto_import_scraped_events_task(batch_size: int = 500) -> dict:
    return auto_import_scraped_events(batch_size=batch_size)


@shared_task
def assign_missing_images(limit: int = 100) -> int:
    """Assign stock images to pending scraped events that have none."""
    assigned = 0
    qs = ScrapedEvent.objects.filter(status=ScrapedEvent.STATUS_PENDING, image_url="").order_by("created_at")
    for scraped in qs[:limit]:
        try:
            assign_stock_image(scraped)
            assigned += 1
        except PexelsError as e:
            logger.error("Could not assign image to scraped event %s: %s", scraped.pk, e)
    return assigned
