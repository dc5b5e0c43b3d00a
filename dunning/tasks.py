"""Daily dunning run."""
import logging

from celery import shared_task

from .services import process_dunning_cases

logger = logging.getLogger(__name__)


@shared_task
def process_dunning_cases_task() -> dict:
    result = process_dunning_cases()
    if result["errors"]:
        logger.warning("Dunning run finished with %s errors", len(result["errors"]))
    return result
