from unittest import mock

import pytest

from events import tasks
from events.models import ImportScheduler, ScrapedEvent
from events.pexels import PexelsError
from events.ticketmaster import TicketmasterError


@pytest.mark.django_db
def test_run_scheduled_imports_isolates_failures():
    ok = ImportScheduler.objects.create(name="ok")
    bad = ImportScheduler.objects.create(name="bad")
    ImportScheduler.objects.create(name="inactive", is_active=False)

    def run(scheduler):
        if scheduler.pk == bad.pk:
            raise TicketmasterError("down")
        return {"imported": 1}

    with mock.patch.object(tasks, "run_scheduled_import", side_effect=run) as runner:
        results = tasks.run_scheduled_imports()

    assert runner.call_count == 2
    assert results[ok.pk] == {"imported": 1}
    assert results[bad.pk] == {"error": "down"}


@pytest.mark.django_db
def test_assign_missing_images_skips_failures():
    ScrapedEvent.objects.create(external_id="a", title="A")
    ScrapedEvent.objects.create(external_id="b", title="B")
    ScrapedEvent.objects.create(external_id="c", title="C", image_url="https://img/c.jpg")

    with mock.patch.object(tasks, "assign_stock_image", side_effect=["https://img/a.jpg", PexelsError("quota")]) as assign:
        assigned = tasks.assign_missing_images()

    assert assign.call_count == 2
    assert assigned == 1


def test_beat_schedule_points_at_registered_tasks(settings):
    from django.utils.module_loading import import_string

    paths = [entry["task"] for entry in settings.CELERY_BEAT_SCHEDULE.values()]
    assert "events.tasks.assign_missing_images" in paths
    for path in paths:
        assert callable(getattr(import_string(path), "delay", None)), path
