"""
API tests for the events app.

Covers the public feed (visibility and filters) and the staff-only
scheduler run endpoint.
"""
from unittest import mock

import pytest

from events.models import Event, ImportScheduler
from events.ticketmaster import TicketmasterError


@pytest.mark.django_db
def test_event_feed_hides_unpublished_and_removed(client, event):
    Event.objects.create(title="Draft", is_published=False)
    Event.objects.create(title="Removed", is_published=True, moderation_status=Event.MODERATION_REMOVED)

    resp = client.get("/api/events/")
    assert resp.status_code == 200
    titles = [e["title"] for e in resp.json()["results"]]
    assert titles == ["Summer Open Air"]

    detail = client.get(f"/api/events/{event.id}/")
    assert detail.status_code == 200
    assert detail.json()["city"] == "Berlin"


@pytest.mark.django_db
def test_event_feed_filters_by_category_and_city(client, event):
    Event.objects.create(title="Derby", category=Event.CATEGORY_SPORTS, city="Hamburg", is_published=True)

    resp = client.get("/api/events/", {"category": "sports"})
    assert [e["title"] for e in resp.json()["results"]] == ["Derby"]

    resp = client.get("/api/events/", {"city": "berlin"})
    assert [e["title"] for e in resp.json()["results"]] == ["Summer Open Air"]

    resp = client.get("/api/events/categories/")
    assert resp.json()["results"] == ["music", "sports"]


@pytest.mark.django_db
def test_event_feed_filters_by_date_range(client, event):
    Event.objects.create(title="Autumn Jazz", start_date="2026-10-03", is_published=True)

    resp = client.get("/api/events/", {"start_date": "2026-09-01"})
    assert [e["title"] for e in resp.json()["results"]] == ["Autumn Jazz"]

    # Inverted bounds are swapped
    resp = client.get("/api/events/", {"start_date": "2026-07-31", "end_date": "2026-06-01"})
    assert [e["title"] for e in resp.json()["results"]] == ["Summer Open Air"]


@pytest.mark.django_db
@pytest.mark.parametrize("param", ["start_date", "end_date"])
@pytest.mark.parametrize("value", ["not-a-date", "2026-13-40"])
def test_event_feed_rejects_malformed_dates(client, event, param, value):
    resp = client.get("/api/events/", {param: value})
    assert resp.status_code == 400
    assert param in resp.json()


@pytest.mark.django_db
def test_scheduler_run_requires_staff(auth_client):
    scheduler = ImportScheduler.objects.create(name="Berlin")
    resp = auth_client.post(f"/api/imports/schedulers/{scheduler.id}/run/")
    assert resp.status_code == 403


@pytest.mark.django_db
def test_scheduler_run_by_staff(staff_client):
    scheduler = ImportScheduler.objects.create(name="Berlin")
    summary = {"scheduler": "Berlin", "found": 3, "imported": 3, "skipped": 0}

    with mock.patch("events.views.run_scheduled_import", return_value=summary) as run:
        resp = staff_client.post(f"/api/imports/schedulers/{scheduler.id}/run/")

    assert resp.status_code == 200
    assert resp.json()["imported"] == 3
    run.assert_called_once_with(scheduler)


@pytest.mark.django_db
def test_scheduler_run_reports_upstream_error(staff_client):
    scheduler = ImportScheduler.objects.create(name="Berlin")
    with mock.patch("events.views.run_scheduled_import", side_effect=TicketmasterError("Ticketmaster API error: 503")):
        resp = staff_client.post(f"/api/imports/schedulers/{scheduler.id}/run/")
    assert resp.status_code == 502
