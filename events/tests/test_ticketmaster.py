"""Unit tests for the Ticketmaster client helpers."""
from datetime import date, time
from unittest import mock

import pytest

from events.ticketmaster import (
    TicketmasterError,
    fetch_page,
    map_category,
    normalize_event,
    select_image,
)


def raw_event(**overrides):
    event = {
        "id": "tm-1",
        "name": "Rock Night",
        "url": "https://ticketmaster.de/event/tm-1",
        "dates": {"start": {"localDate": "2026-09-12", "localTime": "19:30:00"}},
        "classifications": [{"segment": {"name": "Music"}, "genre": {"name": "Rock"}}],
        "images": [{"ratio": "4_3", "width": 305, "url": "https://img/small.jpg"}],
        "_embedded": {
            "venues": [
                {
                    "name": "Columbiahalle",
                    "city": {"name": "Berlin"},
                    "country": {"name": "Germany"},
                    "location": {"latitude": "52.48", "longitude": "13.39"},
                }
            ]
        },
    }
    event.update(overrides)
    return event


@pytest.mark.parametrize(
    "segment,genre,expected",
    [
        ("Music", "Rock", "music"),
        ("Miscellaneous", "Music Festival", "music"),
        ("Sports", "Football", "sports"),
        ("Arts & Theatre", "Opera", "art"),
        ("Theatre", None, "art"),
        ("Miscellaneous", "Comedy", "nightlife"),
        ("Film", "Drama", "other"),
        (None, None, "other"),
    ],
)
def test_map_category(segment, genre, expected):
    assert map_category(segment, genre) == expected


def test_select_image_prefers_wide_16_9():
    images = [
        {"ratio": "4_3", "width": 1200, "url": "a"},
        {"ratio": "16_9", "width": 640, "url": "b"},
        {"ratio": "16_9", "width": 2048, "url": "c"},
    ]
    assert select_image(images) == "c"


def test_select_image_falls_back_to_large_then_first():
    assert select_image([{"ratio": "3_2", "width": 500, "url": "a"}, {"ratio": "3_2", "width": 900, "url": "b"}]) == "b"
    assert select_image([{"ratio": "3_2", "width": 500, "url": "a"}]) == "a"
    assert select_image([]) is None


def test_normalize_event_maps_fields():
    fields = normalize_event(raw_event())
    assert fields["external_event_id"] == "tm-1"
    assert fields["location"] == "Columbiahalle, Berlin, Germany"
    assert fields["city"] == "Berlin"
    assert fields["latitude"] == pytest.approx(52.48)
    assert fields["start_date"] == date(2026, 9, 12)
    assert fields["start_time"] == time(19, 30)
    assert fields["category"] == "music"
    assert fields["description"] == "Rock Night from Ticketmaster"
    assert fields["ticket_url"] == fields["external_url"] == "https://ticketmaster.de/event/tm-1"


def test_normalize_event_defaults_time_and_uses_info():
    fields = normalize_event(
        raw_event(dates={"start": {"localDate": "2026-09-12"}}, info="Doors at 7", pleaseNote="No bags")
    )
    assert fields["start_time"] == time(20, 0)
    assert fields["description"] == "Doors at 7"

    fields = normalize_event(raw_event(pleaseNote="No bags"))
    assert fields["description"] == "No bags"


def test_normalize_event_reads_utc_datetime_as_local_clock_time():
    fields = normalize_event(raw_event(dates={"start": {"dateTime": "2026-12-31T23:30:00Z"}}))
    # Europe/Berlin is UTC+1 in winter, so the show starts on New Year's Day
    assert fields["start_date"] == date(2027, 1, 1)
    assert fields["start_time"] == time(0, 30)


def test_normalize_event_without_date_is_none():
    assert normalize_event(raw_event(dates={"start": {}})) is None


def test_normalize_event_drops_blank_location_parts():
    fields = normalize_event(raw_event(_embedded={"venues": [{"name": "Stadion", "city": {"name": ""}}]}))
    assert fields["location"] == "Stadion"
    assert fields["latitude"] is None


def test_fetch_page_returns_events_and_page_info():
    payload = {"_embedded": {"events": [raw_event()]}, "page": {"totalPages": 3, "totalElements": 450}}
    with mock.patch("events.ticketmaster.requests.get") as get:
        get.return_value = mock.Mock(ok=True, status_code=200, json=lambda: payload)
        events, page = fetch_page({"countryCode": "DE", "city": None}, page=2, size=200)

    assert len(events) == 1
    assert page["totalPages"] == 3
    params = get.call_args.kwargs["params"]
    assert params["page"] == 2
    assert params["apikey"] == "tm-test"
    assert "city" not in params


def test_fetch_page_raises_on_http_error():
    with mock.patch("events.ticketmaster.requests.get") as get:
        get.return_value = mock.Mock(ok=False, status_code=429, text="rate limited")
        with pytest.raises(TicketmasterError) as exc:
            fetch_page({}, page=0)
    assert exc.value.status_code == 429
