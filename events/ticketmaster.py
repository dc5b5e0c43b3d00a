"""
Thin client for the Ticketmaster Discovery v2 API.

Only ``events.json`` is used.  Raw events are turned into `Event` field
values by `normalize_event`; the category and image rules live here so
the direct importer and the scheduled importer agree on them.
"""
import logging
from datetime import datetime, time

import requests
from django.conf import settings
from django.utils import timezone
from django.utils.dateparse import parse_datetime, parse_date

from jetzz_backend.errors import IntegrationError

logger = logging.getLogger(__name__)

DEFAULT_START_TIME = time(20, 0)
REQUEST_TIMEOUT = 15


class TicketmasterError(IntegrationError):
    pass


def fetch_page(params: dict, page: int = 0, size: int = 200) -> tuple[list, dict]:
    """
    Fetch one page of events.

    Returns ``(events, page_info)`` where ``page_info`` is Ticketmaster's
    ``page`` object (size, totalElements, totalPages, number).
    """
    if not settings.TICKETMASTER_API_KEY:
        raise TicketmasterError("TICKETMASTER_API_KEY is not configured")

    query = {
        "apikey": settings.TICKETMASTER_API_KEY,
        "size": size,
        "page": page,
        "sort": "date,asc",
    }
    query.update({k: v for k, v in params.items() if v not in (None, "")})

    try:
        resp = requests.get(
            f"{settings.TICKETMASTER_BASE_URL}/events.json",
            params=query,
            timeout=REQUEST_TIMEOUT,
        )
    except requests.RequestException as e:
        raise TicketmasterError(f"Ticketmaster request failed: {e}") from e

    if not resp.ok:
        logger.error("Ticketmaster API error %s: %s", resp.status_code, resp.text[:500])
        raise TicketmasterError(
            f"Ticketmaster API error: {resp.status_code}",
            status_code=resp.status_code,
            payload=resp.text,
        )

    data = resp.json()
    events = (data.get("_embedded") or {}).get("events") or []
    return events, data.get("page") or {}


def map_category(segment: str | None, genre: str | None) -> str:
    segment = (segment or "").lower()
    genre = (genre or "").lower()
    if "music" in segment or "music" in genre:
        return "music"
    if "sport" in segment or "sport" in genre:
        return "sports"
    if "arts" in segment or "theatre" in segment:
        return "art"
    if "comedy" in genre:
        return "nightlife"
    return "other"


def select_image(images: list | None) -> str | None:
    """Prefer a wide 16:9 image, then any large one, then whatever comes first."""
    if not images:
        return None
    for img in images:
        if img.get("ratio") == "16_9" and (img.get("width") or 0) > 1000:
            return img.get("url")
    for img in images:
        if (img.get("width") or 0) > 800:
            return img.get("url")
    return images[0].get("url")


def _float(value):
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _split_start(start: dict):
    """Return ``(date, time)`` from a Ticketmaster ``dates.start`` object."""
    dt_raw = start.get("dateTime")
    if dt_raw:
        dt = parse_datetime(dt_raw)
        if dt is not None:
            if timezone.is_aware(dt):
                dt = timezone.localtime(dt)
            return dt.date(), dt.time().replace(tzinfo=None)
    local_date = start.get("localDate")
    if not local_date:
        return None, None
    day = parse_date(local_date)
    local_time = start.get("localTime")
    if local_time:
        try:
            return day, time.fromisoformat(local_time)
        except ValueError:
            pass
    return day, DEFAULT_START_TIME


def normalize_event(raw: dict) -> dict | None:
    """Map a raw Ticketmaster event onto `Event` fields; None when it has no start date."""
    start = (raw.get("dates") or {}).get("start") or {}
    start_date, start_time = _split_start(start)
    if start_date is None:
        return None

    venue = ((raw.get("_embedded") or {}).get("venues") or [{}])[0]
    classification = (raw.get("classifications") or [{}])[0]
    segment = (classification.get("segment") or {}).get("name")
    genre = (classification.get("genre") or {}).get("name")

    location_parts = [
        venue.get("name"),
        (venue.get("city") or {}).get("name"),
        (venue.get("country") or {}).get("name"),
    ]
    coords = venue.get("location") or {}
    name = raw.get("name") or "Untitled event"

    return {
        "external_event_id": raw.get("id"),
        "title": name[:255],
        "description": raw.get("info") or raw.get("pleaseNote") or f"{name} from Ticketmaster",
        "category": map_category(segment, genre),
        "location": ", ".join(p for p in location_parts if p),
        "city": (venue.get("city") or {}).get("name") or "",
        "latitude": _float(coords.get("latitude")),
        "longitude": _float(coords.get("longitude")),
        "start_date": start_date,
        "start_time": start_time or DEFAULT_START_TIME,
        "image_url": select_image(raw.get("images")) or "",
        "ticket_url": raw.get("url") or "",
        "external_url": raw.get("url") or "",
    }


def start_datetime(fields: dict, raw: dict | None = None) -> datetime:
    """
    The start as an aware datetime.

    Ticketmaster's ``dateTime`` carries its own offset and is used as is;
    only ``localDate``/``localTime`` are read in the project time zone.
    """
    dt_raw = ((((raw or {}).get("dates") or {}).get("start")) or {}).get("dateTime")
    if dt_raw:
        dt = parse_datetime(dt_raw)
        if dt is not None and timezone.is_aware(dt):
            return dt
    naive = datetime.combine(fields["start_date"], fields["start_time"] or DEFAULT_START_TIME)
    return timezone.make_aware(naive) if settings.USE_TZ else naive
