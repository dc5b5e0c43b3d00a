"""
Event import pipeline.

Two paths bring external events into the app:

* ``import_ticketmaster_events`` writes straight into `Event` (used by the
  ``import_ticketmaster`` command for one-off city/country imports).
* ``run_scheduled_import`` stages events in `ScrapedEvent`;
  ``auto_import_scraped_events`` later promotes pending rows to `Event`
  and ``sync_scraped_events`` links rows whose event already exists.

Every path deduplicates on the Ticketmaster event id, so running any of
them twice inserts nothing new.
"""
from __future__ import annotations

import logging
import time
from collections import Counter
from dataclasses import dataclass, field, asdict

from django.conf import settings
from django.db import IntegrityError, transaction
from django.utils import timezone

from . import pexels
from .models import Event, ImportLog, ImportScheduler, ScrapedEvent, build_slug
from .ticketmaster import DEFAULT_START_TIME, fetch_page, normalize_event, start_datetime

logger = logging.getLogger(__name__)

# Ticketmaster caps deep paging at 1000 results per query
RESULT_LIMIT = 1000

# Scraped events carry the German labels shown in the admin review queue
SCRAPED_CATEGORY_LABELS = {
    Event.CATEGORY_MUSIC: "Musik",
    Event.CATEGORY_SPORTS: "Sport",
    Event.CATEGORY_ART: "Kunst",
    Event.CATEGORY_NIGHTLIFE: "Party",
    Event.CATEGORY_FOOD: "Essen",
    Event.CATEGORY_OTHER: "Sonstiges",
}
EVENT_CATEGORY_FOR_LABEL = {label: key for key, label in SCRAPED_CATEGORY_LABELS.items()}
EVENT_CATEGORY_FOR_LABEL["Theater"] = Event.CATEGORY_ART


@dataclass
class ImportResult:
    found: int = 0
    imported: int = 0
    skipped: int = 0
    errors: int = 0
    pages: int = 0
    categories: dict = field(default_factory=dict)
    hit_limit: bool = False

    def merge(self, other: "ImportResult") -> None:
        self.found += other.found
        self.imported += other.imported
        self.skipped += other.skipped
        self.errors += other.errors
        self.pages += other.pages
        merged = Counter(self.categories)
        merged.update(other.categories)
        self.categories = dict(merged)
        self.hit_limit = self.hit_limit or other.hit_limit

    def as_dict(self) -> dict:
        return asdict(self)


def _insert(model, objs: list) -> tuple[list, int]:
    """
    Bulk insert `objs`; returns ``(inserted_objs, skipped)``.

    When the batch hits a unique violation (another import won the race)
    the rows are retried one by one and the conflicting ones are skipped.
    """
    if not objs:
        return [], 0
    try:
        with transaction.atomic():
            model.objects.bulk_create(objs)
        return objs, 0
    except IntegrityError:
        logger.info("Bulk insert of %s %s rows conflicted, retrying row by row", len(objs), model.__name__)

    inserted, skipped = [], 0
    for obj in objs:
        obj.pk = None
        try:
            with transaction.atomic():
                obj.save()
            inserted.append(obj)
        except IntegrityError:
            skipped += 1
    return inserted, skipped


# ---------------------------
# Direct import into Event
# ---------------------------

def import_ticketmaster_events(query: dict, max_pages: int = 5, page_size: int = 200) -> ImportResult:
    """Import events matching `query` (Discovery API params) directly into `Event`."""
    result = ImportResult()
    categories = Counter()

    for page in range(max_pages):
        raw_events, page_info = fetch_page(query, page=page, size=page_size)
        if page == 0:
            total = int(page_info.get("totalElements") or 0)
            result.found = total
            result.hit_limit = total >= RESULT_LIMIT
        if not raw_events:
            break
        result.pages += 1

        normalized = []
        for raw in raw_events:
            fields = normalize_event(raw)
            if fields is None or not fields["external_event_id"]:
                result.skipped += 1
                continue
            normalized.append(fields)

        ids = {f["external_event_id"] for f in normalized}
        existing = set(
            Event.objects.filter(
                external_source=Event.SOURCE_TICKETMASTER, external_event_id__in=ids
            ).values_list("external_event_id", flat=True)
        )

        new_events, seen = [], set()
        for fields in normalized:
            ext_id = fields["external_event_id"]
            if ext_id in existing or ext_id in seen:
                result.skipped += 1
                continue
            seen.add(ext_id)
            new_events.append(
                Event(
                    **fields,
                    slug=build_slug(fields["title"]),
                    external_source=Event.SOURCE_TICKETMASTER,
                    is_published=True,
                    is_free=False,
                    is_auto_imported=True,
                )
            )

        inserted, conflicted = _insert(Event, new_events)
        result.imported += len(inserted)
        result.skipped += conflicted
        categories.update(e.category for e in inserted)

        logger.info(
            "Ticketmaster page %s: %s events, %s new", page, len(raw_events), len(inserted)
        )

        total_pages = int(page_info.get("totalPages") or 0)
        if page >= total_pages - 1:
            break
        if settings.IMPORT_REQUEST_DELAY_SECONDS:
            time.sleep(settings.IMPORT_REQUEST_DELAY_SECONDS)

    result.categories = dict(categories)
    return result


def run_multi_query_import(queries: list[dict], max_pages: int = 5, page_size: int = 200) -> dict:
    """
    Run several imports one after another.

    A failing query is reported with ``status="error"``; the remaining
    queries still run.  Returns the per-query outcome plus the totals.
    """
    total = ImportResult()
    outcomes = []
    for query in queries:
        try:
            result = import_ticketmaster_events(query, max_pages=max_pages, page_size=page_size)
        except Exception as e:
            logger.exception("Import for query %s failed", query)
            total.errors += 1
            outcomes.append({"query": query, "status": "error", "error": str(e)})
            continue
        total.merge(result)
        outcomes.append({"query": query, "status": "success", "result": result.as_dict()})
    return {"total": total.as_dict(), "queries": outcomes}


# ---------------------------
# Scheduled import into ScrapedEvent
# ---------------------------

def scheduler_params(config: dict) -> dict:
    return {
        "countryCode": config.get("countryCode") or "DE",
        "city": config.get("city"),
        "radius": config.get("radius"),
        "startDateTime": config.get("startDate"),
        "endDateTime": config.get("endDate"),
    }


def _scraped_from(fields: dict, raw: dict, scheduler: ImportScheduler) -> ScrapedEvent:
    return ScrapedEvent(
        source=scheduler,
        external_id=fields["external_event_id"],
        title=fields["title"],
        description=fields["description"],
        location=fields["location"],
        latitude=fields["latitude"],
        longitude=fields["longitude"],
        start_date=start_datetime(fields, raw),
        category=SCRAPED_CATEGORY_LABELS.get(fields["category"], "Sonstiges"),
        image_url=fields["image_url"],
        external_url=fields["external_url"],
        ticket_url=fields["ticket_url"],
        status=ScrapedEvent.STATUS_PENDING,
        raw_data=raw,
    )


def run_scheduled_import(scheduler: ImportScheduler) -> dict:
    """
    Run one slice of a scheduler's import, resuming at its stored page.

    At most ``IMPORT_MAX_PAGES_PER_RUN`` pages are fetched.  After
    ``IMPORT_MAX_DUPLICATE_PAGES`` pages in a row without anything new the
    run stops early; the counter survives between runs.  Reaching the last
    page wraps the scheduler around to page 0.
    """
    config = dict(scheduler.config or {})
    start_page = int(config.get("currentPage") or 0)
    duplicate_pages = int(config.get("consecutiveDuplicatePages") or 0)
    max_pages = settings.IMPORT_MAX_PAGES_PER_RUN
    max_duplicate_pages = settings.IMPORT_MAX_DUPLICATE_PAGES
    params = scheduler_params(config)

    log = ImportLog.objects.create(
        scheduler=scheduler, started_at=timezone.now(), status=ImportLog.STATUS_RUNNING
    )
    logger.info("Running scheduler %s from page %s", scheduler.name, start_page)

    found = imported = skipped = pages_processed = 0
    page = start_page
    next_page = start_page
    try:
        for offset in range(max_pages):
            page = start_page + offset
            raw_events, page_info = fetch_page(params, page=page, size=settings.IMPORT_PAGE_SIZE)
            if not raw_events:
                logger.info("Scheduler %s: page %s is empty, restarting at 0", scheduler.name, page)
                next_page = 0
                break

            pages_processed += 1
            found += len(raw_events)
            page_skipped = 0
            candidates = []
            for raw in raw_events:
                fields = normalize_event(raw)
                if fields is None or not fields["external_event_id"]:
                    page_skipped += 1
                    continue
                candidates.append((fields, raw))

            existing = set(
                ScrapedEvent.objects.filter(
                    external_id__in=[f["external_event_id"] for f, _ in candidates]
                ).values_list("external_id", flat=True)
            )
            to_insert, seen = [], set()
            for fields, raw in candidates:
                ext_id = fields["external_event_id"]
                if ext_id in existing or ext_id in seen:
                    page_skipped += 1
                    continue
                seen.add(ext_id)
                to_insert.append(_scraped_from(fields, raw, scheduler))

            inserted, conflicted = _insert(ScrapedEvent, to_insert)
            page_imported = len(inserted)
            page_skipped += conflicted
            imported += page_imported
            skipped += page_skipped
            next_page = page + 1
            logger.info(
                "Scheduler %s page %s: %s imported, %s skipped",
                scheduler.name, page, page_imported, page_skipped,
            )

            if page_imported == 0 and page_skipped == len(raw_events):
                duplicate_pages += 1
                if duplicate_pages >= max_duplicate_pages:
                    logger.info("Scheduler %s: %s duplicate pages in a row, stopping", scheduler.name, duplicate_pages)
                    break
            else:
                duplicate_pages = 0

            total_pages = int(page_info.get("totalPages") or 0)
            if page >= total_pages - 1:
                logger.info("Scheduler %s reached the last page", scheduler.name)
                next_page = 0
                break

            if settings.IMPORT_REQUEST_DELAY_SECONDS:
                time.sleep(settings.IMPORT_REQUEST_DELAY_SECONDS)
    except Exception as e:
        log.status = ImportLog.STATUS_FAILED
        log.finished_at = timezone.now()
        log.error_message = str(e)
        log.events_found = found
        log.events_imported = imported
        log.events_skipped = skipped
        log.save()
        logger.exception("Scheduler %s failed", scheduler.name)
        raise

    config["currentPage"] = next_page
    config["consecutiveDuplicatePages"] = duplicate_pages
    scheduler.config = config
    scheduler.save(update_fields=["config", "updated_at"])

    details = {
        "pagesProcessed": pages_processed,
        "startPage": start_page,
        "endPage": page,
        "nextPage": next_page,
    }
    log.status = ImportLog.STATUS_SUCCESS
    log.finished_at = timezone.now()
    log.events_found = found
    log.events_imported = imported
    log.events_skipped = skipped
    log.details = details
    log.save()

    return {
        "scheduler": scheduler.name,
        "found": found,
        "imported": imported,
        "skipped": skipped,
        **details,
    }


# ---------------------------
# Promotion of scraped events
# ---------------------------

def _pending_scraped():
    return ScrapedEvent.objects.filter(status=ScrapedEvent.STATUS_PENDING, event__isnull=True)


def _link(scraped: ScrapedEvent, event_id: int) -> None:
    ScrapedEvent.objects.filter(pk=scraped.pk).update(
        event_id=event_id,
        status=ScrapedEvent.STATUS_APPROVED,
        reviewed_at=timezone.now(),
        updated_at=timezone.now(),
    )


def _split(value):
    if value is None:
        return None, None
    local = timezone.localtime(value) if timezone.is_aware(value) else value
    return local.date(), local.time().replace(second=0, microsecond=0)


def _event_from_scraped(scraped: ScrapedEvent) -> Event:
    start_date, start_time = _split(scraped.start_date)
    end_date, end_time = _split(scraped.end_date)
    parts = [p.strip() for p in (scraped.location or "").split(",")]
    return Event(
        organizer=None,
        title=scraped.title[:255],
        description=scraped.description,
        category=EVENT_CATEGORY_FOR_LABEL.get(scraped.category, Event.CATEGORY_OTHER),
        location=scraped.location,
        city=parts[1] if len(parts) > 1 else "",
        latitude=scraped.latitude,
        longitude=scraped.longitude,
        start_date=start_date,
        start_time=start_time or DEFAULT_START_TIME,
        end_date=end_date,
        end_time=end_time,
        image_url=scraped.image_url,
        ticket_url=scraped.ticket_url or scraped.external_url,
        external_url=scraped.external_url,
        external_event_id=scraped.external_id,
        external_source=Event.SOURCE_TICKETMASTER,
        is_published=True,
        is_free=False,
        is_auto_imported=True,
    )


def auto_import_scraped_events(batch_size: int = 500) -> dict:
    """Promote pending scraped events to published `Event` rows, oldest first."""
    totals = {"imported": 0, "skipped": 0, "failed": 0, "batches": 0}

    while True:
        batch = list(_pending_scraped().order_by("created_at", "pk")[:batch_size])
        if not batch:
            break
        totals["batches"] += 1
        imported = skipped = failed = linked = 0

        for scraped in batch:
            try:
                existing_id = (
                    Event.objects.filter(external_event_id=scraped.external_id)
                    .values_list("pk", flat=True)
                    .first()
                )
                if existing_id:
                    _link(scraped, existing_id)
                    skipped += 1
                    linked += 1
                    continue

                event = _event_from_scraped(scraped)
                try:
                    with transaction.atomic():
                        event.save()
                        _link(scraped, event.pk)
                except IntegrityError:
                    skipped += 1
                    continue
                imported += 1
                linked += 1
            except Exception:
                logger.exception("Auto-import of scraped event %s failed", scraped.pk)
                failed += 1

        totals["imported"] += imported
        totals["skipped"] += skipped
        totals["failed"] += failed
        logger.info(
            "Auto-import batch %s: %s imported, %s skipped, %s failed",
            totals["batches"], imported, skipped, failed,
        )

        if len(batch) < batch_size:
            break
        if linked == 0:
            logger.warning("Auto-import batch made no progress, stopping")
            break

    return totals


def sync_scraped_events(batch_size: int = 1000, chunk_size: int = 100) -> int:
    """Link pending scraped events to events that already exist; returns the number linked."""
    total = 0
    while True:
        pending = list(_pending_scraped().order_by("pk").values_list("pk", "external_id")[:batch_size])
        if not pending:
            break

        external_ids = [ext for _, ext in pending]
        event_ids = {}
        for i in range(0, len(external_ids), chunk_size):
            chunk = external_ids[i:i + chunk_size]
            event_ids.update(
                Event.objects.filter(external_event_id__in=chunk).values_list("external_event_id", "pk")
            )
        if not event_ids:
            break

        now = timezone.now()
        synced = 0
        for pk, ext in pending:
            event_id = event_ids.get(ext)
            if event_id:
                ScrapedEvent.objects.filter(pk=pk).update(
                    event_id=event_id,
                    status=ScrapedEvent.STATUS_APPROVED,
                    reviewed_at=now,
                    updated_at=now,
                )
                synced += 1
        total += synced
        logger.info("Synced %s scraped events (%s total)", synced, total)

        if len(pending) < batch_size:
            break
    return total


def assign_stock_image(scraped: ScrapedEvent) -> str:
    """Give `scraped` a stock image unless it already has one; returns the image URL."""
    if scraped.image_url:
        return scraped.image_url
    url = pexels.search_image(scraped.category)
    scraped.image_url = url
    scraped.save(update_fields=["image_url", "updated_at"])
    return url
