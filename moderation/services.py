"""
Content moderation and user reports.

`moderate_content` runs text through OpenAI's moderation model and never
blocks the caller on an outage: without a key, on an API error or on an
unexpected exception the content is treated as safe.  `submit_report`
and `apply_action` hold the rules the report and moderation endpoints
share.
"""
import logging
import time
from datetime import timedelta

from django.conf import settings
from django.contrib.auth import get_user_model
from django.contrib.contenttypes.models import ContentType
from django.db import IntegrityError, transaction
from django.utils import timezone
from rest_framework import status
from rest_framework.exceptions import APIException, NotFound, Throttled, ValidationError

from events.models import Event
from . import openai_client
from .models import ApiUsageLog, ContentModeration, ModerationAction, Report

logger = logging.getLogger(__name__)

User = get_user_model()

MODERATION_ENDPOINT = "/v1/moderations"

# Reportable targets: name -> (model, attribute holding the owner's user id)
REPORTABLE_TARGETS = {
    "event": (Event, "organizer_id"),
    "user": (User, "pk"),
}


class AlreadyReported(APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "You already reported this content."
    default_code = "already_reported"


def risk_level(result: dict) -> str:
    if not result.get("flagged"):
        return ContentModeration.RISK_SAFE
    max_score = max((result.get("category_scores") or {}).values(), default=0)
    if max_score >= 0.9:
        return ContentModeration.RISK_CRITICAL
    if max_score >= 0.7:
        return ContentModeration.RISK_HIGH
    if max_score >= 0.5:
        return ContentModeration.RISK_MEDIUM
    return ContentModeration.RISK_LOW


def auto_action(risk: str) -> str:
    if risk == ContentModeration.RISK_CRITICAL:
        return ContentModeration.ACTION_BLOCKED
    if risk in (ContentModeration.RISK_HIGH, ContentModeration.RISK_MEDIUM):
        return ContentModeration.ACTION_NEEDS_REVIEW
    return ContentModeration.ACTION_APPROVED


def _log_usage(started: float, status_value: str, error: str = "", metadata: dict | None = None) -> None:
    ApiUsageLog.objects.create(
        service="openai",
        function_name="moderate_content",
        endpoint=MODERATION_ENDPOINT,
        execution_time_ms=int((time.monotonic() - started) * 1000),
        status=status_value,
        error_message=error,
        metadata=metadata or {},
    )


def _skipped(content_id: str, note: str) -> dict:
    return {
        "content_id": content_id,
        "flagged": False,
        "risk_level": ContentModeration.RISK_SAFE,
        "auto_action": ContentModeration.ACTION_APPROVED,
        "flagged_categories": [],
        "category_scores": {},
        "note": note,
    }


def moderate_content(content: str, content_type: str, content_id: str) -> dict:
    started = time.monotonic()
    meta = {"content_type": content_type, "content_id": content_id}

    if not settings.OPENAI_API_KEY:
        logger.warning("OPENAI_API_KEY not set, skipping moderation of %s:%s", content_type, content_id)
        _log_usage(started, ApiUsageLog.STATUS_ERROR, "API key not configured", meta)
        return _skipped(content_id, "Moderation skipped - API key not configured")

    try:
        data = openai_client.moderate(content)
        result = data["results"][0]
    except openai_client.ModerationAPIError as e:
        _log_usage(started, ApiUsageLog.STATUS_ERROR, str(e), meta)
        return _skipped(content_id, "Moderation skipped - API error")
    except Exception as e:
        logger.exception("Moderation of %s:%s failed", content_type, content_id)
        _log_usage(started, ApiUsageLog.STATUS_ERROR, str(e), meta)
        return _skipped(content_id, "Moderation skipped - internal error")

    risk = risk_level(result)
    action = auto_action(risk)
    categories = [name for name, hit in (result.get("categories") or {}).items() if hit]
    scores = result.get("category_scores") or {}

    ContentModeration.objects.create(
        content_type=content_type,
        content_id=content_id,
        flagged=bool(result.get("flagged")),
        risk_level=risk,
        auto_action=action,
        flagged_categories=categories,
        category_scores=scores,
        model=data.get("model") or "",
    )
    _log_usage(
        started,
        ApiUsageLog.STATUS_SUCCESS,
        metadata={**meta, "flagged": bool(result.get("flagged")), "risk_level": risk, "model": data.get("model")},
    )
    if action != ContentModeration.ACTION_APPROVED:
        logger.info("Content %s:%s flagged as %s (%s)", content_type, content_id, risk, ", ".join(categories))

    return {
        "content_id": content_id,
        "flagged": bool(result.get("flagged")),
        "risk_level": risk,
        "auto_action": action,
        "flagged_categories": categories,
        "category_scores": scores,
    }


def resolve_target(target_type: str, target_id: int):
    """Return ``(content_type, target, owner_id)``; raises NotFound for unknown targets."""
    entry = REPORTABLE_TARGETS.get((target_type or "").strip().lower())
    if entry is None:
        raise NotFound("Target not found.")
    model, owner_attr = entry
    target = model.objects.filter(pk=target_id).first()
    if target is None:
        raise NotFound("Target not found.")
    return ContentType.objects.get_for_model(model), target, getattr(target, owner_attr, None)


def _set_moderation_status(target, status_value: str) -> None:
    if hasattr(target, "moderation_status"):
        target.moderation_status = status_value
        target.moderation_updated_at = timezone.now()
        target.save(update_fields=["moderation_status", "moderation_updated_at"])


def submit_report(reporter, target_type: str, target_id: int, reason: str, notes: str = ""):
    """
    File a report and flag the target for review once enough reports pile up.

    Returns ``(report, report_count, target)``.
    """
    ct, target, owner_id = resolve_target(target_type, target_id)
    if owner_id is not None and owner_id == reporter.id:
        raise ValidationError({"detail": "You cannot report your own content."})

    if Report.objects.filter(reporter=reporter, content_type=ct, object_id=target.pk).exists():
        raise AlreadyReported()

    now = timezone.now()
    recent = Report.objects.filter(reporter=reporter, created_at__gte=now - timedelta(hours=24))
    if recent.count() >= settings.REPORTS_PER_DAY_LIMIT:
        raise Throttled(detail=f"Daily limit reached ({settings.REPORTS_PER_DAY_LIMIT} reports per day).")

    last = recent.order_by("-created_at").first()
    if last is not None:
        elapsed = (now - last.created_at).total_seconds()
        if elapsed < settings.REPORT_COOLDOWN_SECONDS:
            raise Throttled(
                wait=settings.REPORT_COOLDOWN_SECONDS - elapsed,
                detail=f"Please wait {settings.REPORT_COOLDOWN_SECONDS} seconds between reports.",
            )

    try:
        with transaction.atomic():
            report = Report.objects.create(
                reporter=reporter,
                content_type=ct,
                object_id=target.pk,
                reported_user_id=owner_id,
                reason=reason,
                notes=notes,
            )

            report_count = Report.objects.filter(content_type=ct, object_id=target.pk).count()
            threshold = settings.MODERATION_AUTO_REVIEW_THRESHOLD
            current = getattr(target, "moderation_status", None)
            if (
                current is not None
                and current not in {Event.MODERATION_UNDER_REVIEW, Event.MODERATION_REMOVED}
                and report_count >= threshold
            ):
                _set_moderation_status(target, Event.MODERATION_UNDER_REVIEW)
                ModerationAction.objects.create(
                    performed_by=None,
                    content_type=ct,
                    object_id=target.pk,
                    action=ModerationAction.ACTION_AUTO_UNDER_REVIEW,
                    note="Auto-flagged after reports",
                    meta={"report_count": report_count},
                )
                logger.info("%s %s moved to review after %s reports", target_type, target.pk, report_count)
    except IntegrityError:
        raise AlreadyReported()

    return report, report_count, target


def apply_action(moderator, target_type: str, target_id: int, action: str, note: str = "") -> ModerationAction:
    """Approve (visible again) or soft-delete (removed) a target and log it."""
    ct, target, _ = resolve_target(target_type, target_id)
    if action == ModerationAction.ACTION_APPROVE:
        new_status = Event.MODERATION_VISIBLE
    elif action == ModerationAction.ACTION_SOFT_DELETE:
        new_status = Event.MODERATION_REMOVED
    else:
        raise ValidationError({"action": f"Unsupported action: {action}"})

    before = getattr(target, "moderation_status", None)
    with transaction.atomic():
        _set_moderation_status(target, new_status)
        entry = ModerationAction.objects.create(
            performed_by=moderator,
            content_type=ct,
            object_id=target.pk,
            action=action,
            note=note,
            meta={"before": {"moderation_status": before}, "after": {"moderation_status": new_status}},
        )
    return entry
