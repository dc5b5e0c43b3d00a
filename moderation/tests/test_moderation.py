from datetime import timedelta
from unittest import mock

import pytest
import requests
from django.contrib.auth.models import User

from events.models import Event
from moderation.models import ApiUsageLog, ContentModeration, ModerationAction, Report
from moderation.services import auto_action, moderate_content, risk_level


def _openai_response(flagged, scores, categories=None):
    resp = mock.Mock(ok=True, status_code=200)
    resp.json.return_value = {
        "id": "modr-1",
        "model": "omni-moderation-latest",
        "results": [
            {
                "flagged": flagged,
                "categories": categories or {name: score >= 0.5 for name, score in scores.items()},
                "category_scores": scores,
            }
        ],
    }
    return resp


@pytest.mark.parametrize(
    "result,expected",
    [
        ({"flagged": False, "category_scores": {"hate": 0.99}}, "safe"),
        ({"flagged": True, "category_scores": {"hate": 0.95, "violence": 0.1}}, "critical"),
        ({"flagged": True, "category_scores": {"hate": 0.75}}, "high"),
        ({"flagged": True, "category_scores": {"hate": 0.5}}, "medium"),
        ({"flagged": True, "category_scores": {"hate": 0.2}}, "low"),
    ],
)
def test_risk_level(result, expected):
    assert risk_level(result) == expected


def test_auto_action():
    assert auto_action("critical") == "blocked"
    assert auto_action("high") == "needs_review"
    assert auto_action("medium") == "needs_review"
    assert auto_action("low") == "approved"
    assert auto_action("safe") == "approved"


@pytest.mark.django_db
def test_moderate_content_stores_result():
    with mock.patch("moderation.openai_client.requests.post") as post:
        post.return_value = _openai_response(True, {"harassment": 0.8, "violence": 0.1})
        result = moderate_content("du bist ...", "comment", "42")

    assert post.call_args.kwargs["json"] == {"input": "du bist ..."}
    assert post.call_args.kwargs["headers"]["Authorization"] == "Bearer sk-openai-test"
    assert result["risk_level"] == "high"
    assert result["auto_action"] == "needs_review"
    assert result["flagged_categories"] == ["harassment"]

    row = ContentModeration.objects.get()
    assert (row.content_type, row.content_id, row.flagged) == ("comment", "42", True)
    assert row.model == "omni-moderation-latest"
    log = ApiUsageLog.objects.get()
    assert log.status == ApiUsageLog.STATUS_SUCCESS
    assert log.metadata["risk_level"] == "high"


@pytest.mark.django_db
def test_moderate_content_fails_open_on_api_error():
    with mock.patch("moderation.openai_client.requests.post") as post:
        post.return_value = mock.Mock(ok=False, status_code=500, text="upstream down")
        result = moderate_content("hallo", "event", "7")

    assert result["flagged"] is False
    assert result["auto_action"] == "approved"
    assert result["note"] == "Moderation skipped - API error"
    assert not ContentModeration.objects.exists()
    assert ApiUsageLog.objects.get().status == ApiUsageLog.STATUS_ERROR


@pytest.mark.django_db
def test_moderate_content_fails_open_on_network_error():
    with mock.patch("moderation.openai_client.requests.post", side_effect=requests.ConnectionError("boom")):
        result = moderate_content("hallo", "event", "7")
    assert result["risk_level"] == "safe"
    assert result["note"] == "Moderation skipped - API error"


@pytest.mark.django_db
def test_moderate_content_without_key(settings):
    settings.OPENAI_API_KEY = ""
    with mock.patch("moderation.openai_client.requests.post") as post:
        result = moderate_content("hallo", "event", "7")
    post.assert_not_called()
    assert result["note"] == "Moderation skipped - API key not configured"
    assert ApiUsageLog.objects.get().error_message == "API key not configured"


@pytest.mark.django_db
def test_check_endpoint(auth_client):
    with mock.patch("moderation.openai_client.requests.post") as post:
        post.return_value = _openai_response(False, {"hate": 0.01})
        resp = auth_client.post(
            "/api/moderation/check/",
            {"content": "Tolles Konzert!", "content_type": "event_description", "content_id": "1"},
            content_type="application/json",
        )
    assert resp.status_code == 200
    assert resp.json()["risk_level"] == "safe"


def _report(client, target_type, target_id, reason="spam"):
    return client.post(
        "/api/moderation/reports/",
        {"target_type": target_type, "target_id": target_id, "reason": reason},
        content_type="application/json",
    )


@pytest.mark.django_db
def test_report_event(auth_client, user, event, organizer):
    resp = _report(auth_client, "event", event.id)
    assert resp.status_code == 201
    assert resp.json()["report_count"] == 1

    report = Report.objects.get()
    assert report.reporter == user
    assert report.reported_user == organizer
    assert report.priority_score == 50

    # Duplicate by the same reporter
    assert _report(auth_client, "event", event.id).status_code == 409


@pytest.mark.django_db
def test_cannot_report_own_content(auth_client, user):
    own = Event.objects.create(title="Mine", organizer=user, is_published=True)
    assert _report(auth_client, "event", own.id).status_code == 400
    assert _report(auth_client, "user", user.id).status_code == 400


@pytest.mark.django_db
def test_report_unknown_target(auth_client):
    assert _report(auth_client, "event", 999999).status_code == 404


@pytest.mark.django_db
def test_report_cooldown_and_daily_limit(auth_client, user, settings, organizer):
    events = [Event.objects.create(title=f"E{i}", organizer=organizer) for i in range(3)]

    assert _report(auth_client, "event", events[0].id).status_code == 201
    assert _report(auth_client, "event", events[1].id).status_code == 429

    Report.objects.update(created_at=Report.objects.get().created_at - timedelta(minutes=5))
    settings.REPORTS_PER_DAY_LIMIT = 1
    assert _report(auth_client, "event", events[2].id).status_code == 429

    settings.REPORTS_PER_DAY_LIMIT = 10
    assert _report(auth_client, "event", events[2].id).status_code == 201


@pytest.mark.django_db
def test_threshold_moves_event_under_review(event, settings):
    settings.MODERATION_AUTO_REVIEW_THRESHOLD = 2
    settings.REPORT_COOLDOWN_SECONDS = 0
    from moderation.services import submit_report

    reporters = [User.objects.create_user(username=f"r{i}", password="pass12345") for i in range(2)]
    submit_report(reporters[0], "event", event.id, "spam")
    event.refresh_from_db()
    assert event.moderation_status == Event.MODERATION_VISIBLE

    _, count, _ = submit_report(reporters[1], "event", event.id, "violence")
    assert count == 2
    event.refresh_from_db()
    assert event.moderation_status == Event.MODERATION_UNDER_REVIEW
    logged = ModerationAction.objects.get()
    assert logged.action == ModerationAction.ACTION_AUTO_UNDER_REVIEW
    assert logged.meta == {"report_count": 2}


@pytest.mark.django_db
def test_report_list_is_staff_only(auth_client, staff_client, event):
    _report(auth_client, "event", event.id)
    assert auth_client.get("/api/moderation/reports/").status_code == 403

    resp = staff_client.get("/api/moderation/reports/")
    assert resp.status_code == 200
    assert resp.json()["results"][0]["target_type"] == "event"


@pytest.mark.django_db
def test_staff_soft_delete_and_approve(staff_client, auth_client, event):
    assert staff_client.post(
        "/api/moderation/actions/",
        {"target_type": "event", "target_id": event.id, "action": "soft_delete", "note": "Spam"},
        content_type="application/json",
    ).status_code == 200
    event.refresh_from_db()
    assert event.moderation_status == Event.MODERATION_REMOVED
    assert event.moderation_updated_at is not None

    resp = staff_client.post(
        "/api/moderation/actions/",
        {"target_type": "event", "target_id": event.id, "action": "approve"},
        content_type="application/json",
    )
    assert resp.json()["moderation_status"] == Event.MODERATION_VISIBLE
    assert ModerationAction.objects.count() == 2

    forbidden = auth_client.post(
        "/api/moderation/actions/",
        {"target_type": "event", "target_id": event.id, "action": "approve"},
        content_type="application/json",
    )
    assert forbidden.status_code == 403
