import pytest

from dunning.models import CollectionCase, DunningCase
from dunning.services import forward_to_collection, open_case, send_dunning_letter
from payments.models import PremiumSubscription


@pytest.fixture
def dunning_case(db, user):
    subscription = PremiumSubscription.objects.create(
        user=user,
        stripe_subscription_id="sub_api",
        status=PremiumSubscription.STATUS_PAST_DUE,
        amount=999,
    )
    case = open_case(subscription)
    send_dunning_letter(case, 1)
    return case


@pytest.mark.django_db
def test_user_sees_own_open_case(auth_client, dunning_case):
    resp = auth_client.get("/api/dunning/me/")
    assert resp.status_code == 200
    body = resp.json()["case"]
    assert body["letter_number"] == dunning_case.letter_number
    assert body["dunning_level"] == 1
    assert len(body["letters"]) == 1


@pytest.mark.django_db
def test_user_without_case_gets_null(auth_client):
    resp = auth_client.get("/api/dunning/me/")
    assert resp.status_code == 200
    assert resp.json() == {"case": None}


@pytest.mark.django_db
def test_case_list_is_staff_only(auth_client, staff_client, dunning_case):
    assert auth_client.get("/api/dunning/cases/").status_code == 403

    resp = staff_client.get("/api/dunning/cases/")
    assert resp.status_code == 200
    assert [c["id"] for c in resp.json()["results"]] == [dunning_case.id]


@pytest.mark.django_db
def test_staff_marks_case_paid(staff_client, dunning_case):
    resp = staff_client.post(f"/api/dunning/cases/{dunning_case.id}/mark-paid/", {}, content_type="application/json")
    assert resp.status_code == 200
    dunning_case.refresh_from_db()
    assert dunning_case.status == DunningCase.STATUS_PAID
    assert dunning_case.payment_amount == dunning_case.total_amount

    again = staff_client.post(f"/api/dunning/cases/{dunning_case.id}/mark-paid/", {}, content_type="application/json")
    assert again.status_code == 400


@pytest.mark.django_db
def test_staff_triggers_run(staff_client, dunning_case):
    resp = staff_client.post("/api/dunning/run/")
    assert resp.status_code == 200
    assert resp.json() == {
        "new_cases_created": 0,
        "cases_escalated": 0,
        "cases_forwarded_to_collection": 0,
        "errors": [],
    }


@pytest.mark.django_db
def test_forward_collections_to_agency(staff_client, dunning_case):
    send_dunning_letter(dunning_case, 3)
    collection = forward_to_collection(dunning_case)

    listing = staff_client.get("/api/dunning/collections/")
    assert [c["id"] for c in listing.json()["results"]] == [collection.id]

    resp = staff_client.post(
        "/api/dunning/collections/forward/",
        {"case_ids": [collection.id], "agency_name": "Inkasso Nord", "agency_email": "akten@inkasso.test"},
        content_type="application/json",
    )
    assert resp.status_code == 201
    assert resp.json()["total_cases"] == 1
    collection.refresh_from_db()
    assert collection.status == CollectionCase.STATUS_FORWARDED

    export = staff_client.get(f"/api/dunning/collections/{collection.id}/export/")
    assert export.status_code == 200
    assert export.json()["user"]["username"] == "u1"


@pytest.mark.django_db
def test_forward_unknown_cases_is_rejected(staff_client):
    resp = staff_client.post(
        "/api/dunning/collections/forward/",
        {"case_ids": [123456], "agency_name": "Inkasso Nord"},
        content_type="application/json",
    )
    assert resp.status_code == 400
