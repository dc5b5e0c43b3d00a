"""
Common test fixtures for Django REST Framework API tests.

Provides fixtures for creating a regular user and a staff user and for
authenticating Django test clients with JWT tokens.  Also provides an
organizer with a published event and a ticket, used by the events,
payments and moderation tests.
"""
import pytest
from django.contrib.auth.models import User
from django.test import Client

from events.models import Event
from payments.models import EventTicket, StripeConnectedAccount


def _jwt_login(client, username, password):
    resp = client.post(
        "/api/token/",
        {"username": username, "password": password},
        content_type="application/json",
    )
    assert resp.status_code == 200
    client.defaults["HTTP_AUTHORIZATION"] = f"Bearer {resp.json()['access']}"
    return client


@pytest.fixture
def user(db):
    """Create a test user."""
    return User.objects.create_user(username="u1", password="pass12345", email="u1@example.com")


@pytest.fixture
def auth_client(client, db, user):
    """Authenticate the Django test client using JWT tokens."""
    return _jwt_login(client, "u1", "pass12345")


@pytest.fixture
def staff_user(db):
    return User.objects.create_user(
        username="staff", password="pass12345", email="staff@example.com", is_staff=True
    )


@pytest.fixture
def staff_client(db, staff_user):
    return _jwt_login(Client(), "staff", "pass12345")


@pytest.fixture
def organizer(db):
    """An organizer with a Stripe connected account."""
    org = User.objects.create_user(username="org", password="pass12345", email="org@example.com")
    StripeConnectedAccount.objects.create(
        user=org, stripe_account_id="acct_123", charges_enabled=True, payouts_enabled=True
    )
    return org


@pytest.fixture
def event(db, organizer):
    return Event.objects.create(
        organizer=organizer,
        title="Summer Open Air",
        category=Event.CATEGORY_MUSIC,
        city="Berlin",
        location="Tempelhofer Feld, Berlin, Germany",
        start_date="2026-07-01",
        start_time="18:00",
        is_published=True,
        is_free=False,
    )


@pytest.fixture
def ticket(db, event):
    return EventTicket.objects.create(
        event=event, name="General admission", price=2500, total_quantity=100, available_quantity=100
    )
