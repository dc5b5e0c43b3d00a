"""
URL configuration for the payments app.

Include this module under ``/api/payments/`` in the project-level URL
config; the Stripe dashboard points at ``webhook/stripe/``.
"""
from django.urls import path
from rest_framework.routers import DefaultRouter

from .views import (
    MyPayoutViewSet,
    MyTicketPurchaseViewSet,
    PauseSubscriptionView,
    PayoutRequestView,
    PremiumCheckoutView,
    ResumeSubscriptionView,
    StripeWebhookView,
    TicketCheckoutView,
)

router = DefaultRouter()
router.register(r"tickets/purchases", MyTicketPurchaseViewSet, basename="ticket-purchase")
router.register(r"payouts", MyPayoutViewSet, basename="payout")

urlpatterns = [
    path("tickets/checkout/", TicketCheckoutView.as_view(), name="ticket-checkout"),
    path("premium/checkout/", PremiumCheckoutView.as_view(), name="premium-checkout"),
    path("premium/pause/", PauseSubscriptionView.as_view(), name="premium-pause"),
    path("premium/resume/", ResumeSubscriptionView.as_view(), name="premium-resume"),
    path("payouts/request/", PayoutRequestView.as_view(), name="payout-request"),
    path("webhook/stripe/", StripeWebhookView.as_view(), name="stripe-webhook"),
    *router.urls,
]
