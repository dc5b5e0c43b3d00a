"""
Views for the payments app.

`TicketCheckoutView` starts a Stripe Connect payment for event tickets.
The premium views start a subscription checkout and pause or resume a
subscription; `PayoutRequestView` pays out a creator's earnings.
`StripeWebhookView` receives every Stripe event; it is unauthenticated
and relies solely on signature verification.
"""
from __future__ import annotations

import json
import logging

import stripe
from django.conf import settings
from django.utils.decorators import method_decorator
from django.views.decorators.csrf import csrf_exempt
from rest_framework import permissions, status, views, viewsets
from rest_framework.response import Response

from . import payouts, subscriptions
from .checkout import create_ticket_payment
from .models import CreatorPayout, TicketPurchase
from .serializers import (
    CheckoutRequestSerializer,
    CreatorPayoutSerializer,
    PayoutRequestSerializer,
    PremiumCheckoutSerializer,
    SubscriptionChangeSerializer,
    TicketPurchaseSerializer,
)
from .webhooks import dispatch

logger = logging.getLogger(__name__)

PROVIDER_ERROR = {"error": "Payment provider error"}


class TicketCheckoutView(views.APIView):
    """Initiate a Stripe PaymentIntent for a ticket purchase."""

    permission_classes = [permissions.IsAuthenticated]

    def post(self, request):
        serializer = CheckoutRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        try:
            payment = create_ticket_payment(
                request.user, data["event_id"], data["ticket_id"], data["quantity"]
            )
        except stripe.StripeError as e:
            logger.error("PaymentIntent creation failed for user %s: %s", request.user.id, e)
            return Response(PROVIDER_ERROR, status=status.HTTP_502_BAD_GATEWAY)
        return Response(payment, status=status.HTTP_200_OK)


class MyTicketPurchaseViewSet(viewsets.ReadOnlyModelViewSet):
    serializer_class = TicketPurchaseSerializer
    permission_classes = [permissions.IsAuthenticated]

    def get_queryset(self):
        return TicketPurchase.objects.filter(user=self.request.user).select_related("ticket__event")


class PremiumCheckoutView(views.APIView):
    """Start a Stripe Checkout Session for the premium subscription."""

    permission_classes = [permissions.IsAuthenticated]

    def post(self, request):
        ser = PremiumCheckoutSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        try:
            session = subscriptions.create_premium_checkout(
                request.user, ser.validated_data["plan"], origin=request.headers.get("Origin")
            )
        except stripe.StripeError as e:
            logger.error("Checkout session creation failed for user %s: %s", request.user.id, e)
            return Response(PROVIDER_ERROR, status=status.HTTP_502_BAD_GATEWAY)
        return Response(session, status=status.HTTP_200_OK)


class PauseSubscriptionView(views.APIView):
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request):
        ser = SubscriptionChangeSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        try:
            subscription = subscriptions.pause_subscription(
                request.user, ser.validated_data["subscription_id"], ser.validated_data.get("reason", "")
            )
        except stripe.StripeError as e:
            logger.error("Pausing subscription for user %s failed: %s", request.user.id, e)
            return Response(PROVIDER_ERROR, status=status.HTTP_502_BAD_GATEWAY)
        return Response({"success": True, "pause_until": subscription.pause_end_date})


class ResumeSubscriptionView(views.APIView):
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request):
        ser = SubscriptionChangeSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        try:
            subscriptions.resume_subscription(request.user, ser.validated_data["subscription_id"])
        except stripe.StripeError as e:
            logger.error("Resuming subscription for user %s failed: %s", request.user.id, e)
            return Response(PROVIDER_ERROR, status=status.HTTP_502_BAD_GATEWAY)
        return Response({"success": True})


class PayoutRequestView(views.APIView):
    """Pay out available earnings; blocked until KYC is verified once it is required."""

    permission_classes = [permissions.IsAuthenticated]

    def post(self, request):
        ser = PayoutRequestSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        try:
            payout = payouts.request_payout(request.user, ser.validated_data["amount"])
        except stripe.StripeError:
            return Response(PROVIDER_ERROR, status=status.HTTP_502_BAD_GATEWAY)
        return Response(CreatorPayoutSerializer(payout).data, status=status.HTTP_201_CREATED)


class MyPayoutViewSet(viewsets.ReadOnlyModelViewSet):
    serializer_class = CreatorPayoutSerializer
    permission_classes = [permissions.IsAuthenticated]

    def get_queryset(self):
        return CreatorPayout.objects.filter(user=self.request.user)


@method_decorator(csrf_exempt, name="dispatch")
class StripeWebhookView(views.APIView):
    """Handle incoming Stripe webhook events."""

    permission_classes = []  # no authentication
    authentication_classes = []

    def post(self, request):
        payload = request.body
        sig_header = request.META.get("HTTP_STRIPE_SIGNATURE", "")
        if not sig_header:
            return Response({"error": "Missing stripe-signature header"}, status=status.HTTP_400_BAD_REQUEST)

        # Verify signature
        try:
            stripe.Webhook.construct_event(
                payload=payload, sig_header=sig_header, secret=settings.STRIPE_WEBHOOK_SECRET
            )
        except (ValueError, stripe.SignatureVerificationError) as e:
            logger.warning("Rejected Stripe webhook: %s", e)
            return Response({"error": "Invalid signature"}, status=status.HTTP_400_BAD_REQUEST)

        event = json.loads(payload)
        try:
            processed = dispatch(event)
        except Exception:
            logger.exception("Processing Stripe event %s (%s) failed", event.get("id"), event.get("type"))
            return Response(
                {"error": "Webhook processing failed", "event_id": event.get("id")},
                status=status.HTTP_500_INTERNAL_SERVER_ERROR,
            )

        return Response(
            {
                "received": True,
                "event_type": event["type"],
                "event_id": event.get("id"),
                "processed": processed,
            },
            status=status.HTTP_200_OK,
        )
