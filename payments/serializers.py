"""
Serializers for the payments app.

Heavy lifting (creating Stripe resources) happens in `checkout`,
`subscriptions`, `payouts` and the webhook handlers; these only validate
input and expose purchases and payouts.
"""
from __future__ import annotations

from rest_framework import serializers

from .models import CreatorPayout, PremiumSubscription, TicketPurchase


class CheckoutRequestSerializer(serializers.Serializer):
    """Serializer for initiating a ticket purchase (checkout)."""

    event_id = serializers.IntegerField()
    ticket_id = serializers.IntegerField()
    quantity = serializers.IntegerField(min_value=1)


class PremiumCheckoutSerializer(serializers.Serializer):
    plan = serializers.ChoiceField(choices=PremiumSubscription.PLAN_CHOICES)


class SubscriptionChangeSerializer(serializers.Serializer):
    subscription_id = serializers.CharField(max_length=255)
    reason = serializers.CharField(max_length=500, required=False, allow_blank=True)


class PayoutRequestSerializer(serializers.Serializer):
    amount = serializers.IntegerField(min_value=1, help_text="Payout amount in cents")


class TicketPurchaseSerializer(serializers.ModelSerializer):
    """Serializer for TicketPurchase objects (read-only)."""

    ticket_id = serializers.IntegerField(source="ticket.id", read_only=True)
    ticket_name = serializers.CharField(source="ticket.name", read_only=True)
    event_id = serializers.IntegerField(source="ticket.event_id", read_only=True)
    event_title = serializers.CharField(source="ticket.event.title", read_only=True)

    class Meta:
        model = TicketPurchase
        fields = [
            "id",
            "ticket_id",
            "ticket_name",
            "event_id",
            "event_title",
            "quantity",
            "total_amount",
            "payment_status",
            "qr_code",
            "stripe_payment_intent_id",
            "created_at",
        ]
        read_only_fields = fields


class CreatorPayoutSerializer(serializers.ModelSerializer):
    class Meta:
        model = CreatorPayout
        fields = ["id", "amount", "status", "stripe_payout_id", "completed_at", "created_at"]
        read_only_fields = fields
