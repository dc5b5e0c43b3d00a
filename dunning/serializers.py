"""
Serializers for the dunning app.

Cases and letters are read-only over the API; state only changes through
the services in `dunning.services`.
"""
from __future__ import annotations

from rest_framework import serializers

from .models import CollectionCase, CollectionExport, DunningCase, DunningLetter


class DunningLetterSerializer(serializers.ModelSerializer):
    class Meta:
        model = DunningLetter
        fields = [
            "id",
            "dunning_level",
            "letter_number",
            "amount_claimed",
            "late_fee",
            "interest_amount",
            "payment_deadline",
            "sent_via",
            "email_delivered",
            "sent_at",
            "paid_at",
        ]
        read_only_fields = fields


class DunningCaseSerializer(serializers.ModelSerializer):
    letter_number = serializers.CharField(read_only=True)
    username = serializers.CharField(source="user.username", read_only=True)
    email = serializers.EmailField(source="user.email", read_only=True)
    letters = DunningLetterSerializer(many=True, read_only=True)

    class Meta:
        model = DunningCase
        fields = [
            "id",
            "letter_number",
            "username",
            "email",
            "status",
            "dunning_level",
            "principal_amount",
            "late_fees",
            "interest_amount",
            "total_amount",
            "first_dunning_sent_at",
            "second_dunning_sent_at",
            "third_dunning_sent_at",
            "next_action_date",
            "paid_at",
            "payment_amount",
            "created_at",
            "letters",
        ]
        read_only_fields = fields


class MarkPaidSerializer(serializers.Serializer):
    amount = serializers.IntegerField(min_value=0, required=False)


class CollectionCaseSerializer(serializers.ModelSerializer):
    username = serializers.CharField(source="user.username", read_only=True)

    class Meta:
        model = CollectionCase
        fields = [
            "id",
            "dunning_case",
            "username",
            "status",
            "principal_amount",
            "late_fees",
            "interest_amount",
            "collection_fees",
            "total_amount",
            "priority",
            "data_complete",
            "missing_data",
            "forwarded_to_collection_at",
            "collection_agency_name",
            "collection_agency_email",
            "collection_reference_number",
            "created_at",
        ]
        read_only_fields = fields


class ForwardToAgencySerializer(serializers.Serializer):
    case_ids = serializers.ListField(child=serializers.IntegerField(), allow_empty=False)
    agency_name = serializers.CharField(max_length=255)
    agency_email = serializers.EmailField(required=False, allow_blank=True)
    notes = serializers.CharField(required=False, allow_blank=True)


class CollectionExportSerializer(serializers.ModelSerializer):
    class Meta:
        model = CollectionExport
        fields = [
            "id",
            "case_ids",
            "export_date",
            "file_name",
            "export_file_url",
            "collection_agency_name",
            "collection_agency_email",
            "total_cases",
            "total_amount",
            "notes",
        ]
        read_only_fields = fields
