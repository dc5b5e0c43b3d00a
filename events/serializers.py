"""
Serializers for the events app.

Events are read-only over the API; imports and moderation change them.
"""
from rest_framework import serializers

from .models import Event, ImportLog, ImportScheduler


class EventSerializer(serializers.ModelSerializer):
    """Serializer for Event objects."""
    organizer_id = serializers.IntegerField(read_only=True)

    class Meta:
        model = Event
        fields = [
            "id",
            "organizer_id",
            "title",
            "slug",
            "description",
            "category",
            "location",
            "city",
            "latitude",
            "longitude",
            "start_date",
            "start_time",
            "end_date",
            "end_time",
            "image_url",
            "ticket_url",
            "external_url",
            "external_source",
            "is_free",
            "is_auto_imported",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class ImportLogSerializer(serializers.ModelSerializer):
    class Meta:
        model = ImportLog
        fields = [
            "id",
            "scheduler",
            "started_at",
            "finished_at",
            "status",
            "events_found",
            "events_imported",
            "events_skipped",
            "details",
            "error_message",
        ]
        read_only_fields = fields


class ImportSchedulerSerializer(serializers.ModelSerializer):
    last_log = serializers.SerializerMethodField()

    class Meta:
        model = ImportScheduler
        fields = ["id", "name", "source", "is_active", "config", "last_log", "created_at", "updated_at"]
        read_only_fields = ["id", "last_log", "created_at", "updated_at"]

    def get_last_log(self, obj):
        log = obj.logs.order_by("-started_at").first()
        return ImportLogSerializer(log).data if log else None
