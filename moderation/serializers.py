from rest_framework import serializers

from .models import ModerationAction, Report
from .services import REPORTABLE_TARGETS


class ContentCheckSerializer(serializers.Serializer):
    content = serializers.CharField(max_length=32000)
    content_type = serializers.CharField(max_length=64)
    content_id = serializers.CharField(max_length=64)


class ReportCreateSerializer(serializers.Serializer):
    target_type = serializers.ChoiceField(choices=sorted(REPORTABLE_TARGETS))
    target_id = serializers.IntegerField(required=True)
    reason = serializers.ChoiceField(choices=[c[0] for c in Report.REASON_CHOICES])
    notes = serializers.CharField(required=False, allow_blank=True, max_length=2000)


class ReportReadSerializer(serializers.ModelSerializer):
    target_type = serializers.CharField(source="content_type.model", read_only=True)
    reporter = serializers.CharField(source="reporter.username", read_only=True)

    class Meta:
        model = Report
        fields = [
            "id",
            "reporter",
            "target_type",
            "object_id",
            "reported_user",
            "reason",
            "notes",
            "priority_score",
            "created_at",
        ]


class ModerationActionSerializer(serializers.Serializer):
    target_type = serializers.ChoiceField(choices=sorted(REPORTABLE_TARGETS))
    target_id = serializers.IntegerField(required=True)
    action = serializers.ChoiceField(
        choices=[ModerationAction.ACTION_APPROVE, ModerationAction.ACTION_SOFT_DELETE]
    )
    note = serializers.CharField(required=False, allow_blank=True, max_length=2000)
