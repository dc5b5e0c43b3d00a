"""
Views for the moderation app.

Any signed-in user can run a moderation check and report events or
users; the report list and moderation actions are staff-only.
"""
from rest_framework import mixins, status, viewsets
from rest_framework.permissions import IsAdminUser, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from .models import Report
from .serializers import (
    ContentCheckSerializer,
    ModerationActionSerializer,
    ReportCreateSerializer,
    ReportReadSerializer,
)
from .services import apply_action, moderate_content, submit_report


class ContentCheckView(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request, *args, **kwargs):
        ser = ContentCheckSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        result = moderate_content(
            ser.validated_data["content"],
            ser.validated_data["content_type"],
            ser.validated_data["content_id"],
        )
        return Response(result, status=status.HTTP_200_OK)


class ReportViewSet(mixins.CreateModelMixin, mixins.ListModelMixin, viewsets.GenericViewSet):
    queryset = Report.objects.all().select_related("content_type", "reporter")

    def get_permissions(self):
        if self.action == "create":
            return [IsAuthenticated()]
        return [IsAdminUser()]

    def get_serializer_class(self):
        if self.action == "create":
            return ReportCreateSerializer
        return ReportReadSerializer

    def get_queryset(self):
        qs = super().get_queryset()
        reason = self.request.query_params.get("reason")
        if reason:
            qs = qs.filter(reason=reason)
        return qs

    def create(self, request, *args, **kwargs):
        ser = self.get_serializer(data=request.data)
        ser.is_valid(raise_exception=True)

        report, report_count, target = submit_report(
            request.user,
            ser.validated_data["target_type"],
            ser.validated_data["target_id"],
            ser.validated_data["reason"],
            (ser.validated_data.get("notes") or "").strip(),
        )
        return Response(
            {
                "ok": True,
                "report_id": report.id,
                "report_count": report_count,
                "status": getattr(target, "moderation_status", None),
            },
            status=status.HTTP_201_CREATED,
        )


class ModerationActionView(APIView):
    permission_classes = [IsAdminUser]

    def post(self, request, *args, **kwargs):
        ser = ModerationActionSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        entry = apply_action(
            request.user,
            ser.validated_data["target_type"],
            ser.validated_data["target_id"],
            ser.validated_data["action"],
            (ser.validated_data.get("note") or "").strip(),
        )
        return Response({"ok": True, "action_id": entry.id, **entry.meta["after"]}, status=status.HTTP_200_OK)
