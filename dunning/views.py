"""
Views for the dunning app.

Users can see their own open case; everything else is staff-only and
mirrors the admin dunning dashboard.
"""
import logging

from rest_framework import permissions, status, views, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from .models import CollectionCase, DunningCase
from .serializers import (
    CollectionCaseSerializer,
    CollectionExportSerializer,
    DunningCaseSerializer,
    ForwardToAgencySerializer,
    MarkPaidSerializer,
)
from .services import (
    cases_ready_for_collection,
    export_case_data,
    forward_to_agency,
    mark_paid,
    process_dunning_cases,
)

logger = logging.getLogger(__name__)


class MyDunningCaseView(views.APIView):
    """The current user's open dunning case with its letters, or null."""

    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        case = (
            DunningCase.objects.filter(user=request.user, status=DunningCase.STATUS_OPEN)
            .prefetch_related("letters")
            .order_by("-created_at")
            .first()
        )
        return Response({"case": DunningCaseSerializer(case).data if case else None})


class DunningCaseViewSet(viewsets.ReadOnlyModelViewSet):
    serializer_class = DunningCaseSerializer
    permission_classes = [permissions.IsAdminUser]

    def get_queryset(self):
        qs = DunningCase.objects.select_related("user").prefetch_related("letters")
        if self.action == "list":
            qs = qs.filter(status=DunningCase.STATUS_OPEN).order_by("-dunning_level", "created_at")
        return qs

    @action(detail=False, methods=["get"], url_path="ready-for-collection")
    def ready_for_collection(self, request):
        cases = cases_ready_for_collection().select_related("user").prefetch_related("letters")
        return Response(DunningCaseSerializer(cases, many=True).data)

    @action(detail=True, methods=["post"], url_path="mark-paid")
    def mark_case_paid(self, request, pk=None):
        """Record a payment received outside Stripe; defaults to the full claim."""
        case = self.get_object()
        if case.status != DunningCase.STATUS_OPEN:
            return Response({"error": "Case is not open"}, status=status.HTTP_400_BAD_REQUEST)
        serializer = MarkPaidSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        amount = serializer.validated_data.get("amount", case.total_amount)
        mark_paid(case, amount)
        logger.info("Dunning case %s marked paid by %s", case.letter_number, request.user.username)
        return Response(DunningCaseSerializer(case).data)


class DunningRunView(views.APIView):
    """Run the dunning workflow now instead of waiting for the daily beat."""

    permission_classes = [permissions.IsAdminUser]

    def post(self, request):
        return Response(process_dunning_cases(), status=status.HTTP_200_OK)


class CollectionCaseViewSet(viewsets.ReadOnlyModelViewSet):
    serializer_class = CollectionCaseSerializer
    permission_classes = [permissions.IsAdminUser]

    def get_queryset(self):
        qs = CollectionCase.objects.select_related("user")
        case_status = self.request.query_params.get("status")
        if case_status:
            qs = qs.filter(status=case_status)
        return qs

    @action(detail=False, methods=["post"], url_path="forward")
    def forward(self, request):
        serializer = ForwardToAgencySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        try:
            export = forward_to_agency(
                data["case_ids"],
                data["agency_name"],
                agency_email=data.get("agency_email", ""),
                notes=data.get("notes", ""),
                exported_by=request.user,
            )
        except ValueError as e:
            return Response({"error": str(e)}, status=status.HTTP_400_BAD_REQUEST)
        return Response(CollectionExportSerializer(export).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=["get"], url_path="export")
    def export(self, request, pk=None):
        return Response(export_case_data(self.get_object()))
