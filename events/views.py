"""
Views for the events app.

`EventViewSet` serves the public event feed.  Staff manage import
schedulers through `ImportSchedulerViewSet` and can trigger a run right
away instead of waiting for the hourly beat.
"""
import logging

from django.db.models import Q
from django.utils import timezone
from django.utils.dateparse import parse_date
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError
from rest_framework.filters import OrderingFilter, SearchFilter
from rest_framework.pagination import LimitOffsetPagination
from rest_framework.permissions import AllowAny, IsAdminUser
from rest_framework.response import Response

from jetzz_backend.errors import IntegrationError
from .importers import run_scheduled_import
from .models import Event, ImportScheduler
from .serializers import EventSerializer, ImportSchedulerSerializer

logger = logging.getLogger(__name__)


def _date_param(params, name):
    raw = params.get(name)
    if not raw:
        return None
    try:
        value = parse_date(raw)
    except ValueError:
        value = None
    if value is None:
        raise ValidationError({name: "Expected a date in YYYY-MM-DD format."})
    return value


class EventLimitOffsetPagination(LimitOffsetPagination):
    default_limit = 20
    max_limit = 100


class EventViewSet(viewsets.ReadOnlyModelViewSet):
    """
    Published events that moderation has not removed.

    Filters (optional):
      - category (?category=music or ?category=music,sports)
      - city (?city=Berlin, case-insensitive)
      - upcoming (?upcoming=1 hides events that started before today)
      - start_date/end_date (?start_date=YYYY-MM-DD&end_date=YYYY-MM-DD)
    """
    serializer_class = EventSerializer
    permission_classes = [AllowAny]
    pagination_class = EventLimitOffsetPagination

    filter_backends = [SearchFilter, OrderingFilter]
    search_fields = ["title", "location", "city", "description"]
    ordering_fields = ["start_date", "created_at", "title"]
    ordering = ["start_date", "start_time"]

    def get_queryset(self):
        qs = Event.objects.filter(is_published=True).exclude(
            moderation_status=Event.MODERATION_REMOVED
        )
        params = self.request.query_params

        categories = [c for raw in params.getlist("category") for c in raw.split(",") if c]
        if categories:
            qs = qs.filter(category__in=categories)

        city = params.get("city")
        if city:
            qs = qs.filter(Q(city__iexact=city) | Q(location__icontains=city))

        if params.get("upcoming") in ("1", "true", "True"):
            qs = qs.filter(start_date__gte=timezone.localdate())

        start_date = _date_param(params, "start_date")
        end_date = _date_param(params, "end_date")
        if start_date and end_date and start_date > end_date:
            start_date, end_date = end_date, start_date
        if start_date:
            qs = qs.filter(start_date__gte=start_date)
        if end_date:
            qs = qs.filter(start_date__lte=end_date)
        return qs

    @action(detail=False, methods=["get"], url_path="categories")
    def categories(self, request):
        """Distinct categories that currently have visible events."""
        cats = self.get_queryset().order_by().values_list("category", flat=True).distinct()
        return Response({"results": sorted(set(cats))})


class ImportSchedulerViewSet(viewsets.ModelViewSet):
    queryset = ImportScheduler.objects.all()
    serializer_class = ImportSchedulerSerializer
    permission_classes = [IsAdminUser]

    @action(detail=True, methods=["post"], url_path="run")
    def run(self, request, pk=None):
        """Run one import slice for this scheduler now."""
        scheduler = self.get_object()
        try:
            summary = run_scheduled_import(scheduler)
        except IntegrationError as e:
            logger.warning("Manual run of scheduler %s failed: %s", scheduler.pk, e)
            return Response({"error": str(e)}, status=status.HTTP_502_BAD_GATEWAY)
        return Response(summary, status=status.HTTP_200_OK)
