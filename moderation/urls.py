from django.urls import path
from rest_framework.routers import DefaultRouter

from .views import ContentCheckView, ModerationActionView, ReportViewSet

router = DefaultRouter()
router.register(r"reports", ReportViewSet, basename="moderation-reports")

urlpatterns = [
    path("check/", ContentCheckView.as_view(), name="moderation-check"),
    path("actions/", ModerationActionView.as_view(), name="moderation-actions"),
]

urlpatterns += router.urls
