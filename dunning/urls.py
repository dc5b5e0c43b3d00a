"""
URL configuration for the dunning app, included under ``/api/dunning/``.
"""
from django.urls import path
from rest_framework.routers import DefaultRouter

from .views import CollectionCaseViewSet, DunningCaseViewSet, DunningRunView, MyDunningCaseView

router = DefaultRouter()
router.register(r"cases", DunningCaseViewSet, basename="dunning-case")
router.register(r"collections", CollectionCaseViewSet, basename="collection-case")

urlpatterns = [
    path("me/", MyDunningCaseView.as_view(), name="my-dunning-case"),
    path("run/", DunningRunView.as_view(), name="dunning-run"),
    *router.urls,
]
