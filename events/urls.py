from rest_framework.routers import DefaultRouter

from .views import EventViewSet, ImportSchedulerViewSet

router = DefaultRouter()
router.register(r"events", EventViewSet, basename="event")
router.register(r"imports/schedulers", ImportSchedulerViewSet, basename="import-scheduler")

urlpatterns = router.urls
