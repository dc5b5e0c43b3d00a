"""
URL configuration for the JETZZ backend.

All API endpoints live under ``/api/``; JWT tokens are issued at
``/api/token/`` and the OpenAPI docs are served at ``/api/docs/``.
"""

from django.contrib import admin
from django.urls import include, path
from drf_spectacular.views import (
    SpectacularAPIView, SpectacularSwaggerView, SpectacularRedocView
)
from rest_framework_simplejwt.views import (
    TokenObtainPairView,
    TokenRefreshView,
    TokenVerifyView,
)

from jetzz_backend.views import index

urlpatterns = [
    path("", index, name="index"),
    path("admin/", admin.site.urls),

    #  Swagger/Redoc
    path("api/schema/", SpectacularAPIView.as_view(), name="schema"),
    path("api/docs/", SpectacularSwaggerView.as_view(url_name="schema"), name="swagger-ui"),
    path("api/redoc/", SpectacularRedocView.as_view(url_name="schema"), name="redoc"),

    path("api/token/", TokenObtainPairView.as_view(), name="token_obtain_pair"),
    path("api/token/refresh/", TokenRefreshView.as_view(), name="token_refresh"),
    path("api/token/verify/", TokenVerifyView.as_view(), name="token_verify"),

    path("api/users/", include("users.urls")),
    path("api/payments/", include("payments.urls")),
    path("api/dunning/", include("dunning.urls")),
    path("api/moderation/", include("moderation.urls")),
    path("api/", include("events.urls")),
]
