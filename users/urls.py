"""
Account and KYC endpoints for the users app.  Included under ``/api/users/``.
"""
from django.urls import path

from .views import MeAccountView, MeKYCStatusView, MeIdentityVerificationView

urlpatterns = [
    path("me/", MeAccountView.as_view(), name="me-account"),
    path("me/kyc/", MeKYCStatusView.as_view(), name="me-kyc-status"),
    path("me/kyc/verify/", MeIdentityVerificationView.as_view(), name="me-kyc-verify"),
]
