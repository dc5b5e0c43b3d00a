"""
Views for the users app.

KYC endpoints for the logged-in user: read the current verification
state and start (or resume) a Stripe Identity session.  `MeAccountView`
deletes the account after cancelling its premium subscriptions.
"""
import logging

import stripe
from django.conf import settings
from rest_framework import permissions, status, views

from payments.subscriptions import cancel_subscriptions_for_user
from rest_framework.response import Response

from . import kyc
from .serializers import KYCStatusSerializer, VerificationRequestSerializer

logger = logging.getLogger(__name__)


class MeKYCStatusView(views.APIView):
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        snapshot = kyc.kyc_status(request.user)
        data = {**snapshot.as_dict(), "show_banner": kyc.should_show_kyc_banner(snapshot)}
        return Response(KYCStatusSerializer(data).data)


class MeIdentityVerificationView(views.APIView):
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request):
        ser = VerificationRequestSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        return_url = ser.validated_data.get("return_url") or f"{settings.FRONTEND_URL.rstrip('/')}/profile/kyc-callback"
        try:
            payload = kyc.create_identity_verification(request.user, return_url)
        except kyc.AlreadyVerified:
            return Response({"error": "Already verified", "status": "verified"}, status=status.HTTP_400_BAD_REQUEST)
        except stripe.StripeError as e:
            logger.error("Could not create verification session for user %s: %s", request.user.pk, e)
            return Response({"error": "Verification service unavailable"}, status=status.HTTP_502_BAD_GATEWAY)
        return Response(payload, status=status.HTTP_200_OK)


class MeAccountView(views.APIView):
    permission_classes = [permissions.IsAuthenticated]

    def delete(self, request):
        user = request.user
        try:
            cancelled = cancel_subscriptions_for_user(user)
        except stripe.StripeError as e:
            logger.error("Cancelling subscriptions of user %s failed, account kept: %s", user.pk, e)
            return Response({"error": "Payment provider error"}, status=status.HTTP_502_BAD_GATEWAY)
        user_id = user.pk
        user.delete()
        logger.info("Deleted account of user %s (cancelled subscriptions: %s)", user_id, cancelled)
        return Response(status=status.HTTP_204_NO_CONTENT)
