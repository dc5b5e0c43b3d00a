from django.conf import settings
from django.shortcuts import redirect


def index(request):
    # The API has no landing page; send browsers to the app
    return redirect(settings.FRONTEND_URL)
