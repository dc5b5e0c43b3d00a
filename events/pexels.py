"""Stock images from Pexels for scraped events that come without a picture."""
import logging
import random

import requests
from django.conf import settings

from jetzz_backend.errors import IntegrationError

logger = logging.getLogger(__name__)

PEXELS_SEARCH_URL = "https://api.pexels.com/v1/search"
PLACEHOLDER_IMAGE_URL = "https://images.pexels.com/photos/1190298/pexels-photo-1190298.jpeg"
RESULTS_PER_SEARCH = 15

# Keys are the German category labels used on scraped events
CATEGORY_SEARCH_TERMS = {
    "Musik": "concert music festival",
    "Sport": "sports game stadium",
    "Kunst": "art exhibition gallery",
    "Theater": "theater stage performance",
    "Party": "party nightclub celebration",
    "Essen": "restaurant food dining",
    "Familie": "family children activities",
    "Bildung": "education workshop seminar",
    "Natur": "nature outdoor hiking",
    "Technologie": "technology conference",
    "Gesundheit": "fitness health wellness",
    "Sonstiges": "event people gathering",
}
DEFAULT_SEARCH_TERM = "event people gathering"


class PexelsError(IntegrationError):
    pass


def search_term_for(category: str | None) -> str:
    return CATEGORY_SEARCH_TERMS.get(category or "", DEFAULT_SEARCH_TERM)


def search_image(category: str | None) -> str:
    """Return the "large" URL of a random photo matching the category."""
    if not settings.PEXELS_API_KEY:
        logger.warning("PEXELS_API_KEY not set, using placeholder image")
        return PLACEHOLDER_IMAGE_URL

    try:
        resp = requests.get(
            PEXELS_SEARCH_URL,
            params={"query": search_term_for(category), "per_page": RESULTS_PER_SEARCH},
            headers={"Authorization": settings.PEXELS_API_KEY},
            timeout=10,
        )
    except requests.RequestException as e:
        raise PexelsError(f"Pexels request failed: {e}") from e

    if not resp.ok:
        raise PexelsError(f"Pexels API error: {resp.status_code}", status_code=resp.status_code)

    photos = resp.json().get("photos") or []
    if not photos:
        raise PexelsError("No images found on Pexels")
    return random.choice(photos)["src"]["large"]
