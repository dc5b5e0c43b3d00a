"""Client for the OpenAI moderation endpoint."""
import logging

import requests
from django.conf import settings

from jetzz_backend.errors import IntegrationError

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 10


class ModerationAPIError(IntegrationError):
    pass


def moderate(text: str) -> dict:
    """
    Classify ``text`` and return the raw API response
    (``{"id", "model", "results": [...]}``).
    """
    if not settings.OPENAI_API_KEY:
        raise ModerationAPIError("OPENAI_API_KEY is not configured")

    try:
        resp = requests.post(
            settings.OPENAI_MODERATION_URL,
            json={"input": text},
            headers={"Authorization": f"Bearer {settings.OPENAI_API_KEY}"},
            timeout=REQUEST_TIMEOUT,
        )
    except requests.RequestException as e:
        raise ModerationAPIError(f"OpenAI request failed: {e}") from e

    if not resp.ok:
        logger.error("OpenAI moderation error %s: %s", resp.status_code, resp.text[:500])
        raise ModerationAPIError(
            f"API error: {resp.text[:500]}",
            status_code=resp.status_code,
            payload=resp.text,
        )
    return resp.json()
