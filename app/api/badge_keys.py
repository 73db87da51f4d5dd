"""Published issuer key: GET /api/badge/keys/{key_id}.

Verifiers dereference a badge's verification method here to get the
issuer's Ed25519 public key as a W3C Multikey document.  Stateless: the
document is recomputed from configuration on every request.

  200  application/ld+json  Multikey document
  404  {"error": "Key not found"}              key_id isn't derived from the key
  500  {"error": "Public key not configured"}  BADGE_ISSUER_PUBLIC_KEY unset

Errors are raised as BadgeError subclasses and rendered by the handler
registered in app/main.py.
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from app.core.config import Settings, get_settings
from app.core.errors import InvalidKeyFormat, KeyNotFound, MissingKeys
from app.core.metrics import BADGE_KEY_REQUESTS
from app.services.badge_config import normalize_base_url
from app.services.multikey import build_multikey_document, check_key_id

router = APIRouter(prefix="/api/badge", tags=["badge"])

logger = logging.getLogger(__name__)

# The keyId changes whenever the key does, so a served document never goes
# stale and can be cached indefinitely.
KEY_RESPONSE_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET",
    "Cache-Control": "public, max-age=31536000, immutable",
}


class LdJsonResponse(JSONResponse):
    media_type = "application/ld+json"


def _base_url(settings: Settings, request: Request) -> str:
    if settings.badge_issuer_url:
        return normalize_base_url(settings.badge_issuer_url)
    return normalize_base_url(request.url.netloc)


@router.get("/keys/{key_id}", response_class=LdJsonResponse)
def get_badge_key(
    key_id: str,
    request: Request,
    settings: Annotated[Settings, Depends(get_settings)],
) -> LdJsonResponse:
    public_key_hex = settings.badge_public_key_hex
    if not public_key_hex:
        BADGE_KEY_REQUESTS.labels(result="not_configured").inc()
        logger.error("BADGE_ISSUER_PUBLIC_KEY is not set; cannot publish badge key")
        raise MissingKeys("Public key not configured")

    try:
        check_key_id(key_id, public_key_hex)
        document = build_multikey_document(
            public_key_hex, key_id, _base_url(settings, request)
        )
    except KeyNotFound:
        BADGE_KEY_REQUESTS.labels(result="not_found").inc()
        raise
    except InvalidKeyFormat:
        BADGE_KEY_REQUESTS.labels(result="invalid").inc()
        raise

    BADGE_KEY_REQUESTS.labels(result="served").inc()
    return LdJsonResponse(content=document, headers=KEY_RESPONSE_HEADERS)
