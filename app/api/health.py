"""Health and readiness endpoints.

  /health (liveness): "is the process alive?"  Always 200; the ``status``
    field says whether the instance is impaired.  Returning 503 here would
    make the orchestrator restart a container whose only problem is a
    missing environment variable, which a restart will not fix.

  /ready (readiness): "can this instance serve traffic?"  The key
    endpoint has no backing services, so if the process responds it is
    ready.

Key checks parse the configured keys the way issuance would and report
the outcome only; key material is never echoed.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Response

from app.core.config import Settings, get_settings
from app.core.errors import BadgeError, InvalidKeyFormat
from app.services.key_store import load_keys
from app.services.multikey import parse_public_key_hex

router = APIRouter(tags=["health"])


def _public_key_status(settings: Settings) -> str:
    if not settings.badge_public_key_hex:
        return "not_configured"
    try:
        parse_public_key_hex(settings.badge_public_key_hex)
    except InvalidKeyFormat:
        return "invalid"
    return "ok"


def _signing_key_status(settings: Settings) -> str:
    if not settings.badge_rsa_private_key or not settings.badge_rsa_public_key:
        return "not_configured"
    try:
        load_keys(
            settings.badge_rsa_private_key,
            settings.badge_rsa_public_key,
            rsa_only=settings.badge_rsa_only,
        )
    except BadgeError:
        return "invalid"
    return "configured"


@router.get("/health")
async def health(settings: Annotated[Settings, Depends(get_settings)]) -> dict:
    checks = {
        "badge_public_key": _public_key_status(settings),
        "badge_signing_key": _signing_key_status(settings),
    }
    overall = "degraded" if "invalid" in checks.values() else "ok"
    return {"status": overall, "checks": checks}


@router.get("/ready")
async def ready() -> Response:
    return Response(status_code=200)
