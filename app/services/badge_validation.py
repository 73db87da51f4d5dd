"""Validate a baked badge image end to end.

Runs the checks a verifier would: pull the JWT out of the SVG, verify
the proof against the issuer's public key, then look at the credential
itself.  Every check is reported, so a badge that fails can be
diagnosed from the result alone.

  extraction   the SVG carries an <openbadges:credential> element
  proof        the JWT signature verifies with the pinned algorithm
  structure    @context and type are the Open Badges 3.0 pairs
  issuer       issuer profile has an id and no creator
  achievement  the achievement names its creator
  url-format   ids are http(s) URLs; kid is a key URL, not a #fragment
  validity     validFrom (and validUntil when present) are ISO 8601

Extraction and proof failures stop the run.  The later checks only make
sense against a credential we know the issuer signed.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any
from urllib.parse import urlparse

import jwt

from app.core.errors import VerificationError
from app.models.badge import CheckStatus, ValidationCheck, ValidationResult
from app.models.credential import CREDENTIAL_TYPE, OB_CONTEXT
from app.services.baking import extract_badge
from app.services.proof_signer import verify_credential_jwt

logger = logging.getLogger(__name__)


def _check(name: str, problems: list[str], ok: str) -> ValidationCheck:
    if problems:
        return ValidationCheck(name, "error", "; ".join(problems))
    return ValidationCheck(name, "success", ok)


def _is_http_url(value: Any) -> bool:
    if not isinstance(value, str):
        return False
    parsed = urlparse(value)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def _structure(credential: dict[str, Any]) -> ValidationCheck:
    problems = []
    context = credential.get("@context")
    if not isinstance(context, list) or tuple(context[:2]) != OB_CONTEXT:
        problems.append("@context must start with the VC v2 and OB 3.0 contexts")
    types = credential.get("type")
    if not isinstance(types, list) or not set(CREDENTIAL_TYPE) <= set(types):
        problems.append("type must include " + " and ".join(CREDENTIAL_TYPE))
    subject = credential.get("credentialSubject")
    achievement = subject.get("achievement") if isinstance(subject, dict) else None
    if not isinstance(achievement, dict):
        problems.append("credentialSubject.achievement is missing")
    return _check("structure", problems, "Open Badges 3.0 credential structure")


def _issuer(credential: dict[str, Any]) -> ValidationCheck:
    issuer = credential.get("issuer")
    if not isinstance(issuer, dict) or not issuer.get("id"):
        return ValidationCheck("issuer", "error", "issuer profile has no id")
    if "creator" in issuer:
        return ValidationCheck(
            "issuer", "error", "creator belongs on the achievement, not the issuer"
        )
    if not issuer.get("name"):
        return ValidationCheck("issuer", "warning", "issuer profile has no name")
    return ValidationCheck("issuer", "success", f"Issued by {issuer['name']}")


def _achievement(credential: dict[str, Any]) -> ValidationCheck:
    subject = credential.get("credentialSubject") or {}
    achievement = subject.get("achievement") if isinstance(subject, dict) else None
    if not isinstance(achievement, dict):
        return ValidationCheck("achievement", "error", "achievement is missing")
    problems = []
    if not achievement.get("name"):
        problems.append("achievement has no name")
    creator = achievement.get("creator")
    if not isinstance(creator, dict) or not creator.get("id"):
        problems.append("achievement has no creator")
    return _check("achievement", problems, f"Achievement: {achievement.get('name')}")


def _url_format(credential: dict[str, Any], kid: Any) -> ValidationCheck:
    subject = credential.get("credentialSubject") or {}
    achievement = subject.get("achievement") if isinstance(subject, dict) else None
    issuer = credential.get("issuer")
    urls = {
        "id": credential.get("id"),
        "issuer.id": issuer.get("id") if isinstance(issuer, dict) else None,
        "achievement.id": (
            achievement.get("id") if isinstance(achievement, dict) else None
        ),
    }
    problems = [
        f"{name} is not an http(s) URL"
        for name, value in urls.items()
        if not _is_http_url(value)
    ]
    if not _is_http_url(kid):
        problems.append("kid is not an http(s) URL")
    elif "#" in kid:
        problems.append("kid must be a key URL, not a #fragment")
    return _check("url-format", problems, "Identifiers are resolvable URLs")


def _parse_timestamp(value: Any) -> datetime | None:
    if not isinstance(value, str):
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        return None


def _validity(credential: dict[str, Any]) -> ValidationCheck:
    valid_from = _parse_timestamp(credential.get("validFrom"))
    if valid_from is None:
        return ValidationCheck(
            "validity", "error", "validFrom is not an ISO 8601 timestamp"
        )
    if "validUntil" in credential:
        valid_until = _parse_timestamp(credential["validUntil"])
        if valid_until is None:
            return ValidationCheck(
                "validity", "error", "validUntil is not an ISO 8601 timestamp"
            )
        return ValidationCheck(
            "validity",
            "success",
            f"Valid from {valid_from.isoformat()} until {valid_until.isoformat()}",
        )
    return ValidationCheck(
        "validity", "success", f"Valid from {valid_from.isoformat()}"
    )


def validate_badge(svg: str, public_key_pem: str) -> ValidationResult:
    """Check a baked SVG badge against the issuer's public key (PEM)."""
    token = extract_badge(svg) if "<svg" in svg.lower() else None
    if token is None:
        logger.info("Badge validation failed: no embedded credential")
        return ValidationResult(
            checks=(
                ValidationCheck(
                    "extraction", "error", "No Open Badges credential found in SVG"
                ),
            )
        )
    checks = [ValidationCheck("extraction", "success", "Credential JWT found in SVG")]

    try:
        credential = verify_credential_jwt(token, public_key_pem)
    except VerificationError as exc:
        logger.info(
            "Badge validation failed: %s",
            exc.message,
            extra={"error_type": type(exc).__name__},
        )
        checks.append(ValidationCheck("proof", "error", exc.message))
        return ValidationResult(checks=tuple(checks))

    header = jwt.get_unverified_header(token)
    proof_status: CheckStatus = "success" if "jwk" in header else "warning"
    proof_message = f"Signature verified ({header.get('alg')})"
    if proof_status == "warning":
        proof_message += "; header carries no public jwk"
    checks.append(ValidationCheck("proof", proof_status, proof_message))

    checks.extend(
        [
            _structure(credential),
            _issuer(credential),
            _achievement(credential),
            _url_format(credential, header.get("kid")),
            _validity(credential),
        ]
    )
    result = ValidationResult(checks=tuple(checks), credential=credential)
    if not result.valid:
        logger.info(
            "Badge validation failed: %s",
            ", ".join(c.name for c in result.checks if c.status == "error"),
        )
    return result
