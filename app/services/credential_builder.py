"""Open Badges 3.0 credential construction.

Pure data shaping: no keys, no clock.  validFrom comes from the caller so
the output is identical for identical params, which is what lets the
Chapter 9 conformance test compare field by field.

Field placement follows the Open Badges 3.0 implementation guide: the Achievement
names its ``creator`` (the issuer's profile), while the credential's
``issuer`` never carries a ``creator`` key.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any
from urllib.parse import urlsplit

from app.core.errors import CredentialConfigError
from app.models.credential import (
    CREDENTIAL_TYPE,
    OB_CONTEXT,
    AchievementParams,
    CredentialParams,
    IssuerParams,
    SubjectParams,
)


def _require_url(value: str | None, field: str, label: str) -> None:
    if not value or not isinstance(value, str):
        raise CredentialConfigError(f"{label} is required", field=field, value=value)
    parts = urlsplit(value)
    if not parts.scheme or not (parts.netloc or parts.path):
        raise CredentialConfigError(
            f"{label} must be a valid URL", field=field, value=value
        )


def _require_text(value: str | None, field: str, label: str) -> None:
    if not value or not isinstance(value, str) or not value.strip():
        raise CredentialConfigError(f"{label} is required", field=field, value=value)


def _require_timestamp(value: str | None, field: str) -> None:
    if not value or not isinstance(value, str):
        raise CredentialConfigError(f"{field} timestamp is required", field=field)
    try:
        datetime.fromisoformat(value)
    except ValueError:
        raise CredentialConfigError(
            f"{field} must be a valid ISO 8601 timestamp", field=field, value=value
        ) from None


def _validate_issuer(issuer: IssuerParams, prefix: str) -> None:
    _require_url(issuer.id, f"{prefix}.id", "Issuer ID")
    _require_text(issuer.name, f"{prefix}.name", "Issuer name")
    _require_url(issuer.url, f"{prefix}.url", "Issuer URL")
    if issuer.image_id is not None:
        _require_url(issuer.image_id, f"{prefix}.image.id", "Issuer image ID")


def _validate_subject(subject: SubjectParams) -> None:
    _require_text(subject.id, "subject.id", "Subject ID")
    if not subject.type:
        raise CredentialConfigError(
            "Subject type array is required", field="subject.type"
        )
    if "AchievementSubject" not in subject.type:
        raise CredentialConfigError(
            'Subject type must include "AchievementSubject"',
            field="subject.type",
            value=list(subject.type),
        )


def _validate_achievement(achievement: AchievementParams) -> None:
    _require_url(achievement.id, "achievement.id", "Achievement ID")
    _require_text(achievement.name, "achievement.name", "Achievement name")
    _require_text(
        achievement.description, "achievement.description", "Achievement description"
    )
    _require_text(
        achievement.criteria.narrative,
        "achievement.criteria.narrative",
        "Achievement criteria narrative",
    )
    _require_url(achievement.image.id, "achievement.image.id", "Achievement image ID")
    if achievement.creator is not None:
        _validate_issuer(achievement.creator, "achievement.creator")
    for index, evidence in enumerate(achievement.evidence):
        field = f"achievement.evidence[{index}]"
        _require_text(evidence.id, f"{field}.id", f"Evidence[{index}] ID")
        if not evidence.type:
            raise CredentialConfigError(
                f"Evidence[{index}] type array is required", field=f"{field}.type"
            )
        _require_text(evidence.name, f"{field}.name", f"Evidence[{index}] name")


def validate_credential_params(params: CredentialParams) -> None:
    _require_url(params.credential_id, "credentialId", "Credential ID")
    _require_timestamp(params.valid_from, "validFrom")
    if params.valid_until is not None:
        _require_timestamp(params.valid_until, "validUntil")
    _validate_issuer(params.issuer, "issuer")
    _validate_subject(params.subject)
    _validate_achievement(params.achievement)


def build_issuer_profile(issuer: IssuerParams) -> dict[str, Any]:
    profile: dict[str, Any] = {
        "id": issuer.id,
        "type": ["Profile"],
        "name": issuer.name,
        "url": issuer.url,
    }
    if issuer.email:
        profile["email"] = issuer.email
    if issuer.description:
        profile["description"] = issuer.description
    if issuer.image_id:
        profile["image"] = {"id": issuer.image_id, "type": "Image"}
    return profile


def _build_achievement(
    achievement: AchievementParams, issuer_profile: dict[str, Any]
) -> dict[str, Any]:
    criteria: dict[str, Any] = {"narrative": achievement.criteria.narrative}
    if achievement.criteria.id:
        criteria["id"] = achievement.criteria.id

    image: dict[str, Any] = {"id": achievement.image.id, "type": "Image"}
    if achievement.image.caption:
        image["caption"] = achievement.image.caption

    if achievement.creator is not None:
        creator = build_issuer_profile(achievement.creator)
    else:
        # Separate copy so the issuer and creator dicts never alias.
        creator = _copy_profile(issuer_profile)

    result: dict[str, Any] = {
        "id": achievement.id,
        "type": ["Achievement"],
        "name": achievement.name,
        "description": achievement.description,
        "criteria": criteria,
        "image": image,
        "creator": creator,
    }
    if achievement.evidence:
        result["evidence"] = [
            _build_evidence(e.id, list(e.type), e.name, e.description)
            for e in achievement.evidence
        ]
    return result


def _copy_profile(profile: dict[str, Any]) -> dict[str, Any]:
    copied = dict(profile)
    copied["type"] = list(profile["type"])
    if "image" in profile:
        copied["image"] = dict(profile["image"])
    return copied


def _build_evidence(
    evidence_id: str, types: list[str], name: str, description: str | None
) -> dict[str, Any]:
    evidence: dict[str, Any] = {"id": evidence_id, "type": types, "name": name}
    if description:
        evidence["description"] = description
    return evidence


def build_credential(params: CredentialParams) -> dict[str, Any]:
    """Build an OpenBadgeCredential document from params.

    Raises CredentialConfigError when a required field is missing or
    malformed.
    """
    validate_credential_params(params)

    issuer = build_issuer_profile(params.issuer)
    credential: dict[str, Any] = {
        "@context": list(OB_CONTEXT),
        "id": params.credential_id,
        "type": list(CREDENTIAL_TYPE),
        "name": params.name or params.achievement.name,
        "issuer": issuer,
        "validFrom": params.valid_from,
        "credentialSubject": {
            "id": params.subject.id,
            "type": list(params.subject.type),
            "achievement": _build_achievement(params.achievement, issuer),
        },
    }
    if params.valid_until:
        credential["validUntil"] = params.valid_until
    return credential
