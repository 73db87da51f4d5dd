"""Speaker and organizer badge issuance.

resolve configuration → build credential → sign → record.  Called
in-process by the conference application; there is no HTTP endpoint for
issuing.  The service keeps no copy of the credential; persisting the
JWT is the caller's job.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from uuid import uuid4

from app.core.config import Settings
from app.core.errors import BadgeAlreadyIssued
from app.core.metrics import BADGES_ISSUED
from app.models.badge import (
    BadgeFacts,
    BadgeRecord,
    Conference,
    IssuedBadge,
)
from app.models.credential import (
    AchievementParams,
    CredentialParams,
    CriteriaParams,
    EvidenceParams,
    ImageParams,
    IssuerParams,
    SubjectParams,
)
from app.repos.badge_repo import BadgeRepo
from app.services.badge_config import create_badge_configuration
from app.services.credential_builder import build_credential
from app.services.proof_signer import sign_credential

logger = logging.getLogger(__name__)

_CRITERIA = {
    "speaker": (
        "Delivered an accepted talk at {title}, selected through the "
        "conference's open call for papers."
    ),
    "organizer": (
        "Served on the organizing team of {title}, contributing to the "
        "planning and running of the event."
    ),
}


def _describe(facts: BadgeFacts) -> str:
    if facts.badge_type == "speaker":
        if facts.talk_title:
            return (
                f'Awarded to {facts.speaker_name} for presenting "{facts.talk_title}" '
                f"at {facts.conference_title} on {facts.conference_date}."
            )
        return (
            f"Awarded to {facts.speaker_name} for speaking at "
            f"{facts.conference_title} on {facts.conference_date}."
        )
    return (
        f"Awarded to {facts.speaker_name} for organizing "
        f"{facts.conference_title} ({facts.conference_year})."
    )


def issue_badge(
    facts: BadgeFacts,
    conference: Conference,
    domain: str,
    settings: Settings,
    *,
    issued_at: datetime | None = None,
    repo: BadgeRepo | None = None,
) -> IssuedBadge:
    """Build, sign and record one badge.

    Raises BadgeAlreadyIssued when ``repo`` already holds a badge for the
    same speaker, conference and badge type.  Otherwise raises MissingKeys /
    InvalidKeyFormat / PolicyViolation from key resolution,
    CredentialConfigError for bad facts, SigningError from the signer.
    """
    if repo is not None:
        existing = repo.find(facts.speaker_id, facts.conference_id, facts.badge_type)
        if existing is not None:
            raise BadgeAlreadyIssued(
                "Badge already issued for this speaker/conference/type combination",
                badge_id=existing.badge_id,
            )

    config = create_badge_configuration(conference, domain, settings)
    base_url = config.base_url
    badge_id = str(uuid4())
    issued_at = issued_at or datetime.now(UTC)
    if issued_at.tzinfo is not None:
        issued_at = issued_at.astimezone(UTC)
    valid_from = issued_at.strftime("%Y-%m-%dT%H:%M:%SZ")

    issuer = IssuerParams(
        id=config.issuer.id,
        name=config.issuer.name,
        url=config.issuer.url,
        email=config.issuer.email,
        description=config.issuer.description,
        image_id=config.issuer.image_url,
    )
    role = facts.badge_type.capitalize()
    achievement = AchievementParams(
        id=f"{base_url}/api/badge/{badge_id}/achievement",
        name=f"{role} at {facts.conference_title}",
        description=_describe(facts),
        criteria=CriteriaParams(
            narrative=_CRITERIA[facts.badge_type].format(title=facts.conference_title)
        ),
        image=ImageParams(
            id=f"{base_url}/api/badge/{badge_id}/image",
            caption=f"{facts.conference_title} {role} Badge",
        ),
        evidence=(
            EvidenceParams(
                id=f"{base_url}/speaker/{facts.speaker_slug}",
                name=f"{facts.speaker_name} at {facts.conference_title}",
            ),
        ),
    )
    params = CredentialParams(
        credential_id=f"{base_url}/api/badge/{badge_id}",
        name=f"{facts.conference_title} {role} Badge",
        subject=SubjectParams(id=f"mailto:{facts.speaker_email}"),
        achievement=achievement,
        issuer=issuer,
        valid_from=valid_from,
    )

    signed = sign_credential(build_credential(params), config.signing)

    record = BadgeRecord.new(
        badge_id=badge_id,
        badge_type=facts.badge_type,
        speaker_id=facts.speaker_id,
        conference_id=facts.conference_id,
        issued_at=valid_from,
        verification_url=f"{base_url}/badge/{badge_id}",
    )
    if repo is not None:
        repo.add(record)

    BADGES_ISSUED.labels(
        badge_type=facts.badge_type, algorithm=config.signing.algorithm
    ).inc()
    logger.info(
        "Issued %s badge for conference %s",
        facts.badge_type,
        facts.conference_id,
        extra={
            "badge_id": badge_id,
            "badge_type": facts.badge_type,
            "algorithm": config.signing.algorithm,
        },
    )
    return IssuedBadge(record=record, signed=signed)
