from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal
from uuid import uuid4

from app.models.keys import SigningConfiguration

BadgeType = Literal["speaker", "organizer"]


@dataclass(frozen=True, slots=True)
class Conference:
    """Conference facts handed over by the surrounding application."""

    id: str
    title: str
    organizer: str
    city: str
    country: str
    contact_email: str | None = None
    description: str | None = None
    domains: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class IssuerConfiguration:
    id: str  # always {base_url}/api/badge/issuer
    name: str
    url: str
    email: str | None = None
    description: str | None = None
    image_url: str | None = None


@dataclass(frozen=True, slots=True)
class BadgeConfiguration:
    """Everything needed to build and sign badges for one (conference, domain).

    Built per issuance call and never cached across domains: base_url and
    issuer.id depend on the domain.
    """

    base_url: str
    issuer: IssuerConfiguration
    signing: SigningConfiguration


@dataclass(frozen=True, slots=True)
class SignedCredential:
    """A credential plus its external JWT proof.

    The credential stays readable JSON-LD; the JWT is verified on its own.
    """

    credential: dict[str, Any]
    proof_jwt: str


@dataclass(frozen=True, slots=True)
class BadgeFacts:
    """Speaker/organizer facts used to issue one badge."""

    speaker_id: str
    speaker_name: str
    speaker_email: str
    speaker_slug: str
    conference_id: str
    conference_title: str
    conference_year: str
    conference_date: str
    badge_type: BadgeType
    talk_title: str | None = None


@dataclass(frozen=True, slots=True)
class BadgeRecord:
    """Persisted badge, immutable except for the baked SVG attached later."""

    badge_id: str
    badge_type: BadgeType
    speaker_id: str
    conference_id: str
    issued_at: str
    verification_url: str
    baked_svg: str | None = field(default=None, repr=False)

    @staticmethod
    def new(
        *,
        badge_type: BadgeType,
        speaker_id: str,
        conference_id: str,
        issued_at: str,
        verification_url: str,
        badge_id: str | None = None,
    ) -> BadgeRecord:
        return BadgeRecord(
            badge_id=badge_id or str(uuid4()),
            badge_type=badge_type,
            speaker_id=speaker_id,
            conference_id=conference_id,
            issued_at=issued_at,
            verification_url=verification_url,
        )


@dataclass(frozen=True, slots=True)
class IssuedBadge:
    record: BadgeRecord
    signed: SignedCredential


CheckStatus = Literal["success", "warning", "error"]


@dataclass(frozen=True, slots=True)
class ValidationCheck:
    name: str
    status: CheckStatus
    message: str


@dataclass(frozen=True, slots=True)
class ValidationResult:
    """Named checks for one baked badge, in the order they ran.

    ``credential`` is only set once the proof has verified.
    """

    checks: tuple[ValidationCheck, ...]
    credential: dict[str, Any] | None = None

    @property
    def valid(self) -> bool:
        return all(check.status != "error" for check in self.checks)

    def check(self, name: str) -> ValidationCheck | None:
        return next((c for c in self.checks if c.name == name), None)
