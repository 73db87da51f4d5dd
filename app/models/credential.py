from __future__ import annotations

from dataclasses import dataclass

# JSON-LD contexts, in this order, for every credential we issue.
OB_CONTEXT = (
    "https://www.w3.org/ns/credentials/v2",
    "https://purl.imsglobal.org/spec/ob/v3p0/context-3.0.3.json",
)
CREDENTIAL_TYPE = ("VerifiableCredential", "OpenBadgeCredential")


@dataclass(frozen=True, slots=True)
class SubjectParams:
    id: str  # did:…, mailto:…, or URL
    type: tuple[str, ...] = ("AchievementSubject",)


@dataclass(frozen=True, slots=True)
class CriteriaParams:
    narrative: str
    id: str | None = None


@dataclass(frozen=True, slots=True)
class ImageParams:
    id: str
    caption: str | None = None


@dataclass(frozen=True, slots=True)
class EvidenceParams:
    id: str
    name: str
    type: tuple[str, ...] = ("Evidence",)
    description: str | None = None


@dataclass(frozen=True, slots=True)
class IssuerParams:
    id: str
    name: str
    url: str
    email: str | None = None
    description: str | None = None
    image_id: str | None = None


@dataclass(frozen=True, slots=True)
class AchievementParams:
    """Maps to the Open Badges 3.0 Achievement.

    ``creator`` defaults to the credential issuer's profile.
    """

    id: str
    name: str
    description: str
    criteria: CriteriaParams
    image: ImageParams
    creator: IssuerParams | None = None
    evidence: tuple[EvidenceParams, ...] = ()


@dataclass(frozen=True, slots=True)
class CredentialParams:
    credential_id: str
    subject: SubjectParams
    achievement: AchievementParams
    issuer: IssuerParams
    valid_from: str  # ISO 8601, caller supplied
    name: str | None = None
    valid_until: str | None = None
