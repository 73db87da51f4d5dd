"""Badge configuration for one (conference, domain) pair.

Gathers every side-effecting input (keys from Settings, conference data)
in one place so credential building and signing stay pure and can be
tested with injected keys.
"""

from __future__ import annotations

from urllib.parse import urlsplit

from app.core.config import Settings
from app.models.badge import BadgeConfiguration, Conference, IssuerConfiguration
from app.models.keys import SigningConfiguration
from app.services.key_store import load_keys

# Fixed, versionable key path.  Long-lived badges keep pointing at the same
# document even if the conference record changes; rotating the key means
# bumping this to key-2.
# This is not the key-<8 hex> id served by /api/badge/keys, so the kid
# does not dereference there.  Verifiers use the header jwk until the two
# ids are aligned.
SIGNING_KEY_ID = "key-1"


def normalize_base_url(domain: str) -> str:
    """Absolute base URL for a domain; https:// unless a scheme is given."""
    domain = domain.strip()
    if not domain.startswith(("https://", "http://")):
        domain = f"https://{domain}"
    return domain.rstrip("/")


def _issuer_email(conference: Conference, base_url: str) -> str:
    if conference.contact_email:
        return conference.contact_email
    if conference.domains:
        return f"contact@{conference.domains[0]}"
    return f"contact@{urlsplit(base_url).hostname}"


def _issuer_description(conference: Conference) -> str:
    if conference.description:
        return conference.description
    return (
        f"{conference.organizer} hosts {conference.title}, bringing together the "
        f"cloud native community in {conference.city}, {conference.country}."
    )


def create_badge_configuration(
    conference: Conference, domain: str, settings: Settings
) -> BadgeConfiguration:
    """Resolve keys and issuer profile into a BadgeConfiguration.

    Raises MissingKeys, InvalidKeyFormat or PolicyViolation when the key
    configuration is unusable.
    """
    key = load_keys(
        settings.badge_rsa_private_key,
        settings.badge_rsa_public_key,
        rsa_only=settings.badge_rsa_only,
    )

    base_url = normalize_base_url(domain)
    issuer = IssuerConfiguration(
        id=f"{base_url}/api/badge/issuer",
        name=conference.organizer,
        url=base_url,
        email=_issuer_email(conference, base_url),
        description=_issuer_description(conference),
        image_url=f"{base_url}/og/base.png",
    )
    signing = SigningConfiguration(
        key=key,
        verification_method=f"{base_url}/api/badge/keys/{SIGNING_KEY_ID}",
    )
    return BadgeConfiguration(base_url=base_url, issuer=issuer, signing=signing)
