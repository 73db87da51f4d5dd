from __future__ import annotations

import base64
import json
from typing import Any

import jwt
import pytest

from app.core.config import Settings
from app.models.badge import BadgeFacts, Conference
from app.services.badge_validation import validate_badge
from app.services.baking import bake_badge
from app.services.issuance import issue_badge
from tests.conftest import TEST_HOST

SVG = (
    '<svg xmlns="http://www.w3.org/2000/svg" width="400" height="400">'
    '<circle cx="200" cy="200" r="150"/></svg>'
)


@pytest.fixture()
def issued_token(
    speaker_facts: BadgeFacts, conference: Conference, rsa_settings: Settings
) -> str:
    issued = issue_badge(speaker_facts, conference, TEST_HOST, rsa_settings)
    return issued.signed.proof_jwt


def _b64(data: dict[str, Any]) -> str:
    raw = json.dumps(data, separators=(",", ":")).encode()
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode()


def _resign(token: str, private_pem: str, **changes: Any) -> str:
    """Re-sign the token's claims, with ``changes`` applied to them."""
    claims = jwt.decode(token, options={"verify_signature": False})
    claims.update(changes)
    header = jwt.get_unverified_header(token)
    return jwt.encode(
        claims, private_pem, algorithm="RS256", headers={"kid": header["kid"]}
    )


def test_issued_badge_passes_every_check(
    issued_token: str, rsa_keys: tuple[str, str]
) -> None:
    result = validate_badge(bake_badge(SVG, issued_token), rsa_keys[1])

    assert result.valid
    assert [c.name for c in result.checks] == [
        "extraction",
        "proof",
        "structure",
        "issuer",
        "achievement",
        "url-format",
        "validity",
    ]
    assert {c.status for c in result.checks} == {"success"}
    assert result.credential is not None
    assert result.credential["type"] == ["VerifiableCredential", "OpenBadgeCredential"]


def test_ed25519_badge_validates(
    speaker_facts: BadgeFacts,
    conference: Conference,
    ed25519_settings: Settings,
    ed25519_keys: tuple[str, str],
) -> None:
    issued = issue_badge(speaker_facts, conference, TEST_HOST, ed25519_settings)
    result = validate_badge(bake_badge(SVG, issued.signed.proof_jwt), ed25519_keys[1])
    assert result.valid
    assert "EdDSA" in result.check("proof").message  # type: ignore[union-attr]


def test_tampered_payload_fails_proof(
    issued_token: str, rsa_keys: tuple[str, str]
) -> None:
    header, _, signature = issued_token.split(".")
    claims = jwt.decode(issued_token, options={"verify_signature": False})
    claims["name"] = "Keynote Speaker Badge"
    forged = ".".join((header, _b64(claims), signature))

    result = validate_badge(bake_badge(SVG, forged), rsa_keys[1])

    assert not result.valid
    assert result.credential is None
    assert [(c.name, c.status) for c in result.checks] == [
        ("extraction", "success"),
        ("proof", "error"),
    ]


def test_wrong_key_fails_proof(
    issued_token: str, other_rsa_keys: tuple[str, str]
) -> None:
    result = validate_badge(bake_badge(SVG, issued_token), other_rsa_keys[1])
    assert result.check("proof").status == "error"  # type: ignore[union-attr]
    assert not result.valid


@pytest.mark.parametrize(
    "document",
    [
        "not an image at all",
        '{"@context": "https://www.w3.org/ns/credentials/v2"}',
        SVG,
    ],
)
def test_missing_credential_fails_extraction(
    document: str, rsa_keys: tuple[str, str]
) -> None:
    result = validate_badge(document, rsa_keys[1])
    assert not result.valid
    assert result.credential is None
    assert [(c.name, c.status) for c in result.checks] == [("extraction", "error")]


def test_creator_on_issuer_is_reported(
    issued_token: str, rsa_keys: tuple[str, str]
) -> None:
    claims = jwt.decode(issued_token, options={"verify_signature": False})
    issuer = dict(claims["issuer"], creator={"id": claims["issuer"]["id"]})
    achievement = dict(claims["credentialSubject"]["achievement"])
    del achievement["creator"]
    subject = dict(claims["credentialSubject"], achievement=achievement)
    token = _resign(issued_token, rsa_keys[0], issuer=issuer, credentialSubject=subject)

    result = validate_badge(bake_badge(SVG, token), rsa_keys[1])

    assert result.check("proof").status == "success"  # type: ignore[union-attr]
    assert result.check("issuer").status == "error"  # type: ignore[union-attr]
    assert result.check("achievement").status == "error"  # type: ignore[union-attr]
    assert "creator" in result.check("achievement").message  # type: ignore[union-attr]
    assert not result.valid


def test_wrong_context_and_type_are_reported(
    issued_token: str, rsa_keys: tuple[str, str]
) -> None:
    token = _resign(
        issued_token,
        rsa_keys[0],
        **{
            "@context": ["https://www.w3.org/2018/credentials/v1"],
            "type": ["VerifiableCredential"],
        },
    )
    check = validate_badge(bake_badge(SVG, token), rsa_keys[1]).check("structure")
    assert check is not None
    assert check.status == "error"
    assert "@context" in check.message
    assert "OpenBadgeCredential" in check.message


def test_unparseable_valid_from_is_reported(
    issued_token: str, rsa_keys: tuple[str, str]
) -> None:
    token = _resign(issued_token, rsa_keys[0], validFrom="15 June 2025")
    check = validate_badge(bake_badge(SVG, token), rsa_keys[1]).check("validity")
    assert check is not None
    assert check.status == "error"
    assert "validFrom" in check.message


def test_fragment_kid_is_reported(issued_token: str, rsa_keys: tuple[str, str]) -> None:
    claims = jwt.decode(issued_token, options={"verify_signature": False})
    token = jwt.encode(
        claims,
        rsa_keys[0],
        algorithm="RS256",
        headers={"kid": "https://cloudnativeday.no/api/badge/issuer#key-1"},
    )
    check = validate_badge(bake_badge(SVG, token), rsa_keys[1]).check("url-format")
    assert check is not None
    assert check.status == "error"
    assert "#fragment" in check.message


def test_header_without_jwk_is_a_warning(
    issued_token: str, rsa_keys: tuple[str, str]
) -> None:
    result = validate_badge(
        bake_badge(SVG, _resign(issued_token, rsa_keys[0])), rsa_keys[1]
    )
    assert result.check("proof").status == "warning"  # type: ignore[union-attr]
    assert result.valid
