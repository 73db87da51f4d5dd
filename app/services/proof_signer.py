"""JWT external proofs for Open Badge credentials (RS256 / EdDSA).

The credential is serialized to canonical JSON (sorted keys, no
whitespace) and signed as a compact JWS.  The result is kept next to the
credential instead of inside it, so the JSON-LD body stays readable and
the proof is verified on its own.

Header:   alg, typ=JWT, kid=<verification method URL>, jwk=<public key>
Payload:  the credential's properties at top level (no "vc" wrapper, that
          is VC 1.1) plus iss, jti, sub, nbf and exp when validUntil is set.
"""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from typing import Any

import jwt
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ed25519, rsa
from jwt.algorithms import OKPAlgorithm, RSAAlgorithm

from app.core.errors import SigningError, VerificationError
from app.models.badge import SignedCredential
from app.models.keys import Algorithm, SigningConfiguration

logger = logging.getLogger(__name__)

_REGISTERED_CLAIMS = ("iss", "jti", "sub", "nbf", "exp")
_PUBLIC_JWK_MEMBERS = {"RS256": ("kty", "n", "e"), "EdDSA": ("kty", "crv", "x")}


def canonical_json(document: dict[str, Any]) -> bytes:
    return json.dumps(
        document, sort_keys=True, separators=(",", ":"), ensure_ascii=False
    ).encode("utf-8")


def _numeric_date(timestamp: str) -> int:
    parsed = datetime.fromisoformat(timestamp)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return int(parsed.timestamp())


def _spki(key: rsa.RSAPublicKey | ed25519.Ed25519PublicKey) -> bytes:
    return key.public_bytes(
        encoding=serialization.Encoding.DER,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )


def public_jwk(public_key: Any, algorithm: Algorithm) -> dict[str, str]:
    """Public JWK for the header; private members are never copied."""
    if algorithm == "RS256":
        full = RSAAlgorithm.to_jwk(public_key, as_dict=True)
    else:
        full = OKPAlgorithm.to_jwk(public_key, as_dict=True)
    return {name: full[name] for name in _PUBLIC_JWK_MEMBERS[algorithm]}


def _load_signing_key(
    signing: SigningConfiguration,
) -> tuple[rsa.RSAPrivateKey | ed25519.Ed25519PrivateKey, Any]:
    # Re-check what key_store classified at load time: the configuration may
    # have been assembled by hand or drifted since.
    try:
        private_key = serialization.load_pem_private_key(
            signing.private_key_pem.encode(), password=None
        )
        public_key = serialization.load_pem_public_key(signing.public_key_pem.encode())
    except (ValueError, TypeError):
        raise SigningError(
            "Signing key could not be loaded", algorithm=signing.algorithm
        ) from None

    expected = (
        rsa.RSAPrivateKey if signing.algorithm == "RS256" else ed25519.Ed25519PrivateKey
    )
    if not isinstance(private_key, expected):
        raise SigningError(
            f"Private key cannot be used with {signing.algorithm}",
            algorithm=signing.algorithm,
            key_type=type(private_key).__name__,
        )
    if _spki(private_key.public_key()) != _spki(public_key):
        raise SigningError(
            "Public key does not match private key", algorithm=signing.algorithm
        )
    return private_key, public_key


def sign_credential(
    credential: dict[str, Any], signing: SigningConfiguration
) -> SignedCredential:
    """Sign a credential and return it with its JWT proof.

    Raises SigningError when the key cannot sign with the declared algorithm.
    """
    if "#" in signing.verification_method:
        raise SigningError(
            "Verification method must be a dereferenceable URL, not a fragment",
            verification_method=signing.verification_method,
        )

    private_key, public_key = _load_signing_key(signing)

    claims: dict[str, Any] = dict(credential)
    claims["iss"] = credential["issuer"]["id"]
    claims["jti"] = credential["id"]
    claims["sub"] = credential["credentialSubject"]["id"]
    claims["nbf"] = _numeric_date(credential["validFrom"])
    if credential.get("validUntil"):
        claims["exp"] = _numeric_date(credential["validUntil"])

    headers = {
        "typ": "JWT",
        "kid": signing.verification_method,
        "jwk": public_jwk(public_key, signing.algorithm),
    }
    try:
        token = jwt.PyJWS().encode(
            canonical_json(claims),
            private_key,
            algorithm=signing.algorithm,
            headers=headers,
        )
    except jwt.PyJWTError as exc:
        raise SigningError(
            "Failed to sign credential",
            algorithm=signing.algorithm,
            reason=type(exc).__name__,
        ) from None

    logger.debug(
        "Signed credential %s",
        credential["id"],
        extra={"algorithm": signing.algorithm},
    )
    return SignedCredential(credential=credential, proof_jwt=token)


def verify_credential_jwt(token: str, public_key_pem: str) -> dict[str, Any]:
    """Verify a credential JWT and return the credential it carries.

    The accepted algorithm is pinned by the key type, so a token can't
    switch RS256 for EdDSA (or "none").

    Raises VerificationError on any failure.
    """
    try:
        public_key = serialization.load_pem_public_key(public_key_pem.encode())
    except (ValueError, TypeError):
        raise VerificationError("Invalid verification public key") from None

    if isinstance(public_key, rsa.RSAPublicKey):
        algorithms = ["RS256"]
    elif isinstance(public_key, ed25519.Ed25519PublicKey):
        algorithms = ["EdDSA"]
    else:
        raise VerificationError(
            "Unsupported verification key type", key_type=type(public_key).__name__
        )

    try:
        payload = jwt.decode(
            token,
            public_key,
            algorithms=algorithms,
            options={"require": ["iss", "jti", "sub", "nbf"]},
        )
    except jwt.PyJWTError as exc:
        raise VerificationError(
            "Invalid credential JWT", reason=type(exc).__name__
        ) from None

    for claim in _REGISTERED_CLAIMS:
        payload.pop(claim, None)
    return payload
