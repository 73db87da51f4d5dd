"""Issuer key loading and classification.

Turns the PEM pair from configuration into a KeyMaterial variant in one
parsing step.  The algorithm follows from the parsed key type:

  RSA      → RsaKeyMaterial      → RS256
  Ed25519  → Ed25519KeyMaterial  → EdDSA

Anything else (EC, DSA, garbage) is rejected here, so later stages never
have to sniff PEM headers again.
"""

from __future__ import annotations

import logging

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ed25519, rsa

from app.core.errors import InvalidKeyFormat, MissingKeys, PolicyViolation
from app.models.keys import Ed25519KeyMaterial, KeyMaterial, RsaKeyMaterial

logger = logging.getLogger(__name__)


def _normalize_pem(pem: str) -> str:
    return pem.strip().replace("\\n", "\n")


def load_keys(
    private_key_pem: str | None,
    public_key_pem: str | None,
    *,
    rsa_only: bool = False,
) -> KeyMaterial:
    """Parse and classify the issuer key pair.

    Raises MissingKeys, InvalidKeyFormat or PolicyViolation.
    """
    if not private_key_pem or not private_key_pem.strip():
        raise MissingKeys(
            "Badge issuer private key is not configured",
            env="BADGE_ISSUER_RSA_PRIVATE_KEY",
        )
    if not public_key_pem or not public_key_pem.strip():
        raise MissingKeys(
            "Badge issuer public key is not configured",
            env="BADGE_ISSUER_RSA_PUBLIC_KEY",
        )

    private_pem = _normalize_pem(private_key_pem)
    public_pem = _normalize_pem(public_key_pem)

    try:
        public_key = serialization.load_pem_public_key(public_pem.encode())
    except (ValueError, TypeError) as exc:
        # The parser message describes the PEM structure, not its contents.
        raise InvalidKeyFormat(
            "Invalid badge issuer public key format", reason=str(exc)
        ) from None

    try:
        private_key = serialization.load_pem_private_key(
            private_pem.encode(), password=None
        )
    except (ValueError, TypeError) as exc:
        raise InvalidKeyFormat(
            "Invalid badge issuer private key format", reason=type(exc).__name__
        ) from None

    material: KeyMaterial
    if isinstance(public_key, rsa.RSAPublicKey):
        if not isinstance(private_key, rsa.RSAPrivateKey):
            raise InvalidKeyFormat(
                "Badge issuer private key is not an RSA key",
                public_type="RSA",
            )
        material = RsaKeyMaterial(private_key_pem=private_pem, public_key_pem=public_pem)
    elif isinstance(public_key, ed25519.Ed25519PublicKey):
        if not isinstance(private_key, ed25519.Ed25519PrivateKey):
            raise InvalidKeyFormat(
                "Badge issuer private key is not an Ed25519 key",
                public_type="Ed25519",
            )
        raw = public_key.public_bytes(
            encoding=serialization.Encoding.Raw,
            format=serialization.PublicFormat.Raw,
        )
        material = Ed25519KeyMaterial(
            private_key_pem=private_pem,
            public_key_pem=public_pem,
            public_key_raw=raw,
        )
    else:
        raise InvalidKeyFormat(
            "Unsupported badge issuer key type",
            public_type=type(public_key).__name__,
        )

    if rsa_only and not isinstance(material, RsaKeyMaterial):
        raise PolicyViolation(
            "BADGE_ISSUER_RSA_ONLY is enabled but the configured key is not RSA",
            algorithm=material.algorithm,
        )

    logger.debug("Loaded badge issuer key", extra={"algorithm": material.algorithm})
    return material
