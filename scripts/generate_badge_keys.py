"""Generate badge issuer keys and print them as .env lines.

Run with:
    python scripts/generate_badge_keys.py            # RSA-2048 (RS256)
    python scripts/generate_badge_keys.py --ed25519  # Ed25519 (EdDSA)

The Ed25519 public key is also printed as BADGE_ISSUER_PUBLIC_KEY (hex)
for the Multikey endpoint, together with the keyId it will be served under.
"""

from __future__ import annotations

import argparse

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ed25519, rsa

from app.services.multikey import derive_key_id, encode_multikey


def _env_pem(pem: bytes) -> str:
    return pem.decode("ascii").strip().replace("\n", "\\n")


def main() -> None:
    parser = argparse.ArgumentParser(description="Generate badge issuer keys")
    parser.add_argument(
        "--ed25519", action="store_true", help="generate Ed25519 instead of RSA"
    )
    args = parser.parse_args()

    private_key: rsa.RSAPrivateKey | ed25519.Ed25519PrivateKey
    if args.ed25519:
        private_key = ed25519.Ed25519PrivateKey.generate()
    else:
        private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)

    private_pem = private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )
    public_pem = private_key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )

    print(f'BADGE_ISSUER_RSA_PRIVATE_KEY="{_env_pem(private_pem)}"')
    print(f'BADGE_ISSUER_RSA_PUBLIC_KEY="{_env_pem(public_pem)}"')
    print(f"BADGE_ISSUER_RSA_ONLY={'false' if args.ed25519 else 'true'}")

    if isinstance(private_key, ed25519.Ed25519PrivateKey):
        raw = private_key.public_key().public_bytes(
            encoding=serialization.Encoding.Raw,
            format=serialization.PublicFormat.Raw,
        )
        print(f"BADGE_ISSUER_PUBLIC_KEY={raw.hex()}")
        print(f"# keyId: {derive_key_id(raw.hex())}")
        print(f"# publicKeyMultibase: {encode_multikey(raw)}")


if __name__ == "__main__":
    main()
