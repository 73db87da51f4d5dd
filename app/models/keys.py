from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar, Literal

Algorithm = Literal["RS256", "EdDSA"]


@dataclass(frozen=True, slots=True)
class RsaKeyMaterial:
    """RSA key pair, signs with RS256 (the 1EdTech validator's default)."""

    private_key_pem: str = field(repr=False)
    public_key_pem: str

    algorithm: ClassVar[Algorithm] = "RS256"


@dataclass(frozen=True, slots=True)
class Ed25519KeyMaterial:
    """Ed25519 key pair, signs with EdDSA."""

    private_key_pem: str = field(repr=False)
    public_key_pem: str
    public_key_raw: bytes  # 32 bytes, what the Multikey document publishes

    algorithm: ClassVar[Algorithm] = "EdDSA"


# Produced once by key_store.load_keys(); use sites switch on the type,
# never on PEM contents.
KeyMaterial = RsaKeyMaterial | Ed25519KeyMaterial


@dataclass(frozen=True, slots=True)
class SigningConfiguration:
    key: KeyMaterial
    # Dereferenceable https://…/api/badge/keys/{keyId}. Never a "#fragment":
    # HTTP clients strip fragments before the request goes out.
    verification_method: str

    @property
    def algorithm(self) -> Algorithm:
        return self.key.algorithm

    @property
    def public_key_pem(self) -> str:
        return self.key.public_key_pem

    @property
    def private_key_pem(self) -> str:
        return self.key.private_key_pem
