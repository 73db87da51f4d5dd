"""Multikey encoding of the issuer's Ed25519 public key.

  raw key (32 bytes)
    → prefix multicodec header 0xed 0x01      (34 bytes)
    → Base58btc encode
    → prefix multibase flag "z"               (publicKeyMultibase)

The published keyId is bound to the key itself ("key-" + first 8 hex
chars), so a request for any other id gets a 404 instead of a document
for a key that was never configured.
"""

from __future__ import annotations

import hmac
import re
from typing import Any

import base58

from app.core.errors import InvalidKeyFormat, KeyNotFound

ED25519_MULTICODEC = b"\xed\x01"
ED25519_KEY_LENGTH = 32
MULTIBASE_BASE58BTC = "z"
KEY_ID_PREFIX = "key-"
KEY_ID_HEX_CHARS = 8

MULTIKEY_CONTEXT = (
    "https://www.w3.org/ns/credentials/v2",
    "https://w3id.org/security/multikey/v1",
)

_HEX_RE = re.compile(r"^[0-9a-f]{64}$")
_BASE58_RE = re.compile(r"^[1-9A-HJ-NP-Za-km-z]+$")


def parse_public_key_hex(public_key_hex: str) -> bytes:
    """Decode the configured hex Ed25519 key (optional 0x, whitespace ok)."""
    cleaned = re.sub(r"\s", "", public_key_hex).lower()
    if cleaned.startswith("0x"):
        cleaned = cleaned[2:]
    if not _HEX_RE.match(cleaned):
        raise InvalidKeyFormat(
            "Invalid public key format",
            expected="64-character hex string",
            length=len(cleaned),
        )
    return bytes.fromhex(cleaned)


def derive_key_id(public_key_hex: str) -> str:
    raw = parse_public_key_hex(public_key_hex)
    return KEY_ID_PREFIX + raw.hex()[:KEY_ID_HEX_CHARS]


def check_key_id(key_id: str, public_key_hex: str) -> None:
    """Raise KeyNotFound unless key_id is the one derived from the key."""
    expected = derive_key_id(public_key_hex)
    if not hmac.compare_digest(key_id.encode(), expected.encode()):
        raise KeyNotFound("Key not found", key_id=key_id)


def encode_multikey(public_key: bytes) -> str:
    if len(public_key) != ED25519_KEY_LENGTH:
        raise InvalidKeyFormat(
            "Ed25519 public key must be 32 bytes", length=len(public_key)
        )
    encoded = base58.b58encode(ED25519_MULTICODEC + public_key).decode("ascii")
    return MULTIBASE_BASE58BTC + encoded


def decode_multibase(value: str) -> bytes:
    """Decode publicKeyMultibase back to the 34-byte multicodec value."""
    if not value.startswith(MULTIBASE_BASE58BTC):
        raise InvalidKeyFormat('Multibase key must start with "z" (Base58btc)')
    body = value[1:]
    if not _BASE58_RE.match(body):
        raise InvalidKeyFormat("Multibase key contains invalid Base58 characters")
    decoded = base58.b58decode(body)
    expected = len(ED25519_MULTICODEC) + ED25519_KEY_LENGTH
    if len(decoded) != expected:
        raise InvalidKeyFormat(
            f"Expected {expected} bytes, got {len(decoded)}", length=len(decoded)
        )
    if decoded[: len(ED25519_MULTICODEC)] != ED25519_MULTICODEC:
        raise InvalidKeyFormat(
            "Missing Ed25519 multicodec prefix 0xed01",
            prefix=decoded[:2].hex(),
        )
    return decoded


def extract_public_key(value: str) -> bytes:
    return decode_multibase(value)[len(ED25519_MULTICODEC) :]


def validate_multibase_public_key(value: str) -> tuple[bool, str | None]:
    """Non-raising variant of decode_multibase for diagnostics."""
    try:
        decode_multibase(value)
    except InvalidKeyFormat as exc:
        return False, exc.message
    return True, None


def build_multikey_document(
    public_key_hex: str, key_id: str, base_url: str
) -> dict[str, Any]:
    """Multikey verification method served at {base_url}/api/badge/keys/{key_id}."""
    if not base_url.startswith(("https://", "http://")):
        raise InvalidKeyFormat(
            "Controller must be an absolute http:// or https:// URL",
            base_url=base_url,
        )
    if not key_id.startswith(KEY_ID_PREFIX):
        raise KeyNotFound("Key not found", key_id=key_id)
    raw = parse_public_key_hex(public_key_hex)
    return {
        "@context": list(MULTIKEY_CONTEXT),
        "id": f"{base_url}/api/badge/keys/{key_id}",
        "type": "Multikey",
        "controller": base_url,
        "publicKeyMultibase": encode_multikey(raw),
    }
