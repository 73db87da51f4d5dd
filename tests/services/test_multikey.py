from __future__ import annotations

import os
import re

import base58
import pytest

from app.core.errors import InvalidKeyFormat, KeyNotFound
from app.services.multikey import (
    build_multikey_document,
    check_key_id,
    decode_multibase,
    derive_key_id,
    encode_multikey,
    extract_public_key,
    parse_public_key_hex,
    validate_multibase_public_key,
)
from tests.conftest import TEST_KEY_ID, TEST_PUBLIC_KEY_HEX

MULTIBASE_RE = re.compile(r"^z[1-9A-HJ-NP-Za-km-z]+$")


def test_round_trip_random_keys() -> None:
    for _ in range(25):
        raw = os.urandom(32)
        encoded = encode_multikey(raw)
        assert MULTIBASE_RE.match(encoded)
        decoded = decode_multibase(encoded)
        assert len(decoded) == 34
        assert decoded[:2] == b"\xed\x01"
        assert extract_public_key(encoded) == raw


def test_ed25519_multikeys_start_with_z6mk() -> None:
    assert encode_multikey(bytes(32)).startswith("z6Mk")
    assert encode_multikey(b"\xff" * 32).startswith("z6Mk")


def test_alphabet_excludes_ambiguous_characters() -> None:
    encoded = encode_multikey(bytes.fromhex(TEST_PUBLIC_KEY_HEX))
    for char in "0OIl+/=_":
        assert char not in encoded


def test_encode_rejects_wrong_length() -> None:
    with pytest.raises(InvalidKeyFormat):
        encode_multikey(b"\x01" * 31)


@pytest.mark.parametrize(
    ("value", "message"),
    [
        ("6MkhaXgBZD", '"z"'),
        ("z0OIl", "invalid Base58 characters"),
        ("z" + base58.b58encode(b"\xed\x01" + bytes(16)).decode(), "Expected 34 bytes"),
        ("z" + base58.b58encode(b"\x12\x20" + bytes(32)).decode(), "0xed01"),
    ],
)
def test_decode_rejects_malformed_values(value: str, message: str) -> None:
    with pytest.raises(InvalidKeyFormat, match=message):
        decode_multibase(value)


def test_validate_multibase_public_key() -> None:
    assert validate_multibase_public_key(encode_multikey(bytes(32))) == (True, None)
    ok, error = validate_multibase_public_key("abc")
    assert ok is False
    assert error is not None


@pytest.mark.parametrize(
    "value",
    [
        TEST_PUBLIC_KEY_HEX,
        TEST_PUBLIC_KEY_HEX.upper(),
        f"0x{TEST_PUBLIC_KEY_HEX}",
        f"  {TEST_PUBLIC_KEY_HEX}\n",
    ],
)
def test_parse_public_key_hex_accepts_variants(value: str) -> None:
    assert parse_public_key_hex(value) == bytes.fromhex(TEST_PUBLIC_KEY_HEX)


@pytest.mark.parametrize("value", ["", "abc", TEST_PUBLIC_KEY_HEX[:-2], "g" * 64])
def test_parse_public_key_hex_rejects_malformed(value: str) -> None:
    with pytest.raises(InvalidKeyFormat, match="Invalid public key format"):
        parse_public_key_hex(value)


def test_derive_key_id_uses_first_eight_hex_chars() -> None:
    assert derive_key_id(TEST_PUBLIC_KEY_HEX) == TEST_KEY_ID
    assert derive_key_id(TEST_PUBLIC_KEY_HEX.upper()) == TEST_KEY_ID


def test_check_key_id() -> None:
    check_key_id(TEST_KEY_ID, TEST_PUBLIC_KEY_HEX)
    with pytest.raises(KeyNotFound) as exc_info:
        check_key_id("key-invalid123", TEST_PUBLIC_KEY_HEX)
    assert exc_info.value.status_code == 404


def test_build_multikey_document() -> None:
    doc = build_multikey_document(
        TEST_PUBLIC_KEY_HEX, TEST_KEY_ID, "https://cloudnativebergen.no"
    )
    assert doc == {
        "@context": [
            "https://www.w3.org/ns/credentials/v2",
            "https://w3id.org/security/multikey/v1",
        ],
        "id": f"https://cloudnativebergen.no/api/badge/keys/{TEST_KEY_ID}",
        "type": "Multikey",
        "controller": "https://cloudnativebergen.no",
        "publicKeyMultibase": encode_multikey(bytes.fromhex(TEST_PUBLIC_KEY_HEX)),
    }


def test_build_multikey_document_requires_absolute_controller() -> None:
    with pytest.raises(InvalidKeyFormat):
        build_multikey_document(TEST_PUBLIC_KEY_HEX, TEST_KEY_ID, "cloudnativebergen.no")
