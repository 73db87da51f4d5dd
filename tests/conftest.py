from __future__ import annotations

from collections.abc import Callable, Iterator
from typing import Any

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec, ed25519, rsa
from fastapi.testclient import TestClient

from app.core.config import Settings, get_settings
from app.main import app
from app.models.badge import BadgeFacts, Conference
from app.repos.badge_repo import InMemoryBadgeRepo

# Ed25519 public key used by the key endpoint tests; its keyId is key-6c4cf79d.
TEST_PUBLIC_KEY_HEX = "6c4cf79d3a8b5e2f1d0c9e7a4b6d8f2a5c1e9b7d4a8f6c2e5b9d1a7f3c8e4b6d"
TEST_KEY_ID = "key-6c4cf79d"
TEST_ISSUER_URL = "https://2025.cloudnativebergen.dev"
TEST_HOST = "cloudnativeday.no"


# ---------------------------------------------------------------------------
# Key pairs (PEM strings, as they arrive from the environment)
# ---------------------------------------------------------------------------


def _pem_pair(private_key: Any) -> tuple[str, str]:
    private_pem = private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode()
    public_pem = (
        private_key.public_key()
        .public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        )
        .decode()
    )
    return private_pem, public_pem


@pytest.fixture(scope="session")
def rsa_keys() -> tuple[str, str]:
    return _pem_pair(rsa.generate_private_key(public_exponent=65537, key_size=2048))


@pytest.fixture(scope="session")
def other_rsa_keys() -> tuple[str, str]:
    return _pem_pair(rsa.generate_private_key(public_exponent=65537, key_size=2048))


@pytest.fixture(scope="session")
def ed25519_keys() -> tuple[str, str]:
    return _pem_pair(ed25519.Ed25519PrivateKey.generate())


@pytest.fixture(scope="session")
def ec_keys() -> tuple[str, str]:
    return _pem_pair(ec.generate_private_key(ec.SECP256R1()))


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


def make_settings(**overrides: Any) -> Settings:
    """Settings for tests; badge keys default to unset."""
    values: dict[str, Any] = {
        "app_env": "test",
        "log_level": "info",
        "log_json": False,
        "port": 8000,
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def rsa_settings(rsa_keys: tuple[str, str]) -> Settings:
    private_pem, public_pem = rsa_keys
    return make_settings(
        badge_rsa_private_key=private_pem, badge_rsa_public_key=public_pem
    )


@pytest.fixture
def ed25519_settings(ed25519_keys: tuple[str, str]) -> Settings:
    private_pem, public_pem = ed25519_keys
    return make_settings(
        badge_rsa_private_key=private_pem, badge_rsa_public_key=public_pem
    )


@pytest.fixture
def use_settings() -> Iterator[Callable[[Settings], Settings]]:
    """Swap the Settings the app's request handlers receive."""

    def _apply(settings: Settings) -> Settings:
        app.dependency_overrides[get_settings] = lambda: settings
        return settings

    yield _apply
    app.dependency_overrides.pop(get_settings, None)


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


# ---------------------------------------------------------------------------
# Conference data
# ---------------------------------------------------------------------------


@pytest.fixture
def conference() -> Conference:
    return Conference(
        id="test-conference-2025",
        title="Cloud Native Day Bergen 2025",
        organizer="Cloud Native Bergen",
        city="Bergen",
        country="Norway",
        contact_email="hello@cloudnativebergen.no",
        domains=(TEST_HOST,),
    )


@pytest.fixture
def speaker_facts() -> BadgeFacts:
    return BadgeFacts(
        speaker_id="test-speaker-123",
        speaker_name="Jane Doe",
        speaker_email="jane@example.com",
        speaker_slug="jane-doe",
        conference_id="test-conference-2025",
        conference_title="Cloud Native Day Bergen 2025",
        conference_year="2025",
        conference_date="2025-06-15",
        badge_type="speaker",
        talk_title="Kubernetes at Scale",
    )


@pytest.fixture
def badge_repo() -> InMemoryBadgeRepo:
    return InMemoryBadgeRepo()
