from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Literal

AppEnv = Literal["dev", "test", "prod"]
LogLevel = Literal["debug", "info", "warning", "error"]

_TRUE_VALUES = ("true", "1", "yes")
_FALSE_VALUES = ("false", "0", "no", "")


def _getenv(name: str, default: str) -> str:
    # Centralize env access so it’s easy to extend later (type casting, required vars)
    return os.environ.get(name, default).strip()


def _getenv_pem(name: str) -> str | None:
    # PEM blocks in .env files and CI secrets usually arrive with literal "\n"
    value = _getenv(name, "").replace("\\n", "\n")
    return value or None


def _parse_bool(name: str, raw: str) -> bool:
    value = raw.lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ValueError(f"{name} must be true|false (got {raw!r})")


@dataclass(frozen=True)
class Settings:
    app_env: AppEnv
    log_level: LogLevel
    log_json: bool
    port: int
    badge_issuer_url: str | None = None
    badge_public_key_hex: str | None = None
    badge_rsa_private_key: str | None = None
    badge_rsa_public_key: str | None = None
    badge_rsa_only: bool = False

    @property
    def is_dev(self) -> bool:
        return self.app_env == "dev"

    @property
    def is_test(self) -> bool:
        return self.app_env == "test"

    @property
    def is_prod(self) -> bool:
        return self.app_env == "prod"

    def __repr__(self) -> str:
        # Private key material must never end up in logs or tracebacks.
        return (
            f"Settings(app_env={self.app_env!r}, log_level={self.log_level!r}, "
            f"port={self.port}, badge_issuer_url={self.badge_issuer_url!r}, "
            f"badge_rsa_only={self.badge_rsa_only})"
        )


def load_settings() -> Settings:
    app_env_raw = _getenv("APP_ENV", "dev").lower()
    log_level_raw = _getenv("LOG_LEVEL", "info").lower()
    port_raw = _getenv("PORT", "8000")

    if app_env_raw not in ("dev", "test", "prod"):
        raise ValueError(f"APP_ENV must be dev|test|prod (got {app_env_raw!r})")

    if log_level_raw not in ("debug", "info", "warning", "error"):
        raise ValueError(
            f"LOG_LEVEL must be debug|info|warning|error (got {log_level_raw!r})"
        )

    try:
        port = int(port_raw)
    except ValueError:
        raise ValueError(f"PORT must be an integer (got {port_raw!r})") from None

    log_json = _parse_bool("LOG_JSON", _getenv("LOG_JSON", "false"))
    rsa_only = _parse_bool(
        "BADGE_ISSUER_RSA_ONLY", _getenv("BADGE_ISSUER_RSA_ONLY", "false")
    )

    return Settings(  # type: ignore[arg-type]
        app_env=app_env_raw,
        log_level=log_level_raw,
        log_json=log_json,
        port=port,
        badge_issuer_url=_getenv("BADGE_ISSUER_URL", "") or None,
        badge_public_key_hex=_getenv("BADGE_ISSUER_PUBLIC_KEY", "") or None,
        badge_rsa_private_key=_getenv_pem("BADGE_ISSUER_RSA_PRIVATE_KEY"),
        badge_rsa_public_key=_getenv_pem("BADGE_ISSUER_RSA_PUBLIC_KEY"),
        badge_rsa_only=rsa_only,
    )


# Module-level singleton so imports are cheap; request handlers receive it
# through get_settings() so tests can swap it out.
SETTINGS = load_settings()


def get_settings() -> Settings:
    """FastAPI dependency returning the process settings."""
    return SETTINGS
