"""Error taxonomy for badge issuance and key publication.

Services raise these; only the HTTP boundary (the exception handler in
app/main.py) turns them into responses.  Each error carries:

  message      stable, user-visible text (the JSON ``error`` field)
  status_code  HTTP status the boundary should use
  context      structured details for logs; never key material

None of these are retried.  They are either deployment misconfiguration
(fix the environment) or a caller mistake (wrong keyId, bad params).
"""

from __future__ import annotations

from typing import Any


class BadgeError(Exception):
    status_code: int = 500

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context = context


class MissingKeys(BadgeError):
    """Signing or publication key is absent from configuration."""


class InvalidKeyFormat(BadgeError):
    """Key is present but cannot be parsed or has an unsupported type."""


class PolicyViolation(BadgeError):
    """BADGE_ISSUER_RSA_ONLY is set but the configured key is not RSA."""


class KeyNotFound(BadgeError):
    status_code = 404


class SigningError(BadgeError):
    """Private key cannot be used with the declared algorithm."""


class VerificationError(BadgeError):
    status_code = 400


class CredentialConfigError(BadgeError):
    status_code = 400

    def __init__(self, message: str, *, field: str, value: Any = None) -> None:
        super().__init__(message, field=field, value=value)
        self.field = field


class BakingError(BadgeError):
    status_code = 400


class BadgeAlreadyIssued(BadgeError):
    """A speaker holds at most one badge per conference and badge type."""

    status_code = 409
