"""Webhook signature validation (HMAC-SHA256)."""

from __future__ import annotations

import hashlib
import hmac

from releasehook.utils.logging import get_logger
from releasehook.utils.sanitize import truncate_for_logging

log = get_logger(__name__)

SUPPORTED_ALGORITHM = "sha256"


def compute_digest(secret: str, body: bytes) -> str:
    return hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()


def generate_signature(secret: str, body: bytes) -> str:
    """Build an ``X-Hub-Signature-256`` header value for ``body``."""
    return f"{SUPPORTED_ALGORITHM}={compute_digest(secret, body)}"


class SignatureValidator:
    """Verifies that a webhook body was signed with the shared secret.

    ``body`` must be the raw request bytes exactly as received; re-serialized
    JSON will not match the sender's digest.
    """

    def __init__(self, secret: str) -> None:
        self._secret = secret

    @property
    def is_configured(self) -> bool:
        return bool(self._secret)

    def validate(self, body: bytes, signature: str | None) -> bool:
        """Return True only for a well-formed, matching sha256 signature."""
        try:
            return self._validate(body, signature)
        except Exception:
            log.exception("signature_validation_error")
            return False

    def _validate(self, body: bytes, signature: str | None) -> bool:
        if not self._secret:
            log.error("webhook_secret_not_configured")
            return False

        if not signature:
            log.error("webhook_signature_missing")
            return False

        parts = signature.split("=")
        if len(parts) != 2:
            log.error("webhook_signature_malformed")
            return False

        algorithm, provided = parts
        provided = provided.lower()
        if algorithm != SUPPORTED_ALGORITHM:
            log.error("webhook_signature_unsupported_algorithm", algorithm=algorithm[:16])
            return False

        expected = compute_digest(self._secret, body)
        if not hmac.compare_digest(provided.encode(), expected.encode()):
            log.error(
                "webhook_signature_mismatch",
                provided=truncate_for_logging(provided),
                expected=truncate_for_logging(expected),
            )
            return False

        return True
