"""Shared-secret request signatures.

Senders sign the exact request body with HMAC-SHA256 and send the
result as `X-Signature: sha256=<hex>`. Authentication is opt-in: with
no secret configured every request is accepted.

Comparison goes through hmac.compare_digest, which runs in time that
depends only on the input length, never on where the first differing
byte sits.
"""

from __future__ import annotations

import hashlib
import hmac
from typing import Optional

SIGNATURE_HEADER = "X-Signature"
SIGNATURE_PREFIX = "sha256="


def compute_signature(raw: bytes, secret: str) -> str:
    """Return the `sha256=<hex>` signature for a body."""
    digest = hmac.new(secret.encode("utf-8"), raw, hashlib.sha256).hexdigest()
    return f"{SIGNATURE_PREFIX}{digest}"


def verify_signature(
    raw: bytes, provided: Optional[str], secret: Optional[str]
) -> bool:
    """Check a provided signature header against the body.

    Returns True unconditionally when `secret` is empty. A missing
    header with a secret configured is a failure.
    """
    if not secret:
        return True
    if not provided:
        return False
    expected = compute_signature(raw, secret)
    # compare_digest only accepts ASCII str, so compare the encoded bytes
    return hmac.compare_digest(
        provided.encode("utf-8"), expected.encode("utf-8")
    )
