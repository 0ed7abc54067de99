from __future__ import annotations

import base64
import hashlib
import hmac

from .errors import AuthenticationError


def compute_signature(body: bytes, secret: str) -> str:
    digest = hmac.new(secret.encode("utf-8"), body, hashlib.sha256).digest()
    return base64.b64encode(digest).decode("ascii")


def verify_signature(body: bytes, signature: str | None, secret: str) -> bool:
    # Must be the raw request bytes; re-serialized JSON will not match.
    if not signature or not secret:
        return False
    expected = compute_signature(body, secret)
    return hmac.compare_digest(expected.encode("ascii"), signature.encode("utf-8"))


def ensure_valid_signature(body: bytes, signature: str | None, secret: str) -> None:
    if not verify_signature(body, signature, secret):
        raise AuthenticationError("Webhook signature mismatch.")
