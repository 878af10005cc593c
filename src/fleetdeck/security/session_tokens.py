"""Stateless dashboard session tokens.

Format: ``{expires_unix}:{hex_hmac_sha256}``, keyed with the dashboard
token. Changing ``FLEETDECK_DASHBOARD_TOKEN`` invalidates every issued
session at once; nothing is stored server-side.
"""

import hashlib
import hmac
import time

__all__ = ["issue_session_token", "is_session_token", "verify_session_token"]


def issue_session_token(secret: str, ttl_hours: int = 24, now: float | None = None) -> str:
    expires = int(now if now is not None else time.time()) + ttl_hours * 3600
    return f"{expires}:{_signature(secret, str(expires))}"


def is_session_token(value: str) -> bool:
    """Cheap shape check used to tell session tokens from raw secrets."""
    head, sep, _ = value.partition(":")
    return bool(sep) and head.isdigit()


def verify_session_token(value: str, secret: str, now: float | None = None) -> bool:
    """True if ``value`` was signed with ``secret`` and has not expired."""
    expires_str, sep, signature = value.partition(":")
    if not sep or not expires_str.isdigit():
        return False
    if (now if now is not None else time.time()) > int(expires_str):
        return False
    return hmac.compare_digest(signature, _signature(secret, expires_str))


def _signature(secret: str, message: str) -> str:
    return hmac.new(secret.encode(), message.encode(), hashlib.sha256).hexdigest()
