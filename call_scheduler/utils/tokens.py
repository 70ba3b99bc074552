"""
Signed booking tokens.

Format: "<unix timestamp>:<hex HMAC-SHA256(timestamp, secret)>". The page
that renders the booking form mints one; POST /bookings verifies it.
"""

import hashlib
import hmac
import time

from ..exceptions import TokenError

TOKEN_MAX_AGE = 300


def _sign(timestamp: str, secret: str) -> str:
    return hmac.new(secret.encode(), timestamp.encode(), hashlib.sha256).hexdigest()


def generate_booking_token(secret: str, now: int | None = None) -> str:
    timestamp = str(int(now if now is not None else time.time()))
    return f"{timestamp}:{_sign(timestamp, secret)}"


def verify_booking_token(token: str | None, secret: str, now: int | None = None) -> None:
    """
    Raises:
        TokenError: missing_token, invalid_token or expired_token
    """
    if not token:
        raise TokenError("missing_token", "Security token is missing.")

    timestamp, sep, signature = token.partition(":")
    if not sep or not timestamp.isdigit() or not signature:
        raise TokenError("invalid_token", "Security token is invalid.")

    if not hmac.compare_digest(_sign(timestamp, secret), signature):
        raise TokenError("invalid_token", "Security token is invalid.")

    current = int(now if now is not None else time.time())
    if abs(current - int(timestamp)) > TOKEN_MAX_AGE:
        raise TokenError("expired_token", "Security token has expired. Please reload the page.")
