"""
Security audit trail.

One JSON line per event on the "call_scheduler.audit" logger, optionally
mirrored to a rotating file. Only whitelisted context keys are written and
client identifiers are stored as salted 8-char SHA-256 prefixes.
"""

import json
import logging
import re
import secrets
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path

from .config import Settings
from .utils.hashing import hash_ip, hash_ua, short_hash

AUDIT_LOGGER_NAME = "call_scheduler.audit"
MAX_LOG_BYTES = 5 * 1024 * 1024
MAX_VALUE_LEN = 100

ALLOWED_KEYS = frozenset({
    "endpoint", "limit", "reason", "field", "status",
    "ip_hash", "user_agent_hash", "origin_hash",
    "consultant_id", "slot_date", "error_code",
    "method", "path", "duration_ms",
})

_NAME_RE = re.compile(r"[^a-z0-9_]")


def _sanitize_name(name: str) -> str:
    return _NAME_RE.sub("", name.lower()) or "unknown"


def sanitize_context(context: dict) -> dict:
    sanitized = {}
    for key, value in context.items():
        key = _sanitize_name(str(key))
        if key not in ALLOWED_KEYS:
            continue
        if isinstance(value, (str, int, float, bool)):
            sanitized[key] = str(value)[:MAX_VALUE_LEN]
    return sanitized


class AuditLogger:
    """Writes security events. Disabled entirely with CS_AUDIT_ENABLED=false."""

    def __init__(self, settings: Settings):
        self.enabled = settings.audit_enabled
        self.salt = settings.audit_salt
        self.logger = logging.getLogger(AUDIT_LOGGER_NAME)
        if self.enabled and settings.audit_log_path:
            self._attach_file_handler(Path(settings.audit_log_path))

    def _attach_file_handler(self, path: Path) -> None:
        target = str(path.resolve())
        for handler in self.logger.handlers:
            if isinstance(handler, RotatingFileHandler) and handler.baseFilename == target:
                return
        path.parent.mkdir(parents=True, exist_ok=True)
        handler = RotatingFileHandler(target, maxBytes=MAX_LOG_BYTES, backupCount=3)
        handler.setFormatter(logging.Formatter("%(message)s"))
        self.logger.addHandler(handler)
        self.logger.setLevel(logging.INFO)

    def log(self, event: str, context: dict | None = None, request_id: str | None = None) -> dict | None:
        if not self.enabled:
            return None

        entry = {
            "timestamp": datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S"),
            "event": _sanitize_name(event),
            "request_id": request_id or secrets.token_hex(4),
            "context": sanitize_context(context or {}),
        }
        self.logger.info(json.dumps(entry, ensure_ascii=False))
        return entry

    # ── Helpers ──────────────────────────────────────────────────────────

    def hash(self, value: str | None) -> str | None:
        return short_hash(value, self.salt)

    def rate_limit_hit(self, endpoint: str, limit: int, ip: str | None):
        return self.log("rate_limit_exceeded", {
            "endpoint": endpoint,
            "limit": limit,
            "ip_hash": hash_ip(ip, self.salt),
        })

    def invalid_token(self, reason: str, ip: str | None):
        return self.log("invalid_token", {
            "reason": reason,
            "ip_hash": hash_ip(ip, self.salt),
        })

    def honeypot_triggered(self, ip: str | None, user_agent: str | None):
        return self.log("honeypot_triggered", {
            "ip_hash": hash_ip(ip, self.salt),
            "user_agent_hash": hash_ua(user_agent, self.salt),
        })

    def invalid_input(self, field: str, reason: str, ip: str | None):
        return self.log("invalid_input", {
            "field": field,
            "reason": reason,
            "ip_hash": hash_ip(ip, self.salt),
        })

    def booking_attempt(self, status: str, ip: str | None, **details):
        return self.log(f"booking_{status}", {"ip_hash": hash_ip(ip, self.salt), **details})

    def integrity_violation(self, reason: str, ip: str | None, consultant_id: str | None = None):
        return self.log("integrity_violation", {
            "reason": reason,
            "consultant_id": consultant_id or "",
            "ip_hash": hash_ip(ip, self.salt),
        })
