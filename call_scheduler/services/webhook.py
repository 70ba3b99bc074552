"""
Outbound webhooks for booking events.

POSTs {event, timestamp, data, meta} as JSON to CS_WEBHOOK_URL.

Guards:
- https:// only
- localhost, *.local / *.internal names and private or loopback IPs are refused (SSRF)
- X-CS-Signature = HMAC-SHA256(body, CS_WEBHOOK_SECRET) when a secret is set
"""

import hashlib
import hmac
import json
import logging
import re
from datetime import datetime, timezone
from ipaddress import ip_address
from urllib.parse import urlparse

import httpx

from ..config import Settings

logger = logging.getLogger(__name__)

VERSION = "1.0.0"

BLOCKED_HOSTS = {"localhost", "127.0.0.1", "::1", "0.0.0.0"}
BLOCKED_SUFFIXES = (".local", ".internal", ".localhost")


def is_internal_url(url: str) -> bool:
    host = (urlparse(url).hostname or "").lower()
    if not host:
        return True
    if host in BLOCKED_HOSTS or host.endswith(BLOCKED_SUFFIXES):
        return True
    try:
        addr = ip_address(host)
    except ValueError:
        return False
    return addr.is_private or addr.is_loopback or addr.is_link_local or addr.is_reserved


def sign_payload(body: bytes, secret: str) -> str:
    return hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()


class WebhookSender:

    def __init__(self, settings: Settings, client: httpx.AsyncClient | None = None):
        self.enabled = settings.webhook_enabled
        self.url = settings.webhook_url.strip()
        self.secret = settings.webhook_secret
        self.timeout = settings.webhook_timeout
        self.site_name = settings.site_name
        self.client = client

    @property
    def active(self) -> bool:
        return self.enabled and bool(self.url)

    def build_payload(self, event: str, data: dict) -> dict:
        return {
            "event": event,
            "timestamp": datetime.now(timezone.utc).isoformat(timespec="seconds"),
            "data": data,
            "meta": {
                "version": VERSION,
                "site_name": self.site_name,
            },
        }

    def validate_url(self) -> str | None:
        """Returns the reason the configured URL is refused, or None."""
        if not re.match(r"^https://", self.url, re.IGNORECASE):
            return "Webhook URL must use HTTPS"
        if is_internal_url(self.url):
            return "Webhook URL points to internal address"
        return None

    async def send(self, event: str, data: dict) -> bool:
        if not self.active:
            return False

        problem = self.validate_url()
        if problem:
            logger.error(problem)
            return False

        payload = self.build_payload(event, data)
        body = json.dumps(payload, ensure_ascii=False).encode("utf-8")
        headers = {
            "Content-Type": "application/json",
            "X-CS-Event": event,
            "X-CS-Timestamp": payload["timestamp"],
        }
        if self.secret:
            headers["X-CS-Signature"] = sign_payload(body, self.secret)

        try:
            if self.client is not None:
                response = await self.client.post(self.url, content=body, headers=headers, timeout=self.timeout)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.post(self.url, content=body, headers=headers)
        except httpx.HTTPError as e:
            logger.error(f"Webhook {event} failed: {e}")
            return False

        if response.status_code >= 400:
            logger.error(f"Webhook {event} rejected: HTTP {response.status_code}")
            return False

        logger.info(f"Webhook delivered: {event}")
        return True
