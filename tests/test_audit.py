import json

from starlette.requests import Request

from call_scheduler.audit import AuditLogger, sanitize_context
from call_scheduler.utils.client_ip import detect_client_ip
from call_scheduler.utils.hashing import hash_ip, hash_ua, short_hash


def make_request(headers=None, client=("198.51.100.9", 5000)) -> Request:
    scope = {
        "type": "http",
        "method": "GET",
        "path": "/",
        "headers": [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()],
        "client": client,
    }
    return Request(scope)


def test_short_hash_is_salted():
    assert len(short_hash("203.0.113.7", "a")) == 8
    assert short_hash("203.0.113.7", "a") != short_hash("203.0.113.7", "b")
    assert short_hash("", "a") is None
    assert hash_ip(None) == "no-ip"
    assert hash_ua("") == "no-ua"


def test_sanitize_context_keeps_only_allowed_scalars():
    cleaned = sanitize_context({
        "endpoint": "bookings",
        "limit": 5,
        "customer_email": "grace@example.com",
        "reason": "x" * 500,
        "status": {"nested": True},
    })

    assert cleaned == {"endpoint": "bookings", "limit": "5", "reason": "x" * 100}


def test_log_writes_one_json_line(settings, caplog):
    audit = AuditLogger(settings)

    with caplog.at_level("INFO", logger="call_scheduler.audit"):
        entry = audit.invalid_token("expired_token", "203.0.113.7")

    [record] = [r for r in caplog.records if r.name == "call_scheduler.audit"]
    assert json.loads(record.getMessage()) == entry
    assert entry["event"] == "invalid_token"
    assert entry["context"]["ip_hash"] == hash_ip("203.0.113.7", settings.audit_salt)
    assert "203.0.113.7" not in record.getMessage()


def test_disabled_audit_writes_nothing(make_settings, caplog):
    audit = AuditLogger(make_settings(audit_enabled=False))

    with caplog.at_level("INFO", logger="call_scheduler.audit"):
        assert audit.honeypot_triggered("203.0.113.7", "bot") is None

    assert not [r for r in caplog.records if r.name == "call_scheduler.audit"]


def test_audit_file(make_settings, tmp_path):
    path = tmp_path / "logs" / "audit.log"
    audit = AuditLogger(make_settings(audit_log_path=str(path)))

    try:
        audit.rate_limit_hit("bookings", 5, "203.0.113.7")
        for handler in audit.logger.handlers:
            handler.flush()

        lines = path.read_text().splitlines()
        assert json.loads(lines[-1])["event"] == "rate_limit_exceeded"
    finally:
        for handler in list(audit.logger.handlers):
            audit.logger.removeHandler(handler)
            handler.close()


def test_request_logged_by_middleware(client, caplog):
    with caplog.at_level("INFO", logger="call_scheduler.audit"):
        client.get("/health")

    entries = [json.loads(r.getMessage()) for r in caplog.records if r.name == "call_scheduler.audit"]
    [entry] = [e for e in entries if e["event"] == "http_request"]
    assert entry["context"]["path"] == "/health"
    assert entry["context"]["status"] == "200"


class TestClientIp:

    def test_socket_peer_by_default(self):
        request = make_request({"X-Forwarded-For": "203.0.113.7"})
        assert detect_client_ip(request) == "198.51.100.9"

    def test_forwarded_for_leftmost_when_trusted(self):
        request = make_request({"X-Forwarded-For": "203.0.113.7, 10.0.0.1"})
        assert detect_client_ip(request, trust_proxy=True) == "203.0.113.7"

    def test_cloudflare_header_wins(self):
        request = make_request({"CF-Connecting-IP": "192.0.2.1", "X-Real-IP": "192.0.2.2"})
        assert detect_client_ip(request, trust_proxy=True) == "192.0.2.1"

    def test_invalid_header_is_skipped(self):
        request = make_request({"X-Forwarded-For": "not-an-ip", "X-Real-IP": "192.0.2.2"})
        assert detect_client_ip(request, trust_proxy=True) == "192.0.2.2"

    def test_no_client(self):
        assert detect_client_ip(make_request(client=None)) == "0.0.0.0"
