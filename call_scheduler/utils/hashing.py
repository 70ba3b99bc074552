# Salted short hashes for the audit trail and rate-limit keys.
# Raw IPs and user agents never reach logs or Redis.

import hashlib

SHORT_HASH_LEN = 8


def hash_value(value: str, salt: str = "") -> str:
    return hashlib.sha256(f"{value}{salt}".encode("utf-8")).hexdigest()


def short_hash(value: str | None, salt: str = "") -> str | None:
    if not value:
        return None
    return hash_value(value, salt)[:SHORT_HASH_LEN]


def hash_ua(user_agent: str | None, salt: str = "") -> str:
    if not user_agent:
        return "no-ua"
    return short_hash(user_agent, salt)


def hash_ip(ip: str | None, salt: str = "") -> str:
    if not ip:
        return "no-ip"
    return short_hash(ip, salt)
