# Client identity for rate limiting and auditing.
# Proxy headers are honoured only when the deployment says a proxy sits in front.

from ipaddress import ip_address

from fastapi import Request

PROXY_HEADERS = ("CF-Connecting-IP", "X-Forwarded-For", "X-Real-IP")


def _valid_ip(value: str) -> str | None:
    value = value.strip()
    try:
        ip_address(value)
    except ValueError:
        return None
    return value


def detect_client_ip(request: Request, trust_proxy: bool = False) -> str:
    """
    Client IP of the request.

    With trust_proxy the first valid address of CF-Connecting-IP,
    X-Forwarded-For (leftmost entry) or X-Real-IP wins; otherwise only the
    socket peer is used.
    """
    if trust_proxy:
        headers = request.headers
        for name in PROXY_HEADERS:
            raw = headers.get(name)
            if not raw:
                continue
            candidate = _valid_ip(raw.split(",")[0])
            if candidate:
                return candidate

    if request.client and request.client.host:
        return request.client.host
    return "0.0.0.0"
