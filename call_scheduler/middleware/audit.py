# Writes: method / path / status, hashed IP and UA, processing time.
# Never blocks the request; never writes to the database.

import time

from fastapi import Request

from ..utils.client_ip import detect_client_ip


async def audit_middleware(request: Request, call_next):
    start_ts = time.time()

    response = await call_next(request)

    audit = request.app.state.audit
    if not audit.enabled:
        return response

    duration_ms = int((time.time() - start_ts) * 1000)
    settings = request.app.state.settings
    ip = getattr(request.state, "client_ip", None) or detect_client_ip(request, settings.trust_proxy)

    audit.log("http_request", {
        "method": request.method,
        "path": request.url.path,
        "status": response.status_code,
        "ip_hash": audit.hash(ip),
        "user_agent_hash": audit.hash(request.headers.get("User-Agent")) or "no-ua",
        "duration_ms": duration_ms,
    })

    return response
