# call_scheduler/routers/bookings.py
"""
Public booking endpoint.

POST /bookings: rate limited in middleware, token checked here, everything
else in BookingAdmission.
"""

from fastapi import APIRouter, Depends, Header, Request, status

from ..dependencies import get_admission
from ..exceptions import TokenError
from ..schemas.bookings import BookingCreate
from ..services.admission import BookingAdmission, BookingRequest
from ..utils.client_ip import detect_client_ip
from ..utils.tokens import verify_booking_token

router = APIRouter(tags=["bookings"])


def _client_ip(request: Request) -> str:
    ip = getattr(request.state, "client_ip", None)
    if ip:
        return ip
    return detect_client_ip(request, request.app.state.settings.trust_proxy)


def verify_token(
    request: Request,
    x_cs_token: str | None = Header(None),
) -> None:
    """Checks X-CS-Token when CS_BOOKING_SECRET is configured."""
    settings = request.app.state.settings
    if not settings.token_verification_enabled:
        return
    try:
        verify_booking_token(x_cs_token, settings.booking_secret)
    except TokenError as e:
        request.app.state.audit.invalid_token(e.code, _client_ip(request))
        raise


@router.post(
    "/bookings",
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(verify_token)],
)
def create_booking(
    data: BookingCreate,
    request: Request,
    admission: BookingAdmission = Depends(get_admission),
):
    body, _ = admission.admit(BookingRequest(
        consultant_id=data.consultant_id,
        customer_name=data.customer_name,
        customer_email=data.customer_email,
        booking_date=data.booking_date,
        booking_time=data.booking_time,
        website=data.website,
        client_ip=_client_ip(request),
        user_agent=request.headers.get("User-Agent"),
    ))
    return body
