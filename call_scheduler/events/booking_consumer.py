# call_scheduler/events/booking_consumer.py
"""
Booking event consumer loop.

Reads events from Redis list events:bookings and fans them out:

- booking.created        → customer confirmation, consultant notification, webhook
- booking.status_changed → status e-mail to the customer, webhook
- booking.deleted        → webhook

Every send is independent: one failing channel does not stop the others,
and nothing here can touch the booking that produced the event.

Started as asyncio task in the app lifespan.
"""

import asyncio
import json
import logging

import redis.asyncio as aioredis

from ..services.events import (
    BOOKING_CREATED,
    BOOKING_DELETED,
    BOOKING_STATUS_CHANGED,
    EVENTS_QUEUE,
)
from ..services.notifications import EmailNotifier
from ..services.webhook import WebhookSender

logger = logging.getLogger(__name__)

BLPOP_TIMEOUT = 5


async def booking_consumer_loop(
    redis_url: str,
    notifier: EmailNotifier,
    webhook: WebhookSender,
    queue: str = EVENTS_QUEUE,
) -> None:
    """
    Consume booking events until cancelled.
    """
    r = aioredis.from_url(redis_url, decode_responses=True)
    logger.info("booking_consumer_loop started")

    try:
        while True:
            try:
                item = await r.blpop([queue], timeout=BLPOP_TIMEOUT)
                if item is None:
                    continue
                _, raw = item
                await handle_raw_event(raw, notifier, webhook)

            except asyncio.CancelledError:
                logger.info("booking_consumer_loop cancelled")
                raise
            except Exception:
                logger.exception("booking_consumer_loop error, retrying in 5s")
                await asyncio.sleep(5)
    finally:
        await r.aclose()


async def handle_raw_event(raw: str, notifier: EmailNotifier, webhook: WebhookSender) -> dict | None:
    try:
        event = json.loads(raw)
    except json.JSONDecodeError:
        logger.error(f"Invalid JSON in {EVENTS_QUEUE}: {raw[:100]}")
        return None
    return await process_event(event, notifier, webhook)


async def process_event(event: dict, notifier: EmailNotifier, webhook: WebhookSender) -> dict:
    """
    Dispatch one event.

    Returns:
        Channel name → delivered flag, e.g. {"customer_email": True, "webhook": False}
    """
    event_type = event.get("type")
    booking = event.get("booking") or {}
    results: dict[str, bool] = {}

    if event_type == BOOKING_CREATED:
        consultant = event.get("consultant") or {}
        results["customer_email"] = await _safe(
            "customer_email", notifier.send_customer_confirmation(booking, consultant)
        )
        results["consultant_email"] = await _safe(
            "consultant_email", notifier.send_consultant_notification(booking, consultant)
        )
        results["webhook"] = await _safe(
            "webhook", webhook.send(event_type, {"booking": booking, "consultant": consultant})
        )

    elif event_type == BOOKING_STATUS_CHANGED:
        old_status = event.get("old_status")
        results["customer_email"] = await _safe(
            "customer_email", notifier.send_status_change(booking, old_status)
        )
        results["webhook"] = await _safe(
            "webhook", webhook.send(event_type, {"booking": booking, "old_status": old_status})
        )

    elif event_type == BOOKING_DELETED:
        results["webhook"] = await _safe("webhook", webhook.send(event_type, {"booking": booking}))

    else:
        logger.warning(f"Unknown booking event type: {event_type}")

    return results


async def _safe(channel: str, coro) -> bool:
    try:
        return bool(await coro)
    except Exception:
        logger.exception(f"Booking event delivery failed on {channel}")
        return False
