"""
call_scheduler/services/events.py

Event emitter: pushes booking events to a Redis list for the consumer loop.

Queue:
- events:bookings: booking.created, booking.status_changed, booking.deleted

Emitting happens after the database commit. A Redis failure is logged and
never reaches the caller; the booking already stands.
"""

import json
import logging
import time

from redis import Redis
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)

EVENTS_QUEUE = "events:bookings"

BOOKING_CREATED = "booking.created"
BOOKING_STATUS_CHANGED = "booking.status_changed"
BOOKING_DELETED = "booking.deleted"


class EventEmitter:

    def __init__(self, redis: Redis, queue: str = EVENTS_QUEUE):
        self.redis = redis
        self.queue = queue

    def emit(self, event_type: str, payload: dict) -> bool:
        """
        Push one event onto the queue.

        Returns:
            True if the event was queued
        """
        event = {
            "type": event_type,
            **payload,
            "ts": int(time.time()),
        }
        try:
            self.redis.rpush(self.queue, json.dumps(event))
        except (RedisError, TypeError, ValueError) as e:
            logger.error(f"Failed to emit event {event_type}: {e}")
            return False

        logger.info(f"Event emitted: {event_type} → {self.queue}")
        return True
