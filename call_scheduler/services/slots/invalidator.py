# call_scheduler/services/slots/invalidator.py
"""
Cache invalidation for consultant availability.

Triggers:
✓ Weekly windows replaced → windows entry
✓ Booking created / status changed / deleted → booked times of that date
✓ Consultant created / updated / (de)activated → active consultant list

Every trigger runs synchronously inside the write, before its response.
"""

from datetime import date

from ..cache import RedisCache

ACTIVE_CONSULTANTS_KEY = "consultants:active"


def windows_key(consultant_id: int) -> str:
    return f"availability:{consultant_id}"


def booked_key(consultant_id: int, dt: date) -> str:
    return f"booked:{consultant_id}:{dt.isoformat()}"


def invalidate_windows(cache: RedisCache, consultant_id: int) -> None:
    cache.invalidate(windows_key(consultant_id))


def invalidate_booked_times(cache: RedisCache, consultant_id: int, dates: list[date]) -> int:
    """
    Invalidate cached booked times of a consultant for the given dates.

    Returns:
        Number of keys invalidated
    """
    return sum(int(cache.invalidate(booked_key(consultant_id, dt))) for dt in dates)


def invalidate_consultants(cache: RedisCache) -> None:
    cache.invalidate(ACTIVE_CONSULTANTS_KEY)
