"""
Weekly availability windows, one per consultant and weekday.
"""

import logging
from datetime import date

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..exceptions import DependencyFailure
from ..models import Availability
from .cache import RedisCache
from .slots.generator import AvailabilityWindow
from .slots.invalidator import invalidate_windows, windows_key
from .slots.timecalc import day_of_week

logger = logging.getLogger(__name__)


class AvailabilityStore:

    def __init__(self, db: Session, cache: RedisCache, ttl: int = 3600):
        self.db = db
        self.cache = cache
        self.ttl = ttl

    def windows_for(self, consultant_id: int) -> dict[int, AvailabilityWindow]:
        """All windows of a consultant keyed by weekday (cached)."""
        raw = self.cache.remember(
            windows_key(consultant_id),
            lambda: self._load_windows(consultant_id),
            self.ttl,
        )
        windows = [AvailabilityWindow.from_dict(item) for item in raw]
        return {w.day_of_week: w for w in windows}

    def window_for(self, consultant_id: int, weekday: int) -> AvailabilityWindow | None:
        return self.windows_for(consultant_id).get(weekday)

    def window_on(self, consultant_id: int, dt: date) -> AvailabilityWindow | None:
        return self.window_for(consultant_id, day_of_week(dt))

    def replace(
        self,
        consultant_id: int,
        windows: list[AvailabilityWindow],
    ) -> list[AvailabilityWindow]:
        """
        Replace the whole weekly schedule (delete, then insert).

        Runs in one transaction; a failure leaves the previous schedule intact.
        """
        try:
            (
                self.db.query(Availability)
                .filter(Availability.consultant_id == consultant_id)
                .delete(synchronize_session=False)
            )
            for window in windows:
                self.db.add(Availability(
                    consultant_id=consultant_id,
                    day_of_week=window.day_of_week,
                    start_time=window.start_time,
                    end_time=window.end_time,
                ))
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to save availability for consultant {consultant_id}: {e}")
            raise DependencyFailure("db_error", "Failed to save availability.") from e
        finally:
            invalidate_windows(self.cache, consultant_id)

        logger.info(f"Availability replaced for consultant {consultant_id}: {len(windows)} day(s)")
        return sorted(windows, key=lambda w: w.day_of_week)

    def _load_windows(self, consultant_id: int) -> list[dict]:
        rows = (
            self.db.query(Availability)
            .filter(Availability.consultant_id == consultant_id)
            .order_by(Availability.day_of_week)
            .all()
        )
        return [
            AvailabilityWindow(
                day_of_week=row.day_of_week,
                start_time=row.start_time,
                end_time=row.end_time,
            ).to_dict()
            for row in rows
        ]
