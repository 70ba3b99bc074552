"""
Consultant persistence.

Consultants are addressed publicly by an 8-char hex public_id; the integer
primary key never leaves the service.
"""

import logging
import secrets

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..exceptions import DependencyFailure
from ..models import Consultants
from .booking_store import is_unique_violation
from .cache import RedisCache
from .slots.invalidator import ACTIVE_CONSULTANTS_KEY, invalidate_consultants

logger = logging.getLogger(__name__)

ACTIVE_CONSULTANTS_TTL = 12 * 3600

# Attempts at a fresh public_id when a concurrent create took the same one
PUBLIC_ID_ATTEMPTS = 3


def generate_public_id() -> str:
    return secrets.token_hex(4)


def consultant_to_public(consultant: Consultants) -> dict:
    return {
        "id": consultant.public_id,
        "display_name": consultant.display_name,
        "title": consultant.title,
        "bio": consultant.bio,
    }


class ConsultantStore:

    def __init__(self, db: Session, cache: RedisCache):
        self.db = db
        self.cache = cache

    def create(
        self,
        display_name: str,
        email: str | None = None,
        title: str | None = None,
        bio: str | None = None,
    ) -> Consultants:
        for attempt in range(1, PUBLIC_ID_ATTEMPTS + 1):
            public_id = generate_public_id()
            while self.find_by_public_id(public_id) is not None:
                public_id = generate_public_id()

            obj = Consultants(
                public_id=public_id,
                display_name=display_name,
                email=email,
                title=title,
                bio=bio,
                is_active=True,
            )
            self.db.add(obj)
            try:
                self.db.commit()
            except IntegrityError as e:
                self.db.rollback()
                if not is_unique_violation(e):
                    logger.error(f"Consultant insert rejected by constraint: {e.orig}")
                    raise DependencyFailure("db_error", "Failed to create consultant.") from e
                logger.warning(f"public_id {public_id} taken concurrently (attempt {attempt})")
                continue
            except SQLAlchemyError as e:
                self.db.rollback()
                logger.error(f"Consultant insert failed: {e}")
                raise DependencyFailure("db_error", "Failed to create consultant.") from e

            self.db.refresh(obj)
            invalidate_consultants(self.cache)
            logger.info(f"Consultant created: id={obj.id} public_id={public_id}")
            return obj

        raise DependencyFailure("db_error", "Failed to create consultant.")

    def get(self, consultant_id: int) -> Consultants | None:
        return self.db.get(Consultants, consultant_id)

    def find_by_public_id(self, public_id: str) -> Consultants | None:
        return (
            self.db.query(Consultants)
            .filter(Consultants.public_id == public_id)
            .first()
        )

    def list_all(self) -> list[Consultants]:
        return self.db.query(Consultants).order_by(Consultants.display_name).all()

    def list_active(self) -> list[dict]:
        """Public view of active consultants (cached)."""
        return self.cache.remember(
            ACTIVE_CONSULTANTS_KEY,
            self._load_active,
            ACTIVE_CONSULTANTS_TTL,
        )

    def _load_active(self) -> list[dict]:
        rows = (
            self.db.query(Consultants)
            .filter(Consultants.is_active.is_(True))
            .order_by(Consultants.display_name)
            .all()
        )
        return [consultant_to_public(c) for c in rows]

    def set_active(self, consultant_id: int, active: bool) -> Consultants | None:
        """Flip the active flag. Existing bookings are left untouched."""
        obj = self.get(consultant_id)
        if obj is None:
            return None
        obj.is_active = active
        self.db.commit()
        self.db.refresh(obj)
        invalidate_consultants(self.cache)
        return obj

    def update_profile(self, consultant_id: int, **fields) -> Consultants | None:
        obj = self.get(consultant_id)
        if obj is None:
            return None
        for name in ("display_name", "email", "title", "bio"):
            if name in fields:
                setattr(obj, name, fields[name])
        self.db.commit()
        self.db.refresh(obj)
        invalidate_consultants(self.cache)
        return obj
