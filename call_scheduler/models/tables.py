# call_scheduler/models/tables.py

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    SmallInteger,
    String,
    Text,
    Time,
    UniqueConstraint,
    func,
    text,
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()
metadata = Base.metadata

# Mirrors BookingStatus.blocking(); the partial index below depends on it.
BLOCKING_STATUS_SQL = "status IN ('pending', 'confirmed')"


class Consultants(Base):
    __tablename__ = 'consultants'

    id = Column(Integer, primary_key=True)
    public_id = Column(String(8), nullable=False, unique=True)
    display_name = Column(String(255), nullable=False)
    email = Column(String(255))
    title = Column(String(255))
    bio = Column(Text)
    is_active = Column(Boolean, nullable=False, server_default=text('1'))
    created_at = Column(DateTime, nullable=False, server_default=func.now())

    availability = relationship(
        'Availability',
        back_populates='consultant',
        cascade='all, delete-orphan',
    )
    bookings = relationship('Bookings', back_populates='consultant')


class Availability(Base):
    __tablename__ = 'availability'
    __table_args__ = (
        UniqueConstraint('consultant_id', 'day_of_week', name='uq_availability_day'),
    )

    id = Column(Integer, primary_key=True)
    consultant_id = Column(ForeignKey('consultants.id', ondelete='CASCADE'), nullable=False)
    day_of_week = Column(SmallInteger, nullable=False)  # 0 = Sunday … 6 = Saturday
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)

    consultant = relationship('Consultants', back_populates='availability')


class Bookings(Base):
    __tablename__ = 'bookings'
    __table_args__ = (
        # Exactly one blocking booking per consultant/date/time. Cancelled rows
        # fall out of the index so the slot can be booked again.
        Index(
            'uq_bookings_active_slot',
            'consultant_id', 'booking_date', 'booking_time',
            unique=True,
            sqlite_where=text(BLOCKING_STATUS_SQL),
            postgresql_where=text(BLOCKING_STATUS_SQL),
        ),
        Index('idx_bookings_consultant_date_status', 'consultant_id', 'booking_date', 'status'),
        Index('idx_bookings_status_date', 'status', 'booking_date'),
    )

    id = Column(Integer, primary_key=True)
    consultant_id = Column(ForeignKey('consultants.id', ondelete='CASCADE'), nullable=False)
    customer_name = Column(String(255), nullable=False)
    customer_email = Column(String(255), nullable=False)
    booking_date = Column(Date, nullable=False)
    booking_time = Column(Time, nullable=False)
    status = Column(String(20), nullable=False, server_default=text("'pending'"))
    created_at = Column(DateTime, nullable=False, server_default=func.now())

    consultant = relationship('Consultants', back_populates='bookings')
