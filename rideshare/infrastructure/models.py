"""
SQLAlchemy ORM models  (maps to PostgreSQL).

Tables
------
* ``users``          -- drivers and passengers (owned by the auth service)
* ``rides``          -- rides published by drivers
* ``ride_stops``     -- ordered source / destination places of a ride
* ``ride_requests``  -- seat requests from passengers

Constraints
-----------
* CHECK ``0 <= available_seats <= total_seats`` on ``rides``.
* UNIQUE ``(ride_id, passenger_id)`` on ``ride_requests`` -- the
  authoritative guard against duplicate requests racing each other.

Indexes
-------
* **B-Tree** on ``(status, departs_at)`` for search, on ``driver_id``,
  on ``(kind, place)`` for the place filters, and on
  ``ride_requests.passenger_id`` for request history.
"""

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import relationship

from .database import Base
from rideshare.domain.enums import DepartureType, RequestStatus, RideStatus, StopKind


def _enum(enum_cls, name: str) -> Enum:
    """Persist enum *values* ("active"), not member names ("ACTIVE")."""
    return Enum(
        enum_cls,
        name=name,
        values_callable=lambda members: [m.value for m in members],
    )


class UserModel(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(120), nullable=False)
    email = Column(String(255), unique=True, nullable=False)
    phone_number = Column(String(32), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __mapper_args__ = {"eager_defaults": True}


class RideStopModel(Base):
    __tablename__ = "ride_stops"

    id = Column(Integer, primary_key=True, autoincrement=True)
    ride_id = Column(
        Integer, ForeignKey("rides.id", ondelete="CASCADE"), nullable=False
    )
    kind = Column(_enum(StopKind, "stopkind"), nullable=False)
    position = Column(Integer, nullable=False)
    place = Column(String(255), nullable=False)

    __table_args__ = (
        Index("idx_ride_stops_ride", "ride_id"),
        Index("idx_ride_stops_place", "kind", "place"),
    )


class RideModel(Base):
    __tablename__ = "rides"

    id = Column(Integer, primary_key=True, autoincrement=True)
    driver_id = Column(Integer, ForeignKey("users.id"), nullable=False)

    departure_type = Column(_enum(DepartureType, "departuretype"), nullable=False)
    ride_time = Column(DateTime(timezone=True), nullable=True)
    flexible_window_minutes = Column(Integer, nullable=True)
    window_anchored_at = Column(DateTime(timezone=True), nullable=True)
    # Effective departure, kept in sync by the ride store on every write
    departs_at = Column(DateTime(timezone=True), nullable=False)

    total_seats = Column(Integer, nullable=False)
    available_seats = Column(Integer, nullable=False)
    status = Column(
        _enum(RideStatus, "ridestatus"), default=RideStatus.ACTIVE, nullable=False
    )

    price_per_person = Column(Float, nullable=True)
    seat_layout = Column(String(120), nullable=True)
    payment_contact = Column(String(255), nullable=True)
    car_info = Column(String(255), nullable=True)
    extra_notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    stops = relationship(
        RideStopModel,
        lazy="selectin",
        order_by=RideStopModel.position,
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        CheckConstraint("total_seats > 0", name="ck_rides_total_seats_positive"),
        CheckConstraint(
            "available_seats >= 0 AND available_seats <= total_seats",
            name="ck_rides_available_seats_range",
        ),
        Index("idx_rides_search", "status", "departs_at"),
        Index("idx_rides_driver", "driver_id"),
    )
    # Fetch server-side timestamps on INSERT/UPDATE so they never lazy-load
    __mapper_args__ = {"eager_defaults": True}

    def places(self, kind: StopKind) -> list[str]:
        return [s.place for s in self.stops if s.kind == kind]

    @property
    def source(self) -> list[str]:
        return self.places(StopKind.SOURCE)

    @property
    def destination(self) -> list[str]:
        return self.places(StopKind.DESTINATION)


class RideRequestModel(Base):
    __tablename__ = "ride_requests"

    id = Column(Integer, primary_key=True, autoincrement=True)
    ride_id = Column(Integer, ForeignKey("rides.id"), nullable=False)
    passenger_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    status = Column(
        _enum(RequestStatus, "requeststatus"),
        default=RequestStatus.PENDING,
        nullable=False,
    )

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __table_args__ = (
        UniqueConstraint("ride_id", "passenger_id", name="uq_ride_requests_ride_passenger"),
        Index("idx_ride_requests_ride", "ride_id"),
        Index("idx_ride_requests_passenger", "passenger_id"),
    )
    __mapper_args__ = {"eager_defaults": True}
