"""Pydantic request / response schemas for the REST API."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from rideshare.domain.enums import DepartureType, RequestStatus, RideStatus


# ── Requests ──────────────────────────────────────────────────────────


class RideCreateRequest(BaseModel):
    # Field-level rules (non-empty paths, mode-specific fields, positive
    # seats) are enforced by the ride store so they surface as 400s.
    source: Optional[list[str]] = None
    destination: Optional[list[str]] = None
    departure_type: Optional[str] = Field(
        None, description="'scheduled' or 'window'."
    )
    ride_time: Optional[datetime] = Field(
        None, description="Departure time; required for scheduled rides."
    )
    flexible_window_minutes: Optional[int] = Field(
        None, description="Window length; required for window rides."
    )
    total_seats: Optional[int] = None
    price_per_person: Optional[float] = None
    seat_layout: Optional[str] = None
    payment_contact: Optional[str] = None
    car_info: Optional[str] = None
    extra_notes: Optional[str] = None


class RideUpdateRequest(BaseModel):
    """Partial update.  Only fields present in the body are applied."""

    source: Optional[list[str]] = None
    destination: Optional[list[str]] = None
    departure_type: Optional[str] = None
    ride_time: Optional[datetime] = None
    flexible_window_minutes: Optional[int] = None
    status: Optional[str] = None
    price_per_person: Optional[float] = None
    seat_layout: Optional[str] = None
    payment_contact: Optional[str] = None
    car_info: Optional[str] = None
    extra_notes: Optional[str] = None

    # Unknown keys are kept so the ride store can reject them by name
    model_config = {"extra": "allow"}


class RideRequestCreate(BaseModel):
    ride_id: int


# ── Responses ─────────────────────────────────────────────────────────


class RideResponse(BaseModel):
    id: int
    driver_id: int
    source: list[str]
    destination: list[str]
    departure_type: DepartureType
    ride_time: Optional[datetime] = None
    flexible_window_minutes: Optional[int] = None
    window_anchored_at: Optional[datetime] = None
    departs_at: datetime
    total_seats: int
    available_seats: int
    status: RideStatus
    price_per_person: Optional[float] = None
    seat_layout: Optional[str] = None
    payment_contact: Optional[str] = None
    car_info: Optional[str] = None
    extra_notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class DriverInfo(BaseModel):
    id: int
    name: str


class RideSummaryResponse(BaseModel):
    id: int
    source: list[str]
    destination: list[str]
    departure_type: DepartureType
    departs_at: datetime
    ride_time: str = Field(..., description="Display label, e.g. '07:30 AM' or 'Now'.")
    available_seats: int
    price_per_person: Optional[float] = None
    seat_layout: Optional[str] = None
    car_info: Optional[str] = None
    extra_notes: Optional[str] = None
    driver: DriverInfo


class RideSearchResponse(BaseModel):
    page: int
    limit: int
    results: list[RideSummaryResponse]


class RideRequestResponse(BaseModel):
    id: int
    ride_id: int
    passenger_id: int
    status: RequestStatus
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class RequestActionResponse(BaseModel):
    message: str
    request: RideRequestResponse


class RideRequestListItem(BaseModel):
    """A request as seen by the ride's driver."""

    request_id: int
    status: RequestStatus
    created_at: Optional[datetime] = None
    passenger_id: int
    passenger_name: str
    phone_number: Optional[str] = None


class PassengerRequestItem(BaseModel):
    """A request as seen by the passenger who made it."""

    id: int
    status: RequestStatus
    created_at: Optional[datetime] = None
    ride_id: int
    source: list[str]
    destination: list[str]
    departure_type: DepartureType
    departs_at: datetime
    driver_name: str


class SeatAuditResponse(BaseModel):
    ride_id: int
    total_seats: int
    available_seats: int
    accepted_requests: int
    consistent: bool


class HealthResponse(BaseModel):
    status: str = "ok"


class DatabaseHealthResponse(BaseModel):
    db: str


class ErrorResponse(BaseModel):
    error: str
    code: str
