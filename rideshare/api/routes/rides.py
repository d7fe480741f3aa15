"""
Ride endpoints
==============

POST  /api/v1/rides                      -- publish a ride (scheduled or window)
GET   /api/v1/rides/search               -- find requestable rides for a day
GET   /api/v1/rides/{ride_id}            -- ride details
PATCH /api/v1/rides/{ride_id}            -- partial update (driver only)
GET   /api/v1/rides/{ride_id}/seat-audit -- seat counter vs accepted requests (driver only)
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from rideshare.api.dependencies import (
    get_current_user_id,
    get_lifecycle,
    get_ride_search,
    get_ride_service,
)
from rideshare.api.errors import ERROR_RESPONSES
from rideshare.api.middleware import limiter
from rideshare.api.schemas import (
    DriverInfo,
    RideCreateRequest,
    RideResponse,
    RideSearchResponse,
    RideSummaryResponse,
    RideUpdateRequest,
    SeatAuditResponse,
)
from rideshare.config import settings
from rideshare.domain.rides import parse_place_filter
from rideshare.services.lifecycle import RequestLifecycle
from rideshare.services.rides import RideService
from rideshare.services.search import RideSearch

router = APIRouter(prefix="/rides", tags=["rides"], responses=ERROR_RESPONSES)


@router.post(
    "",
    status_code=201,
    response_model=RideResponse,
    summary="Publish a ride",
)
@limiter.limit(settings.rate_limit)
async def create_ride(
    request: Request,
    body: RideCreateRequest,
    driver_id: int = Depends(get_current_user_id),
    service: RideService = Depends(get_ride_service),
):
    return await service.create(driver_id, body.model_dump())


@router.get(
    "/search",
    response_model=RideSearchResponse,
    summary="Find requestable rides",
    description=(
        "Active rides with free seats departing on *date* (default today) "
        "and not yet gone.  ``source`` / ``destination`` are comma-separated "
        "place lists; a ride matches if it shares at least one place."
    ),
)
@limiter.limit(settings.rate_limit)
async def search_rides(
    request: Request,
    source: Optional[str] = None,
    destination: Optional[str] = None,
    day: Optional[date] = Query(None, alias="date"),
    page: int = 1,
    limit: int = settings.default_page_size,
    search: RideSearch = Depends(get_ride_search),
):
    result = await search.search(
        source_filters=parse_place_filter(source),
        destination_filters=parse_place_filter(destination),
        day=day,
        page=page,
        limit=limit,
    )
    return RideSearchResponse(
        page=result.page,
        limit=result.limit,
        results=[
            RideSummaryResponse(
                id=r.id,
                source=r.source,
                destination=r.destination,
                departure_type=r.departure_type,
                departs_at=r.departs_at,
                ride_time=r.departure_label,
                available_seats=r.available_seats,
                price_per_person=r.price_per_person,
                seat_layout=r.seat_layout,
                car_info=r.car_info,
                extra_notes=r.extra_notes,
                driver=DriverInfo(id=r.driver_id, name=r.driver_name),
            )
            for r in result.results
        ],
    )


@router.get("/{ride_id}", response_model=RideResponse, summary="Get a ride")
@limiter.limit(settings.rate_limit)
async def get_ride(
    request: Request,
    ride_id: int,
    service: RideService = Depends(get_ride_service),
):
    return await service.get(ride_id)


@router.patch(
    "/{ride_id}",
    response_model=RideResponse,
    summary="Edit a ride",
    description=(
        "Only the fields present in the body are changed.  Switching to "
        "window mode or changing the window length restarts the window."
    ),
)
@limiter.limit(settings.rate_limit)
async def update_ride(
    request: Request,
    ride_id: int,
    body: RideUpdateRequest,
    driver_id: int = Depends(get_current_user_id),
    service: RideService = Depends(get_ride_service),
):
    return await service.update(ride_id, driver_id, body.model_dump(exclude_unset=True))


@router.get(
    "/{ride_id}/seat-audit",
    response_model=SeatAuditResponse,
    summary="Check the seat counter against accepted requests",
)
@limiter.limit(settings.rate_limit)
async def seat_audit(
    request: Request,
    ride_id: int,
    driver_id: int = Depends(get_current_user_id),
    lifecycle: RequestLifecycle = Depends(get_lifecycle),
):
    audit = await lifecycle.audit_seats(ride_id, driver_id=driver_id)
    return SeatAuditResponse(
        ride_id=audit.ride_id,
        total_seats=audit.total_seats,
        available_seats=audit.available_seats,
        accepted_requests=audit.accepted_requests,
        consistent=audit.consistent,
    )
