"""
Ride request endpoints
======================

POST /api/v1/requests                       -- passenger requests a seat (201)
GET  /api/v1/requests/mine                  -- passenger's request history
GET  /api/v1/requests/ride/{ride_id}        -- driver: requests for their ride
POST /api/v1/requests/{request_id}/accept   -- driver: reserve a seat
POST /api/v1/requests/{request_id}/revoke   -- driver: un-accept, free the seat
"""

from fastapi import APIRouter, Depends, Request

from rideshare.api.dependencies import get_current_user_id, get_lifecycle
from rideshare.api.errors import ERROR_RESPONSES
from rideshare.api.middleware import limiter
from rideshare.api.schemas import (
    PassengerRequestItem,
    RequestActionResponse,
    RideRequestCreate,
    RideRequestListItem,
    RideRequestResponse,
)
from rideshare.config import settings
from rideshare.services.lifecycle import RequestLifecycle

router = APIRouter(prefix="/requests", tags=["requests"], responses=ERROR_RESPONSES)


@router.post(
    "",
    status_code=201,
    response_model=RideRequestResponse,
    summary="Request a seat on a ride",
)
@limiter.limit(settings.rate_limit)
async def create_request(
    request: Request,
    body: RideRequestCreate,
    passenger_id: int = Depends(get_current_user_id),
    lifecycle: RequestLifecycle = Depends(get_lifecycle),
):
    return await lifecycle.create(body.ride_id, passenger_id)


@router.get(
    "/mine",
    response_model=list[PassengerRequestItem],
    summary="My requests (accepted first, newest first)",
)
@limiter.limit(settings.rate_limit)
async def my_requests(
    request: Request,
    passenger_id: int = Depends(get_current_user_id),
    lifecycle: RequestLifecycle = Depends(get_lifecycle),
):
    rows = await lifecycle.list_for_passenger(passenger_id)
    return [
        PassengerRequestItem(
            id=req.id,
            status=req.status,
            created_at=req.created_at,
            ride_id=ride.id,
            source=ride.source,
            destination=ride.destination,
            departure_type=ride.departure_type,
            departs_at=ride.departs_at,
            driver_name=driver_name,
        )
        for req, ride, driver_name in rows
    ]


@router.get(
    "/ride/{ride_id}",
    response_model=list[RideRequestListItem],
    summary="Requests for one of my rides (accepted first, oldest first)",
)
@limiter.limit(settings.rate_limit)
async def ride_requests(
    request: Request,
    ride_id: int,
    driver_id: int = Depends(get_current_user_id),
    lifecycle: RequestLifecycle = Depends(get_lifecycle),
):
    rows = await lifecycle.list_for_ride(ride_id, driver_id)
    return [
        RideRequestListItem(
            request_id=req.id,
            status=req.status,
            created_at=req.created_at,
            passenger_id=req.passenger_id,
            passenger_name=passenger_name,
            phone_number=phone_number,
        )
        for req, passenger_name, phone_number in rows
    ]


@router.post(
    "/{request_id}/accept",
    response_model=RequestActionResponse,
    summary="Accept a request",
    description="Takes one seat from the ride.  Fails with 409 if the ride is full.",
)
@limiter.limit(settings.rate_limit)
async def accept_request(
    request: Request,
    request_id: int,
    driver_id: int = Depends(get_current_user_id),
    lifecycle: RequestLifecycle = Depends(get_lifecycle),
):
    accepted = await lifecycle.accept(request_id, driver_id)
    return RequestActionResponse(
        message="Request accepted successfully",
        request=RideRequestResponse.model_validate(accepted),
    )


@router.post(
    "/{request_id}/revoke",
    response_model=RequestActionResponse,
    summary="Revoke (un-accept) a request",
    description="Moves the request back to pending and frees its seat.",
)
@limiter.limit(settings.rate_limit)
async def revoke_request(
    request: Request,
    request_id: int,
    driver_id: int = Depends(get_current_user_id),
    lifecycle: RequestLifecycle = Depends(get_lifecycle),
):
    revoked = await lifecycle.revoke(request_id, driver_id)
    return RequestActionResponse(
        message="Request revoked (un-accepted) successfully",
        request=RideRequestResponse.model_validate(revoked),
    )
