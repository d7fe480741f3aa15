"""FastAPI dependency injection helpers."""

from typing import Optional

from fastapi import Depends, Header, HTTPException, Request

from rideshare.infrastructure.database import Database
from rideshare.services.lifecycle import RequestLifecycle
from rideshare.services.rides import RideService
from rideshare.services.search import RideSearch


def get_database(request: Request) -> Database:
    """The storage client opened by the app lifespan (or injected by tests)."""
    return request.app.state.database


def get_ride_service(db: Database = Depends(get_database)) -> RideService:
    return RideService(db)


def get_lifecycle(db: Database = Depends(get_database)) -> RequestLifecycle:
    return RequestLifecycle(db)


def get_ride_search(db: Database = Depends(get_database)) -> RideSearch:
    return RideSearch(db)


async def get_current_user_id(
    x_user_id: Optional[str] = Header(
        None, description="Verified caller identity set by the auth gateway."
    ),
) -> int:
    """Caller identity.  Token verification happens upstream; we trust the header."""
    value = (x_user_id or "").strip()
    # ASCII digits only; str.isdigit() is also true for "²"
    if not (value.isascii() and value.isdigit()):
        raise HTTPException(status_code=401, detail="Authentication required")
    return int(value)
