from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from odysea.api.schemas import (
    MessageResponse, TripCreate, TripFilters, TripListResponse, TripRead,
    TripResponse, TripStats, TripStatsResponse, TripUpdate, TripsResponse,
    as_utc, pagination_payload,
)
from odysea.core.security import get_current_user
from odysea.db import crud
from odysea.db.models import BudgetTier, TravelGroup, Trip, User
from odysea.db.session import get_db_session

logger = structlog.get_logger(__name__)

router = APIRouter()

STATUS_PATTERN = "^(all|UPCOMING|ONGOING|COMPLETED|CANCELLED)$"


async def load_owned_trip(session: AsyncSession, trip_id: UUID, user: User) -> Trip:
    trip = await crud.get_owned(
        session, Trip, trip_id, user.id, options=crud.trip_itinerary_options()
    )
    if trip is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Trip not found")
    return trip


@router.get("", response_model=TripListResponse, summary="List trips")
async def list_trips(
    status_filter: Optional[str] = Query(None, alias="status", pattern=STATUS_PATTERN),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: Optional[str] = None,
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    sort_order: Optional[str] = Query(None, alias="sortOrder"),
    budget: Optional[BudgetTier] = None,
    travel_group: Optional[TravelGroup] = Query(None, alias="travelGroup"),
    destination: Optional[str] = None,
    country: Optional[str] = None,
    start_date_from: Optional[datetime] = Query(None, alias="startDateFrom"),
    start_date_to: Optional[datetime] = Query(None, alias="startDateTo"),
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Filtered, sorted and paginated trips of the current user"""
    field, direction, order_clause = crud.resolve_ordering(
        sort_by, sort_order, crud.TRIP_SORT_COLUMNS, "startDate", "asc"
    )
    trips, total = await crud.list_trips(
        session,
        current_user.id,
        page=page,
        limit=limit,
        order_clause=order_clause,
        status=status_filter,
        budget=budget,
        travel_group=travel_group,
        destination=destination,
        country=country,
        search=search,
        start_date_from=as_utc(start_date_from) if start_date_from else None,
        start_date_to=as_utc(start_date_to) if start_date_to else None,
    )
    return TripListResponse(
        trips=[TripRead.model_validate(trip) for trip in trips],
        pagination=pagination_payload(crud.pagination_info(page, limit, total)),
        filters=TripFilters(
            status=status_filter,
            budget=budget.value if budget else None,
            travel_group=travel_group.value if travel_group else None,
            destination=destination,
            country=country,
            search=search,
            sort_by=field,
            sort_order=direction,
        ),
    )


@router.get("/upcoming", response_model=TripsResponse, summary="Next upcoming trips")
async def upcoming_trips(
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    trips = await crud.get_upcoming_trips(session, current_user.id, datetime.now(timezone.utc))
    return TripsResponse(trips=[TripRead.model_validate(trip) for trip in trips])


@router.get("/stats/overview", response_model=TripStatsResponse, summary="Trip counts by status")
async def trip_stats(
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    stats = await crud.get_trip_stats(session, current_user.id)
    return TripStatsResponse(stats=TripStats(**stats))


@router.get("/{trip_id}", response_model=TripResponse, summary="Get a trip with its itinerary")
async def get_trip(
    trip_id: UUID,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    trip = await load_owned_trip(session, trip_id, current_user)
    return TripResponse(trip=TripRead.model_validate(trip))


@router.post("",
    response_model=TripResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a trip",
)
async def create_trip(
    payload: TripCreate,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    trip = await crud.create_trip(session, current_user.id, payload.model_dump())
    logger.info("trip_created", trip_id=str(trip.id), user_id=str(current_user.id))
    return TripResponse(trip=TripRead.model_validate(trip))


@router.put("/{trip_id}", response_model=TripResponse, summary="Update a trip")
async def update_trip(
    trip_id: UUID,
    payload: TripUpdate,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    trip = await load_owned_trip(session, trip_id, current_user)
    trip = await crud.update_trip(session, trip, payload.model_dump(exclude_unset=True))
    return TripResponse(trip=TripRead.model_validate(trip))


@router.delete("/{trip_id}", response_model=MessageResponse, summary="Delete a trip")
async def delete_trip(
    trip_id: UUID,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    trip = await load_owned_trip(session, trip_id, current_user)
    await crud.delete_trip(session, trip)
    logger.info("trip_deleted", trip_id=str(trip_id), user_id=str(current_user.id))
    return MessageResponse(message="Trip deleted successfully")
