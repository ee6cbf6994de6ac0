from typing import Optional
from uuid import UUID

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from odysea.api.schemas import (
    ActivitiesResponse, ActivityCreate, ActivityRead, ActivityResponse,
    ActivityUpdate, BulkActivitiesRequest, BulkActivitiesResponse,
    MessageResponse, ReorderActivitiesRequest,
)
from odysea.core.security import get_current_user
from odysea.core.validation import validate_each
from odysea.db import crud
from odysea.db.models import Activity, ActivityCategory, ItineraryDay, Trip, User
from odysea.db.session import get_db_session

logger = structlog.get_logger(__name__)

router = APIRouter()


async def load_owned_day(
    session: AsyncSession, trip_id: UUID, day_id: UUID, user: User
) -> ItineraryDay:
    """The day ``day_id`` of trip ``trip_id``, or 404 when either is not the user's"""
    trip = await crud.get_owned(session, Trip, trip_id, user.id)
    if trip is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Trip not found")
    day = await crud.get_trip_day(session, trip.id, day_id)
    if day is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Day not found")
    return day


async def load_owned_activity(session: AsyncSession, activity_id: UUID, user: User) -> Activity:
    activity = await crud.get_owned(session, Activity, activity_id, user.id)
    if activity is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Activity not found")
    return activity


@router.get("/trip/{trip_id}/day/{day_id}",
    response_model=ActivitiesResponse,
    summary="List a day's activities",
)
async def list_day_activities(
    trip_id: UUID,
    day_id: UUID,
    category: Optional[ActivityCategory] = None,
    search: Optional[str] = None,
    min_cost: Optional[float] = Query(None, alias="minCost"),
    max_cost: Optional[float] = Query(None, alias="maxCost"),
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    sort_order: Optional[str] = Query(None, alias="sortOrder"),
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    day = await load_owned_day(session, trip_id, day_id, current_user)
    _, _, order_clause = crud.resolve_ordering(
        sort_by, sort_order, crud.ACTIVITY_SORT_COLUMNS, "order", "asc"
    )
    activities = await crud.list_day_activities(
        session,
        day.id,
        order_clause=order_clause,
        category=category,
        search=search,
        min_cost=min_cost,
        max_cost=max_cost,
    )
    return ActivitiesResponse(activities=[ActivityRead.model_validate(a) for a in activities])


@router.post("/trip/{trip_id}/day/{day_id}",
    response_model=ActivityResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add an activity to a day",
)
async def create_activity(
    trip_id: UUID,
    day_id: UUID,
    payload: ActivityCreate,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    day = await load_owned_day(session, trip_id, day_id, current_user)
    [activity] = await crud.create_activities(session, day.id, [payload.model_dump()])
    return ActivityResponse(activity=ActivityRead.model_validate(activity))


@router.post("/trip/{trip_id}/day/{day_id}/bulk",
    response_model=BulkActivitiesResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add several activities to a day",
)
async def bulk_create_activities(
    trip_id: UUID,
    day_id: UUID,
    payload: BulkActivitiesRequest,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Items are validated one by one; the first bad item fails the whole request.

    The response lists every activity of the day in display order.
    """
    day = await load_owned_day(session, trip_id, day_id, current_user)
    items = validate_each(ActivityCreate, payload.activities, "activity")
    created = await crud.create_activities(
        session, day.id, [item.model_dump() for item in items]
    )
    activities = await crud.list_day_activities(session, day.id)
    return BulkActivitiesResponse(
        message=f"{len(created)} activities created",
        activities=[ActivityRead.model_validate(a) for a in activities],
    )


@router.put("/trip/{trip_id}/day/{day_id}/reorder",
    response_model=ActivitiesResponse,
    summary="Reorder a day's activities",
)
async def reorder_activities(
    trip_id: UUID,
    day_id: UUID,
    payload: ReorderActivitiesRequest,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Each listed activity's ``order`` becomes its index in ``activityIds``"""
    day = await load_owned_day(session, trip_id, day_id, current_user)
    try:
        activities = await crud.reorder_activities(session, day.id, payload.activity_ids)
    except LookupError as e:
        logger.warning("reorder_unknown_activities", day_id=str(day.id), error=str(e))
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Activity not found")
    return ActivitiesResponse(activities=[ActivityRead.model_validate(a) for a in activities])


@router.get("/{activity_id}", response_model=ActivityResponse, summary="Get an activity")
async def get_activity(
    activity_id: UUID,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    activity = await load_owned_activity(session, activity_id, current_user)
    return ActivityResponse(activity=ActivityRead.model_validate(activity))


@router.put("/{activity_id}", response_model=ActivityResponse, summary="Update an activity")
async def update_activity(
    activity_id: UUID,
    payload: ActivityUpdate,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    activity = await load_owned_activity(session, activity_id, current_user)
    activity = await crud.update_activity(session, activity, payload.model_dump(exclude_unset=True))
    return ActivityResponse(activity=ActivityRead.model_validate(activity))


@router.delete("/{activity_id}", response_model=MessageResponse, summary="Delete an activity")
async def delete_activity(
    activity_id: UUID,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    activity = await load_owned_activity(session, activity_id, current_user)
    await crud.delete_instance(session, activity)
    return MessageResponse(message="Activity deleted successfully")
