from typing import Optional
from uuid import UUID

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from odysea.api.schemas import (
    DestinationCreate, DestinationFilters, DestinationListResponse, DestinationRead,
    DestinationResponse, DestinationStats, DestinationStatsResponse, DestinationUpdate,
    MessageResponse, pagination_payload,
)
from odysea.core.images import fetch_cover_image
from odysea.core.security import get_current_user
from odysea.core.settings import Settings, get_settings
from odysea.db import crud
from odysea.db.models import Priority, SavedDestination, User
from odysea.db.session import get_db_session

logger = structlog.get_logger(__name__)

router = APIRouter()


async def load_owned_destination(
    session: AsyncSession, destination_id: UUID, user: User
) -> SavedDestination:
    destination = await crud.get_owned(session, SavedDestination, destination_id, user.id)
    if destination is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Destination not found")
    return destination


@router.get("", response_model=DestinationListResponse, summary="List saved destinations")
async def list_destinations(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: Optional[str] = None,
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    sort_order: Optional[str] = Query(None, alias="sortOrder"),
    priority: Optional[Priority] = None,
    country: Optional[str] = None,
    tag: Optional[str] = None,
    min_budget: Optional[float] = Query(None, alias="minBudget"),
    max_budget: Optional[float] = Query(None, alias="maxBudget"),
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    field, direction, order_clause = crud.resolve_ordering(
        sort_by, sort_order, crud.DESTINATION_SORT_COLUMNS, "createdAt", "desc"
    )
    destinations, total = await crud.list_saved_destinations(
        session,
        current_user.id,
        page=page,
        limit=limit,
        order_clause=order_clause,
        priority=priority,
        country=country,
        tag=tag,
        min_budget=min_budget,
        max_budget=max_budget,
        search=search,
    )
    return DestinationListResponse(
        destinations=[DestinationRead.model_validate(d) for d in destinations],
        pagination=pagination_payload(crud.pagination_info(page, limit, total)),
        filters=DestinationFilters(
            search=search,
            priority=priority.value if priority else None,
            country=country,
            sort_by=field,
            sort_order=direction,
        ),
    )


@router.get("/stats/overview", response_model=DestinationStatsResponse, summary="Saved destination counts")
async def destination_stats(
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    stats = await crud.get_destination_stats(session, current_user.id)
    return DestinationStatsResponse(stats=DestinationStats.model_validate(stats))


@router.get("/{destination_id}", response_model=DestinationResponse, summary="Get a saved destination")
async def get_destination(
    destination_id: UUID,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    destination = await load_owned_destination(session, destination_id, current_user)
    return DestinationResponse(destination=DestinationRead.model_validate(destination))


@router.post("",
    response_model=DestinationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Save a destination",
)
async def create_destination(
    payload: DestinationCreate,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
    settings: Settings = Depends(get_settings),
):
    """Save a destination; one without an image gets an Unsplash cover"""
    data = payload.model_dump(exclude_none=True)
    if not data.get("image_url"):
        data["image_url"] = await fetch_cover_image(payload.name, payload.country, settings)

    destination = await crud.create_saved_destination(session, current_user.id, data)
    return DestinationResponse(destination=DestinationRead.model_validate(destination))


@router.put("/{destination_id}", response_model=DestinationResponse, summary="Update a saved destination")
async def update_destination(
    destination_id: UUID,
    payload: DestinationUpdate,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    destination = await load_owned_destination(session, destination_id, current_user)
    destination = await crud.update_saved_destination(
        session, destination, payload.model_dump(exclude_unset=True)
    )
    return DestinationResponse(destination=DestinationRead.model_validate(destination))


@router.delete("/{destination_id}", response_model=MessageResponse, summary="Remove a saved destination")
async def delete_destination(
    destination_id: UUID,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    destination = await load_owned_destination(session, destination_id, current_user)
    await crud.delete_instance(session, destination)
    return MessageResponse(message="Destination removed successfully")
