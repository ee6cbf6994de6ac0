"""
CRUD operations for users, trips, itinerary days, activities and saved destinations
"""

import json
import logging
import math
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Sequence, Tuple, Type, TypeVar
from uuid import UUID

from sqlalchemy import String, asc, case, cast, desc, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from sqlalchemy.sql import Select

from odysea.db.models import (
    Activity, ItineraryDay, Priority, SavedDestination,
    Trip, TripStatus, User,
)

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT")


# ===== QUERY HELPERS =====

def owned_statement(model: Type[ModelT], user_id: UUID) -> Select:
    """SELECT restricted to rows reachable from ``user_id``.

    Trips and saved destinations carry ``user_id`` directly; days and
    activities are reached through their trip.
    """
    if model is Activity:
        return (
            select(Activity)
            .join(ItineraryDay, Activity.itinerary_day_id == ItineraryDay.id)
            .join(Trip, ItineraryDay.trip_id == Trip.id)
            .where(Trip.user_id == user_id)
        )
    if model is ItineraryDay:
        return (
            select(ItineraryDay)
            .join(Trip, ItineraryDay.trip_id == Trip.id)
            .where(Trip.user_id == user_id)
        )
    if model in (Trip, SavedDestination):
        return select(model).where(model.user_id == user_id)
    raise TypeError(f"{model.__name__} has no owner")


async def get_owned(
    session: AsyncSession,
    model: Type[ModelT],
    entity_id: UUID,
    user_id: UUID,
    options: Sequence[Any] = (),
) -> Optional[ModelT]:
    """Fetch ``model`` row ``entity_id`` only if it belongs to ``user_id``.

    Missing and foreign rows are indistinguishable to the caller.
    """
    stmt = owned_statement(model, user_id).where(model.id == entity_id)
    if options:
        stmt = stmt.options(*options).execution_options(populate_existing=True)
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


def resolve_ordering(
    sort_by: Optional[str],
    sort_order: Optional[str],
    columns: Dict[str, Any],
    default_field: str,
    default_direction: str,
) -> Tuple[str, str, Any]:
    """Map a requested sort onto an allow-listed column.

    Unknown fields fall back to ``default_field``; the direction is the
    non-default one only when asked for explicitly.
    """
    field = sort_by if sort_by in columns else default_field
    other = "desc" if default_direction == "asc" else "asc"
    direction = other if sort_order == other else default_direction
    column = columns[field]
    clause = desc(column) if direction == "desc" else asc(column)
    return field, direction, clause


async def paginate(
    session: AsyncSession,
    stmt: Select,
    page: int,
    limit: int,
    order_clauses: Sequence[Any] = (),
    options: Sequence[Any] = (),
) -> Tuple[List[Any], int]:
    """Run ``stmt`` for one page and count the full result set"""
    total = await session.scalar(select(func.count()).select_from(stmt.subquery()))
    page_stmt = stmt.order_by(*order_clauses).offset((page - 1) * limit).limit(limit)
    if options:
        page_stmt = page_stmt.options(*options)
    result = await session.execute(page_stmt)
    return list(result.scalars().all()), total or 0


def pagination_info(page: int, limit: int, total: int) -> Dict[str, int]:
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "totalPages": math.ceil(total / limit) if limit else 0,
    }


def contains(column, value: str):
    return column.ilike(f"%{value}%")


def trip_itinerary_options() -> List[Any]:
    return [selectinload(Trip.itinerary_days).selectinload(ItineraryDay.activities)]


# ===== USER CRUD OPERATIONS =====

async def get_user_by_email(session: AsyncSession, email: str) -> Optional[User]:
    result = await session.execute(select(User).where(User.email == email.strip().lower()))
    return result.scalar_one_or_none()


async def create_user(session: AsyncSession, email: str, name: str, password_hash: str) -> User:
    """Create a new user"""
    try:
        user = User(email=email.strip().lower(), name=name.strip(), password_hash=password_hash)
        session.add(user)
        await session.commit()
        await session.refresh(user)
        logger.info(f"Created user: {user.email}")
        return user
    except Exception as e:
        await session.rollback()
        logger.error(f"Error creating user: {e}")
        raise


# ===== TRIP CRUD OPERATIONS =====

TRIP_SORT_COLUMNS = {
    "startDate": Trip.start_date,
    "endDate": Trip.end_date,
    "createdAt": Trip.created_at,
    "updatedAt": Trip.updated_at,
    "title": Trip.title,
    "destination": Trip.destination,
    "totalEstimate": Trip.total_estimate,
}


async def get_trip_with_itinerary(session: AsyncSession, trip_id: UUID) -> Optional[Trip]:
    """Load a trip with its days and activities in display order"""
    result = await session.execute(
        select(Trip)
        .where(Trip.id == trip_id)
        .options(*trip_itinerary_options())
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def list_trips(
    session: AsyncSession,
    user_id: UUID,
    *,
    page: int,
    limit: int,
    order_clause: Any,
    status: Optional[str] = None,
    budget: Optional[str] = None,
    travel_group: Optional[str] = None,
    destination: Optional[str] = None,
    country: Optional[str] = None,
    search: Optional[str] = None,
    start_date_from: Optional[datetime] = None,
    start_date_to: Optional[datetime] = None,
) -> Tuple[List[Trip], int]:
    """Filtered, sorted page of a user's trips"""
    stmt = owned_statement(Trip, user_id)

    if status and status != "all":
        stmt = stmt.where(Trip.status == status)
    if budget:
        stmt = stmt.where(Trip.budget == budget)
    if travel_group:
        stmt = stmt.where(Trip.travel_group == travel_group)
    if destination:
        stmt = stmt.where(contains(Trip.destination, destination))
    if country:
        stmt = stmt.where(contains(Trip.country, country))
    if start_date_from:
        stmt = stmt.where(Trip.start_date >= start_date_from)
    if start_date_to:
        stmt = stmt.where(Trip.start_date <= start_date_to)
    if search:
        stmt = stmt.where(or_(
            contains(Trip.title, search),
            contains(Trip.description, search),
            contains(Trip.destination, search),
            contains(Trip.country, search),
        ))

    return await paginate(
        session, stmt, page, limit,
        order_clauses=(order_clause, Trip.id),
        options=trip_itinerary_options(),
    )


async def get_upcoming_trips(
    session: AsyncSession, user_id: UUID, now: datetime, limit: int = 5
) -> List[Trip]:
    result = await session.execute(
        owned_statement(Trip, user_id)
        .where(Trip.status == TripStatus.UPCOMING, Trip.start_date >= now)
        .options(*trip_itinerary_options())
        .order_by(Trip.start_date.asc())
        .limit(limit)
    )
    return list(result.scalars().all())


async def get_trip_stats(session: AsyncSession, user_id: UUID) -> Dict[str, int]:
    result = await session.execute(
        select(Trip.status, func.count()).where(Trip.user_id == user_id).group_by(Trip.status)
    )
    counts = {status: count for status, count in result.all()}
    return {
        "upcoming": counts.get(TripStatus.UPCOMING, 0),
        "ongoing": counts.get(TripStatus.ONGOING, 0),
        "completed": counts.get(TripStatus.COMPLETED, 0),
        "total": sum(counts.values()),
    }


async def create_trip(session: AsyncSession, user_id: UUID, data: Dict[str, Any]) -> Trip:
    """Create a trip with an empty itinerary"""
    try:
        trip = Trip(**data, user_id=user_id)
        session.add(trip)
        await session.commit()
        logger.info(f"Created trip {trip.id} for user {user_id}")
    except Exception as e:
        await session.rollback()
        logger.error(f"Error creating trip: {e}")
        raise
    return await get_trip_with_itinerary(session, trip.id)


async def update_trip(session: AsyncSession, trip: Trip, changes: Dict[str, Any]) -> Trip:
    try:
        for field, value in changes.items():
            setattr(trip, field, value)
        await session.commit()
        logger.info(f"Updated trip {trip.id}: {sorted(changes)}")
    except Exception as e:
        await session.rollback()
        logger.error(f"Error updating trip {trip.id}: {e}")
        raise
    return await get_trip_with_itinerary(session, trip.id)


async def delete_trip(session: AsyncSession, trip: Trip) -> None:
    """Delete a trip; its days and activities go with it"""
    try:
        # children must be loaded for the ORM cascade on an async session
        loaded = await get_trip_with_itinerary(session, trip.id)
        await session.delete(loaded)
        await session.commit()
        logger.info(f"Deleted trip {trip.id}")
    except Exception as e:
        await session.rollback()
        logger.error(f"Error deleting trip {trip.id}: {e}")
        raise


async def create_generated_trip(
    session: AsyncSession,
    user_id: UUID,
    *,
    destination: str,
    country: str,
    start_date: datetime,
    end_date: datetime,
    budget: str,
    travel_group: str,
    plan: Any,
    images: List[str],
) -> Trip:
    """Persist a generated trip, its days and activities as one unit of work.

    ``plan`` is a ``GeneratedTrip``; day ``i`` is dated ``start_date + i`` days
    and activities keep their position as ``order``.
    """
    days = len(plan.itinerary)
    trip = Trip(
        title=f"{days}-Day {destination} Adventure",
        description=plan.description,
        destination=destination,
        country=country,
        start_date=start_date,
        end_date=end_date,
        budget=budget,
        travel_group=travel_group,
        total_estimate=plan.total_estimate,
        cover_image=images[0] if images else None,
        images=list(images),
        user_id=user_id,
    )
    trip.itinerary_days = [
        ItineraryDay(
            day_number=index + 1,
            date=start_date + timedelta(days=index),
            title=day.title,
            description=day.description,
            activities=[
                Activity(
                    title=activity.title,
                    description=activity.description,
                    start_time=activity.start_time,
                    end_time=activity.end_time,
                    location=activity.location,
                    estimated_cost=activity.estimated_cost,
                    category=activity.category,
                    order=position,
                )
                for position, activity in enumerate(day.activities)
            ],
        )
        for index, day in enumerate(plan.itinerary)
    ]

    try:
        session.add(trip)
        await session.commit()
        logger.info(f"Persisted generated trip {trip.id} with {days} days for user {user_id}")
    except Exception as e:
        await session.rollback()
        logger.error(f"Error persisting generated trip: {e}")
        raise
    return await get_trip_with_itinerary(session, trip.id)


# ===== ITINERARY DAY / ACTIVITY CRUD OPERATIONS =====

ACTIVITY_SORT_COLUMNS = {
    "order": Activity.order,
    "startTime": Activity.start_time,
    "endTime": Activity.end_time,
    "estimatedCost": Activity.estimated_cost,
    "title": Activity.title,
}


async def get_trip_day(session: AsyncSession, trip_id: UUID, day_id: UUID) -> Optional[ItineraryDay]:
    """Day ``day_id`` if it belongs to trip ``trip_id``"""
    result = await session.execute(
        select(ItineraryDay).where(ItineraryDay.id == day_id, ItineraryDay.trip_id == trip_id)
    )
    return result.scalar_one_or_none()


async def list_day_activities(
    session: AsyncSession,
    day_id: UUID,
    *,
    order_clause: Any = None,
    category: Optional[str] = None,
    search: Optional[str] = None,
    min_cost: Optional[float] = None,
    max_cost: Optional[float] = None,
) -> List[Activity]:
    stmt = select(Activity).where(Activity.itinerary_day_id == day_id)
    if category:
        stmt = stmt.where(Activity.category == category)
    if min_cost is not None:
        stmt = stmt.where(Activity.estimated_cost >= min_cost)
    if max_cost is not None:
        stmt = stmt.where(Activity.estimated_cost <= max_cost)
    if search:
        stmt = stmt.where(or_(
            contains(Activity.title, search),
            contains(Activity.description, search),
            contains(Activity.location, search),
        ))
    if order_clause is None:
        order_clause = Activity.order.asc()
    result = await session.execute(
        stmt.order_by(order_clause, Activity.id).execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


async def next_activity_order(session: AsyncSession, day_id: UUID) -> int:
    current = await session.scalar(
        select(func.max(Activity.order)).where(Activity.itinerary_day_id == day_id)
    )
    return 0 if current is None else current + 1


async def create_activities(
    session: AsyncSession, day_id: UUID, items: List[Dict[str, Any]]
) -> List[Activity]:
    """Insert activities for a day in one commit.

    Items without an explicit ``order`` are appended after the current last one.
    """
    try:
        base = await next_activity_order(session, day_id)
        created = []
        for offset, item in enumerate(items):
            data = dict(item)
            if data.get("order") is None:
                data["order"] = base + offset
            activity = Activity(**data, itinerary_day_id=day_id)
            session.add(activity)
            created.append(activity)
        await session.commit()
        logger.info(f"Created {len(created)} activities for day {day_id}")
        return created
    except Exception as e:
        await session.rollback()
        logger.error(f"Error creating activities: {e}")
        raise


async def update_activity(session: AsyncSession, activity: Activity, changes: Dict[str, Any]) -> Activity:
    try:
        for field, value in changes.items():
            setattr(activity, field, value)
        await session.commit()
        await session.refresh(activity)
        return activity
    except Exception as e:
        await session.rollback()
        logger.error(f"Error updating activity {activity.id}: {e}")
        raise


async def delete_instance(session: AsyncSession, instance: Any) -> None:
    try:
        await session.delete(instance)
        await session.commit()
    except Exception as e:
        await session.rollback()
        logger.error(f"Error deleting {type(instance).__name__} {instance.id}: {e}")
        raise


async def reorder_activities(session: AsyncSession, day_id: UUID, activity_ids: List[UUID]) -> List[Activity]:
    """Set ``order`` to each id's position in ``activity_ids``.

    Raises LookupError if an id is not an activity of this day; nothing is
    written in that case.
    """
    result = await session.execute(
        select(Activity.id).where(Activity.itinerary_day_id == day_id)
    )
    known = set(result.scalars().all())
    unknown = [str(activity_id) for activity_id in activity_ids if activity_id not in known]
    if unknown:
        raise LookupError(f"Activities not in day {day_id}: {', '.join(unknown)}")

    try:
        for index, activity_id in enumerate(activity_ids):
            await session.execute(
                update(Activity)
                .where(Activity.id == activity_id, Activity.itinerary_day_id == day_id)
                .values(order=index)
            )
        await session.commit()
    except Exception as e:
        await session.rollback()
        logger.error(f"Error reordering activities for day {day_id}: {e}")
        raise
    return await list_day_activities(session, day_id)


# ===== SAVED DESTINATION CRUD OPERATIONS =====

PRIORITY_RANK = case(
    (SavedDestination.priority == Priority.LOW, 0),
    (SavedDestination.priority == Priority.MEDIUM, 1),
    (SavedDestination.priority == Priority.HIGH, 2),
    else_=1,
)

DESTINATION_SORT_COLUMNS = {
    "createdAt": SavedDestination.created_at,
    "updatedAt": SavedDestination.updated_at,
    "name": SavedDestination.name,
    "country": SavedDestination.country,
    "priority": PRIORITY_RANK,
    "estimatedBudget": SavedDestination.estimated_budget,
}


async def list_saved_destinations(
    session: AsyncSession,
    user_id: UUID,
    *,
    page: int,
    limit: int,
    order_clause: Any,
    priority: Optional[str] = None,
    country: Optional[str] = None,
    tag: Optional[str] = None,
    min_budget: Optional[float] = None,
    max_budget: Optional[float] = None,
    search: Optional[str] = None,
) -> Tuple[List[SavedDestination], int]:
    stmt = owned_statement(SavedDestination, user_id)

    if priority:
        stmt = stmt.where(SavedDestination.priority == priority)
    if country:
        stmt = stmt.where(contains(SavedDestination.country, country))
    if tag:
        # tags are a JSON array; match the serialized element including quotes
        stmt = stmt.where(cast(SavedDestination.tags, String).contains(json.dumps(tag)))
    if min_budget is not None:
        stmt = stmt.where(SavedDestination.estimated_budget >= min_budget)
    if max_budget is not None:
        stmt = stmt.where(SavedDestination.estimated_budget <= max_budget)
    if search:
        stmt = stmt.where(or_(
            contains(SavedDestination.name, search),
            contains(SavedDestination.country, search),
            contains(SavedDestination.description, search),
            contains(SavedDestination.notes, search),
        ))

    return await paginate(
        session, stmt, page, limit, order_clauses=(order_clause, SavedDestination.id)
    )


async def create_saved_destination(
    session: AsyncSession, user_id: UUID, data: Dict[str, Any]
) -> SavedDestination:
    try:
        destination = SavedDestination(**data, user_id=user_id)
        session.add(destination)
        await session.commit()
        await session.refresh(destination)
        logger.info(f"Saved destination {destination.id} for user {user_id}")
        return destination
    except Exception as e:
        await session.rollback()
        logger.error(f"Error saving destination: {e}")
        raise


async def update_saved_destination(
    session: AsyncSession, destination: SavedDestination, changes: Dict[str, Any]
) -> SavedDestination:
    try:
        for field, value in changes.items():
            setattr(destination, field, value)
        await session.commit()
        await session.refresh(destination)
        return destination
    except Exception as e:
        await session.rollback()
        logger.error(f"Error updating destination {destination.id}: {e}")
        raise


async def get_destination_stats(session: AsyncSession, user_id: UUID) -> Dict[str, int]:
    row = (await session.execute(
        select(
            func.count(SavedDestination.id),
            func.count(SavedDestination.id).filter(SavedDestination.priority == Priority.HIGH),
            func.count(func.distinct(SavedDestination.country)),
        ).where(SavedDestination.user_id == user_id)
    )).one()
    return {"total": row[0], "highPriority": row[1], "uniqueCountries": row[2]}
