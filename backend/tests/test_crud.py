"""
Tests for the persistence helpers that the API routes build on
"""

from datetime import datetime, timezone

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from odysea.core.itinerary_generator import GeneratedActivity, TripParameters, build_offline_itinerary
from odysea.db import crud
from odysea.db.models import Activity, ActivityCategory, ItineraryDay, Trip

START = datetime(2025, 6, 1, tzinfo=timezone.utc)
END = datetime(2025, 6, 3, tzinfo=timezone.utc)


def rome_plan():
    return build_offline_itinerary(TripParameters(
        destination="Rome",
        country="Italy",
        days=3,
        budget="MID_RANGE",
        travel_group="SOLO",
        start_date=START,
    ))


async def persist(session, user_id, plan):
    return await crud.create_generated_trip(
        session,
        user_id,
        destination="Rome",
        country="Italy",
        start_date=START,
        end_date=END,
        budget="MID_RANGE",
        travel_group="SOLO",
        plan=plan,
        images=["https://img/1", "https://img/2", "https://img/3"],
    )


async def count(session, model):
    return await session.scalar(select(func.count()).select_from(model))


@pytest.mark.asyncio
async def test_generated_trip_is_saved_in_order(database):
    async with database.get_session() as session:
        user = await crud.create_user(session, "rome@example.com", "Roman", "hash")
        trip = await persist(session, user.id, rome_plan())

    assert trip.title == "3-Day Rome Adventure"
    assert trip.cover_image == "https://img/1"
    assert [day.day_number for day in trip.itinerary_days] == [1, 2, 3]
    assert all([a.order for a in day.activities] == [0, 1, 2, 3, 4] for day in trip.itinerary_days)


@pytest.mark.asyncio
async def test_failed_generated_trip_leaves_nothing_behind(database):
    """An activity that cannot be stored rolls back the trip and every day"""
    plan = rome_plan()
    # a title-less activity on the last day violates NOT NULL after the
    # trip and the earlier days have already been flushed
    plan.itinerary[2].activities[3] = GeneratedActivity.model_construct(
        title=None,
        description="",
        start_time="16:00",
        end_time="18:30",
        location="Rome",
        estimated_cost=10.0,
        category=ActivityCategory.SHOPPING,
    )

    async with database.get_session() as session:
        user = await crud.create_user(session, "rome@example.com", "Roman", "hash")
        user_id = user.id

    with pytest.raises(IntegrityError):
        async with database.get_session() as session:
            await persist(session, user_id, plan)

    async with database.get_session() as session:
        assert await count(session, Trip) == 0
        assert await count(session, ItineraryDay) == 0
        assert await count(session, Activity) == 0


@pytest.mark.asyncio
async def test_reorder_rejects_activities_from_other_days(database):
    async with database.get_session() as session:
        user = await crud.create_user(session, "rome@example.com", "Roman", "hash")
        trip = await persist(session, user.id, rome_plan())
        first, second = trip.itinerary_days[0], trip.itinerary_days[1]
        before = [a.id for a in first.activities]

        with pytest.raises(LookupError):
            await crud.reorder_activities(session, first.id, [second.activities[0].id])

        after = [a.id for a in await crud.list_day_activities(session, first.id)]
        assert after == before
