import structlog
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from odysea.api.schemas import GenerateTripRequest, TripRead, TripResponse
from odysea.core.ai_generator import generate_trip_plan
from odysea.core.images import fetch_destination_images
from odysea.core.itinerary_generator import TripParameters
from odysea.core.rate_limit import generate_limit, limiter
from odysea.core.security import get_current_user
from odysea.core.settings import Settings, get_settings
from odysea.core.timing import performance_timer
from odysea.core.validation import PayloadValidationError
from odysea.db import crud
from odysea.db.models import User
from odysea.db.session import get_db_session

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.post("/generate",
    response_model=TripResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Invalid request"},
        429: {"description": "Rate limit exceeded"},
    },
    summary="Generate and save a trip itinerary",
)
@limiter.limit(generate_limit)
async def generate_trip(
    request: Request,
    payload: GenerateTripRequest,
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
    settings: Settings = Depends(get_settings),
):
    """Plan a trip with Gemini (or the offline planner), attach photos and persist it"""
    days = payload.day_count
    if days > settings.MAX_ITINERARY_DAYS:
        raise PayloadValidationError("Validation failed", [{
            "path": ["endDate"],
            "message": f"Trip cannot be longer than {settings.MAX_ITINERARY_DAYS} days",
            "code": "too_long",
        }])

    params = TripParameters(
        destination=payload.destination,
        country=payload.country,
        days=days,
        budget=payload.budget.value,
        travel_group=payload.travel_group.value,
        start_date=payload.start_date,
        preferences=payload.preferences,
    )

    async with performance_timer("trip_generation"):
        plan = await generate_trip_plan(params, settings)
        images = await fetch_destination_images(payload.destination, payload.country, settings)
        trip = await crud.create_generated_trip(
            session,
            current_user.id,
            destination=payload.destination,
            country=payload.country,
            start_date=payload.start_date,
            end_date=payload.end_date,
            budget=payload.budget,
            travel_group=payload.travel_group,
            plan=plan,
            images=images,
        )

    logger.info(
        "trip_generated",
        trip_id=str(trip.id),
        user_id=str(current_user.id),
        days=len(trip.itinerary_days),
    )
    return TripResponse(trip=TripRead.model_validate(trip))
