"""
Rule-based itinerary synthesis.

``build_offline_itinerary`` is a pure function of its parameters: no I/O, no
clock, no randomness. It is the fallback for the Gemini planner and the
default planner when no Gemini key is configured.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel

from odysea.db.models import ActivityCategory

BUDGET_MULTIPLIERS: Dict[str, float] = {
    "MID_RANGE": 1.0,
    "LUXURY": 2.5,
    "PREMIUM": 4.0,
}

BASE_DAILY_COST = 150
FLIGHT_ESTIMATE = 200

GROUP_ACTIVITIES: Dict[str, List[str]] = {
    "SOLO": ["Museum visit", "Local café exploration", "Walking tour", "Street food tasting"],
    "COUPLE": ["Romantic dinner", "Sunset viewing", "Spa day", "Wine tasting"],
    "FRIENDS": ["Bar hopping", "Adventure sports", "Beach party", "Local nightlife"],
    "FAMILY": ["Theme park", "Zoo visit", "Family restaurant", "Educational tour"],
}

DISTRICTS = ["Downtown", "Old Town", "Cultural District", "Waterfront"]


@dataclass(frozen=True)
class TripParameters:
    """Inputs shared by the offline and Gemini planners"""
    destination: str
    country: str
    days: int
    budget: str
    travel_group: str
    start_date: datetime
    preferences: Optional[str] = None


class GeneratedActivity(BaseModel):
    title: str
    description: str = ""
    start_time: str = "09:00"
    end_time: str = "10:00"
    location: str
    estimated_cost: float
    category: ActivityCategory


class GeneratedDay(BaseModel):
    title: str
    description: str = ""
    activities: List[GeneratedActivity] = []


class GeneratedTrip(BaseModel):
    description: str
    total_estimate: float
    itinerary: List[GeneratedDay] = []


def budget_multiplier(budget: str) -> float:
    """Cost multiplier for a budget tier; unknown tiers count as mid-range"""
    return BUDGET_MULTIPLIERS.get(budget, 1.0)


def estimate_total(days: int, budget: str) -> float:
    """Daily spend for every day plus a flight estimate"""
    multiplier = budget_multiplier(budget)
    return days * BASE_DAILY_COST * multiplier + FLIGHT_ESTIMATE * multiplier


def _tier_word(budget: str, premium: str, luxury: str, default: str) -> str:
    if budget == "PREMIUM":
        return premium
    if budget == "LUXURY":
        return luxury
    return default


def _plan_day(params: TripParameters, i: int, multiplier: float) -> GeneratedDay:
    destination, country = params.destination, params.country
    budget, group = params.budget, params.travel_group
    first, last = i == 0, i == params.days - 1
    rotation = GROUP_ACTIVITIES.get(group, GROUP_ACTIVITIES["SOLO"])
    budget_label = budget.lower().replace("_", " ")

    activities = []

    # morning
    if first:
        accommodation = _tier_word(budget, "luxury", "upscale", "comfortable")
        activities.append(GeneratedActivity(
            title=f"Arrival at {destination}",
            description=(
                f"Arrive at {destination}, {country}. "
                f"Check into your {accommodation} accommodation."
            ),
            start_time="14:00",
            end_time="16:00",
            location=f"{destination} Airport",
            estimated_cost=50 * multiplier,
            category=ActivityCategory.TRANSPORT,
        ))
    else:
        activities.append(GeneratedActivity(
            title="Morning exploration",
            description=f"Start your day with a refreshing breakfast and explore {destination}.",
            start_time="08:00",
            end_time="10:00",
            location=f"{destination} City Center",
            estimated_cost=20 * multiplier,
            category=ActivityCategory.FOOD,
        ))

    # mid-day
    midday = rotation[i % len(rotation)]
    activities.append(GeneratedActivity(
        title=midday,
        description=f"Enjoy {midday.lower()} in the heart of {destination}.",
        start_time="11:00",
        end_time="14:00",
        location=f"{destination} {DISTRICTS[i % len(DISTRICTS)]}",
        estimated_cost=60 * multiplier,
        category=ActivityCategory.SIGHTSEEING,
    ))

    # lunch
    restaurant = _tier_word(budget, "Michelin-starred", "renowned", "popular local")
    activities.append(GeneratedActivity(
        title=f"Lunch at {restaurant} restaurant",
        description=f"Savor {country} cuisine at a {budget_label} restaurant.",
        start_time="14:00",
        end_time="15:30",
        location=f"{destination} Restaurant District",
        estimated_cost=40 * multiplier,
        category=ActivityCategory.FOOD,
    ))

    # afternoon
    if last:
        activities.append(GeneratedActivity(
            title="Shopping for souvenirs",
            description=f"Pick up memorable souvenirs from {destination}.",
            start_time="16:00",
            end_time="18:30",
            location=f"{destination} Shopping Street",
            estimated_cost=100 * multiplier,
            category=ActivityCategory.SHOPPING,
        ))
    else:
        afternoon = rotation[(i + 1) % len(rotation)]
        activities.append(GeneratedActivity(
            title=afternoon,
            description=f"Continue exploring with {afternoon.lower()}.",
            start_time="16:00",
            end_time="18:30",
            location=f"{destination} Tourist Area",
            estimated_cost=50 * multiplier,
            category=ActivityCategory.ACTIVITY,
        ))

    # evening
    if last:
        activities.append(GeneratedActivity(
            title=f"Departure from {destination}",
            description=f"Say goodbye to {destination} and head to the airport for your departure.",
            start_time="19:00",
            end_time="21:00",
            location=f"{destination} Airport",
            estimated_cost=50 * multiplier,
            category=ActivityCategory.TRANSPORT,
        ))
    else:
        couple = group == "COUPLE"
        activities.append(GeneratedActivity(
            title=f"Dinner and {'romantic evening' if couple else 'entertainment'}",
            description=f"End the day with a wonderful dinner and {destination}'s evening attractions.",
            start_time="19:00",
            end_time="22:00",
            location=f"{destination} {'Romantic Quarter' if couple else 'Entertainment District'}",
            estimated_cost=80 * multiplier,
            category=ActivityCategory.FOOD,
        ))

    if first:
        headline, lead = "Arrival & First Impressions", "Begin your adventure"
    elif last:
        headline, lead = f"Farewell {destination}", "Final day of exploration"
    else:
        headline, lead = f"Exploring {destination}", "Continue your journey"

    return GeneratedDay(
        title=f"Day {i + 1}: {headline}",
        description=f"{lead} in beautiful {destination}, {country}.",
        activities=activities,
    )


def build_offline_itinerary(params: TripParameters) -> GeneratedTrip:
    """Plan ``params.days`` days of five activities each from fixed templates"""
    multiplier = budget_multiplier(params.budget)
    itinerary = [_plan_day(params, i, multiplier) for i in range(params.days)]

    audience = "solo travelers" if params.travel_group == "SOLO" else params.travel_group.lower()
    budget_label = params.budget.lower().replace("_", " ")

    return GeneratedTrip(
        description=(
            f"A {params.days}-day {budget_label} trip to {params.destination}, "
            f"{params.country}, perfect for {audience}."
        ),
        total_estimate=estimate_total(params.days, params.budget),
        itinerary=itinerary,
    )
