"""
Itinerary generation with Gemini, falling back to the rule-based planner.
"""

import json
import math
import re
from typing import Any, Dict, List, Optional

import structlog
from google import genai
from google.genai import types

from odysea.core.itinerary_generator import (
    GeneratedActivity,
    GeneratedDay,
    GeneratedTrip,
    TripParameters,
    build_offline_itinerary,
)
from odysea.core.settings import Settings
from odysea.db.models import ActivityCategory

logger = structlog.get_logger(__name__)

BUDGET_DESCRIPTIONS = {
    "MID_RANGE": "mid-range budget ($100-200 per day)",
    "LUXURY": "luxury budget ($200-400 per day)",
    "PREMIUM": "premium/ultra-luxury budget ($400+ per day)",
}

TRAVEL_GROUP_DESCRIPTIONS = {
    "SOLO": "solo traveler",
    "COUPLE": "romantic couple",
    "FRIENDS": "group of friends",
    "FAMILY": "family with children",
}

CATEGORIES = {category.value for category in ActivityCategory}

TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")

# column widths of the tables the plan is written to
TITLE_LENGTH = 200
LOCATION_LENGTH = 300


def build_prompt(params: TripParameters) -> str:
    budget = BUDGET_DESCRIPTIONS.get(params.budget, params.budget)
    group = TRAVEL_GROUP_DESCRIPTIONS.get(params.travel_group, params.travel_group)
    categories = " | ".join(f'"{c.value}"' for c in ActivityCategory)
    preferences = params.preferences or "None specified"

    return f"""Generate a detailed {params.days}-day travel itinerary for {params.destination}, {params.country}.

Travel details:
- Budget level: {budget}
- Travel group: {group}
- Special preferences: {preferences}

Please provide a JSON response with this exact structure:
{{
  "description": "A brief 1-2 sentence description of the trip",
  "totalEstimate": <total estimated cost as a number in USD>,
  "itinerary": [
    {{
      "title": "Day 1: <descriptive title>",
      "description": "Brief description of the day",
      "activities": [
        {{
          "title": "Activity name",
          "description": "Detailed description of the activity",
          "startTime": "HH:MM (24-hour format)",
          "endTime": "HH:MM (24-hour format)",
          "location": "Specific location name",
          "estimatedCost": <cost as number in USD>,
          "category": {categories}
        }}
      ]
    }}
  ]
}}

Important requirements:
1. Include 4-5 activities per day
2. Activities should be realistic and specific to {params.destination}
3. Include actual restaurant names, attractions, and locations when possible
4. Times should flow logically through the day
5. Costs should be realistic for the {params.budget} budget level
6. Tailor activities to {group}
7. First day should include arrival, last day should include departure
8. Return ONLY valid JSON, no markdown or additional text"""


def strip_code_fence(text: str) -> str:
    """Remove a ```json ... ``` or ``` ... ``` wrapper if present"""
    cleaned = text.strip()
    if cleaned.startswith("```json"):
        cleaned = cleaned[7:]
    elif cleaned.startswith("```"):
        cleaned = cleaned[3:]
    if cleaned.endswith("```"):
        cleaned = cleaned[:-3]
    return cleaned.strip()


def _text(value: Any, default: str, max_length: Optional[int] = None) -> str:
    text = value if isinstance(value, str) and value.strip() else default
    return text[:max_length] if max_length else text


def _time(value: Any, default: str) -> str:
    if isinstance(value, str) and TIME_PATTERN.match(value.strip()):
        return value.strip()
    return default


def _number(value: Any, default: float) -> float:
    if isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return default
    else:
        return default
    return number if math.isfinite(number) else default


def _list(value: Any) -> List[Any]:
    return value if isinstance(value, list) else []


def _category(value: Any) -> ActivityCategory:
    if isinstance(value, str) and value in CATEGORIES:
        return ActivityCategory(value)
    return ActivityCategory.ACTIVITY


def sanitize_reply(reply: Dict[str, Any], params: TripParameters) -> GeneratedTrip:
    """Default every missing or mistyped field of a parsed Gemini reply"""
    days: List[GeneratedDay] = []
    for index, day in enumerate(_list(reply.get("itinerary"))):
        if not isinstance(day, dict):
            day = {}
        activities = []
        for activity in _list(day.get("activities")):
            if not isinstance(activity, dict):
                activity = {}
            activities.append(GeneratedActivity(
                title=_text(activity.get("title"), "Activity", TITLE_LENGTH),
                description=_text(activity.get("description"), ""),
                start_time=_time(activity.get("startTime"), "09:00"),
                end_time=_time(activity.get("endTime"), "10:00"),
                location=_text(activity.get("location"), params.destination, LOCATION_LENGTH),
                estimated_cost=_number(activity.get("estimatedCost"), 50),
                category=_category(activity.get("category")),
            ))
        days.append(GeneratedDay(
            title=_text(day.get("title"), f"Day {index + 1}", TITLE_LENGTH),
            description=_text(day.get("description"), ""),
            activities=activities,
        ))

    return GeneratedTrip(
        description=_text(
            reply.get("description"),
            f"A {params.days}-day trip to {params.destination}, {params.country}",
        ),
        total_estimate=_number(reply.get("totalEstimate"), params.days * 200),
        itinerary=days,
    )


def parse_reply(text: str, params: TripParameters) -> GeneratedTrip:
    """Parse raw model output; raises ValueError when it is not a JSON object"""
    parsed = json.loads(strip_code_fence(text))
    if not isinstance(parsed, dict):
        raise ValueError(f"Expected a JSON object, got {type(parsed).__name__}")
    return sanitize_reply(parsed, params)


def create_gemini_client(settings: Settings) -> genai.Client:
    return genai.Client(
        api_key=settings.GEMINI_API_KEY,
        http_options=types.HttpOptions(timeout=int(settings.EXTERNAL_TIMEOUT_SECONDS * 1000)),
    )


async def generate_with_gemini(
    params: TripParameters,
    settings: Settings,
    client: Optional[Any] = None,
) -> GeneratedTrip:
    """Ask Gemini for an itinerary; any failure yields the offline plan instead"""
    prompt = build_prompt(params)
    try:
        client = client or create_gemini_client(settings)
        response = await client.aio.models.generate_content(
            model=settings.GEMINI_MODEL,
            contents=prompt,
        )
        text = response.text
        if not text:
            raise ValueError("Empty response from Gemini")
        trip = parse_reply(text, params)
        logger.info(
            "gemini_itinerary_generated",
            destination=params.destination,
            days=len(trip.itinerary),
        )
        return trip
    except Exception as e:
        logger.warning(
            "gemini_generation_failed_using_offline_planner",
            destination=params.destination,
            error=str(e),
            error_type=type(e).__name__,
        )
        return build_offline_itinerary(params)


async def generate_trip_plan(
    params: TripParameters,
    settings: Settings,
    client: Optional[Any] = None,
) -> GeneratedTrip:
    """Pick Gemini when a real key is configured, otherwise the offline planner"""
    if settings.live_generation_enabled:
        return await generate_with_gemini(params, settings, client=client)
    logger.info("offline_itinerary_generated", destination=params.destination, days=params.days)
    return build_offline_itinerary(params)
