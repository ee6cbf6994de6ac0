import math
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import (
    BaseModel, ConfigDict, EmailStr, Field, HttpUrl, TypeAdapter,
    ValidationError, field_validator, model_validator,
)
from pydantic.alias_generators import to_camel

from odysea.db.models import ActivityCategory, BudgetTier, Priority, TravelGroup, TripStatus


class CamelModel(BaseModel):
    """JSON uses camelCase, Python uses snake_case"""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


def as_utc(value: datetime) -> datetime:
    """Naive datetimes are taken to be UTC"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def reject_nulls(model: BaseModel, fields: List[str]) -> None:
    """Optional-on-update fields that may be omitted but not cleared"""
    for name in fields:
        if name in model.model_fields_set and getattr(model, name) is None:
            raise ValueError(f"{to_camel(name)} cannot be null")


# ===== AUTH SCHEMAS =====

class RegisterRequest(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=6)
    name: str = Field(..., min_length=2, max_length=100)

    @field_validator("password")
    @classmethod
    def validate_password(cls, v):
        if len(v) < 6:
            raise ValueError("Password must be at least 6 characters")
        return v

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if len(v.strip()) < 2:
            raise ValueError("Name must be at least 2 characters")
        return v.strip()


class LoginRequest(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class UserRead(CamelModel):
    id: UUID
    email: str
    name: str
    created_at: datetime


class AuthResponse(BaseModel):
    user: UserRead
    token: str


class UserResponse(BaseModel):
    user: UserRead


# ===== TRIP SCHEMAS =====

class TripBase(CamelModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    destination: str = Field(..., min_length=1, max_length=200)
    country: str = Field(..., min_length=1, max_length=100)
    start_date: datetime
    end_date: datetime
    budget: BudgetTier
    travel_group: TravelGroup
    cover_image: Optional[str] = None

    @field_validator("start_date", "end_date")
    @classmethod
    def normalize_dates(cls, v):
        return as_utc(v)


class TripCreate(TripBase):
    pass


class TripUpdate(CamelModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    destination: Optional[str] = Field(None, min_length=1, max_length=200)
    country: Optional[str] = Field(None, min_length=1, max_length=100)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    budget: Optional[BudgetTier] = None
    travel_group: Optional[TravelGroup] = None
    cover_image: Optional[str] = None
    status: Optional[TripStatus] = None

    @field_validator("start_date", "end_date")
    @classmethod
    def normalize_dates(cls, v):
        return as_utc(v) if v is not None else v

    @model_validator(mode="after")
    def check_required_columns(self):
        reject_nulls(self, [
            "title", "destination", "country", "start_date", "end_date",
            "budget", "travel_group", "status",
        ])
        return self


class GenerateTripRequest(CamelModel):
    destination: str = Field(..., min_length=1, max_length=150)
    country: str = Field(..., min_length=1, max_length=100)
    start_date: datetime
    end_date: datetime
    budget: BudgetTier
    travel_group: TravelGroup
    preferences: Optional[str] = None

    @field_validator("start_date", "end_date")
    @classmethod
    def normalize_dates(cls, v):
        return as_utc(v)

    @model_validator(mode="after")
    def check_date_range(self):
        if self.end_date < self.start_date:
            raise ValueError("endDate must not be before startDate")
        return self

    @property
    def day_count(self) -> int:
        """Number of calendar days covered, both endpoints included"""
        seconds = (self.end_date - self.start_date).total_seconds()
        return math.ceil(seconds / 86400) + 1


class ActivityRead(CamelModel):
    id: UUID
    title: str
    description: Optional[str] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    location: Optional[str] = None
    estimated_cost: Optional[float] = None
    category: ActivityCategory
    order: int
    itinerary_day_id: UUID
    created_at: datetime
    updated_at: datetime


class ItineraryDayRead(CamelModel):
    id: UUID
    day_number: int
    date: datetime
    title: Optional[str] = None
    description: Optional[str] = None
    trip_id: UUID
    activities: List[ActivityRead] = []


class TripRead(CamelModel):
    id: UUID
    title: str
    description: Optional[str] = None
    destination: str
    country: str
    start_date: datetime
    end_date: datetime
    budget: BudgetTier
    travel_group: TravelGroup
    status: TripStatus
    total_estimate: Optional[float] = None
    cover_image: Optional[str] = None
    images: List[str] = []
    user_id: UUID
    created_at: datetime
    updated_at: datetime
    itinerary_days: List[ItineraryDayRead] = []


class Pagination(CamelModel):
    page: int
    limit: int
    total: int
    total_pages: int


class TripFilters(CamelModel):
    status: Optional[str] = None
    budget: Optional[str] = None
    travel_group: Optional[str] = None
    destination: Optional[str] = None
    country: Optional[str] = None
    search: Optional[str] = None
    sort_by: str
    sort_order: str


class TripResponse(BaseModel):
    trip: TripRead


class TripsResponse(BaseModel):
    trips: List[TripRead]


class TripListResponse(BaseModel):
    trips: List[TripRead]
    pagination: Pagination
    filters: TripFilters


class TripStats(BaseModel):
    upcoming: int
    ongoing: int
    completed: int
    total: int


class TripStatsResponse(BaseModel):
    stats: TripStats


class MessageResponse(BaseModel):
    message: str


# ===== ACTIVITY SCHEMAS =====

class ActivityCreate(CamelModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    start_time: Optional[str] = Field(None, max_length=10)
    end_time: Optional[str] = Field(None, max_length=10)
    location: Optional[str] = Field(None, max_length=300)
    estimated_cost: Optional[float] = None
    category: ActivityCategory
    order: Optional[int] = Field(None, ge=0)


class ActivityUpdate(CamelModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    start_time: Optional[str] = Field(None, max_length=10)
    end_time: Optional[str] = Field(None, max_length=10)
    location: Optional[str] = Field(None, max_length=300)
    estimated_cost: Optional[float] = None
    category: Optional[ActivityCategory] = None
    order: Optional[int] = Field(None, ge=0)

    @model_validator(mode="after")
    def check_required_columns(self):
        reject_nulls(self, ["title", "category", "order"])
        return self


class BulkActivitiesRequest(CamelModel):
    activities: List[Any]


class ReorderActivitiesRequest(CamelModel):
    activity_ids: List[UUID]


class ActivityResponse(BaseModel):
    activity: ActivityRead


class ActivitiesResponse(BaseModel):
    activities: List[ActivityRead]


class BulkActivitiesResponse(BaseModel):
    message: str
    activities: List[ActivityRead]


# ===== SAVED DESTINATION SCHEMAS =====

_url_adapter = TypeAdapter(HttpUrl)


def check_image_url(v: Optional[str]) -> Optional[str]:
    if v is None or v == "":
        return v
    try:
        _url_adapter.validate_python(v)
    except ValidationError:
        raise ValueError("Invalid url")
    return v


class DestinationCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=200)
    country: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    image_url: Optional[str] = None
    notes: Optional[str] = None
    priority: Optional[Priority] = None
    best_season: Optional[str] = Field(None, max_length=100)
    estimated_budget: Optional[float] = None
    tags: Optional[List[str]] = None

    @field_validator("image_url")
    @classmethod
    def validate_image_url(cls, v):
        return check_image_url(v)


class DestinationUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    country: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    image_url: Optional[str] = None
    notes: Optional[str] = None
    priority: Optional[Priority] = None
    best_season: Optional[str] = Field(None, max_length=100)
    estimated_budget: Optional[float] = None
    tags: Optional[List[str]] = None

    @field_validator("image_url")
    @classmethod
    def validate_image_url(cls, v):
        return check_image_url(v)

    @model_validator(mode="after")
    def check_required_columns(self):
        reject_nulls(self, ["name", "country", "priority", "tags"])
        return self


class DestinationRead(CamelModel):
    id: UUID
    name: str
    country: str
    description: Optional[str] = None
    image_url: Optional[str] = None
    notes: Optional[str] = None
    priority: Priority
    best_season: Optional[str] = None
    estimated_budget: Optional[float] = None
    tags: List[str] = []
    user_id: UUID
    created_at: datetime
    updated_at: datetime


class DestinationFilters(CamelModel):
    search: Optional[str] = None
    priority: Optional[str] = None
    country: Optional[str] = None
    sort_by: str
    sort_order: str


class DestinationResponse(BaseModel):
    destination: DestinationRead


class DestinationListResponse(BaseModel):
    destinations: List[DestinationRead]
    pagination: Pagination
    filters: DestinationFilters


class DestinationStats(CamelModel):
    total: int
    high_priority: int
    unique_countries: int


class DestinationStatsResponse(BaseModel):
    stats: DestinationStats


def pagination_payload(info: Dict[str, int]) -> Pagination:
    return Pagination.model_validate(info)
