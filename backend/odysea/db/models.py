import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional
from uuid import UUID as PyUUID

from sqlmodel import SQLModel, Field, Relationship
from sqlalchemy import Column, DateTime, Index, CheckConstraint, UniqueConstraint, JSON
from sqlalchemy import Enum as SAEnum


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# Enums
class BudgetTier(str, Enum):
    MID_RANGE = "MID_RANGE"
    LUXURY = "LUXURY"
    PREMIUM = "PREMIUM"


class TravelGroup(str, Enum):
    SOLO = "SOLO"
    COUPLE = "COUPLE"
    FRIENDS = "FRIENDS"
    FAMILY = "FAMILY"


class TripStatus(str, Enum):
    UPCOMING = "UPCOMING"
    ONGOING = "ONGOING"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class ActivityCategory(str, Enum):
    TRANSPORT = "TRANSPORT"
    ACCOMMODATION = "ACCOMMODATION"
    FOOD = "FOOD"
    SIGHTSEEING = "SIGHTSEEING"
    ACTIVITY = "ACTIVITY"
    SHOPPING = "SHOPPING"
    OTHER = "OTHER"


class Priority(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class AuditMixin(SQLModel):
    """Common audit columns"""

    created_at: datetime = Field(
        default_factory=utcnow,
        sa_type=DateTime(timezone=True),
        nullable=False,
    )
    updated_at: datetime = Field(
        default_factory=utcnow,
        sa_type=DateTime(timezone=True),
        nullable=False,
        sa_column_kwargs={"onupdate": utcnow},
    )


class User(AuditMixin, table=True):
    __tablename__ = "users"

    id: PyUUID = Field(default_factory=uuid.uuid4, primary_key=True)
    email: str = Field(
        index=True,
        unique=True,
        nullable=False,
        max_length=255,
        description="User's email address",
    )
    name: str = Field(max_length=100, description="Display name")
    password_hash: str = Field(nullable=False, max_length=255, description="Hashed password")

    # Relationships
    trips: List["Trip"] = Relationship(
        back_populates="user",
        sa_relationship_kwargs={"cascade": "all, delete-orphan"},
    )
    saved_destinations: List["SavedDestination"] = Relationship(
        back_populates="user",
        sa_relationship_kwargs={"cascade": "all, delete-orphan"},
    )


class Trip(AuditMixin, table=True):
    __tablename__ = "trips"

    __table_args__ = (
        Index("idx_trips_user_id", "user_id"),
        Index("idx_trips_status", "status"),
        Index("idx_trips_dates", "start_date", "end_date"),
    )

    id: PyUUID = Field(default_factory=uuid.uuid4, primary_key=True)
    title: str = Field(max_length=200)
    description: Optional[str] = Field(default=None)
    destination: str = Field(max_length=200)
    country: str = Field(max_length=100)
    start_date: datetime = Field(sa_type=DateTime(timezone=True), nullable=False)
    end_date: datetime = Field(sa_type=DateTime(timezone=True), nullable=False)
    budget: BudgetTier = Field(
        sa_column=Column(SAEnum(BudgetTier, name="budgettier"), nullable=False)
    )
    travel_group: TravelGroup = Field(
        sa_column=Column(SAEnum(TravelGroup, name="travelgroup"), nullable=False)
    )
    status: TripStatus = Field(
        default=TripStatus.UPCOMING,
        sa_column=Column(
            SAEnum(TripStatus, name="tripstatus"),
            nullable=False,
            default=TripStatus.UPCOMING,
        ),
    )
    total_estimate: Optional[float] = Field(default=None, description="Estimated total cost in USD")
    cover_image: Optional[str] = Field(default=None)
    images: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    user_id: PyUUID = Field(foreign_key="users.id", nullable=False, ondelete="CASCADE")

    # Relationships
    user: Optional[User] = Relationship(back_populates="trips")
    itinerary_days: List["ItineraryDay"] = Relationship(
        back_populates="trip",
        sa_relationship_kwargs={
            "cascade": "all, delete-orphan",
            "order_by": "ItineraryDay.day_number",
        },
    )


class ItineraryDay(AuditMixin, table=True):
    __tablename__ = "itinerary_days"

    __table_args__ = (
        UniqueConstraint("trip_id", "day_number", name="uq_itinerary_days_trip_day"),
        CheckConstraint("day_number >= 1", name="check_valid_day_number"),
    )

    id: PyUUID = Field(default_factory=uuid.uuid4, primary_key=True)
    day_number: int = Field(description="1-based position within the trip")
    date: datetime = Field(sa_type=DateTime(timezone=True), nullable=False)
    title: Optional[str] = Field(default=None, max_length=200)
    description: Optional[str] = Field(default=None)
    trip_id: PyUUID = Field(foreign_key="trips.id", nullable=False, ondelete="CASCADE", index=True)

    # Relationships
    trip: Optional[Trip] = Relationship(back_populates="itinerary_days")
    activities: List["Activity"] = Relationship(
        back_populates="itinerary_day",
        sa_relationship_kwargs={
            "cascade": "all, delete-orphan",
            "order_by": "Activity.order",
        },
    )


class Activity(AuditMixin, table=True):
    __tablename__ = "activities"

    __table_args__ = (
        Index("idx_activities_day_order", "itinerary_day_id", "order"),
        CheckConstraint('"order" >= 0', name="check_valid_order"),
    )

    id: PyUUID = Field(default_factory=uuid.uuid4, primary_key=True)
    title: str = Field(max_length=200)
    description: Optional[str] = Field(default=None)
    start_time: Optional[str] = Field(default=None, max_length=10, description="HH:MM, 24-hour")
    end_time: Optional[str] = Field(default=None, max_length=10, description="HH:MM, 24-hour")
    location: Optional[str] = Field(default=None, max_length=300)
    estimated_cost: Optional[float] = Field(default=None)
    category: ActivityCategory = Field(
        sa_column=Column(SAEnum(ActivityCategory, name="activitycategory"), nullable=False)
    )
    order: int = Field(default=0, description="Display position within the day")
    itinerary_day_id: PyUUID = Field(
        foreign_key="itinerary_days.id", nullable=False, ondelete="CASCADE"
    )

    # Relationships
    itinerary_day: Optional[ItineraryDay] = Relationship(back_populates="activities")


class SavedDestination(AuditMixin, table=True):
    __tablename__ = "saved_destinations"

    __table_args__ = (
        Index("idx_saved_destinations_user_id", "user_id"),
        Index("idx_saved_destinations_priority", "priority"),
    )

    id: PyUUID = Field(default_factory=uuid.uuid4, primary_key=True)
    name: str = Field(max_length=200)
    country: str = Field(max_length=100)
    description: Optional[str] = Field(default=None)
    image_url: Optional[str] = Field(default=None)
    notes: Optional[str] = Field(default=None)
    priority: Priority = Field(
        default=Priority.MEDIUM,
        sa_column=Column(
            SAEnum(Priority, name="priority"),
            nullable=False,
            default=Priority.MEDIUM,
        ),
    )
    best_season: Optional[str] = Field(default=None, max_length=100)
    estimated_budget: Optional[float] = Field(default=None)
    tags: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    user_id: PyUUID = Field(foreign_key="users.id", nullable=False, ondelete="CASCADE")

    # Relationships
    user: Optional[User] = Relationship(back_populates="saved_destinations")
