"""Data models for extracted Luma events."""

from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class LocationType(str, Enum):
    """Kind of venue a location describes."""

    GOOGLE = "google"  # Geocoded place (has place_id)
    VIRTUAL = "virtual"  # Meeting link or platform
    CUSTOM = "custom"  # Free-text address


class BaseLocation(BaseModel):
    """Fields shared by every location variant."""

    model_config = ConfigDict(frozen=True)

    name: str = ""
    full_address: str = ""
    address: str = ""
    city: str = ""
    country: str = ""
    postal_code: str = ""
    description: str = ""  # Free-text note, e.g. a registration-gate message


class GoogleLocation(BaseLocation):
    """A place resolved through the geocoder."""

    location_type: Literal[LocationType.GOOGLE] = LocationType.GOOGLE
    place_id: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    @field_validator("place_id")
    @classmethod
    def place_id_required(cls, value: str) -> str:
        if not value:
            raise ValueError("google locations need a place_id")
        return value


class VirtualLocation(BaseLocation):
    """An online event; name holds the meeting URL or platform name."""

    location_type: Literal[LocationType.VIRTUAL] = LocationType.VIRTUAL


class CustomLocation(BaseLocation):
    """A free-text venue, including registration-gated and unknown ones."""

    location_type: Literal[LocationType.CUSTOM] = LocationType.CUSTOM


Location = Annotated[
    Union[GoogleLocation, VirtualLocation, CustomLocation],
    Field(discriminator="location_type"),
]


class PlaceDetails(BaseModel):
    """Geocoder answer for a place_id."""

    place_id: str = ""
    name: str = ""
    address: str = ""
    full_address: str = ""
    city: str = ""
    country: str = ""
    postal_code: str = ""
    latitude: Optional[float] = None
    longitude: Optional[float] = None


class Schedule(BaseModel):
    """Start/end timestamps plus the timezone label they were shown in."""

    model_config = ConfigDict(frozen=True)

    start_at: str
    end_at: str
    timezone: str = "UTC"


class EventRecord(BaseModel):
    """Structured event reconstructed from a single HTML snapshot."""

    model_config = ConfigDict(frozen=True)

    title: str = ""
    description: str = ""
    cover_image: str = ""
    start_at: str
    end_at: str
    timezone: str = "UTC"
    location: Location
    category: str = ""
    tags: list[str] = Field(default_factory=list)

    def to_record(self) -> dict:
        """Convert to the camelCase payload the event form consumes."""
        return {
            "title": self.title,
            "description": self.description,
            "coverImage": self.cover_image,
            "startAt": self.start_at,
            "endAt": self.end_at,
            "timezone": self.timezone,
            "location": self.location.model_dump(mode="json", exclude_none=True),
            "category": self.category,
            "tags": list(self.tags),
        }
