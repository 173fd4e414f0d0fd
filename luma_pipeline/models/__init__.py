"""Data models for the Luma pipeline."""

from luma_pipeline.models.event import (
    BaseLocation,
    CustomLocation,
    EventRecord,
    GoogleLocation,
    Location,
    LocationType,
    PlaceDetails,
    Schedule,
    VirtualLocation,
)

__all__ = [
    "BaseLocation",
    "CustomLocation",
    "EventRecord",
    "GoogleLocation",
    "Location",
    "LocationType",
    "PlaceDetails",
    "Schedule",
    "VirtualLocation",
]
