"""External lookups that enrich extracted events."""

from luma_pipeline.enrichers.places import lookup_place, parse_place_details

__all__ = [
    "lookup_place",
    "parse_place_details",
]
