"""Luma page → EventRecord extraction engine.

This module provides a heuristic extraction pipeline that:
1. Fetches HTML from Luma event pages
2. Extracts each field with an ordered list of fallback strategies:
   - Title, cover image, description, category
   - Schedule (start/end/timezone) from visible text or embedded JSON
   - Venue: virtual, geocoded, custom, registration-gated or unknown
3. Synthesizes tags and returns a frozen EventRecord
"""

from luma_pipeline.extractors.fetch import fetch_page, is_luma_url, FetchResult
from luma_pipeline.extractors.fields import (
    extract_category,
    extract_cover_image,
    extract_description,
    extract_title,
    parse_html,
)
from luma_pipeline.extractors.schedule import extract_schedule
from luma_pipeline.extractors.location import resolve_location
from luma_pipeline.extractors.tags import synthesize_tags
from luma_pipeline.extractors.pipeline import (
    ExtractionResult,
    extract_event,
    extract_event_from_url,
    extract_events_batch,
)

__all__ = [
    "fetch_page",
    "is_luma_url",
    "FetchResult",
    "extract_category",
    "extract_cover_image",
    "extract_description",
    "extract_title",
    "parse_html",
    "extract_schedule",
    "resolve_location",
    "synthesize_tags",
    "ExtractionResult",
    "extract_event",
    "extract_event_from_url",
    "extract_events_batch",
]
