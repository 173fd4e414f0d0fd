"""Main extraction pipeline orchestrator.

Runs every field extractor over one HTML snapshot, resolves the venue, builds
tags and returns the assembled EventRecord. Extractors are independent; only
tag synthesis depends on the others' output.
"""

import asyncio
from datetime import datetime
from typing import Callable, Optional, TypeVar

from rich.console import Console
from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn

from luma_pipeline.extractors.fetch import fetch_page, is_luma_url
from luma_pipeline.extractors.fields import (
    extract_category,
    extract_cover_image,
    extract_description,
    extract_title,
    parse_html,
)
from luma_pipeline.extractors.location import Geocoder, resolve_location
from luma_pipeline.extractors.schedule import default_schedule, extract_schedule
from luma_pipeline.extractors.tags import synthesize_tags
from luma_pipeline.models import CustomLocation, EventRecord
from luma_pipeline.normalizers.location import UNKNOWN_LOCATION

console = Console()

T = TypeVar("T")


def run_extractor(name: str, default: T, func: Callable[..., T], *args) -> T:
    """Run one extractor; a crash degrades to the field default."""
    try:
        return func(*args)
    except Exception as e:
        console.print(f"[dim]{name} extraction failed: {type(e).__name__}: {e}[/dim]")
        return default


async def extract_event(
    html: str,
    geocode: Optional[Geocoder] = None,
    api_key: str = "",
    now: Optional[datetime] = None,
) -> EventRecord:
    """Extract a structured event from raw Luma page HTML.

    Args:
        html: Raw page markup
        geocode: Async place lookup, called as geocode(place_id, api_key)
        api_key: Passed through to the geocoder
        now: Clock used when the page shows no date (defaults to UTC now)
    """
    html = html or ""
    soup = parse_html(html)

    title = run_extractor("title", "", extract_title, soup)
    description = run_extractor("description", "", extract_description, soup, html)
    cover_image = run_extractor("cover image", "", extract_cover_image, soup)
    category = run_extractor("category", "", extract_category, html)
    schedule = run_extractor("schedule", None, extract_schedule, soup, html, now) or default_schedule(now)

    try:
        location = await resolve_location(soup, html, geocode=geocode, api_key=api_key)
    except Exception as e:
        console.print(f"[dim]location resolution failed: {type(e).__name__}: {e}[/dim]")
        location = CustomLocation(name=UNKNOWN_LOCATION)

    tags = run_extractor("tags", [], synthesize_tags, title, description, category, location)

    return EventRecord(
        title=title,
        description=description,
        cover_image=cover_image,
        start_at=schedule.start_at,
        end_at=schedule.end_at,
        timezone=schedule.timezone,
        location=location,
        category=category,
        tags=tags,
    )


class ExtractionResult:
    """Result of a URL extraction with fetch metadata."""
    def __init__(
        self,
        url: str,
        event: Optional[EventRecord],
        http_status: Optional[int] = None,
        error_reason: Optional[str] = None,
    ):
        self.url = url
        self.event = event
        self.http_status = http_status
        self.error_reason = error_reason

    @property
    def ok(self) -> bool:
        return self.event is not None


async def extract_event_from_url(
    url: str,
    geocode: Optional[Geocoder] = None,
    api_key: str = "",
    use_cache: bool = True,
    **fetch_options,
) -> ExtractionResult:
    """Fetch a Luma event page and extract it."""
    if not is_luma_url(url):
        console.print(f"[red]Not a Luma event URL: {url}[/red]")
        return ExtractionResult(url, None, error_reason="invalid_url")

    fetched = await fetch_page(url, use_cache=use_cache, **fetch_options)
    if not fetched.html:
        return ExtractionResult(url, None, fetched.http_status, fetched.error_reason or "empty")

    event = await extract_event(fetched.html, geocode=geocode, api_key=api_key)
    console.print(
        f"[green]Extracted:[/green] {event.title[:50] or '(untitled)'} "
        f"[dim]({event.location.location_type.value}, {len(event.tags)} tags)[/dim]"
    )
    return ExtractionResult(url, event, fetched.http_status)


async def extract_events_batch(
    urls: list[str],
    max_concurrent: int = 5,
    geocode: Optional[Geocoder] = None,
    api_key: str = "",
    use_cache: bool = True,
    **fetch_options,
) -> list[ExtractionResult]:
    """Extract many pages concurrently, preserving input order."""
    semaphore = asyncio.Semaphore(max_concurrent)

    async def process(url: str) -> ExtractionResult:
        async with semaphore:
            try:
                return await extract_event_from_url(
                    url,
                    geocode=geocode,
                    api_key=api_key,
                    use_cache=use_cache,
                    **fetch_options,
                )
            except Exception as e:
                console.print(f"[red]Error extracting {url}: {e}[/red]")
                return ExtractionResult(url, None, error_reason=f"exception:{type(e).__name__}")

    results: list[ExtractionResult] = []
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TextColumn("{task.completed}/{task.total}"),
        console=console,
    ) as progress:
        task = progress.add_task("Extracting events...", total=len(urls))

        async def tracked(url: str) -> ExtractionResult:
            result = await process(url)
            progress.advance(task)
            return result

        results = await asyncio.gather(*(tracked(url) for url in urls))

    succeeded = sum(1 for r in results if r.ok)
    console.print(f"\n[green]Successfully extracted {succeeded}/{len(urls)} events[/green]")
    return list(results)
