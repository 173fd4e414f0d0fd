"""CLI for the Luma extraction pipeline."""

import asyncio
import json
import os
from pathlib import Path
from typing import Optional

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table

from luma_pipeline.enrichers.places import lookup_place
from luma_pipeline.extractors.pipeline import (
    extract_event,
    extract_event_from_url,
    extract_events_batch,
)
from luma_pipeline.models import EventRecord
from luma_pipeline.normalizers.location import format_location_display

# Load environment variables (override=True to beat shell env vars)
load_dotenv(override=True)

app = typer.Typer(
    name="luma-pipeline",
    help="Luma event page extraction",
    add_completion=False,
)
console = Console()


def get_api_key(geocode: bool) -> str:
    """Places API key from the environment, or "" when geocoding is off."""
    if not geocode:
        return ""
    return os.environ.get("GOOGLE_MAPS_API_KEY", "")


def print_event(event: EventRecord) -> None:
    console.print(f"\n[bold green]Extracted:[/bold green]")
    console.print(f"  Title: {event.title or 'N/A'}")
    console.print(f"  Description: {event.description[:100] if event.description else 'N/A'}...")
    console.print(f"  Start: {event.start_at}")
    console.print(f"  End: {event.end_at}")
    console.print(f"  Timezone: {event.timezone}")
    console.print(f"  Location: {format_location_display(event.location) or 'N/A'} "
                  f"[dim]({event.location.location_type.value})[/dim]")
    console.print(f"  Category: {event.category or 'N/A'}")
    console.print(f"  Tags: {event.tags}")
    if event.cover_image:
        console.print(f"  Cover: {event.cover_image}")


@app.command()
def extract(
    url: str = typer.Option(None, "--url", "-u", help="Luma event URL to fetch"),
    file: Path = typer.Option(None, "--file", "-f", help="Saved HTML page to extract"),
    as_json: bool = typer.Option(False, "--json", help="Print the record as JSON"),
    geocode: bool = typer.Option(True, "--geocode/--no-geocode", help="Resolve place_ids via Google Places"),
    use_cache: bool = typer.Option(True, "--cache/--no-cache", help="Use cached HTML"),
):
    """Extract one event from a Luma URL or a saved HTML file."""
    if not url and not file:
        console.print("[red]Pass --url or --file[/red]")
        raise typer.Exit(1)

    api_key = get_api_key(geocode)
    geocoder = lookup_place if api_key else None

    if file:
        if not file.exists():
            console.print(f"[red]File not found: {file}[/red]")
            raise typer.Exit(1)
        html = file.read_text(encoding="utf-8")
        event = asyncio.run(extract_event(html, geocode=geocoder, api_key=api_key))
    else:
        result = asyncio.run(
            extract_event_from_url(url, geocode=geocoder, api_key=api_key, use_cache=use_cache)
        )
        if not result.ok:
            console.print(f"[red]Extraction failed: {result.error_reason}[/red]")
            raise typer.Exit(1)
        event = result.event

    if as_json:
        typer.echo(json.dumps(event.to_record(), ensure_ascii=False, indent=2))
    else:
        print_event(event)


@app.command()
def batch(
    urls_file: Path = typer.Argument(..., help="Text file with one Luma URL per line"),
    workers: int = typer.Option(3, "--workers", "-w", help="Concurrent extractions"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write records to a JSON file"),
    geocode: bool = typer.Option(True, "--geocode/--no-geocode", help="Resolve place_ids via Google Places"),
):
    """Extract every event listed in a file."""
    if not urls_file.exists():
        console.print(f"[red]File not found: {urls_file}[/red]")
        raise typer.Exit(1)

    urls = [
        line.strip() for line in urls_file.read_text(encoding="utf-8").splitlines()
        if line.strip() and not line.startswith("#")
    ]
    if not urls:
        console.print("[yellow]No URLs to extract[/yellow]")
        raise typer.Exit(0)

    api_key = get_api_key(geocode)
    geocoder = lookup_place if api_key else None
    results = asyncio.run(
        extract_events_batch(urls, max_concurrent=workers, geocode=geocoder, api_key=api_key)
    )

    table = Table(title=f"Extracted Events ({sum(1 for r in results if r.ok)}/{len(results)})")
    table.add_column("Title", style="cyan", max_width=40)
    table.add_column("Start", style="magenta")
    table.add_column("Location", style="green", max_width=30)
    table.add_column("Tags", style="blue", max_width=30)

    for result in results[:20]:
        if not result.ok:
            table.add_row(result.url[:40], "-", f"[red]{result.error_reason}[/red]", "-")
            continue
        event = result.event
        table.add_row(
            event.title[:40] or "?",
            event.start_at,
            format_location_display(event.location)[:30] or "?",
            ", ".join(event.tags[:3]) or "-",
        )

    console.print(table)

    if output:
        records = [r.event.to_record() for r in results if r.ok]
        output.write_text(json.dumps(records, ensure_ascii=False, indent=2), encoding="utf-8")
        console.print(f"[green]Wrote {len(records)} records to {output}[/green]")


@app.command()
def place(
    place_id: str = typer.Argument(..., help="Google place_id"),
):
    """Look up a place_id with Google Places (debugging aid)."""
    api_key = get_api_key(True)
    if not api_key:
        console.print("[red]GOOGLE_MAPS_API_KEY is not set[/red]")
        console.print("[dim]Add it to .env or export it in your shell[/dim]")
        raise typer.Exit(1)

    details = asyncio.run(lookup_place(place_id, api_key))
    if details is None:
        console.print(f"[yellow]No place found for {place_id}[/yellow]")
        raise typer.Exit(1)

    console.print(f"\n[bold]{details.name}[/bold]")
    console.print(f"  Address: {details.full_address or details.address}")
    console.print(f"  City: {details.city or '-'}")
    console.print(f"  Country: {details.country or '-'}")
    console.print(f"  Postal code: {details.postal_code or '-'}")
    if details.latitude is not None:
        console.print(f"  Coords: {details.latitude:.5f}, {details.longitude:.5f}")


if __name__ == "__main__":
    app()
