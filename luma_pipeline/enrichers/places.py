"""Google Places (New) lookup used to geocode Luma venues.

Only the place details endpoint is used: Luma already hands us a place_id,
so there is nothing to search for.
"""

import asyncio
from typing import Optional

import httpx
from rich.console import Console

from luma_pipeline.models import PlaceDetails

console = Console()

PLACES_DETAILS_URL = "https://places.googleapis.com/v1/places/{place_id}"
FIELD_MASK = "id,displayName,formattedAddress,shortFormattedAddress,location,addressComponents"


def parse_place_details(place_id: str, data: dict) -> PlaceDetails:
    """Map a Places API response onto PlaceDetails."""
    city = ""
    region = ""
    country = ""
    postal_code = ""

    for component in data.get("addressComponents") or []:
        types = component.get("types") or []
        text = component.get("longText") or ""
        if "locality" in types:
            city = text
        elif "country" in types:
            country = text
        elif "postal_code" in types:
            postal_code = text
        elif "administrative_area_level_1" in types:
            region = text

    location = data.get("location") or {}
    formatted = data.get("formattedAddress") or ""

    return PlaceDetails(
        place_id=data.get("id") or place_id,
        name=(data.get("displayName") or {}).get("text") or "",
        address=data.get("shortFormattedAddress") or formatted,
        full_address=formatted,
        city=city or region,
        country=country,
        postal_code=postal_code,
        latitude=location.get("latitude"),
        longitude=location.get("longitude"),
    )


async def lookup_place(
    place_id: str,
    api_key: str,
    timeout: float = 10.0,
    retries: int = 2,
    client: Optional[httpx.AsyncClient] = None,
) -> Optional[PlaceDetails]:
    """Fetch details for a place_id.

    Returns None when there is no key, the place is unknown, or the API
    refuses the request. Transport errors are retried, then re-raised.

    Args:
        place_id: Google place identifier
        api_key: Places API key
        timeout: Per-request timeout in seconds
        retries: Extra attempts after a transport error
        client: Optional shared client (tests inject a mock transport)
    """
    if not place_id or not api_key:
        return None

    url = PLACES_DETAILS_URL.format(place_id=place_id)
    headers = {
        "X-Goog-Api-Key": api_key,
        "X-Goog-FieldMask": FIELD_MASK,
    }

    owns_client = client is None
    if client is None:
        client = httpx.AsyncClient(timeout=timeout)

    try:
        for attempt in range(retries + 1):
            try:
                response = await client.get(url, headers=headers)
            except httpx.TransportError as e:
                if attempt == retries:
                    raise
                console.print(f"[dim]Places lookup retry {attempt + 1} for {place_id}: {type(e).__name__}[/dim]")
                await asyncio.sleep(0.5 * (2 ** attempt))
                continue

            if response.status_code == 200:
                return parse_place_details(place_id, response.json())

            if response.status_code in (429, 500, 502, 503) and attempt < retries:
                await asyncio.sleep(0.5 * (2 ** attempt))
                continue

            console.print(f"[dim]Places lookup for {place_id} returned {response.status_code}[/dim]")
            return None
    finally:
        if owns_client:
            await client.aclose()

    return None
