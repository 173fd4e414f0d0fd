"""Venue resolution for Luma event pages.

The page never states its venue in a stable, machine-readable way, so the
resolver checks a fixed sequence of signals and the first that fires decides
the location type:

1. Virtual event wording  -> VirtualLocation
2. geo_address_info with a place_id  -> GoogleLocation (geocoded)
3. geo_address_info with any address text  -> CustomLocation
4. Address hidden until registration  -> CustomLocation with a notice
5. Nothing  -> CustomLocation "Location not specified"
"""

import re
from typing import Awaitable, Callable, Optional

from bs4 import BeautifulSoup
from rich.console import Console

from luma_pipeline.extractors.embedded import GeoAddressInfo, extract_geo_address_info
from luma_pipeline.models import CustomLocation, GoogleLocation, Location, PlaceDetails, VirtualLocation
from luma_pipeline.normalizers.location import (
    KNOWN_COUNTRIES,
    REGISTRATION_MESSAGE,
    UNKNOWN_LOCATION,
    detect_virtual_platform,
    extract_domain,
    is_luma_host,
)
from luma_pipeline.normalizers.text import normalize_text

console = Console()

Geocoder = Callable[[str, str], Awaitable[Optional[PlaceDetails]]]

# --- Virtual events ---

VIRTUAL_EVENT_PATTERNS = [
    re.compile(r"online\s+event", re.I),
    re.compile(r"virtual\s+event", re.I),
    re.compile(r"webinar", re.I),
]
ZOOM_MENTION = re.compile(r"\bzoom\b", re.I)
ZOOM_NEGATION = re.compile(r"zoom is not", re.I)

_URL_TAIL = r"[^\s\"'<>\\]+"
MEETING_URL_PATTERNS = [
    ("Zoom", re.compile(rf"https?://(?:[\w-]+\.)*zoom\.us/{_URL_TAIL}", re.I)),
    ("Google Meet", re.compile(rf"https?://meet\.google\.com/{_URL_TAIL}", re.I)),
    ("Microsoft Teams", re.compile(rf"https?://teams\.(?:microsoft|live)\.com/{_URL_TAIL}", re.I)),
    ("Webex", re.compile(rf"https?://(?:[\w-]+\.)*webex\.com/{_URL_TAIL}", re.I)),
]
PLATFORM_KEYWORDS = [
    ("Zoom", "zoom"),
    ("Google Meet", "google meet"),
    ("Microsoft Teams", "microsoft teams"),
    ("Webex", "webex"),
]
ANY_URL = re.compile(r"https?://([\w.-]+\.[a-z]{2,})(?::\d+)?(?:[/?#][^\s\"'<>\\]*)?", re.I)

# --- Registration-gated venues ---

REGISTRATION_PHRASES = [
    "Please register to see the exact location",
    "Register to see address",
    "Register to See Address",
    "register to see the address",
]
REGISTRATION_PATTERNS = [
    re.compile(r"address.*hidden until", re.I),
    re.compile(r"venue.*revealed", re.I),
]
REQUEST_TO_JOIN = "Request to Join"
LOCATION_HIDDEN = re.compile(r"location.{0,100}hidden", re.I | re.S)
LOCATION_LABELS = ("Location", "Address")
MAX_COARSE_LENGTH = 80

_COUNTRIES = "|".join(re.escape(c) for c in KNOWN_COUNTRIES)
COARSE_LOCATION_PATTERNS = [
    # 大安區, 台北市
    re.compile(r"([\u4e00-\u9fff]{1,4}區)\s*[,，]\s*([\u4e00-\u9fff]{1,4}市)"),
    # Da'an District, Taipei City
    re.compile(r"([A-Z][\w']+(?: [A-Z][\w']+)? District)\s*,\s*([A-Z][a-z]+(?: City)?)"),
    # 台北市, 台灣
    re.compile(r"([\u4e00-\u9fff]{1,4}市)\s*[,，]\s*([\u4e00-\u9fff]{2,5})"),
    # Taipei City, Taiwan
    re.compile(rf"([A-Z][a-z]+(?: [A-Z][a-z]+)?)\s*,\s*({_COUNTRIES})\b"),
]


def is_virtual_event(html: str) -> bool:
    if any(pattern.search(html) for pattern in VIRTUAL_EVENT_PATTERNS):
        return True
    return bool(ZOOM_MENTION.search(html)) and not ZOOM_NEGATION.search(html)


def find_meeting_url(html: str) -> Optional[str]:
    for _, pattern in MEETING_URL_PATTERNS:
        match = pattern.search(html)
        if match:
            return match.group(0)
    return None


def find_platform_name(html: str) -> Optional[str]:
    lowered = html.lower()
    for name, keyword in PLATFORM_KEYWORDS:
        if keyword in lowered:
            return name
    return None


def find_external_domain(html: str) -> Optional[str]:
    for match in ANY_URL.finditer(html):
        host = match.group(1).lower()
        if not is_luma_host(host):
            return host
    return None


def build_virtual_location(html: str) -> VirtualLocation:
    """Meeting URL, else platform name, else any outside domain, else "Virtual"."""
    url = find_meeting_url(html)
    if url:
        return VirtualLocation(
            name=url,
            address=extract_domain(url),
            full_address=url,
            description=detect_virtual_platform(url) or "",
        )

    platform = find_platform_name(html)
    if platform:
        return VirtualLocation(name=platform, description=platform)

    domain = find_external_domain(html)
    if domain:
        return VirtualLocation(name=domain, address=domain, description="Virtual")

    return VirtualLocation(name="Virtual")


# --- Geocoded and custom venues ---


def build_google_location(place_id: str, geo: GeoAddressInfo, details: PlaceDetails) -> GoogleLocation:
    """Geocoder fields first, embedded fields as fallback."""
    return GoogleLocation(
        place_id=place_id,
        name=details.name or geo.name,
        address=details.address or geo.address,
        full_address=details.full_address or details.address or geo.full_address,
        city=details.city or geo.city,
        country=details.country or geo.country,
        postal_code=details.postal_code,
        description=geo.description,
        latitude=details.latitude,
        longitude=details.longitude,
    )


def _custom_fields(geo: GeoAddressInfo) -> dict:
    return {
        "name": geo.name or geo.description,
        "address": geo.address or geo.full_address,
        "full_address": geo.full_address or geo.address,
        "city": geo.city,
        "country": geo.country,
        "description": geo.description,
    }


def build_ungeocoded_location(place_id: str, geo: GeoAddressInfo) -> GoogleLocation:
    # Built like a custom address but still typed GOOGLE with the page's
    # place_id, so a later pass can retry the lookup.
    return GoogleLocation(place_id=place_id, **_custom_fields(geo))


def build_custom_location(geo: GeoAddressInfo) -> CustomLocation:
    return CustomLocation(**_custom_fields(geo))


async def geocode_place(
    place_id: str,
    geocode: Optional[Geocoder],
    api_key: str,
) -> Optional[PlaceDetails]:
    """Call the geocoder, turning any failure into None."""
    if geocode is None:
        return None
    try:
        return await geocode(place_id, api_key)
    except Exception as e:
        console.print(f"[dim]Geocoding failed for {place_id}: {e}[/dim]")
        return None


def _label_elements(soup: BeautifulSoup):
    for string in soup.find_all(string=True):
        if normalize_text(string) in LOCATION_LABELS and string.parent is not None:
            yield string.parent


def has_registration_gate(soup: BeautifulSoup, html: str) -> bool:
    if any(phrase in html for phrase in REGISTRATION_PHRASES):
        return True
    if REQUEST_TO_JOIN in html and LOCATION_HIDDEN.search(html):
        return True
    if any(pattern.search(html) for pattern in REGISTRATION_PATTERNS):
        return True

    for label in _label_elements(soup):
        sibling = label.find_next_sibling()
        if sibling is not None and "register" in sibling.get_text(" ").lower():
            return True
    return False


def coarse_location_after_label(soup: BeautifulSoup) -> Optional[str]:
    """Text right after a "Location" label, unless it is itself a notice."""
    for label in _label_elements(soup):
        if normalize_text(label.get_text(" ")) != "Location":
            continue
        sibling = label.find_next_sibling()
        if sibling is None:
            continue
        text = normalize_text(sibling.get_text(" "))
        if not text or len(text) > MAX_COARSE_LENGTH:
            continue
        if "register" in text.lower() or "Online" in text:
            continue
        return text
    return None


def coarse_location_from_patterns(html: str) -> Optional[str]:
    for pattern in COARSE_LOCATION_PATTERNS:
        match = pattern.search(html)
        if match:
            return f"{match.group(1)}, {match.group(2)}"
    return None


def find_coarse_location(soup: BeautifulSoup, html: str, geo: GeoAddressInfo) -> Optional[str]:
    return (
        geo.city_state
        or coarse_location_after_label(soup)
        or coarse_location_from_patterns(html)
    )


def build_registration_location(coarse: Optional[str]) -> CustomLocation:
    if coarse:
        return CustomLocation(name=f"[{coarse}] {REGISTRATION_MESSAGE}", description=REGISTRATION_MESSAGE)
    return CustomLocation(name=REGISTRATION_MESSAGE, description=REGISTRATION_MESSAGE)


async def resolve_location(
    soup: BeautifulSoup,
    html: str,
    geocode: Optional[Geocoder] = None,
    api_key: str = "",
) -> Location:
    """Classify the event venue. Never raises for geocoder failures."""
    if is_virtual_event(html):
        return build_virtual_location(html)

    geo = extract_geo_address_info(html)

    if geo.place_id:
        details = await geocode_place(geo.place_id, geocode, api_key)
        if details is not None:
            return build_google_location(geo.place_id, geo, details)
        return build_ungeocoded_location(geo.place_id, geo)

    if geo.full_address or geo.address or geo.description:
        return build_custom_location(geo)

    if has_registration_gate(soup, html):
        return build_registration_location(find_coarse_location(soup, html, geo))

    return CustomLocation(name=UNKNOWN_LOCATION)
