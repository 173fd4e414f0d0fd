"""Location helpers: virtual platforms, display text, registration notes."""

import re
from typing import Optional
from urllib.parse import urlparse

from luma_pipeline.models import BaseLocation, LocationType

REGISTRATION_MESSAGE = "Please register to see the exact location of this event"
UNKNOWN_LOCATION = "Location not specified"

# Meeting platforms, matched against a URL hostname
VIRTUAL_PLATFORMS = [
    ("Zoom", re.compile(r"zoom\.us|zoomus\.cn", re.I)),
    ("Google Meet", re.compile(r"meet\.google\.com", re.I)),
    ("Microsoft Teams", re.compile(r"teams\.microsoft\.com|teams\.live\.com", re.I)),
    ("Webex", re.compile(r"webex\.com", re.I)),
    ("Skype", re.compile(r"skype\.com", re.I)),
    ("Discord", re.compile(r"discord\.com|discord\.gg", re.I)),
    ("Slack", re.compile(r"slack\.com", re.I)),
]

# Hosts that belong to Luma itself and never identify a meeting link
LUMA_HOSTS = ("lu.ma", "luma.com", "lumacdn.com")

# Countries recognised in "City, Country" fragments
KNOWN_COUNTRIES = [
    # Asia
    "Taiwan", "Japan", "South Korea", "Korea", "Singapore", "Thailand", "Vietnam",
    "Malaysia", "Indonesia", "Philippines", "Hong Kong", "China", "India",
    "United Arab Emirates", "UAE", "Israel",
    # Europe
    "United Kingdom", "UK", "Germany", "France", "Spain", "Italy", "Netherlands",
    "Portugal", "Switzerland", "Ireland", "Poland",
    # Americas
    "United States", "USA", "Canada", "Mexico", "Brazil", "Argentina",
    # Oceania
    "Australia", "New Zealand",
]


def is_luma_host(host: str) -> bool:
    """True for lu.ma and its CDN/sibling domains."""
    host = host.lower()
    return any(host == h or host.endswith("." + h) for h in LUMA_HOSTS)


def extract_domain(url: str) -> str:
    """Hostname of a URL, or the input unchanged when it does not parse."""
    if not url:
        return ""
    normalized = url if url.startswith("http") else f"https://{url}"
    try:
        return urlparse(normalized).hostname or url
    except ValueError:
        return url


def detect_virtual_platform(url: str) -> Optional[str]:
    """Name the meeting platform behind a URL.

    Returns the platform name, "Virtual" for any other URL, or None when the
    input is not a URL at all.
    """
    if not url or len(url) < 4 or "." not in url:
        return None

    host = extract_domain(url)
    if " " in host or "." not in host:
        return None

    for name, pattern in VIRTUAL_PLATFORMS:
        if pattern.search(host):
            return name
    return "Virtual"


def format_location_display(location: BaseLocation) -> str:
    """One-line label for a location, as shown on event cards."""
    if location.location_type == LocationType.VIRTUAL:
        return location.name or "Virtual Event"

    if is_registration_required(location.name):
        return extract_city_from_registration_text(location.name) or "Registration required"

    if location.city and location.country:
        return f"{location.city}, {location.country}"

    if location.city or location.country:
        return location.city or location.country

    return location.name or location.address


def is_registration_required(text: str) -> bool:
    """Check whether a location label hides the venue behind registration."""
    return (
        "register to see" in text
        or "register to view" in text
        or re.search(r"\[[^\]]+\]\s+Please register", text, re.I) is not None
    )


def extract_city_from_registration_text(text: str) -> str:
    """Pull "Taipei" out of "[Taipei] Please register ..."."""
    match = re.match(r"\s*\[([^\]]+)\]", text)
    return match.group(1).strip() if match else ""
