"""Best-effort reads of the JSON Luma embeds in its pages.

Luma ships event data inside Next.js payloads, sometimes as plain JSON and
sometimes as a backslash-escaped string inside another script. The captured
fragment is often not valid JSON on its own, so fields are pulled out one by
one with targeted regexes instead of a full parse.
"""

import json
import re
from typing import Optional

from pydantic import BaseModel

# Flat object following the key, in plain or escaped ("\"key\":{...}") form
GEO_BLOCK_PATTERN = re.compile(r'\\?"geo_address_info\\?"\s*:\s*(\{[^{}]*\})')

GEO_FIELDS = ("place_id", "address", "city", "country", "full_address", "description", "city_state")


class GeoAddressInfo(BaseModel):
    """Fields recovered from a geo_address_info block; any may be empty."""

    place_id: str = ""
    address: str = ""
    city: str = ""
    country: str = ""
    full_address: str = ""
    description: str = ""
    city_state: str = ""

    @property
    def name(self) -> str:
        # Luma stores the venue's short name under "address"
        return self.address or self.full_address


def find_geo_block(html: str) -> Optional[str]:
    """Return the repaired geo_address_info object text, if present."""
    match = GEO_BLOCK_PATTERN.search(html)
    if not match:
        return None
    return repair_block(match.group(1))


def repair_block(block: str) -> str:
    """Undo one level of string escaping so field regexes see plain JSON."""
    if '\\"' in block:
        block = block.replace('\\\\', '\\').replace('\\"', '"')
    block = block.strip()
    if not block.startswith("{"):
        block = "{" + block
    if not block.endswith("}"):
        block = block + "}"
    return block


def _unescape(value: str) -> str:
    try:
        return json.loads(f'"{value}"')
    except ValueError:
        return value


def extract_string_field(block: str, field: str) -> str:
    """Pull one string-valued field out of a JSON-ish object."""
    match = re.search(rf'"{re.escape(field)}"\s*:\s*"((?:[^"\\]|\\.)*)"', block)
    if not match:
        return ""
    return _unescape(match.group(1)).strip()


def extract_geo_address_info(html: str) -> GeoAddressInfo:
    """Parse the geo_address_info block; missing fields stay empty."""
    block = find_geo_block(html)
    if not block:
        return GeoAddressInfo()
    return GeoAddressInfo(**{field: extract_string_field(block, field) for field in GEO_FIELDS})


def extract_json_string(html: str, key: str) -> Optional[str]:
    """First "key":"value" pair anywhere in the page, escaped or not."""
    match = re.search(rf'\\?"{re.escape(key)}\\?"\s*:\s*\\?"([^"\\]+)\\?"', html)
    return match.group(1) if match else None
