"""Single-field extractors for Luma event pages.

Each extractor runs an ordered list of independent strategies and keeps the
first one that produces something.
"""

import re
from typing import Callable, Optional

from bs4 import BeautifulSoup, NavigableString, Tag

from luma_pipeline.extractors.embedded import extract_string_field
from luma_pipeline.normalizers.text import normalize_text, strip_tags, truncate

# src fragments that identify an event cover on Luma's CDN
COVER_IMAGE_MARKERS = ("event-covers",)

# Section heading that introduces the event body
SECTION_LABELS = ("About Event",)
LEAD_IN_PHRASES = ("About Event",)

# Text that marks the end of the description section
STOP_PHRASES = ("Location", "Going", "Registration", "Hosted By", "Presented by")

# Tokens that mean we are looking at serialized props, not prose
NOISE_MARKERS = ('"props"', "pageProps", "__NEXT_DATA__", "initialData", '{"')
INTERNAL_KEYS = ('"props"', "pageProps", "__typename", "api_id")

HEADING_TAGS = ("h1", "h2", "h3", "h4", "h5", "h6")
MIN_FRAGMENT_LENGTH = 10
MIN_PARAGRAPH_LENGTH = 100
RAW_WINDOW_SIZE = 2000
MAX_DESCRIPTION_LENGTH = 500
MAX_ANCESTOR_CLIMB = 4

DescriptionStrategy = Callable[[BeautifulSoup, str], Optional[str]]


def parse_html(html: str) -> BeautifulSoup:
    """Parse a page and drop the elements that never hold visible text."""
    soup = BeautifulSoup(html, "lxml")
    for tag in soup.find_all(["script", "style", "noscript", "template"]):
        tag.decompose()
    return soup


def extract_title(soup: BeautifulSoup) -> str:
    h1 = soup.find("h1")
    if not h1:
        return ""
    return normalize_text(h1.get_text(" "))


def extract_cover_image(soup: BeautifulSoup) -> str:
    for img in soup.find_all("img"):
        src = img.get("src") or ""
        if any(marker in src for marker in COVER_IMAGE_MARKERS):
            return src
    return ""


def has_noise(text: str) -> bool:
    return any(marker in text for marker in NOISE_MARKERS)


def _is_stop(element: Tag, text: str) -> bool:
    if element.name in HEADING_TAGS or element.find(HEADING_TAGS):
        return True
    return any(phrase in text for phrase in STOP_PHRASES)


def _section_start(label: NavigableString) -> Optional[Tag]:
    """Climb from a label's text node to the first ancestor with a next sibling."""
    element = label.parent
    for _ in range(MAX_ANCESTOR_CLIMB):
        if element is None:
            return None
        if element.find_next_sibling() is not None:
            return element
        element = element.parent
    return None


def description_from_section(soup: BeautifulSoup, html: str) -> Optional[str]:
    """Collect the siblings that follow an "About Event" heading."""
    label = soup.find(string=lambda s: s is not None and normalize_text(s) in SECTION_LABELS)
    if label is None:
        return None

    start = _section_start(label)
    if start is None:
        return None

    fragments = []
    for sibling in start.find_next_siblings():
        text = normalize_text(sibling.get_text(" "))
        if _is_stop(sibling, text):
            break
        if len(text) < MIN_FRAGMENT_LENGTH or has_noise(text):
            continue
        fragments.append(text)

    return " ".join(fragments) or None


def description_from_paragraphs(soup: BeautifulSoup, html: str) -> Optional[str]:
    """First leaf paragraph/container with a substantial amount of prose."""
    for element in soup.find_all(["p", "div"]):
        if element.find(["p", "div"]):
            continue
        text = normalize_text(element.get_text(" "))
        if len(text) > MIN_PARAGRAPH_LENGTH and not has_noise(text):
            return text
    return None


def description_from_raw_html(soup: BeautifulSoup, html: str) -> Optional[str]:
    """Fixed window of raw markup after a known lead-in phrase."""
    for phrase in LEAD_IN_PHRASES:
        idx = html.find(phrase)
        if idx == -1:
            continue
        start = idx + len(phrase)
        text = strip_tags(html[start:start + RAW_WINDOW_SIZE])
        if text:
            return truncate(text, MAX_DESCRIPTION_LENGTH)
    return None


DESCRIPTION_STRATEGIES: tuple[DescriptionStrategy, ...] = (
    description_from_section,
    description_from_paragraphs,
    description_from_raw_html,
)


def looks_serialized(text: str) -> bool:
    """True when the text is a leaked props object rather than prose."""
    return text.startswith("{") and any(key in text for key in INTERNAL_KEYS)


def extract_description(soup: BeautifulSoup, html: str) -> str:
    description = ""
    for strategy in DESCRIPTION_STRATEGIES:
        result = strategy(soup, html)
        if result:
            description = result
            break

    description = normalize_text(description)
    if looks_serialized(description):
        return ""
    return description


def extract_category(html: str) -> str:
    """Name of the first category Luma attached to the event."""
    match = re.search(r'\\?"categories\\?"\s*:\s*\[\s*(\{[^{}]*\})', html)
    if not match:
        return ""
    block = match.group(1).replace('\\"', '"')
    return extract_string_field(block, "name")
