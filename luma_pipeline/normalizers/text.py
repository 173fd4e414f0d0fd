"""Text cleanup shared by every extractor."""

import html as html_lib
import re

# Zero-width spaces/joiners, direction marks, bidi embeddings, word joiner,
# invisible operators, BOM and soft hyphen
INVISIBLE_CHARS = re.compile("[\u200b-\u200f\u202a-\u202e\u2060-\u2064\ufeff\u00ad]")
WHITESPACE = re.compile(r"\s+")
TAG = re.compile(r"<[^>]+>")


def normalize_text(text: str) -> str:
    """Drop invisible characters, collapse whitespace and trim."""
    if not text:
        return ""
    text = INVISIBLE_CHARS.sub("", text)
    text = WHITESPACE.sub(" ", text)
    return text.strip()


def strip_tags(fragment: str) -> str:
    """Turn an HTML fragment into normalized plain text."""
    if not fragment:
        return ""
    text = TAG.sub(" ", fragment)
    return normalize_text(html_lib.unescape(text))


def truncate(text: str, max_length: int, ellipsis: str = "...") -> str:
    """Cut text to max_length characters, ellipsis included."""
    if len(text) <= max_length:
        return text
    return text[:max_length - len(ellipsis)].rstrip() + ellipsis
