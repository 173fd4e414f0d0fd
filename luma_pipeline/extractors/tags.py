"""Tag synthesis for extracted events."""

from luma_pipeline.models import BaseLocation

MAX_TAGS = 5
MIN_TITLE_WORD_LENGTH = 4

# Matched case-insensitively against title + description
TOPIC_KEYWORDS = [
    "NFT", "Crypto", "Web3", "Blockchain", "DeFi", "DAO", "Ethereum", "Bitcoin",
    "Solana", "Metaverse", "GameFi", "Layer2",
    "Conference", "Meetup", "Workshop", "Hackathon", "Summit", "Forum", "Seminar",
    "Networking",
]

# Matched case-sensitively against the raw title and description
EXACT_KEYWORDS = [
    "AI", "Web3", "Blockchain", "Crypto", "NFT", "DeFi", "DAO", "Startup",
    "Developer", "Community", "Demo Day", "Party",
]


def _add(tags: list[str], tag: str) -> None:
    if tag and tag not in tags:
        tags.append(tag)


def synthesize_tags(
    title: str,
    description: str,
    category: str,
    location: BaseLocation,
) -> list[str]:
    """Build up to five unique tags, most specific sources first."""
    tags: list[str] = []

    if category:
        _add(tags, category)

    text = f"{title} {description}".lower()
    for keyword in TOPIC_KEYWORDS:
        if keyword.lower() in text:
            _add(tags, keyword)

    if location.city:
        _add(tags, location.city)

    for keyword in EXACT_KEYWORDS:
        if keyword in title or keyword in description:
            _add(tags, keyword)

    if "Taipei" in location.name:
        _add(tags, "Taipei")

    if not tags and category:
        _add(tags, category)

    if not tags:
        for word in title.split():
            if len(tags) >= MAX_TAGS:
                break
            if len(word) >= MIN_TITLE_WORD_LENGTH:
                _add(tags, word)

    return tags[:MAX_TAGS]
