"""HTTP fetcher for Luma event pages with retries and an on-disk HTML cache."""

import asyncio
import hashlib
import json
import random
from datetime import datetime
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

import httpx
from rich.console import Console

console = Console()

USER_AGENTS = [
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 14_4) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:134.0) Gecko/20100101 Firefox/134.0",
    "Mozilla/5.0 (X11; Linux x86_64; rv:134.0) Gecko/20100101 Firefox/134.0",
]

LUMA_PAGE_HOSTS = ("lu.ma", "luma.com")

CACHE_DIR = Path(__file__).parent.parent.parent / ".cache" / "html"
CACHE_TTL_HOURS = 24


def is_luma_url(url: str) -> bool:
    """Only https event pages on Luma's own domains are accepted."""
    if not url:
        return False
    parsed = urlparse(url)
    return (
        parsed.scheme == "https"
        and (parsed.hostname or "") in LUMA_PAGE_HOSTS
        and len(parsed.path.strip("/")) > 0
    )


def get_cache_path(url: str, cache_dir: Path = CACHE_DIR) -> Path:
    url_hash = hashlib.sha256(url.encode()).hexdigest()[:16]
    domain = (urlparse(url).netloc or "unknown").replace(".", "_")
    return cache_dir / f"{domain}_{url_hash}.json"


def load_from_cache(cache_path: Path) -> Optional[str]:
    """Cached HTML if present and younger than the TTL."""
    if not cache_path.exists():
        return None
    try:
        with open(cache_path) as f:
            cache = json.load(f)
    except (OSError, json.JSONDecodeError):
        return None

    age_hours = (datetime.now().timestamp() - cache.get("cached_at", 0)) / 3600
    if age_hours >= CACHE_TTL_HOURS:
        return None
    return cache.get("html")


def save_to_cache(cache_path: Path, url: str, html: str) -> None:
    cache_path.parent.mkdir(parents=True, exist_ok=True)
    with open(cache_path, "w") as f:
        json.dump({
            "url": url,
            "cached_at": datetime.now().timestamp(),
            "html": html,
        }, f)


class FetchResult:
    """Result of a page fetch with error details."""
    def __init__(
        self,
        html: Optional[str] = None,
        http_status: Optional[int] = None,
        error_reason: Optional[str] = None,
        cached: bool = False,
    ):
        self.html = html
        self.http_status = http_status
        self.error_reason = error_reason  # "timeout", "connection", "404", ...
        self.cached = cached


async def fetch_page(
    url: str,
    timeout: float = 30.0,
    retries: int = 3,
    use_cache: bool = True,
    cache_dir: Path = CACHE_DIR,
    client: Optional[httpx.AsyncClient] = None,
) -> FetchResult:
    """Fetch a page, retrying transient failures with exponential backoff."""
    cache_path = get_cache_path(url, cache_dir)
    if use_cache:
        html = load_from_cache(cache_path)
        if html:
            return FetchResult(html=html, http_status=200, cached=True)

    headers = {
        "User-Agent": random.choice(USER_AGENTS),
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
        "Accept-Language": "en-US,en;q=0.9",
    }

    owns_client = client is None
    if client is None:
        client = httpx.AsyncClient(timeout=timeout, follow_redirects=True)

    last_error = None
    last_status = None
    try:
        for attempt in range(retries):
            try:
                response = await client.get(url, headers=headers)
                last_status = response.status_code
                response.raise_for_status()
                if use_cache:
                    save_to_cache(cache_path, url, response.text)
                return FetchResult(html=response.text, http_status=response.status_code)

            except httpx.TimeoutException:
                last_error = "timeout"
            except httpx.HTTPStatusError as e:
                last_status = e.response.status_code
                last_error = str(e.response.status_code)
                if e.response.status_code in (403, 429):
                    await asyncio.sleep(2 ** attempt)
                elif e.response.status_code < 500:
                    break  # 404 and friends will not improve
            except httpx.ConnectError:
                last_error = "connection"
            except httpx.HTTPError as e:
                last_error = type(e).__name__.lower()

            if attempt < retries - 1:
                await asyncio.sleep(0.5 * (2 ** attempt))
    finally:
        if owns_client:
            await client.aclose()

    console.print(f"[dim]Fetch failed for {url}: {last_error}[/dim]")
    return FetchResult(http_status=last_status, error_reason=last_error)
