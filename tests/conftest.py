"""Shared test fixtures and configuration."""

from datetime import datetime, timezone

import pytest
from luma_pipeline.models import PlaceDetails

EVENT_PAGE_HTML = """<html>
<head>
<title>Taipei Blockchain Week Meetup | Luma</title>
<script id="__NEXT_DATA__" type="application/json">{"props":{"pageProps":{"initialData":{"data":{"event":{"name":"Taipei Blockchain Week Meetup","start_at":"2025-06-01T02:00:00.000Z","end_at":"2025-06-01T05:00:00.000Z","timezone":"Asia/Taipei","geo_address_info":{"mode":"shown","place_id":"ChIJ123abc","address":"Taipei 101","full_address":"No. 7, Section 5, Xinyi Road, Xinyi District, Taipei City, Taiwan 110","city":"Taipei City","country":"Taiwan","city_state":"Taipei City, Taiwan"}},"categories":[{"api_id":"cat-1","name":"Crypto"}]}}}}}</script>
</head>
<body>
<div class="event-page">
  <img src="https://images.lumacdn.com/avatars/host.png">
  <img src="https://images.lumacdn.com/cdn-cgi/image/format=auto/event-covers/ab/cover.png">
  <h1>Taipei Blockchain Week Meetup</h1>
  <div class="schedule"><div>Sunday, 1 Jun 2025</div><div>10:00 AM - 1:00 PM GMT+8</div></div>
  <div class="about">
    <h2>About Event</h2>
    <div>Join builders from across Asia for an evening of talks on Ethereum scaling and DeFi.</div>
    <div>Short</div>
    <div>Food and drinks provided after the panel discussion.</div>
    <h2>Location</h2>
    <div>Taipei 101</div>
  </div>
</div>
</body>
</html>"""

VIRTUAL_PAGE_HTML = """<html><body>
<h1>Remote Builders Call</h1>
<p>This is a virtual event. Link shared below.</p>
<a href="https://lu.ma/remote-builders">Event page</a>
<a href="https://zoom.us/j/12345">Join the call</a>
</body></html>"""

REGISTRATION_PAGE_HTML = """<html><body>
<h1>Secret Founders Dinner</h1>
<div>Please register to see the exact location</div>
<p>Hosted somewhere in Taipei City, Taiwan</p>
</body></html>"""

EMPTY_PAGE_HTML = "<html><body><h1>Quiet Gathering</h1></body></html>"

FIXED_NOW = datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def event_page_html() -> str:
    return EVENT_PAGE_HTML


@pytest.fixture
def virtual_page_html() -> str:
    return VIRTUAL_PAGE_HTML


@pytest.fixture
def registration_page_html() -> str:
    return REGISTRATION_PAGE_HTML


@pytest.fixture
def empty_page_html() -> str:
    return EMPTY_PAGE_HTML


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def taipei_101() -> PlaceDetails:
    """Geocoder answer for the Taipei 101 place_id."""
    return PlaceDetails(
        place_id="ChIJ123abc",
        name="Taipei 101 Observatory",
        address="No. 7, Xinyi Rd",
        full_address="No. 7, Section 5, Xinyi Road, Xinyi District, Taipei City, Taiwan 110",
        city="Taipei",
        country="Taiwan",
        postal_code="110",
        latitude=25.0339,
        longitude=121.5645,
    )
