"""Tests for venue resolution and location helpers."""

import asyncio

import pytest
from luma_pipeline.extractors.fields import parse_html
from luma_pipeline.extractors.location import (
    build_virtual_location,
    find_coarse_location,
    has_registration_gate,
    is_virtual_event,
    resolve_location,
)
from luma_pipeline.extractors.embedded import extract_geo_address_info
from luma_pipeline.models import CustomLocation, GoogleLocation, LocationType, VirtualLocation
from luma_pipeline.normalizers.location import (
    REGISTRATION_MESSAGE,
    UNKNOWN_LOCATION,
    detect_virtual_platform,
    extract_city_from_registration_text,
    extract_domain,
    format_location_display,
    is_luma_host,
    is_registration_required,
)


def resolve(html: str, geocode=None, api_key: str = "key"):
    return asyncio.run(resolve_location(parse_html(html), html, geocode=geocode, api_key=api_key))


class FakeGeocoder:
    """Records calls and returns a canned answer (or raises it)."""

    def __init__(self, answer=None):
        self.answer = answer
        self.calls = []

    async def __call__(self, place_id: str, api_key: str):
        self.calls.append((place_id, api_key))
        if isinstance(self.answer, Exception):
            raise self.answer
        return self.answer


class TestVirtual:
    """Tests for online event detection."""

    def test_meeting_url(self, virtual_page_html: str):
        location = resolve(virtual_page_html)
        assert isinstance(location, VirtualLocation)
        assert location.name == "https://zoom.us/j/12345"
        assert location.address == "zoom.us"
        assert location.full_address == "https://zoom.us/j/12345"
        assert location.description == "Zoom"

    def test_platform_name_without_url(self):
        location = resolve("<p>Online event hosted on Google Meet</p>")
        assert location.location_type == LocationType.VIRTUAL
        assert location.name == "Google Meet"

    def test_external_domain_skips_luma(self):
        html = (
            "<p>Webinar</p>"
            '<a href="https://lu.ma/webinar">page</a>'
            '<a href="https://stream.example.org/live">watch</a>'
        )
        location = resolve(html)
        assert location.name == "stream.example.org"
        assert location.address == "stream.example.org"

    def test_bare_virtual(self):
        location = resolve("<p>Join our online event</p>")
        assert location.location_type == LocationType.VIRTUAL
        assert location.name == "Virtual"

    def test_zoom_mention_counts(self):
        assert is_virtual_event("<p>Join via Zoom</p>")
        assert build_virtual_location("<p>Join via Zoom</p>").name == "Zoom"

    def test_zoom_negation(self):
        html = "<p>Zoom is not available, meet us at the venue</p>"
        assert not is_virtual_event(html)
        location = resolve(html)
        assert location.location_type == LocationType.CUSTOM
        assert location.name == UNKNOWN_LOCATION

    def test_virtual_wins_over_geo_block(self, event_page_html: str):
        html = event_page_html.replace("<h1>", "<p>virtual event</p><h1>")
        geocoder = FakeGeocoder()
        location = resolve(html, geocode=geocoder)
        assert location.location_type == LocationType.VIRTUAL
        assert geocoder.calls == []


class TestGeocoded:
    """Tests for venues with a Google place_id."""

    def test_geocoder_fields_win(self, event_page_html: str, taipei_101):
        geocoder = FakeGeocoder(taipei_101)
        location = resolve(event_page_html, geocode=geocoder, api_key="secret")

        assert geocoder.calls == [("ChIJ123abc", "secret")]
        assert isinstance(location, GoogleLocation)
        assert location.place_id == "ChIJ123abc"
        assert location.name == "Taipei 101 Observatory"
        assert location.city == "Taipei"
        assert location.postal_code == "110"
        assert location.latitude == pytest.approx(25.0339)

    @pytest.mark.parametrize("answer", [None, RuntimeError("quota exceeded")])
    def test_geocoder_failure_keeps_embedded_fields(self, event_page_html: str, answer):
        location = resolve(event_page_html, geocode=FakeGeocoder(answer))

        assert location.location_type == LocationType.GOOGLE
        assert location.place_id == "ChIJ123abc"
        assert location.name == "Taipei 101"
        assert location.city == "Taipei City"
        assert location.country == "Taiwan"
        assert location.full_address.startswith("No. 7, Section 5")
        assert location.latitude is None

    def test_no_geocoder_configured(self, event_page_html: str):
        location = resolve(event_page_html, geocode=None)
        assert location.location_type == LocationType.GOOGLE
        assert location.name == "Taipei 101"


class TestCustom:
    """Tests for address-only and hidden venues."""

    def test_full_address_without_place_id(self):
        html = '<script>{"geo_address_info":{"full_address":"12 Orchard Rd, Singapore","city":"Singapore"}}</script>'
        location = resolve(html)
        assert isinstance(location, CustomLocation)
        assert location.name == "12 Orchard Rd, Singapore"
        assert location.address == "12 Orchard Rd, Singapore"
        assert location.city == "Singapore"

    def test_address_without_full_address(self):
        html = '<script>{"geo_address_info":{"address":"Taipei 101","city":"Taipei","country":"Taiwan"}}</script>'
        location = resolve(html)
        assert isinstance(location, CustomLocation)
        assert location.name == "Taipei 101"
        assert location.full_address == "Taipei 101"
        assert location.city == "Taipei"
        assert location.country == "Taiwan"

    def test_description_only_block(self):
        html = '<script>{"geo_address_info":{"description":"Rooftop above the station"}}</script>'
        location = resolve(html)
        assert location.location_type == LocationType.CUSTOM
        assert location.name == "Rooftop above the station"
        assert location.description == "Rooftop above the station"

    def test_registration_with_coarse_location(self, registration_page_html: str):
        location = resolve(registration_page_html)
        assert location.location_type == LocationType.CUSTOM
        assert location.name == f"[Taipei City, Taiwan] {REGISTRATION_MESSAGE}"
        assert location.description == REGISTRATION_MESSAGE
        assert location.city == ""

    def test_registration_with_location_label(self):
        html = (
            "<div><div>Location</div><div>Da'an, Taipei</div></div>"
            "<p>Register to see address</p>"
        )
        location = resolve(html)
        assert location.name == f"[Da'an, Taipei] {REGISTRATION_MESSAGE}"

    def test_registration_with_chinese_district(self):
        html = "<p>Register to see address</p><p>大安區, 台北市</p>"
        location = resolve(html)
        assert location.name == f"[大安區, 台北市] {REGISTRATION_MESSAGE}"

    def test_registration_with_city_state(self):
        html = (
            '<script>{"geo_address_info":{"mode":"obfuscated","city_state":"Austin, Texas"}}</script>'
            "<p>Register to see address</p>"
        )
        location = resolve(html)
        assert location.name == f"[Austin, Texas] {REGISTRATION_MESSAGE}"

    def test_registration_without_coarse_location(self):
        location = resolve("<p>Please register to see the exact location</p>")
        assert location.name == REGISTRATION_MESSAGE
        assert location.description == REGISTRATION_MESSAGE

    def test_request_to_join_with_hidden_location(self):
        html = "<button>Request to Join</button><p>The location is hidden until approval</p>"
        assert has_registration_gate(parse_html(html), html)

    def test_label_followed_by_register_notice(self):
        html = "<div><span>Address</span><span>Register to unlock</span></div>"
        assert has_registration_gate(parse_html(html), html)

    def test_label_notice_is_not_a_coarse_location(self):
        html = "<div><span>Location</span><span>Register to unlock</span></div>"
        soup = parse_html(html)
        assert find_coarse_location(soup, html, extract_geo_address_info(html)) is None

    def test_nothing_found(self, empty_page_html: str):
        location = resolve(empty_page_html)
        assert location.location_type == LocationType.CUSTOM
        assert location.name == UNKNOWN_LOCATION


class TestLocationHelpers:
    """Tests for the location normalizers."""

    @pytest.mark.parametrize("host,expected", [
        ("lu.ma", True),
        ("images.lumacdn.com", True),
        ("LUMA.COM", True),
        ("example.com", False),
        ("notlu.ma", False),
    ])
    def test_is_luma_host(self, host: str, expected: bool):
        assert is_luma_host(host) is expected

    def test_extract_domain(self):
        assert extract_domain("https://zoom.us/j/1") == "zoom.us"
        assert extract_domain("meet.google.com/abc") == "meet.google.com"
        assert extract_domain("") == ""

    @pytest.mark.parametrize("url,expected", [
        ("https://us02web.zoom.us/j/1", "Zoom"),
        ("https://discord.gg/abc", "Discord"),
        ("https://teams.microsoft.com/l/meetup", "Microsoft Teams"),
        ("https://example.com/stream", "Virtual"),
        ("hello", None),
        ("", None),
    ])
    def test_detect_virtual_platform(self, url: str, expected):
        assert detect_virtual_platform(url) == expected

    def test_display_virtual(self):
        assert format_location_display(VirtualLocation(name="Zoom")) == "Zoom"
        assert format_location_display(VirtualLocation()) == "Virtual Event"

    def test_display_city_country(self):
        location = CustomLocation(name="Hall A", city="Berlin", country="Germany")
        assert format_location_display(location) == "Berlin, Germany"

    def test_display_falls_back_to_name(self):
        assert format_location_display(CustomLocation(name="Hall A")) == "Hall A"
        assert format_location_display(CustomLocation(country="Japan")) == "Japan"

    def test_display_registration_gated(self):
        gated = CustomLocation(name=f"[Taipei City, Taiwan] {REGISTRATION_MESSAGE}")
        assert format_location_display(gated) == "Taipei City, Taiwan"
        assert format_location_display(CustomLocation(name=REGISTRATION_MESSAGE)) == "Registration required"

    def test_display_resolved_registration_page(self, registration_page_html: str):
        assert format_location_display(resolve(registration_page_html)) == "Taipei City, Taiwan"

    def test_registration_text(self):
        text = f"[Taipei] {REGISTRATION_MESSAGE}"
        assert is_registration_required(text)
        assert extract_city_from_registration_text(text) == "Taipei"
        assert not is_registration_required("Taipei 101")
        assert extract_city_from_registration_text("Taipei 101") == ""
