"""Tests for input validation helpers."""

from datetime import datetime, timedelta, timezone
from urllib.parse import urlparse

import pytest

from shortlinks.core.errors import ValidationError
from shortlinks.utils.dates import utcnow
from shortlinks.utils.validators import (
    LOOPBACK_IP,
    clean_destination,
    clean_tags,
    extract_domain,
    get_client_ip,
    is_valid_ip,
    is_valid_url,
    normalize_url,
    validate_expiration,
)


@pytest.mark.parametrize("raw", [
    "example.com",
    "example.com/path?q=1",
    "sub.example.co.uk:8080/x",
    "  example.com  ",
])
def test_normalize_prepends_https_and_parses(raw):
    url = normalize_url(raw)
    assert url.startswith("https://")
    is_valid, _ = is_valid_url(url)
    assert is_valid
    parsed = urlparse(url)
    assert parsed.scheme == "https"
    assert parsed.hostname


@pytest.mark.parametrize("url", ["http://example.com", "HTTPS://Example.com/a"])
def test_normalize_keeps_existing_scheme(url):
    assert normalize_url(url) == url


@pytest.mark.parametrize("url", [
    "",
    "https://",
    "https://exa mple.com",
    "https://example.com:99999",
    "https://" + "a" * 2050 + ".com",
])
def test_invalid_urls(url):
    is_valid, error = is_valid_url(url)
    assert not is_valid
    assert error


def test_non_http_scheme_rejected():
    with pytest.raises(ValidationError, match="Only HTTP and HTTPS"):
        clean_destination("ftp://example.com/file")


def test_extract_domain():
    assert extract_domain("https://docs.example.com/page") == "docs.example.com"


def test_expiration_must_be_in_future():
    with pytest.raises(ValidationError, match="future"):
        validate_expiration(utcnow() - timedelta(minutes=1))


def test_expiration_aware_datetime_converted_to_naive_utc():
    aware = datetime.now(timezone(timedelta(hours=3))) + timedelta(days=1)
    result = validate_expiration(aware)
    assert result.tzinfo is None
    assert result == aware.astimezone(timezone.utc).replace(tzinfo=None)


def test_expiration_none_is_allowed():
    assert validate_expiration(None) is None


def test_clean_tags_trims_and_deduplicates():
    assert clean_tags([" news ", "", "news", "promo"]) == ["news", "promo"]


def test_clean_tags_rejects_long_tags():
    with pytest.raises(ValidationError):
        clean_tags(["x" * 21])


@pytest.mark.parametrize("ip,expected", [
    ("8.8.8.8", True),
    ("2001:db8::1", True),
    ("::1", True),
    ("999.1.1.1", False),
    ("testclient", False),
    ("", False),
])
def test_is_valid_ip(ip, expected):
    assert is_valid_ip(ip) is expected


def test_client_ip_prefers_forwarded_for_first_entry():
    headers = {
        "x-forwarded-for": "198.51.100.7, 10.0.0.1",
        "x-real-ip": "198.51.100.8",
        "cf-connecting-ip": "198.51.100.9",
    }
    assert get_client_ip(headers, "10.0.0.2") == "198.51.100.7"


def test_client_ip_header_order():
    headers = {"x-real-ip": "198.51.100.8", "cf-connecting-ip": "198.51.100.9"}
    assert get_client_ip(headers, "10.0.0.2") == "198.51.100.8"
    assert get_client_ip({"cf-connecting-ip": "198.51.100.9"}, "10.0.0.2") == "198.51.100.9"


def test_client_ip_falls_back_to_connection_then_loopback():
    assert get_client_ip({}, "192.0.2.4") == "192.0.2.4"
    assert get_client_ip({"x-forwarded-for": "garbage"}, "testclient") == LOOPBACK_IP
    assert get_client_ip({}, None) == LOOPBACK_IP
