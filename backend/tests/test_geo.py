"""Tests for IP classification and geolocation short-circuits."""

import pytest

from shortlinks.config import settings
from shortlinks.utils import geo
from shortlinks.utils.geo import is_private_ip, locate


@pytest.mark.parametrize("ip", [
    "",
    "not-an-ip",
    "127.0.0.1",
    "10.1.2.3",
    "172.16.0.1",
    "192.168.1.1",
    "169.254.0.1",
    "100.64.0.1",
    "::1",
    "fe80::1",
    "fc00::1",
    "fd12:3456::1",
    "::ffff:10.0.0.1",
])
def test_non_public_addresses(ip):
    assert is_private_ip(ip)


@pytest.mark.parametrize("ip", ["8.8.8.8", "1.1.1.1", "2606:4700:4700::1111", "::ffff:8.8.8.8"])
def test_public_addresses(ip):
    assert not is_private_ip(ip)


def test_locate_skips_lookup_for_non_public_addresses(monkeypatch):
    def unexpected_lookup(ip):
        raise AssertionError(f"lookup attempted for {ip}")

    monkeypatch.setattr(settings, "GEO_LOOKUP_ENABLED", True)
    monkeypatch.setattr(geo, "_lookup_cached", unexpected_lookup)

    for ip in ("fd00::1", "::ffff:192.168.0.10", "10.0.0.1"):
        result = locate(ip)
        assert (result.country, result.city) == (None, None)


def test_locate_uses_lookup_for_public_addresses(monkeypatch):
    monkeypatch.setattr(settings, "GEO_LOOKUP_ENABLED", True)
    monkeypatch.setattr(geo, "_lookup_cached", lambda ip: ("Australia", "Sydney"))

    result = locate("1.1.1.1")

    assert (result.country, result.city) == ("Australia", "Sydney")


def test_locate_disabled(monkeypatch):
    monkeypatch.setattr(settings, "GEO_LOOKUP_ENABLED", False)
    monkeypatch.setattr(geo, "_lookup_cached", lambda ip: ("Australia", "Sydney"))

    assert locate("1.1.1.1").country is None
