import ipaddress
from functools import lru_cache
from typing import Optional, Tuple

import httpx

from ..config import settings

GEO_API_URL = "http://ip-api.com/json/{ip}"


def is_private_ip(ip: str) -> bool:
    """Check if IP address is not publicly routable; IPv4-mapped addresses are unwrapped"""
    if not ip:
        return True
    try:
        address = ipaddress.ip_address(ip.strip())
    except ValueError:
        return True
    if getattr(address, "ipv4_mapped", None) is not None:
        address = address.ipv4_mapped
    return not address.is_global


class GeoData:
    """Container for geo data"""
    def __init__(self, country: Optional[str] = None, city: Optional[str] = None):
        self.country = country
        self.city = city

    def __repr__(self):
        return f"<GeoData {self.city}, {self.country}>"


# LRU cache for geo data (max 10000 entries)
@lru_cache(maxsize=10000)
def _lookup_cached(ip: str) -> Tuple[Optional[str], Optional[str]]:
    """
    Get geo data from ip-api.com with caching.
    Returns tuple: (country, city)

    Raises httpx errors; failed lookups are not cached.
    """
    with httpx.Client(timeout=settings.GEO_TIMEOUT) as client:
        response = client.get(
            GEO_API_URL.format(ip=ip),
            params={"fields": "status,country,city"}
        )
        response.raise_for_status()

    data = response.json()
    if data.get("status") != "success":
        return (None, None)

    return (data.get("country"), data.get("city"))


def locate(ip: str) -> GeoData:
    """
    Get geo data for IP address with LRU caching.
    Uses ip-api.com (free, 45 req/min limit).

    Private addresses and disabled lookups resolve to an empty GeoData.
    Network errors propagate to the caller.
    """
    if not settings.GEO_LOOKUP_ENABLED or is_private_ip(ip):
        return GeoData()

    country, city = _lookup_cached(ip)
    return GeoData(country=country, city=city)
