import ipaddress
import re
from datetime import datetime
from typing import Iterable, List, Optional
from urllib.parse import urlparse

from ..core.errors import ValidationError
from .dates import to_naive_utc, utcnow

MAX_URL_LENGTH = 2048
MAX_TITLE_LENGTH = 200
MAX_DESCRIPTION_LENGTH = 500
MAX_TAG_LENGTH = 20

LOOPBACK_IP = "127.0.0.1"

SCHEME_PATTERN = re.compile(r'^[a-z][a-z0-9+.-]*://', re.IGNORECASE)

# Forwarding headers checked in order before the connection address
FORWARDING_HEADERS = ("x-forwarded-for", "x-real-ip", "cf-connecting-ip")


def normalize_url(url: str) -> str:
    """Trim the URL and prepend https:// when it has no scheme"""
    url = (url or "").strip()
    if url and not SCHEME_PATTERN.match(url):
        url = f"https://{url}"
    return url


def is_valid_url(url: str) -> tuple[bool, str]:
    """
    Validate if a URL is a well-formed http(s) URL.

    Args:
        url: The URL to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not url:
        return False, "Original URL is required"

    if len(url) > MAX_URL_LENGTH:
        return False, f"URL is too long (max {MAX_URL_LENGTH} characters)"

    try:
        result = urlparse(url)
        # Accessing port validates it
        result.port
    except ValueError as e:
        return False, f"Invalid URL: {e}"

    if result.scheme.lower() not in ('http', 'https'):
        return False, "Only HTTP and HTTPS URLs are allowed"

    if not result.hostname or any(c.isspace() for c in url):
        return False, "Please provide a valid URL with http:// or https://"

    return True, ""


def clean_destination(url: str) -> str:
    """Normalize then validate a destination URL, raising ValidationError"""
    normalized = normalize_url(url)
    is_valid, error_msg = is_valid_url(normalized)
    if not is_valid:
        raise ValidationError(error_msg)
    return normalized


def extract_domain(url: str) -> str:
    """Host part of a URL, used as the default link title"""
    try:
        return urlparse(url).hostname or "Unknown"
    except ValueError:
        return "Unknown"


def validate_expiration(expires_at: Optional[datetime], now: Optional[datetime] = None) -> Optional[datetime]:
    """
    Check that an expiration timestamp is strictly in the future.

    Returns:
        The expiration as naive UTC, or None when not set
    """
    if expires_at is None:
        return None

    expires_at = to_naive_utc(expires_at)
    if expires_at <= (now or utcnow()):
        raise ValidationError("Expiration date must be in the future")

    return expires_at


def clean_tags(tags: Optional[Iterable[str]]) -> List[str]:
    """Trim tags, drop empty ones and duplicates, enforce max length"""
    result = []
    for tag in tags or []:
        tag = (tag or "").strip()
        if not tag:
            continue
        if len(tag) > MAX_TAG_LENGTH:
            raise ValidationError(f"Tag cannot exceed {MAX_TAG_LENGTH} characters")
        if tag not in result:
            result.append(tag)
    return result


def clean_text(value: Optional[str], field: str, max_length: int) -> Optional[str]:
    """Trim optional free text and enforce its max length"""
    if value is None:
        return None
    value = value.strip()
    if len(value) > max_length:
        raise ValidationError(f"{field} cannot exceed {max_length} characters")
    return value


def is_valid_ip(ip: Optional[str]) -> bool:
    """Check that a string is an IPv4 or IPv6 address"""
    if not ip:
        return False
    try:
        ipaddress.ip_address(ip.strip())
    except ValueError:
        return False
    return True


def get_client_ip(headers, client_host: Optional[str] = None) -> str:
    """
    Get client IP address from request headers.

    Args:
        headers: Mapping of request headers (case-insensitive keys)
        client_host: Raw connection address

    Returns:
        First valid address from the forwarding headers or the connection,
        falling back to the loopback address
    """
    candidates = []
    for header in FORWARDING_HEADERS:
        value = headers.get(header)
        if value:
            # X-Forwarded-For can contain a chain, take the first entry
            candidates.append(value.split(",")[0].strip())
    candidates.append(client_host)

    for candidate in candidates:
        if is_valid_ip(candidate):
            return candidate.strip()

    return LOOPBACK_IP
