import re
from typing import Optional

UNKNOWN = "Unknown"

DEVICE_TYPES = ("desktop", "mobile", "tablet", "unknown")

# Crawlers, link previewers and headless clients
BOT_PATTERNS = [
    re.compile(pattern, re.IGNORECASE) for pattern in (
        r'googlebot', r'bingbot', r'slurp', r'duckduckbot', r'baiduspider',
        r'yandexbot', r'facebookexternalhit', r'twitterbot', r'linkedinbot',
        r'whatsapp', r'telegram', r'crawler', r'spider', r'bot', r'headless',
        r'phantom', r'scraper',
    )
]

# (name, marker, version regex) checked in order; Edge and Opera carry "chrome" too
BROWSER_RULES = [
    ("Edge", "edg", re.compile(r'edg(?:e|a|ios)?/([0-9.]+)')),
    ("Opera", "opr", re.compile(r'opr/([0-9.]+)')),
    ("Opera", "opera", re.compile(r'opera/([0-9.]+)')),
    ("Chrome", "chrome", re.compile(r'chrome/([0-9.]+)')),
    ("Chrome", "crios", re.compile(r'crios/([0-9.]+)')),
    ("Firefox", "firefox", re.compile(r'firefox/([0-9.]+)')),
    ("Firefox", "fxios", re.compile(r'fxios/([0-9.]+)')),
    ("Safari", "safari", re.compile(r'version/([0-9.]+)')),
    ("Internet Explorer", "msie", re.compile(r'msie ([0-9.]+)')),
    ("Internet Explorer", "trident", re.compile(r'rv:([0-9.]+)')),
]

WINDOWS_VERSIONS = {
    "10.0": "10",
    "6.3": "8.1",
    "6.2": "8",
    "6.1": "7",
}

ANDROID_BRANDS = [
    ("Samsung", re.compile(r'samsung|galaxy|gt-|sm-')),
    ("Huawei", re.compile(r'huawei|honor')),
    ("Xiaomi", re.compile(r'xiaomi|mi |redmi')),
]


class ParsedUserAgent:
    """Browser, OS and device derived from a user-agent string"""
    def __init__(self, browser_name: str = UNKNOWN, browser_version: str = UNKNOWN,
                 os_name: str = UNKNOWN, os_version: str = UNKNOWN,
                 device_type: str = "unknown", device_brand: str = UNKNOWN,
                 device_model: str = UNKNOWN):
        self.browser_name = browser_name
        self.browser_version = browser_version
        self.os_name = os_name
        self.os_version = os_version
        self.device_type = device_type
        self.device_brand = device_brand
        self.device_model = device_model

    def __repr__(self):
        return f"<ParsedUserAgent {self.browser_name}/{self.os_name}/{self.device_type}>"


def _extract_version(ua: str, regex) -> str:
    match = regex.search(ua)
    return match.group(1) if match else UNKNOWN


def detect_browser(ua: str) -> tuple[str, str]:
    for name, marker, version_regex in BROWSER_RULES:
        if marker in ua:
            return name, _extract_version(ua, version_regex)
    return UNKNOWN, UNKNOWN


def detect_os(ua: str) -> tuple[str, str]:
    if "windows" in ua:
        match = re.search(r'windows nt ([0-9.]+)', ua)
        version = WINDOWS_VERSIONS.get(match.group(1), UNKNOWN) if match else UNKNOWN
        return "Windows", version
    if "android" in ua:
        return "Android", _extract_version(ua, re.compile(r'android ([0-9.]+)'))
    if "iphone" in ua or "ipad" in ua or "ipod" in ua:
        return "iOS", _extract_version(ua, re.compile(r'os ([0-9_]+)')).replace("_", ".")
    if "mac os x" in ua:
        return "macOS", _extract_version(ua, re.compile(r'mac os x ([0-9_.]+)')).replace("_", ".")
    if "linux" in ua:
        for distro in ("ubuntu", "debian", "fedora"):
            if distro in ua:
                return distro.capitalize(), UNKNOWN
        return "Linux", UNKNOWN
    return UNKNOWN, UNKNOWN


def detect_device(ua: str) -> tuple[str, str, str]:
    """Returns (type, brand, model)"""
    if "ipad" in ua:
        return "tablet", "Apple", "iPad"
    if "iphone" in ua:
        return "mobile", "Apple", "iPhone"
    if "android" in ua:
        brand = UNKNOWN
        for name, pattern in ANDROID_BRANDS:
            if pattern.search(ua):
                brand = name
                break
        # Android tablets omit the "mobile" token
        device_type = "mobile" if "mobile" in ua else "tablet"
        return device_type, brand, "Android"
    if "tablet" in ua:
        return "tablet", UNKNOWN, UNKNOWN
    if "mobile" in ua:
        return "mobile", UNKNOWN, UNKNOWN
    return "desktop", UNKNOWN, UNKNOWN


def parse_user_agent(user_agent: Optional[str]) -> ParsedUserAgent:
    """Parse a user-agent string; empty input yields all-unknown values"""
    if not user_agent:
        return ParsedUserAgent()

    ua = user_agent.lower()
    browser_name, browser_version = detect_browser(ua)
    os_name, os_version = detect_os(ua)
    device_type, device_brand, device_model = detect_device(ua)

    return ParsedUserAgent(
        browser_name=browser_name,
        browser_version=browser_version[:20],
        os_name=os_name,
        os_version=os_version[:20],
        device_type=device_type,
        device_brand=device_brand,
        device_model=device_model,
    )


def is_bot(user_agent: Optional[str]) -> bool:
    """Check if a user-agent belongs to a crawler or automated client"""
    if not user_agent:
        return False
    return any(pattern.search(user_agent) for pattern in BOT_PATTERNS)
