from collections import Counter
from datetime import datetime, timedelta
from typing import List, Optional, Tuple

from sqlalchemy import desc
from sqlalchemy.orm import Session

from ..core.errors import ValidationError
from ..models import Click, Link
from ..utils.dates import to_naive_utc, utcnow

UNKNOWN = "Unknown"
DEFAULT_DEVICE = "desktop"
DEFAULT_PERIOD = "7d"
TOP_LIMIT = 10
RECENT_LIMIT = 50

PERIODS = {
    "24h": timedelta(hours=24),
    "7d": timedelta(days=7),
    "30d": timedelta(days=30),
    "90d": timedelta(days=90),
}


def get_date_range(start: Optional[datetime] = None, end: Optional[datetime] = None,
                   period: Optional[str] = None,
                   now: Optional[datetime] = None) -> Tuple[datetime, datetime, str]:
    """
    Resolve the analytics window.

    Explicit start and end win; otherwise the named period (default 7d)
    ending now. Unknown periods fall back to the default.

    Returns:
        Tuple of (start, end, period label)
    """
    if start is not None and end is not None:
        start, end = to_naive_utc(start), to_naive_utc(end)
        if start > end:
            raise ValidationError("Start date must be before end date")
        return start, end, "custom"

    if period not in PERIODS:
        period = DEFAULT_PERIOD

    end = now or utcnow()
    return end - PERIODS[period], end, period


def _ranked(counter: Counter, key: str, limit: Optional[int] = None) -> List[dict]:
    # Descending by clicks, label ascending on ties
    items = sorted(counter.items(), key=lambda item: (-item[1], item[0]))
    if limit is not None:
        items = items[:limit]
    return [{key: label, "clicks": clicks} for label, clicks in items]


def _location(city: Optional[str], country: Optional[str]) -> str:
    return f"{city or UNKNOWN}, {country or UNKNOWN}"


def aggregate_clicks(rows) -> dict:
    """
    Fold click rows (newest first) into every breakdown in one pass.

    Each row needs clicked_at, ip_address, country, city, browser_name,
    os_name and device_type.
    """
    total_clicks = 0
    visitors = set()
    by_date = Counter()
    by_country = Counter()
    by_browser = Counter()
    by_os = Counter()
    by_device = Counter()
    recent_clicks = []

    for row in rows:
        total_clicks += 1
        visitors.add(row.ip_address)
        by_date[row.clicked_at.strftime("%Y-%m-%d")] += 1
        by_country[row.country or UNKNOWN] += 1
        by_browser[row.browser_name or UNKNOWN] += 1
        by_os[row.os_name or UNKNOWN] += 1
        by_device[row.device_type or DEFAULT_DEVICE] += 1

        if len(recent_clicks) < RECENT_LIMIT:
            recent_clicks.append({
                "timestamp": row.clicked_at,
                "location": _location(row.city, row.country),
                "browser": row.browser_name or UNKNOWN,
                "os": row.os_name or UNKNOWN,
                "device": row.device_type or DEFAULT_DEVICE,
            })

    return {
        "summary": {
            "total_clicks": total_clicks,
            "unique_visitors": len(visitors),
        },
        "charts": {
            "clicks_by_date": [
                {"date": day, "clicks": clicks} for day, clicks in sorted(by_date.items())
            ],
            "clicks_by_country": _ranked(by_country, "country", TOP_LIMIT),
            "clicks_by_browser": _ranked(by_browser, "browser", TOP_LIMIT),
            "clicks_by_os": _ranked(by_os, "os", TOP_LIMIT),
            "clicks_by_device": _ranked(by_device, "device"),
        },
        "recent_clicks": recent_clicks,
    }


def get_link_analytics(db: Session, link: Link, start: Optional[datetime] = None,
                       end: Optional[datetime] = None, period: Optional[str] = None) -> dict:
    """Get complete analytics for a link over a time window"""
    start, end, period = get_date_range(start, end, period)

    # One filtered scan feeds every breakdown
    rows = db.query(
        Click.clicked_at,
        Click.ip_address,
        Click.country,
        Click.city,
        Click.browser_name,
        Click.os_name,
        Click.device_type,
    ).filter(
        Click.link_id == link.id,
        Click.clicked_at >= start,
        Click.clicked_at <= end
    ).order_by(
        desc(Click.clicked_at), desc(Click.id)
    ).yield_per(1000)

    analytics = aggregate_clicks(rows)
    analytics["link"] = {
        "id": link.id,
        "short_code": link.short_code,
        "original_url": link.original_url,
        "title": link.title,
        "total_clicks": link.clicks_count,
        "created_at": link.created_at,
    }
    analytics["period"] = {
        "start": start,
        "end": end,
        "period": period,
    }

    return analytics
