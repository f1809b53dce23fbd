from typing import List, Optional
from datetime import datetime
from pydantic import BaseModel


class AnalyticsSummary(BaseModel):
    total_clicks: int
    unique_visitors: int  # distinct client IPs


class DateClicks(BaseModel):
    date: str  # UTC calendar day, YYYY-MM-DD
    clicks: int


class CountryClicks(BaseModel):
    country: str
    clicks: int


class BrowserClicks(BaseModel):
    browser: str
    clicks: int


class OSClicks(BaseModel):
    os: str
    clicks: int


class DeviceClicks(BaseModel):
    device: str
    clicks: int


class AnalyticsCharts(BaseModel):
    clicks_by_date: List[DateClicks]
    clicks_by_country: List[CountryClicks]
    clicks_by_browser: List[BrowserClicks]
    clicks_by_os: List[OSClicks]
    clicks_by_device: List[DeviceClicks]


class RecentClick(BaseModel):
    timestamp: datetime
    location: str
    browser: str
    os: str
    device: str


class AnalyticsLink(BaseModel):
    id: int
    short_code: str
    original_url: str
    title: Optional[str]
    total_clicks: int
    created_at: datetime


class AnalyticsPeriod(BaseModel):
    start: datetime
    end: datetime
    period: str  # "24h", "7d", "30d", "90d" or "custom"


class LinkAnalytics(BaseModel):
    """Complete analytics for a link"""
    link: AnalyticsLink
    period: AnalyticsPeriod
    summary: AnalyticsSummary
    charts: AnalyticsCharts
    recent_clicks: List[RecentClick]


class AnalyticsData(BaseModel):
    analytics: LinkAnalytics
