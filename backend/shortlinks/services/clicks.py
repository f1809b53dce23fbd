import asyncio
import logging
from typing import Mapping, Optional

from fastapi.concurrency import run_in_threadpool
from sqlalchemy import select

from ..database import SessionLocal
from ..models import Click, Link, User
from ..utils.dates import utcnow
from ..utils.geo import GeoData, locate
from ..utils.user_agent import ParsedUserAgent, is_bot, parse_user_agent
from ..utils.validators import get_client_ip

logger = logging.getLogger(__name__)

MAX_HEADER_LENGTH = 512


class ClickContext:
    """Request data captured for click recording, detached from the request object"""
    def __init__(self, headers: Mapping[str, str], client_host: Optional[str] = None,
                 user_id: Optional[int] = None):
        self.headers = {key.lower(): value for key, value in headers.items()}
        self.client_host = client_host
        self.user_id = user_id

    @property
    def user_agent(self) -> str:
        return self.headers.get("user-agent", "")[:MAX_HEADER_LENGTH]

    @property
    def referer(self) -> Optional[str]:
        referer = self.headers.get("referer") or self.headers.get("referrer")
        return referer[:MAX_HEADER_LENGTH] if referer else None


def _insert_click(session_factory, values: dict) -> None:
    with session_factory() as db:
        db.add(Click(**values))
        db.commit()


def _increment_link_clicks(session_factory, link_id: int, clicked_at) -> None:
    with session_factory() as db:
        db.query(Link).filter(Link.id == link_id).update(
            {
                Link.clicks_count: Link.clicks_count + 1,
                Link.last_clicked_at: clicked_at,
            },
            synchronize_session=False
        )
        db.commit()


def _increment_owner_clicks(session_factory, owner_id: int, link_id: int) -> None:
    with session_factory() as db:
        # Only while the link still exists
        link_exists = select(Link.id).where(Link.id == link_id).exists()
        db.query(User).filter(User.id == owner_id, link_exists).update(
            {User.total_clicks: User.total_clicks + 1},
            synchronize_session=False
        )
        db.commit()


async def _locate(ip: str) -> GeoData:
    try:
        return await run_in_threadpool(locate, ip)
    except Exception as e:
        logger.warning("Geolocation failed for %s: %s", ip, e)
        return GeoData()


def _parse(user_agent: str) -> ParsedUserAgent:
    try:
        return parse_user_agent(user_agent)
    except Exception as e:
        logger.warning("User-agent parsing failed: %s", e)
        return ParsedUserAgent()


async def record_click(link_id: int, owner_id: Optional[int], context: ClickContext,
                       session_factory=SessionLocal) -> None:
    """
    Record one redirect traversal.

    Runs after the redirect response has been sent. Bot traffic is skipped.
    The click insert, the link counter and the owner counter are independent
    writes issued concurrently, each with its own session. Every failure is
    logged and swallowed.
    """
    try:
        user_agent = context.user_agent
        if is_bot(user_agent):
            logger.debug("Skipping bot click on link %s: %s", link_id, user_agent)
            return

        ip_address = get_client_ip(context.headers, context.client_host)
        geo = await _locate(ip_address)
        parsed = _parse(user_agent)
        clicked_at = utcnow()

        values = {
            "link_id": link_id,
            "user_id": context.user_id,
            "clicked_at": clicked_at,
            "ip_address": ip_address,
            "user_agent": user_agent,
            "referer": context.referer,
            "country": geo.country,
            "city": geo.city,
            "browser_name": parsed.browser_name,
            "browser_version": parsed.browser_version,
            "os_name": parsed.os_name,
            "os_version": parsed.os_version,
            "device_type": parsed.device_type,
            "device_brand": parsed.device_brand,
            "device_model": parsed.device_model,
        }

        writes = [
            run_in_threadpool(_insert_click, session_factory, values),
            run_in_threadpool(_increment_link_clicks, session_factory, link_id, clicked_at),
        ]
        if owner_id is not None:
            writes.append(run_in_threadpool(_increment_owner_clicks, session_factory, owner_id, link_id))

        results = await asyncio.gather(*writes, return_exceptions=True)
        for result in results:
            if isinstance(result, Exception):
                logger.warning("Click write failed for link %s: %s", link_id, result)

    except Exception:
        logger.exception("Failed to record click for link %s", link_id)
