import math
from datetime import datetime
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query, Request, Response, status
from sqlalchemy.orm import Session
from slowapi import Limiter
from slowapi.util import get_remote_address

from ..config import settings
from ..core.security import get_current_user, get_optional_user
from ..database import get_db
from ..models import Link, User
from ..schemas.analytics import AnalyticsData
from ..schemas.link import LinkCreate, LinkData, LinkListData, LinkResponse, LinkUpdate
from ..schemas.response import Envelope
from ..services import links as link_service
from ..services.analytics import get_link_analytics
from ..utils.qr import render_qr

router = APIRouter(prefix="/urls")
limiter = Limiter(key_func=get_remote_address, enabled=settings.RATE_LIMIT_ENABLED)


def serialize_link(link: Link, include_qr: bool = False) -> LinkResponse:
    """Build the API view of a link, optionally with its QR code"""
    short_url = link_service.build_short_url(link.short_code)
    response = LinkResponse(
        id=link.id,
        short_code=link.short_code,
        custom_alias=link.custom_alias,
        original_url=link.original_url,
        short_url=short_url,
        title=link.title,
        description=link.description,
        tags=link.tags or [],
        clicks_count=link.clicks_count,
        is_active=link.is_active,
        expires_at=link.expires_at,
        last_clicked_at=link.last_clicked_at,
        owner_id=link.owner_id,
        created_at=link.created_at,
        updated_at=link.updated_at,
    )
    if include_qr:
        response.qr_code = render_qr(short_url)
    return response


@router.post("", response_model=Envelope[LinkData], status_code=status.HTTP_201_CREATED)
@limiter.limit(f"{settings.RATE_LIMIT_PER_HOUR}/hour")
async def create_short_link(
    request: Request,
    response: Response,
    link_data: LinkCreate,
    db: Session = Depends(get_db),
    current_user: Optional[User] = Depends(get_optional_user)
):
    """
    Create a short link.

    Authentication is optional. An authenticated owner who already shortened
    the same URL gets the existing link back with status 200.
    Rate limited to prevent spam.
    """
    link, created = link_service.create_link(
        db,
        url=link_data.original_url,
        custom_alias=link_data.custom_alias,
        owner=current_user,
        title=link_data.title,
        description=link_data.description,
        tags=link_data.tags,
        expires_at=link_data.expires_at,
    )

    if not created:
        response.status_code = status.HTTP_200_OK
        message = "URL already shortened"
    else:
        message = "Short URL created successfully"

    return Envelope(
        message=message,
        data=LinkData(url=serialize_link(link, include_qr=True))
    )


@router.get("", response_model=Envelope[LinkListData])
async def get_user_links(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    search: Optional[str] = None,
    sort_by: str = Query("created_at"),
    sort_order: Literal["asc", "desc"] = Query("desc"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    Get the current user's links with pagination, search and sorting.

    Requires authentication.
    """
    links, total = link_service.list_links(
        db, current_user, page=page, limit=limit,
        search=search, sort_by=sort_by, sort_order=sort_order
    )

    return Envelope(data=LinkListData(
        urls=[serialize_link(link, include_qr=True) for link in links],
        pagination={
            "current_page": page,
            "total_pages": math.ceil(total / limit),
            "total_items": total,
            "items_per_page": limit,
        }
    ))


@router.get("/{link_id}", response_model=Envelope[LinkData])
async def get_link_details(
    link_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    Get a specific link with its QR code.

    Requires authentication.
    """
    link = link_service.get_link(db, link_id, current_user)
    return Envelope(data=LinkData(url=serialize_link(link, include_qr=True)))


@router.put("/{link_id}", response_model=Envelope[LinkData])
async def update_link(
    link_id: int,
    link_update: LinkUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    Update title, description, tags, active flag or expiration of a link.

    Requires authentication.
    """
    link = link_service.update_link(
        db, link_id, current_user, link_update.model_dump(exclude_unset=True)
    )
    return Envelope(
        message="URL updated successfully",
        data=LinkData(url=serialize_link(link))
    )


@router.delete("/{link_id}", response_model=Envelope[dict])
async def delete_link(
    link_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    Delete a link with all of its clicks.

    Requires authentication.
    """
    link_service.delete_link(db, link_id, current_user)
    return Envelope(message="URL deleted successfully")


@router.get("/{link_id}/analytics", response_model=Envelope[AnalyticsData])
async def get_link_analytics_endpoint(
    link_id: int,
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    period: Literal["24h", "7d", "30d", "90d"] = Query("7d"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    Get detailed analytics for a specific link.

    Query params:
    - startDate / endDate: explicit window (both required to take effect)
    - period: "24h" | "7d" | "30d" | "90d" (default: "7d")

    Requires authentication.
    """
    link = link_service.get_link(db, link_id, current_user)
    analytics = get_link_analytics(db, link, start=start_date, end=end_date, period=period)
    return Envelope(data={"analytics": analytics})
