from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Request
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

from ..core.security import get_optional_user
from ..database import get_db
from ..models import User
from ..services.clicks import ClickContext, record_click
from ..services.redirect import resolve_redirect

router = APIRouter()


@router.get("/{short_code}")
async def redirect_to_url(
    short_code: str,
    request: Request,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    current_user: Optional[User] = Depends(get_optional_user)
):
    """
    Redirect to the original URL from short code or alias.

    404 for unknown or inactive codes, 410 for expired links.
    The click is recorded after the response is sent.
    """
    link = resolve_redirect(db, short_code)

    context = ClickContext(
        headers=request.headers,
        client_host=request.client.host if request.client else None,
        user_id=current_user.id if current_user else None,
    )
    background_tasks.add_task(record_click, link.id, link.owner_id, context)

    response = RedirectResponse(url=link.original_url, status_code=301)
    response.headers["Cache-Control"] = "no-cache, no-store, must-revalidate, max-age=0"

    return response
