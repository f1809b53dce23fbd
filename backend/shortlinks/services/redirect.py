from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from ..core.errors import GoneError, NotFoundError
from ..models import Link
from ..utils.dates import utcnow
from .links import resolve_code


def resolve_redirect(db: Session, code: str, now: Optional[datetime] = None) -> Link:
    """
    Decide the outcome of a redirect request.

    Unknown and inactive codes are not found; active links past their
    expiration are gone. Only a returned link may be redirected to and counted.
    """
    link = resolve_code(db, code)
    if link is None:
        raise NotFoundError("Short URL not found")

    if link.is_expired(now or utcnow()):
        raise GoneError("Short URL has expired")

    return link
