import logging
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Tuple

from sqlalchemy import asc, desc, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..config import settings
from ..core.errors import ConflictError, NotFoundError, ValidationError
from ..core.shortener import (
    allocate_code,
    generate_unique_code,
    validate_alias_format,
    validate_alias_not_reserved,
)
from ..models import Click, Link, User
from ..utils.validators import (
    MAX_DESCRIPTION_LENGTH,
    MAX_TITLE_LENGTH,
    clean_destination,
    clean_tags,
    clean_text,
    extract_domain,
    validate_expiration,
)

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = frozenset(["title", "description", "tags", "is_active", "expires_at"])

SORTABLE_FIELDS = {
    "created_at": Link.created_at,
    "updated_at": Link.updated_at,
    "clicks_count": Link.clicks_count,
    "title": Link.title,
    "expires_at": Link.expires_at,
    "last_clicked_at": Link.last_clicked_at,
}

LIKE_ESCAPE = "\\"


def build_short_url(code: str) -> str:
    """Public short URL for a code"""
    return f"{settings.BASE_URL.rstrip('/')}/{code}"


def _like_pattern(search: str) -> str:
    """Case-folded substring pattern with LIKE wildcards escaped"""
    escaped = (
        search.lower()
        .replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )
    return f"%{escaped}%"


def _tag_matches(db: Session, pattern: str):
    """EXISTS clause matching any single tag of the link, not the JSON text"""
    if db.get_bind().dialect.name == "postgresql":
        elements = func.json_array_elements_text(Link.tags).table_valued("value")
    else:
        elements = func.json_each(Link.tags).table_valued("value")

    return select(1).select_from(elements).where(
        func.lower(elements.c.value).like(pattern, escape=LIKE_ESCAPE)
    ).exists()


def create_link(
    db: Session,
    url: str,
    custom_alias: Optional[str] = None,
    owner: Optional[User] = None,
    title: Optional[str] = None,
    description: Optional[str] = None,
    tags: Optional[Iterable[str]] = None,
    expires_at: Optional[datetime] = None,
) -> Tuple[Link, bool]:
    """
    Create a short link.

    An owner who already shortened the same destination gets the existing
    link back. Anonymous creation always makes a new link.

    Args:
        db: Database session
        url: Destination, normalized to carry an http(s) scheme
        custom_alias: Optional alias used as the short code
        owner: Authenticated owner or None for anonymous creation

    Returns:
        Tuple of (link, created)

    Raises:
        ValidationError: Bad URL, alias, text fields or expiration
        ConflictError: Alias already taken
        CapacityError: No free generated code within the attempt budget
    """
    original_url = clean_destination(url)
    expires_at = validate_expiration(expires_at)
    title = clean_text(title, "Title", MAX_TITLE_LENGTH)
    description = clean_text(description, "Description", MAX_DESCRIPTION_LENGTH)
    tags = clean_tags(tags)

    alias = None
    if custom_alias is not None:
        alias = validate_alias_not_reserved(validate_alias_format(custom_alias))

    owner_id = owner.id if owner is not None else None

    if owner_id is not None:
        existing = db.query(Link).filter(
            Link.owner_id == owner_id,
            Link.original_url == original_url
        ).first()
        if existing:
            return existing, False

    attempt = 0
    while True:
        if alias:
            code = allocate_code(db, alias)
        else:
            code, attempt = generate_unique_code(db, settings.SHORT_CODE_LENGTH, attempt)

        link = Link(
            short_code=code,
            custom_alias=alias,
            original_url=original_url,
            owner_id=owner_id,
            title=title or extract_domain(original_url),
            description=description,
            tags=tags,
            expires_at=expires_at,
        )
        db.add(link)

        if owner_id is not None:
            db.query(User).filter(User.id == owner_id).update(
                {User.links_count: User.links_count + 1},
                synchronize_session=False
            )

        try:
            db.commit()
        except IntegrityError:
            # Lost an insert race: the unique constraint is authoritative
            db.rollback()
            if alias:
                raise ConflictError("This alias is already taken")
            logger.warning("Short code %s taken at insert time, retrying", code)
            continue

        db.refresh(link)
        logger.info("Created link %s -> %s (owner=%s)", link.short_code, original_url, owner_id)
        return link, True


def get_link(db: Session, link_id: int, owner: User, for_update: bool = False) -> Link:
    """Get a link owned by the user; other owners' links are reported as missing"""
    query = db.query(Link).filter(Link.id == link_id, Link.owner_id == owner.id)
    if for_update:
        query = query.with_for_update()

    link = query.first()
    if not link:
        raise NotFoundError("URL not found")
    return link


def list_links(
    db: Session,
    owner: User,
    page: int = 1,
    limit: int = 10,
    search: Optional[str] = None,
    sort_by: str = "created_at",
    sort_order: str = "desc",
) -> Tuple[List[Link], int]:
    """
    List the owner's links with search, sorting and pagination.

    Search matches title, destination, short code and tags (case-insensitive).

    Returns:
        Tuple of (links on the page, total matching links)
    """
    if sort_by not in SORTABLE_FIELDS:
        raise ValidationError(f"Cannot sort by '{sort_by}'")
    if sort_order not in ("asc", "desc"):
        raise ValidationError("Sort order must be 'asc' or 'desc'")

    query = db.query(Link).filter(Link.owner_id == owner.id)

    if search:
        search_pattern = _like_pattern(search)
        query = query.filter(or_(
            func.lower(Link.title).like(search_pattern, escape=LIKE_ESCAPE),
            func.lower(Link.original_url).like(search_pattern, escape=LIKE_ESCAPE),
            func.lower(Link.short_code).like(search_pattern, escape=LIKE_ESCAPE),
            _tag_matches(db, search_pattern),
        ))

    total = query.count()

    order = desc if sort_order == "desc" else asc
    links = query.order_by(
        order(SORTABLE_FIELDS[sort_by]), order(Link.id)
    ).offset((page - 1) * limit).limit(limit).all()

    return links, total


def update_link(db: Session, link_id: int, owner: User, fields: Dict[str, Any]) -> Link:
    """
    Update allow-listed fields of an owned link.

    A non-null expires_at must be in the future; null clears it.
    """
    rejected = set(fields) - UPDATABLE_FIELDS
    if rejected:
        raise ValidationError(f"Fields cannot be updated: {', '.join(sorted(rejected))}")

    link = get_link(db, link_id, owner)

    # Validate everything before touching the link
    changes = {}
    if "title" in fields:
        changes["title"] = clean_text(fields["title"], "Title", MAX_TITLE_LENGTH)
    if "description" in fields:
        changes["description"] = clean_text(fields["description"], "Description", MAX_DESCRIPTION_LENGTH)
    if "tags" in fields:
        changes["tags"] = clean_tags(fields["tags"])
    if "is_active" in fields:
        if fields["is_active"] is None:
            raise ValidationError("is_active cannot be null")
        changes["is_active"] = bool(fields["is_active"])
    if "expires_at" in fields:
        changes["expires_at"] = validate_expiration(fields["expires_at"])

    for field, value in changes.items():
        setattr(link, field, value)

    db.commit()
    db.refresh(link)

    return link


def delete_link(db: Session, link_id: int, owner: User) -> None:
    """
    Delete an owned link together with its clicks and adjust owner counters.

    All three effects share one transaction.
    """
    link = get_link(db, link_id, owner, for_update=True)
    short_code = link.short_code
    owner_id = owner.id

    try:
        db.query(Click).filter(Click.link_id == link.id).delete(synchronize_session=False)

        # Re-read under the write lock so concurrent increments are not lost
        clicks_count = db.query(Link.clicks_count).filter(Link.id == link.id).scalar() or 0

        db.query(User).filter(User.id == owner_id).update(
            {
                User.links_count: User.links_count - 1,
                User.total_clicks: User.total_clicks - clicks_count,
            },
            synchronize_session=False
        )
        db.delete(link)
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info("Deleted link %s with %d clicks (owner=%s)", short_code, clicks_count, owner_id)


def resolve_code(db: Session, code: str) -> Optional[Link]:
    """
    Find an active link by short code or custom alias.

    Expiration is not checked here; the redirect decides between not-found and gone.
    """
    return db.query(Link).filter(
        or_(Link.short_code == code, Link.custom_alias == code),
        Link.is_active.is_(True)
    ).first()
