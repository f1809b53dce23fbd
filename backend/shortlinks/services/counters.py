import logging

from sqlalchemy import func
from sqlalchemy.orm import Session

from ..models import Click, Link, User

logger = logging.getLogger(__name__)


def reconcile_counters(db: Session) -> dict:
    """
    Recompute denormalized counters from the stored rows and repair drift.

    Link click counts are rebuilt from clicks; owner link and click totals
    from links. Runs in a single transaction.

    Returns:
        Number of links and users whose counters were corrected
    """
    click_counts = dict(
        db.query(Click.link_id, func.count(Click.id)).group_by(Click.link_id).all()
    )

    links_fixed = 0
    for link in db.query(Link).all():
        actual = click_counts.get(link.id, 0)
        if link.clicks_count != actual:
            logger.info("Link %s clicks_count %d -> %d", link.short_code, link.clicks_count, actual)
            link.clicks_count = actual
            links_fixed += 1

    db.flush()

    owner_totals = {
        owner_id: (links_count, total_clicks or 0)
        for owner_id, links_count, total_clicks in db.query(
            Link.owner_id, func.count(Link.id), func.sum(Link.clicks_count)
        ).filter(Link.owner_id.isnot(None)).group_by(Link.owner_id).all()
    }

    users_fixed = 0
    for user in db.query(User).all():
        links_count, total_clicks = owner_totals.get(user.id, (0, 0))
        if user.links_count != links_count or user.total_clicks != total_clicks:
            logger.info(
                "User %s counters (%d, %d) -> (%d, %d)",
                user.id, user.links_count, user.total_clicks, links_count, total_clicks
            )
            user.links_count = links_count
            user.total_clicks = total_clicks
            users_fixed += 1

    db.commit()

    return {"links_fixed": links_fixed, "users_fixed": users_fixed}
