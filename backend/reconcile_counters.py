"""
Repair denormalized click and link counters.

Click recording updates counters after the redirect has been answered, so a
failed write can leave them out of step with the stored clicks. Schedule this
script to recount and fix them.

Usage:
    python reconcile_counters.py
"""

from shortlinks.database import SessionLocal
from shortlinks.services.counters import reconcile_counters


def run_reconcile():
    """Run the recount in its own session."""
    db = SessionLocal()

    try:
        result = reconcile_counters(db)
        print(f"Fixed {result['links_fixed']} link counters")
        print(f"Fixed {result['users_fixed']} user counters")
        return result
    finally:
        db.close()


if __name__ == "__main__":
    run_reconcile()
