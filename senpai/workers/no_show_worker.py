"""
No-show Worker for Senpai Career

Sweeps confirmed bookings whose slot ended more than NO_SHOW_GRACE_HOURS ago
without either side reporting on it, and marks them as OB/OG-reported
no-shows. Listing endpoints run the same sweep lazily; this worker covers
bookings nobody looks at.

Usage:
    python -m senpai.workers.no_show_worker

Configuration:
    - NO_SHOW_GRACE_HOURS: hours after the slot start before a booking is flagged (default: 24)
    - AUTO_NO_SHOW_ENABLED: feature flag; the sweep is a no-op when false
    - WORKER_LOG_FILE: also log to logs/senpai_no_show.log (default: true)
"""

import logging
import os
from typing import Dict

from senpai.db import models
from senpai.db.database import SessionLocal
from senpai.db.models.bookings import BOOKING_CONFIRMED
from senpai.services.booking_service import detect_no_shows
from senpai.utils.feature_flags import auto_no_show_enabled

logger = logging.getLogger(__name__)

LOG_DIR = "logs"
LOG_FILE = os.path.join(LOG_DIR, "senpai_no_show.log")


def configure_logging() -> None:
    handlers = [logging.StreamHandler()]
    if os.getenv("WORKER_LOG_FILE", "true").lower() == "true":
        if not os.path.exists(LOG_DIR):
            os.makedirs(LOG_DIR)
        handlers.append(logging.FileHandler(LOG_FILE))
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s',
        handlers=handlers,
    )


def run_no_show_sweep(db=None) -> Dict[str, int]:
    """Run one sweep and return {'checked': n, 'flagged': m}."""
    own_session = db is None
    db = db or SessionLocal()
    try:
        if not auto_no_show_enabled():
            logger.info("no_show_sweep skipped: auto_no_show_enabled is off")
            return {"checked": 0, "flagged": 0}
        bookings = db.query(models.Booking).filter(models.Booking.status == BOOKING_CONFIRMED).all()
        flagged = detect_no_shows(db, bookings)
        logger.info("no_show_sweep complete: checked=%d flagged=%d", len(bookings), flagged)
        return {"checked": len(bookings), "flagged": flagged}
    finally:
        if own_session:
            db.close()


if __name__ == "__main__":
    configure_logging()
    run_no_show_sweep()
