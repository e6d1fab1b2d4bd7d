"""
CLI entrypoint for the rental expiry sweep. Run from cron, e.g.:

  python -m app.expiry

Or hourly: 0 * * * * cd /path/to/rental-hub && .venv/bin/python -m app.expiry
"""

import logging
import sys

from app.core.config import get_settings
from app.core.database import SessionLocal
from app.services.orders import sweep_expired

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)


def main() -> int:
    """Expire orders whose end_date has passed while still Placed or In Progress."""
    settings = get_settings()
    if not settings.EXPIRY_SWEEP_ENABLED:
        logger.info("Expiry sweep disabled (EXPIRY_SWEEP_ENABLED=false); nothing to do.")
        return 0
    db = SessionLocal()
    try:
        expired = sweep_expired(db, settings=settings)
        logger.info("Expiry sweep completed: orders_expired=%s", expired)
        return 0
    except Exception as e:
        logger.exception("Expiry sweep failed: %s", e)
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
