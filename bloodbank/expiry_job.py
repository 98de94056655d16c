"""
Expiry sweep job for blood inventory
Run periodically via cron: */15 * * * * bloodbank-sweep
"""
import structlog

from bloodbank.database import SessionLocal
from bloodbank.logging_config import configure_logging
from bloodbank.services.inventory_service import sweep_expired

logger = structlog.get_logger(__name__)


def main():
    configure_logging()
    logger.info("Starting expiry sweep")
    db = SessionLocal()
    try:
        units = sweep_expired(db)
        logger.info("Expiry sweep completed", affected=len(units))
    except Exception:
        logger.exception("Expiry sweep failed")
        raise
    finally:
        db.close()


if __name__ == "__main__":
    main()
