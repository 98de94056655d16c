# Public router for unauthenticated routes
import structlog
from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from bloodbank import __version__
from bloodbank.database import get_db

router = APIRouter(tags=["public"])
logger = structlog.get_logger(__name__)


@router.get("/")
def root_healthcheck():
    return {"status": "ok"}


@router.get("/health")
def health(db: Session = Depends(get_db)):
    """Liveness plus a trivial database round trip."""
    try:
        db.execute(text("SELECT 1"))
        database = "ok"
    except SQLAlchemyError as e:
        logger.error("Health check database probe failed", error=str(e))
        database = "unavailable"
    return {"status": "ok", "database": database, "version": __version__}
