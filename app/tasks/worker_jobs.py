import logging

from sqlalchemy.exc import OperationalError, ProgrammingError

from app.core.config import settings
from app.db.session import Database
from app.services.email_service import process_pending_emails

logger = logging.getLogger(__name__)


def process_email_queue(limit: int = 50, database: Database | None = None, sender=None) -> dict:
    """Process queued/failed emails (retry send). Run periodically via Celery beat."""
    owned = database is None
    database = database or Database(settings.DATABASE_URL)
    db = database.session()
    try:
        try:
            result = process_pending_emails(db, limit=limit, sender=sender)
        except (ProgrammingError, OperationalError):
            # DB not migrated yet; don't crash the worker.
            db.rollback()
            logger.warning("email_logs table not available; skipping email retry run")
            return {"skipped": True, "reason": "missing_tables"}
        if result["processed"]:
            logger.info("Email retry run: %s", result)
        return result
    finally:
        db.close()
        if owned:
            database.dispose()
