import logging
import uuid

from sqlalchemy.orm import Session
from sqlalchemy import text
from sqlalchemy.exc import OperationalError, ProgrammingError

from app.core.config import settings
from app.db.session import Database
from app.models.haven import Haven, HavenImage

logger = logging.getLogger(__name__)

# (haven_name, tower, gallery image paths relative to MEDIA_PUBLIC_URL)
HAVENS = [
    ("Haven 1", "Tower A", ["havens/haven-1/living.jpg", "havens/haven-1/bedroom.jpg"]),
    ("Haven 2", "Tower A", ["havens/haven-2/living.jpg", "havens/haven-2/view.jpg"]),
    ("Haven 3", "Tower B", ["havens/haven-3/living.jpg"]),
    ("Haven 4", "Tower B", ["havens/haven-4/living.jpg", "havens/haven-4/kitchen.jpg"]),
]


def ensure_haven(db: Session, name: str, tower: str, images: list[str]) -> bool:
    if db.query(Haven.id).filter(Haven.haven_name == name).first():
        return False
    haven = Haven(id=str(uuid.uuid4()), haven_name=name, tower=tower)
    db.add(haven)
    base = settings.MEDIA_PUBLIC_URL.rstrip("/")
    for order, path in enumerate(images):
        db.add(HavenImage(id=str(uuid.uuid4()), haven_id=haven.id, image_url=f"{base}/{path}", display_order=order))
    return True


def run(db: Session | None = None):
    database = None
    if db is None:
        database = Database(settings.DATABASE_URL)
        db = database.session()
    try:
        # If migrations haven't been applied yet, seeding must not crash the API.
        try:
            db.execute(text("SELECT 1 FROM havens LIMIT 1"))
        except (ProgrammingError, OperationalError):
            db.rollback()
            logger.warning("havens table not found yet. Skipping seeding (run alembic upgrade head).")
            return

        created = [name for name, tower, images in HAVENS if ensure_haven(db, name, tower, images)]
        db.commit()
        if created:
            logger.info("Seeded havens: %s", ", ".join(created))
    finally:
        if database is not None:
            db.close()
            database.dispose()


if __name__ == "__main__":
    logging.basicConfig(level=settings.LOG_LEVEL.upper())
    run()
