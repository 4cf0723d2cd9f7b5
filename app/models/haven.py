from sqlalchemy import String, Integer, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime, timezone
from app.db.session import Base

class Haven(Base):
    __tablename__ = "havens"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    haven_name: Mapped[str] = mapped_column(String(200), unique=True, index=True)  # bookings reference this by name
    tower: Mapped[str] = mapped_column(String(80), default="")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))


class HavenImage(Base):
    __tablename__ = "haven_images"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    haven_id: Mapped[str] = mapped_column(String(36), ForeignKey("havens.id", ondelete="CASCADE"), index=True)
    image_url: Mapped[str] = mapped_column(String(1024))
    display_order: Mapped[int] = mapped_column(Integer, default=0)
