# db/models/event.py
import uuid
from datetime import datetime
from typing import Optional
from sqlalchemy import Boolean, DateTime, Enum as SAEnum, ForeignKey, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column
from demo_day.db.models._base import Base, JsonType, utcnow
from demo_day.db.enums import EventMode

class Event(Base):
    __tablename__ = "event"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(256), nullable=False)
    slug: Mapped[str] = mapped_column(String(128), nullable=False, unique=True, index=True)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    start_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)
    end_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)
    mode: Mapped[EventMode] = mapped_column(
        SAEnum(EventMode, name="event_mode"), nullable=False, default=EventMode.STANDARD_JUDGING
    )
    # [{"name": str, "weight": float, "opt_out_allowed": bool}, ...]
    categories: Mapped[list] = mapped_column(JsonType, nullable=False, default=list)
    tracks: Mapped[Optional[list]] = mapped_column(JsonType, nullable=True)
    enable_cohorts: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    results_released: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    judge_code: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    scoring_locked_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=False), nullable=True)
    scoring_locked_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("user.id", ondelete="SET NULL"), nullable=True
    )
    scoring_lock_reason: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=utcnow)

