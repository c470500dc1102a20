# db/models/team.py
import uuid
from datetime import datetime
from typing import Optional
from sqlalchemy import Boolean, DateTime, ForeignKey, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column
from demo_day.db.models._base import Base, JsonType, utcnow

class Team(Base):
    __tablename__ = "team"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    event_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("event.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(256), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    members: Mapped[list] = mapped_column(JsonType, nullable=False, default=list)
    track: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    logo_ref: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    project_url: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    hidden: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    submitted_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("user.id", ondelete="SET NULL"), nullable=True, index=True
    )
    submitted_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=utcnow)

