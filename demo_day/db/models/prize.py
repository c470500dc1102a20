# db/models/prize.py
import uuid
from datetime import datetime
from typing import Optional
from sqlalchemy import Boolean, DateTime, Enum as SAEnum, ForeignKey, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column
from demo_day.db.models._base import Base, JsonType, utcnow
from demo_day.db.enums import PrizeType, ScoreBasis

class Prize(Base):
    __tablename__ = "prize"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    event_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("event.id", ondelete="CASCADE"), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(256), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    type: Mapped[PrizeType] = mapped_column(SAEnum(PrizeType, name="prize_type"), nullable=False, default=PrizeType.GENERAL)
    track: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    sponsor_name: Mapped[Optional[str]] = mapped_column(String(256), nullable=True)
    score_basis: Mapped[ScoreBasis] = mapped_column(
        SAEnum(ScoreBasis, name="score_basis"), nullable=False, default=ScoreBasis.NONE
    )
    score_category_names: Mapped[Optional[list]] = mapped_column(JsonType, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_by: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, ForeignKey("user.id", ondelete="SET NULL"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=utcnow)
