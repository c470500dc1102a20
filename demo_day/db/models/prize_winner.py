# db/models/prize_winner.py
import uuid
from datetime import datetime
from typing import Optional
from sqlalchemy import DateTime, ForeignKey, Integer, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column
from demo_day.db.models._base import Base, utcnow

class PrizeWinner(Base):
    __tablename__ = "prize_winner"
    __table_args__ = (UniqueConstraint("prize_id", "team_id", name="uq_prize_winner_prize_team"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    event_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("event.id", ondelete="CASCADE"), nullable=False, index=True)
    prize_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("prize.id", ondelete="CASCADE"), nullable=False, index=True)
    team_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("team.id", ondelete="CASCADE"), nullable=False, index=True)
    placement: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
    selected_by: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, ForeignKey("user.id", ondelete="SET NULL"), nullable=True)
    selected_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=utcnow)
