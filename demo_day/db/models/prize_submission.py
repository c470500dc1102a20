# db/models/prize_submission.py
import uuid
from datetime import datetime
from typing import Optional
from sqlalchemy import DateTime, ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column
from demo_day.db.models._base import Base, utcnow

class PrizeSubmission(Base):
    __tablename__ = "prize_submission"
    __table_args__ = (UniqueConstraint("team_id", "prize_id", name="uq_prize_submission_team_prize"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    event_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("event.id", ondelete="CASCADE"), nullable=False, index=True)
    team_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("team.id", ondelete="CASCADE"), nullable=False, index=True)
    prize_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("prize.id", ondelete="CASCADE"), nullable=False, index=True)
    submitted_by: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, ForeignKey("user.id", ondelete="SET NULL"), nullable=True)
    submitted_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=utcnow)
