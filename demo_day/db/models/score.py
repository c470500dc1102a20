# db/models/score.py
import uuid
from datetime import datetime
from sqlalchemy import DateTime, Float, ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column
from demo_day.db.models._base import Base, JsonType, utcnow

class Score(Base):
    __tablename__ = "score"
    __table_args__ = (UniqueConstraint("judge_id", "team_id", name="uq_score_judge_team"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    judge_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("judge.id", ondelete="CASCADE"), nullable=False, index=True)
    team_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("team.id", ondelete="CASCADE"), nullable=False, index=True)
    event_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("event.id", ondelete="CASCADE"), nullable=False, index=True)
    # [{"category": str, "score": float | None, "opted_out": bool}, ...]
    category_scores: Mapped[list] = mapped_column(JsonType, nullable=False, default=list)
    total_score: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    submitted_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=utcnow)
