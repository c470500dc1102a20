# db/models/judge_assignment.py
import uuid
from datetime import datetime
from sqlalchemy import DateTime, ForeignKey, Index, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column
from demo_day.db.models._base import Base, utcnow

class JudgeAssignment(Base):
    __tablename__ = "judge_assignment"
    __table_args__ = (
        UniqueConstraint("judge_id", "team_id", name="uq_assignment_judge_team"),
        Index("ix_assignment_judge_event", "judge_id", "event_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    judge_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("judge.id", ondelete="CASCADE"), nullable=False)
    event_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("event.id", ondelete="CASCADE"), nullable=False, index=True)
    team_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("team.id", ondelete="CASCADE"), nullable=False, index=True)
    added_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=utcnow)
