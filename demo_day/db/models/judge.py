# db/models/judge.py
import uuid
from sqlalchemy import ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column
from demo_day.db.models._base import Base

class Judge(Base):
    __tablename__ = "judge"
    __table_args__ = (UniqueConstraint("user_id", "event_id", name="uq_judge_user_event"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("user.id", ondelete="CASCADE"), nullable=False, index=True)
    event_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("event.id", ondelete="CASCADE"), nullable=False, index=True)
