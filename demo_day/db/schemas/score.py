# db/schemas/score.py
import uuid
from datetime import datetime
from typing import List, Optional
from pydantic import Field
from demo_day.db.schemas._base import OrmModel

class CategoryScore(OrmModel):
    category: str
    score: Optional[float] = None
    opted_out: bool = False

class ScoreEntry(OrmModel):
    """One team's category scores inside a batch submission."""
    team_id: uuid.UUID
    category_scores: List[CategoryScore] = Field(default_factory=list)

class ScoreWrite(OrmModel):
    judge_id: uuid.UUID
    team_id: uuid.UUID
    event_id: uuid.UUID
    category_scores: List[CategoryScore]
    total_score: float

class ScoreRead(ScoreWrite):
    id: uuid.UUID
    submitted_at: datetime
