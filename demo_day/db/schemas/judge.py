# db/schemas/judge.py
import uuid
from datetime import datetime
from demo_day.db.schemas._base import OrmModel

class JudgeRead(OrmModel):
    id: uuid.UUID
    user_id: uuid.UUID
    event_id: uuid.UUID

class JudgeAssignmentRead(OrmModel):
    id: uuid.UUID
    judge_id: uuid.UUID
    event_id: uuid.UUID
    team_id: uuid.UUID
    added_at: datetime
