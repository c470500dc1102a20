# db/schemas/prize_submission.py
import uuid
from datetime import datetime
from typing import Optional
from demo_day.db.schemas._base import OrmModel

class PrizeSubmissionRead(OrmModel):
    id: uuid.UUID
    event_id: uuid.UUID
    team_id: uuid.UUID
    prize_id: uuid.UUID
    submitted_by: Optional[uuid.UUID] = None
    submitted_at: datetime
