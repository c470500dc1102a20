# db/schemas/prize_winner.py
import uuid
from datetime import datetime
from typing import Optional
from demo_day.db.schemas._base import OrmModel
from demo_day.db.schemas.prize import PrizeRead
from demo_day.db.schemas.team import TeamRead

class WinnerInput(OrmModel):
    prize_id: uuid.UUID
    team_id: uuid.UUID
    placement: Optional[int] = None
    notes: Optional[str] = None

class PrizeWinnerRead(WinnerInput):
    id: uuid.UUID
    event_id: uuid.UUID
    selected_by: Optional[uuid.UUID] = None
    selected_at: datetime

class PrizeWinnerDetail(PrizeWinnerRead):
    prize: PrizeRead
    team: TeamRead
