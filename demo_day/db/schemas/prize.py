# db/schemas/prize.py
import uuid
from datetime import datetime
from typing import List, Optional
from demo_day.db.schemas._base import OrmModel
from demo_day.db.enums import PrizeType, ScoreBasis

class PrizeInput(OrmModel):
    """Prize definition as entered by an admin; ``prize_id`` set means "update this prize"."""
    prize_id: Optional[uuid.UUID] = None
    name: str
    description: Optional[str] = None
    type: PrizeType = PrizeType.GENERAL
    track: Optional[str] = None
    sponsor_name: Optional[str] = None
    score_basis: Optional[ScoreBasis] = None
    score_category_names: Optional[List[str]] = None
    is_active: Optional[bool] = None
    sort_order: Optional[int] = None

class PrizeWrite(OrmModel):
    name: str
    description: Optional[str] = None
    type: PrizeType
    track: Optional[str] = None
    sponsor_name: Optional[str] = None
    score_basis: ScoreBasis = ScoreBasis.NONE
    score_category_names: Optional[List[str]] = None
    is_active: bool = True
    sort_order: int = 0

class PrizeRead(PrizeWrite):
    id: uuid.UUID
    event_id: uuid.UUID
    created_by: Optional[uuid.UUID] = None
    created_at: datetime
    updated_at: datetime
