# db/schemas/event.py
import uuid
from datetime import datetime
from typing import List, Optional
from pydantic import Field
from demo_day.db.schemas._base import OrmModel
from demo_day.db.enums import EventMode
from demo_day.utils.sentinels import Missing

class EventCategory(OrmModel):
    name: str
    weight: float = 1.0
    opt_out_allowed: bool = False

class ScoringLockRead(OrmModel):
    locked_at: datetime
    locked_by: Optional[uuid.UUID] = None
    reason: Optional[str] = None

class EventBase(OrmModel):
    name: str
    slug: str
    description: str = ""
    start_at: datetime
    end_at: datetime
    mode: EventMode = EventMode.STANDARD_JUDGING
    categories: List[EventCategory] = Field(default_factory=list)
    tracks: Optional[List[str]] = None
    enable_cohorts: bool = False
    judge_code: Optional[str] = None

class EventCreate(EventBase): ...

class EventUpdate(OrmModel):
    id: uuid.UUID
    name: str | Missing = Missing()
    description: str | Missing = Missing()
    start_at: datetime | Missing = Missing()
    end_at: datetime | Missing = Missing()
    categories: List[EventCategory] | Missing = Missing()
    tracks: List[str] | Missing | None = Missing()
    enable_cohorts: bool | Missing = Missing()
    judge_code: str | Missing | None = Missing()

class EventRead(EventBase):
    id: uuid.UUID
    results_released: bool = False
    scoring_locked_at: Optional[datetime] = None
    scoring_locked_by: Optional[uuid.UUID] = None
    scoring_lock_reason: Optional[str] = None

    @property
    def is_standard(self) -> bool:
        return self.mode == EventMode.STANDARD_JUDGING

    @property
    def is_locked(self) -> bool:
        return self.scoring_locked_at is not None

    @property
    def scoring_lock(self) -> Optional[ScoringLockRead]:
        if self.scoring_locked_at is None:
            return None
        return ScoringLockRead(
            locked_at=self.scoring_locked_at,
            locked_by=self.scoring_locked_by,
            reason=self.scoring_lock_reason,
        )

    @property
    def category_names(self) -> List[str]:
        return [c.name for c in self.categories]

    @property
    def track_names(self) -> List[str]:
        """Declared tracks; events without tracks register teams under category names."""
        if self.tracks:
            return list(self.tracks)
        return self.category_names

    def category(self, name: str) -> Optional[EventCategory]:
        return next((c for c in self.categories if c.name == name), None)
