# db/schemas/team.py
import uuid
from datetime import datetime
from typing import List, Optional
from pydantic import Field
from demo_day.db.schemas._base import OrmModel
from demo_day.utils.sentinels import Missing

class TeamBase(OrmModel):
    event_id: uuid.UUID
    name: str
    description: str = ""
    members: List[str] = Field(default_factory=list)
    track: Optional[str] = None
    logo_ref: Optional[str] = None
    project_url: Optional[str] = None
    submitted_by: Optional[uuid.UUID] = None
    hidden: bool = False

class TeamCreate(TeamBase): ...

class TeamUpdate(OrmModel):
    id: uuid.UUID
    name: str | Missing = Missing()
    description: str | Missing = Missing()
    members: List[str] | Missing = Missing()
    track: str | Missing | None = Missing()
    logo_ref: str | Missing | None = Missing()
    project_url: str | Missing | None = Missing()
    hidden: bool | Missing = Missing()

class TeamRead(TeamBase):
    id: uuid.UUID
    submitted_at: datetime

    def __hash__(self) -> int:
        return hash(self.id)
