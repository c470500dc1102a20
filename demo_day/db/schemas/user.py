# db/schemas/user.py
import uuid
from typing import Optional
from pydantic import EmailStr
from demo_day.db.schemas._base import OrmModel
from demo_day.db.enums import UserRole
from demo_day.utils.sentinels import Missing

class UserBase(OrmModel):
    tg_id: Optional[int] = None
    tg_username: Optional[str] = None
    display_name: Optional[str] = None
    email: Optional[EmailStr] = None
    role: UserRole = UserRole.MEMBER

class UserCreate(UserBase): ...

class UserUpdate(OrmModel):
    id: uuid.UUID
    tg_username: str | Missing | None = Missing()
    display_name: str | Missing | None = Missing()
    email: EmailStr | Missing | None = Missing()
    role: UserRole | Missing = Missing()

class UserRead(UserBase):
    id: uuid.UUID

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def label(self) -> str:
        return self.display_name or self.tg_username or self.email or "Unknown"
