# bot/services/user.py
from uuid import UUID
from typing import Self, ClassVar, Optional
from demo_day.config import Settings
from demo_day.db.schemas.user import UserRead, UserCreate, UserUpdate
from demo_day.db.enums import UserRole
from demo_day.db.database import DataBase
from demo_day.errors import NotAuthorized
from demo_day.bot.services.audit_log import instrument_service_class

class UserService:
    _instance: ClassVar[Optional["UserService"]] = None

    def __new__(cls) -> Self:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self) -> None:
        if getattr(self, "_initialized", False):
            return

        self.database = DataBase()
        self.users: dict[int, UserRead] = dict()
        self._initialized = True

    def _remember(self, user: UserRead) -> UserRead:
        if isinstance(user.tg_id, int):
            self.users[user.tg_id] = user
        return user

    async def create_user(self, user: UserCreate) -> UserRead:
        return self._remember(await self.database.create_user(user))

    async def update_user(self, user: UserUpdate) -> UserRead:
        return self._remember(await self.database.update_user(user))

    async def change_role(self, actor: UserRead, user: UserRead, role: UserRole) -> UserRead:
        self.require_admin(actor)
        return await self.update_user(UserUpdate(id=user.id, role=role))

    async def get_user(self, uid: UUID) -> Optional[UserRead]:
        return await self.database.get_user_by_id(uid)

    async def get_or_register(self, tg_id: int, tg_username: Optional[str] = None, display_name: Optional[str] = None) -> UserRead:
        """
        Resolve the chat user, creating the record on first contact.
        Usernames listed in ``ADMIN_USERNAMES`` are registered as admins.
        """
        user = self.users.get(tg_id)
        if user is not None and user.tg_username == tg_username:
            return user

        admins = Settings().admin_usernames
        role = UserRole.ADMIN if tg_username and tg_username.lstrip("@") in admins else UserRole.MEMBER
        user = await self.database.upsert_user_by_tg_id(
            UserCreate(tg_id=tg_id, tg_username=tg_username, display_name=display_name, role=role)
        )
        return self._remember(user)

    @staticmethod
    def require_admin(user: Optional[UserRead]) -> UUID:
        """Return the admin's id or fail with ``NotAuthorized``."""
        if user is None or not user.is_admin:
            raise NotAuthorized("Admin access required")
        return user.id


instrument_service_class(
    UserService,
    prefix="services.user",
    actor_fields=("actor",),
    exclude={"get_user", "get_or_register"},
)
