# bot/middlewares/user.py
from typing import Callable, Self, Awaitable, Any, ClassVar, Optional, Dict
from aiogram import BaseMiddleware
from aiogram.types import User as TgUser
from demo_day.db.schemas.user import UserRead
from demo_day.bot.services.user import UserService
from demo_day.bot.services.audit_log import audit_logger

class UserMiddleware(BaseMiddleware):
	"""Resolves the chat user into ``data["current_user"]`` and binds them as the audit actor."""
	_instance: ClassVar[Optional["UserMiddleware"]] = None

	def __new__(cls, *args, **kwargs) -> Self:
		if cls._instance is None:
			cls._instance = super().__new__(cls)

		return cls._instance

	def __init__(self,  *args, **kwargs) -> None:
		if getattr(self, "_initialized", False):
			return

		self._user_service = UserService()

		self._initialized = True

	async def get_user(self, tg_user: TgUser) -> UserRead:
		return await self._user_service.get_or_register(
			tg_id=tg_user.id,
			tg_username=tg_user.username,
			display_name=tg_user.full_name,
		)

	async def __call__(self,
		handler: Callable[[Any, Dict[str, Any]], Awaitable[Any]],
		event: Any,
		data: dict[str, Any]) -> Any:
		tg_user: Optional[TgUser] = data.get("event_from_user")
		if tg_user is None:
			return

		user = await self.get_user(tg_user)
		data["current_user"] = user
		token = audit_logger.bind_actor(user.id)
		try:
			return await handler(event, data)
		finally:
			audit_logger.unbind_actor(token)
