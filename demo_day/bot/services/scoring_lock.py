# bot/services/scoring_lock.py
import logging
from uuid import UUID
from typing import Optional, ClassVar, Self
from demo_day.db.database import DataBase
from demo_day.db.schemas.event import ScoringLockRead
from demo_day.db.schemas.user import UserRead
from demo_day.bot.services.event import EventService
from demo_day.bot.services.user import UserService
from demo_day.bot.services.audit_log import instrument_service_class

logger = logging.getLogger(__name__)


class ScoringLockService:
	"""
	Binary scoring freeze per event: ``Unlocked`` or ``Locked {at, by, reason}``.
	Only admins switch it and only on standard judging events.
	"""
	_instance: ClassVar[Optional["ScoringLockService"]] = None

	def __new__(cls) -> Self:
		if cls._instance is None:
			cls._instance = super().__new__(cls)
		return cls._instance

	def __init__(self) -> None:
		if getattr(self, "_initialized", False):
			return

		self._database = DataBase()
		self._event_svc = EventService()
		self._initialized = True

	async def lock(self, actor: UserRead, event_id: UUID, reason: Optional[str] = None) -> ScoringLockRead:
		admin_id = UserService.require_admin(actor)
		event = await self._event_svc.require_standard_event(event_id)
		if event.is_locked:
			return event.scoring_lock

		reason = reason.strip() if reason and reason.strip() else None
		event = await self._database.set_scoring_lock(event.id, locked_by=admin_id, reason=reason, locked=True)
		logger.info("Scoring locked for event %s by %s", event.id, admin_id)
		return event.scoring_lock

	async def unlock(self, actor: UserRead, event_id: UUID) -> None:
		UserService.require_admin(actor)
		event = await self._event_svc.require_standard_event(event_id)
		if not event.is_locked:
			return None

		await self._database.set_scoring_lock(event.id, locked_by=None, reason=None, locked=False)
		logger.info("Scoring unlocked for event %s by %s", event.id, actor.id)
		return None

	async def get_lock(self, event_id: UUID) -> Optional[ScoringLockRead]:
		event = await self._event_svc.require_event(event_id)
		return event.scoring_lock


instrument_service_class(
	ScoringLockService,
	prefix="services.scoring_lock",
	actor_fields=("actor",),
	exclude={"get_lock"},
)
