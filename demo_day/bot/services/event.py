# bot/services/event.py
from uuid import UUID
from datetime import datetime
from typing import Optional, ClassVar, Self, List, Tuple
from demo_day.db.database import DataBase
from demo_day.db.enums import EventMode, EventStatus
from demo_day.db.models._base import utcnow
from demo_day.db.schemas.event import EventCreate, EventRead, EventUpdate
from demo_day.db.schemas.user import UserRead
from demo_day.errors import InvalidReference, UnsupportedForMode
from demo_day.bot.services.user import UserService
from demo_day.bot.services.audit_log import instrument_service_class


class EventService:
	"""
	Event records as consumed by the judging engine.

	Events are always re-read from the store: the scoring lock and the
	category list change while judging is in progress.
	"""
	_instance: ClassVar[Optional["EventService"]] = None

	def __new__(cls) -> Self:
		if cls._instance is None:
			cls._instance = super().__new__(cls)
		return cls._instance

	def __init__(self) -> None:
		if getattr(self, "_initialized", False):
			return

		self._database = DataBase()
		self._initialized = True

	async def create_event(self, actor: UserRead, payload: EventCreate) -> EventRead:
		UserService.require_admin(actor)
		return await self._database.create_event(payload)

	async def update_event(self, actor: UserRead, payload: EventUpdate) -> EventRead:
		UserService.require_admin(actor)
		try:
			return await self._database.update_event(payload)
		except LookupError:
			raise InvalidReference("Event not found")

	async def get_event(self, event_id: UUID) -> Optional[EventRead]:
		return await self._database.get_event(event_id)

	async def require_event(self, event_id: UUID) -> EventRead:
		event = await self._database.get_event(event_id)
		if event is None:
			raise InvalidReference("Event not found")
		return event

	async def require_standard_event(self, event_id: UUID) -> EventRead:
		event = await self.require_event(event_id)
		if event.mode != EventMode.STANDARD_JUDGING:
			raise UnsupportedForMode("This event does not use judging")
		return event

	async def get_event_by_slug(self, slug: str) -> Optional[EventRead]:
		return await self._database.get_event_by_slug(slug)

	async def list_events_page(self, page: int, page_size: int) -> Tuple[List[EventRead], int]:
		return await self._database.list_events(limit=page_size, offset=max(page, 0) * page_size)

	@staticmethod
	def event_status(event: EventRead, now: Optional[datetime] = None) -> EventStatus:
		now = now if now is not None else utcnow()
		if now > event.end_at:
			return EventStatus.PAST
		if now < event.start_at:
			return EventStatus.UPCOMING
		return EventStatus.ACTIVE

	async def release_results(self, actor: UserRead, event_id: UUID) -> EventRead:
		UserService.require_admin(actor)
		await self.require_event(event_id)
		return await self._database.set_results_released(event_id, True)

	async def remove_event(self, actor: UserRead, event_id: UUID) -> bool:
		"""Delete the event together with its teams, judges, scores, prizes and winners."""
		UserService.require_admin(actor)
		if not await self._database.delete_event(event_id):
			raise InvalidReference("Event not found")
		return True


instrument_service_class(
	EventService,
	prefix="services.event",
	actor_fields=("actor",),
	exclude={"get_event", "require_event", "require_standard_event", "get_event_by_slug", "list_events_page"},
)
