# bot/services/team.py
from uuid import UUID
from typing import Optional, ClassVar, Self, List
from demo_day.db.schemas.user import UserRead
from demo_day.db.schemas.event import EventRead
from demo_day.db.schemas.team import TeamRead, TeamCreate, TeamUpdate
from demo_day.db.database import DataBase
from demo_day.errors import InvalidReference, NotAuthorized
from demo_day.bot.services.event import EventService
from demo_day.bot.services.audit_log import instrument_service_class


class TeamService:
	_instance: ClassVar[Optional["TeamService"]] = None

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

	async def create_team(self, actor: UserRead, team: TeamCreate) -> TeamRead:
		"""
		Register a project for an event.
		Participants always submit as themselves; admins may create teams on
		behalf of someone else (or nobody).
		"""
		await self._event_svc.require_event(team.event_id)
		if not actor.is_admin:
			team = team.model_copy(update={"submitted_by": actor.id})
		return await self._database.create_team(team)

	async def update_team(self, actor: UserRead, team: TeamUpdate) -> TeamRead:
		current = await self._database.get_team(team.id)
		if current is None:
			raise InvalidReference("Team not found")
		self._require_owner(actor, current)
		return await self._database.update_team(team)

	async def remove_team(self, actor: UserRead, team_id: UUID) -> bool:
		current = await self._database.get_team(team_id)
		if current is None:
			raise InvalidReference("Team not found")
		self._require_owner(actor, current)
		return await self._database.delete_team(team_id)

	async def get_team(self, team_id: UUID) -> Optional[TeamRead]:
		return await self._database.get_team(team_id)

	async def require_team_in_event(self, event: EventRead, team_id: UUID) -> TeamRead:
		team = await self._database.get_team(team_id)
		if team is None or team.event_id != event.id:
			raise InvalidReference("Team does not belong to this event")
		return team

	async def list_teams(self, event_id: UUID, include_hidden: bool = False) -> List[TeamRead]:
		return await self._database.list_teams_by_event(event_id, include_hidden=include_hidden)

	async def get_team_by_submitter(self, event_id: UUID, user: UserRead) -> Optional[TeamRead]:
		return await self._database.get_team_by_submitter(event_id, user.id)

	@staticmethod
	def _require_owner(actor: UserRead, team: TeamRead) -> None:
		if actor.is_admin:
			return
		if team.submitted_by is None or team.submitted_by != actor.id:
			raise NotAuthorized("Only the submitter or an admin can change this team")


instrument_service_class(
	TeamService,
	prefix="services.team",
	actor_fields=("actor",),
	exclude={"get_team", "require_team_in_event", "list_teams", "get_team_by_submitter"},
)
