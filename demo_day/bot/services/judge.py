# bot/services/judge.py
import hmac
from uuid import UUID
from typing import Optional, ClassVar, Self, List
from demo_day.db.database import DataBase
from demo_day.db.schemas.event import EventRead
from demo_day.db.schemas.judge import JudgeRead
from demo_day.db.schemas.team import TeamRead
from demo_day.db.schemas.user import UserRead
from demo_day.errors import NotAJudge, NotAuthorized
from demo_day.bot.services.event import EventService
from demo_day.bot.services.team import TeamService
from demo_day.bot.services.audit_log import instrument_service_class


class JudgeService:
	_instance: ClassVar[Optional["JudgeService"]] = None

	def __new__(cls) -> Self:
		if cls._instance is None:
			cls._instance = super().__new__(cls)
		return cls._instance

	def __init__(self) -> None:
		if getattr(self, "_initialized", False):
			return

		self._database = DataBase()
		self._event_svc = EventService()
		self._team_svc = TeamService()
		self._initialized = True

	async def join_as_judge(self, actor: UserRead, event_id: UUID, code: Optional[str] = None) -> JudgeRead:
		"""
		Register the caller as a judge of the event.

		Idempotent: an existing membership is returned as is. Users who
		submitted a team to the event cannot judge it. When the event has a
		judge code, ``code`` must match it.
		"""
		event = await self._event_svc.require_event(event_id)

		existing = await self._database.get_judge(actor.id, event.id)
		if existing is not None:
			return existing

		if await self._database.get_team_by_submitter(event.id, actor.id) is not None:
			raise NotAuthorized("Participants cannot join as judges")

		if event.judge_code:
			supplied = (code or "").strip()
			if not hmac.compare_digest(supplied.encode(), event.judge_code.strip().encode()):
				raise NotAuthorized("Invalid judge code")

		return await self._database.get_or_create_judge(actor.id, event.id)

	async def get_judge(self, actor: UserRead, event_id: UUID) -> Optional[JudgeRead]:
		return await self._database.get_judge(actor.id, event_id)

	async def require_judge_membership(self, actor: UserRead, event: EventRead) -> JudgeRead:
		judge = await self._database.get_judge(actor.id, event.id)
		if judge is None:
			raise NotAJudge("You are not a judge for this event")
		return judge

	async def list_judges(self, event_id: UUID) -> List[JudgeRead]:
		return await self._database.list_judges_by_event(event_id)

	async def list_teams_to_score(self, actor: UserRead, event_id: UUID) -> List[TeamRead]:
		"""
		Teams the caller should score: the assigned ones in cohort mode,
		otherwise every visible team of the event.
		"""
		event = await self._event_svc.require_event(event_id)
		judge = await self.require_judge_membership(actor, event)
		teams = await self._team_svc.list_teams(event.id)
		if not event.enable_cohorts:
			return teams

		assigned = set(await self._database.list_assigned_team_ids(judge.id, event.id))
		return [team for team in teams if team.id in assigned]


instrument_service_class(
	JudgeService,
	prefix="services.judge",
	actor_fields=("actor",),
	exclude={"get_judge", "require_judge_membership", "list_judges"},
)
