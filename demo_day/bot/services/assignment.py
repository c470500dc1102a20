# bot/services/assignment.py
from uuid import UUID
from typing import Optional, ClassVar, Self, List, Sequence, Tuple
from demo_day.db.database import DataBase
from demo_day.db.schemas.event import EventRead
from demo_day.db.schemas.judge import JudgeAssignmentRead, JudgeRead
from demo_day.db.schemas.user import UserRead
from demo_day.errors import InvalidReference
from demo_day.bot.services.event import EventService
from demo_day.bot.services.judge import JudgeService
from demo_day.bot.services.team import TeamService
from demo_day.bot.services.audit_log import instrument_service_class


class AssignmentService:
	"""
	(judge, team) pairs for cohort judging: the teams a judge intends to score.

	Mutations require judge membership, a team of the same event and an
	unlocked event. Removing an assignment also removes the judge's score
	for that team.
	"""
	_instance: ClassVar[Optional["AssignmentService"]] = None

	def __new__(cls) -> Self:
		if cls._instance is None:
			cls._instance = super().__new__(cls)
		return cls._instance

	def __init__(self) -> None:
		if getattr(self, "_initialized", False):
			return

		self._database = DataBase()
		self._event_svc = EventService()
		self._judge_svc = JudgeService()
		self._team_svc = TeamService()
		self._initialized = True

	async def _judge_context(self, actor: UserRead, event_id: UUID) -> Tuple[EventRead, JudgeRead]:
		event = await self._event_svc.require_standard_event(event_id)
		judge = await self._judge_svc.require_judge_membership(actor, event)
		return event, judge

	async def assign(self, actor: UserRead, event_id: UUID, team_id: UUID) -> JudgeAssignmentRead:
		event, judge = await self._judge_context(actor, event_id)
		await self._team_svc.require_team_in_event(event, team_id)

		assignments, _ = await self._database.create_assignments(judge.id, event.id, [team_id])
		if not assignments:
			raise InvalidReference("Team does not belong to this event")
		return assignments[0]

	async def assign_many(self, actor: UserRead, event_id: UUID, team_ids: Sequence[UUID]) -> int:
		"""
		Best-effort batch: unknown teams and teams of other events are skipped.

		Returns:
			int: number of assignments actually created.
		"""
		event, judge = await self._judge_context(actor, event_id)

		_, added = await self._database.create_assignments(judge.id, event.id, team_ids)
		return added

	async def unassign(self, actor: UserRead, event_id: UUID, team_id: UUID) -> bool:
		event, judge = await self._judge_context(actor, event_id)
		await self._team_svc.require_team_in_event(event, team_id)

		return await self._database.delete_assignment(judge.id, event.id, team_id)

	async def list_assigned(self, actor: UserRead, event_id: UUID) -> List[UUID]:
		"""Team ids assigned to the caller; empty when the caller is not a judge of the event."""
		judge = await self._judge_svc.get_judge(actor, event_id)
		if judge is None:
			return []
		return await self._database.list_assigned_team_ids(judge.id, event_id)


instrument_service_class(
	AssignmentService,
	prefix="services.assignment",
	actor_fields=("actor",),
	exclude={"list_assigned"},
)
