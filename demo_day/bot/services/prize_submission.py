# bot/services/prize_submission.py
from uuid import UUID
from typing import Optional, ClassVar, Self, List, Sequence
from demo_day.db.database import DataBase
from demo_day.db.enums import EventStatus
from demo_day.db.schemas.event import EventRead
from demo_day.db.schemas.prize_submission import PrizeSubmissionRead
from demo_day.db.schemas.team import TeamRead
from demo_day.db.schemas.user import UserRead
from demo_day.errors import IneligibleSelection, InvalidReference, SubmissionClosed
from demo_day.bot.services.event import EventService
from demo_day.bot.services.team import TeamService
from demo_day.bot.services.user import UserService
from demo_day.bot.services.prize import is_eligible
from demo_day.bot.services.audit_log import instrument_service_class


class PrizeSubmissionService:
	"""
	The prizes a team competes for. Each save replaces the team's whole
	selection for the event.
	"""
	_instance: ClassVar[Optional["PrizeSubmissionService"]] = None

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

	async def _replace(self, event: EventRead, team: TeamRead, prize_ids: Sequence[UUID], actor: UserRead) -> List[PrizeSubmissionRead]:
		wanted = list(dict.fromkeys(prize_ids))
		prizes = {prize.id: prize for prize in await self._database.list_prizes_by_event(event.id)}

		for prize_id in wanted:
			prize = prizes.get(prize_id)
			if prize is None:
				raise IneligibleSelection("One or more prize selections are invalid for this event")
			if not is_eligible(team, prize):
				raise IneligibleSelection(f'Team is not eligible for the prize "{prize.name}"')

		return await self._database.replace_prize_submissions(event.id, team.id, wanted, submitted_by=actor.id)

	async def submit_for_my_team(self, actor: UserRead, event_id: UUID, prize_ids: Sequence[UUID]) -> List[PrizeSubmissionRead]:
		"""
		Self-service selection for the team the caller submitted.

		Raises:
			UnsupportedForMode: appreciation-only event.
			SubmissionClosed: the event has ended.
			InvalidReference: the caller has no team in the event.
			IneligibleSelection: a prize is unknown or the team cannot receive it.
		"""
		event = await self._event_svc.require_standard_event(event_id)
		if EventService.event_status(event) == EventStatus.PAST:
			raise SubmissionClosed("Prize selection is closed for this event")

		team = await self._team_svc.get_team_by_submitter(event.id, actor)
		if team is None:
			raise InvalidReference("You have not submitted a team for this event")
		return await self._replace(event, team, prize_ids, actor)

	async def set_for_team(self, actor: UserRead, event_id: UUID, team_id: UUID, prize_ids: Sequence[UUID]) -> List[PrizeSubmissionRead]:
		"""Admin variant; ignores the submission window."""
		UserService.require_admin(actor)
		event = await self._event_svc.require_standard_event(event_id)
		team = await self._team_svc.require_team_in_event(event, team_id)
		return await self._replace(event, team, prize_ids, actor)

	async def get_my_team_submissions(self, actor: UserRead, event_id: UUID) -> List[PrizeSubmissionRead]:
		team = await self._team_svc.get_team_by_submitter(event_id, actor)
		if team is None:
			return []
		return await self._database.list_prize_submissions_by_team(event_id, team.id)

	async def list_for_team(self, event_id: UUID, team_id: UUID) -> List[PrizeSubmissionRead]:
		return await self._database.list_prize_submissions_by_team(event_id, team_id)

	async def list_for_event(self, event_id: UUID) -> List[PrizeSubmissionRead]:
		return await self._database.list_prize_submissions_by_event(event_id)


instrument_service_class(
	PrizeSubmissionService,
	prefix="services.prize_submission",
	actor_fields=("actor",),
	exclude={"get_my_team_submissions", "list_for_team", "list_for_event"},
)
