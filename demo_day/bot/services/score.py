# bot/services/score.py
from uuid import UUID
from typing import Optional, ClassVar, Self, List, Sequence
from demo_day.db.database import DataBase
from demo_day.db.schemas.event import EventRead
from demo_day.db.schemas.judge import JudgeRead
from demo_day.db.schemas.score import CategoryScore, ScoreEntry, ScoreRead, ScoreWrite
from demo_day.db.schemas.user import UserRead
from demo_day.errors import InvalidReference
from demo_day.bot.services.event import EventService
from demo_day.bot.services.judge import JudgeService
from demo_day.bot.services.team import TeamService
from demo_day.bot.services.scoring import compute_total_score, normalize_entries
from demo_day.bot.services.audit_log import instrument_service_class


class ScoreService:
	_instance: ClassVar[Optional["ScoreService"]] = None

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

	@staticmethod
	def _build(judge: JudgeRead, event: EventRead, team_id: UUID, entries: Sequence[CategoryScore]) -> ScoreWrite:
		normalized = normalize_entries(entries, event.categories)
		return ScoreWrite(
			judge_id=judge.id,
			team_id=team_id,
			event_id=event.id,
			category_scores=normalized,
			total_score=compute_total_score(normalized, event.categories),
		)

	async def submit_score(self, actor: UserRead, event_id: UUID, team_id: UUID, category_scores: Sequence[CategoryScore]) -> ScoreRead:
		"""
		Store the caller's score for one team, replacing a previous one.

		Raises:
			InvalidReference: unknown event, or the team is not part of it.
			NotAJudge: the caller is not a judge of the event.
			UnsupportedForMode: the event does not use judging.
			Locked: scoring is locked.
		"""
		event = await self._event_svc.require_standard_event(event_id)
		judge = await self._judge_svc.require_judge_membership(actor, event)
		await self._team_svc.require_team_in_event(event, team_id)

		scores = await self._database.upsert_scores(event.id, [self._build(judge, event, team_id, category_scores)])
		return scores[0]

	async def submit_batch(self, actor: UserRead, event_id: UUID, entries: Sequence[ScoreEntry]) -> List[ScoreRead]:
		"""
		Store several scores at once. Every team is checked before anything is
		written; the writes share one transaction.
		"""
		event = await self._event_svc.require_standard_event(event_id)
		judge = await self._judge_svc.require_judge_membership(actor, event)

		event_team_ids = {team.id for team in await self._team_svc.list_teams(event.id, include_hidden=True)}
		for entry in entries:
			if entry.team_id not in event_team_ids:
				raise InvalidReference("One or more teams do not belong to this event")

		payloads = [self._build(judge, event, entry.team_id, entry.category_scores) for entry in entries]
		return await self._database.upsert_scores(event.id, payloads)

	async def get_for_judge(self, actor: UserRead, event_id: UUID) -> List[ScoreRead]:
		judge = await self._judge_svc.get_judge(actor, event_id)
		if judge is None:
			return []
		return await self._database.list_scores_by_judge(judge.id, event_id)

	async def get_for_team(self, team_id: UUID) -> List[ScoreRead]:
		return await self._database.list_scores_by_team(team_id)

	async def get_my_score_for_team(self, actor: UserRead, team_id: UUID) -> Optional[ScoreRead]:
		team = await self._team_svc.get_team(team_id)
		if team is None:
			return None
		judge = await self._judge_svc.get_judge(actor, team.event_id)
		if judge is None:
			return None
		return await self._database.get_score(judge.id, team.id)


instrument_service_class(
	ScoreService,
	prefix="services.score",
	actor_fields=("actor",),
	exclude={"get_for_judge", "get_for_team", "get_my_score_for_team"},
)
