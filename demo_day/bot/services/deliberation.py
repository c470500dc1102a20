# bot/services/deliberation.py
from collections import defaultdict
from uuid import UUID
from typing import Optional, ClassVar, Self, List, Dict
from demo_day.db.database import DataBase
from demo_day.db.enums import EventMode
from demo_day.db.schemas.deliberation import (
	CategoryRankingRow,
	DeliberationCandidate,
	DeliberationView,
	EventRankings,
	JudgeBreakdown,
	JudgeScoreLine,
	PrizeCard,
	TeamRanking,
	TeamScoreSummary,
)
from demo_day.db.schemas.score import ScoreRead
from demo_day.db.schemas.user import UserRead
from demo_day.bot.services.event import EventService
from demo_day.bot.services.prize import is_eligible
from demo_day.bot.services.scoring import average
from demo_day.bot.services.audit_log import instrument_service_class


def summarize_scores(scores: List[ScoreRead]) -> Dict[UUID, TeamScoreSummary]:
	totals: Dict[UUID, List[float]] = defaultdict(list)
	for score in scores:
		totals[score.team_id].append(score.total_score)
	return {
		team_id: TeamScoreSummary(team_id=team_id, average_score=average(values), judge_count=len(values))
		for team_id, values in totals.items()
	}


class DeliberationService:
	"""
	Admin-only read models built from the stored scores, prizes and
	submissions. Aggregates are computed on every call.
	"""
	_instance: ClassVar[Optional["DeliberationService"]] = None

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

	async def build_view(self, actor: Optional[UserRead], event_id: UUID) -> Optional[DeliberationView]:
		"""
		Active prizes (sort order, then name), each with the submitted teams
		that are still eligible, best average score first.

		Returns ``None`` for non-admins and appreciation-only events.
		"""
		if actor is None or not actor.is_admin:
			return None
		event = await self._event_svc.get_event(event_id)
		if event is None or event.mode == EventMode.APPRECIATION_ONLY:
			return None

		prizes = [p for p in await self._database.list_prizes_by_event(event.id) if p.is_active]
		teams = {team.id: team for team in await self._database.list_teams_by_event(event.id)}
		submissions = await self._database.list_prize_submissions_by_event(event.id)
		summaries = summarize_scores(await self._database.list_scores_by_event(event.id))

		cards: List[PrizeCard] = []
		for prize in sorted(prizes, key=lambda p: (p.sort_order, p.name)):
			candidates: List[DeliberationCandidate] = []
			for submission in submissions:
				if submission.prize_id != prize.id:
					continue
				team = teams.get(submission.team_id)
				# track may have changed since the team submitted
				if team is None or not is_eligible(team, prize):
					continue
				summary = summaries.get(team.id) or TeamScoreSummary(team_id=team.id)
				candidates.append(
					DeliberationCandidate(
						team_id=team.id,
						team_name=team.name,
						track=team.track,
						project_url=team.project_url,
						average_score=summary.average_score,
						judge_count=summary.judge_count,
					)
				)
			candidates.sort(key=lambda c: (-c.average_score, c.team_name))
			cards.append(PrizeCard(prize=prize, submission_count=len(candidates), candidates=candidates))

		return DeliberationView(event_id=event.id, scoring_locked_at=event.scoring_locked_at, prizes=cards)

	async def event_rankings(self, actor: Optional[UserRead], event_id: UUID) -> Optional[EventRankings]:
		"""
		Overall ranking, per-category ranking and per-judge breakdown of an
		event's scores. ``None`` for non-admins.
		"""
		if actor is None or not actor.is_admin:
			return None
		event = await self._event_svc.get_event(event_id)
		if event is None or event.mode == EventMode.APPRECIATION_ONLY:
			return None

		categories = event.category_names
		teams = {team.id: team for team in await self._database.list_teams_by_event(event.id)}
		scores = [s for s in await self._database.list_scores_by_event(event.id) if s.team_id in teams]

		by_team: Dict[UUID, List[ScoreRead]] = defaultdict(list)
		by_judge: Dict[UUID, List[ScoreRead]] = defaultdict(list)
		for score in scores:
			by_team[score.team_id].append(score)
			by_judge[score.judge_id].append(score)

		team_rankings: List[TeamRanking] = []
		category_rows: Dict[str, List[CategoryRankingRow]] = {name: [] for name in categories}
		for team_id, team_scores in by_team.items():
			team = teams[team_id]
			category_averages: Dict[str, float] = {}
			for name in categories:
				values = [
					entry.score
					for score in team_scores
					for entry in score.category_scores
					if entry.category == name and not entry.opted_out and entry.score is not None
				]
				category_averages[name] = average(values)
				if values:
					category_rows[name].append(CategoryRankingRow(team=team, category_average=average(values), judge_count=len(values)))

			team_rankings.append(
				TeamRanking(
					team=team,
					average_score=average([s.total_score for s in team_scores]),
					judge_count=len(team_scores),
					category_averages=category_averages,
				)
			)

		team_rankings.sort(key=lambda r: (-r.average_score, r.team.name))
		for rows in category_rows.values():
			rows.sort(key=lambda r: (-r.category_average, r.team.name))

		judges = {judge.id: judge for judge in await self._database.list_judges_by_event(event.id)}
		users = {user.id: user for user in await self._database.list_users_by_ids(j.user_id for j in judges.values())}

		breakdown: List[JudgeBreakdown] = []
		for judge_id, judge_scores in by_judge.items():
			judge = judges.get(judge_id)
			user = users.get(judge.user_id) if judge is not None else None
			lines = [
				JudgeScoreLine(
					team_id=s.team_id,
					team_name=teams[s.team_id].name,
					total_score=s.total_score,
					category_scores=s.category_scores,
				)
				for s in judge_scores
			]
			lines.sort(key=lambda line: line.team_name)
			breakdown.append(
				JudgeBreakdown(
					judge_id=judge_id,
					judge_name=user.label if user is not None else "Unknown",
					is_admin=user.is_admin if user is not None else False,
					teams_scored=len(lines),
					scores=lines,
				)
			)
		breakdown.sort(key=lambda b: b.judge_name)

		return EventRankings(
			categories=categories,
			team_rankings=team_rankings,
			category_rankings=category_rows,
			judge_breakdown=breakdown,
		)


instrument_service_class(
	DeliberationService,
	prefix="services.deliberation",
	actor_fields=("actor",),
)
