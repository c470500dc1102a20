# bot/services/winner.py
from uuid import UUID
from typing import Optional, ClassVar, Self, List, Sequence
from demo_day.db.database import DataBase
from demo_day.db.schemas.prize_winner import PrizeWinnerDetail, PrizeWinnerRead, WinnerInput
from demo_day.db.schemas.user import UserRead
from demo_day.bot.services.event import EventService
from demo_day.bot.services.user import UserService
from demo_day.bot.services.audit_log import instrument_service_class


class WinnerService:
	_instance: ClassVar[Optional["WinnerService"]] = None

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

	async def set_winners(self, actor: UserRead, event_id: UUID, winners: Sequence[WinnerInput]) -> List[PrizeWinnerRead]:
		"""
		Replace the event's winner list.

		Winners can only be chosen after scoring is locked and only among the
		teams that submitted for the prize. A (prize, team) pair listed twice
		keeps its last placement and notes.

		Raises:
			NotAuthorized: caller is not an admin.
			UnsupportedForMode: appreciation-only event.
			ScoringNotLocked: scoring is still open.
			InvalidReference: prize or team outside the event.
			NotASubmittedCandidate: the team did not submit for the prize.
		"""
		admin_id = UserService.require_admin(actor)
		event = await self._event_svc.require_standard_event(event_id)
		return await self._database.replace_winners(event.id, winners, selected_by=admin_id)

	async def list_winners(self, event_id: UUID) -> List[PrizeWinnerDetail]:
		"""Winners with their prize and team, by prize sort order then placement."""
		prizes = {prize.id: prize for prize in await self._database.list_prizes_by_event(event_id)}
		teams = {team.id: team for team in await self._database.list_teams_by_event(event_id)}

		details: List[PrizeWinnerDetail] = []
		for winner in await self._database.list_winners_by_event(event_id):
			prize = prizes.get(winner.prize_id)
			team = teams.get(winner.team_id)
			if prize is None or team is None:
				continue
			details.append(PrizeWinnerDetail(**winner.model_dump(), prize=prize, team=team))

		def sort_key(detail: PrizeWinnerDetail):
			placement = detail.placement if detail.placement is not None else float("inf")
			return (detail.prize.sort_order, detail.prize.name, placement, detail.team.name)

		return sorted(details, key=sort_key)


instrument_service_class(
	WinnerService,
	prefix="services.winner",
	actor_fields=("actor",),
	exclude={"list_winners"},
)
