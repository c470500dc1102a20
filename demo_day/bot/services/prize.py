# bot/services/prize.py
from uuid import UUID
from typing import Optional, ClassVar, Self, List, Sequence, Dict
from demo_day.db.database import DataBase
from demo_day.db.enums import EventMode, ScoreBasis
from demo_day.db.schemas.event import EventRead
from demo_day.db.schemas.prize import PrizeInput, PrizeRead, PrizeWrite
from demo_day.db.schemas.team import TeamRead
from demo_day.db.schemas.user import UserRead
from demo_day.errors import InvalidPrizeConfig, InvalidReference
from demo_day.bot.services.event import EventService
from demo_day.bot.services.user import UserService
from demo_day.bot.services.audit_log import instrument_service_class


def _clean(value: Optional[str]) -> Optional[str]:
	if value is None:
		return None
	value = value.strip()
	return value or None


def normalize_prize(entry: PrizeInput, index: int) -> PrizeWrite:
	"""
	Turn an admin-entered prize into its stored form.

	Strings are trimmed and blank values dropped, the score basis defaults to
	``none``, category names are only kept for the ``categories`` basis, the
	prize is active unless said otherwise and sorts by its list position.
	"""
	basis = entry.score_basis or ScoreBasis.NONE
	category_names = None
	if basis == ScoreBasis.CATEGORIES:
		names = [_clean(name) for name in entry.score_category_names or []]
		category_names = list(dict.fromkeys(name for name in names if name))

	return PrizeWrite(
		name=(entry.name or "").strip(),
		description=_clean(entry.description),
		type=entry.type,
		track=_clean(entry.track),
		sponsor_name=_clean(entry.sponsor_name),
		score_basis=basis,
		score_category_names=category_names,
		is_active=True if entry.is_active is None else entry.is_active,
		sort_order=index if entry.sort_order is None else entry.sort_order,
	)


def validate_prize(prize: PrizeWrite, event: EventRead) -> None:
	"""
	Raises:
		InvalidPrizeConfig: naming the prize and the rule it breaks.
	"""
	if not prize.name:
		raise InvalidPrizeConfig("Prize name is required")

	if prize.type.needs_track:
		if not prize.track:
			raise InvalidPrizeConfig(f'Prize "{prize.name}" must include a track')
		tracks = event.track_names
		if tracks and prize.track not in tracks:
			raise InvalidPrizeConfig(f'Prize "{prize.name}" has an invalid track')

	if prize.type.needs_sponsor and not prize.sponsor_name:
		raise InvalidPrizeConfig(f'Prize "{prize.name}" must include a sponsor')

	if prize.score_basis == ScoreBasis.CATEGORIES:
		if not prize.score_category_names:
			raise InvalidPrizeConfig(f'Prize "{prize.name}" must select at least one scoring category')
		known = set(event.category_names)
		if any(name not in known for name in prize.score_category_names):
			raise InvalidPrizeConfig(f'Prize "{prize.name}" references an unknown scoring category')


def is_eligible(team: TeamRead, prize: PrizeRead) -> bool:
	if not prize.is_active:
		return False
	if prize.type.needs_track:
		return bool(team.track) and bool(prize.track) and team.track == prize.track
	return True


class PrizeService:
	_instance: ClassVar[Optional["PrizeService"]] = None

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

	async def save_event_prizes(self, actor: UserRead, event_id: UUID, prizes: Sequence[PrizeInput]) -> List[PrizeRead]:
		"""
		Replace the event's prize list with ``prizes``.

		Entries carrying a ``prize_id`` update that prize, the others are
		created. Stored prizes missing from the list are deleted together with
		their submissions and winners. Nothing is written unless every entry
		is valid.

		Raises:
			NotAuthorized: caller is not an admin.
			UnsupportedForMode: appreciation-only event.
			InvalidPrizeConfig: an entry failed validation.
			InvalidReference: a ``prize_id`` is not a prize of this event.
		"""
		admin_id = UserService.require_admin(actor)
		event = await self._event_svc.require_standard_event(event_id)

		updates: Dict[UUID, PrizeWrite] = {}
		additions: List[PrizeWrite] = []
		for index, entry in enumerate(prizes):
			payload = normalize_prize(entry, index)
			validate_prize(payload, event)
			if entry.prize_id is None:
				additions.append(payload)
				continue
			if entry.prize_id in updates:
				raise InvalidReference("Invalid prize id")
			updates[entry.prize_id] = payload

		return await self._database.replace_prizes(event.id, updates, additions, created_by=admin_id)

	async def list_event_prizes(self, event_id: UUID) -> List[PrizeRead]:
		event = await self._event_svc.require_event(event_id)
		if event.mode == EventMode.APPRECIATION_ONLY:
			return []
		return await self._database.list_prizes_by_event(event.id)

	async def get_prize(self, prize_id: UUID) -> Optional[PrizeRead]:
		return await self._database.get_prize(prize_id)


instrument_service_class(
	PrizeService,
	prefix="services.prize",
	actor_fields=("actor",),
	exclude={"list_event_prizes", "get_prize"},
)
