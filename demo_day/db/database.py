# db/database.py
import uuid
from contextlib import asynccontextmanager
from typing import AsyncIterator, Iterable, Optional, ClassVar, Self, Any, Dict, List, Mapping, Sequence, Tuple

from sqlalchemy import select, func, delete, update, or_
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from demo_day.config import Settings
from demo_day.db.models._base import Base, utcnow
from demo_day.db.models.user import User
from demo_day.db.models.event import Event
from demo_day.db.models.team import Team
from demo_day.db.models.judge import Judge
from demo_day.db.models.judge_assignment import JudgeAssignment
from demo_day.db.models.score import Score
from demo_day.db.models.prize import Prize
from demo_day.db.models.prize_submission import PrizeSubmission
from demo_day.db.models.prize_winner import PrizeWinner
from demo_day.db.models.audit_log import AuditLog
from demo_day.db.schemas.user import UserCreate, UserRead, UserUpdate
from demo_day.db.schemas.event import EventCreate, EventRead, EventUpdate
from demo_day.db.schemas.team import TeamCreate, TeamRead, TeamUpdate
from demo_day.db.schemas.judge import JudgeRead, JudgeAssignmentRead
from demo_day.db.schemas.score import ScoreRead, ScoreWrite
from demo_day.db.schemas.prize import PrizeRead, PrizeWrite
from demo_day.db.schemas.prize_submission import PrizeSubmissionRead
from demo_day.db.schemas.prize_winner import PrizeWinnerRead, WinnerInput
from demo_day.db.schemas.audit_log import AuditLogCreate, AuditLogRead
from demo_day.errors import IneligibleSelection, InvalidReference, Locked, NotASubmittedCandidate, ScoringNotLocked
from demo_day.utils.reconcile import Added, Removed, Retained, diff, keys_of
from demo_day.utils.sentinels import provided


class DataBase():
    """
    Async SQLAlchemy database singleton.
    Usage:
        db = DataBase()  # same instance everywhere
        async with db.session() as s:
            ...

    Every public method runs in its own session, i.e. its own transaction.
    Multi-row writes (cascades, replace-sets) are done inside one method so
    they commit or roll back as a whole.
    """
    _instance: ClassVar[Optional["DataBase"]] = None

    def __new__(cls, *args: Any, **kwargs: Any) -> Self:
        if cls._instance is None:
            cls._instance = super().__new__(cls)

        return cls._instance

    def __init__(self, echo: Optional[bool] = None) -> None:
        if getattr(self, "_initialized", False):
            return

        settings = Settings()
        url = settings.database_url
        self._engine: AsyncEngine = create_async_engine(
            url,
            echo=settings.db_echo if echo is None else echo,
            pool_pre_ping=True,
        )
        self._sessionmaker: async_sessionmaker[AsyncSession] = async_sessionmaker(
            bind=self._engine,
            expire_on_commit=False,
            autoflush=False,
        )

        self._initialized = True

    @property
    def engine(self) -> AsyncEngine:
        return self._engine

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """
        Provides an AsyncSession with safe commit/rollback semantics.
        """
        session: AsyncSession = self._sessionmaker()
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

    # --- schema management helpers ---

    async def create_all(self) -> None:
        """
        Create tables based on Base metadata. Use only in dev/tests; prefer Alembic in prod.
        """
        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def drop_all(self) -> None:
        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    async def dispose(self) -> None:
        await self._engine.dispose()

    async def _lock_event(self, s: AsyncSession, event_id: uuid.UUID) -> Event:
        """
        Hold the event row until the session ends, so guard checks and the
        writes that depend on them see one state.

        PostgreSQL takes a ``FOR UPDATE`` row lock. SQLite drops that clause,
        so a no-op update claims its database write lock first.

        Raises:
            LookupError: If the event does not exist.
        """
        if self._engine.dialect.name == "sqlite":
            await s.execute(
                update(Event)
                .where(Event.id == event_id)
                .values(id=Event.id)
                .execution_options(synchronize_session=False)
            )
        stmt = select(Event).where(Event.id == event_id).with_for_update()
        db_obj = (await s.execute(stmt)).scalar_one_or_none()
        if db_obj is None:
            raise LookupError("Event not found.")
        return db_obj

    @staticmethod
    def _ensure_unlocked(event: Event) -> None:
        if event.scoring_locked_at is not None:
            raise Locked("Scoring is locked for this event")

    @staticmethod
    async def _event_team_ids(s: AsyncSession, event_id: uuid.UUID, team_ids: Iterable[uuid.UUID]) -> set[uuid.UUID]:
        stmt = select(Team.id).where(Team.event_id == event_id, Team.id.in_(list(team_ids)))
        return set((await s.execute(stmt)).scalars().all())

    # ---------------------------------
    # Users
    # ---------------------------------

    async def create_user(self, data: UserCreate) -> UserRead:
        """
        Create a user and return its snapshot.

        Raises:
            IntegrityError: on unique-constraint violation (tg_id).
        """
        tg_username = data.tg_username.lstrip("@") if data.tg_username else None
        user = User(
            tg_id=data.tg_id,
            tg_username=tg_username,
            display_name=data.display_name,
            email=str(data.email) if data.email is not None else None,
            role=data.role,
        )

        async with self.session() as s:
            s.add(user)
            await s.flush()
            await s.refresh(user)

        return UserRead.model_validate(user)

    async def get_user_by_id(self, uid: Optional[uuid.UUID] = None) -> Optional[UserRead]:
        """Fetch a user by internal UUID primary key; None if absent."""
        if uid is None:
            return None

        async with self.session() as s:
            row = await s.get(User, uid)

        return UserRead.model_validate(row) if row is not None else None

    async def get_user_by_tg_id(self, tg_id: Optional[int] = None) -> Optional[UserRead]:
        """Fetch a user by chat (Telegram) numeric id; None if absent."""
        if tg_id is None:
            return None

        async with self.session() as s:
            stmt = select(User).where(User.tg_id == tg_id)
            row = (await s.execute(stmt)).scalar_one_or_none()

        return UserRead.model_validate(row) if row is not None else None

    async def update_user(self, data: UserUpdate) -> UserRead:
        """
        Partially update a user by id.
        Only fields explicitly provided (i.e., not MISSING) are updated.

        Raises:
            LookupError: if the user with given id does not exist.
        """
        async with self.session() as s:
            db_user = await s.get(User, data.id)
            if db_user is None:
                raise LookupError("User not found.")

            if provided(data.tg_username):
                db_user.tg_username = data.tg_username.lstrip("@") if data.tg_username else None
            if provided(data.display_name):
                db_user.display_name = data.display_name
            if provided(data.email):
                db_user.email = str(data.email) if data.email is not None else None
            if provided(data.role):
                db_user.role = data.role

            await s.flush()
            await s.refresh(db_user)

        return UserRead.model_validate(db_user)

    async def upsert_user_by_tg_id(self, data: UserCreate) -> UserRead:
        """
        Create or refresh a user identified by tg_id.

        Semantics:
          - If user not found -> create.
          - If user exists -> refresh username / display name only
            (the role is never changed here).
        """
        async with self.session() as s:
            db_user = None
            if data.tg_id is not None:
                res = await s.execute(select(User).where(User.tg_id == data.tg_id))
                db_user = res.scalar_one_or_none()

            if db_user is None:
                db_user = User(
                    tg_id=data.tg_id,
                    tg_username=data.tg_username.lstrip("@") if data.tg_username else None,
                    display_name=data.display_name,
                    email=str(data.email) if data.email is not None else None,
                    role=data.role,
                )
                s.add(db_user)
            else:
                if data.tg_username:
                    db_user.tg_username = data.tg_username.lstrip("@")
                if data.display_name is not None:
                    db_user.display_name = data.display_name

            await s.flush()
            await s.refresh(db_user)
            return UserRead.model_validate(db_user)

    async def list_users_by_ids(self, user_ids: Iterable[uuid.UUID]) -> List[UserRead]:
        ids = list({uid for uid in user_ids if uid})
        if not ids:
            return []
        async with self.session() as s:
            rows = (await s.execute(select(User).where(User.id.in_(ids)))).scalars().all()
        return [UserRead.model_validate(r) for r in rows]

    # ---------------------------------
    # Events
    # ---------------------------------

    async def create_event(self, payload: EventCreate) -> EventRead:
        """
        Create a new event.

        Raises:
            IntegrityError: if the slug is already taken.
        """
        obj = Event(
            name=payload.name,
            slug=payload.slug,
            description=payload.description,
            start_at=payload.start_at,
            end_at=payload.end_at,
            mode=payload.mode,
            categories=[c.model_dump() for c in payload.categories],
            tracks=list(payload.tracks) if payload.tracks is not None else None,
            enable_cohorts=payload.enable_cohorts,
            judge_code=payload.judge_code,
        )
        async with self.session() as s:
            s.add(obj)
            await s.flush()
            await s.refresh(obj)
            return EventRead.model_validate(obj)

    async def get_event(self, event_id: Optional[uuid.UUID]) -> Optional[EventRead]:
        """Fetch an event by its UUID."""
        if not event_id:
            return None
        async with self.session() as s:
            row = await s.get(Event, event_id)
        return EventRead.model_validate(row) if row is not None else None

    async def get_event_by_slug(self, slug: str) -> Optional[EventRead]:
        """Fetch an event by its slug (case-insensitive)."""
        if not slug:
            return None
        name = slug.strip()
        if not name:
            return None
        async with self.session() as s:
            stmt = select(Event).where(func.lower(Event.slug) == name.lower())
            row = (await s.execute(stmt)).scalar_one_or_none()
        return EventRead.model_validate(row) if row is not None else None

    async def list_events(self, *, limit: int, offset: int) -> Tuple[list[EventRead], int]:
        """Deterministic paging for events (start_at ASC, then name ASC)."""
        limit = max(0, int(limit))
        offset = max(0, int(offset))

        async with self.session() as s:
            total = int((await s.execute(select(func.count(Event.id)))).scalar_one())
            if limit == 0:
                return [], total

            stmt = (
                select(Event)
                .order_by(Event.start_at.asc(), Event.name.asc(), Event.id.asc())
                .limit(limit)
                .offset(offset)
            )
            rows = (await s.execute(stmt)).scalars().all()

        return [EventRead.model_validate(r) for r in rows], total

    async def update_event(self, payload: EventUpdate) -> EventRead:
        """
        Partially update an event by id.

        Raises:
            LookupError: If the event does not exist.
        """
        async with self.session() as s:
            db_obj = await s.get(Event, payload.id)
            if db_obj is None:
                raise LookupError("Event not found.")

            if provided(payload.name):
                db_obj.name = payload.name
            if provided(payload.description):
                db_obj.description = payload.description
            if provided(payload.start_at):
                db_obj.start_at = payload.start_at
            if provided(payload.end_at):
                db_obj.end_at = payload.end_at
            if provided(payload.categories):
                db_obj.categories = [c.model_dump() for c in payload.categories]
            if provided(payload.tracks):
                db_obj.tracks = list(payload.tracks) if payload.tracks is not None else None
            if provided(payload.enable_cohorts):
                db_obj.enable_cohorts = payload.enable_cohorts
            if provided(payload.judge_code):
                db_obj.judge_code = payload.judge_code

            await s.flush()
            await s.refresh(db_obj)
            return EventRead.model_validate(db_obj)

    async def set_scoring_lock(
        self,
        event_id: uuid.UUID,
        *,
        locked_by: Optional[uuid.UUID],
        reason: Optional[str],
        locked: bool,
    ) -> EventRead:
        """
        Engage (``locked=True``) or clear the scoring lock sub-record of an event.
        Engaging an already locked event keeps the existing lock.

        Raises:
            LookupError: If the event does not exist.
        """
        async with self.session() as s:
            db_obj = await self._lock_event(s, event_id)

            if locked and db_obj.scoring_locked_at is not None:
                return EventRead.model_validate(db_obj)
            if locked:
                db_obj.scoring_locked_at = utcnow()
                db_obj.scoring_locked_by = locked_by
                db_obj.scoring_lock_reason = reason
            else:
                db_obj.scoring_locked_at = None
                db_obj.scoring_locked_by = None
                db_obj.scoring_lock_reason = None

            await s.flush()
            await s.refresh(db_obj)
            return EventRead.model_validate(db_obj)

    async def set_results_released(self, event_id: uuid.UUID, released: bool) -> EventRead:
        async with self.session() as s:
            db_obj = await s.get(Event, event_id)
            if db_obj is None:
                raise LookupError("Event not found.")
            db_obj.results_released = released
            await s.flush()
            await s.refresh(db_obj)
            return EventRead.model_validate(db_obj)

    async def delete_event(self, event_id: uuid.UUID) -> bool:
        """
        Delete an event with every dependent record.

        Dependents are removed leaf-first (winners, submissions, prizes,
        scores, assignments, judges, teams) before the event itself, so the
        cascade does not rely on database-level ON DELETE support.

        Returns:
            bool: False if the event did not exist.
        """
        async with self.session() as s:
            try:
                db_obj = await self._lock_event(s, event_id)
            except LookupError:
                return False

            for model in (PrizeWinner, PrizeSubmission, Prize, Score, JudgeAssignment, Judge, Team):
                await s.execute(delete(model).where(model.event_id == event_id))
            await s.delete(db_obj)
            await s.flush()
        return True

    # ---------------------------------
    # Teams
    # ---------------------------------

    async def create_team(self, payload: TeamCreate) -> TeamRead:
        """Create a new team."""
        team = Team(
            event_id=payload.event_id,
            name=payload.name,
            description=payload.description,
            members=list(payload.members),
            track=payload.track,
            logo_ref=payload.logo_ref,
            project_url=payload.project_url,
            submitted_by=payload.submitted_by,
            hidden=payload.hidden,
        )

        async with self.session() as s:
            s.add(team)
            await s.flush()
            await s.refresh(team)

        return TeamRead.model_validate(team)

    async def get_team(self, team_id: Optional[uuid.UUID]) -> Optional[TeamRead]:
        """Fetch a team by its UUID."""
        if not team_id:
            return None

        async with self.session() as s:
            row = await s.get(Team, team_id)

        return TeamRead.model_validate(row) if row else None

    async def list_teams_by_event(self, event_id: uuid.UUID, *, include_hidden: bool = True) -> List[TeamRead]:
        """Teams of an event ordered by name ASC."""
        if not event_id:
            return []
        async with self.session() as s:
            stmt = select(Team).where(Team.event_id == event_id)
            if not include_hidden:
                stmt = stmt.where(Team.hidden.is_(False))
            stmt = stmt.order_by(Team.name.asc(), Team.id.asc())
            rows = (await s.execute(stmt)).scalars().all()
        return [TeamRead.model_validate(r) for r in rows]

    async def get_team_by_submitter(self, event_id: uuid.UUID, user_id: uuid.UUID) -> Optional[TeamRead]:
        """The team a user submitted for an event, if any."""
        async with self.session() as s:
            stmt = (
                select(Team)
                .where(Team.event_id == event_id, Team.submitted_by == user_id)
                .order_by(Team.submitted_at.asc())
                .limit(1)
            )
            row = (await s.execute(stmt)).scalar_one_or_none()
        return TeamRead.model_validate(row) if row else None

    async def update_team(self, payload: TeamUpdate) -> TeamRead:
        """
        Partially update a team by id.

        Raises:
            LookupError: If the team does not exist.
        """
        async with self.session() as s:
            db_team = await s.get(Team, payload.id)
            if db_team is None:
                raise LookupError("Team not found.")

            if provided(payload.name):
                db_team.name = payload.name
            if provided(payload.description):
                db_team.description = payload.description
            if provided(payload.members):
                db_team.members = list(payload.members)
            if provided(payload.track):
                db_team.track = payload.track
            if provided(payload.logo_ref):
                db_team.logo_ref = payload.logo_ref
            if provided(payload.project_url):
                db_team.project_url = payload.project_url
            if provided(payload.hidden):
                db_team.hidden = payload.hidden

            await s.flush()
            await s.refresh(db_team)

        return TeamRead.model_validate(db_team)

    async def delete_team(self, team_id: uuid.UUID) -> bool:
        """
        Delete a team together with its scores, assignments, prize submissions
        and winner rows.

        Returns:
            bool: False if the team did not exist.
        """
        async with self.session() as s:
            db_team = await s.get(Team, team_id)
            if db_team is None:
                return False
            await self._lock_event(s, db_team.event_id)

            for model in (PrizeWinner, PrizeSubmission, Score, JudgeAssignment):
                await s.execute(delete(model).where(model.team_id == team_id))
            await s.delete(db_team)
            await s.flush()
        return True

    # ---------------------------------
    # Judges
    # ---------------------------------

    async def get_judge(self, user_id: Optional[uuid.UUID], event_id: Optional[uuid.UUID]) -> Optional[JudgeRead]:
        """Fetch the judge membership of a user for an event."""
        if not user_id or not event_id:
            return None
        async with self.session() as s:
            stmt = select(Judge).where(Judge.user_id == user_id, Judge.event_id == event_id)
            row = (await s.execute(stmt)).scalar_one_or_none()
        return JudgeRead.model_validate(row) if row else None

    async def get_or_create_judge(self, user_id: uuid.UUID, event_id: uuid.UUID) -> JudgeRead:
        """
        Idempotent judge registration: one membership per (user, event).

        Raises:
            LookupError: If the event does not exist.
        """
        async with self.session() as s:
            await self._lock_event(s, event_id)
            stmt = select(Judge).where(Judge.user_id == user_id, Judge.event_id == event_id)
            row = (await s.execute(stmt)).scalar_one_or_none()
            if row is None:
                row = Judge(user_id=user_id, event_id=event_id)
                s.add(row)
                await s.flush()
                await s.refresh(row)
            return JudgeRead.model_validate(row)

    async def list_judges_by_event(self, event_id: uuid.UUID) -> List[JudgeRead]:
        async with self.session() as s:
            rows = (await s.execute(select(Judge).where(Judge.event_id == event_id))).scalars().all()
        return [JudgeRead.model_validate(r) for r in rows]

    # ---------------------------------
    # Judge assignments
    # ---------------------------------

    async def get_assignment(self, judge_id: uuid.UUID, team_id: uuid.UUID) -> Optional[JudgeAssignmentRead]:
        async with self.session() as s:
            stmt = select(JudgeAssignment).where(
                JudgeAssignment.judge_id == judge_id,
                JudgeAssignment.team_id == team_id,
            )
            row = (await s.execute(stmt)).scalar_one_or_none()
        return JudgeAssignmentRead.model_validate(row) if row else None

    async def create_assignments(
        self,
        judge_id: uuid.UUID,
        event_id: uuid.UUID,
        team_ids: Sequence[uuid.UUID],
    ) -> Tuple[List[JudgeAssignmentRead], int]:
        """
        Insert (judge, team) pairs that do not exist yet. Team ids that are not
        teams of the event are skipped.

        Returns:
            (assignments, added): one assignment per kept team id, in input
            order (existing rows are returned as they are), and the number of
            rows actually inserted.

        Raises:
            Locked: If the event's scoring is locked.
        """
        wanted = list(dict.fromkeys(team_ids))
        async with self.session() as s:
            self._ensure_unlocked(await self._lock_event(s, event_id))
            in_event = await self._event_team_ids(s, event_id, wanted)
            wanted = [team_id for team_id in wanted if team_id in in_event]
            if not wanted:
                return [], 0

            stmt = select(JudgeAssignment).where(
                JudgeAssignment.judge_id == judge_id,
                JudgeAssignment.team_id.in_(wanted),
            )
            existing = {row.team_id: row for row in (await s.execute(stmt)).scalars().all()}

            added = 0
            rows: List[JudgeAssignment] = []
            for team_id in wanted:
                row = existing.get(team_id)
                if row is None:
                    row = JudgeAssignment(judge_id=judge_id, event_id=event_id, team_id=team_id)
                    s.add(row)
                    added += 1
                rows.append(row)

            await s.flush()
            result = [JudgeAssignmentRead.model_validate(r) for r in rows]
        return result, added

    async def delete_assignment(self, judge_id: uuid.UUID, event_id: uuid.UUID, team_id: uuid.UUID) -> bool:
        """
        Remove a (judge, team) assignment and the score for the same pair.

        Returns:
            bool: True if an assignment row was deleted.

        Raises:
            Locked: If the event's scoring is locked.
        """
        async with self.session() as s:
            self._ensure_unlocked(await self._lock_event(s, event_id))
            res = await s.execute(
                delete(JudgeAssignment).where(
                    JudgeAssignment.judge_id == judge_id,
                    JudgeAssignment.team_id == team_id,
                )
            )
            await s.execute(delete(Score).where(Score.judge_id == judge_id, Score.team_id == team_id))
            return (res.rowcount or 0) > 0

    async def list_assigned_team_ids(self, judge_id: uuid.UUID, event_id: uuid.UUID) -> List[uuid.UUID]:
        async with self.session() as s:
            stmt = (
                select(JudgeAssignment.team_id)
                .where(JudgeAssignment.judge_id == judge_id, JudgeAssignment.event_id == event_id)
                .order_by(JudgeAssignment.added_at.asc(), JudgeAssignment.id.asc())
            )
            return list((await s.execute(stmt)).scalars().all())

    # ---------------------------------
    # Scores
    # ---------------------------------

    async def upsert_scores(self, event_id: uuid.UUID, payloads: Sequence[ScoreWrite]) -> List[ScoreRead]:
        """
        Insert or replace scores keyed by (judge_id, team_id), all in one transaction.

        An existing row keeps its id; its category entries and total are
        overwritten and ``submitted_at`` is stamped again.

        Raises:
            Locked: If the event's scoring is locked.
            InvalidReference: If a team is not (or no longer) part of the event.
        """
        async with self.session() as s:
            self._ensure_unlocked(await self._lock_event(s, event_id))
            if not payloads:
                return []
            wanted = {payload.team_id for payload in payloads}
            if await self._event_team_ids(s, event_id, wanted) != wanted:
                raise InvalidReference("One or more teams do not belong to this event")

            rows: List[Score] = []
            pending: dict[tuple[uuid.UUID, uuid.UUID], Score] = {}
            for payload in payloads:
                key = (payload.judge_id, payload.team_id)
                row = pending.get(key)
                if row is None:
                    stmt = select(Score).where(Score.judge_id == payload.judge_id, Score.team_id == payload.team_id)
                    row = (await s.execute(stmt)).scalar_one_or_none()
                entries = [c.model_dump() for c in payload.category_scores]
                if row is None:
                    row = Score(
                        judge_id=payload.judge_id,
                        team_id=payload.team_id,
                        event_id=payload.event_id,
                        category_scores=entries,
                        total_score=payload.total_score,
                        submitted_at=utcnow(),
                    )
                    s.add(row)
                else:
                    row.category_scores = entries
                    row.total_score = payload.total_score
                    row.submitted_at = utcnow()
                if key not in pending:
                    rows.append(row)
                pending[key] = row

            await s.flush()
            return [ScoreRead.model_validate(r) for r in rows]

    async def get_score(self, judge_id: uuid.UUID, team_id: uuid.UUID) -> Optional[ScoreRead]:
        async with self.session() as s:
            stmt = select(Score).where(Score.judge_id == judge_id, Score.team_id == team_id)
            row = (await s.execute(stmt)).scalar_one_or_none()
        return ScoreRead.model_validate(row) if row else None

    async def list_scores_by_judge(self, judge_id: uuid.UUID, event_id: uuid.UUID) -> List[ScoreRead]:
        async with self.session() as s:
            stmt = (
                select(Score)
                .where(Score.judge_id == judge_id, Score.event_id == event_id)
                .order_by(Score.submitted_at.asc(), Score.id.asc())
            )
            rows = (await s.execute(stmt)).scalars().all()
        return [ScoreRead.model_validate(r) for r in rows]

    async def list_scores_by_team(self, team_id: uuid.UUID) -> List[ScoreRead]:
        async with self.session() as s:
            stmt = select(Score).where(Score.team_id == team_id).order_by(Score.submitted_at.asc(), Score.id.asc())
            rows = (await s.execute(stmt)).scalars().all()
        return [ScoreRead.model_validate(r) for r in rows]

    async def list_scores_by_event(self, event_id: uuid.UUID) -> List[ScoreRead]:
        async with self.session() as s:
            rows = (await s.execute(select(Score).where(Score.event_id == event_id))).scalars().all()
        return [ScoreRead.model_validate(r) for r in rows]

    # ---------------------------------
    # Prizes
    # ---------------------------------

    async def get_prize(self, prize_id: uuid.UUID) -> Optional[PrizeRead]:
        async with self.session() as s:
            row = await s.get(Prize, prize_id)
        return PrizeRead.model_validate(row) if row else None

    async def list_prizes_by_event(self, event_id: uuid.UUID) -> List[PrizeRead]:
        """Prizes of an event ordered by sort_order, then name."""
        async with self.session() as s:
            stmt = (
                select(Prize)
                .where(Prize.event_id == event_id)
                .order_by(Prize.sort_order.asc(), Prize.name.asc(), Prize.id.asc())
            )
            rows = (await s.execute(stmt)).scalars().all()
        return [PrizeRead.model_validate(r) for r in rows]

    async def replace_prizes(
        self,
        event_id: uuid.UUID,
        updates: Mapping[uuid.UUID, PrizeWrite],
        additions: Sequence[PrizeWrite],
        *,
        created_by: Optional[uuid.UUID],
    ) -> List[PrizeRead]:
        """
        Replace the event's prize list in one transaction.

        ``updates`` overwrite stored prizes by id, ``additions`` become new
        prizes, and every stored prize in neither is deleted after its
        submissions and winner rows.

        Returns:
            list[PrizeRead]: the event's prizes after the change.

        Raises:
            InvalidReference: if an updated id is not a prize of the event.
        """
        now = utcnow()
        async with self.session() as s:
            await self._lock_event(s, event_id)
            existing = (await s.execute(select(Prize.id).where(Prize.event_id == event_id))).scalars().all()
            if not set(updates) <= set(existing):
                raise InvalidReference("Invalid prize id")

            desired: Dict[uuid.UUID, PrizeWrite] = dict(updates)
            for payload in additions:
                desired[uuid.uuid4()] = payload
            changes = diff(existing, desired)

            removed = keys_of(changes, Removed)
            if removed:
                await s.execute(delete(PrizeWinner).where(PrizeWinner.prize_id.in_(removed)))
                await s.execute(delete(PrizeSubmission).where(PrizeSubmission.prize_id.in_(removed)))
                await s.execute(delete(Prize).where(Prize.event_id == event_id, Prize.id.in_(removed)))

            for change in changes:
                if isinstance(change, Retained):
                    db_obj = await s.get(Prize, change.key)
                    self._apply_prize_payload(db_obj, change.value)
                    db_obj.updated_at = now
                elif isinstance(change, Added):
                    db_obj = Prize(id=change.key, event_id=event_id, created_by=created_by, created_at=now, updated_at=now)
                    self._apply_prize_payload(db_obj, change.value)
                    s.add(db_obj)

            await s.flush()
            stmt = (
                select(Prize)
                .where(Prize.event_id == event_id)
                .order_by(Prize.sort_order.asc(), Prize.name.asc(), Prize.id.asc())
            )
            rows = (await s.execute(stmt)).scalars().all()
            return [PrizeRead.model_validate(r) for r in rows]

    @staticmethod
    def _apply_prize_payload(db_obj: Prize, payload: PrizeWrite) -> None:
        db_obj.name = payload.name
        db_obj.description = payload.description
        db_obj.type = payload.type
        db_obj.track = payload.track
        db_obj.sponsor_name = payload.sponsor_name
        db_obj.score_basis = payload.score_basis
        db_obj.score_category_names = list(payload.score_category_names) if payload.score_category_names is not None else None
        db_obj.is_active = payload.is_active
        db_obj.sort_order = payload.sort_order

    # ---------------------------------
    # Prize submissions
    # ---------------------------------

    async def list_prize_submissions_by_event(self, event_id: uuid.UUID) -> List[PrizeSubmissionRead]:
        async with self.session() as s:
            stmt = (
                select(PrizeSubmission)
                .where(PrizeSubmission.event_id == event_id)
                .order_by(PrizeSubmission.submitted_at.asc(), PrizeSubmission.id.asc())
            )
            rows = (await s.execute(stmt)).scalars().all()
        return [PrizeSubmissionRead.model_validate(r) for r in rows]

    async def list_prize_submissions_by_team(self, event_id: uuid.UUID, team_id: uuid.UUID) -> List[PrizeSubmissionRead]:
        async with self.session() as s:
            stmt = (
                select(PrizeSubmission)
                .where(PrizeSubmission.event_id == event_id, PrizeSubmission.team_id == team_id)
                .order_by(PrizeSubmission.submitted_at.asc(), PrizeSubmission.id.asc())
            )
            rows = (await s.execute(stmt)).scalars().all()
        return [PrizeSubmissionRead.model_validate(r) for r in rows]

    async def replace_prize_submissions(
        self,
        event_id: uuid.UUID,
        team_id: uuid.UUID,
        prize_ids: Sequence[uuid.UUID],
        *,
        submitted_by: Optional[uuid.UUID],
    ) -> List[PrizeSubmissionRead]:
        """
        Replace a team's prize selection in one transaction. Kept selections
        are stamped with the new submitter and time.

        Raises:
            InvalidReference: if the team is not (or no longer) part of the event.
            IneligibleSelection: if a prize is not (or no longer) a prize of the event.
        """
        now = utcnow()
        wanted = list(dict.fromkeys(prize_ids))
        async with self.session() as s:
            await self._lock_event(s, event_id)
            if not await self._event_team_ids(s, event_id, [team_id]):
                raise InvalidReference("Team does not belong to this event")
            if wanted:
                stmt = select(Prize.id).where(Prize.event_id == event_id, Prize.id.in_(wanted))
                if len((await s.execute(stmt)).scalars().all()) != len(wanted):
                    raise IneligibleSelection("One or more prize selections are invalid for this event")

            stmt = select(PrizeSubmission.prize_id).where(
                PrizeSubmission.event_id == event_id,
                PrizeSubmission.team_id == team_id,
            )
            current = (await s.execute(stmt)).scalars().all()
            changes = diff(current, {prize_id: prize_id for prize_id in wanted})

            removed = keys_of(changes, Removed)
            if removed:
                await s.execute(
                    delete(PrizeSubmission).where(
                        PrizeSubmission.event_id == event_id,
                        PrizeSubmission.team_id == team_id,
                        PrizeSubmission.prize_id.in_(removed),
                    )
                )

            retained = keys_of(changes, Retained)
            if retained:
                stmt = select(PrizeSubmission).where(
                    PrizeSubmission.event_id == event_id,
                    PrizeSubmission.team_id == team_id,
                    PrizeSubmission.prize_id.in_(retained),
                )
                for row in (await s.execute(stmt)).scalars().all():
                    row.submitted_at = now
                    row.submitted_by = submitted_by

            for prize_id in keys_of(changes, Added):
                s.add(
                    PrizeSubmission(
                        event_id=event_id,
                        team_id=team_id,
                        prize_id=prize_id,
                        submitted_at=now,
                        submitted_by=submitted_by,
                    )
                )

            await s.flush()
            stmt = (
                select(PrizeSubmission)
                .where(PrizeSubmission.event_id == event_id, PrizeSubmission.team_id == team_id)
                .order_by(PrizeSubmission.submitted_at.asc(), PrizeSubmission.id.asc())
            )
            rows = (await s.execute(stmt)).scalars().all()
            return [PrizeSubmissionRead.model_validate(r) for r in rows]

    # ---------------------------------
    # Prize winners
    # ---------------------------------

    async def list_winners_by_event(self, event_id: uuid.UUID) -> List[PrizeWinnerRead]:
        async with self.session() as s:
            stmt = select(PrizeWinner).where(PrizeWinner.event_id == event_id).order_by(PrizeWinner.selected_at.asc())
            rows = (await s.execute(stmt)).scalars().all()
        return [PrizeWinnerRead.model_validate(r) for r in rows]

    async def replace_winners(
        self,
        event_id: uuid.UUID,
        winners: Sequence[WinnerInput],
        *,
        selected_by: Optional[uuid.UUID],
    ) -> List[PrizeWinnerRead]:
        """
        Replace the event's winner set in one transaction.

        The lock state, prizes, teams and submissions are read under the event
        row lock, so a concurrent lock change or prize-list save cannot slip in
        between the checks and the write. A ``(prize_id, team_id)`` pair listed
        twice keeps its last entry; kept rows get the new placement, notes,
        selector and time.

        Raises:
            ScoringNotLocked: If scoring is still open.
            InvalidReference: If a prize or team is not part of the event.
            NotASubmittedCandidate: If the team did not submit for the prize.
        """
        now = utcnow()
        async with self.session() as s:
            event = await self._lock_event(s, event_id)
            if event.scoring_locked_at is None:
                raise ScoringNotLocked("Lock scoring before assigning prize winners")

            prize_ids = set((await s.execute(select(Prize.id).where(Prize.event_id == event_id))).scalars().all())
            team_ids = set((await s.execute(select(Team.id).where(Team.event_id == event_id))).scalars().all())
            submitted = {
                (row.prize_id, row.team_id)
                for row in (
                    await s.execute(
                        select(PrizeSubmission.prize_id, PrizeSubmission.team_id).where(PrizeSubmission.event_id == event_id)
                    )
                ).all()
            }

            incoming: Dict[Tuple[uuid.UUID, uuid.UUID], WinnerInput] = {}
            for winner in winners:
                if winner.prize_id not in prize_ids:
                    raise InvalidReference("Invalid prize selection")
                if winner.team_id not in team_ids:
                    raise InvalidReference("Invalid team selection")
                key = (winner.prize_id, winner.team_id)
                if key not in submitted:
                    raise NotASubmittedCandidate("Winner must be selected from teams that submitted for that prize")
                incoming[key] = winner

            stmt = select(PrizeWinner).where(PrizeWinner.event_id == event_id)
            stored = {(row.prize_id, row.team_id): row for row in (await s.execute(stmt)).scalars().all()}
            changes = diff(stored, incoming)

            for change in changes:
                if isinstance(change, Removed):
                    row = stored.get(change.key)
                    if row is not None:
                        await s.delete(row)
                elif isinstance(change, Retained):
                    row = stored[change.key]
                    self._apply_winner_payload(row, change.value)
                    row.selected_at = now
                    row.selected_by = selected_by
                elif isinstance(change, Added):
                    row = PrizeWinner(
                        event_id=event_id,
                        prize_id=change.value.prize_id,
                        team_id=change.value.team_id,
                        selected_at=now,
                        selected_by=selected_by,
                    )
                    self._apply_winner_payload(row, change.value)
                    s.add(row)

            await s.flush()
            rows = (await s.execute(stmt.order_by(PrizeWinner.selected_at.asc()))).scalars().all()
            return [PrizeWinnerRead.model_validate(r) for r in rows]

    @staticmethod
    def _apply_winner_payload(row: PrizeWinner, payload: WinnerInput) -> None:
        row.placement = payload.placement
        row.notes = payload.notes

    # ---------------------------------
    # Audit log helpers
    # ---------------------------------

    async def create_audit_log(self, payload: AuditLogCreate) -> AuditLogRead:
        """Persist a new audit log entry."""
        async with self.session() as s:
            record = AuditLog(
                actor_id=payload.actor_id,
                action=payload.action,
                payload=dict(payload.payload or {}),
            )
            s.add(record)
            await s.flush()
            await s.refresh(record)
            return AuditLogRead.model_validate(record)

    async def list_audit_logs(
        self,
        *,
        limit: int = 100,
        offset: int = 0,
        actor_id: uuid.UUID | None = None,
        action: str | None = None,
    ) -> tuple[list[AuditLogRead], int]:
        """Return paginated audit log entries filtered by actor/action (prefix match on action)."""
        limit = max(0, int(limit))
        offset = max(0, int(offset))

        async with self.session() as s:
            stmt = select(AuditLog).order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
            count_stmt = select(func.count(AuditLog.id))
            if actor_id:
                stmt = stmt.where(AuditLog.actor_id == actor_id)
                count_stmt = count_stmt.where(AuditLog.actor_id == actor_id)
            if action:
                cond = or_(AuditLog.action == action, AuditLog.action.startswith(f"{action}."))
                stmt = stmt.where(cond)
                count_stmt = count_stmt.where(cond)

            if limit:
                stmt = stmt.limit(limit)
            if offset:
                stmt = stmt.offset(offset)

            rows = (await s.execute(stmt)).scalars().all()
            total = int((await s.execute(count_stmt)).scalar_one())

        return [AuditLogRead.model_validate(row) for row in rows], total
