"""
Shared fixtures: every test runs against its own SQLite file with fresh
service singletons.
"""
from datetime import timedelta

import pytest
import pytest_asyncio

from demo_day.config import Settings
from demo_day.db.database import DataBase
from demo_day.db.enums import EventMode, UserRole
from demo_day.db.models._base import utcnow
from demo_day.db.schemas.event import EventCategory, EventCreate
from demo_day.db.schemas.team import TeamCreate
from demo_day.db.schemas.user import UserCreate
from demo_day.bot.middlewares.user import UserMiddleware
from demo_day.bot.services.assignment import AssignmentService
from demo_day.bot.services.deliberation import DeliberationService
from demo_day.bot.services.event import EventService
from demo_day.bot.services.judge import JudgeService
from demo_day.bot.services.prize import PrizeService
from demo_day.bot.services.prize_submission import PrizeSubmissionService
from demo_day.bot.services.score import ScoreService
from demo_day.bot.services.scoring_lock import ScoringLockService
from demo_day.bot.services.team import TeamService
from demo_day.bot.services.user import UserService
from demo_day.bot.services.winner import WinnerService

SINGLETONS = (
    Settings,
    DataBase,
    UserService,
    EventService,
    TeamService,
    JudgeService,
    ScoringLockService,
    AssignmentService,
    ScoreService,
    PrizeService,
    PrizeSubmissionService,
    WinnerService,
    DeliberationService,
    UserMiddleware,
)

CATEGORIES = [
    EventCategory(name="Innovation", weight=1, opt_out_allowed=True),
    EventCategory(name="Impact", weight=2),
]


@pytest_asyncio.fixture
async def db(tmp_path, monkeypatch):
    monkeypatch.setenv("DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    monkeypatch.setenv("ADMIN_USERNAMES", "organizer")
    monkeypatch.setenv("DB_ECHO", "0")
    for cls in SINGLETONS:
        monkeypatch.setattr(cls, "_instance", None)

    database = DataBase()
    await database.create_all()
    yield database
    await database.dispose()


@pytest_asyncio.fixture
async def admin(db):
    return await UserService().create_user(
        UserCreate(tg_id=1, tg_username="organizer", display_name="Olivia Organizer", role=UserRole.ADMIN)
    )


@pytest_asyncio.fixture
async def judge_user(db):
    return await UserService().create_user(UserCreate(tg_id=2, tg_username="juror", display_name="Jamie Juror"))


@pytest_asyncio.fixture
async def second_judge_user(db):
    return await UserService().create_user(UserCreate(tg_id=3, tg_username="critic", display_name="Casey Critic"))


@pytest_asyncio.fixture
async def participant(db):
    return await UserService().create_user(UserCreate(tg_id=4, tg_username="builder", display_name="Bo Builder"))


@pytest.fixture
def make_event(admin):
    async def factory(**overrides):
        now = utcnow()
        data = dict(
            name="Spring Demo Day",
            slug="spring-demo-day",
            start_at=now - timedelta(days=1),
            end_at=now + timedelta(days=1),
            mode=EventMode.STANDARD_JUDGING,
            categories=CATEGORIES,
            tracks=["AI", "Web"],
        )
        data.update(overrides)
        return await EventService().create_event(admin, EventCreate(**data))

    return factory


@pytest_asyncio.fixture
async def event(make_event):
    return await make_event()


@pytest.fixture
def make_team(admin):
    async def factory(event, name, track=None, submitted_by=None, **extra):
        return await TeamService().create_team(
            admin,
            TeamCreate(event_id=event.id, name=name, track=track, submitted_by=submitted_by, **extra),
        )

    return factory


@pytest_asyncio.fixture
async def teams(event, make_team, participant):
    alpha = await make_team(event, "Alpha", track="AI", submitted_by=participant.id)
    beta = await make_team(event, "Beta", track="Web")
    gamma = await make_team(event, "Gamma", track="AI")
    return alpha, beta, gamma


@pytest_asyncio.fixture
async def judge(event, judge_user):
    return await JudgeService().join_as_judge(judge_user, event.id)
