import uuid
from datetime import datetime, timedelta

import pytest

from demo_day.db.database import DataBase
from demo_day.db.enums import EventStatus, UserRole
from demo_day.db.schemas.event import EventCategory, EventRead, EventUpdate
from demo_day.db.schemas.prize import PrizeInput
from demo_day.db.schemas.prize_winner import WinnerInput
from demo_day.db.schemas.score import CategoryScore
from demo_day.db.schemas.team import TeamCreate, TeamUpdate
from demo_day.errors import InvalidReference, NotAJudge, NotAuthorized
from demo_day.bot.services.assignment import AssignmentService
from demo_day.bot.services.event import EventService
from demo_day.bot.services.judge import JudgeService
from demo_day.bot.services.prize import PrizeService
from demo_day.bot.services.prize_submission import PrizeSubmissionService
from demo_day.bot.services.score import ScoreService
from demo_day.bot.services.scoring_lock import ScoringLockService
from demo_day.bot.services.team import TeamService
from demo_day.bot.services.user import UserService
from demo_day.bot.services.winner import WinnerService

ENTRIES = [CategoryScore(category="Innovation", score=4), CategoryScore(category="Impact", score=5)]


def test_event_status_windows():
    start = datetime(2026, 5, 1, 9)
    end = datetime(2026, 5, 1, 18)

    window = EventRead(id=uuid.uuid4(), name="Window", slug="window", start_at=start, end_at=end)

    assert EventService.event_status(window, now=start - timedelta(minutes=1)) == EventStatus.UPCOMING
    assert EventService.event_status(window, now=start) == EventStatus.ACTIVE
    assert EventService.event_status(window, now=end) == EventStatus.ACTIVE
    assert EventService.event_status(window, now=end + timedelta(seconds=1)) == EventStatus.PAST


async def test_require_admin(admin, judge_user):
    assert UserService.require_admin(admin) == admin.id
    with pytest.raises(NotAuthorized):
        UserService.require_admin(judge_user)
    with pytest.raises(NotAuthorized):
        UserService.require_admin(None)


async def test_chat_users_are_registered_once(db):
    svc = UserService()
    first = await svc.get_or_register(tg_id=42, tg_username="organizer", display_name="Olivia")
    again = await svc.get_or_register(tg_id=42, tg_username="organizer", display_name="Olivia")
    member = await svc.get_or_register(tg_id=43, tg_username="someone")

    assert first.id == again.id
    assert first.role == UserRole.ADMIN
    assert member.role == UserRole.MEMBER


async def test_update_event_changes_only_provided_fields(event, admin):
    updated = await EventService().update_event(
        admin,
        EventUpdate(id=event.id, categories=[EventCategory(name="Design", weight=3)], judge_code="s3cret"),
    )

    assert updated.name == event.name
    assert updated.tracks == ["AI", "Web"]
    assert updated.category_names == ["Design"]
    assert updated.judge_code == "s3cret"

    cleared = await EventService().update_event(admin, EventUpdate(id=event.id, tracks=None))
    assert cleared.tracks is None
    assert cleared.track_names == ["Design"]


async def test_event_lookup_by_slug_and_release(event, admin, judge_user):
    assert (await EventService().get_event_by_slug("Spring-Demo-Day")).id == event.id
    assert await EventService().get_event_by_slug("missing") is None

    with pytest.raises(NotAuthorized):
        await EventService().release_results(judge_user, event.id)
    assert (await EventService().release_results(admin, event.id)).results_released is True


async def test_join_as_judge_is_idempotent(event, judge_user):
    first = await JudgeService().join_as_judge(judge_user, event.id)
    second = await JudgeService().join_as_judge(judge_user, event.id)

    assert first.id == second.id
    assert [j.id for j in await JudgeService().list_judges(event.id)] == [first.id]
    assert (await JudgeService().require_judge_membership(judge_user, event)).id == first.id


async def test_join_checks_code_and_participation(make_event, make_team, judge_user, participant):
    event = await make_event(judge_code="letmein")
    await make_team(event, "Alpha", submitted_by=participant.id)

    with pytest.raises(NotAuthorized):
        await JudgeService().join_as_judge(judge_user, event.id, code="wrong")
    with pytest.raises(NotAuthorized):
        await JudgeService().join_as_judge(judge_user, event.id)
    with pytest.raises(NotAuthorized):
        await JudgeService().join_as_judge(participant, event.id, code="letmein")
    with pytest.raises(NotAJudge):
        await JudgeService().require_judge_membership(judge_user, event)

    judge = await JudgeService().join_as_judge(judge_user, event.id, code=" letmein ")
    assert judge.event_id == event.id


async def test_participants_submit_as_themselves(event, participant, judge_user):
    team = await TeamService().create_team(
        participant,
        TeamCreate(event_id=event.id, name="Solo", submitted_by=judge_user.id),
    )
    assert team.submitted_by == participant.id
    assert (await TeamService().get_team_by_submitter(event.id, participant)).id == team.id

    with pytest.raises(NotAuthorized):
        await TeamService().update_team(judge_user, TeamUpdate(id=team.id, name="Taken"))
    renamed = await TeamService().update_team(participant, TeamUpdate(id=team.id, name="Duo", track="AI"))
    assert (renamed.name, renamed.track, renamed.description) == ("Duo", "AI", "")


async def test_remove_team_cascades(event, teams, judge, judge_user, admin):
    alpha = teams[0]
    await AssignmentService().assign(judge_user, event.id, alpha.id)
    await ScoreService().submit_score(judge_user, event.id, alpha.id, ENTRIES)
    (grand,) = await PrizeService().save_event_prizes(admin, event.id, [PrizeInput(name="Grand")])
    await PrizeSubmissionService().set_for_team(admin, event.id, alpha.id, [grand.id])
    await ScoringLockService().lock(admin, event.id)
    await WinnerService().set_winners(admin, event.id, [WinnerInput(prize_id=grand.id, team_id=alpha.id)])

    assert await TeamService().remove_team(admin, alpha.id) is True

    database = DataBase()
    assert await database.get_team(alpha.id) is None
    assert await database.list_scores_by_team(alpha.id) == []
    assert await database.get_assignment(judge.id, alpha.id) is None
    assert await database.list_prize_submissions_by_event(event.id) == []
    assert await database.list_winners_by_event(event.id) == []
    assert [t.name for t in await TeamService().list_teams(event.id)] == ["Beta", "Gamma"]

    with pytest.raises(InvalidReference):
        await TeamService().remove_team(admin, alpha.id)


async def test_remove_event_cascades(event, teams, judge, judge_user, admin):
    alpha = teams[0]
    await ScoreService().submit_score(judge_user, event.id, alpha.id, ENTRIES)
    (grand,) = await PrizeService().save_event_prizes(admin, event.id, [PrizeInput(name="Grand")])
    await PrizeSubmissionService().set_for_team(admin, event.id, alpha.id, [grand.id])

    with pytest.raises(NotAuthorized):
        await EventService().remove_event(judge_user, event.id)
    assert await EventService().remove_event(admin, event.id) is True

    database = DataBase()
    assert await database.get_event(event.id) is None
    assert await database.list_teams_by_event(event.id) == []
    assert await database.list_judges_by_event(event.id) == []
    assert await database.list_scores_by_event(event.id) == []
    assert await database.list_prizes_by_event(event.id) == []
    assert await database.list_prize_submissions_by_event(event.id) == []

    with pytest.raises(InvalidReference):
        await EventService().remove_event(admin, event.id)
