import uuid

import pytest
import pytest_asyncio

from demo_day.db.schemas.prize import PrizeInput
from demo_day.db.schemas.prize_winner import WinnerInput
from demo_day.errors import InvalidReference, NotASubmittedCandidate, NotAuthorized, ScoringNotLocked
from demo_day.bot.services.prize import PrizeService
from demo_day.bot.services.prize_submission import PrizeSubmissionService
from demo_day.bot.services.scoring_lock import ScoringLockService
from demo_day.bot.services.winner import WinnerService


@pytest_asyncio.fixture
async def field(event, teams, admin):
    """Two prizes; Alpha and Beta submitted for both, Gamma for none."""
    grand, people = await PrizeService().save_event_prizes(admin, event.id, [PrizeInput(name="Grand"), PrizeInput(name="People")])
    for team in teams[:2]:
        await PrizeSubmissionService().set_for_team(admin, event.id, team.id, [grand.id, people.id])
    return grand, people


async def test_winners_require_scoring_lock(event, teams, field, admin):
    grand, _ = field
    with pytest.raises(ScoringNotLocked):
        await WinnerService().set_winners(admin, event.id, [WinnerInput(prize_id=grand.id, team_id=teams[0].id)])


async def test_winners_are_admin_only(event, teams, field, admin, judge_user):
    await ScoringLockService().lock(admin, event.id)
    with pytest.raises(NotAuthorized):
        await WinnerService().set_winners(judge_user, event.id, [])


async def test_winner_must_have_submitted(event, teams, field, admin):
    grand, _ = field
    gamma = teams[2]
    await ScoringLockService().lock(admin, event.id)

    with pytest.raises(NotASubmittedCandidate):
        await WinnerService().set_winners(admin, event.id, [WinnerInput(prize_id=grand.id, team_id=gamma.id)])
    assert await WinnerService().list_winners(event.id) == []


async def test_winner_references_must_belong_to_event(event, teams, field, admin, make_event, make_team):
    grand, _ = field
    other = await make_event(slug="autumn-demo-day")
    stranger = await make_team(other, "Stranger")
    await ScoringLockService().lock(admin, event.id)

    with pytest.raises(InvalidReference):
        await WinnerService().set_winners(admin, event.id, [WinnerInput(prize_id=uuid.uuid4(), team_id=teams[0].id)])
    with pytest.raises(InvalidReference):
        await WinnerService().set_winners(admin, event.id, [WinnerInput(prize_id=grand.id, team_id=stranger.id)])


async def test_set_winners_replaces_whole_set(event, teams, field, admin):
    grand, people = field
    alpha, beta, _ = teams
    svc = WinnerService()
    await ScoringLockService().lock(admin, event.id)

    first = await svc.set_winners(
        admin,
        event.id,
        [
            WinnerInput(prize_id=grand.id, team_id=alpha.id, placement=1),
            WinnerInput(prize_id=grand.id, team_id=beta.id, placement=2),
        ],
    )
    assert len(first) == 2

    second = await svc.set_winners(
        admin,
        event.id,
        [
            WinnerInput(prize_id=people.id, team_id=beta.id, placement=1, notes="Crowd favourite"),
            WinnerInput(prize_id=grand.id, team_id=alpha.id, placement=2),
        ],
    )

    kept = next(w for w in second if w.prize_id == grand.id)
    assert kept.id == next(w.id for w in first if w.team_id == alpha.id)
    assert kept.placement == 2
    assert kept.selected_by == admin.id

    listed = await svc.list_winners(event.id)
    assert [(w.prize.name, w.team.name, w.placement) for w in listed] == [
        ("Grand", "Alpha", 2),
        ("People", "Beta", 1),
    ]
    assert listed[1].notes == "Crowd favourite"


async def test_list_winners_orders_by_prize_then_placement(event, teams, field, admin):
    grand, people = field
    alpha, beta, _ = teams
    await ScoringLockService().lock(admin, event.id)
    await WinnerService().set_winners(
        admin,
        event.id,
        [
            WinnerInput(prize_id=people.id, team_id=alpha.id, placement=1),
            WinnerInput(prize_id=grand.id, team_id=alpha.id, placement=2),
            WinnerInput(prize_id=grand.id, team_id=beta.id, placement=1),
        ],
    )

    listed = await WinnerService().list_winners(event.id)
    assert [(w.prize.name, w.team.name) for w in listed] == [("Grand", "Beta"), ("Grand", "Alpha"), ("People", "Alpha")]
