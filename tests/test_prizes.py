import uuid

import pytest

from demo_day.db.database import DataBase
from demo_day.db.enums import EventMode, PrizeType, ScoreBasis
from demo_day.db.schemas.prize import PrizeInput, PrizeWrite
from demo_day.db.schemas.prize_winner import WinnerInput
from demo_day.errors import InvalidPrizeConfig, InvalidReference, NotAuthorized, UnsupportedForMode
from demo_day.bot.services.prize import PrizeService, is_eligible, normalize_prize, validate_prize
from demo_day.bot.services.prize_submission import PrizeSubmissionService
from demo_day.bot.services.scoring_lock import ScoringLockService
from demo_day.bot.services.winner import WinnerService


def test_normalize_trims_and_fills_defaults():
    prize = normalize_prize(
        PrizeInput(
            name="  Best Hack  ",
            description="   ",
            type=PrizeType.SPONSOR,
            sponsor_name=" Acme ",
            score_category_names=["Impact"],
        ),
        index=3,
    )

    assert prize == PrizeWrite(
        name="Best Hack",
        description=None,
        type=PrizeType.SPONSOR,
        sponsor_name="Acme",
        score_basis=ScoreBasis.NONE,
        score_category_names=None,
        is_active=True,
        sort_order=3,
    )


def test_normalize_keeps_categories_only_for_category_basis():
    prize = normalize_prize(
        PrizeInput(name="Impact", score_basis=ScoreBasis.CATEGORIES, score_category_names=[" Impact ", "", "Impact"], sort_order=0, is_active=False),
        index=5,
    )
    assert prize.score_category_names == ["Impact"]
    assert prize.sort_order == 0
    assert prize.is_active is False


@pytest.mark.parametrize(
    "payload, message",
    [
        (PrizeWrite(name="", type=PrizeType.GENERAL), "Prize name is required"),
        (PrizeWrite(name="Best AI", type=PrizeType.TRACK), 'Prize "Best AI" must include a track'),
        (PrizeWrite(name="Best AI", type=PrizeType.TRACK, track="Hardware"), 'Prize "Best AI" has an invalid track'),
        (PrizeWrite(name="Acme", type=PrizeType.SPONSOR), 'Prize "Acme" must include a sponsor'),
        (PrizeWrite(name="Acme AI", type=PrizeType.TRACK_SPONSOR, track="AI"), 'Prize "Acme AI" must include a sponsor'),
        (
            PrizeWrite(name="Impact", type=PrizeType.GENERAL, score_basis=ScoreBasis.CATEGORIES, score_category_names=[]),
            'Prize "Impact" must select at least one scoring category',
        ),
        (
            PrizeWrite(name="Impact", type=PrizeType.GENERAL, score_basis=ScoreBasis.CATEGORIES, score_category_names=["Design"]),
            'Prize "Impact" references an unknown scoring category',
        ),
    ],
)
async def test_validate_names_prize_and_rule(event, payload, message):
    with pytest.raises(InvalidPrizeConfig) as exc_info:
        validate_prize(payload, event)
    assert str(exc_info.value) == message


async def test_track_list_falls_back_to_category_names(make_event):
    event = await make_event(tracks=None)

    validate_prize(PrizeWrite(name="Most Innovative", type=PrizeType.TRACK, track="Innovation"), event)
    with pytest.raises(InvalidPrizeConfig):
        validate_prize(PrizeWrite(name="Best AI", type=PrizeType.TRACK, track="AI"), event)


async def test_eligibility(event, teams, admin):
    alpha, beta, _ = teams
    prizes = await PrizeService().save_event_prizes(
        admin,
        event.id,
        [
            PrizeInput(name="Grand"),
            PrizeInput(name="Best AI", type=PrizeType.TRACK, track="AI"),
            PrizeInput(name="Retired", is_active=False),
        ],
    )
    grand, best_ai, retired = prizes

    assert is_eligible(alpha, grand) and is_eligible(beta, grand)
    assert is_eligible(alpha, best_ai) and not is_eligible(beta, best_ai)
    assert not is_eligible(alpha, retired)


async def test_save_requires_admin_and_judging_event(event, judge_user, admin, make_event):
    with pytest.raises(NotAuthorized):
        await PrizeService().save_event_prizes(judge_user, event.id, [PrizeInput(name="Grand")])

    fair = await make_event(slug="fair", mode=EventMode.APPRECIATION_ONLY)
    with pytest.raises(UnsupportedForMode):
        await PrizeService().save_event_prizes(admin, fair.id, [PrizeInput(name="Grand")])
    assert await PrizeService().list_event_prizes(fair.id) == []


async def test_save_is_all_or_nothing(event, admin):
    with pytest.raises(InvalidPrizeConfig):
        await PrizeService().save_event_prizes(
            admin,
            event.id,
            [PrizeInput(name="Grand"), PrizeInput(name="Acme", type=PrizeType.SPONSOR)],
        )
    assert await PrizeService().list_event_prizes(event.id) == []


async def test_save_updates_by_id_and_sorts(event, admin):
    svc = PrizeService()
    grand, people = await svc.save_event_prizes(admin, event.id, [PrizeInput(name="Grand"), PrizeInput(name="People")])

    saved = await svc.save_event_prizes(
        admin,
        event.id,
        [
            PrizeInput(prize_id=people.id, name="People's Choice", sort_order=0),
            PrizeInput(prize_id=grand.id, name="Grand Prize", sort_order=1),
            PrizeInput(name="Acme", type=PrizeType.SPONSOR, sponsor_name="Acme", sort_order=1),
        ],
    )

    assert [p.name for p in saved] == ["People's Choice", "Acme", "Grand Prize"]
    assert {p.id for p in saved} >= {grand.id, people.id}
    assert [p.name for p in await svc.list_event_prizes(event.id)] == ["People's Choice", "Acme", "Grand Prize"]


async def test_save_rejects_foreign_prize_id(event, admin, make_event):
    other = await make_event(slug="autumn-demo-day")
    (foreign,) = await PrizeService().save_event_prizes(admin, other.id, [PrizeInput(name="Grand")])

    with pytest.raises(InvalidReference):
        await PrizeService().save_event_prizes(admin, event.id, [PrizeInput(prize_id=foreign.id, name="Grand")])
    with pytest.raises(InvalidReference):
        await PrizeService().save_event_prizes(admin, event.id, [PrizeInput(prize_id=uuid.uuid4(), name="Grand")])


async def test_replacing_prize_list_removes_orphans(event, teams, admin):
    alpha, beta, _ = teams
    svc = PrizeService()
    prize_a, prize_b = await svc.save_event_prizes(admin, event.id, [PrizeInput(name="A"), PrizeInput(name="B")])

    submissions = PrizeSubmissionService()
    await submissions.set_for_team(admin, event.id, alpha.id, [prize_a.id, prize_b.id])
    await submissions.set_for_team(admin, event.id, beta.id, [prize_b.id])
    await ScoringLockService().lock(admin, event.id)
    await WinnerService().set_winners(
        admin,
        event.id,
        [
            WinnerInput(prize_id=prize_a.id, team_id=alpha.id, placement=1),
            WinnerInput(prize_id=prize_b.id, team_id=beta.id, placement=1),
        ],
    )

    saved = await svc.save_event_prizes(admin, event.id, [PrizeInput(prize_id=prize_a.id, name="A")])

    assert [p.id for p in saved] == [prize_a.id]
    assert await DataBase().get_prize(prize_b.id) is None
    remaining = await submissions.list_for_event(event.id)
    assert [(s.prize_id, s.team_id) for s in remaining] == [(prize_a.id, alpha.id)]
    winners = await WinnerService().list_winners(event.id)
    assert [(w.prize_id, w.team_id) for w in winners] == [(prize_a.id, alpha.id)]
