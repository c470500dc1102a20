import uuid

import pytest

from demo_day.db.enums import EventMode
from demo_day.db.schemas.score import CategoryScore, ScoreEntry
from demo_day.errors import InvalidReference, NotAJudge, UnsupportedForMode
from demo_day.bot.services.score import ScoreService


def scores(innovation=None, impact=None, innovation_out=False, impact_out=False):
    return [
        CategoryScore(category="Innovation", score=innovation, opted_out=innovation_out),
        CategoryScore(category="Impact", score=impact, opted_out=impact_out),
    ]


async def test_submit_score_computes_weighted_total(event, teams, judge, judge_user):
    stored = await ScoreService().submit_score(judge_user, event.id, teams[0].id, scores(4, 5))

    assert stored.judge_id == judge.id
    assert stored.total_score == pytest.approx(14)


async def test_resubmission_replaces_in_place(event, teams, judge, judge_user):
    svc = ScoreService()
    first = await svc.submit_score(judge_user, event.id, teams[0].id, scores(4, 5))
    second = await svc.submit_score(judge_user, event.id, teams[0].id, scores(innovation_out=True, impact=5))

    assert second.id == first.id
    assert second.total_score == pytest.approx(15)
    assert second.submitted_at >= first.submitted_at
    assert len(await svc.get_for_team(teams[0].id)) == 1


async def test_opt_out_is_cleared_for_mandatory_categories(event, teams, judge, judge_user):
    stored = await ScoreService().submit_score(
        judge_user, event.id, teams[0].id, scores(4, 5, innovation_out=True, impact_out=True)
    )

    by_category = {entry.category: entry for entry in stored.category_scores}
    assert by_category["Innovation"].opted_out is True
    assert by_category["Innovation"].score is None
    assert by_category["Impact"].opted_out is False
    assert by_category["Impact"].score == 5
    assert stored.total_score == pytest.approx(15)


async def test_submit_requires_judge_and_team_of_event(event, teams, judge, participant, judge_user, make_event, make_team):
    with pytest.raises(NotAJudge):
        await ScoreService().submit_score(participant, event.id, teams[0].id, scores(4, 5))

    other = await make_event(slug="autumn-demo-day")
    stranger = await make_team(other, "Stranger")
    with pytest.raises(InvalidReference):
        await ScoreService().submit_score(judge_user, event.id, stranger.id, scores(4, 5))
    with pytest.raises(InvalidReference):
        await ScoreService().submit_score(judge_user, uuid.uuid4(), teams[0].id, scores(4, 5))


async def test_batch_is_rejected_when_any_team_is_foreign(event, teams, judge, judge_user, make_event, make_team):
    other = await make_event(slug="autumn-demo-day")
    stranger = await make_team(other, "Stranger")
    svc = ScoreService()

    with pytest.raises(InvalidReference):
        await svc.submit_batch(
            judge_user,
            event.id,
            [
                ScoreEntry(team_id=teams[0].id, category_scores=scores(4, 5)),
                ScoreEntry(team_id=stranger.id, category_scores=scores(1, 1)),
            ],
        )

    assert await svc.get_for_judge(judge_user, event.id) == []


async def test_batch_upserts_every_entry(event, teams, judge, judge_user):
    alpha, beta, _ = teams
    svc = ScoreService()
    existing = await svc.submit_score(judge_user, event.id, alpha.id, scores(1, 1))

    stored = await svc.submit_batch(
        judge_user,
        event.id,
        [
            ScoreEntry(team_id=alpha.id, category_scores=scores(4, 5)),
            ScoreEntry(team_id=beta.id, category_scores=scores(innovation_out=True, impact=5)),
        ],
    )

    by_team = {s.team_id: s for s in stored}
    assert by_team[alpha.id].id == existing.id
    assert by_team[alpha.id].total_score == pytest.approx(14)
    assert by_team[beta.id].total_score == pytest.approx(15)
    assert len(await svc.get_for_judge(judge_user, event.id)) == 2


async def test_my_score_for_team(event, teams, judge, judge_user, second_judge_user):
    svc = ScoreService()
    await svc.submit_score(judge_user, event.id, teams[0].id, scores(4, 5))

    mine = await svc.get_my_score_for_team(judge_user, teams[0].id)
    assert mine is not None and mine.total_score == pytest.approx(14)
    assert await svc.get_my_score_for_team(second_judge_user, teams[0].id) is None
    assert await svc.get_my_score_for_team(judge_user, teams[1].id) is None


async def test_scores_unsupported_for_appreciation_events(make_event, make_team, judge_user):
    event = await make_event(slug="fair", mode=EventMode.APPRECIATION_ONLY)
    team = await make_team(event, "Alpha")

    with pytest.raises(UnsupportedForMode):
        await ScoreService().submit_score(judge_user, event.id, team.id, scores(4, 5))
