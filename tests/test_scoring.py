import random

import pytest

from demo_day.db.schemas.event import EventCategory
from demo_day.db.schemas.score import CategoryScore
from demo_day.bot.services.scoring import compute_total_score, normalize_entries, total_configured_weight

CATEGORIES = [
    EventCategory(name="Innovation", weight=1, opt_out_allowed=True),
    EventCategory(name="Impact", weight=2),
]


def entry(category, score=None, opted_out=False):
    return CategoryScore(category=category, score=score, opted_out=opted_out)


def test_full_score_uses_every_weight():
    total = compute_total_score([entry("Innovation", 4), entry("Impact", 5)], CATEGORIES)
    assert total == pytest.approx(14)


def test_opted_out_category_is_renormalized():
    total = compute_total_score([entry("Innovation", opted_out=True), entry("Impact", 5)], CATEGORIES)
    assert total == pytest.approx(15)


def test_all_opted_out_is_exactly_zero():
    total = compute_total_score(
        [entry("Innovation", 3, opted_out=True), entry("Impact", 4, opted_out=True)],
        CATEGORIES,
    )
    assert total == 0


def test_unknown_and_empty_entries_are_ignored():
    assert compute_total_score([entry("Design", 5), entry("Impact", None)], CATEGORIES) == 0
    assert compute_total_score([entry("Design", 1), entry("Impact", 5)], CATEGORIES) == pytest.approx(15)


def test_order_of_entries_and_categories_does_not_matter():
    categories = [
        EventCategory(name="A", weight=1.5),
        EventCategory(name="B", weight=0.5),
        EventCategory(name="C", weight=3),
        EventCategory(name="D", weight=2),
    ]
    entries = [entry("A", 7), entry("B", 2), entry("C", 9, opted_out=True), entry("D", 4)]
    expected = compute_total_score(entries, categories)

    rng = random.Random(7)
    for _ in range(10):
        shuffled_entries = entries[:]
        shuffled_categories = categories[:]
        rng.shuffle(shuffled_entries)
        rng.shuffle(shuffled_categories)
        assert compute_total_score(shuffled_entries, shuffled_categories) == pytest.approx(expected)


@pytest.mark.parametrize("k", [0.5, 2, 10])
def test_scaling_every_weight_scales_total_linearly(k):
    entries = [entry("Innovation", 3), entry("Impact", 5)]
    scaled = [EventCategory(name=c.name, weight=c.weight * k, opt_out_allowed=c.opt_out_allowed) for c in CATEGORIES]

    assert compute_total_score(entries, scaled) == pytest.approx(k * compute_total_score(entries, CATEGORIES))


def test_zero_weights_fall_back_to_category_count():
    categories = [EventCategory(name="A", weight=0), EventCategory(name="B", weight=0)]
    assert total_configured_weight(categories) == 2
    assert total_configured_weight([]) == 1
    # no usable weight at all
    assert compute_total_score([entry("A", 5)], categories) == 0


def test_normalize_honors_opt_out_only_where_allowed():
    normalized = normalize_entries(
        [entry("Innovation", 4, opted_out=True), entry("Impact", 3, opted_out=True)],
        CATEGORIES,
    )

    assert normalized[0] == CategoryScore(category="Innovation", score=None, opted_out=True)
    assert normalized[1] == CategoryScore(category="Impact", score=3, opted_out=False)
