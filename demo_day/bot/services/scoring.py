# bot/services/scoring.py
"""
Weighted score arithmetic.

A judge scores a team per category; the stored total re-normalises over the
categories that were actually scored and rescales to the full configured
weight, so a team scored on four of five categories lands on the same scale
as a team scored on all five.
"""
from typing import Iterable, List, Sequence

from demo_day.db.schemas.event import EventCategory
from demo_day.db.schemas.score import CategoryScore


def total_configured_weight(categories: Sequence[EventCategory]) -> float:
	total = sum(float(c.weight) for c in categories)
	if total > 0:
		return total
	# zero weights: fall back to one unit per category
	return float(len(categories)) or 1.0


def compute_total_score(entries: Iterable[CategoryScore], categories: Sequence[EventCategory]) -> float:
	"""
	Args:
		entries: the judge's category entries for one team.
		categories: the event's configured categories.

	Returns:
		float: ``weighted_sum / used_weight * total_configured_weight``, or
		exactly ``0`` when nothing usable was scored. Entries for unknown
		categories, opted-out entries and entries without a score are ignored.
	"""
	weights = {c.name: float(c.weight) for c in categories}
	weighted_sum = 0.0
	used_weight = 0.0
	for entry in entries:
		weight = weights.get(entry.category)
		if weight is None or entry.opted_out or entry.score is None:
			continue
		weighted_sum += float(entry.score) * weight
		used_weight += weight

	if used_weight == 0:
		return 0.0
	return (weighted_sum / used_weight) * total_configured_weight(categories)


def normalize_entries(entries: Iterable[CategoryScore], categories: Sequence[EventCategory]) -> List[CategoryScore]:
	"""
	Apply the event's opt-out policy to submitted entries.

	An opt-out is kept only for categories that allow it, and then the score
	is dropped. Otherwise the flag is cleared and the score kept.
	"""
	allowed = {c.name for c in categories if c.opt_out_allowed}
	normalized: List[CategoryScore] = []
	for entry in entries:
		if entry.opted_out and entry.category in allowed:
			normalized.append(CategoryScore(category=entry.category, score=None, opted_out=True))
		else:
			normalized.append(CategoryScore(category=entry.category, score=entry.score, opted_out=False))
	return normalized


def average(values: Sequence[float]) -> float:
	return sum(values) / len(values) if values else 0.0
