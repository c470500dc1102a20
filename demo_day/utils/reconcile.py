# utils/reconcile.py
"""
Set reconciliation for "replace the whole collection" writes.

Instead of deleting every stored row and inserting the new ones, callers
compute a diff between the stored keys and the incoming keys and apply it in a
single transaction.  Each change is one of three tagged variants.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Hashable, Iterable, List, Mapping, TypeVar

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


@dataclass(frozen=True, slots=True)
class Added(Generic[K, V]):
	key: K
	value: V


@dataclass(frozen=True, slots=True)
class Retained(Generic[K, V]):
	key: K
	value: V


@dataclass(frozen=True, slots=True)
class Removed(Generic[K]):
	key: K


Change = Added[K, V] | Retained[K, V] | Removed[K]


def diff(existing: Iterable[K], incoming: Mapping[K, V]) -> List[Change]:
	"""
	Compare stored keys with the desired ``incoming`` mapping.

	Incoming order is preserved for added/retained keys; removed keys follow in
	their stored order.
	"""
	stored = list(dict.fromkeys(existing))
	stored_set = set(stored)

	changes: List[Change] = []
	for key, value in incoming.items():
		if key in stored_set:
			changes.append(Retained(key, value))
		else:
			changes.append(Added(key, value))
	for key in stored:
		if key not in incoming:
			changes.append(Removed(key))
	return changes


def keys_of(changes: Iterable[Change], kind: type) -> List:
	return [c.key for c in changes if isinstance(c, kind)]
