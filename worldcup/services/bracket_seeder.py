"""
Bracket Seeder: turns an item list into round-1 matches.

Pads the field to the next power of two with bye items, applies a seeding
permutation (uniform shuffle by default), pairs consecutive slots into
matches 1..size/2 and pre-resolves every match that contains a bye.

Pure: no database access. Items are any objects exposing ``id`` and
``is_bye``; byes come from the caller's ``make_byes`` factory so the
persistence layer decides what a bye row is.
"""
from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional, Sequence

from worldcup.services.errors import InvalidInputError

logger = logging.getLogger(__name__)

SeedFn = Callable[[int], Sequence[int]]


def next_power_of_two(n: int) -> int:
    if n < 1:
        raise InvalidInputError(f"n must be >= 1, got {n}")
    size = 1
    while size < n:
        size *= 2
    return size


def is_power_of_two(n: int) -> bool:
    return n >= 1 and (n & (n - 1)) == 0


def total_rounds_for(item_count: int) -> int:
    return next_power_of_two(item_count).bit_length() - 1


def random_permutation(n: int) -> List[int]:
    """Default seeding policy: uniform random permutation of range(n)."""
    order = list(range(n))
    random.shuffle(order)
    return order


def identity_permutation(n: int) -> List[int]:
    """Deterministic seeding policy (input order)."""
    return list(range(n))


@dataclass
class PlannedMatch:
    match_number: int
    item1: Any
    item2: Any
    winner: Optional[Any] = None
    double_bye: bool = False
    round: int = 1

    @property
    def auto_resolved(self) -> bool:
        return self.winner is not None


@dataclass
class SeedPlan:
    bracket_size: int
    total_rounds: int
    matches: List[PlannedMatch] = field(default_factory=list)
    bye_count: int = 0

    @property
    def actionable_count(self) -> int:
        return sum(1 for m in self.matches if m.winner is None)


def resolve_bye(item1: Any, item2: Any) -> Optional[Any]:
    """Winner of a match decided by a bye, or None if both sides are real items.

    Two byes (impossible under correct seeding) resolve to item1 so the
    bracket can still advance.
    """
    if item1.is_bye and item2.is_bye:
        return item1
    if item1.is_bye:
        return item2
    if item2.is_bye:
        return item1
    return None


def _apply_permutation(entries: List[Any], seed_fn: SeedFn) -> List[Any]:
    n = len(entries)
    order = list(seed_fn(n))
    if sorted(order) != list(range(n)):
        raise InvalidInputError(f"seed function must return a permutation of range({n})")
    return [entries[i] for i in order]


def _separate_byes(slots: List[Any]) -> List[Any]:
    """Swap byes out of bye-vs-bye pairs.

    Each double-bye pair takes the second item of the last real-vs-real pair.
    There are fewer byes than real items, so a real pair always exists.
    """
    pair_count = len(slots) // 2
    for i in range(pair_count):
        a, b = slots[2 * i], slots[2 * i + 1]
        if not (a.is_bye and b.is_bye):
            continue
        for j in range(pair_count - 1, -1, -1):
            c, d = slots[2 * j], slots[2 * j + 1]
            if not c.is_bye and not d.is_bye:
                slots[2 * i + 1], slots[2 * j + 1] = d, b
                break
    return slots


def seed_bracket(
    items: Sequence[Any],
    make_byes: Callable[[int], Sequence[Any]],
    seed_fn: Optional[SeedFn] = None,
    bracket_size: Optional[int] = None,
) -> SeedPlan:
    """Build the round-1 plan for *items*.

    Args:
        items: participants, in pool order
        make_byes: ``count -> count distinct bye items``; only called when
            the field needs padding
        seed_fn: ``n -> permutation of range(n)``; defaults to a uniform shuffle
        bracket_size: optional smaller power-of-two bracket; when it is below
            ``len(items)`` a seeded subset of the items plays

    Raises:
        InvalidInputError: fewer than 2 items, duplicate ids, bye items in the
            input, bad bracket_size or a seed_fn result that is not a permutation
    """
    seed_fn = seed_fn or random_permutation
    entries = list(items)

    if len(entries) < 2:
        raise InvalidInputError(f"At least 2 items are required to seed a bracket, got {len(entries)}")
    ids = [item.id for item in entries]
    if len(set(ids)) != len(ids):
        raise InvalidInputError("Item list contains duplicate ids")
    if any(item.is_bye for item in entries):
        raise InvalidInputError("Item list must not contain bye items")

    padded = next_power_of_two(len(entries))
    if bracket_size is not None:
        if not is_power_of_two(bracket_size) or bracket_size < 2 or bracket_size > padded:
            raise InvalidInputError(
                f"bracket_size must be a power of two between 2 and {padded}, got {bracket_size}"
            )
        if bracket_size < len(entries):
            entries = _apply_permutation(entries, seed_fn)[:bracket_size]
        padded = bracket_size

    bye_count = padded - len(entries)
    slots = list(entries)
    if bye_count:
        byes = list(make_byes(bye_count))
        if len(byes) != bye_count or not all(b.is_bye for b in byes):
            raise InvalidInputError(f"make_byes must return {bye_count} bye items")
        slots.extend(byes)
    slots = _apply_permutation(slots, seed_fn)
    if bye_count:
        slots = _separate_byes(slots)

    plan = SeedPlan(
        bracket_size=padded,
        total_rounds=padded.bit_length() - 1,
        bye_count=bye_count,
    )
    for i in range(0, padded, 2):
        item1, item2 = slots[i], slots[i + 1]
        planned = PlannedMatch(match_number=i // 2 + 1, item1=item1, item2=item2)
        planned.winner = resolve_bye(item1, item2)
        if item1.is_bye and item2.is_bye:
            planned.double_bye = True
            logger.warning("Match %d pairs two byes; advancing item1", planned.match_number)
        plan.matches.append(planned)

    logger.info(
        "Seeded bracket: %d items, size %d, %d byes, %d rounds, %d actionable matches",
        len(entries),
        padded,
        bye_count,
        plan.total_rounds,
        plan.actionable_count,
    )
    return plan
