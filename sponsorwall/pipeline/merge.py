"""
Merge engine — collapse sponsorships that belong to the same funder.

Groups are built with a disjoint-set (union-find) over list positions, from
three sources:

  1. Matcher groups (``merge_sponsors`` in config): every record matching any
     ``SponsorMatcher`` of a group is unioned. A matcher with no hit logs a
     warning and contributes nothing.
  2. Function rules: ``rule(sponsorship, all_sponsorships)`` returning the
     records to union with it, or a falsy value.
  3. Auto-merge (``sponsors_auto_merge``): a record is unioned with every
     record whose ``provider`` and ``login`` equal one of its
     ``social_logins`` entries.

Each group of two or more collapses into its earliest member (by position):

  - ``is_one_time``      — True only if every member is one-time
  - ``expires_at``       — latest non-null value
  - ``created_at``       — earliest non-null value
  - ``monthly_dollars``  — sum of positive amounts, or -1 if all members are -1
  - ``provider``         — ``+``-joined unique provider tags, in member order

All other members are removed; survivors keep their original positions.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterable, Optional, Sequence, Union

from sponsorwall.config import SponsorMatcher
from sponsorwall.models.sponsor import PAST_SPONSOR, Sponsorship

logger = logging.getLogger(__name__)

MergeRule = Union[Sequence[SponsorMatcher], Callable[..., Any]]


class DisjointSet:
    """Union-find over ``0..size-1`` with path compression and union by size."""

    def __init__(self, size: int) -> None:
        self._parent = list(range(size))
        self._size = [1] * size

    def find(self, i: int) -> int:
        root = i
        while self._parent[root] != root:
            root = self._parent[root]
        while self._parent[i] != root:
            self._parent[i], i = root, self._parent[i]
        return root

    def union(self, a: int, b: int) -> int:
        ra, rb = self.find(a), self.find(b)
        if ra == rb:
            return ra
        if self._size[ra] < self._size[rb]:
            ra, rb = rb, ra
        self._parent[rb] = ra
        self._size[ra] += self._size[rb]
        return ra

    def union_all(self, indices: Iterable[int]) -> None:
        first: Optional[int] = None
        for i in indices:
            if first is None:
                first = i
            else:
                self.union(first, i)

    def groups(self) -> list[list[int]]:
        """Members of every set, each sorted ascending, ordered by smallest member."""
        by_root: dict[int, list[int]] = {}
        for i in range(len(self._parent)):
            by_root.setdefault(self.find(i), []).append(i)
        return sorted(by_root.values(), key=lambda members: members[0])


def matches(ship: Sponsorship, matcher: SponsorMatcher) -> bool:
    """True if every field set on ``matcher`` equals the record's value."""
    if matcher.provider and ship.provider != matcher.provider:
        return False
    if matcher.login and ship.sponsor.login != matcher.login:
        return False
    if matcher.name and ship.sponsor.name != matcher.name:
        return False
    if matcher.type and ship.sponsor.kind != matcher.type:
        return False
    return True


def fold_group(members: Sequence[Sponsorship]) -> Sponsorship:
    """Collapse ``members`` into a copy of ``members[0]``."""
    main = members[0]
    expires = [m.expires_at for m in members if m.expires_at is not None]
    created = [m.created_at for m in members if m.created_at is not None]
    if all(m.is_past for m in members):
        monthly = PAST_SPONSOR
    else:
        monthly = sum(m.monthly_dollars for m in members if m.monthly_dollars > 0)
    providers = dict.fromkeys(p for m in members for p in (m.providers or [m.provider]))
    return main.model_copy(update={
        "is_one_time": all(m.is_one_time for m in members),
        "expires_at": max(expires) if expires else None,
        "created_at": min(created) if created else None,
        "monthly_dollars": monthly,
        "provider": "+".join(providers),
    })


def _index_of(ships: list[Sponsorship], target: Sponsorship, by_id: dict[int, int]) -> int:
    idx = by_id.get(id(target))
    if idx is not None:
        return idx
    return ships.index(target)


def merge_sponsorships(
    sponsorships: list[Sponsorship],
    rules: Iterable[MergeRule] = (),
    auto_merge: bool = False,
) -> list[Sponsorship]:
    """Deduplicate ``sponsorships`` according to ``rules`` and social handles.

    Args:
        sponsorships: Provider-tagged records in fetch order.
        rules: Matcher groups and/or function rules.
        auto_merge: Union records through ``sponsor.social_logins``.

    Returns:
        New list with every multi-member group collapsed into its survivor.

    Raises:
        ValueError: If a function rule returns a record that is not in the list.
    """
    ships = list(sponsorships)
    by_id = {id(s): i for i, s in enumerate(ships)}
    dsu = DisjointSet(len(ships))

    for rule in rules:
        if callable(rule):
            for ship in ships:
                result = rule(ship, ships)
                if result:
                    dsu.union_all(
                        [by_id[id(ship)]] + [_index_of(ships, s, by_id) for s in result]
                    )
            continue
        group: list[int] = []
        for matcher in rule:
            hit = [i for i, s in enumerate(ships) if matches(s, matcher)]
            if not hit:
                logger.warning(
                    "No sponsor matched for %s",
                    matcher.model_dump(exclude_none=True, mode="json"),
                )
            group.extend(hit)
        dsu.union_all(group)

    if auto_merge:
        by_handle: dict[tuple[str, str], list[int]] = {}
        for i, ship in enumerate(ships):
            by_handle.setdefault((ship.provider, ship.sponsor.login), []).append(i)
        for i, ship in enumerate(ships):
            for provider, login in ship.sponsor.social_logins.items():
                dsu.union_all([i, *by_handle.get((provider, login), [])])

    merged: dict[int, Sponsorship] = {}
    removed: set[int] = set()
    for members in dsu.groups():
        if len(members) == 1:
            continue
        group_ships = [ships[i] for i in members]
        logger.info("Merging %s", " + ".join(s.label() for s in group_ships))
        merged[members[0]] = fold_group(group_ships)
        removed.update(members[1:])

    return [merged.get(i, ship) for i, ship in enumerate(ships) if i not in removed]
