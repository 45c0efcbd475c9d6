"""
Pool Assignment - two pools, association-diverse first-round groups.

The roster is shuffled with an explicit seed, split into Pool A (first half,
rounded up) and Pool B (remainder), and each pool is cut into groups of two
where the second member is the first remaining participant from a different
association. When no such partner remains the anchor stands alone (bye).
"""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from datetime import date
from math import ceil
from typing import List, Optional, Sequence

from kurash.services.errors import BracketNotFoundError
from kurash.utils.stage_keys import POOL_NAMES, pool_number_for


@dataclass(frozen=True)
class Participant:
    """Immutable roster snapshot of one player in a sub-event."""
    id: int
    name: str
    association: str
    weight: float = 0
    birth_date: Optional[date] = None


@dataclass
class Group:
    name: str  # "<poolNumber>.<index>"
    index: int
    members: List[Participant] = field(default_factory=list)

    @property
    def is_bye(self) -> bool:
        return len(self.members) == 1

    def member(self, player_id: int) -> Optional[Participant]:
        for p in self.members:
            if p.id == player_id:
                return p
        return None


@dataclass
class Pool:
    name: str  # "Pool A" | "Pool B"
    number: int  # 1 | 2
    groups: List[Group] = field(default_factory=list)

    @property
    def participants(self) -> List[Participant]:
        return [p for g in self.groups for p in g.members]


def shuffle_roster(roster: Sequence[Participant], seed: int) -> List[Participant]:
    """Seeded shuffle of a copy of the roster. Same order + same seed → same result."""
    shuffled = list(roster)
    random.Random(seed).shuffle(shuffled)
    return shuffled


def create_pool_groups(players: Sequence[Participant], pool_number: int) -> Pool:
    """
    Cut one pool's players into groups.

    Each group is anchored by the first remaining player; the partner is the
    first remaining player of a different association. If every remaining
    player shares the anchor's association, the anchor gets a bye.
    """
    remaining = list(players)
    groups: List[Group] = []

    while remaining:
        anchor = remaining.pop(0)
        index = len(groups) + 1
        group = Group(name=f"{pool_number}.{index}", index=index, members=[anchor])

        partner_index = next(
            (i for i, p in enumerate(remaining) if p.association != anchor.association),
            None,
        )
        if partner_index is not None:
            group.members.append(remaining.pop(partner_index))

        groups.append(group)

    return Pool(name=POOL_NAMES[pool_number], number=pool_number, groups=groups)


def compute_pools(roster: Sequence[Participant], seed: int) -> List[Pool]:
    """
    Split a roster into Pool A and Pool B and form groups in each.

    Always returns exactly two pools; with N=0 both are empty, with N=1
    Pool A holds a single bye group and Pool B is empty.
    """
    shuffled = shuffle_roster(roster, seed)
    midpoint = ceil(len(shuffled) / 2)

    return [
        create_pool_groups(shuffled[:midpoint], 1),
        create_pool_groups(shuffled[midpoint:], 2),
    ]


def find_pool(pools: Sequence[Pool], pool_name: str) -> Pool:
    number = pool_number_for(pool_name)
    for pool in pools:
        if pool.number == number:
            return pool
    raise BracketNotFoundError(f"{pool_name} not found")


def find_group(pools: Sequence[Pool], pool_name: str, group_name: str) -> Group:
    pool = find_pool(pools, pool_name)
    for group in pool.groups:
        if group.name == group_name:
            return group
    raise BracketNotFoundError(f"Group {group_name} not found in {pool_name}")
