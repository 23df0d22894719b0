"""
Group derivation: competitors + categories -> competition groups ("rings").

Groups are never stored. They are recomputed from competitor assignments on
every read, so this module must stay pure and cheap.

Membership of (category, pool, type):
- the competitor's category id for that type matches
- the competitor's pool label resolves to that pool (unset = pool 1)
- the competitor is competing in that type

Sparring sub-groups ("a"/"b") do not split a group here; bracket entrant
selection below handles them.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence

from ringside.models.tournament_state import (
    COMPETITION_TYPES,
    Category,
    CategoryPoolMapping,
    CompetitionType,
    Competitor,
    PhysicalRingMapping,
    find_category,
)
from ringside.utils.ring_names import (
    GroupKey,
    build_category_pool_name,
    format_group_id,
    pool_label,
    pool_number,
)

logger = logging.getLogger(__name__)

SUB_GROUP_NONE = "none"
SUB_GROUP_ALL = "all"
SUB_GROUP_MIXED = "mixed"


@dataclass
class CompetitionGroup:
    key: GroupKey
    display_name: str
    category_id: str
    pool: str
    member_ids: List[str] = field(default_factory=list)
    physical_ring_id: Optional[str] = None

    @property
    def division(self) -> str:
        return self.key.division

    @property
    def type(self) -> CompetitionType:
        return self.key.type

    @property
    def sub_group(self) -> Optional[str]:
        return self.key.sub_group or None

    @property
    def group_id(self) -> str:
        return format_group_id(self.display_name, self.key.type, self.key.sub_group)


@dataclass
class SubGroupStatus:
    status: str  # "none" | "all" | "mixed"
    count_a: int = 0
    count_b: int = 0
    count_empty: int = 0


@dataclass
class BracketEntrants:
    """Entrants of one physical bracket, best-ranked first."""

    key: GroupKey
    label: str  # "" or "Alt Ring A" / "Alt Ring B"
    competitors: List[Competitor]


def is_member(
    competitor: Competitor,
    category_id: str,
    pool: int,
    competition_type: CompetitionType,
) -> bool:
    entry = competitor.entry(competition_type)
    return entry.competing and entry.category_id == category_id and pool_number(entry.pool) == pool


def group_members(
    competitors: Sequence[Competitor],
    category_id: str,
    pool: int,
    competition_type: CompetitionType,
) -> List[Competitor]:
    """All competitors in one pool, in input order."""
    return [c for c in competitors if is_member(c, category_id, pool, competition_type)]


def resolve_group_key(
    competitor: Competitor,
    competition_type: CompetitionType,
    categories: Sequence[Category],
) -> Optional[GroupKey]:
    """Resolve the group a competitor belongs to, or None.

    Non-competing competitors, stale category ids and unparseable pools all
    resolve to no group.
    """
    entry = competitor.entry(competition_type)
    if not entry.competing:
        return None
    category = find_category(list(categories), entry.category_id)
    if category is None:
        return None
    pool = pool_number(entry.pool)
    if pool is None:
        return None
    sub_group = competitor.sparring.sub_group if competition_type == CompetitionType.sparring else ""
    return GroupKey(
        division=category.division,
        category_id=category.id,
        pool=pool,
        type=competition_type,
        sub_group=sub_group,
    )


def group_display_name(key: GroupKey, categories: Sequence[Category]) -> Optional[str]:
    category = find_category(list(categories), key.category_id)
    if category is None:
        return None
    return build_category_pool_name(category.division, category.name, key.pool)


def _physical_ring_for(
    category: Category,
    pool: int,
    display_name: str,
    category_pool_mappings: Sequence[CategoryPoolMapping],
    physical_ring_mappings: Sequence[PhysicalRingMapping],
) -> Optional[str]:
    for mapping in category_pool_mappings:
        if mapping.category_id == category.id and pool_number(mapping.pool) == pool:
            return mapping.physical_ring_id
    for legacy in physical_ring_mappings:
        if legacy.category_pool_name == display_name:
            return legacy.physical_ring_name
    return None


def derive_groups(
    competitors: Sequence[Competitor],
    categories: Sequence[Category],
    category_pool_mappings: Sequence[CategoryPoolMapping] = (),
    physical_ring_mappings: Sequence[PhysicalRingMapping] = (),
) -> List[CompetitionGroup]:
    """Compute every non-empty competition group.

    Order: categories in input order; within a category forms pools first,
    then sparring pools, each by ascending pool number.
    """
    groups: List[CompetitionGroup] = []

    for category in categories:
        for competition_type in COMPETITION_TYPES:
            for pool_index in range(category.num_pools):
                pool = pool_index + 1
                members = group_members(competitors, category.id, pool, competition_type)
                if not members:
                    continue

                display_name = build_category_pool_name(category.division, category.name, pool)
                group = CompetitionGroup(
                    key=GroupKey(
                        division=category.division,
                        category_id=category.id,
                        pool=pool,
                        type=competition_type,
                    ),
                    display_name=display_name,
                    category_id=category.id,
                    pool=pool_label(pool),
                    member_ids=[m.id for m in members],
                    physical_ring_id=_physical_ring_for(
                        category, pool, display_name, category_pool_mappings, physical_ring_mappings
                    ),
                )
                logger.debug(
                    "Derived %s group %r with %d members", competition_type.value, display_name, len(members)
                )
                groups.append(group)

    _warn_on_unreachable_pools(competitors, categories)
    _warn_on_duplicate_names(groups)
    return groups


def _warn_on_unreachable_pools(competitors: Iterable[Competitor], categories: Sequence[Category]) -> None:
    by_id = {c.id: c for c in categories}
    for competitor in competitors:
        for competition_type in COMPETITION_TYPES:
            entry = competitor.entry(competition_type)
            category = by_id.get(entry.category_id) if entry.category_id else None
            if not entry.competing or category is None:
                continue
            pool = pool_number(entry.pool)
            if pool is None or pool > category.num_pools:
                logger.warning(
                    "Competitor %s has %s pool %r outside category %r (%d pools)",
                    competitor.id,
                    competition_type.value,
                    entry.pool,
                    category.name,
                    category.num_pools,
                )


def _warn_on_duplicate_names(groups: Sequence[CompetitionGroup]) -> None:
    counts = Counter((g.display_name, g.type) for g in groups)
    for (display_name, competition_type), count in counts.items():
        if count > 1:
            logger.warning(
                "Duplicate %s group name %r across %d categories", competition_type.value, display_name, count
            )


def sub_group_status(members: Sequence[Competitor]) -> SubGroupStatus:
    count_a = sum(1 for m in members if m.sparring.sub_group == "a")
    count_b = sum(1 for m in members if m.sparring.sub_group == "b")
    count_empty = len(members) - count_a - count_b

    if count_a + count_b == 0:
        status = SUB_GROUP_NONE
    elif count_empty == 0:
        status = SUB_GROUP_ALL
    else:
        status = SUB_GROUP_MIXED
    return SubGroupStatus(status=status, count_a=count_a, count_b=count_b, count_empty=count_empty)


def _rank_sort_key(competitor: Competitor, competition_type: CompetitionType):
    rank = competitor.entry(competition_type).rank
    return (rank is None, rank or 0)


def bracket_entrants(
    competitors: Sequence[Competitor],
    category_id: str,
    pool: int,
    competition_type: CompetitionType = CompetitionType.sparring,
    sub_group: Optional[str] = None,
) -> List[Competitor]:
    """Pool members ordered by rank (unranked last), optionally one sub-group only."""
    members = group_members(competitors, category_id, pool, competition_type)
    if sub_group is not None:
        members = [m for m in members if m.sparring.sub_group == sub_group]
    return sorted(members, key=lambda m: _rank_sort_key(m, competition_type))


def split_sub_groups(competitors: Sequence[Competitor], group: CompetitionGroup) -> List[BracketEntrants]:
    """Entrant lists for each bracket drawn for a sparring group.

    When every member carries a sub-group the pool is drawn as separate
    "a" and "b" brackets; otherwise (none or mixed) as a single bracket.
    """
    pool = group.key.pool
    members = bracket_entrants(competitors, group.category_id, pool, group.type)

    if group.type != CompetitionType.sparring or sub_group_status(members).status != SUB_GROUP_ALL:
        return [BracketEntrants(key=group.key, label="", competitors=members)]

    brackets = []
    for sub_group in ("a", "b"):
        entrants = [m for m in members if m.sparring.sub_group == sub_group]
        if entrants:
            brackets.append(
                BracketEntrants(
                    key=GroupKey(group.division, group.category_id, pool, group.type, sub_group),
                    label=f"Alt Ring {sub_group.upper()}",
                    competitors=entrants,
                )
            )
    return brackets
