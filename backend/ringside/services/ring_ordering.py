"""
Intra-group ordering: assign dense 1..N ranks within exactly one group.

Forms: interleave schools so no single school crowds the front of the
scoring sheet. Sparring: shortest first, so similar sizes meet early once
seeded into the bracket.

Both return a new competitor list; competitors outside the group are the
same objects, untouched.
"""

from __future__ import annotations

import hashlib
import logging
from typing import Dict, List, Optional, Sequence, Union

from ringside.models.tournament_state import CompetitionType, Competitor
from ringside.services.group_derivation import is_member
from ringside.utils.ring_names import GroupKey, pool_number

logger = logging.getLogger(__name__)

# How many leading positions the school-balance pass inspects. Tunable
# policy: one swap at most, not a guarantee against school clustering.
SCHOOL_BALANCE_WINDOW = 3


def name_hash(competitor: Competitor) -> int:
    """Deterministic hash of the full name. Same name always yields same value."""
    s = f"{competitor.first_name}{competitor.last_name}".lower()
    return int(hashlib.sha256(s.encode()).hexdigest()[:12], 16)


def school_key(competitor: Competitor) -> str:
    if competitor.branch:
        return f"{competitor.school}-{competitor.branch}"
    return competitor.school


def _select_group(
    competitors: Sequence[Competitor],
    competition_type: CompetitionType,
    category_id: str,
    pool: Union[int, str, None],
    sub_group: Optional[str],
) -> List[Competitor]:
    pool_num = pool if isinstance(pool, int) else pool_number(pool)
    if pool_num is None:
        return []
    members = [c for c in competitors if is_member(c, category_id, pool_num, competition_type)]
    if sub_group and competition_type == CompetitionType.sparring:
        members = [c for c in members if c.sparring.sub_group == sub_group]
    return members


def _apply_ranks(
    competitors: Sequence[Competitor],
    ordered: Sequence[Competitor],
    competition_type: CompetitionType,
) -> List[Competitor]:
    field_name = competition_type.value
    ranked: Dict[str, Competitor] = {}
    for index, competitor in enumerate(ordered):
        entry = competitor.entry(competition_type).model_copy(update={"rank": index + 1})
        ranked[competitor.id] = competitor.model_copy(update={field_name: entry})
    return [ranked.get(c.id, c) for c in competitors]


def balance_schools(ordered: List[Competitor], window: int = SCHOOL_BALANCE_WINDOW) -> List[Competitor]:
    """Break up a run of one school at the front of the order.

    If the first ``window`` entries share a school, the last of them is
    swapped with the first later entry from a different school.
    """
    result = list(ordered)
    if window < 2 or len(result) < window:
        return result

    lead_school = school_key(result[0])
    if any(school_key(c) != lead_school for c in result[:window]):
        return result

    for i in range(window, len(result)):
        if school_key(result[i]) != lead_school:
            result[window - 1], result[i] = result[i], result[window - 1]
            break
    return result


def order_forms_group(
    competitors: Sequence[Competitor],
    category_id: str,
    pool: Union[int, str, None],
) -> List[Competitor]:
    members = _select_group(competitors, CompetitionType.forms, category_id, pool, None)
    if not members:
        return list(competitors)

    school_groups: Dict[str, List[Competitor]] = {}
    for competitor in members:
        school_groups.setdefault(school_key(competitor), []).append(competitor)

    with_fraction = []
    for school_members in school_groups.values():
        ordered_school = sorted(school_members, key=lambda c: (name_hash(c), c.id))
        size = len(ordered_school)
        for index, competitor in enumerate(ordered_school):
            with_fraction.append(((index + 1) / size, competitor))

    with_fraction.sort(key=lambda item: item[0])
    ordered = balance_schools([competitor for _, competitor in with_fraction])

    logger.debug(
        "Ordered forms pool %s/%s: %d competitors across %d schools",
        category_id,
        pool,
        len(ordered),
        len(school_groups),
    )
    return _apply_ranks(competitors, ordered, CompetitionType.forms)


def order_sparring_group(
    competitors: Sequence[Competitor],
    category_id: str,
    pool: Union[int, str, None],
    sub_group: Optional[str] = None,
) -> List[Competitor]:
    members = _select_group(competitors, CompetitionType.sparring, category_id, pool, sub_group)
    if not members:
        return list(competitors)

    ordered = sorted(members, key=lambda c: c.height_feet * 12 + c.height_inches)

    logger.debug("Ordered sparring pool %s/%s%s by height: %d", category_id, pool, sub_group or "", len(ordered))
    return _apply_ranks(competitors, ordered, CompetitionType.sparring)


def order_group(competitors: Sequence[Competitor], key: GroupKey) -> List[Competitor]:
    """Order one group, dispatching on its competition type."""
    if CompetitionType(key.type) == CompetitionType.forms:
        return order_forms_group(competitors, key.category_id, key.pool)
    return order_sparring_group(competitors, key.category_id, key.pool, key.sub_group or None)
