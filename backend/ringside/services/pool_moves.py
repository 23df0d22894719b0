"""
Pool assignment moves. Every pool movement goes through here so ranks stay
dense (1..N) in both the pool left and the pool joined.

All functions return a new competitor list; unknown competitor ids return
the input unchanged.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence, Union

from ringside.models.tournament_state import Category, CompetitionType, Competitor, find_category
from ringside.utils.ring_names import pool_number

logger = logging.getLogger(__name__)

BOTH = "both"


def _find(competitors: Sequence[Competitor], competitor_id: str) -> Optional[Competitor]:
    for competitor in competitors:
        if competitor.id == competitor_id:
            return competitor
    return None


def _update_entry(competitor: Competitor, competition_type: CompetitionType, **changes) -> Competitor:
    entry = competitor.entry(competition_type).model_copy(update=changes)
    return competitor.model_copy(update={competition_type.value: entry})


def _apply(competitors: Sequence[Competitor], updated: Dict[str, Competitor]) -> List[Competitor]:
    return [updated.get(c.id, c) for c in competitors]


def _same_pool(competitor: Competitor, competition_type: CompetitionType, category_id: str, pool: Optional[str]) -> bool:
    entry = competitor.entry(competition_type)
    return entry.category_id == category_id and pool_number(entry.pool) == pool_number(pool)


def _pool_mates(
    competitors: Sequence[Competitor],
    exclude_id: str,
    competition_type: CompetitionType,
    category_id: str,
    pool: Optional[str],
) -> List[Competitor]:
    """Competing members of one pool; an unset pool label is pool 1."""
    mates = [
        c
        for c in competitors
        if c.id != exclude_id and c.entry(competition_type).competing and _same_pool(c, competition_type, category_id, pool)
    ]
    return sorted(mates, key=lambda c: c.entry(competition_type).rank or 0)


def move_competitor_to_pool(
    competitors: Sequence[Competitor],
    competitor_id: str,
    competition_type: CompetitionType,
    category_id: Optional[str],
    pool: Optional[str],
) -> List[Competitor]:
    """Move a competitor to the top of another pool (or out of any pool).

    The moved competitor takes rank 1; existing members of the new pool
    shift down by one; the old pool closes its gap.
    """
    competition_type = CompetitionType(competition_type)
    competitor = _find(competitors, competitor_id)
    if competitor is None:
        return list(competitors)

    entry = competitor.entry(competition_type)
    old_category_id, old_pool = entry.category_id, entry.pool
    if old_category_id == category_id and (category_id is None or pool_number(old_pool) == pool_number(pool)):
        return list(competitors)

    updated: Dict[str, Competitor] = {
        competitor_id: _update_entry(
            competitor,
            competition_type,
            category_id=category_id,
            pool=pool,
            rank=1 if category_id else None,
        )
    }

    def _set_rank(target: Competitor, rank: int) -> None:
        base = updated.get(target.id, target)
        updated[target.id] = _update_entry(base, competition_type, rank=rank)

    if old_category_id:
        for index, mate in enumerate(_pool_mates(competitors, competitor_id, competition_type, old_category_id, old_pool)):
            _set_rank(mate, index + 1)

    if category_id:
        for index, mate in enumerate(_pool_mates(competitors, competitor_id, competition_type, category_id, pool)):
            _set_rank(mate, index + 2)

    logger.debug(
        "Moved %s %s from %s/%s to %s/%s",
        competitor_id,
        competition_type.value,
        old_category_id,
        old_pool,
        category_id,
        pool,
    )
    return _apply(competitors, updated)


def withdraw_competitor(
    competitors: Sequence[Competitor],
    competitor_id: str,
    competition_type: Union[CompetitionType, str],
) -> List[Competitor]:
    """Withdraw from forms, sparring or "both", remembering the assignment."""
    types = (
        [CompetitionType.forms, CompetitionType.sparring]
        if competition_type == BOTH
        else [CompetitionType(competition_type)]
    )
    if _find(competitors, competitor_id) is None:
        return list(competitors)

    result = list(competitors)
    for ctype in types:
        current = _find(result, competitor_id)
        entry = current.entry(ctype)
        if entry.category_id:
            result = _apply(
                result,
                {
                    competitor_id: _update_entry(
                        current, ctype, last_category_id=entry.category_id, last_pool=entry.pool
                    )
                },
            )
            result = move_competitor_to_pool(result, competitor_id, ctype, None, None)

        current = _find(result, competitor_id)
        changes = {"division": None, "competing": False}
        if ctype == CompetitionType.sparring:
            changes["sub_group"] = ""
        result = _apply(result, {competitor_id: _update_entry(current, ctype, **changes)})

    logger.info("Withdrew competitor %s from %s", competitor_id, competition_type)
    return result


def reinstate_competitor(
    competitors: Sequence[Competitor],
    competitor_id: str,
    competition_type: CompetitionType,
    division: str,
    categories: Sequence[Category],
) -> List[Competitor]:
    """Reinstate into the last-known pool when its category still exists."""
    competition_type = CompetitionType(competition_type)
    competitor = _find(competitors, competitor_id)
    if competitor is None:
        return list(competitors)

    entry = competitor.entry(competition_type)
    category = find_category(list(categories), entry.last_category_id)

    result = list(competitors)
    if category is not None:
        result = move_competitor_to_pool(result, competitor_id, competition_type, category.id, entry.last_pool)
    else:
        logger.info(
            "No usable last %s assignment for %s; reinstating without a pool",
            competition_type.value,
            competitor_id,
        )

    current = _find(result, competitor_id)
    return _apply(
        result,
        {competitor_id: _update_entry(current, competition_type, division=division, competing=True)},
    )


def copy_sparring_from_forms(competitors: Sequence[Competitor], competitor_id: str) -> List[Competitor]:
    """One-time copy of the forms assignment onto sparring (not an ongoing sync)."""
    competitor = _find(competitors, competitor_id)
    if competitor is None or not competitor.forms.category_id:
        return list(competitors)

    result = move_competitor_to_pool(
        competitors,
        competitor_id,
        CompetitionType.sparring,
        competitor.forms.category_id,
        competitor.forms.pool,
    )
    current = _find(result, competitor_id)
    return _apply(
        result,
        {
            competitor_id: _update_entry(
                current,
                CompetitionType.sparring,
                division=current.forms.division,
                competing=current.forms.competing,
            )
        },
    )
