"""
Checkpoint diff: which competitors changed since a snapshot, and which
groups' paperwork those changes touch.

Affected-group attribution:
- a rank-only change reorders a group without changing its membership, so
  only the competitor's current group is affected;
- a category / pool / sub-group / competing change moves the competitor out
  of one group and into another, so both the before group (checkpoint
  competitor + checkpoint categories) and the after group (current
  competitor + current categories) are affected.

Added competitors mark their current groups; removed competitors mark
their checkpoint groups.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Set, Tuple

from ringside.models.tournament_state import (
    COMPETITION_TYPES,
    Category,
    CompetitionType,
    Competitor,
    TournamentState,
)
from ringside.services.group_derivation import group_display_name, resolve_group_key
from ringside.utils.ring_names import format_group_id

logger = logging.getLogger(__name__)

RANK_FIELD = "rank"

# (type, entry attribute) in reporting order
TRACKED_FIELDS: Tuple[Tuple[CompetitionType, str], ...] = (
    (CompetitionType.forms, "category_id"),
    (CompetitionType.forms, "pool"),
    (CompetitionType.forms, "competing"),
    (CompetitionType.forms, RANK_FIELD),
    (CompetitionType.sparring, "category_id"),
    (CompetitionType.sparring, "pool"),
    (CompetitionType.sparring, "sub_group"),
    (CompetitionType.sparring, "competing"),
    (CompetitionType.sparring, RANK_FIELD),
)


@dataclass
class CompetitorChange:
    competitor_id: str
    competitor_name: str
    field: str  # e.g. "sparring.rank"
    old_value: Any
    new_value: Any


@dataclass
class CheckpointDiff:
    added: List[Competitor] = field(default_factory=list)
    removed: List[Competitor] = field(default_factory=list)
    modified: List[CompetitorChange] = field(default_factory=list)
    affected_group_ids: Set[str] = field(default_factory=set)

    @property
    def is_empty(self) -> bool:
        return not (self.added or self.removed or self.modified or self.affected_group_ids)


def _serialized(value: Any) -> str:
    return json.dumps(value, sort_keys=True)


def affected_group_id(
    competitor: Competitor,
    competition_type: CompetitionType,
    categories: Sequence[Category],
) -> Optional[str]:
    """Wire id of the group a competitor resolves to, or None."""
    key = resolve_group_key(competitor, competition_type, categories)
    if key is None:
        return None
    display_name = group_display_name(key, categories)
    if display_name is None:
        return None
    return format_group_id(display_name, key.type, key.sub_group)


def _mark(
    affected: Set[str],
    competitor: Competitor,
    competition_type: CompetitionType,
    categories: Sequence[Category],
) -> None:
    group_id = affected_group_id(competitor, competition_type, categories)
    if group_id is not None:
        affected.add(group_id)


def diff_competitors(
    current_competitors: Sequence[Competitor],
    current_categories: Sequence[Category],
    checkpoint_competitors: Sequence[Competitor],
    checkpoint_categories: Sequence[Category],
) -> CheckpointDiff:
    current_by_id: Dict[str, Competitor] = {c.id: c for c in current_competitors}
    checkpoint_by_id: Dict[str, Competitor] = {c.id: c for c in checkpoint_competitors}

    diff = CheckpointDiff()

    for competitor in current_competitors:
        if competitor.id not in checkpoint_by_id:
            diff.added.append(competitor)
            for competition_type in COMPETITION_TYPES:
                _mark(diff.affected_group_ids, competitor, competition_type, current_categories)

    for competitor in checkpoint_competitors:
        if competitor.id not in current_by_id:
            diff.removed.append(competitor)
            for competition_type in COMPETITION_TYPES:
                _mark(diff.affected_group_ids, competitor, competition_type, checkpoint_categories)

    for current in current_competitors:
        before = checkpoint_by_id.get(current.id)
        if before is None:
            continue

        for competition_type, attr in TRACKED_FIELDS:
            old_value = getattr(before.entry(competition_type), attr)
            new_value = getattr(current.entry(competition_type), attr)
            if _serialized(old_value) == _serialized(new_value):
                continue

            diff.modified.append(
                CompetitorChange(
                    competitor_id=current.id,
                    competitor_name=current.full_name,
                    field=f"{competition_type.value}.{attr}",
                    old_value=old_value,
                    new_value=new_value,
                )
            )

            if attr == RANK_FIELD:
                _mark(diff.affected_group_ids, current, competition_type, current_categories)
            else:
                _mark(diff.affected_group_ids, before, competition_type, checkpoint_categories)
                _mark(diff.affected_group_ids, current, competition_type, current_categories)

    logger.debug(
        "Checkpoint diff: %d added, %d removed, %d field changes, %d groups affected",
        len(diff.added),
        len(diff.removed),
        len(diff.modified),
        len(diff.affected_group_ids),
    )
    return diff


def diff_checkpoint(current: TournamentState, checkpoint: Optional[TournamentState]) -> Optional[CheckpointDiff]:
    """Diff live state against a checkpoint's state.

    Returns None when there is no checkpoint to compare against.
    """
    if checkpoint is None:
        return None
    return diff_competitors(
        current.competitors,
        current.categories,
        checkpoint.competitors,
        checkpoint.categories,
    )
