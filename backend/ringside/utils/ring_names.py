"""
Group naming and the affected-group wire format.

Display name: "{division} - {category name} Pool {n}"
Wire id:      "{display name}_{type}[_{sub group}]"

  "Beginner - Mixed 8-10 Pool 1_forms"
  "Beginner - Mixed 8-10 Pool 1_sparring"
  "Beginner - Mixed 8-10 Pool 1_sparring_a"

The document renderer parses wire ids to decide which paperwork to
regenerate, so the suffix grammar must not change. Inside the core, group
identity is the structured GroupKey; strings are produced only at the edge.
"""

import re
from dataclasses import dataclass, replace
from typing import FrozenSet, Iterable, Optional

from ringside.models.tournament_state import CompetitionType

POOL_PREFIX = "P"
DEFAULT_POOL = 1
SUB_GROUP_VALUES = ("", "a", "b")

_POOL_LABEL_RE = re.compile(r"^(?:P|R|Pool\s*)?(\d+)$", re.IGNORECASE)
_SPARRING_SUB_RE = re.compile(r"^(.+)_sparring_([a-z])$")
_SPARRING_RE = re.compile(r"^(.+)_sparring$")
_FORMS_RE = re.compile(r"^(.+)_forms$")


@dataclass(frozen=True)
class GroupKey:
    """Structured identity of a competition group."""

    division: str
    category_id: str
    pool: int
    type: CompetitionType
    sub_group: str = ""

    def without_sub_group(self) -> "GroupKey":
        return replace(self, sub_group="")


@dataclass(frozen=True)
class ParsedGroupId:
    category_pool: str
    type: CompetitionType
    sub_group: Optional[str] = None


@dataclass(frozen=True)
class GroupAffect:
    is_affected: bool
    # None means every sub-group bracket of the pool is affected
    sub_groups: Optional[FrozenSet[str]] = None


def pool_label(pool: int) -> str:
    """1 -> "P1" """
    return f"{POOL_PREFIX}{pool}"


def pool_number(label: Optional[str]) -> Optional[int]:
    """Parse a pool label into its 1-based number.

    Unset labels mean pool 1. Accepts "P2", "Pool 2", the legacy cohort
    ring form "R2", and bare digits. Anything else is None (no pool).
    """
    if label is None or not str(label).strip():
        return DEFAULT_POOL
    match = _POOL_LABEL_RE.match(str(label).strip())
    if not match:
        return None
    number = int(match.group(1))
    return number if number >= 1 else None


def format_pool(label: Optional[str]) -> str:
    """ "P1" -> "Pool 1"; unparseable labels are returned as given."""
    number = pool_number(label)
    if number is None:
        return label or ""
    return f"Pool {number}"


def build_category_pool_name(division: str, category_name: str, pool: int) -> str:
    return f"{division} - {category_name} Pool {pool}"


def format_group_id(display_name: str, competition_type: CompetitionType, sub_group: str = "") -> str:
    competition_type = CompetitionType(competition_type)
    if competition_type == CompetitionType.sparring and sub_group:
        return f"{display_name}_{competition_type.value}_{sub_group}"
    return f"{display_name}_{competition_type.value}"


def parse_group_id(group_id: str) -> Optional[ParsedGroupId]:
    match = _SPARRING_SUB_RE.match(group_id)
    if match:
        return ParsedGroupId(match.group(1), CompetitionType.sparring, match.group(2))

    match = _SPARRING_RE.match(group_id)
    if match:
        return ParsedGroupId(match.group(1), CompetitionType.sparring)

    match = _FORMS_RE.match(group_id)
    if match:
        return ParsedGroupId(match.group(1), CompetitionType.forms)

    return None


def is_group_affected(
    display_name: str,
    competition_type: CompetitionType,
    affected_group_ids: Iterable[str],
) -> GroupAffect:
    """Decide whether a group's paperwork needs regenerating.

    A bare "_sparring" id marks every bracket of the pool; "_sparring_a" /
    "_sparring_b" mark only those sub-group brackets.
    """
    affected = set(affected_group_ids)
    competition_type = CompetitionType(competition_type)

    if competition_type == CompetitionType.forms:
        return GroupAffect(format_group_id(display_name, competition_type) in affected)

    if format_group_id(display_name, competition_type) in affected:
        return GroupAffect(True)

    sub_groups = frozenset(
        sub for sub in SUB_GROUP_VALUES if sub and format_group_id(display_name, competition_type, sub) in affected
    )
    if sub_groups:
        return GroupAffect(True, sub_groups)
    return GroupAffect(False)
