"""
Load-time migration of saved tournament files to the canonical schema.

Saved files have gone through three shapes:

  v0  flat camelCase, "cohort" naming (cohorts, formsCohortId,
      formsCohortRing "R1", numRings, cohortRingMappings)
  v1  flat camelCase, "category" naming (categories, formsCategoryId,
      formsPool "P1", numPools, categoryPoolMappings)
  v2  canonical nested snake_case (TournamentState)

Each step runs once, in order. Division sentinel strings ("not
participating", "same as forms") are parsed into a DivisionAssignment and
resolved into explicit values here, so the core never compares sentinels.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Union

from pydantic import ValidationError

from ringside.models.tournament_state import (
    CURRENT_SCHEMA_VERSION,
    CompetitionType,
    Competitor,
    TournamentState,
    default_tournament_config,
)
from ringside.utils.ring_names import pool_label, pool_number

logger = logging.getLogger(__name__)

NOT_PARTICIPATING_VALUES = {"not participating", "no", "none"}
SAME_AS_VALUES = {
    "same as forms": CompetitionType.forms,
    "same as sparring": CompetitionType.sparring,
}

_COHORT_PARTICIPANT_FIELDS = {
    "formsCohortId": "formsCategoryId",
    "sparringCohortId": "sparringCategoryId",
    "formsCohortRing": "formsPool",
    "sparringCohortRing": "sparringPool",
}


class StateMigrationError(ValueError):
    """Saved state cannot be migrated to the canonical schema."""

    pass


@dataclass(frozen=True)
class NotEntered:
    pass


@dataclass(frozen=True)
class Explicit:
    division: str


@dataclass(frozen=True)
class Derived:
    from_type: CompetitionType


DivisionAssignment = Union[NotEntered, Explicit, Derived]


def parse_division(value: Optional[str]) -> DivisionAssignment:
    if value is None or not str(value).strip():
        return NotEntered()
    text = str(value).strip()
    lowered = text.lower()
    if lowered in NOT_PARTICIPATING_VALUES:
        return NotEntered()
    if lowered in SAME_AS_VALUES:
        return Derived(SAME_AS_VALUES[lowered])
    return Explicit(text)


def detect_schema_version(raw: Dict[str, Any]) -> int:
    if "schema_version" in raw:
        return int(raw["schema_version"])
    if "cohorts" in raw or "cohortRingMappings" in raw:
        return 0
    for participant in raw.get("participants") or []:
        if any(key in participant for key in _COHORT_PARTICIPANT_FIELDS):
            return 0
    return 1


# -----------------------------------------------------------------------------
# v0 -> v1: cohort naming -> category naming
# -----------------------------------------------------------------------------


def _cohort_ring_to_pool(value: Optional[str]) -> Optional[str]:
    if not value:
        return value
    number = pool_number(value)
    return pool_label(number) if number is not None else value


def _migrate_v0_to_v1(raw: Dict[str, Any]) -> Dict[str, Any]:
    state = dict(raw)

    if not state.get("categories"):
        state["categories"] = state.get("cohorts") or []
    state.pop("cohorts", None)

    categories = []
    for category in state["categories"]:
        category = dict(category)
        if "numPools" not in category:
            category["numPools"] = category.pop("numRings", 1)
        categories.append(category)
    state["categories"] = categories

    if not state.get("categoryPoolMappings"):
        state["categoryPoolMappings"] = [
            {
                "division": m.get("division", ""),
                "categoryId": m.get("categoryId", m.get("cohortId")),
                "pool": _cohort_ring_to_pool(m.get("pool", m.get("cohortRing"))),
                "physicalRingId": m.get("physicalRingId"),
            }
            for m in state.get("cohortRingMappings") or []
        ]
    state.pop("cohortRingMappings", None)

    state["physicalRingMappings"] = [
        {
            "categoryPoolName": m.get("categoryPoolName") or m.get("cohortRingName"),
            "physicalRingName": m.get("physicalRingName"),
        }
        for m in state.get("physicalRingMappings") or []
    ]

    participants = []
    for participant in state.get("participants") or []:
        participant = dict(participant)
        for old, new in _COHORT_PARTICIPANT_FIELDS.items():
            if old in participant:
                value = participant.pop(old)
                if participant.get(new) is None:
                    participant[new] = _cohort_ring_to_pool(value) if new.endswith("Pool") else value
        participants.append(participant)
    state["participants"] = participants

    return state


# -----------------------------------------------------------------------------
# v1 -> v2: flat camelCase -> canonical nested schema
# -----------------------------------------------------------------------------


def _raw_entry(participant: Dict[str, Any], prefix: str) -> Dict[str, Any]:
    competing_key = f"competing{prefix.capitalize()}"
    if f"{prefix}Division" in participant:
        division = participant.get(f"{prefix}Division")
    elif participant.get(competing_key, True):
        # Oldest files carried a single shared division
        division = participant.get("division")
    else:
        division = None

    return {
        "assignment": parse_division(division),
        "category_id": participant.get(f"{prefix}CategoryId"),
        "pool": participant.get(f"{prefix}Pool"),
        "rank": participant.get(f"{prefix}RankOrder"),
        "competing": participant.get(competing_key),
        "last_category_id": participant.get(f"last{prefix.capitalize()}CategoryId"),
        "last_pool": participant.get(f"last{prefix.capitalize()}Pool"),
    }


def _resolve_entry(entry: Dict[str, Any], other: Dict[str, Any]) -> Dict[str, Any]:
    assignment = entry["assignment"]

    if isinstance(assignment, Derived):
        source = other["assignment"]
        if not isinstance(source, Explicit):
            assignment = NotEntered()
        else:
            return {
                "division": source.division,
                "category_id": other["category_id"],
                "pool": other["pool"],
                "rank": entry["rank"],
                "competing": other["competing"] if other["competing"] is not None else True,
                "last_category_id": entry["last_category_id"],
                "last_pool": entry["last_pool"],
            }

    if isinstance(assignment, Explicit):
        return {
            "division": assignment.division,
            "category_id": entry["category_id"],
            "pool": entry["pool"],
            "rank": entry["rank"],
            "competing": entry["competing"] if entry["competing"] is not None else True,
            "last_category_id": entry["last_category_id"],
            "last_pool": entry["last_pool"],
        }

    return {
        "division": None,
        "category_id": entry["category_id"],
        "pool": entry["pool"],
        "rank": entry["rank"],
        "competing": False,
        "last_category_id": entry["last_category_id"],
        "last_pool": entry["last_pool"],
    }


def _migrate_participant(participant: Dict[str, Any]) -> Dict[str, Any]:
    forms_raw = _raw_entry(participant, "forms")
    sparring_raw = _raw_entry(participant, "sparring")

    forms = _resolve_entry(forms_raw, sparring_raw)
    sparring = _resolve_entry(sparring_raw, forms_raw)

    sub_group = participant.get("sparringAltRing") or ""
    sparring["sub_group"] = sub_group if sub_group in ("a", "b") else ""

    return {
        "id": str(participant["id"]),
        "first_name": participant.get("firstName", ""),
        "last_name": participant.get("lastName", ""),
        "age": participant.get("age") or 0,
        "gender": participant.get("gender") or "",
        "height_feet": participant.get("heightFeet") or 0,
        "height_inches": participant.get("heightInches") or 0,
        "total_height_inches": participant.get("totalHeightInches"),
        "school": participant.get("school") or "",
        "branch": participant.get("branch") or None,
        "forms": forms,
        "sparring": sparring,
    }


def _migrate_config(config: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    defaults = default_tournament_config()
    if not config:
        return defaults.model_dump()

    default_abbreviations = {d.name: d.abbreviation for d in defaults.divisions}
    divisions = [
        {
            "name": d["name"],
            "order": d.get("order", 999),
            "num_rings": d.get("numRings"),
            "abbreviation": d.get("abbreviation") or default_abbreviations.get(d["name"]),
        }
        for d in config.get("divisions") or []
    ]
    return {
        "divisions": divisions or [d.model_dump() for d in defaults.divisions],
        "physical_rings": [
            {"id": r["id"], "name": r.get("name", ""), "color": r.get("color", "")}
            for r in config.get("physicalRings") or []
        ],
        "school_abbreviations": config.get("schoolAbbreviations") or {},
    }


def _renumber_ranks(competitors: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Make legacy rank orders (10, 20, 30, ...) dense 1..N within each pool."""
    for type_key in ("forms", "sparring"):
        pools: Dict[tuple, List[tuple]] = {}
        for index, competitor in enumerate(competitors):
            entry = competitor[type_key]
            if not entry["competing"] or not entry["category_id"] or entry["rank"] is None:
                continue
            key = (entry["category_id"], pool_number(entry["pool"]))
            pools.setdefault(key, []).append((entry["rank"], index, entry))
        for members in pools.values():
            for new_rank, (_, _, entry) in enumerate(sorted(members, key=lambda m: (m[0], m[1])), start=1):
                entry["rank"] = new_rank
    return competitors


def _migrate_v1_to_v2(raw: Dict[str, Any]) -> Dict[str, Any]:
    categories = [
        {
            "id": str(c["id"]),
            "name": c.get("name", ""),
            "division": c.get("division", ""),
            "type": c.get("type"),
            "gender": str(c.get("gender") or "mixed").lower(),
            "min_age": c.get("minAge", 0),
            "max_age": c.get("maxAge", 999),
            "num_pools": max(1, int(c.get("numPools") or 1)),
            "competitor_ids": [str(i) for i in c.get("participantIds") or []],
        }
        for c in raw.get("categories") or []
    ]

    return {
        "schema_version": 2,
        "competitors": _renumber_ranks([_migrate_participant(p) for p in raw.get("participants") or []]),
        "categories": categories,
        "config": _migrate_config(raw.get("config")),
        "category_pool_mappings": [
            {
                "division": m.get("division", ""),
                "category_id": str(m.get("categoryId")),
                "pool": m.get("pool") or pool_label(1),
                "physical_ring_id": m.get("physicalRingId"),
            }
            for m in raw.get("categoryPoolMappings") or []
            if m.get("categoryId") and m.get("physicalRingId")
        ],
        "physical_ring_mappings": [
            {"category_pool_name": m["categoryPoolName"], "physical_ring_name": m["physicalRingName"]}
            for m in raw.get("physicalRingMappings") or []
            if m.get("categoryPoolName") and m.get("physicalRingName")
        ],
    }


MIGRATIONS: Dict[int, Callable[[Dict[str, Any]], Dict[str, Any]]] = {
    0: _migrate_v0_to_v1,
    1: _migrate_v1_to_v2,
}


def enforce_competing_invariant(competitor: Competitor) -> Competitor:
    """Clear category/pool/rank for any type the competitor is not competing in.

    A cleared assignment is kept in the last-known pair unless one is
    already recorded.
    """
    updates = {}
    for competition_type in (CompetitionType.forms, CompetitionType.sparring):
        entry = competitor.entry(competition_type)
        if entry.competing:
            continue
        if entry.category_id is None and entry.pool is None and entry.rank is None:
            continue
        entry_updates = {"category_id": None, "pool": None, "rank": None}
        if entry.category_id and not entry.last_category_id:
            entry_updates["last_category_id"] = entry.category_id
            entry_updates["last_pool"] = entry.pool
        if competition_type == CompetitionType.sparring:
            entry_updates["sub_group"] = ""
        updates[competition_type.value] = entry.model_copy(update=entry_updates)
    if not updates:
        return competitor
    return competitor.model_copy(update=updates)


def normalize_state(state: TournamentState) -> TournamentState:
    """Apply the competing invariant to every competitor. Idempotent."""
    competitors: List[Competitor] = [enforce_competing_invariant(c) for c in state.competitors]
    return state.model_copy(update={"competitors": competitors})


def migrate_state(raw: Dict[str, Any]) -> TournamentState:
    """Bring a saved state payload of any known version to the canonical schema."""
    if not isinstance(raw, dict):
        raise StateMigrationError(f"Saved state must be an object, got {type(raw).__name__}")

    try:
        version = detect_schema_version(raw)
    except (TypeError, ValueError) as e:
        raise StateMigrationError(f"Invalid schema_version {raw.get('schema_version')!r}") from e
    if version > CURRENT_SCHEMA_VERSION or version < 0:
        raise StateMigrationError(f"Unknown schema_version {version}")

    data = copy.deepcopy(raw)
    start_version = version
    try:
        while version < CURRENT_SCHEMA_VERSION:
            data = MIGRATIONS[version](data)
            version += 1
        state = TournamentState.model_validate(data)
    except (KeyError, TypeError, ValidationError) as e:
        raise StateMigrationError(f"Saved state (schema v{start_version}) is malformed: {e}") from e

    if start_version != CURRENT_SCHEMA_VERSION:
        logger.info("Migrated tournament state from schema v%d to v%d", start_version, CURRENT_SCHEMA_VERSION)

    return normalize_state(state)
