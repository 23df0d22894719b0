"""
Canonical tournament state schema.

Competitors reference categories by id only. Competition groups ("rings")
are never stored here; they are derived from competitor assignments on
every read (see ringside.services.group_derivation).
"""

from enum import Enum
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field, model_validator

CURRENT_SCHEMA_VERSION = 2

SubGroup = Literal["", "a", "b"]


class CompetitionType(str, Enum):
    forms = "forms"
    sparring = "sparring"


COMPETITION_TYPES = (CompetitionType.forms, CompetitionType.sparring)


class CompetitionEntry(BaseModel):
    """One competitor's assignment for a single competition type."""

    division: Optional[str] = None
    category_id: Optional[str] = None
    pool: Optional[str] = None  # "P1", "P2", ...
    rank: Optional[int] = None
    competing: bool = False

    # Last assignment, kept for reinstatement after a withdrawal
    last_category_id: Optional[str] = None
    last_pool: Optional[str] = None


class SparringEntry(CompetitionEntry):
    sub_group: SubGroup = ""


class Competitor(BaseModel):
    id: str
    first_name: str
    last_name: str
    age: int = 0
    gender: str = ""
    height_feet: int = 0
    height_inches: int = 0
    total_height_inches: Optional[int] = None
    school: str = ""
    branch: Optional[str] = None

    forms: CompetitionEntry = Field(default_factory=CompetitionEntry)
    sparring: SparringEntry = Field(default_factory=SparringEntry)

    @model_validator(mode="after")
    def cache_total_height(self):
        if self.total_height_inches is None:
            self.total_height_inches = self.height_feet * 12 + self.height_inches
        return self

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def entry(self, competition_type: CompetitionType) -> CompetitionEntry:
        return self.forms if competition_type == CompetitionType.forms else self.sparring


class Category(BaseModel):
    id: str
    name: str
    division: str
    type: Optional[CompetitionType] = None
    gender: str = "mixed"
    min_age: int = 0
    max_age: int = 999
    num_pools: int = 1
    competitor_ids: List[str] = Field(default_factory=list)


class Division(BaseModel):
    name: str
    order: int
    num_rings: Optional[int] = None
    abbreviation: Optional[str] = None


class PhysicalRing(BaseModel):
    id: str
    name: str
    color: str = ""


class CategoryPoolMapping(BaseModel):
    division: str
    category_id: str
    pool: str
    physical_ring_id: str


class PhysicalRingMapping(BaseModel):
    """Legacy mapping keyed by category-pool display name."""

    category_pool_name: str
    physical_ring_name: str


class TournamentConfig(BaseModel):
    divisions: List[Division] = Field(default_factory=list)
    physical_rings: List[PhysicalRing] = Field(default_factory=list)
    school_abbreviations: Dict[str, str] = Field(default_factory=dict)


class TournamentState(BaseModel):
    schema_version: int = CURRENT_SCHEMA_VERSION
    competitors: List[Competitor] = Field(default_factory=list)
    categories: List[Category] = Field(default_factory=list)
    config: TournamentConfig = Field(default_factory=lambda: default_tournament_config())
    category_pool_mappings: List[CategoryPoolMapping] = Field(default_factory=list)
    physical_ring_mappings: List[PhysicalRingMapping] = Field(default_factory=list)

    def category_by_id(self, category_id: Optional[str]) -> Optional[Category]:
        return find_category(self.categories, category_id)


def find_category(categories: List[Category], category_id: Optional[str]) -> Optional[Category]:
    """Look up a category by id; missing or stale ids resolve to None."""
    if not category_id:
        return None
    for category in categories:
        if category.id == category_id:
            return category
    return None


def default_tournament_config() -> TournamentConfig:
    return TournamentConfig(
        divisions=[
            Division(name="Black Belt", order=1, num_rings=2, abbreviation="BLKB"),
            Division(name="Level 1", order=2, num_rings=2, abbreviation="LVL1"),
            Division(name="Level 2", order=3, num_rings=2, abbreviation="LVL2"),
            Division(name="Level 3", order=4, num_rings=2, abbreviation="LVL3"),
            Division(name="Beginner", order=5, num_rings=2, abbreviation="BGNR"),
        ],
    )
