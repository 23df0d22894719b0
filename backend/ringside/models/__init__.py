from ringside.models.checkpoint import Checkpoint
from ringside.models.tournament_state import (
    Category,
    CategoryPoolMapping,
    CompetitionEntry,
    CompetitionType,
    Competitor,
    Division,
    PhysicalRing,
    PhysicalRingMapping,
    SparringEntry,
    TournamentConfig,
    TournamentState,
)

__all__ = [
    "Checkpoint",
    "Category",
    "CategoryPoolMapping",
    "CompetitionEntry",
    "CompetitionType",
    "Competitor",
    "Division",
    "PhysicalRing",
    "PhysicalRingMapping",
    "SparringEntry",
    "TournamentConfig",
    "TournamentState",
]
