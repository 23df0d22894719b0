from typing import Any, Dict

from fastapi import APIRouter, HTTPException

from ringside.models.tournament_state import TournamentState
from ringside.utils.migration import StateMigrationError, migrate_state

router = APIRouter()


@router.post("/state/migrate", response_model=TournamentState)
def migrate_saved_state(payload: Dict[str, Any]):
    """Bring a saved tournament file (any known schema version) to the canonical schema"""
    try:
        return migrate_state(payload)
    except StateMigrationError as e:
        raise HTTPException(status_code=422, detail=str(e))
