from datetime import datetime
from typing import Any, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, field_validator
from sqlmodel import Session

from ringside.database import get_session
from ringside.models.checkpoint import Checkpoint
from ringside.models.tournament_state import Competitor, TournamentState
from ringside.services import checkpoint_service
from ringside.utils.migration import StateMigrationError

router = APIRouter()


class CheckpointCreate(BaseModel):
    name: Optional[str] = None
    state: TournamentState


class CheckpointRename(BaseModel):
    name: str

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if not v or not v.strip():
            raise ValueError("name is required")
        return v.strip()


class CheckpointSummary(BaseModel):
    id: int
    name: str
    created_at: datetime
    schema_version: int
    competitor_count: int

    model_config = ConfigDict(from_attributes=True)


class CheckpointDetail(CheckpointSummary):
    state: TournamentState


class CompetitorChangeResponse(BaseModel):
    competitor_id: str
    competitor_name: str
    field: str
    old_value: Any = None
    new_value: Any = None


class CheckpointDiffResponse(BaseModel):
    checkpoint_id: int
    added: List[Competitor]
    removed: List[Competitor]
    modified: List[CompetitorChangeResponse]
    affected_group_ids: List[str]


def _require_checkpoint(session: Session, checkpoint_id: int) -> Checkpoint:
    checkpoint = checkpoint_service.get_checkpoint(session, checkpoint_id)
    if not checkpoint:
        raise HTTPException(status_code=404, detail="Checkpoint not found")
    return checkpoint


@router.post("/checkpoints", response_model=CheckpointSummary, status_code=201)
def create_checkpoint(payload: CheckpointCreate, session: Session = Depends(get_session)):
    """Snapshot the supplied live state"""
    return checkpoint_service.create_checkpoint(session, payload.state, payload.name)


@router.get("/checkpoints", response_model=List[CheckpointSummary])
def list_checkpoints(session: Session = Depends(get_session)):
    return checkpoint_service.list_checkpoints(session)


@router.get("/checkpoints/{checkpoint_id}", response_model=CheckpointDetail)
def get_checkpoint(checkpoint_id: int, session: Session = Depends(get_session)):
    """Checkpoint with its full state; the caller restores by adopting this state"""
    checkpoint = _require_checkpoint(session, checkpoint_id)
    try:
        state = checkpoint_service.checkpoint_state(checkpoint)
    except StateMigrationError as e:
        raise HTTPException(status_code=422, detail=str(e))

    return CheckpointDetail(
        id=checkpoint.id,
        name=checkpoint.name,
        created_at=checkpoint.created_at,
        schema_version=checkpoint.schema_version,
        competitor_count=checkpoint.competitor_count,
        state=state,
    )


@router.patch("/checkpoints/{checkpoint_id}", response_model=CheckpointSummary)
def rename_checkpoint(checkpoint_id: int, payload: CheckpointRename, session: Session = Depends(get_session)):
    checkpoint = checkpoint_service.rename_checkpoint(session, checkpoint_id, payload.name)
    if not checkpoint:
        raise HTTPException(status_code=404, detail="Checkpoint not found")
    return checkpoint


@router.delete("/checkpoints/{checkpoint_id}", status_code=204)
def delete_checkpoint(checkpoint_id: int, session: Session = Depends(get_session)):
    if not checkpoint_service.delete_checkpoint(session, checkpoint_id):
        raise HTTPException(status_code=404, detail="Checkpoint not found")
    return None


@router.post("/checkpoints/{checkpoint_id}/diff", response_model=CheckpointDiffResponse)
def diff_checkpoint(checkpoint_id: int, current: TournamentState, session: Session = Depends(get_session)):
    """Compare the supplied live state against a checkpoint"""
    try:
        diff = checkpoint_service.diff_against_checkpoint(session, checkpoint_id, current)
    except StateMigrationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    if diff is None:
        raise HTTPException(status_code=404, detail="Checkpoint not found")

    return CheckpointDiffResponse(
        checkpoint_id=checkpoint_id,
        added=diff.added,
        removed=diff.removed,
        modified=[
            CompetitorChangeResponse(
                competitor_id=c.competitor_id,
                competitor_name=c.competitor_name,
                field=c.field,
                old_value=c.old_value,
                new_value=c.new_value,
            )
            for c in diff.modified
        ],
        affected_group_ids=sorted(diff.affected_group_ids),
    )
