"""
Checkpoint store: immutable, timestamped snapshots of the tournament state.

A checkpoint's state is written once and never modified; only its display
name can be changed. Restoring hands back a deep copy for the caller to use
as the new live state. Missing checkpoints are reported as None / False.
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional

from sqlmodel import Session, select

from ringside.models.checkpoint import Checkpoint
from ringside.models.tournament_state import TournamentState
from ringside.services.checkpoint_diff import CheckpointDiff, diff_checkpoint
from ringside.utils.migration import migrate_state, normalize_state

logger = logging.getLogger(__name__)


def default_checkpoint_name(now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    return f"Checkpoint {now.strftime('%Y-%m-%d %H:%M:%S')}"


def create_checkpoint(session: Session, state: TournamentState, name: Optional[str] = None) -> Checkpoint:
    state = normalize_state(state)
    created_at = datetime.now(timezone.utc)
    checkpoint = Checkpoint(
        name=(name or "").strip() or default_checkpoint_name(created_at),
        created_at=created_at,
        schema_version=state.schema_version,
        competitor_count=len(state.competitors),
        state_json=state.model_dump(mode="json"),
    )
    session.add(checkpoint)
    session.commit()
    session.refresh(checkpoint)

    logger.info("Created checkpoint %d %r (%d competitors)", checkpoint.id, checkpoint.name, checkpoint.competitor_count)
    return checkpoint


def list_checkpoints(session: Session) -> List[Checkpoint]:
    return list(session.exec(select(Checkpoint).order_by(Checkpoint.created_at, Checkpoint.id)).all())


def get_checkpoint(session: Session, checkpoint_id: int) -> Optional[Checkpoint]:
    return session.get(Checkpoint, checkpoint_id)


def rename_checkpoint(session: Session, checkpoint_id: int, name: str) -> Optional[Checkpoint]:
    checkpoint = session.get(Checkpoint, checkpoint_id)
    if checkpoint is None:
        return None

    checkpoint.name = name.strip()
    session.add(checkpoint)
    session.commit()
    session.refresh(checkpoint)

    logger.info("Renamed checkpoint %d to %r", checkpoint_id, checkpoint.name)
    return checkpoint


def delete_checkpoint(session: Session, checkpoint_id: int) -> bool:
    checkpoint = session.get(Checkpoint, checkpoint_id)
    if checkpoint is None:
        return False

    session.delete(checkpoint)
    session.commit()

    logger.info("Deleted checkpoint %d", checkpoint_id)
    return True


def checkpoint_state(checkpoint: Checkpoint) -> TournamentState:
    """Deep copy of the snapshot, migrated like any other saved state."""
    return migrate_state(checkpoint.state_json)


def load_checkpoint_state(session: Session, checkpoint_id: int) -> Optional[TournamentState]:
    checkpoint = session.get(Checkpoint, checkpoint_id)
    if checkpoint is None:
        return None
    return checkpoint_state(checkpoint)


def diff_against_checkpoint(
    session: Session, checkpoint_id: int, current: TournamentState
) -> Optional[CheckpointDiff]:
    """Both sides are normalized so stale assignments on withdrawn entries never show as changes."""
    return diff_checkpoint(normalize_state(current), load_checkpoint_state(session, checkpoint_id))
