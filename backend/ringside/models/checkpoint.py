from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy import JSON
from sqlmodel import Column, Field, SQLModel


class Checkpoint(SQLModel, table=True):
    """Immutable snapshot of the full tournament state.

    Only ``name`` may change after creation; ``state_json`` is written once.
    """

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), index=True)
    schema_version: int
    competitor_count: int = Field(default=0)
    state_json: Dict[str, Any] = Field(sa_column=Column(JSON, nullable=False))
