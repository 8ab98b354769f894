"""Activity ledger models"""
from enum import Enum
from typing import Optional
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field


class RefKind(str, Enum):
    """What a ledger event refers to"""
    TASK = "task"
    HABIT = "habit"


class ActivityEvent(BaseModel):
    """
    Immutable record of a reward-granting action

    Undo never edits an event: it appends a new one carrying the negated
    delta, so the newest event for a ref tells whether it is completed.
    """
    model_config = ConfigDict(frozen=True)

    id: Optional[int] = None
    user_id: int
    ref_kind: RefKind
    ref_id: int
    xp_delta: int
    gold_delta: int = 0
    created_at: datetime = Field(default_factory=datetime.now)
