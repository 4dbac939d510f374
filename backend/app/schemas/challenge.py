from __future__ import annotations
from pydantic import BaseModel, Field, ConfigDict
from typing import Literal
from uuid import UUID
from datetime import datetime

ChallengeStatus = Literal["waiting", "ready", "ended"]

class ChallengeCreate(BaseModel):
    title: str = Field(min_length=3, max_length=120)
    description: str | None = None
    open: bool = False
    sponsored: bool = False
    submission_ends_at: datetime | None = None

class ChallengePublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    creator_id: UUID
    title: str
    description: str | None
    invitation_token: str
    open: bool
    sponsored: bool
    participations_count: int
    submission_ends_at: datetime | None
    status: ChallengeStatus
    created_at: datetime
    # Per-viewer fields
    is_creator: bool = False
    can_join: bool = False
