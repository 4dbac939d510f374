from __future__ import annotations
from pydantic import BaseModel, ConfigDict, model_validator
from typing import Literal
from uuid import UUID
from datetime import datetime

AcceptationStatus = Literal["pending", "accepted", "rejected"]

class ParticipationCreate(BaseModel):
    challenge_id: UUID | None = None
    invitation_token: str | None = None  # wins over challenge_id when both are sent
    # joiners always start pending; only the creator accepts or rejects
    acceptation_status: Literal["pending"] = "pending"

    @model_validator(mode="after")
    def challenge_reference_required(self):
        if self.challenge_id is None and not self.invitation_token:
            raise ValueError("challenge_id or invitation_token is required")
        return self

class ParticipationPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    challenge_id: UUID
    user_id: UUID
    acceptation_status: AcceptationStatus
    accepted_at: datetime | None
    created_at: datetime

class ErrorDetail(BaseModel):
    code: str
    message: str
