from __future__ import annotations
import uuid
from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import String, Integer, Boolean, DateTime, Uuid, func, ForeignKey, Text, UniqueConstraint, CheckConstraint
from app.db import Base

class Challenge(Base):
    __tablename__ = "challenges"
    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    creator_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    title: Mapped[str] = mapped_column(String(120), nullable=False)
    description: Mapped[str | None] = mapped_column(Text())
    invitation_token: Mapped[str] = mapped_column(String(32), unique=True, index=True, nullable=False)
    open: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)  # joiners are auto-accepted
    sponsored: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)  # exempt from the participant cap
    participations_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    submission_ends_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="waiting")  # waiting|ready|ended
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        CheckConstraint("participations_count >= 0", name="ck_challenges_participations_count_nonneg"),
    )

class Participation(Base):
    __tablename__ = "participations"
    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    challenge_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("challenges.id", ondelete="CASCADE"), index=True, nullable=False)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    acceptation_status: Mapped[str] = mapped_column(String(16), nullable=False, default="pending")  # pending|accepted|rejected
    accepted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    challenge: Mapped[Challenge] = relationship(lazy="joined", viewonly=True)

    __table_args__ = (
        UniqueConstraint("challenge_id", "user_id", name="uq_participation_user_challenge"),
    )
