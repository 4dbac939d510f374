from __future__ import annotations
from datetime import datetime, timezone as dt_tz
from uuid import UUID
from sqlalchemy import select, exists, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from app.models.challenge import Challenge, Participation


class ParticipationNotFound(LookupError):
    pass


UNIQUE_CONSTRAINT = "uq_participation_user_challenge"
# sqlite names the columns instead of the constraint
_SQLITE_UNIQUE_MESSAGE = "UNIQUE constraint failed: participations.challenge_id, participations.user_id"


def is_duplicate_participation(exc: IntegrityError) -> bool:
    """True only when `exc` is the (challenge, user) uniqueness violation."""
    msg = str(exc.orig)
    return UNIQUE_CONSTRAINT in msg or _SQLITE_UNIQUE_MESSAGE in msg


async def participation_exists(session: AsyncSession, *, user_id: UUID, challenge_id: UUID) -> bool:
    found = await session.scalar(
        select(exists().where(Participation.challenge_id == challenge_id, Participation.user_id == user_id))
    )
    return bool(found)


async def insert_participation(
    session: AsyncSession,
    *,
    user_id: UUID,
    challenge_id: UUID,
    acceptation_status: str = "pending",
) -> Participation:
    """
    Add a participation and bump the challenge counter in the caller's transaction.
    Flushes but never commits; raises IntegrityError if (challenge, user) already exists.
    """
    p = Participation(user_id=user_id, challenge_id=challenge_id, acceptation_status=acceptation_status)
    if acceptation_status == "accepted":
        p.accepted_at = datetime.now(dt_tz.utc)
    session.add(p)
    await session.flush()
    await session.execute(
        update(Challenge)
        .where(Challenge.id == challenge_id)
        .values(participations_count=Challenge.participations_count + 1)
    )
    return p


async def accept_participation(
    session: AsyncSession,
    *,
    challenge_id: UUID,
    user_id: UUID,
    now: datetime | None = None,
) -> Participation:
    """Mark the participation of `user_id` in `challenge_id` as accepted. Flushes, does not commit."""
    p = await session.scalar(
        select(Participation).where(Participation.challenge_id == challenge_id, Participation.user_id == user_id)
    )
    if not p:
        raise ParticipationNotFound(f"no participation for user {user_id} in challenge {challenge_id}")
    if p.acceptation_status != "accepted":
        p.acceptation_status = "accepted"
        p.accepted_at = now or datetime.now(dt_tz.utc)
        await session.flush()
    return p


async def reject_participation(session: AsyncSession, p: Participation) -> Participation:
    p.acceptation_status = "rejected"
    p.accepted_at = None
    await session.flush()
    return p
