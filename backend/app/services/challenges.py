from __future__ import annotations
from datetime import datetime, timezone as dt_tz
from uuid import UUID
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
import structlog
from app.models.challenge import Challenge, Participation
from app.services.eligibility import as_utc

log = structlog.get_logger()

READY_AFTER_ACCEPTED = 2


async def find_challenge_by_id(session: AsyncSession, challenge_id: UUID) -> Challenge | None:
    return await session.get(Challenge, challenge_id)


async def find_challenge_by_invitation_token(session: AsyncSession, token: str) -> Challenge | None:
    return await session.scalar(select(Challenge).where(Challenge.invitation_token == token))


def derive_status(ch: Challenge, accepted_count: int, now: datetime) -> str:
    if ch.submission_ends_at is not None and as_utc(ch.submission_ends_at) <= as_utc(now):
        return "ended"
    if accepted_count >= READY_AFTER_ACCEPTED:
        return "ready"
    return "waiting"


async def recompute_challenge_status(session: AsyncSession, challenge_id: UUID, now: datetime | None = None) -> str | None:
    """
    Recalculate the aggregate status of a challenge from its accepted participations
    and persist it. Commits its own transaction; returns the new status, or None if
    the challenge no longer exists.
    """
    now = now or datetime.now(dt_tz.utc)
    ch = await session.get(Challenge, challenge_id)
    if not ch:
        return None
    accepted = await session.scalar(
        select(func.count()).select_from(Participation).where(
            Participation.challenge_id == challenge_id,
            Participation.acceptation_status == "accepted",
        )
    )
    status = derive_status(ch, int(accepted or 0), now)
    if status != ch.status:
        log.info("challenge.status_changed", challenge_id=str(challenge_id), old=ch.status, new=status)
        ch.status = status
    await session.commit()
    return status
