from __future__ import annotations
from datetime import datetime, timezone as dt_tz
from uuid import UUID
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
import structlog
from app.db import get_session
from app.auth_deps import get_current_user
from app.models.challenge import Challenge, Participation
from app.models.user import User
from app.schemas.challenge import ChallengeCreate, ChallengePublic
from app.schemas.participation import ParticipationPublic
from app.services.challenges import find_challenge_by_id
from app.services.eligibility import as_utc, can_join
from app.services.invite_code import generate_invitation_token
from app.services.participations import insert_participation

router = APIRouter(prefix="/challenges", tags=["challenges"])
log = structlog.get_logger()

def hydrate_public(ch: Challenge, user_id: UUID) -> ChallengePublic:
    out = ChallengePublic.model_validate(ch)
    out.is_creator = ch.creator_id == user_id
    out.can_join = can_join(ch, datetime.now(dt_tz.utc))
    return out

async def get_challenge_or_404(session: AsyncSession, challenge_id: UUID) -> Challenge:
    ch = await find_challenge_by_id(session, challenge_id)
    if not ch:
        raise HTTPException(status_code=404, detail="Challenge not found")
    return ch

@router.post("", response_model=ChallengePublic, status_code=201)
async def create_challenge(
    payload: ChallengeCreate,
    session: AsyncSession = Depends(get_session),
    user: User = Depends(get_current_user),
):
    if payload.submission_ends_at is not None and as_utc(payload.submission_ends_at) <= datetime.now(dt_tz.utc):
        raise HTTPException(status_code=422, detail="submission_ends_at must be in the future")
    creator_id = user.id  # rollback below expires `user`
    # Generate a unique invitation token (retry on collision)
    for _ in range(5):
        ch = Challenge(
            creator_id=creator_id,
            title=payload.title,
            description=payload.description,
            invitation_token=generate_invitation_token(),
            open=payload.open,
            sponsored=payload.sponsored,
            submission_ends_at=payload.submission_ends_at,
            participations_count=0,
            status="waiting",
        )
        session.add(ch)
        try:
            await session.flush()  # get ch.id without commit
            # Creator is participant #1 and needs no acceptance
            await insert_participation(session, user_id=creator_id, challenge_id=ch.id, acceptation_status="accepted")
            await session.commit()
        except IntegrityError:
            await session.rollback()
            continue
        await session.refresh(ch)
        log.info("challenge.created", challenge_id=str(ch.id), creator_id=str(creator_id))
        return hydrate_public(ch, creator_id)
    raise HTTPException(status_code=500, detail="Failed to generate unique invitation token")

@router.get("/{challenge_id}", response_model=ChallengePublic)
async def get_challenge(challenge_id: UUID, session: AsyncSession = Depends(get_session), user: User = Depends(get_current_user)):
    ch = await get_challenge_or_404(session, challenge_id)
    return hydrate_public(ch, user.id)

@router.get("/{challenge_id}/participations", response_model=list[ParticipationPublic])
async def list_participations(challenge_id: UUID, session: AsyncSession = Depends(get_session), user: User = Depends(get_current_user)):
    ch = await get_challenge_or_404(session, challenge_id)
    q = (
        select(Participation)
        .where(Participation.challenge_id == ch.id)
        .order_by(Participation.created_at.asc())
    )
    rows = (await session.execute(q)).scalars().all()
    return [ParticipationPublic.model_validate(p) for p in rows]
