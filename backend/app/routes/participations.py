from __future__ import annotations
from uuid import UUID
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
import structlog
from app.db import get_session
from app.auth_deps import get_current_user
from app.models.challenge import Participation
from app.models.user import User
from app.schemas.participation import ParticipationCreate, ParticipationPublic, ErrorDetail
from app.services.challenges import recompute_challenge_status
from app.services.enrollment import EnrollmentRequest, ErrorKind, Err, ParticipationEnrollment
from app.services.participations import accept_participation, reject_participation

router = APIRouter(prefix="/participations", tags=["participations"])
log = structlog.get_logger()

ERROR_STATUS = {
    ErrorKind.CHALLENGE_NOT_FOUND: 404,
    ErrorKind.JOINING_BLOCKED: 400,
    ErrorKind.DUPLICATE_PARTICIPATION: 400,
}

def error_to_http(err: Err) -> HTTPException:
    return HTTPException(
        status_code=ERROR_STATUS[err.kind],
        detail=ErrorDetail(code=err.kind.value, message=err.message).model_dump(),
    )

async def get_participation_or_404(session: AsyncSession, participation_id: UUID) -> Participation:
    p = await session.get(Participation, participation_id)
    if not p:
        raise HTTPException(status_code=404, detail="Participation not found")
    return p

@router.post("", response_model=ParticipationPublic, status_code=201)
async def create_participation(
    payload: ParticipationCreate,
    session: AsyncSession = Depends(get_session),
    user: User = Depends(get_current_user),
):
    result = await ParticipationEnrollment(session).enroll(
        EnrollmentRequest(
            user_id=user.id,
            challenge_id=payload.challenge_id,
            invitation_token=payload.invitation_token,
            acceptation_status=payload.acceptation_status,
        )
    )
    if not result.ok:
        raise error_to_http(result)
    p = result.value
    await session.refresh(p)
    return ParticipationPublic.model_validate(p)

@router.get("/{participation_id}", response_model=ParticipationPublic)
async def get_participation(
    participation_id: UUID,
    session: AsyncSession = Depends(get_session),
    user: User = Depends(get_current_user),
):
    p = await get_participation_or_404(session, participation_id)
    if user.id not in (p.user_id, p.challenge.creator_id):
        raise HTTPException(status_code=403, detail="Not allowed to view this participation")
    return ParticipationPublic.model_validate(p)

async def _review(session: AsyncSession, user: User, participation_id: UUID, decision: str) -> ParticipationPublic:
    p = await get_participation_or_404(session, participation_id)
    ch = p.challenge
    if user.id != ch.creator_id:
        raise HTTPException(status_code=403, detail="Only the challenge creator can review participations")
    if p.acceptation_status != "pending":
        raise HTTPException(status_code=409, detail=f"Participation is already {p.acceptation_status}")
    if decision == "accept":
        p = await accept_participation(session, challenge_id=ch.id, user_id=p.user_id)
    else:
        p = await reject_participation(session, p)
    await session.commit()
    log.info("participation.reviewed", participation_id=str(p.id), decision=decision)
    # recompute commits on its own; the review above is already durable
    await recompute_challenge_status(session, ch.id)
    await session.refresh(p)
    return ParticipationPublic.model_validate(p)

@router.post("/{participation_id}/accept", response_model=ParticipationPublic)
async def accept(
    participation_id: UUID,
    session: AsyncSession = Depends(get_session),
    user: User = Depends(get_current_user),
):
    return await _review(session, user, participation_id, "accept")

@router.post("/{participation_id}/reject", response_model=ParticipationPublic)
async def reject(
    participation_id: UUID,
    session: AsyncSession = Depends(get_session),
    user: User = Depends(get_current_user),
):
    return await _review(session, user, participation_id, "reject")
