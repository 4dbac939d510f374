from __future__ import annotations
from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from app.db import get_session
from app.auth_deps import get_current_user
from app.models.notification import Notification
from app.models.user import User
from app.schemas.notification import NotificationPublic

router = APIRouter(prefix="/notifications", tags=["notifications"])

@router.get("", response_model=list[NotificationPublic])
async def list_notifications(session: AsyncSession = Depends(get_session), user: User = Depends(get_current_user)):
    q = select(Notification).where(Notification.user_id == user.id).order_by(Notification.created_at.desc())
    rows = (await session.execute(q)).scalars().all()
    return [NotificationPublic.model_validate(n) for n in rows]
