from __future__ import annotations
import asyncio
import uuid
import structlog
from app.db import SessionLocal
from app.models.challenge import Participation
from app.services.notifications import record_pending_notification, should_notify_pending

log = structlog.get_logger()

async def _run(participation_id: str):
    async with SessionLocal() as session:
        p = await session.get(Participation, uuid.UUID(participation_id))
        if not p:
            log.info("notification.skipped", participation_id=participation_id, reason="missing")
            return
        ch = p.challenge
        # The creator may have accepted or rejected it before the worker got here
        if not should_notify_pending(p, ch):
            log.info("notification.skipped", participation_id=participation_id, reason="not_pending")
            return
        await record_pending_notification(
            session, participation_id=p.id, challenge_id=ch.id, recipient_id=ch.creator_id
        )
        await session.commit()
        log.info("notification.recorded", participation_id=participation_id, recipient_id=str(ch.creator_id))

def notify_pending(participation_id: str):
    # RQ entry point (sync); run the async coroutine
    asyncio.run(_run(participation_id))
