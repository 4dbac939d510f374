from __future__ import annotations
from uuid import UUID
from redis import Redis
from rq import Queue
from sqlalchemy.ext.asyncio import AsyncSession
import structlog
from app.config import settings
from app.models.challenge import Challenge, Participation
from app.models.notification import Notification

log = structlog.get_logger()

KIND_PARTICIPATION_PENDING = "participation_pending"

# RQ queue (lazy single instance; no connection is opened until enqueue)
_redis = Redis.from_url(settings.redis_url)
q = Queue("notifications", connection=_redis)


def should_notify_pending(p: Participation, ch: Challenge) -> bool:
    # creators are never notified about themselves
    return p.acceptation_status == "pending" and p.user_id != ch.creator_id


async def record_pending_notification(
    session: AsyncSession, *, participation_id: UUID, challenge_id: UUID, recipient_id: UUID
) -> Notification:
    n = Notification(
        user_id=recipient_id,
        kind=KIND_PARTICIPATION_PENDING,
        challenge_id=challenge_id,
        participation_id=participation_id,
    )
    session.add(n)
    await session.flush()
    return n


async def notify_pending(session: AsyncSession, p: Participation, ch: Challenge) -> None:
    """
    Tell the challenge creator a participation awaits review. With NOTIFICATIONS_ASYNC
    the work is handed to the RQ worker; otherwise it is recorded and committed here.
    """
    if settings.notifications_async:
        q.enqueue("app.jobs.notify_pending.notify_pending", str(p.id), job_timeout=30)
        log.info("notification.enqueued", participation_id=str(p.id), kind=KIND_PARTICIPATION_PENDING)
        return
    await record_pending_notification(
        session, participation_id=p.id, challenge_id=ch.id, recipient_id=ch.creator_id
    )
    await session.commit()
    log.info("notification.recorded", participation_id=str(p.id), recipient_id=str(ch.creator_id))
