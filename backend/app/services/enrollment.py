"""
Enrollment of a user into a challenge.

The workflow is strictly sequential:

    resolve challenge -> eligibility -> duplicate check -> create (one unit of work)
    -> recompute challenge status -> notify creator when the participation is pending

Validation steps never raise; each returns ``Ok(value)`` or ``Err(kind, message)`` and
``enroll`` returns the first ``Err`` it meets, before anything is written. The unit of
work runs on the caller's session, which the accept collaborator also receives, so an
accept failure rolls the insert back with it.

Recompute and notify run after commit. Their failures are logged and swallowed: the
participation is already durable and the caller still gets ``Ok``.
"""
from __future__ import annotations
import enum
from dataclasses import dataclass
from datetime import datetime, timezone as dt_tz
from typing import Any, Awaitable, Callable, ClassVar, Generic, TypeVar
from uuid import UUID
import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from app.models.challenge import Challenge, Participation
from app.schemas.participation import AcceptationStatus
from app.services.challenges import (
    find_challenge_by_id,
    find_challenge_by_invitation_token,
    recompute_challenge_status,
)
from app.services.eligibility import joining_block_reason, BLOCKED_FULL
from app.services.notifications import notify_pending, should_notify_pending
from app.services.participations import (
    accept_participation,
    insert_participation,
    is_duplicate_participation,
    participation_exists,
)

log = structlog.get_logger()

T = TypeVar("T")


class ErrorKind(str, enum.Enum):
    CHALLENGE_NOT_FOUND = "challenge_not_found"
    JOINING_BLOCKED = "joining_blocked"
    DUPLICATE_PARTICIPATION = "duplicate_participation"


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T
    ok: ClassVar[bool] = True


@dataclass(frozen=True)
class Err:
    kind: ErrorKind
    message: str
    ok: ClassVar[bool] = False


@dataclass(frozen=True)
class EnrollmentRequest:
    user_id: UUID
    challenge_id: UUID | None = None
    invitation_token: str | None = None
    acceptation_status: AcceptationStatus = "pending"


def utcnow() -> datetime:
    return datetime.now(dt_tz.utc)


class ParticipationEnrollment:
    """Validates and commits a user's request to join a challenge."""

    def __init__(
        self,
        session: AsyncSession,
        *,
        accept: Callable[..., Awaitable[Participation]] = accept_participation,
        recompute: Callable[..., Awaitable[Any]] = recompute_challenge_status,
        notify: Callable[[AsyncSession, Participation, Challenge], Awaitable[None]] = notify_pending,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.session = session
        self._accept = accept
        self._recompute = recompute
        self._notify = notify
        self._clock = clock

    async def enroll(self, request: EnrollmentRequest) -> Ok[Participation] | Err:
        now = self._clock()

        resolved = await self._resolve_challenge(request)
        if not resolved.ok:
            return self._rejected(request, resolved)
        ch = resolved.value

        eligible = self._check_eligibility(ch, now)
        if not eligible.ok:
            return self._rejected(request, eligible)

        unique = await self._check_not_duplicate(request, ch)
        if not unique.ok:
            return self._rejected(request, unique)

        created = await self._create(request, ch, now)
        if not created.ok:
            return self._rejected(request, created)
        p = created.value

        log.info(
            "enrollment.created",
            participation_id=str(p.id),
            challenge_id=str(ch.id),
            user_id=str(p.user_id),
            acceptation_status=p.acceptation_status,
        )
        await self._after_commit(p, ch, now)
        return Ok(p)

    async def _resolve_challenge(self, request: EnrollmentRequest) -> Ok[Challenge] | Err:
        if request.invitation_token:
            ch = await find_challenge_by_invitation_token(self.session, request.invitation_token)
        elif request.challenge_id is not None:
            ch = await find_challenge_by_id(self.session, request.challenge_id)
        else:
            ch = None
        if ch is None:
            return Err(ErrorKind.CHALLENGE_NOT_FOUND, "Challenge not found")
        return Ok(ch)

    def _check_eligibility(self, ch: Challenge, now: datetime) -> Ok[Challenge] | Err:
        reason = joining_block_reason(ch, now)
        if reason is None:
            return Ok(ch)
        if reason == BLOCKED_FULL:
            return Err(ErrorKind.JOINING_BLOCKED, "Challenge already has the maximum number of participants")
        return Err(ErrorKind.JOINING_BLOCKED, "Submissions for this challenge have ended")

    async def _check_not_duplicate(self, request: EnrollmentRequest, ch: Challenge) -> Ok[Challenge] | Err:
        if await participation_exists(self.session, user_id=request.user_id, challenge_id=ch.id):
            return Err(ErrorKind.DUPLICATE_PARTICIPATION, "User already participates in this challenge")
        return Ok(ch)

    async def _create(self, request: EnrollmentRequest, ch: Challenge, now: datetime) -> Ok[Participation] | Err:
        try:
            try:
                p = await insert_participation(
                    self.session,
                    user_id=request.user_id,
                    challenge_id=ch.id,
                    acceptation_status=request.acceptation_status,
                )
            except IntegrityError as exc:
                if not is_duplicate_participation(exc):
                    raise
                # lost the check-then-insert race against a concurrent request
                await self.session.rollback()
                return Err(ErrorKind.DUPLICATE_PARTICIPATION, "User already participates in this challenge")
            if ch.open or ch.sponsored:
                p = await self._accept(self.session, challenge_id=ch.id, user_id=request.user_id, now=now)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise
        return Ok(p)

    async def _after_commit(self, p: Participation, ch: Challenge, now: datetime) -> None:
        try:
            await self._recompute(self.session, ch.id, now)
        except Exception:
            log.warning("enrollment.recompute_failed", challenge_id=str(ch.id), exc_info=True)
            await self._recover(p, ch)

        if not should_notify_pending(p, ch):
            return
        try:
            await self._notify(self.session, p, ch)
        except Exception:
            log.warning("enrollment.notify_failed", participation_id=str(p.id), exc_info=True)
            await self._recover(p, ch)

    async def _recover(self, *objs: object) -> None:
        # rollback expires everything; reload what the caller still holds
        await self.session.rollback()
        for obj in objs:
            await self.session.refresh(obj)

    def _rejected(self, request: EnrollmentRequest, err: Err) -> Err:
        log.info(
            "enrollment.rejected",
            code=err.kind.value,
            user_id=str(request.user_id),
            challenge_id=str(request.challenge_id) if request.challenge_id else None,
            invitation_token=request.invitation_token,
        )
        return err
