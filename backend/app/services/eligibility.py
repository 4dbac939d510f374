from __future__ import annotations
from datetime import datetime, timezone as dt_tz
from app.models.challenge import Challenge

# Non-sponsored challenges are head-to-head: creator + one opponent.
MAX_UNSPONSORED_PARTICIPATIONS = 2

BLOCKED_FULL = "full"
BLOCKED_SUBMISSIONS_ENDED = "submissions_ended"


def as_utc(dt: datetime) -> datetime:
    """Treat naive timestamps (sqlite drops tzinfo) as UTC."""
    return dt.replace(tzinfo=dt_tz.utc) if dt.tzinfo is None else dt


def joining_block_reason(ch: Challenge, now: datetime) -> str | None:
    """
    Why a new participant may not join `ch` at `now`, or None when joining is allowed.

    A challenge is closed to newcomers when it already holds the maximum number of
    participations (sponsored challenges are exempt) or when its submission deadline
    has passed. A challenge without a deadline never closes on the time axis.
    """
    if (ch.participations_count or 0) >= MAX_UNSPONSORED_PARTICIPATIONS and not ch.sponsored:
        return BLOCKED_FULL
    if ch.submission_ends_at is not None and as_utc(ch.submission_ends_at) <= as_utc(now):
        return BLOCKED_SUBMISSIONS_ENDED
    return None


def can_join(ch: Challenge, now: datetime) -> bool:
    return joining_block_reason(ch, now) is None
