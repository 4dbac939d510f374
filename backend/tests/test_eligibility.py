from __future__ import annotations
import uuid
from datetime import datetime, timedelta, timezone
from app.models.challenge import Challenge
from app.services.eligibility import (
    joining_block_reason, can_join, as_utc, BLOCKED_FULL, BLOCKED_SUBMISSIONS_ENDED,
)
from app.services.challenges import derive_status

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def _ch(**kw) -> Challenge:
    base = dict(
        creator_id=uuid.uuid4(), title="t", invitation_token="tok",
        open=False, sponsored=False, participations_count=0, submission_ends_at=None, status="waiting",
    )
    base.update(kw)
    return Challenge(**base)


def test_empty_challenge_is_joinable():
    assert joining_block_reason(_ch(), NOW) is None
    assert can_join(_ch(), NOW)


def test_one_participant_still_joinable():
    assert can_join(_ch(participations_count=1), NOW)


def test_two_participants_block_unsponsored():
    assert joining_block_reason(_ch(participations_count=2), NOW) == BLOCKED_FULL
    assert joining_block_reason(_ch(participations_count=7), NOW) == BLOCKED_FULL


def test_sponsored_is_exempt_from_cap():
    assert can_join(_ch(participations_count=50, sponsored=True), NOW)


def test_open_flag_does_not_lift_cap():
    assert not can_join(_ch(participations_count=2, open=True), NOW)


def test_past_deadline_blocks_even_sponsored():
    ended = NOW - timedelta(seconds=1)
    assert joining_block_reason(_ch(submission_ends_at=ended), NOW) == BLOCKED_SUBMISSIONS_ENDED
    assert joining_block_reason(_ch(submission_ends_at=ended, sponsored=True), NOW) == BLOCKED_SUBMISSIONS_ENDED


def test_deadline_exactly_now_is_closed():
    assert not can_join(_ch(submission_ends_at=NOW), NOW)


def test_future_deadline_is_open():
    assert can_join(_ch(submission_ends_at=NOW + timedelta(days=3)), NOW)


def test_naive_deadline_is_read_as_utc():
    naive_future = (NOW + timedelta(hours=1)).replace(tzinfo=None)
    naive_past = (NOW - timedelta(hours=1)).replace(tzinfo=None)
    assert can_join(_ch(submission_ends_at=naive_future), NOW)
    assert not can_join(_ch(submission_ends_at=naive_past), NOW)
    assert as_utc(naive_past).tzinfo == timezone.utc


def test_derive_status():
    assert derive_status(_ch(), 1, NOW) == "waiting"
    assert derive_status(_ch(), 2, NOW) == "ready"
    assert derive_status(_ch(submission_ends_at=NOW - timedelta(days=1)), 2, NOW) == "ended"


def test_only_the_participation_unique_constraint_counts_as_duplicate():
    from sqlalchemy.exc import IntegrityError
    from app.services.participations import is_duplicate_participation

    pg = IntegrityError("INSERT", {}, Exception('duplicate key value violates unique constraint "uq_participation_user_challenge"'))
    lite = IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed: participations.challenge_id, participations.user_id"))
    fk = IntegrityError("INSERT", {}, Exception('violates foreign key constraint "participations_user_id_fkey"'))
    check = IntegrityError("UPDATE", {}, Exception('violates check constraint "ck_challenges_participations_count_nonneg"'))
    assert is_duplicate_participation(pg)
    assert is_duplicate_participation(lite)
    assert not is_duplicate_participation(fk)
    assert not is_duplicate_participation(check)
