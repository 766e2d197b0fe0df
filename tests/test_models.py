from datetime import datetime, timezone

import pytest

from feedtrust.scoring.models import (
    AccountProfile,
    AccountStatus,
    PostStat,
    ScoreInputs,
    ScoreOutputs,
    days_between,
    parse_datetime,
)


def test_empty_mapping_gives_zero_inputs():
    assert ScoreInputs.from_mapping({}) == ScoreInputs()
    assert ScoreInputs.from_mapping(None) == ScoreInputs()


def test_from_mapping_coerces_loose_values():
    inputs = ScoreInputs.from_mapping({
        "blocks_received": None,
        "reports_received": "4",
        "avg_word_count": "12.5",
        "follower_loss_last_7": -3,
        "last_moderation_date": "2026-01-01T00:00:00Z",
        "post_stats": [{"id": 7, "like_count": 2, "unique_view_count": None}],
        "rate_limit_hits": [{"action": None, "count": 3}],
        "profile": {"status": "suspended", "is_verified": "true", "follower_count": "12"},
        "not_a_field": 99,
    })
    assert inputs.blocks_received == 0
    assert inputs.reports_received == 4
    assert inputs.avg_word_count == 12.5
    assert inputs.follower_loss_last_7 == 0
    assert inputs.last_moderation_date == datetime(2026, 1, 1, tzinfo=timezone.utc)
    assert inputs.post_stats == [PostStat(id=7, like_count=2)]
    assert inputs.rate_limit_hits[0].action == "unknown"
    assert inputs.profile.status is AccountStatus.ACTIVE
    assert inputs.profile.is_verified is True
    assert inputs.profile.follower_count == 12


def test_status_parsing():
    assert AccountStatus.parse("Blocked") is AccountStatus.BLOCKED
    assert AccountStatus.parse(None) is AccountStatus.ACTIVE
    assert AccountStatus.parse(AccountStatus.FROZEN) is AccountStatus.FROZEN


def test_parse_datetime_variants():
    assert parse_datetime(None) is None
    assert parse_datetime("garbage") is None
    naive = parse_datetime("2026-01-01T10:00:00")
    assert naive.tzinfo is timezone.utc


@pytest.mark.parametrize("text, micros", [
    ("2026-01-01T00:00:00.12345Z", 123450),
    ("2026-01-01T00:00:00.123456789+00:00", 123456),
    ("2026-01-01 00:00:00.1+00:00", 100000),
    ("2026-01-01T00:00:00.123Z", 123000),
])
def test_parse_datetime_odd_fractions(text, micros):
    assert parse_datetime(text) == datetime(2026, 1, 1, 0, 0, 0, micros, tzinfo=timezone.utc)


def test_from_mapping_accepts_float_strings_for_counts():
    inputs = ScoreInputs.from_mapping({
        "blocks_received": "3.0",
        "reports_received": "nan",
        "spam_comment_count": "inf",
        "moderation_action_count": 10**30,
        "profile": {"follower_count": "12.9", "total_earned": "12.50"},
    })
    assert inputs.blocks_received == 3
    assert inputs.reports_received == 0
    assert inputs.spam_comment_count == 0
    assert inputs.moderation_action_count == 10**30
    assert inputs.profile.follower_count == 12
    assert inputs.profile.total_earned == 12


def test_account_age():
    now = datetime(2026, 1, 11, tzinfo=timezone.utc)
    created = datetime(2026, 1, 1, tzinfo=timezone.utc)
    assert AccountProfile(created_at=created).account_age_days(now) == 10
    assert AccountProfile().account_age_days(now) == 0
    assert days_between(None, now) is None


def test_interactions_exclude_shares():
    assert PostStat(like_count=1, comment_count=2, save_count=3, share_count=50).interactions == 6


def test_outputs_record():
    record = ScoreOutputs(profile_score=42.5, spam_score=3.0, trust_level=2).to_record()
    assert record == {"profile_score": 42.5, "spam_score": 3.0, "trust_level": 2}
