import pytest

from conftest import NOW, days_ago, make_inputs

from feedtrust.scoring import (
    ProfileScoreAggregator,
    SpamScoreAggregator,
    compute_profile_score,
    compute_spam_score,
    compute_trust_level,
    score_account,
)
from feedtrust.scoring.aggregate import round2
from feedtrust.scoring.models import AccountProfile, PostStat, RateLimitHit

HUGE = 10 ** 12


def busy_inputs(**overrides):
    profile = dict(
        avatar_url="a.png",
        bio="A long enough biography",
        email_verified=True,
        follower_count=400,
        following_count=120,
        post_count=40,
        created_at=days_ago(800),
        total_views_received=5000,
        total_earned=300,
    )
    profile.update(overrides.pop("profile", {}))
    kwargs = dict(
        published_post_count=40,
        recent_published_count=4,
        active_days_last_30=18,
        login_streak=9,
        post_stats=[PostStat(id=i, like_count=12, comment_count=3, unique_view_count=120, word_count=150) for i in range(10)],
        comment_likes_total=40,
        blocks_received=1,
        reports_received=1,
        recent_comment_count=35,
        rate_limit_hits=[RateLimitHit("comment", 6)],
    )
    kwargs.update(overrides)
    return make_inputs(profile, **kwargs)


def test_pipeline_stage_order():
    profile = ProfileScoreAggregator().evaluate(busy_inputs(), NOW)
    spam = SpamScoreAggregator().evaluate(busy_inputs(), NOW)
    assert [s.name for s in profile.stages] == ["sum", "clamp", "shadow_ban", "round"]
    assert [s.name for s in spam.stages] == ["sum", "clamp", "decay", "shadow_ban", "round"]
    assert len(profile.dimensions) == 7
    assert len(spam.dimensions) == 6


def test_scores_are_deterministic():
    inputs = busy_inputs()
    first = score_account(inputs, NOW)
    second = score_account(inputs, NOW)
    assert first.outputs == second.outputs
    assert first.to_dict() == second.to_dict()


def test_scores_stay_in_bounds_for_extreme_inputs():
    extreme = make_inputs(
        {"follower_count": HUGE, "following_count": HUGE, "post_count": HUGE, "total_earned": HUGE,
         "total_views_received": HUGE, "created_at": days_ago(HUGE // 10 ** 9)},
        blocks_received=HUGE,
        reports_received=HUGE,
        moderation_action_count=HUGE,
        moderation_post_count=HUGE,
        removed_post_count=HUGE,
        spam_comment_count=HUGE,
        total_user_comment_count=HUGE,
        recent_comment_count=HUGE,
        burst_post_count=HUGE,
        follower_loss_last_7=HUGE,
        rate_limit_hits=[RateLimitHit("post", HUGE)],
    )
    for inputs in (extreme, make_inputs()):
        profile = compute_profile_score(inputs, NOW)
        spam = compute_spam_score(inputs, NOW)
        assert 0 <= profile <= 100
        assert 0 <= spam <= 100
        assert round2(profile, inputs, NOW) == profile
        assert round2(spam, inputs, NOW) == spam


def test_round_half_up():
    inputs = make_inputs()
    assert round2(0.125, inputs, NOW) == pytest.approx(0.13)
    assert round2(40.375, inputs, NOW) == pytest.approx(40.38)
    assert round2(99.994, inputs, NOW) == pytest.approx(99.99)


@pytest.mark.parametrize("field", ["blocks_received", "reports_received", "moderation_action_count"])
def test_more_abuse_signals_never_help(field):
    previous_profile, previous_spam = None, None
    for count in (0, 1, 2, 3, 4, 6, 11, 50):
        inputs = busy_inputs(**{field: count})
        profile = compute_profile_score(inputs, NOW)
        spam = compute_spam_score(inputs, NOW)
        if previous_profile is not None:
            assert profile <= previous_profile
            assert spam >= previous_spam
        previous_profile, previous_spam = profile, spam


def test_shadow_ban_dominates():
    clean = busy_inputs()
    banned = busy_inputs(profile={"shadow_banned": True})

    clean_profile = ProfileScoreAggregator().evaluate(clean, NOW)
    banned_profile = ProfileScoreAggregator().evaluate(banned, NOW)
    assert banned_profile.score == round2(max(0, clean_profile.stage("clamp") - 50), banned, NOW)

    assert compute_spam_score(banned, NOW) >= 50
    assert score_account(banned, NOW).outputs.trust_level <= 1


def test_older_moderation_decays_spam_further():
    previous = None
    for age in (0, 3, 7, 14, 60):
        spam = compute_spam_score(busy_inputs(removed_post_count=2, last_moderation_date=days_ago(age)), NOW)
        if previous is not None:
            assert spam <= previous
        previous = spam


def test_decay_applies_before_shadow_ban_raise():
    inputs = busy_inputs(
        removed_post_count=2,
        last_moderation_date=days_ago(30),
        profile={"shadow_banned": True},
    )
    spam = SpamScoreAggregator().evaluate(inputs, NOW)
    assert spam.stage("shadow_ban") == min(100, spam.stage("decay") + 50)


# ── Scenarios ─────────────────────────────────────

def test_brand_new_account():
    inputs = make_inputs({"created_at": NOW})
    result = score_account(inputs, NOW)
    assert result.outputs.profile_score <= 15
    assert result.outputs.spam_score == 0
    assert result.outputs.trust_level == 1


def test_follow_spree_with_no_followers_hits_bot_signature():
    inputs = make_inputs({"follower_count": 0, "following_count": 50, "shadow_banned": False})
    spam = SpamScoreAggregator().evaluate(inputs, NOW)
    assert spam.dimension("community_signals").breakdown["bot_signature"] == 10
    assert spam.score == 10


def test_decay_multiplies_the_whole_spam_sum():
    inputs = make_inputs(
        moderation_action_count=5,
        removed_post_count=2,
        burst_post_count=5,
        last_moderation_date=days_ago(20),
    )
    spam = SpamScoreAggregator().evaluate(inputs, NOW)
    assert spam.dimension("moderation_history").score == 20
    assert spam.dimension("behavioral").score == 15
    assert spam.stage("clamp") == 35
    assert spam.stage("decay") == pytest.approx(spam.stage("clamp") * 0.4)
    assert spam.score == 14.0


def test_verified_top_tier_and_shadow_ban_clamp():
    profile = AccountProfile(is_verified=True, shadow_banned=False)
    assert compute_trust_level(85, 3, profile, NOW) == 5

    banned = AccountProfile(is_verified=True, shadow_banned=True)
    assert compute_trust_level(85, 3, banned, NOW) == 1
