"""
Feedtrust — Profile Dimensions

Seven calculators that together make up the profile quality score:

    Completeness        (cap 15)  — is the profile filled in?
    Activity            (cap 25)  — does the account post and come back?
    Social Trust        (cap 20)  — who follows it, and who are they?
    Content Quality     (cap 26)  — do readers engage with what it posts?
    Engagement Quality  (cap 22)  — how do others interact with it?
    Economic Activity   (cap 13)  — coins earned, sent and received
    Penalties           (no cap)  — blocks, reports, moderation, bad content

Each calculator returns a DimensionScore whose breakdown lists every signal
that contributed. Caps bound a dimension from above only; activity and
content quality can dip below zero through their own penalty terms.
"""
import math
from datetime import datetime
from typing import Dict, Optional

from feedtrust.scoring import thresholds as t
from feedtrust.scoring.models import DimensionScore, ScoreInputs


def add_points(breakdown: Dict[str, float], key: str, points: float) -> None:
    if points:
        breakdown[key] = points


def capped_dimension(name: str, breakdown: Dict[str, float], cap: Optional[float]) -> DimensionScore:
    raw = sum(breakdown.values())
    score = min(raw, cap) if cap is not None else raw
    return DimensionScore(name=name, score=score, cap=cap, breakdown=breakdown)


def bad_comment_ratio(inputs: ScoreInputs) -> Optional[float]:
    """(spam + removed) / total comments, only once the account has more than a handful."""
    if inputs.total_user_comment_count <= t.BAD_COMMENT_MIN_TOTAL:
        return None
    return inputs.bad_comment_count / inputs.total_user_comment_count


def following_ratio(following: int, followers: int) -> float:
    """Following per follower. Following people with nobody following back is unbounded."""
    if followers > 0:
        return following / followers
    return math.inf if following > 0 else 0.0


# =============================================
# DIMENSIONS
# =============================================

def score_completeness(inputs: ScoreInputs, now: datetime) -> DimensionScore:
    p = inputs.profile
    bd: Dict[str, float] = {}

    if p.avatar_url:
        bd["avatar"] = 4
    if p.bio and len(p.bio) > 10:
        bd["bio"] = 2
    if p.email_verified:
        bd["email_verified"] = 2
    if p.phone_verified:
        bd["phone_verified"] = 1
    if p.website:
        bd["website"] = 1
    if p.birth_date:
        bd["birth_date"] = 1
    if p.gender:
        bd["gender"] = 1
    if p.full_name and len(p.full_name) > 2:
        bd["full_name"] = 1
    if p.account_type and p.account_type != "personal":
        bd["account_type"] = 2

    return capped_dimension("completeness", bd, t.PROFILE_CAPS["completeness"])


def score_activity(inputs: ScoreInputs, now: datetime) -> DimensionScore:
    bd: Dict[str, float] = {}

    add_points(bd, "post_count", t.POST_COUNT.lookup(inputs.profile.post_count))
    if inputs.recent_published_count >= 1:
        bd["recent_post"] = t.RECENT_POST_BONUS

    add_points(bd, "active_days", t.ACTIVE_DAYS.lookup(inputs.active_days_last_30))
    if inputs.active_days_last_30 < t.INACTIVE_DAYS_BELOW:
        bd["inactivity_penalty"] = t.INACTIVITY_PENALTY

    add_points(bd, "login_streak", t.LOGIN_STREAK.lookup(inputs.login_streak))
    add_points(bd, "account_age", t.ACCOUNT_AGE_DAYS.lookup(inputs.profile.account_age_days(now)))

    return capped_dimension("activity", bd, t.PROFILE_CAPS["activity"])


def score_social_trust(inputs: ScoreInputs, now: datetime) -> DimensionScore:
    p = inputs.profile
    bd: Dict[str, float] = {}

    add_points(bd, "follower_reach", min(math.log2(p.follower_count + 1) * 2, t.FOLLOWER_REACH_CAP))
    add_points(bd, "following_ratio", t.FOLLOWING_RATIO.lookup(following_ratio(p.following_count, p.follower_count)))

    if p.is_verified:
        bd["verified"] = t.VERIFIED_BONUS
    if p.is_premium:
        bd["premium"] = t.PREMIUM_BONUS

    add_points(bd, "mutual_follow", t.MUTUAL_FOLLOW_RATIO.lookup(inputs.mutual_follow_ratio))
    add_points(bd, "network_trust", t.NETWORK_TRUST_AVG.lookup(inputs.network_trust_avg))
    add_points(bd, "profile_visitors", t.UNIQUE_PROFILE_VISITORS.lookup(inputs.unique_profile_visitors))

    return capped_dimension("social_trust", bd, t.PROFILE_CAPS["social_trust"])


def score_content_quality(inputs: ScoreInputs, now: datetime) -> DimensionScore:
    bd: Dict[str, float] = {}
    posts = inputs.post_stats
    total_views = inputs.profile.total_views_received

    # Interaction rate, only over posts with enough views to mean something
    rated = [p for p in posts if p.unique_view_count >= t.MIN_VIEWS_FOR_RATE]
    if rated:
        avg_rate = sum(p.interactions / p.unique_view_count for p in rated) / len(rated)
        add_points(bd, "engagement_rate", t.ENGAGEMENT_RATE.lookup(avg_rate))

    if total_views > 0 and inputs.qualified_read_count > 0:
        add_points(bd, "qualified_reads", t.QUALIFIED_READ_RATIO.lookup(inputs.qualified_read_count / total_views))

    trending = sum(1 for p in posts if p.trending_score > 0)
    add_points(bd, "trending_posts", t.TRENDING_POSTS.lookup(trending))

    if posts:
        avg_words = sum(p.word_count for p in posts) / len(posts)
        add_points(bd, "content_depth", t.AVG_WORD_COUNT.lookup(avg_words))

    duration = inputs.avg_read_duration_on_posts
    read_bonus = t.READ_DURATION.lookup(duration)
    if read_bonus:
        bd["read_duration"] = read_bonus
    elif 0 < duration < t.SHORT_READ_SECONDS and total_views >= t.SHORT_READ_MIN_VIEWS:
        bd["short_read_penalty"] = t.SHORT_READ_PENALTY

    add_points(bd, "discussion_posts", t.DISCUSSION_POSTS.lookup(inputs.discussion_post_count))

    return capped_dimension("content_quality", bd, t.PROFILE_CAPS["content_quality"])


def score_engagement_quality(inputs: ScoreInputs, now: datetime) -> DimensionScore:
    bd: Dict[str, float] = {}
    posts = inputs.post_stats

    add_points(bd, "comment_likes", t.COMMENT_LIKES.lookup(inputs.comment_likes_total))
    add_points(bd, "gifts_received", t.GIFT_COINS_RECEIVED.lookup(inputs.gifts_received_coins))

    kinds = (
        sum(p.like_count for p in posts) > 0,
        sum(p.comment_count for p in posts) > 0,
        sum(p.save_count for p in posts) > 0,
        sum(p.share_count for p in posts) > 0,
    )
    add_points(bd, "engagement_diversity", t.ENGAGEMENT_DIVERSITY.lookup(sum(kinds)))

    add_points(bd, "comment_replies", t.COMMENT_REPLY_RATIO.lookup(inputs.comment_reply_ratio))
    add_points(bd, "organic_comments", t.ORGANIC_COMMENT_RATIO.lookup(inputs.organic_comment_ratio))
    add_points(bd, "social_shares", t.SOCIAL_SHARES.lookup(inputs.social_shares_by_user))

    return capped_dimension("engagement_quality", bd, t.PROFILE_CAPS["engagement_quality"])


def score_economic_activity(inputs: ScoreInputs, now: datetime) -> DimensionScore:
    bd: Dict[str, float] = {}

    add_points(bd, "total_earned", t.TOTAL_EARNED.lookup(inputs.profile.total_earned))
    add_points(bd, "gifts_sent", t.GIFT_COINS_SENT.lookup(inputs.gifts_sent_coins))

    total_views = inputs.profile.total_views_received
    if total_views > 0:
        saves = sum(p.save_count for p in inputs.post_stats)
        add_points(bd, "save_rate", t.SAVE_RATE.lookup(saves / total_views))

    add_points(bd, "gift_sender_diversity", t.GIFT_SENDER_DIVERSITY.lookup(inputs.gift_sender_diversity))

    return capped_dimension("economic_activity", bd, t.PROFILE_CAPS["economic_activity"])


def score_penalties(inputs: ScoreInputs, now: datetime) -> DimensionScore:
    """Deductions. Always <= 0 and never capped."""
    bd: Dict[str, float] = {}
    published = inputs.published_post_count

    add_points(bd, "blocks_received", t.BLOCKS_PENALTY.lookup(inputs.blocks_received))
    add_points(bd, "reports_received", t.REPORTS_PENALTY.lookup(inputs.reports_received))
    add_points(bd, "moderation_actions", t.MODERATION_ACTIONS_PENALTY.lookup(inputs.moderation_action_count))
    add_points(bd, "account_status", t.STATUS_PENALTY.get(inputs.profile.status, 0))

    ratio = bad_comment_ratio(inputs)
    if ratio is not None:
        add_points(bd, "bad_comments", t.BAD_COMMENT_RATIO_PENALTY.lookup(ratio))

    if published >= t.NSFW_MIN_PUBLISHED:
        add_points(bd, "nsfw_posts", t.NSFW_RATIO_PENALTY.lookup(inputs.nsfw_post_ratio))

    # Content quality penalties
    add_points(bd, "post_and_delete", t.POST_AND_DELETE_PENALTY.lookup(inputs.post_and_delete_count))
    if published >= t.LOW_EFFORT_MIN_PUBLISHED:
        add_points(bd, "low_effort_posts", t.LOW_EFFORT_RATIO_PENALTY.lookup(inputs.low_effort_post_ratio))
    add_points(bd, "duplicate_content", t.DUPLICATE_CONTENT_PENALTY.lookup(inputs.duplicate_content_count))
    if published >= t.ONE_LINE_MIN_PUBLISHED:
        add_points(bd, "one_line_posts", t.ONE_LINE_RATIO_PENALTY.lookup(inputs.one_line_no_media_post_ratio))
    if published >= t.WEIRD_CHAR_MIN_PUBLISHED:
        add_points(bd, "weird_char_posts", t.WEIRD_CHAR_RATIO_PENALTY.lookup(inputs.weird_char_post_ratio))

    return capped_dimension("penalties", bd, None)


PROFILE_DIMENSIONS = (
    score_completeness,
    score_activity,
    score_social_trust,
    score_content_quality,
    score_engagement_quality,
    score_economic_activity,
    score_penalties,
)
