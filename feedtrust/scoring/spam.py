"""
Feedtrust — Spam Dimensions

Six calculators that together make up the spam/abuse score:

    Moderation History     (cap 30)  — content already taken down
    Behavioral Anomalies   (cap 30)  — bursts, duplicates, low-effort floods
    Community Signals      (cap 20)  — blocks, reports, bot signature
    Rate-Limit Violations  (cap 20)  — how often and on how many actions
    Follower Loss          (cap 15)  — followers leaving in the last 7 days
    Manipulation Patterns  (cap 20)  — gift farming, self-engagement, mention spam

Plus the rehabilitation decay multiplier applied to the summed score.
"""
from datetime import datetime
from typing import Dict, Optional

from feedtrust.scoring import thresholds as t
from feedtrust.scoring.models import DimensionScore, ScoreInputs, days_between
from feedtrust.scoring.profile import add_points, capped_dimension, bad_comment_ratio


def score_moderation_history(inputs: ScoreInputs, now: datetime) -> DimensionScore:
    bd: Dict[str, float] = {}
    add_points(bd, "moderated_posts", min(inputs.moderation_post_count * t.MODERATED_POST_WEIGHT, t.MODERATED_POST_CAP))
    add_points(bd, "removed_posts", min(inputs.removed_post_count * t.REMOVED_POST_WEIGHT, t.REMOVED_POST_CAP))
    add_points(bd, "bad_comments", min(inputs.bad_comment_count * t.BAD_COMMENT_WEIGHT, t.BAD_COMMENT_CAP))
    return capped_dimension("moderation_history", bd, t.SPAM_CAPS["moderation_history"])


def score_behavioral(inputs: ScoreInputs, now: datetime) -> DimensionScore:
    bd: Dict[str, float] = {}
    published = inputs.published_post_count

    if inputs.burst_post_count >= t.BURST_POST_MIN:
        bd["burst_posting"] = t.BURST_POST_POINTS
    add_points(bd, "recent_comments", t.RECENT_COMMENTS.lookup(inputs.recent_comment_count))
    if 0 < inputs.avg_word_count < t.SHORT_CONTENT_WORDS:
        bd["short_content"] = t.SHORT_CONTENT_POINTS
    add_points(bd, "duplicate_comments", t.DUPLICATE_COMMENT_GROUPS.lookup(inputs.duplicate_comment_groups))
    add_points(bd, "mass_delete", t.MASS_DELETE.lookup(inputs.mass_delete_last_24h))

    if published >= t.NSFW_MIN_PUBLISHED:
        add_points(bd, "nsfw_posts", t.NSFW_RATIO_SPAM.lookup(inputs.nsfw_post_ratio))

    add_points(bd, "duplicate_content", t.DUPLICATE_CONTENT_SPAM.lookup(inputs.duplicate_content_count))

    if published >= t.LOW_EFFORT_MIN_PUBLISHED and inputs.low_effort_post_ratio >= t.LOW_EFFORT_SPAM_RATIO:
        bd["low_effort_posts"] = t.LOW_EFFORT_SPAM_POINTS
    if published >= t.WEIRD_CHAR_MIN_PUBLISHED and inputs.weird_char_post_ratio >= t.WEIRD_CHAR_SPAM_RATIO:
        bd["weird_char_posts"] = t.WEIRD_CHAR_SPAM_POINTS

    return capped_dimension("behavioral", bd, t.SPAM_CAPS["behavioral"])


def score_community_signals(inputs: ScoreInputs, now: datetime) -> DimensionScore:
    p = inputs.profile
    bd: Dict[str, float] = {}

    add_points(bd, "blocks_received", t.BLOCKS_SPAM.lookup(inputs.blocks_received))
    add_points(bd, "reports_received", t.REPORTS_SPAM.lookup(inputs.reports_received))

    # Follows lots of accounts, nobody follows back
    if p.follower_count == 0 and p.following_count > t.BOT_FOLLOWING_OVER:
        bd["bot_signature"] = t.BOT_SIGNATURE_POINTS

    return capped_dimension("community_signals", bd, t.SPAM_CAPS["community_signals"])


def score_rate_limit_violations(inputs: ScoreInputs, now: datetime) -> DimensionScore:
    bd: Dict[str, float] = {}
    hits = inputs.rate_limit_hits

    add_points(bd, "total_hits", t.RATE_LIMIT_TOTAL_HITS.lookup(sum(h.count for h in hits)))
    add_points(bd, "distinct_actions", t.RATE_LIMIT_DISTINCT_ACTIONS.lookup(sum(1 for h in hits if h.count > 0)))

    return capped_dimension("rate_limit_violations", bd, t.SPAM_CAPS["rate_limit_violations"])


def score_follower_loss(inputs: ScoreInputs, now: datetime) -> DimensionScore:
    bd: Dict[str, float] = {}
    add_points(bd, "follower_loss", t.FOLLOWER_LOSS.lookup(inputs.follower_loss_last_7))
    return capped_dimension("follower_loss", bd, t.SPAM_CAPS["follower_loss"])


def score_manipulation(inputs: ScoreInputs, now: datetime) -> DimensionScore:
    bd: Dict[str, float] = {}

    if inputs.gifts_received_coins > t.GIFT_CONCENTRATION_MIN_COINS:
        add_points(bd, "gift_concentration", t.TOP_GIFT_SENDER_RATIO.lookup(inputs.top_gift_sender_ratio))

    add_points(bd, "suspicious_withdrawals", t.SUSPICIOUS_WITHDRAWALS.lookup(inputs.suspicious_withdrawal_count))

    if (inputs.self_comment_ratio >= t.SELF_COMMENT_HIGH_RATIO
            and inputs.comment_author_diversity < t.SELF_COMMENT_LOW_DIVERSITY):
        bd["self_engagement"] = t.SELF_COMMENT_HIGH_POINTS
    elif inputs.self_comment_ratio >= t.SELF_COMMENT_RATIO:
        bd["self_engagement"] = t.SELF_COMMENT_POINTS

    if inputs.avg_mention_per_post > t.MENTION_SPAM_AVG:
        bd["mention_spam"] = t.MENTION_SPAM_POINTS

    # Same ratio as the profile penalty, scored again on this axis
    ratio = bad_comment_ratio(inputs)
    if ratio is not None:
        add_points(bd, "bad_comments", t.BAD_COMMENT_RATIO_SPAM.lookup(ratio))

    return capped_dimension("manipulation", bd, t.SPAM_CAPS["manipulation"])


def rehabilitation_multiplier(last_moderation_date: Optional[datetime], now: datetime) -> float:
    """
    Weight left on the spam score given time since the latest moderation action.
    No moderation history means nothing to decay.
    """
    days = days_between(last_moderation_date, now)
    if days is None:
        return 1.0
    return float(t.REHABILITATION_DECAY.lookup(days))


SPAM_DIMENSIONS = (
    score_moderation_history,
    score_behavioral,
    score_community_signals,
    score_rate_limit_violations,
    score_follower_loss,
    score_manipulation,
)
